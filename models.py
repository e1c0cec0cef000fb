import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


def new_id() -> str:
    return uuid.uuid4().hex


class RecurringFrequency(str, Enum):
    daily = "DAILY"
    weekly = "WEEKLY"
    monthly = "MONTHLY"
    yearly = "YEARLY"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(40), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))

    accounts: Mapped[list["Account"]] = relationship("Account", back_populates="user")


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(40), primary_key=True, default=new_id)
    user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))
    name: Mapped[str] = mapped_column(String(120), nullable=False)

    user: Mapped[Optional["User"]] = relationship("User", back_populates="accounts")
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction", back_populates="account"
    )

    __table_args__ = (Index("ix_accounts_user_created", "user_id", "created_at"),)


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(40), primary_key=True, default=new_id)
    user_id: Mapped[Optional[str]] = mapped_column(ForeignKey("users.id"))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_income: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction", back_populates="category"
    )

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_category_user_name"),
    )


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(40), primary_key=True, default=new_id)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    category_id: Mapped[Optional[str]] = mapped_column(ForeignKey("categories.id"))
    # signed: >= 0 income, < 0 outgoing
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    account: Mapped["Account"] = relationship("Account", back_populates="transactions")
    category: Mapped[Optional["Category"]] = relationship(
        "Category", back_populates="transactions"
    )

    __table_args__ = (
        Index("ix_transactions_account_occurred", "account_id", "occurred_at"),
        Index(
            "ix_transactions_account_category_occurred",
            "account_id",
            "category_id",
            "occurred_at",
        ),
    )


class Budget(Base, TimestampMixin):
    """Spending limit per category, or a planned saving when category_id is NULL."""

    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String(40), primary_key=True, default=new_id)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    category_id: Mapped[Optional[str]] = mapped_column(ForeignKey("categories.id"))
    title: Mapped[Optional[str]] = mapped_column(String(200))
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    category: Mapped[Optional["Category"]] = relationship("Category")

    __table_args__ = (
        Index("ix_budgets_account_month", "account_id", "year", "month"),
    )


class RecurringTransaction(Base, TimestampMixin):
    __tablename__ = "recurring_transactions"

    id: Mapped[str] = mapped_column(String(40), primary_key=True, default=new_id)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    category_id: Mapped[Optional[str]] = mapped_column(ForeignKey("categories.id"))
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    frequency: Mapped[RecurringFrequency] = mapped_column(
        SAEnum(RecurringFrequency),
        nullable=False,
        default=RecurringFrequency.monthly,
    )
    interval_months: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    day_of_month: Mapped[Optional[int]] = mapped_column(Integer)
    next_occurrence: Mapped[date] = mapped_column(Date, nullable=False)

    skips: Mapped[list["RecurringTransactionSkip"]] = relationship(
        "RecurringTransactionSkip",
        back_populates="recurring",
        cascade="all, delete-orphan",
    )


class RecurringTransactionSkip(Base, TimestampMixin):
    __tablename__ = "recurring_transaction_skips"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recurring_id: Mapped[str] = mapped_column(
        ForeignKey("recurring_transactions.id"), nullable=False
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)

    recurring: Mapped["RecurringTransaction"] = relationship(
        "RecurringTransaction", back_populates="skips"
    )

    __table_args__ = (
        UniqueConstraint(
            "recurring_id", "year", "month", name="uq_recurring_skip_month"
        ),
    )
