"""Seed the demo account used when a signed-in user has no account yet."""

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from config import get_settings
from database import Base, engine, session_scope
from models import Account, Budget, Category, Transaction
from periods import local_today

logger = logging.getLogger(__name__)

EXPENSES = [
    ("Clothing", 120),
    ("Hobbies", 80),
    ("Eating out", 150),
    ("Food order", 60),
    ("Cosmetics", 40),
    ("Drugstore", 35),
    ("Presents", 50),
    ("Mobility", 100),
    ("Special", 30),
    ("Health", 25),
    ("Interior", 45),
    ("Misc", 20),
]
INCOMES = [
    ("Salary 1", 2500),
    ("Salary 2", 1500),
    ("Child benefit", 250),
    ("Misc Income", 100),
]
SAVINGS_TRANSFER_CENTS = 15_000
PLANNED_SAVINGS_CENTS = 60_000


def _category(session: Session, name: str, is_income: bool) -> Category:
    category = session.scalar(
        select(Category).where(Category.user_id.is_(None), Category.name == name)
    )
    if category:
        category.is_income = is_income
        return category
    category = Category(name=name, is_income=is_income)
    session.add(category)
    session.flush()
    return category


def seed_demo(
    session: Session,
    *,
    account_id: Optional[str] = None,
    today: Optional[date] = None,
) -> Account:
    settings = get_settings()
    account_id = account_id or settings.fallback_account_id or "acc_demo"
    today = today or local_today()

    account = session.get(Account, account_id)
    if not account:
        account = Account(id=account_id, name="Demo Account")
        session.add(account)
        session.flush()

    base = datetime(today.year, today.month, 5, 12, 0)
    for offset, (name, euros) in enumerate(EXPENSES):
        category = _category(session, name, is_income=False)
        session.add(
            Transaction(
                account_id=account.id,
                category_id=category.id,
                amount_cents=-euros * 100,
                description=f"{name} expense",
                occurred_at=base + timedelta(hours=offset),
            )
        )
    for offset, (name, euros) in enumerate(INCOMES):
        category = _category(session, name, is_income=True)
        session.add(
            Transaction(
                account_id=account.id,
                category_id=category.id,
                amount_cents=euros * 100,
                description=f"{name} income",
                occurred_at=base + timedelta(hours=offset + 20),
            )
        )

    savings = _category(session, settings.savings_category_name, is_income=False)
    session.add(
        Transaction(
            account_id=account.id,
            category_id=savings.id,
            amount_cents=-SAVINGS_TRANSFER_CENTS,
            description="Monthly savings transfer",
            occurred_at=base + timedelta(hours=15),
        )
    )

    planned = session.scalar(
        select(Budget).where(
            Budget.account_id == account.id,
            Budget.category_id.is_(None),
            Budget.month == today.month,
            Budget.year == today.year,
        )
    )
    if planned:
        planned.amount_cents = PLANNED_SAVINGS_CENTS
    else:
        session.add(
            Budget(
                account_id=account.id,
                category_id=None,
                month=today.month,
                year=today.year,
                amount_cents=PLANNED_SAVINGS_CENTS,
            )
        )
    session.flush()
    logger.info(f"seed_demo: account={account.id} month={today:%Y-%m}")
    return account


def main():
    logging.basicConfig(level=get_settings().log_level)
    Base.metadata.create_all(engine)
    with session_scope() as session:
        seed_demo(session)


if __name__ == "__main__":
    main()
