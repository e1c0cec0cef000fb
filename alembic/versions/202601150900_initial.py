"""initial household ledger schema

Revision ID: 202601150900
Revises:
Create Date: 2026-01-15 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202601150900"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255)),
        *_timestamps(),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column("user_id", sa.String(length=40), sa.ForeignKey("users.id")),
        sa.Column("name", sa.String(length=120), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_accounts_user_created", "accounts", ["user_id", "created_at"]
    )

    op.create_table(
        "categories",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column("user_id", sa.String(length=40), sa.ForeignKey("users.id")),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column(
            "is_income", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_category_user_name"),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column(
            "account_id",
            sa.String(length=40),
            sa.ForeignKey("accounts.id"),
            nullable=False,
        ),
        sa.Column("category_id", sa.String(length=40), sa.ForeignKey("categories.id")),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_transactions_account_occurred",
        "transactions",
        ["account_id", "occurred_at"],
    )
    op.create_index(
        "ix_transactions_account_category_occurred",
        "transactions",
        ["account_id", "category_id", "occurred_at"],
    )

    op.create_table(
        "budgets",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column(
            "account_id",
            sa.String(length=40),
            sa.ForeignKey("accounts.id"),
            nullable=False,
        ),
        sa.Column("category_id", sa.String(length=40), sa.ForeignKey("categories.id")),
        sa.Column("title", sa.String(length=200)),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_budgets_account_month", "budgets", ["account_id", "year", "month"])

    op.create_table(
        "recurring_transactions",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column(
            "account_id",
            sa.String(length=40),
            sa.ForeignKey("accounts.id"),
            nullable=False,
        ),
        sa.Column("category_id", sa.String(length=40), sa.ForeignKey("categories.id")),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "frequency",
            sa.Enum(
                "daily", "weekly", "monthly", "yearly", name="recurringfrequency"
            ),
            nullable=False,
        ),
        sa.Column("interval_months", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("day_of_month", sa.Integer()),
        sa.Column("next_occurrence", sa.Date(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "recurring_transaction_skips",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "recurring_id",
            sa.String(length=40),
            sa.ForeignKey("recurring_transactions.id"),
            nullable=False,
        ),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "recurring_id", "year", "month", name="uq_recurring_skip_month"
        ),
    )


def downgrade():
    op.drop_table("recurring_transaction_skips")
    op.drop_table("recurring_transactions")
    op.drop_index("ix_budgets_account_month", table_name="budgets")
    op.drop_table("budgets")
    op.drop_index(
        "ix_transactions_account_category_occurred", table_name="transactions"
    )
    op.drop_index("ix_transactions_account_occurred", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("categories")
    op.drop_index("ix_accounts_user_created", table_name="accounts")
    op.drop_table("accounts")
    op.drop_table("users")
