from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload

from analytics import (
    UNCATEGORIZED,
    DailyPoint,
    LedgerEntry,
    MonthBucket,
    QuarterTotals,
    baseline_savings,
    bucket_month,
    daily_series,
    month_totals,
    quarter_totals,
)
from config import get_settings
from models import (
    Account,
    Budget,
    Category,
    RecurringTransaction,
    RecurringTransactionSkip,
    Transaction,
)
from periods import MonthRef, trailing_months
from recurrence import as_ledger_entry, occurrences_for_month

logger = logging.getLogger(__name__)


class AccountNotFound(ValueError):
    pass


def cents_to_major(cents: int) -> float:
    return cents / 100


class LedgerReader:
    """Read-only access to one user's ledger.

    Category lookups are scoped to `user_id`; a reader without a user sees
    only categories that belong to nobody (the shared demo data).
    """

    def __init__(self, session: Session, user_id: Optional[str] = None) -> None:
        self.session = session
        self.user_id = user_id

    @classmethod
    def for_account(cls, session: Session, account_id: str) -> "LedgerReader":
        account = session.get(Account, account_id)
        if not account:
            raise AccountNotFound("Account not found")
        return cls(session, account.user_id)

    def _category_scope(self):
        if self.user_id is None:
            return Category.user_id.is_(None)
        return Category.user_id == self.user_id

    def primary_account_id(self) -> Optional[str]:
        if self.user_id is None:
            return None
        return self.session.scalar(
            select(Account.id)
            .where(Account.user_id == self.user_id)
            .order_by(Account.created_at.asc(), Account.id.asc())
            .limit(1)
        )

    def owns_account(self, account_id: str) -> bool:
        account = self.session.get(Account, account_id)
        return bool(account) and account.user_id == self.user_id

    def list_transactions(
        self,
        account_id: str,
        start=None,
        end=None,
        *,
        category_id: Optional[str] = None,
    ) -> list[LedgerEntry]:
        stmt = (
            select(
                Transaction.amount_cents,
                Transaction.occurred_at,
                Transaction.category_id,
            )
            .where(Transaction.account_id == account_id)
            .order_by(Transaction.occurred_at, Transaction.id)
        )
        if start is not None:
            stmt = stmt.where(Transaction.occurred_at >= start)
        if end is not None:
            stmt = stmt.where(Transaction.occurred_at < end)
        if category_id is not None:
            stmt = stmt.where(Transaction.category_id == category_id)
        return [
            LedgerEntry(
                amount_cents=int(row.amount_cents),
                occurred_at=row.occurred_at,
                category_id=row.category_id,
            )
            for row in self.session.execute(stmt)
        ]

    def sum_amounts(
        self,
        account_id: str,
        end=None,
        *,
        category_id: Optional[str] = None,
    ) -> int:
        stmt = select(func.coalesce(func.sum(Transaction.amount_cents), 0)).where(
            Transaction.account_id == account_id
        )
        if end is not None:
            stmt = stmt.where(Transaction.occurred_at < end)
        if category_id is not None:
            stmt = stmt.where(Transaction.category_id == category_id)
        return int(self.session.execute(stmt).scalar_one() or 0)

    def balance_before(self, account_id: str, end) -> int:
        return self.sum_amounts(account_id, end)

    def find_category_id_by_name(self, name: str) -> Optional[str]:
        return self.session.scalar(
            select(Category.id)
            .where(self._category_scope(), Category.name == name)
            .order_by(Category.created_at, Category.id)
            .limit(1)
        )

    def find_category_id_by_aliases(self, aliases: Iterable[str]) -> Optional[str]:
        wanted = {alias.strip().lower() for alias in aliases}
        rows = self.session.execute(
            select(Category.id, Category.name)
            .where(self._category_scope())
            .order_by(Category.created_at, Category.id)
        )
        for row in rows:
            if row.name.strip().lower() in wanted:
                return row.id
        return None

    def find_categories_by_ids(self, ids: Iterable[str]) -> dict[str, str]:
        ids = [i for i in ids if i]
        if not ids:
            return {}
        rows = self.session.execute(
            select(Category.id, Category.name).where(
                self._category_scope(), Category.id.in_(ids)
            )
        )
        return {row.id: row.name for row in rows}

    def find_planned_budget(
        self, account_id: str, month: int, year: int
    ) -> Optional[int]:
        total = self.session.execute(
            select(func.sum(Budget.amount_cents)).where(
                Budget.account_id == account_id,
                Budget.category_id.is_(None),
                Budget.month == month,
                Budget.year == year,
            )
        ).scalar_one()
        return None if total is None else int(total)

    def list_budgets(self, account_id: str) -> list[Budget]:
        return list(
            self.session.scalars(
                select(Budget)
                .options(joinedload(Budget.category))
                .where(Budget.account_id == account_id)
                .order_by(
                    Budget.year.asc(), Budget.month.asc(), Budget.created_at.asc()
                )
            ).all()
        )

    def list_recurring(self, account_id: str) -> list[RecurringTransaction]:
        return list(
            self.session.scalars(
                select(RecurringTransaction)
                .where(RecurringTransaction.account_id == account_id)
                .order_by(
                    RecurringTransaction.next_occurrence, RecurringTransaction.id
                )
            ).all()
        )

    def skipped_recurring_ids(
        self, ids: Iterable[str], year: int, month: int
    ) -> set[str]:
        ids = list(ids)
        if not ids:
            return set()
        rows = self.session.scalars(
            select(RecurringTransactionSkip.recurring_id).where(
                RecurringTransactionSkip.recurring_id.in_(ids),
                RecurringTransactionSkip.year == year,
                RecurringTransactionSkip.month == month,
            )
        )
        return set(rows)


@dataclass
class QuarterlyReport:
    quarters: list[MonthBucket]
    totals: QuarterTotals


@dataclass
class CategorySpend:
    id: str
    name: str
    amount_cents: int


@dataclass
class RecurringOccurrence:
    id: str
    description: str
    amount_cents: int
    category_id: Optional[str]
    day_of_month: Optional[int]


@dataclass
class MonthlySummary:
    month: MonthRef
    income_cents: int
    outcome_excl_savings_cents: int
    savings_actual_cents: int
    remaining_cents: int
    planned_savings_cents: int
    total_balance_cents: int
    carryover_cents: int
    outgoing_by_category: list[CategorySpend]
    daily: list[DailyPoint]
    recurring: list[RecurringOccurrence] = field(default_factory=list)
    recurring_income_cents: int = 0
    recurring_outcome_cents: int = 0
    projected_outgoing_by_category: list[CategorySpend] = field(default_factory=list)

    @property
    def outcome_total_cents(self) -> int:
        # kept identical to outcome_excl_savings_cents for API compatibility
        return self.outcome_excl_savings_cents

    @property
    def projected_income_cents(self) -> int:
        return self.income_cents + self.recurring_income_cents

    @property
    def projected_outcome_cents(self) -> int:
        return self.outcome_excl_savings_cents + self.recurring_outcome_cents

    @property
    def projected_remaining_cents(self) -> int:
        return (
            self.projected_income_cents
            - self.projected_outcome_cents
            - self.savings_actual_cents
        )


class AnalyticsService:
    def __init__(
        self, reader: LedgerReader, savings_category_name: Optional[str] = None
    ) -> None:
        self.reader = reader
        self.savings_category_name = (
            savings_category_name or get_settings().savings_category_name
        )

    def savings_category_id(self) -> Optional[str]:
        return self.reader.find_category_id_by_name(self.savings_category_name)

    def quarterly(self, account_id: str, ref: MonthRef) -> QuarterlyReport:
        savings_id = self.savings_category_id()
        quarters: list[MonthBucket] = []
        for month in trailing_months(ref, 3):
            entries = self.reader.list_transactions(account_id, month.start, month.end)
            balance = self.reader.balance_before(account_id, month.end)
            quarters.append(
                bucket_month(
                    month,
                    entries,
                    balance_cents=balance,
                    savings_category_id=savings_id,
                )
            )
        totals = quarter_totals(quarters)
        logger.info(
            f"analytics_quarterly: account={account_id} month={ref.slug} "
            f"savings_category={'yes' if savings_id else 'no'}"
        )
        return QuarterlyReport(quarters=quarters, totals=totals)

    def _category_spend(
        self, by_category: dict[str, int], names: dict[str, str]
    ) -> list[CategorySpend]:
        return [
            CategorySpend(
                id=key,
                name="Uncategorized" if key == UNCATEGORIZED else names.get(key, key),
                amount_cents=amount,
            )
            for key, amount in by_category.items()
        ]

    def summary(self, account_id: str, ref: MonthRef) -> MonthlySummary:
        savings_id = self.savings_category_id()
        entries = self.reader.list_transactions(account_id, ref.start, ref.end)
        totals = month_totals(entries, savings_id)

        planned = self.reader.find_planned_budget(account_id, ref.month, ref.year)

        baseline = 0
        if savings_id is not None:
            baseline = baseline_savings(
                self.reader.list_transactions(
                    account_id, end=ref.start, category_id=savings_id
                ),
                savings_id,
            )
        daily = daily_series(
            ref,
            entries,
            savings_category_id=savings_id,
            baseline_savings_cents=baseline,
        )

        rules = self.reader.list_recurring(account_id)
        skipped = self.reader.skipped_recurring_ids([r.id for r in rules], ref.year, ref.month)
        active = occurrences_for_month(rules, ref, skipped)
        recurring_totals = month_totals(
            [as_ledger_entry(rule, ref) for rule in active], savings_id
        )

        projected_by_category = dict(totals.by_category)
        for key, amount in recurring_totals.by_category.items():
            projected_by_category[key] = projected_by_category.get(key, 0) + amount

        names = self.reader.find_categories_by_ids(
            key for key in projected_by_category if key != UNCATEGORIZED
        )

        summary = MonthlySummary(
            month=ref,
            income_cents=totals.income_cents,
            outcome_excl_savings_cents=totals.outcome_cents,
            savings_actual_cents=totals.savings_cents,
            remaining_cents=totals.remaining_cents,
            planned_savings_cents=planned or 0,
            total_balance_cents=self.reader.sum_amounts(account_id),
            carryover_cents=self.reader.balance_before(account_id, ref.start),
            outgoing_by_category=self._category_spend(totals.by_category, names),
            daily=daily,
            recurring=[
                RecurringOccurrence(
                    id=rule.id,
                    description=rule.description,
                    amount_cents=rule.amount_cents,
                    category_id=rule.category_id,
                    day_of_month=rule.day_of_month,
                )
                for rule in active
            ],
            recurring_income_cents=recurring_totals.income_cents,
            # savings transfers scheduled as recurring still leave the account
            recurring_outcome_cents=(
                recurring_totals.outcome_cents + recurring_totals.savings_cents
            ),
            projected_outgoing_by_category=self._category_spend(
                projected_by_category, names
            ),
        )
        logger.info(
            f"analytics_summary: account={account_id} month={ref.slug} "
            f"transactions={len(entries)} recurring={len(active)}"
        )
        return summary


@dataclass
class SavingGoal:
    id: str
    account_id: str
    category_id: Optional[str]
    category_name: Optional[str]
    title: str
    month: int
    year: int
    amount_cents: int


@dataclass
class SavingPlan:
    goals: list[SavingGoal]
    available_cents: int
    total_target_cents: int
    suggested_monthly_cents: int


def normalize_goal_title(
    title: Optional[str], category_name: Optional[str], month: int, year: int
) -> str:
    trimmed = (title or "").strip()
    if trimmed:
        return trimmed
    if category_name:
        return category_name
    return f"{year:04d}-{month:02d}"


def suggested_monthly_cents(
    goals: list[SavingGoal], available_cents: int, today: MonthRef
) -> int:
    """Smallest constant monthly amount that meets every goal by its deadline.

    `goals` must be ordered by deadline. Money already saved counts towards
    the earliest goals first.
    """
    total = sum(goal.amount_cents for goal in goals)
    if not goals or total - available_cents <= 0:
        return 0

    suggested = 0
    cumulative = 0
    for goal in goals:
        cumulative += goal.amount_cents
        remaining = max(cumulative - available_cents, 0)
        months_until = max(
            (goal.year - today.year) * 12 + (goal.month - today.month), 1
        )
        required = -(-remaining // months_until)
        suggested = max(suggested, required)
    return suggested


class SavingPlanService:
    def __init__(self, reader: LedgerReader) -> None:
        self.reader = reader

    def available_cents(self, account_id: str) -> int:
        settings = get_settings()
        savings_id = self.reader.find_category_id_by_aliases(
            settings.savings_category_aliases
        )
        if savings_id is None:
            return 0
        # transfers into savings are booked as outgoings on the main account
        return -self.reader.sum_amounts(account_id, category_id=savings_id)

    def goals(self, account_id: str) -> list[SavingGoal]:
        rows = self.reader.list_budgets(account_id)
        return [
            SavingGoal(
                id=row.id,
                account_id=row.account_id,
                category_id=row.category_id,
                category_name=row.category.name if row.category else None,
                title=normalize_goal_title(
                    row.title,
                    row.category.name if row.category else None,
                    row.month,
                    row.year,
                ),
                month=row.month,
                year=row.year,
                amount_cents=row.amount_cents,
            )
            for row in rows
        ]

    def plan(self, account_id: str, today: MonthRef) -> SavingPlan:
        goals = self.goals(account_id)
        available = self.available_cents(account_id)
        plan = SavingPlan(
            goals=goals,
            available_cents=available,
            total_target_cents=sum(goal.amount_cents for goal in goals),
            suggested_monthly_cents=suggested_monthly_cents(goals, available, today),
        )
        logger.info(
            f"saving_plan: account={account_id} goals={len(goals)} "
            f"suggested_monthly_cents={plan.suggested_monthly_cents}"
        )
        return plan
