"""Monthly ledger aggregation.

Everything in here works on rows that were already fetched from the store;
nothing touches the database. Amounts stay in signed integer cents all the
way through, conversion to major units is left to whoever renders the
result.

Classification rule shared by every view:

* ``amount_cents >= 0`` is income,
* a negative amount booked on the savings category is a savings transfer,
* any other negative amount is outcome.

Savings and outcome are reported as positive magnitudes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from periods import MonthRef

UNCATEGORIZED = "uncategorized"


class EntryKind(str, Enum):
    income = "income"
    outcome = "outcome"
    savings = "savings"


@dataclass(frozen=True)
class LedgerEntry:
    amount_cents: int
    occurred_at: datetime
    category_id: Optional[str] = None


def classify(
    amount_cents: int,
    category_id: Optional[str],
    savings_category_id: Optional[str],
) -> EntryKind:
    if amount_cents >= 0:
        return EntryKind.income
    if savings_category_id is not None and category_id == savings_category_id:
        return EntryKind.savings
    return EntryKind.outcome


@dataclass
class MonthBucket:
    month: int
    year: int
    income_cents: int = 0
    outcome_cents: int = 0
    savings_cents: int = 0
    balance_cents: int = 0


@dataclass
class QuarterTotals:
    income_cents: int = 0
    outcome_cents: int = 0
    savings_cents: int = 0


def bucket_month(
    ref: MonthRef,
    entries: Iterable[LedgerEntry],
    *,
    balance_cents: int,
    savings_category_id: Optional[str],
) -> MonthBucket:
    bucket = MonthBucket(month=ref.month, year=ref.year, balance_cents=balance_cents)
    for entry in entries:
        kind = classify(entry.amount_cents, entry.category_id, savings_category_id)
        if kind is EntryKind.income:
            bucket.income_cents += entry.amount_cents
        elif kind is EntryKind.savings:
            bucket.savings_cents += -entry.amount_cents
        else:
            bucket.outcome_cents += -entry.amount_cents
    return bucket


def quarter_totals(buckets: Iterable[MonthBucket]) -> QuarterTotals:
    totals = QuarterTotals()
    for bucket in buckets:
        totals.income_cents += bucket.income_cents
        totals.outcome_cents += bucket.outcome_cents
        totals.savings_cents += bucket.savings_cents
    return totals


@dataclass
class MonthTotals:
    income_cents: int = 0
    outcome_cents: int = 0
    savings_cents: int = 0
    # non-savings outgoings per category id (or UNCATEGORIZED), insertion ordered
    by_category: dict[str, int] = field(default_factory=dict)

    @property
    def remaining_cents(self) -> int:
        return self.income_cents - self.outcome_cents - self.savings_cents


def month_totals(
    entries: Iterable[LedgerEntry], savings_category_id: Optional[str]
) -> MonthTotals:
    totals = MonthTotals()
    for entry in entries:
        kind = classify(entry.amount_cents, entry.category_id, savings_category_id)
        if kind is EntryKind.income:
            totals.income_cents += entry.amount_cents
            continue
        magnitude = -entry.amount_cents
        if kind is EntryKind.savings:
            totals.savings_cents += magnitude
            continue
        totals.outcome_cents += magnitude
        key = entry.category_id or UNCATEGORIZED
        totals.by_category[key] = totals.by_category.get(key, 0) + magnitude
    return totals


def baseline_savings(
    entries: Iterable[LedgerEntry], savings_category_id: Optional[str]
) -> int:
    """Savings pot built up by transfers in `entries` (typically everything
    before the reporting month). Refunds out of savings are not subtracted."""
    if savings_category_id is None:
        return 0
    return sum(
        -entry.amount_cents
        for entry in entries
        if entry.category_id == savings_category_id and entry.amount_cents < 0
    )


@dataclass(frozen=True)
class DailyPoint:
    day: int
    cumulative_income: int
    cumulative_outcome: int
    cumulative_savings_adjusted: int


@dataclass
class _DayBucket:
    inc: int = 0
    out: int = 0
    sav: int = 0


def daily_series(
    ref: MonthRef,
    entries: Iterable[LedgerEntry],
    *,
    savings_category_id: Optional[str],
    baseline_savings_cents: int = 0,
) -> list[DailyPoint]:
    """One cumulative point per calendar day of `ref`.

    The savings line starts at the baseline and is reduced by however much
    cumulative outcome exceeds cumulative income so far, floored at zero.
    """
    days = [_DayBucket() for _ in range(ref.days)]
    start, end = ref.start, ref.end
    for entry in entries:
        if not start <= entry.occurred_at < end:
            continue
        bucket = days[entry.occurred_at.day - 1]
        kind = classify(entry.amount_cents, entry.category_id, savings_category_id)
        if kind is EntryKind.income:
            bucket.inc += entry.amount_cents
        elif kind is EntryKind.savings:
            bucket.sav += -entry.amount_cents
        else:
            bucket.out += -entry.amount_cents

    points: list[DailyPoint] = []
    inc_run = 0
    out_run = 0
    sav_run = baseline_savings_cents
    for index, bucket in enumerate(days):
        inc_run += bucket.inc
        out_run += bucket.out
        sav_run += bucket.sav
        deficit = max(0, out_run - inc_run)
        points.append(
            DailyPoint(
                day=index + 1,
                cumulative_income=inc_run,
                cumulative_outcome=out_run,
                cumulative_savings_adjusted=max(0, sav_run - deficit),
            )
        )
    return points
