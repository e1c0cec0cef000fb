from datetime import datetime, time
from typing import Iterable

from analytics import LedgerEntry
from models import RecurringTransaction
from periods import MonthRef


def months_between(earlier: MonthRef, later: MonthRef) -> int:
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def occurs_in_month(rule: RecurringTransaction, ref: MonthRef) -> bool:
    nxt = MonthRef(rule.next_occurrence.year, rule.next_occurrence.month)
    if nxt == ref:
        return True
    interval = rule.interval_months or 1
    since = months_between(nxt, ref)
    return since >= 0 and since % interval == 0


def scheduled_day(rule: RecurringTransaction, ref: MonthRef) -> int:
    return min(rule.day_of_month or 1, ref.days)


def occurrences_for_month(
    rules: Iterable[RecurringTransaction],
    ref: MonthRef,
    skipped_ids: set[str],
) -> list[RecurringTransaction]:
    return [
        rule
        for rule in rules
        if occurs_in_month(rule, ref) and rule.id not in skipped_ids
    ]


def as_ledger_entry(rule: RecurringTransaction, ref: MonthRef) -> LedgerEntry:
    day = scheduled_day(rule, ref)
    return LedgerEntry(
        amount_cents=rule.amount_cents,
        occurred_at=datetime.combine(
            ref.start.date().replace(day=day), time(12, 0)
        ),
        category_id=rule.category_id,
    )
