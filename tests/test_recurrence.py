from datetime import date, datetime

from models import RecurringTransaction
from periods import MonthRef
from recurrence import (
    as_ledger_entry,
    occurs_in_month,
    occurrences_for_month,
    scheduled_day,
)


def _rule(next_occurrence: date, interval: int = 1, day=None, rule_id="r1"):
    return RecurringTransaction(
        id=rule_id,
        account_id="acc",
        amount_cents=-1_000,
        description="Test",
        interval_months=interval,
        day_of_month=day,
        next_occurrence=next_occurrence,
    )


def test_occurs_in_month_of_next_occurrence():
    assert occurs_in_month(_rule(date(2025, 5, 9)), MonthRef(2025, 5))


def test_does_not_occur_before_next_occurrence():
    assert not occurs_in_month(_rule(date(2025, 5, 9)), MonthRef(2025, 4))


def test_interval_months_across_year_boundary():
    rule = _rule(date(2024, 11, 1), interval=2)
    assert not occurs_in_month(rule, MonthRef(2024, 12))
    assert occurs_in_month(rule, MonthRef(2025, 1))
    assert occurs_in_month(rule, MonthRef(2025, 3))


def test_zero_interval_treated_as_monthly():
    rule = _rule(date(2025, 1, 1), interval=0)
    assert occurs_in_month(rule, MonthRef(2025, 7))


def test_scheduled_day_snaps_to_month_end():
    assert scheduled_day(_rule(date(2025, 1, 31), day=31), MonthRef(2025, 2)) == 28
    assert scheduled_day(_rule(date(2025, 1, 31), day=None), MonthRef(2025, 2)) == 1


def test_skipped_rules_are_dropped():
    keep = _rule(date(2025, 1, 1), rule_id="keep")
    skip = _rule(date(2025, 1, 1), rule_id="skip")
    active = occurrences_for_month([keep, skip], MonthRef(2025, 3), {"skip"})
    assert active == [keep]


def test_as_ledger_entry_places_rule_on_scheduled_day():
    entry = as_ledger_entry(_rule(date(2024, 1, 30), day=30), MonthRef(2024, 2))
    assert entry.occurred_at == datetime(2024, 2, 29, 12, 0)
    assert entry.amount_cents == -1_000
