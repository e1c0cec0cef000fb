from datetime import date, datetime

import pytest

from periods import MonthRef, month_of, resolve_month, trailing_months


def test_month_end_is_first_instant_of_next_month():
    assert MonthRef(2025, 3).end == datetime(2025, 4, 1)
    assert MonthRef(2025, 12).end == datetime(2026, 1, 1)


def test_days_in_month_handles_leap_years():
    assert MonthRef(2024, 2).days == 29
    assert MonthRef(2025, 2).days == 28
    assert MonthRef(2025, 12).days == 31


def test_trailing_months_wraps_year_boundary():
    window = trailing_months(MonthRef(2025, 1), 3)
    assert window == [MonthRef(2024, 11), MonthRef(2024, 12), MonthRef(2025, 1)]


def test_trailing_months_within_year():
    window = trailing_months(month_of(date(2025, 6, 18)))
    assert [m.slug for m in window] == ["2025-04", "2025-05", "2025-06"]


def test_resolve_month_defaults_to_today():
    assert resolve_month(None, today=date(2025, 7, 31)) == MonthRef(2025, 7)


def test_resolve_month_parses_slug():
    assert resolve_month("2024-02") == MonthRef(2024, 2)


@pytest.mark.parametrize("raw", ["2024-13", "2024-00", "abcd-ef", "1900-01", "9999-12"])
def test_resolve_month_rejects_invalid(raw):
    with pytest.raises(ValueError):
        resolve_month(raw)
