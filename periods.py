from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

from config import get_settings


@dataclass(frozen=True)
class MonthRef:
    year: int
    month: int

    @property
    def slug(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month, 1)

    @property
    def end(self) -> datetime:
        """First instant of the following month (exclusive bound)."""
        nxt = self.shift(1)
        return datetime(nxt.year, nxt.month, 1)

    @property
    def days(self) -> int:
        return (self.end - self.start).days

    def shift(self, count: int) -> "MonthRef":
        month_index = (self.year * 12) + (self.month - 1) + count
        return MonthRef(month_index // 12, (month_index % 12) + 1)


def local_today() -> date:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).date()


def month_of(d: date) -> MonthRef:
    return MonthRef(d.year, d.month)


def trailing_months(ref: MonthRef, count: int = 3) -> list[MonthRef]:
    """`count` calendar months ending with `ref`, oldest first."""
    return [ref.shift(-i) for i in range(count - 1, -1, -1)]


def resolve_month(month: Optional[str], *, today: Optional[date] = None) -> MonthRef:
    if not month:
        return month_of(today or local_today())
    try:
        year_part, month_part = month.split("-", 1)
        ref = MonthRef(int(year_part), int(month_part))
    except ValueError as exc:
        raise ValueError("Month must be formatted as YYYY-MM") from exc
    if not 1 <= ref.month <= 12:
        raise ValueError("Month must be between 01 and 12")
    if not 1970 <= ref.year <= 9998:
        raise ValueError("Year must be between 1970 and 9998")
    return ref
