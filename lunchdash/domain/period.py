"""Reporting periods.

Pure functions for date range calculations and formatting. A period always
runs from the first instant of a calendar month or year through the last
second before the next one starts.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum


class PeriodType(str, Enum):
    MONTH = "month"
    YEAR = "year"

    @classmethod
    def parse(cls, value: str) -> "PeriodType":
        """Map a period name to a type; anything unknown means month."""
        try:
            return cls(value)
        except ValueError:
            return cls.MONTH

    def toggle(self) -> "PeriodType":
        return PeriodType.YEAR if self is PeriodType.MONTH else PeriodType.MONTH


@dataclass(frozen=True)
class Period:
    """Inclusive date range, replaced wholesale on every period change."""

    start: datetime
    end: datetime

    def start_date(self) -> str:
        return self.start.strftime("%Y-%m-%d")

    def end_date(self) -> str:
        return self.end.strftime("%Y-%m-%d")

    def contains(self, day: date) -> bool:
        return self.start.date() <= day <= self.end.date()

    def label(self, kind: "PeriodType | str") -> str:
        """Human-readable label, e.g. "January 2025" or "2025"."""
        if _coerce(kind) is PeriodType.YEAR:
            return self.start.strftime("%Y")
        return self.start.strftime("%B %Y")

    def __str__(self) -> str:
        return f"{self.start_date()} - {self.end_date()}"


def _coerce(kind: "PeriodType | str") -> PeriodType:
    return kind if isinstance(kind, PeriodType) else PeriodType.parse(kind)


def _first_of_month(year: int, month: int, anchor: datetime) -> datetime:
    return datetime(year, month, 1, tzinfo=anchor.tzinfo)


def compute_period(anchor: datetime, kind: PeriodType | str) -> Period:
    """Calculate the period containing an anchor date.

    Args:
        anchor: Any instant inside the wanted month or year.
        kind: Period type; unknown values fall back to month.

    Returns:
        Period whose end is one second before the next unit's first instant,
        which handles month lengths and year rollover without special cases.
    """
    kind = _coerce(kind)

    if kind is PeriodType.YEAR:
        start = _first_of_month(anchor.year, 1, anchor)
        next_start = _first_of_month(anchor.year + 1, 1, anchor)
    else:
        start = _first_of_month(anchor.year, anchor.month, anchor)
        if anchor.month == 12:
            next_start = _first_of_month(anchor.year + 1, 1, anchor)
        else:
            next_start = _first_of_month(anchor.year, anchor.month + 1, anchor)

    return Period(start=start, end=next_start - timedelta(seconds=1))


def shift_anchor(anchor: datetime, kind: PeriodType | str, steps: int) -> datetime:
    """Move an anchor by whole calendar months or years.

    The day of month is clamped to the target month's length, so 31 January
    plus one month is 28 (or 29) February.
    """
    kind = _coerce(kind)
    months = steps * 12 if kind is PeriodType.YEAR else steps

    index = anchor.year * 12 + (anchor.month - 1) + months
    year, month = divmod(index, 12)
    month += 1

    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return anchor.replace(year=year, month=month, day=day)


def advance(anchor: datetime, kind: PeriodType | str) -> datetime:
    return shift_anchor(anchor, kind, 1)


def retreat(anchor: datetime, kind: PeriodType | str) -> datetime:
    return shift_anchor(anchor, kind, -1)
