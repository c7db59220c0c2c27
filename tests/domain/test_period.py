"""Tests for lunchdash.domain.period date range calculations."""

from datetime import date, datetime, timedelta, timezone

import pytest

from lunchdash.domain.period import (
    Period,
    PeriodType,
    advance,
    compute_period,
    retreat,
    shift_anchor,
)


class TestPeriodType:
    """Tests for PeriodType parsing and toggling."""

    def test_parse_known_values(self) -> None:
        """Should map the two known names."""
        assert PeriodType.parse("month") is PeriodType.MONTH
        assert PeriodType.parse("year") is PeriodType.YEAR

    def test_parse_unknown_falls_back_to_month(self) -> None:
        """Should treat unrecognised input as month."""
        assert PeriodType.parse("fortnight") is PeriodType.MONTH
        assert PeriodType.parse("") is PeriodType.MONTH

    def test_toggle(self) -> None:
        """Should switch between month and year."""
        assert PeriodType.MONTH.toggle() is PeriodType.YEAR
        assert PeriodType.YEAR.toggle() is PeriodType.MONTH


class TestComputePeriod:
    """Tests for compute_period."""

    def test_month_period(self) -> None:
        """Should cover the whole calendar month."""
        period = compute_period(datetime(2025, 1, 15, 10, 30), PeriodType.MONTH)
        assert period.start == datetime(2025, 1, 1)
        assert period.end == datetime(2025, 1, 31, 23, 59, 59)

    def test_leap_february(self) -> None:
        """Should end on the 29th in a leap year."""
        period = compute_period(datetime(2024, 2, 10), "month")
        assert period.end_date() == "2024-02-29"

    def test_december_rolls_into_next_year(self) -> None:
        """Should end on 31 December without overflowing the month."""
        period = compute_period(datetime(2024, 12, 5), PeriodType.MONTH)
        assert period.start_date() == "2024-12-01"
        assert period.end == datetime(2024, 12, 31, 23, 59, 59)

    def test_year_period(self) -> None:
        """Should cover the whole calendar year."""
        period = compute_period(datetime(2025, 6, 15), PeriodType.YEAR)
        assert period.start == datetime(2025, 1, 1)
        assert period.end == datetime(2025, 12, 31, 23, 59, 59)

    def test_unknown_kind_behaves_as_month(self) -> None:
        """Should compute a month period for an unknown kind."""
        anchor = datetime(2025, 3, 9)
        assert compute_period(anchor, "weekly") == compute_period(anchor, PeriodType.MONTH)

    def test_end_is_one_second_before_next_start(self) -> None:
        """Should leave no gap between consecutive periods."""
        anchor = datetime(2025, 4, 20)
        current = compute_period(anchor, PeriodType.MONTH)
        following = compute_period(advance(anchor, PeriodType.MONTH), PeriodType.MONTH)
        assert following.start - current.end == timedelta(seconds=1)

    def test_preserves_timezone(self) -> None:
        """Should keep the anchor's tzinfo on both bounds."""
        anchor = datetime(2025, 5, 5, tzinfo=timezone.utc)
        period = compute_period(anchor, PeriodType.MONTH)
        assert period.start.tzinfo is timezone.utc
        assert period.end.tzinfo is timezone.utc


class TestPeriodFormatting:
    """Tests for Period labels and containment."""

    def test_month_label(self) -> None:
        """Should show month name and year."""
        period = compute_period(datetime(2025, 1, 15), PeriodType.MONTH)
        assert period.label(PeriodType.MONTH) == "January 2025"

    def test_year_label(self) -> None:
        """Should show just the year."""
        period = compute_period(datetime(2025, 1, 15), PeriodType.YEAR)
        assert period.label("year") == "2025"

    def test_str(self) -> None:
        """Should render both ISO dates."""
        period = Period(start=datetime(2025, 1, 1), end=datetime(2025, 1, 31, 23, 59, 59))
        assert str(period) == "2025-01-01 - 2025-01-31"

    def test_contains(self) -> None:
        """Should include both boundary days."""
        period = compute_period(datetime(2025, 1, 15), PeriodType.MONTH)
        assert period.contains(date(2025, 1, 1))
        assert period.contains(date(2025, 1, 31))
        assert not period.contains(date(2025, 2, 1))


class TestShiftAnchor:
    """Tests for anchor movement."""

    def test_advance_month(self) -> None:
        """Should move to the next month."""
        assert advance(datetime(2025, 1, 15), PeriodType.MONTH) == datetime(2025, 2, 15)

    def test_retreat_month_across_year(self) -> None:
        """Should move from January back to December."""
        assert retreat(datetime(2025, 1, 15), PeriodType.MONTH) == datetime(2024, 12, 15)

    def test_clamps_day_of_month(self) -> None:
        """Should clamp 31 January to the end of February."""
        assert advance(datetime(2025, 1, 31), PeriodType.MONTH) == datetime(2025, 2, 28)
        assert advance(datetime(2024, 1, 31), PeriodType.MONTH) == datetime(2024, 2, 29)

    def test_year_steps(self) -> None:
        """Should move by whole years."""
        assert advance(datetime(2024, 2, 29), PeriodType.YEAR) == datetime(2025, 2, 28)
        assert shift_anchor(datetime(2025, 6, 1), PeriodType.YEAR, -3) == datetime(2022, 6, 1)

    def test_advance_then_retreat_returns_period(self) -> None:
        """Should land in the original period after a round trip."""
        anchor = datetime(2025, 3, 31)
        back = retreat(advance(anchor, PeriodType.MONTH), PeriodType.MONTH)
        assert compute_period(back, PeriodType.MONTH) == compute_period(anchor, PeriodType.MONTH)

    @pytest.mark.parametrize("kind", [PeriodType.MONTH, PeriodType.YEAR])
    @pytest.mark.parametrize("anchor", [datetime(2024, 12, 15), datetime(2025, 1, 15), datetime(2024, 12, 15, 9, 30)])
    def test_round_trip_returns_anchor(self, kind: PeriodType, anchor: datetime) -> None:
        """Should restore the exact anchor across the year boundary, both ways."""
        assert retreat(advance(anchor, kind), kind) == anchor
        assert advance(retreat(anchor, kind), kind) == anchor

    def test_december_to_january(self) -> None:
        """Should cross into the next year and back."""
        january = advance(datetime(2024, 12, 15), PeriodType.MONTH)
        assert january == datetime(2025, 1, 15)
        assert compute_period(january, PeriodType.MONTH).start_date() == "2025-01-01"
        assert retreat(january, PeriodType.MONTH) == datetime(2024, 12, 15)
