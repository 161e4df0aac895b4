"""Unit tests for date ranges - pure functions, no mocks needed."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from nutritrack.core.dates import (
    DateRange,
    DateRangePreset,
    days_in_month,
    end_of_month,
    resolve_range,
    start_of_week,
)


# A Wednesday
NOW = datetime(2026, 10, 21, 15, 0)


def day_bounds(first: date, last: date) -> tuple[datetime, datetime]:
    return datetime.combine(first, time.min), datetime.combine(last, time.max)


class TestDateRange:
    """Tests for DateRange."""

    def test_contains_inclusive(self):
        """Both ends are inside the range."""
        window = DateRange(start=datetime(2026, 10, 1), end=datetime(2026, 10, 2))
        assert window.contains(datetime(2026, 10, 1))
        assert window.contains(datetime(2026, 10, 2))
        assert not window.contains(datetime(2026, 10, 2, 0, 0, 1))

    def test_inverted_rejected(self):
        """Start after end is invalid."""
        with pytest.raises(ValueError):
            DateRange(start=datetime(2026, 10, 2), end=datetime(2026, 10, 1))

    def test_offset_bounds_are_local(self):
        """Offset bounds become naive local time and compare with naive instants."""
        start = datetime(2026, 10, 1, tzinfo=timezone.utc)
        window = DateRange(start=start, end=datetime(2026, 12, 1, tzinfo=timezone.utc))
        assert window.start.tzinfo is None
        assert window.start == start.astimezone().replace(tzinfo=None)
        assert window.contains(datetime(2026, 11, 1))

    def test_days(self):
        """Days counts the calendar days touched."""
        assert DateRange.for_days(date(2026, 10, 1), date(2026, 10, 31)).days == 31


class TestCalendarHelpers:
    """Tests for week and month helpers."""

    def test_start_of_week_is_monday(self):
        """Weeks start on Monday."""
        assert start_of_week(date(2026, 10, 21)) == date(2026, 10, 19)
        assert start_of_week(date(2026, 10, 25)) == date(2026, 10, 19)

    def test_end_of_month(self):
        """Month ends account for length and leap years."""
        assert end_of_month(date(2026, 10, 5)) == date(2026, 10, 31)
        assert end_of_month(date(2026, 12, 31)) == date(2026, 12, 31)
        assert days_in_month(date(2026, 2, 1)) == 28
        assert days_in_month(date(2028, 2, 1)) == 29


class TestResolveRange:
    """Tests for resolve_range."""

    def test_today(self):
        """Today covers the whole current day."""
        window = resolve_range(DateRangePreset.TODAY, NOW)
        assert (window.start, window.end) == day_bounds(date(2026, 10, 21), date(2026, 10, 21))

    def test_yesterday(self):
        """Yesterday covers the whole previous day."""
        window = resolve_range(DateRangePreset.YESTERDAY, NOW)
        assert (window.start, window.end) == day_bounds(date(2026, 10, 20), date(2026, 10, 20))

    def test_this_week(self):
        """This week runs Monday to Sunday."""
        window = resolve_range(DateRangePreset.THIS_WEEK, NOW)
        assert (window.start, window.end) == day_bounds(date(2026, 10, 19), date(2026, 10, 25))

    def test_last_week(self):
        """Last week is the previous Monday to Sunday."""
        window = resolve_range(DateRangePreset.LAST_WEEK, NOW)
        assert (window.start, window.end) == day_bounds(date(2026, 10, 12), date(2026, 10, 18))

    def test_this_month(self):
        """This month covers the full calendar month."""
        window = resolve_range(DateRangePreset.THIS_MONTH, NOW)
        assert (window.start, window.end) == day_bounds(date(2026, 10, 1), date(2026, 10, 31))

    def test_last_month_across_year(self):
        """Last month in January is December of the previous year."""
        window = resolve_range(DateRangePreset.LAST_MONTH, datetime(2026, 1, 15, 9, 0))
        assert (window.start, window.end) == day_bounds(date(2025, 12, 1), date(2025, 12, 31))

    def test_last_30_days(self):
        """Last 30 days ends now."""
        window = resolve_range(DateRangePreset.LAST_30_DAYS, NOW)
        assert window.start == NOW - timedelta(days=30)
        assert window.end == NOW

    def test_all_time(self):
        """All time includes any past record."""
        window = resolve_range(DateRangePreset.ALL_TIME, NOW)
        assert window.contains(datetime(2000, 1, 1))
        assert window.end == NOW

    def test_custom(self):
        """Custom ranges use the given bounds."""
        start, end = datetime(2026, 9, 1), datetime(2026, 9, 15)
        window = resolve_range(DateRangePreset.CUSTOM, NOW, start, end)
        assert (window.start, window.end) == (start, end)

    def test_custom_missing_bound(self):
        """Custom ranges need both bounds."""
        with pytest.raises(ValueError):
            resolve_range(DateRangePreset.CUSTOM, NOW, start=datetime(2026, 9, 1))

    def test_deterministic(self):
        """The same preset and now resolve identically."""
        for preset in DateRangePreset:
            if preset == DateRangePreset.CUSTOM:
                continue
            assert resolve_range(preset, NOW) == resolve_range(preset, NOW)
