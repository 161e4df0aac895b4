"""Date Ranges - Calendar-aware windows resolved from "now".

Weeks are ISO weeks (Monday start). Every range is inclusive at both ends;
day-bounded presets end at the last microsecond of their final day.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator


def to_local_naive(value: datetime) -> datetime:
    """Convert an offset-aware instant to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class DateRange(BaseModel):
    """Inclusive [start, end] window of instants."""

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _naive_bounds(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("DateRange start must not be after end")
        return self

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end

    @property
    def days(self) -> int:
        """Number of calendar days touched by the range."""
        return (self.end.date() - self.start.date()).days + 1

    @classmethod
    def for_days(cls, first: date, last: date) -> "DateRange":
        """Range covering whole calendar days first..last."""
        return cls(start=datetime.combine(first, time.min), end=datetime.combine(last, time.max))


class DateRangePreset(str, Enum):
    """Named ranges offered by the history and export screens."""

    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this_week"
    LAST_WEEK = "last_week"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    ALL_TIME = "all_time"
    CUSTOM = "custom"


def start_of_week(day: date) -> date:
    """ISO week start (Monday) for the given day."""
    return day - timedelta(days=day.weekday())


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    first_of_next = (day.replace(day=28) + timedelta(days=4)).replace(day=1)
    return first_of_next - timedelta(days=1)


def days_in_month(day: date) -> int:
    return end_of_month(day).day


def resolve_range(
    preset: DateRangePreset,
    now: Optional[datetime] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> DateRange:
    """Resolve a preset to concrete instants.

    Args:
        preset: Which range to build
        now: Reference instant (defaults to the current local time)
        start: Start of a custom range
        end: End of a custom range

    Returns:
        The resolved DateRange

    Raises:
        ValueError: If a custom range is missing a bound or is inverted
    """
    if now is None:
        now = datetime.now()
    today = now.date()

    if preset == DateRangePreset.TODAY:
        return DateRange.for_days(today, today)
    if preset == DateRangePreset.YESTERDAY:
        yesterday = today - timedelta(days=1)
        return DateRange.for_days(yesterday, yesterday)
    if preset == DateRangePreset.THIS_WEEK:
        monday = start_of_week(today)
        return DateRange.for_days(monday, monday + timedelta(days=6))
    if preset == DateRangePreset.LAST_WEEK:
        monday = start_of_week(today) - timedelta(days=7)
        return DateRange.for_days(monday, monday + timedelta(days=6))
    if preset == DateRangePreset.THIS_MONTH:
        return DateRange.for_days(start_of_month(today), end_of_month(today))
    if preset == DateRangePreset.LAST_MONTH:
        last_day = start_of_month(today) - timedelta(days=1)
        return DateRange.for_days(start_of_month(last_day), last_day)
    if preset == DateRangePreset.LAST_30_DAYS:
        return DateRange(start=now - timedelta(days=30), end=now)
    if preset == DateRangePreset.LAST_90_DAYS:
        return DateRange(start=now - timedelta(days=90), end=now)
    if preset == DateRangePreset.ALL_TIME:
        return DateRange(start=datetime.min, end=now)

    if start is None or end is None:
        raise ValueError("Custom date range requires both start and end")
    return DateRange(start=start, end=end)
