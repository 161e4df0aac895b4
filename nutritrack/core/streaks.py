"""Streak Calculations - Consecutive days with at least one logged meal.

All functions are pure: same input always produces same output, no side effects.
"""

from datetime import date, timedelta
from typing import Callable, Iterable

from .models import AnalysisRecord


# Bounds the backward scan on very old accounts
MAX_STREAK_DAYS = 365


def activity_checker(records: Iterable[AnalysisRecord]) -> Callable[[date], bool]:
    """Build a "has activity" predicate from a record history."""
    active_days = {r.day for r in records}
    return active_days.__contains__


def current_streak(has_activity: Callable[[date], bool], reference_date: date) -> int:
    """Count consecutive active days ending at the reference date.

    The scan is anchored at the reference date: if that day has no activity
    the streak is 0, whatever happened before it.

    Args:
        has_activity: Predicate telling whether a day has any logged record
        reference_date: Day to start scanning backward from (usually today)

    Returns:
        Streak length in days, between 0 and MAX_STREAK_DAYS
    """
    streak = 0
    day = reference_date

    while streak < MAX_STREAK_DAYS and has_activity(day):
        streak += 1
        day -= timedelta(days=1)

    return streak


def longest_streak(records: Iterable[AnalysisRecord]) -> int:
    """Longest run of consecutive active days anywhere in the history."""
    days = sorted({r.day for r in records})
    best = 0
    run = 0
    previous = None

    for day in days:
        if previous is not None and day - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day

    return min(best, MAX_STREAK_DAYS)
