"""Progress Aggregation - Pure functions folding records into rollups.

All functions are pure: same input always produces same output, no side effects.
A DailyProgress is always derived fresh from the day's records and the goals in
effect; it is never patched incrementally.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from .dates import days_in_month, end_of_month, start_of_month, start_of_week
from .models import (
    AnalysisRecord,
    DailyProgress,
    MonthlyProgress,
    NutritionGoals,
    WeeklyProgress,
)


DAYS_PER_WEEK = 7
MAX_WEEKS_PER_MONTH = 5


def calculate_totals(records: Iterable[AnalysisRecord]) -> tuple[int, float, float, float]:
    """Calculate total macros from a list of analysis records.

    Args:
        records: Records to sum

    Returns:
        Tuple of (calories, protein, fat, carbs)
    """
    records = list(records)
    total_calories = sum(r.calories for r in records)
    total_protein = sum(r.protein for r in records)
    total_fat = sum(r.fat for r in records)
    total_carbs = sum(r.carbs for r in records)

    return total_calories, total_protein, total_fat, total_carbs


def progress_ratio(total: float, goal: float) -> float:
    """Raw total / goal ratio, 0 when the goal is 0. Not clamped."""
    if goal <= 0:
        return 0.0
    return total / goal


def _completion_rate(
    totals: tuple[int, float, float, float], goals: Optional[NutritionGoals], days: int
) -> float:
    """Mean of the four macro ratios against `days` worth of goals."""
    if goals is None:
        return 0.0
    calories, protein, fat, carbs = totals
    ratios = (
        progress_ratio(calories, goals.daily_calorie_goal * days),
        progress_ratio(protein, goals.protein_goal * days),
        progress_ratio(fat, goals.fat_goal * days),
        progress_ratio(carbs, goals.carbs_goal * days),
    )
    return sum(ratios) / len(ratios)


def aggregate_day(
    records: Iterable[AnalysisRecord],
    goals: Optional[NutritionGoals],
    day: Optional[date] = None,
    now: Optional[datetime] = None,
) -> DailyProgress:
    """Build the DailyProgress for one calendar day.

    Records outside the day are ignored, so the full history can be passed.

    Args:
        records: Analysis records (any days)
        goals: Active goals, or None for zero ratios
        day: Target calendar day (defaults to today)
        now: Timestamp to stamp as last_updated

    Returns:
        DailyProgress with totals and unclamped ratios
    """
    if now is None:
        now = datetime.now()
    if day is None:
        day = now.date()

    day_records = [r for r in records if r.day == day]
    calories, protein, fat, carbs = calculate_totals(day_records)

    ratios = {}
    if goals is not None:
        ratios = dict(
            calorie_progress=progress_ratio(calories, goals.daily_calorie_goal),
            protein_progress=progress_ratio(protein, goals.protein_goal),
            fat_progress=progress_ratio(fat, goals.fat_goal),
            carbs_progress=progress_ratio(carbs, goals.carbs_goal),
        )

    return DailyProgress(
        date=day,
        record_ids=[r.id for r in day_records],
        total_calories=calories,
        total_protein=round(protein, 1),
        total_fat=round(fat, 1),
        total_carbs=round(carbs, 1),
        last_updated=now,
        **ratios,
    )


def aggregate_week(
    daily_progresses: list[DailyProgress],
    goals: Optional[NutritionGoals],
    week_start: Optional[date] = None,
) -> WeeklyProgress:
    """Roll up to seven daily progresses into a WeeklyProgress.

    Average calories always divide by 7, even when days are missing.

    Args:
        daily_progresses: Daily rollups for the week (may be partial)
        goals: Active goals for the completion rate
        week_start: First day of the week (defaults to the earliest given day)

    Returns:
        WeeklyProgress with totals, average and goal completion rate
    """
    days = sorted(daily_progresses, key=lambda d: d.date)
    if week_start is None:
        week_start = days[0].date if days else start_of_week(date.today())

    totals = (
        sum(d.total_calories for d in days),
        sum(d.total_protein for d in days),
        sum(d.total_fat for d in days),
        sum(d.total_carbs for d in days),
    )

    return WeeklyProgress(
        week_start=week_start,
        daily_progresses=days,
        total_calories=totals[0],
        total_protein=round(totals[1], 1),
        total_fat=round(totals[2], 1),
        total_carbs=round(totals[3], 1),
        average_calories=round(totals[0] / DAYS_PER_WEEK, 1),
        goal_completion_rate=_completion_rate(totals, goals, DAYS_PER_WEEK),
    )


def aggregate_month(
    weekly_progresses: list[WeeklyProgress],
    goals: Optional[NutritionGoals],
    month_start: date,
    streak: int = 0,
) -> MonthlyProgress:
    """Roll up week windows into a MonthlyProgress.

    Args:
        weekly_progresses: Week windows starting at the month's first day
        goals: Active goals for the completion rate
        month_start: Any day in the month (normalized to the 1st)
        streak: Current streak to report alongside the rollup

    Returns:
        MonthlyProgress averaged over the month's actual day count
    """
    month_start = start_of_month(month_start)
    month_days = days_in_month(month_start)

    totals = (
        sum(w.total_calories for w in weekly_progresses),
        sum(w.total_protein for w in weekly_progresses),
        sum(w.total_fat for w in weekly_progresses),
        sum(w.total_carbs for w in weekly_progresses),
    )

    return MonthlyProgress(
        month_start=month_start,
        weekly_progresses=list(weekly_progresses),
        total_calories=totals[0],
        total_protein=round(totals[1], 1),
        total_fat=round(totals[2], 1),
        total_carbs=round(totals[3], 1),
        average_calories=round(totals[0] / month_days, 1),
        goal_completion_rate=_completion_rate(totals, goals, month_days),
        streak=streak,
    )


def month_windows(month_start: date, until: Optional[date] = None) -> list[tuple[date, date]]:
    """Week windows of a month: 7-day spans from the 1st, clipped to the month.

    Windows starting after `until` are dropped so a current month only
    covers weeks that have begun.
    """
    month_start = start_of_month(month_start)
    month_end = end_of_month(month_start)
    windows = []

    for offset in range(MAX_WEEKS_PER_MONTH):
        window_start = month_start + timedelta(days=offset * DAYS_PER_WEEK)
        if window_start > month_end:
            break
        if until is not None and window_start > until:
            break
        window_end = min(window_start + timedelta(days=DAYS_PER_WEEK - 1), month_end)
        windows.append((window_start, window_end))

    return windows


def week_start_for(day: date) -> date:
    """ISO Monday of the week containing `day`."""
    return start_of_week(day)


def _days(first: date, last: date) -> list[date]:
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]


def build_week(
    records: list[AnalysisRecord],
    goals: Optional[NutritionGoals],
    day: date,
    now: Optional[datetime] = None,
) -> WeeklyProgress:
    """WeeklyProgress for the ISO week (Monday-Sunday) containing `day`."""
    week_start = week_start_for(day)
    dailies = [
        aggregate_day(records, goals, d, now)
        for d in _days(week_start, week_start + timedelta(days=DAYS_PER_WEEK - 1))
    ]
    return aggregate_week(dailies, goals, week_start)


def build_month(
    records: list[AnalysisRecord],
    goals: Optional[NutritionGoals],
    day: date,
    streak: int = 0,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> MonthlyProgress:
    """MonthlyProgress for the calendar month containing `day`.

    Args:
        records: Analysis records (any days)
        goals: Active goals
        day: Any day in the target month
        streak: Current streak to report
        today: Windows starting after this day are skipped
        now: Timestamp for the daily rollups
    """
    month_start = start_of_month(day)
    weeks = []
    for window_start, window_end in month_windows(month_start, until=today):
        dailies = [aggregate_day(records, goals, d, now) for d in _days(window_start, window_end)]
        weeks.append(aggregate_week(dailies, goals, window_start))

    return aggregate_month(weeks, goals, month_start, streak)
