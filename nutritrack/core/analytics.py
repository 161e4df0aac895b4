"""Analytics - Aggregate statistics over a date range of analysis records.

All functions are pure: same input always produces same output, no side effects.
"""

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Optional

from .dates import DateRange
from .models import (
    AnalysisRecord,
    AnalyticsData,
    CalorieDataPoint,
    HealthScoreDistribution,
    NutritionBreakdown,
    WeeklyStats,
)


TOP_FOODS_LIMIT = 5
TREND_DAYS = 30
WEEK = timedelta(days=7)


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def most_frequent_foods(records: list[AnalysisRecord], limit: int = TOP_FOODS_LIMIT) -> list[str]:
    """Most logged food names, grouped case-insensitively.

    Ties keep first-seen order; each group is reported with the spelling it
    was first logged under.
    """
    counts: Counter[str] = Counter()
    spelling: dict[str, str] = {}

    for record in records:
        key = record.item_name.strip().lower()
        spelling.setdefault(key, record.item_name.strip())
        counts[key] += 1

    # Counter.most_common is stable for equal counts (insertion order)
    return [spelling[key] for key, _ in counts.most_common(limit)]


def calorie_trend(
    records: list[AnalysisRecord], now: datetime, days: int = TREND_DAYS
) -> list[CalorieDataPoint]:
    """Per-day calorie sums over the last `days` days, oldest first.

    Days without records are omitted rather than zero-filled.
    """
    cutoff = now - timedelta(days=days)
    per_day: dict[date, int] = {}

    for record in records:
        if cutoff <= record.timestamp <= now:
            per_day[record.day] = per_day.get(record.day, 0) + record.calories

    return [CalorieDataPoint(date=d, calories=per_day[d]) for d in sorted(per_day)]


def macro_breakdown(protein: float, fat: float, carbs: float) -> NutritionBreakdown:
    """Percentages of combined macro mass (all 0 when there is none)."""
    total = protein + fat + carbs
    if total <= 0:
        return NutritionBreakdown()

    return NutritionBreakdown(
        protein_percentage=protein / total * 100,
        fat_percentage=fat / total * 100,
        carbs_percentage=carbs / total * 100,
    )


def weekly_stats(records: list[AnalysisRecord], now: datetime) -> WeeklyStats:
    """Trailing seven days (now - 7d, now] against the seven days before.

    The health score change is the difference of average health score values
    between the two windows, or 0 if either window has no records.
    """
    this_week = [r for r in records if now - WEEK < r.timestamp <= now]
    last_week = [r for r in records if now - 2 * WEEK < r.timestamp <= now - WEEK]

    total = sum(r.calories for r in this_week)
    average = total / len(this_week) if this_week else 0.0

    change = 0.0
    if this_week and last_week:
        change = (
            _mean([r.health_score_value for r in this_week])
            - _mean([r.health_score_value for r in last_week])
        )

    return WeeklyStats(total_calories=total, average_calories=average, health_score_change=change)


def health_score_distribution(records: list[AnalysisRecord]) -> HealthScoreDistribution:
    """Count records per health score bucket (substring match, rest are poor)."""
    distribution = HealthScoreDistribution()

    for record in records:
        score = record.health_score.lower()
        if "healthy" in score:
            distribution.healthy += 1
        elif "good" in score:
            distribution.good += 1
        elif "fair" in score:
            distribution.fair += 1
        else:
            distribution.poor += 1

    return distribution


def analyze(
    records: list[AnalysisRecord],
    window: DateRange,
    now: Optional[datetime] = None,
    trend_days: int = TREND_DAYS,
) -> AnalyticsData:
    """Compute analytics for the records inside a date range.

    Args:
        records: Full record history (any order)
        window: Inclusive range to analyze
        now: Reference instant for the trend and weekly stats
        trend_days: Length of the calorie trend series

    Returns:
        AnalyticsData, all zeros when nothing falls in the window
    """
    if now is None:
        now = datetime.now()

    selected = [r for r in records if window.contains(r.timestamp)]
    if not selected:
        return AnalyticsData.empty()

    avg_protein = _mean([r.protein for r in selected])
    avg_fat = _mean([r.fat for r in selected])
    avg_carbs = _mean([r.carbs for r in selected])

    return AnalyticsData(
        total_analyses=len(selected),
        average_calories=_mean([r.calories for r in selected]),
        average_protein=avg_protein,
        average_fat=avg_fat,
        average_carbs=avg_carbs,
        average_health_score=_mean([r.health_score_value for r in selected]),
        most_frequent_foods=most_frequent_foods(selected),
        calorie_trend=calorie_trend(selected, now, trend_days),
        macro_breakdown=macro_breakdown(avg_protein, avg_fat, avg_carbs),
        weekly_stats=weekly_stats(selected, now),
        health_score_distribution=health_score_distribution(selected),
    )
