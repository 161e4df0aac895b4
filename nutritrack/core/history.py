"""History Browsing - Search, filter and sort a user's record history.

All functions are pure: same input always produces same output, no side effects.
"""

from enum import Enum
from typing import Iterable, Optional

from .dates import DateRange
from .models import AnalysisRecord


class SortOption(str, Enum):
    """Orderings offered by the history list."""

    DATE_DESCENDING = "date_descending"
    DATE_ASCENDING = "date_ascending"
    CALORIES_HIGH_TO_LOW = "calories_high_to_low"
    CALORIES_LOW_TO_HIGH = "calories_low_to_high"
    HEALTH_SCORE_BEST = "health_score_best"
    ALPHABETICAL = "alphabetical"


class HealthScoreFilter(str, Enum):
    """Health score buckets a history list can be narrowed to."""

    ALL = "all"
    HEALTHY = "healthy"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs_improvement"


def matches(record: AnalysisRecord, query: str) -> bool:
    """Case-insensitive match on item name, coach comment or health score."""
    needle = query.strip().lower()
    if not needle:
        return True
    return any(
        needle in field.lower()
        for field in (record.item_name, record.coach_comment, record.health_score)
    )


def search(records: Iterable[AnalysisRecord], query: str) -> list[AnalysisRecord]:
    """Records matching the query (all records for an empty query)."""
    return [r for r in records if matches(r, query)]


def filter_health(
    records: Iterable[AnalysisRecord], health: HealthScoreFilter
) -> list[AnalysisRecord]:
    records = list(records)
    if health == HealthScoreFilter.ALL:
        return records

    def score(r: AnalysisRecord) -> str:
        return r.health_score.lower()

    if health == HealthScoreFilter.HEALTHY:
        return [r for r in records if "healthy" in score(r)]
    if health == HealthScoreFilter.GOOD:
        return [r for r in records if "good" in score(r)]
    return [r for r in records if "healthy" not in score(r) and "good" not in score(r)]


def sort_records(
    records: Iterable[AnalysisRecord], option: SortOption = SortOption.DATE_DESCENDING
) -> list[AnalysisRecord]:
    """Return a sorted copy of the records. Sorts are stable."""
    records = list(records)

    if option == SortOption.DATE_DESCENDING:
        return sorted(records, key=lambda r: r.timestamp, reverse=True)
    if option == SortOption.DATE_ASCENDING:
        return sorted(records, key=lambda r: r.timestamp)
    if option == SortOption.CALORIES_HIGH_TO_LOW:
        return sorted(records, key=lambda r: r.calories, reverse=True)
    if option == SortOption.CALORIES_LOW_TO_HIGH:
        return sorted(records, key=lambda r: r.calories)
    if option == SortOption.HEALTH_SCORE_BEST:
        return sorted(records, key=lambda r: r.health_score_value, reverse=True)
    return sorted(records, key=lambda r: r.item_name.casefold())


def browse(
    records: Iterable[AnalysisRecord],
    query: str = "",
    window: Optional[DateRange] = None,
    health: HealthScoreFilter = HealthScoreFilter.ALL,
    sort: SortOption = SortOption.DATE_DESCENDING,
) -> list[AnalysisRecord]:
    """Search, window, filter and sort in one pass, as the history list does."""
    selected = search(records, query)
    if window is not None:
        selected = [r for r in selected if window.contains(r.timestamp)]
    selected = filter_health(selected, health)
    return sort_records(selected, sort)
