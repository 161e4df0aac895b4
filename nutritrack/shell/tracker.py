"""Progress Tracker - Single-writer orchestration over a store.

Every write for a user (log, delete, goal save) runs append -> aggregate ->
streak -> evaluate achievements -> persist unlocks under that user's lock, so
no achievement can be unlocked twice. Observers are notified on the event bus
after the lock is released.
"""

import logging
from datetime import date, datetime
from threading import Lock
from typing import Callable, Iterable, Optional, Protocol

from pydantic import BaseModel, Field

from ..core.achievements import (
    CATALOG,
    AchievementRule,
    AchievementState,
    HistoryStats,
    achievement_progress,
    evaluate,
)
from ..core.analytics import analyze
from ..core.dates import DateRange, DateRangePreset, resolve_range
from ..core.errors import GoalsNotSet
from ..core.export import ExportFormat, analytics_to_json, export_records
from ..core.history import HealthScoreFilter, SortOption, browse
from ..core.models import (
    Achievement,
    AchievementProgress,
    AnalysisRecord,
    AnalyticsData,
    DailyProgress,
    MonthlyProgress,
    NutritionGoals,
    WeeklyProgress,
)
from ..core.progress import aggregate_day, build_month, build_week
from ..core.streaks import activity_checker, current_streak, longest_streak
from . import events
from .events import EventBus


logger = logging.getLogger(__name__)


class Store(Protocol):
    """Persistence contract shared by the Firestore and in-memory stores."""

    def append_record(self, user_id: str, record: AnalysisRecord) -> bool: ...
    def list_records(self, user_id: str) -> list[AnalysisRecord]: ...
    def list_records_for_day(self, user_id: str, day: date) -> list[AnalysisRecord]: ...
    def delete_record(self, user_id: str, record_id: str) -> bool: ...
    def get_active_goals(self, user_id: str) -> Optional[NutritionGoals]: ...
    def set_active_goals(self, user_id: str, goals: NutritionGoals) -> bool: ...
    def get_achievements(self, user_id: str) -> list[Achievement]: ...
    def get_unlocked(self, user_id: str) -> Optional[set[str]]: ...
    def persist_newly_unlocked(self, user_id: str, achievements: Iterable[Achievement]) -> bool: ...


class LogResult(BaseModel):
    """Outcome of logging one analysis record."""

    record: AnalysisRecord
    daily_progress: DailyProgress
    streak: int
    newly_unlocked: list[Achievement] = Field(default_factory=list)


class GoalsResult(BaseModel):
    """Outcome of saving the active goals."""

    goals: NutritionGoals
    daily_progress: DailyProgress
    newly_unlocked: list[Achievement] = Field(default_factory=list)


class ProgressTracker:
    """Per-user write serialization plus read-side rollups.

    Args:
        store: Record, goals and achievement persistence
        bus: Event bus notified after each successful write
        clock: Source of "now" (local time)
        catalog: Achievement rules to evaluate
    """

    def __init__(
        self,
        store: Store,
        bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now,
        catalog: tuple[AchievementRule, ...] = CATALOG,
    ) -> None:
        self.store = store
        self.bus = bus or EventBus()
        self.clock = clock
        self.catalog = catalog
        self._locks: dict[str, Lock] = {}
        self._locks_guard = Lock()

    def _lock_for(self, user_id: str) -> Lock:
        with self._locks_guard:
            if user_id not in self._locks:
                self._locks[user_id] = Lock()
            return self._locks[user_id]

    def _recompute(
        self,
        user_id: str,
        goals: Optional[NutritionGoals],
        now: datetime,
        latest: Optional[AnalysisRecord] = None,
    ) -> tuple[DailyProgress, int, list[Achievement]]:
        """Aggregate today, compute the streak and persist new unlocks.

        Per-meal rules judge ``latest``; without one they judge the newest
        record by timestamp. Must be called with the user's lock held.
        """
        records = self.store.list_records(user_id)
        today = now.date()

        daily = aggregate_day(records, goals, today, now)
        streak = current_streak(activity_checker(records), today)

        if latest is None and records:
            latest = max(records, key=lambda r: r.timestamp)
        state = AchievementState(
            daily_progress=daily,
            streak=streak,
            history=HistoryStats(total_analyses=len(records), latest_record=latest),
            goals_set=goals is not None,
        )

        already_unlocked = self.store.get_unlocked(user_id)
        if already_unlocked is None:
            logger.warning("Skipping achievement evaluation for %s", user_id[:8])
            return daily, streak, []

        unlocked = evaluate(self.catalog, state, already_unlocked, now)
        if unlocked and not self.store.persist_newly_unlocked(user_id, unlocked):
            logger.error("Could not persist achievements for %s", user_id[:8])
            unlocked = []
        for achievement in unlocked:
            logger.info("Achievement unlocked for %s: %s", user_id[:8], achievement.id)

        return daily, streak, unlocked

    # ==================== Writes ====================

    def log_analysis(self, user_id: str, record: AnalysisRecord) -> Optional[LogResult]:
        """Append a record and recompute progress, streak and achievements.

        Returns:
            LogResult, or None if the record could not be stored
        """
        with self._lock_for(user_id):
            if not self.store.append_record(user_id, record):
                return None
            now = self.clock()
            goals = self.store.get_active_goals(user_id)
            # Per-meal rules judge the logged meal, even when back-dated
            daily, streak, unlocked = self._recompute(user_id, goals, now, latest=record)

        self.bus.publish(events.PROGRESS_UPDATED, user_id, daily_progress=daily, streak=streak)
        if unlocked:
            self.bus.publish(events.ACHIEVEMENTS_UNLOCKED, user_id, achievements=unlocked)

        return LogResult(record=record, daily_progress=daily, streak=streak, newly_unlocked=unlocked)

    def delete_analysis(self, user_id: str, record_id: str) -> Optional[DailyProgress]:
        """Remove a record and recompute today's progress.

        Unlocked achievements are permanent and are not revisited.

        Returns:
            Today's DailyProgress, or None if the record was not found
        """
        with self._lock_for(user_id):
            if not self.store.delete_record(user_id, record_id):
                return None
            now = self.clock()
            goals = self.store.get_active_goals(user_id)
            daily = aggregate_day(self.store.list_records(user_id), goals, now.date(), now)

        self.bus.publish(events.RECORD_DELETED, user_id, record_id=record_id)
        self.bus.publish(events.PROGRESS_UPDATED, user_id, daily_progress=daily)
        return daily

    def set_goals(self, user_id: str, goals: NutritionGoals) -> Optional[GoalsResult]:
        """Replace the active goals and re-evaluate achievements against them.

        Returns:
            GoalsResult, or None if the goals could not be stored
        """
        with self._lock_for(user_id):
            now = self.clock()
            goals = goals.model_copy(update={"updated_at": now})
            if not self.store.set_active_goals(user_id, goals):
                return None
            daily, _, unlocked = self._recompute(user_id, goals, now)

        self.bus.publish(events.GOALS_UPDATED, user_id, goals=goals)
        self.bus.publish(events.PROGRESS_UPDATED, user_id, daily_progress=daily)
        if unlocked:
            self.bus.publish(events.ACHIEVEMENTS_UNLOCKED, user_id, achievements=unlocked)

        return GoalsResult(goals=goals, daily_progress=daily, newly_unlocked=unlocked)

    # ==================== Reads ====================

    def get_goals(self, user_id: str) -> Optional[NutritionGoals]:
        return self.store.get_active_goals(user_id)

    def require_goals(self, user_id: str) -> NutritionGoals:
        """Active goals for the user.

        Raises:
            GoalsNotSet: If the user has never saved goals
        """
        goals = self.store.get_active_goals(user_id)
        if goals is None:
            raise GoalsNotSet(user_id)
        return goals

    def _goals_or_warn(self, user_id: str) -> Optional[NutritionGoals]:
        goals = self.store.get_active_goals(user_id)
        if goals is None:
            logger.debug("No goals for %s, progress ratios will be zero", user_id[:8])
        return goals

    def daily_progress(self, user_id: str, day: Optional[date] = None) -> DailyProgress:
        now = self.clock()
        day = day or now.date()
        records = self.store.list_records_for_day(user_id, day)
        return aggregate_day(records, self._goals_or_warn(user_id), day, now)

    def weekly_progress(self, user_id: str, day: Optional[date] = None) -> WeeklyProgress:
        """ISO week (Monday-Sunday) containing `day` (defaults to today)."""
        now = self.clock()
        records = self.store.list_records(user_id)
        return build_week(records, self._goals_or_warn(user_id), day or now.date(), now)

    def monthly_progress(self, user_id: str, day: Optional[date] = None) -> MonthlyProgress:
        """Calendar month containing `day`, with week windows up to today."""
        now = self.clock()
        records = self.store.list_records(user_id)
        streak = current_streak(activity_checker(records), now.date())
        return build_month(
            records,
            self._goals_or_warn(user_id),
            day or now.date(),
            streak=streak,
            today=now.date(),
            now=now,
        )

    def current_streak(self, user_id: str) -> int:
        records = self.store.list_records(user_id)
        return current_streak(activity_checker(records), self.clock().date())

    def achievements(self, user_id: str) -> list[Achievement]:
        return self.store.get_achievements(user_id)

    def achievement_progress(self, user_id: str) -> AchievementProgress:
        records = self.store.list_records(user_id)
        return achievement_progress(
            self.store.get_achievements(user_id),
            self.catalog,
            streak=current_streak(activity_checker(records), self.clock().date()),
            longest=longest_streak(records),
        )

    def _window(
        self,
        preset: DateRangePreset,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> DateRange:
        return resolve_range(preset, now=self.clock(), start=start, end=end)

    def analytics(
        self,
        user_id: str,
        preset: DateRangePreset = DateRangePreset.LAST_30_DAYS,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> AnalyticsData:
        """Analytics over a preset or custom window.

        Raises:
            ValueError: If a custom window is incomplete or inverted
        """
        window = self._window(preset, start, end)
        return analyze(self.store.list_records(user_id), window, now=self.clock())

    def history(
        self,
        user_id: str,
        query: str = "",
        preset: DateRangePreset = DateRangePreset.ALL_TIME,
        health: HealthScoreFilter = HealthScoreFilter.ALL,
        sort: SortOption = SortOption.DATE_DESCENDING,
    ) -> list[AnalysisRecord]:
        window = self._window(preset)
        return browse(self.store.list_records(user_id), query, window, health, sort)

    def export(
        self,
        user_id: str,
        fmt: ExportFormat,
        preset: DateRangePreset = DateRangePreset.ALL_TIME,
    ) -> bytes:
        """Serialized records in the window, oldest first.

        Raises:
            EncodingError: If the payload cannot be encoded
        """
        records = self.history(user_id, preset=preset, sort=SortOption.DATE_ASCENDING)
        logger.info("Exporting %d analyses for %s as %s", len(records), user_id[:8], fmt.value)
        return export_records(records, fmt)

    def export_analytics(
        self, user_id: str, preset: DateRangePreset = DateRangePreset.LAST_30_DAYS
    ) -> bytes:
        return analytics_to_json(self.analytics(user_id, preset))
