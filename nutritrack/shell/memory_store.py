"""In-Memory Store - Process-local persistence with the Firestore client's interface.

Used for local runs (NUTRITRACK_STORE=memory) and tests. Nothing survives a
restart. Each user keeps at most MAX_RECORDS records, newest first.
"""

import logging
from datetime import date
from threading import Lock
from typing import Iterable

from ..core.models import Achievement, AnalysisRecord, NutritionGoals


logger = logging.getLogger(__name__)

MAX_RECORDS = 1000


class InMemoryStore:
    """Record, goals and achievement storage held in dicts."""

    def __init__(self, max_records: int = MAX_RECORDS) -> None:
        self.max_records = max_records
        self._records: dict[str, list[AnalysisRecord]] = {}
        self._goals: dict[str, NutritionGoals] = {}
        self._achievements: dict[str, dict[str, Achievement]] = {}
        self._lock = Lock()

    # ==================== Record Operations ====================

    def append_record(self, user_id: str, record: AnalysisRecord) -> bool:
        logger.info("Saving analysis %s for user: %s", record.id[:8], user_id[:8])
        with self._lock:
            records = [r for r in self._records.get(user_id, []) if r.id != record.id]
            records.append(record)
            records.sort(key=lambda r: r.timestamp, reverse=True)
            dropped = len(records) - self.max_records
            if dropped > 0:
                logger.warning("Record cap reached for %s, dropping %d oldest", user_id[:8], dropped)
            self._records[user_id] = records[: self.max_records]
        return True

    def list_records(self, user_id: str) -> list[AnalysisRecord]:
        logger.debug("Fetching analyses for user: %s", user_id[:8])
        with self._lock:
            return list(self._records.get(user_id, []))

    def list_records_for_day(self, user_id: str, day: date) -> list[AnalysisRecord]:
        logger.debug("Fetching analyses for %s on %s", user_id[:8], day)
        with self._lock:
            records = [r for r in self._records.get(user_id, []) if r.day == day]
        return sorted(records, key=lambda r: r.timestamp)

    def delete_record(self, user_id: str, record_id: str) -> bool:
        logger.info("Deleting analysis %s for user: %s", record_id[:8], user_id[:8])
        with self._lock:
            records = self._records.get(user_id, [])
            remaining = [r for r in records if r.id != record_id]
            if len(remaining) == len(records):
                logger.warning("Analysis not found: %s", record_id)
                return False
            self._records[user_id] = remaining
        return True

    # ==================== Goals Operations ====================

    def get_active_goals(self, user_id: str) -> NutritionGoals | None:
        logger.debug("Fetching goals for user: %s", user_id[:8])
        with self._lock:
            return self._goals.get(user_id)

    def set_active_goals(self, user_id: str, goals: NutritionGoals) -> bool:
        logger.info("Saving goals for user: %s", user_id[:8])
        with self._lock:
            self._goals[user_id] = goals
        return True

    # ==================== Achievement Operations ====================

    def get_achievements(self, user_id: str) -> list[Achievement]:
        logger.debug("Fetching achievements for user: %s", user_id[:8])
        with self._lock:
            unlocked = list(self._achievements.get(user_id, {}).values())
        return sorted(unlocked, key=lambda a: a.unlocked_at)

    def get_unlocked(self, user_id: str) -> set[str]:
        with self._lock:
            return set(self._achievements.get(user_id, {}))

    def persist_newly_unlocked(self, user_id: str, achievements: Iterable[Achievement]) -> bool:
        achievements = list(achievements)
        if not achievements:
            return True

        logger.info("Saving %d achievements for user: %s", len(achievements), user_id[:8])
        with self._lock:
            unlocked = self._achievements.setdefault(user_id, {})
            for achievement in achievements:
                # Unlocks are permanent; the first unlock time wins
                unlocked.setdefault(achievement.id, achievement)
        return True
