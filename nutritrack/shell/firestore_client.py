"""Firestore Client - Persistence for analysis records, goals and achievements.

This module handles all database I/O for nutrition tracking.
All I/O is contained here; business logic is in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable

from google.cloud import firestore

from ..core.models import Achievement, AnalysisRecord, NutritionGoals


logger = logging.getLogger(__name__)


@dataclass
class FirestoreConfig:
    """Configuration for Firestore client.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
    """

    project_id: str | None = None
    database: str | None = None


class FoodLogFirestoreClient:
    """Client for persisting nutrition data to Firestore.

    Document structure per user:
        users/{user_id}/
            analyses/{record_id}: { item_name, calories, ..., timestamp }
            settings/goals: { daily_calorie_goal, protein_goal, ... }
            achievements/{achievement_id}: { title, points, unlocked_at, ... }

    Timestamps are stored as ISO-8601 strings so day ranges can be queried
    with plain string comparisons.
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore client.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs: dict[str, Any] = {}
            if self.config.project_id:
                kwargs["project"] = self.config.project_id
            if self.config.database:
                kwargs["database"] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _user_ref(self, user_id: str) -> firestore.DocumentReference:
        """Get reference to user document."""
        return self.client.collection("users").document(user_id)

    def _analyses_ref(self, user_id: str) -> firestore.CollectionReference:
        """Get reference to the user's analysis records."""
        return self._user_ref(user_id).collection("analyses")

    def _goals_ref(self, user_id: str) -> firestore.DocumentReference:
        """Get reference to the active goals document."""
        return self._user_ref(user_id).collection("settings").document("goals")

    def _achievements_ref(self, user_id: str) -> firestore.CollectionReference:
        """Get reference to the user's unlocked achievements."""
        return self._user_ref(user_id).collection("achievements")

    # ==================== Record Operations ====================

    def append_record(self, user_id: str, record: AnalysisRecord) -> bool:
        """Store an analysis record. An existing record with the same id is replaced.

        Args:
            user_id: The user's ID
            record: The record to store

        Returns:
            True if successful
        """
        logger.info("Saving analysis %s for user: %s", record.id[:8], user_id[:8])
        try:
            self._analyses_ref(user_id).document(record.id).set(record.model_dump(mode="json"))
            return True
        except Exception as e:
            logger.error("Failed to save analysis: %s", str(e))
            return False

    def list_records(self, user_id: str) -> list[AnalysisRecord]:
        """Fetch the full record history, newest first.

        Args:
            user_id: The user's ID

        Returns:
            List of records (may be empty)
        """
        logger.debug("Fetching analyses for user: %s", user_id[:8])
        try:
            query = self._analyses_ref(user_id).order_by(
                "timestamp", direction=firestore.Query.DESCENDING
            )
            records = [AnalysisRecord(**doc.to_dict()) for doc in query.stream()]
            logger.debug("Found %d analyses", len(records))
            return records
        except Exception as e:
            logger.error("Failed to fetch analyses: %s", str(e))
            return []

    def list_records_for_day(self, user_id: str, day: date) -> list[AnalysisRecord]:
        """Fetch the records logged on one calendar day, oldest first.

        Args:
            user_id: The user's ID
            day: The calendar day

        Returns:
            List of records (may be empty)
        """
        logger.debug("Fetching analyses for %s on %s", user_id[:8], day)
        try:
            query = (
                self._analyses_ref(user_id)
                .where("timestamp", ">=", day.isoformat())
                .where("timestamp", "<", (day + timedelta(days=1)).isoformat())
                .order_by("timestamp")
            )
            return [AnalysisRecord(**doc.to_dict()) for doc in query.stream()]
        except Exception as e:
            logger.error("Failed to fetch analyses for day: %s", str(e))
            return []

    def delete_record(self, user_id: str, record_id: str) -> bool:
        """Delete an analysis record.

        Args:
            user_id: The user's ID
            record_id: ID of the record to delete

        Returns:
            True if the record existed and was deleted
        """
        logger.info("Deleting analysis %s for user: %s", record_id[:8], user_id[:8])
        try:
            ref = self._analyses_ref(user_id).document(record_id)
            if not ref.get().exists:
                logger.warning("Analysis not found: %s", record_id)
                return False
            ref.delete()
            return True
        except Exception as e:
            logger.error("Failed to delete analysis: %s", str(e))
            return False

    # ==================== Goals Operations ====================

    def get_active_goals(self, user_id: str) -> NutritionGoals | None:
        """Fetch the active nutrition goals.

        Args:
            user_id: The user's ID

        Returns:
            NutritionGoals if set, None otherwise
        """
        logger.debug("Fetching goals for user: %s", user_id[:8])
        try:
            doc = self._goals_ref(user_id).get()
            if not doc.exists:
                return None
            return NutritionGoals(**doc.to_dict())
        except Exception as e:
            logger.error("Failed to fetch goals: %s", str(e))
            return None

    def set_active_goals(self, user_id: str, goals: NutritionGoals) -> bool:
        """Replace the active nutrition goals.

        Args:
            user_id: The user's ID
            goals: Goals to save

        Returns:
            True if successful
        """
        logger.info("Saving goals for user: %s", user_id[:8])
        try:
            self._goals_ref(user_id).set(goals.model_dump(mode="json"))
            return True
        except Exception as e:
            logger.error("Failed to save goals: %s", str(e))
            return False

    # ==================== Achievement Operations ====================

    def get_achievements(self, user_id: str) -> list[Achievement]:
        """Fetch unlocked achievements, in unlock order.

        Args:
            user_id: The user's ID

        Returns:
            List of achievements (may be empty)
        """
        logger.debug("Fetching achievements for user: %s", user_id[:8])
        try:
            query = self._achievements_ref(user_id).order_by("unlocked_at")
            return [Achievement(**doc.to_dict()) for doc in query.stream()]
        except Exception as e:
            logger.error("Failed to fetch achievements: %s", str(e))
            return []

    def get_unlocked(self, user_id: str) -> set[str] | None:
        """Ids of the achievements the user has unlocked.

        Args:
            user_id: The user's ID

        Returns:
            Set of achievement ids, or None if they could not be read
        """
        try:
            return {doc.id for doc in self._achievements_ref(user_id).stream()}
        except Exception as e:
            logger.error("Failed to fetch unlocked achievements: %s", str(e))
            return None

    def persist_newly_unlocked(self, user_id: str, achievements: Iterable[Achievement]) -> bool:
        """Store newly unlocked achievements in one batch.

        Documents are created, never overwritten, so an existing unlock
        fails the whole batch.

        Args:
            user_id: The user's ID
            achievements: Achievements to store

        Returns:
            True if successful (also when there was nothing to store)
        """
        achievements = list(achievements)
        if not achievements:
            return True

        logger.info(
            "Saving %d achievements for user: %s", len(achievements), user_id[:8]
        )
        try:
            batch = self.client.batch()
            for achievement in achievements:
                ref = self._achievements_ref(user_id).document(achievement.id)
                batch.create(ref, achievement.model_dump(mode="json"))
            batch.commit()
            return True
        except Exception as e:
            logger.error("Failed to save achievements: %s", str(e))
            return False
