"""Tests for the Firestore client with a mocked Firestore."""

from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from nutritrack.core.achievements import CATALOG
from nutritrack.core.models import AnalysisRecord, NutritionGoals
from nutritrack.shell.firestore_client import FirestoreConfig, FoodLogFirestoreClient


USER = "user-1234567890"


@pytest.fixture
def mock_client():
    """Mock google.cloud.firestore.Client."""
    return MagicMock()


@pytest.fixture
def db(mock_client):
    """Firestore client wired to the mock."""
    client = FoodLogFirestoreClient(FirestoreConfig(database="test"))
    client._client = mock_client
    return client


def user_collection(mock_client, name):
    """The mocked users/{uid}/{name} collection."""
    return mock_client.collection.return_value.document.return_value.collection.return_value


def make_doc(data, exists=True):
    doc = MagicMock()
    doc.exists = exists
    doc.to_dict.return_value = data
    return doc


class TestRecords:
    """Tests for record operations."""

    def test_append_stores_json_fields(self, db, mock_client):
        """Records are stored by id with an ISO timestamp."""
        record = AnalysisRecord(
            item_name="Apple", calories=95, protein=0.5, fat=0.3, carbs=25,
            timestamp=datetime(2026, 10, 19, 8, 0),
        )
        assert db.append_record(USER, record) is True

        analyses = user_collection(mock_client, "analyses")
        analyses.document.assert_called_with(record.id)
        stored = analyses.document.return_value.set.call_args[0][0]
        assert stored["item_name"] == "Apple"
        assert stored["timestamp"] == "2026-10-19T08:00:00"

    def test_append_failure(self, db, mock_client):
        """Storage errors are logged and reported as False."""
        user_collection(mock_client, "analyses").document.return_value.set.side_effect = Exception("unavailable")
        record = AnalysisRecord(item_name="Apple", calories=95, protein=0.5, fat=0.3, carbs=25)
        assert db.append_record(USER, record) is False

    def test_list_records(self, db, mock_client):
        """Stored documents are parsed back into records."""
        docs = [
            make_doc({"id": "b", "item_name": "Tea", "calories": 5, "protein": 0, "fat": 0,
                      "carbs": 1, "health_score": "Good", "coach_comment": "",
                      "timestamp": "2026-10-19T09:00:00"}),
            make_doc({"id": "a", "item_name": "Toast", "calories": 120, "protein": 4, "fat": 2,
                      "carbs": 22, "health_score": "Fair", "coach_comment": "",
                      "timestamp": "2026-10-18T08:00:00"}),
        ]
        user_collection(mock_client, "analyses").order_by.return_value.stream.return_value = docs

        records = db.list_records(USER)
        assert [r.id for r in records] == ["b", "a"]
        assert records[1].timestamp == datetime(2026, 10, 18, 8, 0)

    def test_list_records_failure(self, db, mock_client):
        """Query errors give an empty list."""
        user_collection(mock_client, "analyses").order_by.side_effect = Exception("unavailable")
        assert db.list_records(USER) == []

    def test_list_records_for_day_queries_range(self, db, mock_client):
        """The day query compares ISO strings against the day bounds."""
        analyses = user_collection(mock_client, "analyses")
        first_where = analyses.where.return_value
        first_where.where.return_value.order_by.return_value.stream.return_value = []

        assert db.list_records_for_day(USER, date(2026, 10, 19)) == []
        analyses.where.assert_called_with("timestamp", ">=", "2026-10-19")
        first_where.where.assert_called_with("timestamp", "<", "2026-10-20")

    def test_delete_missing(self, db, mock_client):
        """Deleting an unknown record returns False without deleting."""
        ref = user_collection(mock_client, "analyses").document.return_value
        ref.get.return_value = make_doc(None, exists=False)

        assert db.delete_record(USER, "missing") is False
        ref.delete.assert_not_called()

    def test_delete(self, db, mock_client):
        """Deleting an existing record removes the document."""
        ref = user_collection(mock_client, "analyses").document.return_value
        ref.get.return_value = make_doc({}, exists=True)

        assert db.delete_record(USER, "abc") is True
        ref.delete.assert_called_once()


class TestGoals:
    """Tests for goals operations."""

    def test_no_goals(self, db, mock_client):
        """A missing document means no goals."""
        ref = user_collection(mock_client, "settings").document.return_value
        ref.get.return_value = make_doc(None, exists=False)
        assert db.get_active_goals(USER) is None

    def test_get_goals(self, db, mock_client):
        """Stored goals are parsed."""
        ref = user_collection(mock_client, "settings").document.return_value
        ref.get.return_value = make_doc({
            "daily_calorie_goal": 2000, "protein_goal": 150.0, "fat_goal": 65.0,
            "carbs_goal": 200.0, "fiber_goal": 25.0, "activity_level": "very_active",
            "updated_at": "2026-10-19T09:00:00",
        })
        goals = db.get_active_goals(USER)
        assert goals.daily_calorie_goal == 2000
        assert goals.updated_at == datetime(2026, 10, 19, 9, 0)

    def test_set_goals(self, db, mock_client):
        """Goals are saved as one document."""
        goals = NutritionGoals(daily_calorie_goal=2000, protein_goal=150, fat_goal=65, carbs_goal=200)
        assert db.set_active_goals(USER, goals) is True
        settings = user_collection(mock_client, "settings")
        settings.document.assert_called_with("goals")
        assert settings.document.return_value.set.call_args[0][0]["activity_level"] == "moderately_active"

    def test_get_goals_failure(self, db, mock_client):
        """Read errors give None."""
        user_collection(mock_client, "settings").document.return_value.get.side_effect = Exception("boom")
        assert db.get_active_goals(USER) is None


class TestAchievements:
    """Tests for achievement operations."""

    def test_persist_batches(self, db, mock_client):
        """New achievements are created in one batch, never overwritten."""
        now = datetime(2026, 10, 19, 12, 0)
        batch = mock_client.batch.return_value

        assert db.persist_newly_unlocked(USER, [CATALOG[0].unlock(now), CATALOG[1].unlock(now)]) is True
        assert batch.create.call_count == 2
        batch.set.assert_not_called()
        batch.commit.assert_called_once()

    def test_persist_nothing(self, db, mock_client):
        """An empty list writes nothing."""
        assert db.persist_newly_unlocked(USER, []) is True
        mock_client.batch.assert_not_called()

    def test_persist_failure(self, db, mock_client):
        """Commit errors are reported as False."""
        mock_client.batch.return_value.commit.side_effect = Exception("boom")
        now = datetime(2026, 10, 19, 12, 0)
        assert db.persist_newly_unlocked(USER, [CATALOG[0].unlock(now)]) is False

    def test_get_unlocked(self, db, mock_client):
        """Unlocked ids are the achievement document ids."""
        doc = MagicMock()
        doc.id = CATALOG[0].id
        user_collection(mock_client, "achievements").stream.return_value = [doc]
        assert db.get_unlocked(USER) == {CATALOG[0].id}

    def test_get_unlocked_nothing(self, db, mock_client):
        """No documents means nothing unlocked."""
        user_collection(mock_client, "achievements").stream.return_value = []
        assert db.get_unlocked(USER) == set()

    def test_get_unlocked_failure(self, db, mock_client):
        """A failed read gives None rather than an empty set."""
        user_collection(mock_client, "achievements").stream.side_effect = Exception("unavailable")
        assert db.get_unlocked(USER) is None
