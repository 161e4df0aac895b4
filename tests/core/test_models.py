"""Unit tests for Pydantic models - validation and derived properties."""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from nutritrack.core.models import (
    Achievement,
    AchievementCategory,
    AchievementProgress,
    ActivityLevel,
    AnalysisRecord,
    AnalyticsData,
    DailyProgress,
    GoalType,
    MonthlyProgress,
    NutritionGoals,
    WeeklyProgress,
)


class TestActivityLevel:
    """Tests for ActivityLevel enum."""

    def test_multipliers(self):
        """Each level carries its TDEE multiplier."""
        assert ActivityLevel.SEDENTARY.multiplier == 1.2
        assert ActivityLevel.LIGHTLY_ACTIVE.multiplier == 1.375
        assert ActivityLevel.MODERATELY_ACTIVE.multiplier == 1.55
        assert ActivityLevel.VERY_ACTIVE.multiplier == 1.725
        assert ActivityLevel.EXTREMELY_ACTIVE.multiplier == 1.9

    def test_parse_from_string(self):
        """Levels parse from their stored value."""
        assert ActivityLevel("very_active") is ActivityLevel.VERY_ACTIVE

    def test_description(self):
        """Every level has a human description."""
        for level in ActivityLevel:
            assert level.description


class TestGoalType:
    """Tests for GoalType enum."""

    def test_display_name(self):
        """Display name is title-cased without underscores."""
        assert GoalType.WEIGHT_LOSS.display_name == "Weight Loss"
        assert GoalType.ENDURANCE.display_name == "Endurance"


class TestNutritionGoals:
    """Tests for NutritionGoals model."""

    def test_defaults(self):
        """Fiber defaults to 25g and updated_at is set."""
        goals = NutritionGoals(
            daily_calorie_goal=2000, protein_goal=150, fat_goal=65, carbs_goal=200
        )
        assert goals.fiber_goal == 25.0
        assert goals.activity_level == ActivityLevel.MODERATELY_ACTIVE
        assert isinstance(goals.updated_at, datetime)

    def test_negative_goal_rejected(self):
        """Negative targets are rejected."""
        with pytest.raises(ValidationError):
            NutritionGoals(daily_calorie_goal=-1, protein_goal=150, fat_goal=65, carbs_goal=200)


class TestAnalysisRecord:
    """Tests for AnalysisRecord model."""

    def test_valid_record(self):
        """Valid record is created with a generated ID."""
        record = AnalysisRecord(item_name="Apple", calories=95, protein=0.5, fat=0.3, carbs=25)
        assert record.item_name == "Apple"
        assert record.id is not None
        assert len(record.id) == 36  # UUID format

    def test_unique_ids(self):
        """Each record gets a unique ID."""
        a = AnalysisRecord(item_name="Apple", calories=95, protein=0.5, fat=0.3, carbs=25)
        b = AnalysisRecord(item_name="Apple", calories=95, protein=0.5, fat=0.3, carbs=25)
        assert a.id != b.id

    def test_negative_calories_rejected(self):
        """Negative calories are rejected at construction."""
        with pytest.raises(ValidationError):
            AnalysisRecord(item_name="Bad", calories=-100, protein=0, fat=0, carbs=0)

    def test_negative_macro_rejected(self):
        """Negative macros are rejected at construction."""
        with pytest.raises(ValidationError):
            AnalysisRecord(item_name="Bad", calories=100, protein=-1, fat=0, carbs=0)

    def test_empty_name_rejected(self):
        """Empty item name is rejected."""
        with pytest.raises(ValidationError):
            AnalysisRecord(item_name="", calories=100, protein=0, fat=0, carbs=0)

    def test_record_is_immutable(self):
        """Records cannot be modified after creation."""
        record = AnalysisRecord(item_name="Apple", calories=95, protein=0.5, fat=0.3, carbs=25)
        with pytest.raises(ValidationError):
            record.calories = 200

    def test_day(self):
        """Day is the calendar date of the timestamp."""
        record = AnalysisRecord(
            item_name="Toast", calories=100, protein=3, fat=1, carbs=20,
            timestamp=datetime(2026, 10, 19, 23, 59),
        )
        assert record.day == date(2026, 10, 19)

    def test_offset_timestamp_stored_as_local(self):
        """Offset timestamps become naive local time."""
        aware = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
        record = AnalysisRecord(
            item_name="Toast", calories=100, protein=3, fat=1, carbs=20, timestamp=aware,
        )
        assert record.timestamp.tzinfo is None
        assert record.timestamp == aware.astimezone().replace(tzinfo=None)

    def test_naive_timestamp_unchanged(self):
        """Naive timestamps are kept as given."""
        record = AnalysisRecord(
            item_name="Toast", calories=100, protein=3, fat=1, carbs=20,
            timestamp=datetime(2026, 10, 19, 9, 0),
        )
        assert record.timestamp == datetime(2026, 10, 19, 9, 0)

    @pytest.mark.parametrize(
        "score,value",
        [("Healthy", 9), ("excellent", 9), ("Good", 7), ("Fair", 5),
         ("moderate", 5), ("Poor", 3), ("", 5), ("Unknown", 5)],
    )
    def test_health_score_value(self, score, value):
        """Categorical health scores map to a 1-10 value."""
        record = AnalysisRecord(
            item_name="Food", calories=100, protein=1, fat=1, carbs=1, health_score=score
        )
        assert record.health_score_value == value


class TestDailyProgress:
    """Tests for DailyProgress derived properties."""

    def test_empty_day(self):
        """A day without records has no activity and no goal met."""
        progress = DailyProgress(date=date(2026, 10, 19))
        assert progress.has_activity is False
        assert progress.meals_count == 0
        assert progress.is_goal_met is False

    def test_goal_met_within_band(self):
        """Goal is met with calories within 10% and macros at 90% or more."""
        progress = DailyProgress(
            date=date(2026, 10, 19),
            calorie_progress=1.05,
            protein_progress=1.3,
            fat_progress=0.9,
            carbs_progress=0.95,
        )
        assert progress.is_goal_met is True

    def test_goal_not_met_over_calories(self):
        """Eating more than 110% of calories misses the goal."""
        progress = DailyProgress(
            date=date(2026, 10, 19),
            calorie_progress=1.2,
            protein_progress=1.0,
            fat_progress=1.0,
            carbs_progress=1.0,
        )
        assert progress.is_goal_met is False

    def test_goal_completion_is_mean(self):
        """Goal completion averages the four ratios."""
        progress = DailyProgress(
            date=date(2026, 10, 19),
            calorie_progress=1.0,
            protein_progress=0.5,
            fat_progress=0.5,
            carbs_progress=1.0,
        )
        assert progress.goal_completion == 0.75

    def test_clamped(self):
        """Clamped ratios stay within 0 and 1."""
        assert DailyProgress.clamped(1.4) == 1.0
        assert DailyProgress.clamped(0.4) == 0.4
        assert DailyProgress.clamped(-0.1) == 0.0


class TestWeeklyAndMonthlyProgress:
    """Tests for weekly and monthly derived properties."""

    def test_consistency(self):
        """Consistency is active days out of seven."""
        days = [
            DailyProgress(date=date(2026, 10, 12), record_ids=["a"]),
            DailyProgress(date=date(2026, 10, 13)),
            DailyProgress(date=date(2026, 10, 14), record_ids=["b", "c"]),
        ]
        week = WeeklyProgress(week_start=date(2026, 10, 12), daily_progresses=days)
        assert week.days_with_progress == 2
        assert week.consistency == 2 / 7

    def test_total_meals(self):
        """Total meals counts records across all weeks."""
        week1 = WeeklyProgress(
            week_start=date(2026, 10, 1),
            daily_progresses=[DailyProgress(date=date(2026, 10, 1), record_ids=["a", "b"])],
        )
        week2 = WeeklyProgress(
            week_start=date(2026, 10, 8),
            daily_progresses=[DailyProgress(date=date(2026, 10, 9), record_ids=["c"])],
        )
        month = MonthlyProgress(month_start=date(2026, 10, 1), weekly_progresses=[week1, week2])
        assert month.total_meals == 3


class TestAchievementModels:
    """Tests for achievement models."""

    def test_achievement_defaults_unlocked(self):
        """Achievements are created unlocked."""
        achievement = Achievement(
            id="first_analysis",
            title="First Step",
            description="Complete your first food analysis",
            icon="camera.fill",
            category=AchievementCategory.PROGRESS,
            points=10,
        )
        assert achievement.is_unlocked is True

    def test_progress_completion(self):
        """Completion is unlocked over total."""
        progress = AchievementProgress(
            total_achievements=8, unlocked_count=2, total_points=40, current_streak=1, level=1
        )
        assert progress.completion == 0.25

    def test_progress_completion_empty_catalog(self):
        """Completion is 0 without achievements."""
        progress = AchievementProgress(
            total_achievements=0, unlocked_count=0, total_points=0, current_streak=0, level=1
        )
        assert progress.completion == 0.0


class TestAnalyticsData:
    """Tests for AnalyticsData model."""

    def test_empty_is_all_zero(self):
        """Empty analytics have zero counts and empty series."""
        data = AnalyticsData.empty()
        assert data.total_analyses == 0
        assert data.average_calories == 0.0
        assert data.most_frequent_foods == []
        assert data.calorie_trend == []
        assert data.macro_breakdown.protein_percentage == 0.0
        assert data.weekly_stats.total_calories == 0
        assert data.health_score_distribution.poor == 0
