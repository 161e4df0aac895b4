"""Core Data Models - Pydantic models for type safety.

Inputs (profiles, records, goals) are validated value objects. Progress,
achievement and analytics models are derived outputs; their properties are
read-only views over the stored fields.
"""

from datetime import datetime
from datetime import date as DateType
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator
import uuid

from .dates import to_local_naive


# ==================== Profile & Goals ====================


class Gender(str, Enum):
    """Biological sex used by the Mifflin-St Jeor equation."""

    MALE = "male"
    FEMALE = "female"


class ActivityLevel(str, Enum):
    """Activity tier with its TDEE multiplier."""

    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    VERY_ACTIVE = "very_active"
    EXTREMELY_ACTIVE = "extremely_active"

    @property
    def multiplier(self) -> float:
        return _ACTIVITY_MULTIPLIERS[self]

    @property
    def description(self) -> str:
        return _ACTIVITY_DESCRIPTIONS[self]


_ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,
    ActivityLevel.MODERATELY_ACTIVE: 1.55,
    ActivityLevel.VERY_ACTIVE: 1.725,
    ActivityLevel.EXTREMELY_ACTIVE: 1.9,
}

_ACTIVITY_DESCRIPTIONS = {
    ActivityLevel.SEDENTARY: "Sedentary (little or no exercise)",
    ActivityLevel.LIGHTLY_ACTIVE: "Lightly active (light exercise 1-3 days/week)",
    ActivityLevel.MODERATELY_ACTIVE: "Moderately active (moderate exercise 3-5 days/week)",
    ActivityLevel.VERY_ACTIVE: "Very active (hard exercise 6-7 days/week)",
    ActivityLevel.EXTREMELY_ACTIVE: "Extremely active (very hard exercise, physical job)",
}


class GoalType(str, Enum):
    """What the user is trying to achieve."""

    WEIGHT_LOSS = "weight_loss"
    WEIGHT_GAIN = "weight_gain"
    MAINTENANCE = "maintenance"
    MUSCLE_GAIN = "muscle_gain"
    ENDURANCE = "endurance"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class UserProfile(BaseModel):
    """Profile supplied by the setup form to derive recommended goals.

    Positivity of age/weight/height is checked by the goal calculator so the
    caller gets an InvalidProfile error rather than a ValidationError.
    """

    age: int = Field(description="Age in years")
    weight: float = Field(description="Body weight in kg")
    height: float = Field(description="Height in cm")
    gender: Gender
    activity_level: ActivityLevel = ActivityLevel.MODERATELY_ACTIVE
    goal_type: GoalType = GoalType.MAINTENANCE


class NutritionGoals(BaseModel):
    """The single active goal set for a user. Saved as a whole record."""

    daily_calorie_goal: int = Field(ge=0, description="Daily calorie target")
    protein_goal: float = Field(ge=0, description="Daily protein target in grams")
    fat_goal: float = Field(ge=0, description="Daily fat target in grams")
    carbs_goal: float = Field(ge=0, description="Daily carbohydrate target in grams")
    fiber_goal: float = Field(default=25.0, ge=0, description="Daily fiber target in grams")
    activity_level: ActivityLevel = ActivityLevel.MODERATELY_ACTIVE
    updated_at: datetime = Field(default_factory=datetime.now)


class GoalRecommendations(BaseModel):
    """Goals computed from a profile, with the numbers behind them."""

    goals: NutritionGoals
    bmr: int = Field(description="Basal metabolic rate in kcal")
    tdee: int = Field(description="Total daily energy expenditure in kcal")
    goal_type: GoalType
    explanation: str
    tips: list[str] = Field(default_factory=list)


# ==================== Analysis Records ====================


_HEALTH_SCORE_VALUES = {
    "healthy": 9,
    "excellent": 9,
    "good": 7,
    "fair": 5,
    "moderate": 5,
    "poor": 3,
}


class AnalysisRecord(BaseModel):
    """A single analyzed meal returned by the food recognition service."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    item_name: str = Field(min_length=1, description="Name of the recognized food")
    calories: int = Field(ge=0, description="Total calories")
    protein: float = Field(ge=0, description="Protein in grams")
    fat: float = Field(ge=0, description="Fat in grams")
    carbs: float = Field(ge=0, description="Carbohydrates in grams")
    health_score: str = Field(default="", description="Categorical rating, e.g. 'Healthy'")
    coach_comment: str = Field(default="", description="Free-text advice from the analyzer")
    timestamp: datetime = Field(default_factory=datetime.now)

    @field_validator("timestamp")
    @classmethod
    def _local_timestamp(cls, v: datetime) -> datetime:
        """Offset timestamps are stored as naive local time."""
        return to_local_naive(v)

    @property
    def day(self) -> DateType:
        """Calendar day the meal was logged on."""
        return self.timestamp.date()

    @property
    def health_score_value(self) -> int:
        """Numeric 1-10 view of the categorical health score (unknown → 5)."""
        return _HEALTH_SCORE_VALUES.get(self.health_score.strip().lower(), 5)


# ==================== Progress ====================


class DailyProgress(BaseModel):
    """Totals and goal ratios for one calendar day.

    Ratios are raw (total / goal) and may exceed 1.0. Use clamped() where a
    display needs a 0-1 value.
    """

    date: DateType
    record_ids: list[str] = Field(default_factory=list)
    total_calories: int = 0
    total_protein: float = 0.0
    total_fat: float = 0.0
    total_carbs: float = 0.0
    calorie_progress: float = 0.0
    protein_progress: float = 0.0
    fat_progress: float = 0.0
    carbs_progress: float = 0.0
    last_updated: datetime = Field(default_factory=datetime.now)

    @property
    def is_goal_met(self) -> bool:
        return (
            0.9 <= self.calorie_progress <= 1.1
            and self.protein_progress >= 0.9
            and self.fat_progress >= 0.9
            and self.carbs_progress >= 0.9
        )

    @property
    def meals_count(self) -> int:
        return len(self.record_ids)

    @property
    def has_activity(self) -> bool:
        return bool(self.record_ids)

    @property
    def goal_completion(self) -> float:
        """Mean of the four raw ratios."""
        return (
            self.calorie_progress + self.protein_progress
            + self.fat_progress + self.carbs_progress
        ) / 4

    @staticmethod
    def clamped(ratio: float) -> float:
        """Clamp a ratio to [0, 1] for progress bars."""
        return max(0.0, min(ratio, 1.0))


class WeeklyProgress(BaseModel):
    """Seven-day rollup of daily progress."""

    week_start: DateType
    daily_progresses: list[DailyProgress] = Field(default_factory=list)
    total_calories: int = 0
    total_protein: float = 0.0
    total_fat: float = 0.0
    total_carbs: float = 0.0
    average_calories: float = Field(default=0.0, description="Total calories / 7")
    goal_completion_rate: float = 0.0

    @property
    def days_with_progress(self) -> int:
        return sum(1 for d in self.daily_progresses if d.has_activity)

    @property
    def consistency(self) -> float:
        return self.days_with_progress / 7


class MonthlyProgress(BaseModel):
    """Calendar month rollup built from week windows."""

    month_start: DateType
    weekly_progresses: list[WeeklyProgress] = Field(default_factory=list)
    total_calories: int = 0
    total_protein: float = 0.0
    total_fat: float = 0.0
    total_carbs: float = 0.0
    average_calories: float = Field(default=0.0, description="Total calories / days in month")
    goal_completion_rate: float = 0.0
    streak: int = 0

    @property
    def total_meals(self) -> int:
        return sum(
            day.meals_count
            for week in self.weekly_progresses
            for day in week.daily_progresses
        )


# ==================== Achievements ====================


class AchievementCategory(str, Enum):
    """Grouping used by the achievements screen."""

    GOALS = "goals"
    PROGRESS = "progress"
    STREAKS = "streaks"
    ANALYSIS = "analysis"
    SOCIAL = "social"


class Achievement(BaseModel):
    """An unlocked achievement. Permanent once created."""

    id: str = Field(min_length=1, description="Stable key into the rule catalog")
    title: str
    description: str
    icon: str
    category: AchievementCategory
    unlocked_at: datetime = Field(default_factory=datetime.now)
    is_unlocked: bool = True
    points: int = Field(ge=0)


class AchievementProgress(BaseModel):
    """Summary of a user's achievement standing. Not persisted."""

    total_achievements: int
    unlocked_count: int
    total_points: int
    current_streak: int
    longest_streak: int = 0
    level: int = Field(description="points // 100 + 1")

    @property
    def completion(self) -> float:
        if self.total_achievements == 0:
            return 0.0
        return self.unlocked_count / self.total_achievements


# ==================== Analytics ====================


class CalorieDataPoint(BaseModel):
    """Calories consumed on one day."""

    date: DateType
    calories: int


class NutritionBreakdown(BaseModel):
    """Macro averages as a percentage of combined macro mass."""

    protein_percentage: float = 0.0
    fat_percentage: float = 0.0
    carbs_percentage: float = 0.0


class WeeklyStats(BaseModel):
    """Trailing seven-day totals and health trend."""

    total_calories: int = 0
    average_calories: float = 0.0
    health_score_change: float = Field(
        default=0.0, description="Average health score vs the preceding 7 days"
    )


class HealthScoreDistribution(BaseModel):
    """Record counts per health score bucket."""

    healthy: int = 0
    good: int = 0
    fair: int = 0
    poor: int = 0


class AnalyticsData(BaseModel):
    """Aggregate statistics over a date range. Recomputed per request."""

    total_analyses: int = 0
    average_calories: float = 0.0
    average_protein: float = 0.0
    average_fat: float = 0.0
    average_carbs: float = 0.0
    average_health_score: float = 0.0
    most_frequent_foods: list[str] = Field(default_factory=list)
    calorie_trend: list[CalorieDataPoint] = Field(default_factory=list)
    macro_breakdown: NutritionBreakdown = Field(default_factory=NutritionBreakdown)
    weekly_stats: WeeklyStats = Field(default_factory=WeeklyStats)
    health_score_distribution: HealthScoreDistribution = Field(
        default_factory=HealthScoreDistribution
    )

    @classmethod
    def empty(cls) -> "AnalyticsData":
        return cls()
