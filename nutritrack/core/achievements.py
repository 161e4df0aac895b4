"""Achievement Engine - Rule catalog evaluation.

The catalog is a table of rules, each a predicate over the current tracking
state plus fixed metadata. Evaluation is stateless: the caller passes the ids
already unlocked and gets back only the achievements that are new.

USAGE:
    state = AchievementState(daily_progress=progress, streak=5, history=stats, goals_set=True)
    new = evaluate(CATALOG, state, already_unlocked={"first_analysis"})
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from .models import (
    Achievement,
    AchievementCategory,
    AchievementProgress,
    AnalysisRecord,
    DailyProgress,
)


HIGH_PROTEIN_GRAMS = 20.0
BALANCED_MAX_SHARE = 0.6
MEALS_PER_DAY_TARGET = 3
POINTS_PER_LEVEL = 100


class HistoryStats(BaseModel):
    """What the engine needs to know about the whole record history."""

    total_analyses: int = 0
    latest_record: Optional[AnalysisRecord] = Field(
        default=None, description="Meal the per-meal rules judge, normally the one just logged"
    )


class AchievementState(BaseModel):
    """Inputs every rule predicate is evaluated against."""

    daily_progress: DailyProgress
    streak: int = 0
    history: HistoryStats = HistoryStats()
    goals_set: bool = False


@dataclass(frozen=True)
class AchievementRule:
    """One catalog entry: metadata plus the predicate that unlocks it."""

    id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    points: int
    predicate: Callable[[AchievementState], bool]

    def unlock(self, now: datetime) -> Achievement:
        return Achievement(
            id=self.id,
            title=self.title,
            description=self.description,
            icon=self.icon,
            category=self.category,
            unlocked_at=now,
            is_unlocked=True,
            points=self.points,
        )


def is_balanced(record: AnalysisRecord) -> bool:
    """True when no macro exceeds 60% of the meal's macro mass."""
    total = record.protein + record.fat + record.carbs
    if total <= 0:
        return False
    return all(
        share / total <= BALANCED_MAX_SHARE
        for share in (record.protein, record.fat, record.carbs)
    )


def _latest(state: AchievementState, check: Callable[[AnalysisRecord], bool]) -> bool:
    record = state.history.latest_record
    return record is not None and check(record)


CATALOG: tuple[AchievementRule, ...] = (
    AchievementRule(
        id="first_goal_set",
        title="Goal Setter",
        description="Set your first nutrition goals",
        icon="target",
        category=AchievementCategory.GOALS,
        points=10,
        predicate=lambda s: s.goals_set,
    ),
    AchievementRule(
        id="first_analysis",
        title="First Step",
        description="Complete your first food analysis",
        icon="camera.fill",
        category=AchievementCategory.PROGRESS,
        points=10,
        predicate=lambda s: s.history.total_analyses == 1,
    ),
    AchievementRule(
        id="three_meals_day",
        title="Full Plate",
        description="Log three meals in a single day",
        icon="fork.knife",
        category=AchievementCategory.PROGRESS,
        points=20,
        predicate=lambda s: s.daily_progress.meals_count >= MEALS_PER_DAY_TARGET,
    ),
    AchievementRule(
        id="daily_goal_met",
        title="On Target",
        description="Meet your calorie and macro goals for a day",
        icon="checkmark.circle.fill",
        category=AchievementCategory.GOALS,
        points=25,
        predicate=lambda s: s.daily_progress.is_goal_met,
    ),
    AchievementRule(
        id="three_day_streak",
        title="Getting Started",
        description="Track nutrition for 3 days in a row",
        icon="flame",
        category=AchievementCategory.STREAKS,
        points=30,
        predicate=lambda s: s.streak >= 3,
    ),
    AchievementRule(
        id="week_streak",
        title="Week Warrior",
        description="Track nutrition for 7 days in a row",
        icon="flame.fill",
        category=AchievementCategory.STREAKS,
        points=50,
        predicate=lambda s: s.streak >= 7,
    ),
    AchievementRule(
        id="month_streak",
        title="Habit Master",
        description="Track nutrition for 30 days in a row",
        icon="crown.fill",
        category=AchievementCategory.STREAKS,
        points=150,
        predicate=lambda s: s.streak >= 30,
    ),
    AchievementRule(
        id="high_protein_meal",
        title="Protein Power",
        description="Log a meal with at least 20g of protein",
        icon="bolt.fill",
        category=AchievementCategory.ANALYSIS,
        points=15,
        predicate=lambda s: _latest(s, lambda r: r.protein >= HIGH_PROTEIN_GRAMS),
    ),
    AchievementRule(
        id="balanced_meal",
        title="Balanced Plate",
        description="Log a meal with a balanced macro split",
        icon="scalemass.fill",
        category=AchievementCategory.ANALYSIS,
        points=15,
        predicate=lambda s: _latest(s, is_balanced),
    ),
)


def validate_catalog(catalog: Iterable[AchievementRule]) -> None:
    """Raise ValueError if two rules share an id."""
    seen: set[str] = set()
    for rule in catalog:
        if rule.id in seen:
            raise ValueError(f"Duplicate achievement id in catalog: {rule.id}")
        seen.add(rule.id)


def evaluate(
    catalog: Iterable[AchievementRule],
    state: AchievementState,
    already_unlocked: Iterable[str],
    now: Optional[datetime] = None,
) -> list[Achievement]:
    """Return achievements whose rule holds and that are not yet unlocked.

    Args:
        catalog: Rules to check, in display order
        state: Current progress, streak and history
        already_unlocked: Ids the user already holds; never re-emitted
        now: Unlock timestamp (defaults to current time)

    Returns:
        Newly unlocked achievements in catalog order
    """
    catalog = list(catalog)
    validate_catalog(catalog)
    unlocked = set(already_unlocked)
    if now is None:
        now = datetime.now()

    return [
        rule.unlock(now)
        for rule in catalog
        if rule.id not in unlocked and rule.predicate(state)
    ]


def achievement_progress(
    unlocked: Iterable[Achievement],
    catalog: Iterable[AchievementRule] = CATALOG,
    streak: int = 0,
    longest: int = 0,
) -> AchievementProgress:
    """Summarize unlocked achievements into points and level."""
    unlocked = list(unlocked)
    total_points = sum(a.points for a in unlocked)

    return AchievementProgress(
        total_achievements=len(list(catalog)),
        unlocked_count=len(unlocked),
        total_points=total_points,
        current_streak=streak,
        longest_streak=longest,
        level=total_points // POINTS_PER_LEVEL + 1,
    )
