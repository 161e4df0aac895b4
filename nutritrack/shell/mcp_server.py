"""MCP Server - Tool definitions for Claude integration.

Defines the MCP tools that Claude can invoke to manage goals, log analyzed
meals and read progress, achievements and analytics. All tools act for the
single configured user.
"""

import logging
from datetime import date, datetime

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from pydantic import ValidationError

from ..core.dates import DateRangePreset
from ..core.errors import EncodingError, GoalsNotSet, InvalidProfile
from ..core.export import ExportFormat
from ..core.goals import recommend_goals as compute_recommendations
from ..core.history import HealthScoreFilter, SortOption
from ..core.models import (
    ActivityLevel,
    AnalysisRecord,
    DailyProgress,
    Gender,
    GoalType,
    MonthlyProgress,
    NutritionGoals,
    UserProfile,
    WeeklyProgress,
)
from .config import AppConfig, load_config
from .firestore_client import FoodLogFirestoreClient
from .memory_store import InMemoryStore
from .tracker import ProgressTracker, Store


logger = logging.getLogger(__name__)

settings = load_config()

# Configure transport security for the MCP HTTP endpoint
transport_security = TransportSecuritySettings(
    enable_dns_rebinding_protection=True,
    allowed_hosts=settings.allowed_hosts,
)

# Initialize FastMCP server with stateless HTTP for cloud deployments
mcp = FastMCP(
    "nutritrack",
    instructions="""NutriTrack - Personal nutrition goals and progress tracker.

Use these tools to set nutrition goals, log analyzed meals, and report
progress, streaks, achievements and analytics.

On first use, call recommend_goals with the user's profile (save=True to
apply them) or set_goals with explicit targets.
After logging a meal, show the updated daily progress and any new achievements.""",
    stateless_http=True,
    transport_security=transport_security,
)

# Lazy-initialized tracker
_tracker: ProgressTracker | None = None


def create_store(config: AppConfig) -> Store:
    """Build the configured store backend."""
    if config.store == "memory":
        logger.info("Using in-memory store")
        return InMemoryStore()
    return FoodLogFirestoreClient(config.firestore)


def get_tracker() -> ProgressTracker:
    """Get or create the progress tracker."""
    global _tracker
    if _tracker is None:
        _tracker = ProgressTracker(create_store(settings))
    return _tracker


def get_user_id() -> str:
    """The account every tool acts for."""
    return settings.user_id


def _parse_date(date_str: str | None) -> date | None:
    """Parse an optional YYYY-MM-DD string (None passes through).

    Raises:
        ValueError: If the string is not a valid date
    """
    if date_str is None:
        return None
    return date.fromisoformat(date_str)


def _daily_dict(daily: DailyProgress) -> dict:
    data = daily.model_dump(mode="json")
    data["meals_count"] = daily.meals_count
    data["is_goal_met"] = daily.is_goal_met
    data["goal_completion"] = daily.goal_completion
    return data


def _weekly_dict(weekly: WeeklyProgress) -> dict:
    data = weekly.model_dump(mode="json", exclude={"daily_progresses"})
    data["days"] = [_daily_dict(d) for d in weekly.daily_progresses]
    data["days_with_progress"] = weekly.days_with_progress
    data["consistency"] = weekly.consistency
    return data


def _monthly_dict(monthly: MonthlyProgress) -> dict:
    data = monthly.model_dump(mode="json", exclude={"weekly_progresses"})
    data["weeks"] = [_weekly_dict(w) for w in monthly.weekly_progresses]
    data["total_meals"] = monthly.total_meals
    return data


# ==================== Goal Tools ====================


@mcp.tool()
def recommend_goals(
    age: int,
    weight: float,
    height: float,
    gender: str,
    activity_level: str = "moderately_active",
    goal_type: str = "maintenance",
    save: bool = False,
) -> dict:
    """Recommend daily nutrition goals from the user's profile.

    Args:
        age: Age in years
        weight: Body weight in kg
        height: Height in cm
        gender: "male" or "female"
        activity_level: sedentary, lightly_active, moderately_active,
            very_active or extremely_active
        goal_type: weight_loss, weight_gain, maintenance, muscle_gain or endurance
        save: Also make the recommended goals the active goals

    Returns:
        Recommended goals with BMR, TDEE, an explanation and tips
    """
    try:
        profile = UserProfile(
            age=age,
            weight=weight,
            height=height,
            gender=Gender(gender.lower()),
            activity_level=ActivityLevel(activity_level.lower()),
            goal_type=GoalType(goal_type.lower()),
        )
        recommendation = compute_recommendations(profile)
    except (InvalidProfile, ValueError) as e:
        return {"error": str(e)}

    result = recommendation.model_dump(mode="json")
    if save:
        saved = get_tracker().set_goals(get_user_id(), recommendation.goals)
        if saved is None:
            return {"error": "Failed to save goals. Please try again."}
        result["goals"] = saved.goals.model_dump(mode="json")
        result["newly_unlocked"] = [a.model_dump(mode="json") for a in saved.newly_unlocked]
    return result


@mcp.tool()
def set_goals(
    daily_calorie_goal: int,
    protein_goal: float,
    fat_goal: float,
    carbs_goal: float,
    fiber_goal: float = 25.0,
    activity_level: str = "moderately_active",
) -> dict:
    """Replace the user's active nutrition goals.

    Args:
        daily_calorie_goal: Daily calorie target (e.g., 2000)
        protein_goal: Daily protein target in grams
        fat_goal: Daily fat target in grams
        carbs_goal: Daily carbohydrate target in grams
        fiber_goal: Daily fiber target in grams
        activity_level: Activity level the goals were set for

    Returns:
        The saved goals, today's progress against them and any new achievements
    """
    try:
        goals = NutritionGoals(
            daily_calorie_goal=daily_calorie_goal,
            protein_goal=protein_goal,
            fat_goal=fat_goal,
            carbs_goal=carbs_goal,
            fiber_goal=fiber_goal,
            activity_level=ActivityLevel(activity_level.lower()),
        )
    except ValueError as e:
        return {"error": str(e)}

    result = get_tracker().set_goals(get_user_id(), goals)
    if result is None:
        return {"error": "Failed to save goals. Please try again."}

    return {
        "goals": result.goals.model_dump(mode="json"),
        "daily_progress": _daily_dict(result.daily_progress),
        "newly_unlocked": [a.model_dump(mode="json") for a in result.newly_unlocked],
    }


@mcp.tool()
def get_goals() -> dict:
    """Retrieve the user's active nutrition goals.

    Returns:
        The goals, or an error if none have been set
    """
    try:
        goals = get_tracker().require_goals(get_user_id())
    except GoalsNotSet:
        return {"error": "No goals set. Use recommend_goals or set_goals first."}
    return goals.model_dump(mode="json")


# ==================== Logging Tools ====================


@mcp.tool()
def log_analysis(
    item_name: str,
    calories: int,
    protein: float,
    fat: float,
    carbs: float,
    health_score: str = "",
    coach_comment: str = "",
    timestamp: str | None = None,
) -> dict:
    """Log an analyzed meal and update progress, streak and achievements.

    Args:
        item_name: Name of the food (e.g., "Grilled chicken salad")
        calories: Total calories
        protein: Protein in grams
        fat: Fat in grams
        carbs: Carbohydrates in grams
        health_score: Rating from the analyzer (e.g., "Healthy", "Good", "Fair")
        coach_comment: Advice text from the analyzer
        timestamp: When the meal was eaten, ISO format (defaults to now;
            offsets are converted to local time)

    Returns:
        The stored record, today's progress, the streak and new achievements
    """
    try:
        fields = {}
        if timestamp is not None:
            fields["timestamp"] = datetime.fromisoformat(timestamp)
        record = AnalysisRecord(
            item_name=item_name,
            calories=calories,
            protein=protein,
            fat=fat,
            carbs=carbs,
            health_score=health_score,
            coach_comment=coach_comment,
            **fields,
        )
    except (ValidationError, ValueError) as e:
        return {"error": str(e)}

    result = get_tracker().log_analysis(get_user_id(), record)
    if result is None:
        return {"error": "Failed to log analysis. Please try again."}

    return {
        "record": result.record.model_dump(mode="json"),
        "daily_progress": _daily_dict(result.daily_progress),
        "streak": result.streak,
        "newly_unlocked": [a.model_dump(mode="json") for a in result.newly_unlocked],
    }


@mcp.tool()
def delete_analysis(record_id: str) -> dict:
    """Delete a logged meal.

    Args:
        record_id: The ID of the record to delete

    Returns:
        Confirmation and today's updated progress
    """
    daily = get_tracker().delete_analysis(get_user_id(), record_id)
    if daily is None:
        return {"error": "Analysis not found or delete failed."}

    return {"success": True, "daily_progress": _daily_dict(daily)}


# ==================== Progress Tools ====================


@mcp.tool()
def get_today() -> dict:
    """Get today's progress toward the user's goals.

    Returns:
        Daily totals, goal ratios and whether the goals were met
    """
    return _daily_dict(get_tracker().daily_progress(get_user_id()))


@mcp.tool()
def get_day(date_str: str) -> dict:
    """Get a specific day's progress.

    Args:
        date_str: Date in YYYY-MM-DD format

    Returns:
        Daily totals, goal ratios and whether the goals were met
    """
    try:
        day = _parse_date(date_str)
    except ValueError:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    return _daily_dict(get_tracker().daily_progress(get_user_id(), day))


@mcp.tool()
def get_weekly_progress(date_str: str | None = None) -> dict:
    """Get progress for the Monday-Sunday week containing a date.

    Args:
        date_str: Any date in the week, YYYY-MM-DD (defaults to today)

    Returns:
        Weekly totals, average calories, completion rate and daily breakdown
    """
    try:
        day = _parse_date(date_str)
    except ValueError:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    return _weekly_dict(get_tracker().weekly_progress(get_user_id(), day))


@mcp.tool()
def get_monthly_progress(date_str: str | None = None) -> dict:
    """Get progress for the calendar month containing a date.

    Args:
        date_str: Any date in the month, YYYY-MM-DD (defaults to today)

    Returns:
        Monthly totals, average calories, completion rate, streak and weeks
    """
    try:
        day = _parse_date(date_str)
    except ValueError:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    return _monthly_dict(get_tracker().monthly_progress(get_user_id(), day))


# ==================== Achievement Tools ====================


@mcp.tool()
def get_achievements() -> dict:
    """List unlocked achievements with points, level and streaks.

    Returns:
        Unlocked achievements and the progress summary
    """
    tracker = get_tracker()
    user_id = get_user_id()
    progress = tracker.achievement_progress(user_id)

    summary = progress.model_dump(mode="json")
    summary["completion"] = progress.completion
    return {
        "achievements": [a.model_dump(mode="json") for a in tracker.achievements(user_id)],
        "progress": summary,
    }


# ==================== Analytics & History Tools ====================


@mcp.tool()
def get_analytics(
    period: str = "last_30_days",
    start: str | None = None,
    end: str | None = None,
) -> dict:
    """Compute analytics over a date range.

    Args:
        period: today, yesterday, this_week, last_week, this_month, last_month,
            last_30_days, last_90_days, all_time or custom
        start: Start of a custom range, ISO format
        end: End of a custom range, ISO format

    Returns:
        Averages, most frequent foods, calorie trend, macro breakdown,
        weekly stats and health score distribution
    """
    try:
        preset = DateRangePreset(period)
        start_at = datetime.fromisoformat(start) if start else None
        end_at = datetime.fromisoformat(end) if end else None
        analytics = get_tracker().analytics(get_user_id(), preset, start_at, end_at)
    except ValueError as e:
        return {"error": str(e)}

    return analytics.model_dump(mode="json")


@mcp.tool()
def search_history(
    query: str = "",
    period: str = "all_time",
    sort: str = "date_descending",
    health: str = "all",
    limit: int = 50,
) -> dict:
    """Search logged meals by name, coach comment or health score.

    Args:
        query: Case-insensitive search text (empty matches everything)
        period: Date range preset (see get_analytics)
        sort: date_descending, date_ascending, calories_high_to_low,
            calories_low_to_high, health_score_best or alphabetical
        health: all, healthy, good or needs_improvement
        limit: Maximum number of records to return

    Returns:
        Matching records and the total match count
    """
    try:
        records = get_tracker().history(
            get_user_id(),
            query=query,
            preset=DateRangePreset(period),
            health=HealthScoreFilter(health),
            sort=SortOption(sort),
        )
    except ValueError as e:
        return {"error": str(e)}

    return {
        "total": len(records),
        "records": [r.model_dump(mode="json") for r in records[:limit]],
    }


@mcp.tool()
def export_history(fmt: str = "csv", period: str = "all_time") -> dict:
    """Export logged meals as CSV or JSON text.

    Args:
        fmt: "csv" or "json"
        period: Date range preset (see get_analytics)

    Returns:
        The export content with its format and media type
    """
    try:
        export_format = ExportFormat(fmt.lower())
        payload = get_tracker().export(get_user_id(), export_format, DateRangePreset(period))
    except EncodingError as e:
        logger.error("Export failed: %s", str(e))
        return {"error": "Export failed."}
    except ValueError as e:
        return {"error": str(e)}

    return {
        "format": export_format.value,
        "media_type": export_format.media_type,
        "content": payload.decode("utf-8"),
    }
