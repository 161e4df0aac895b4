"""Goal Calculations - Pure functions deriving nutrition goals from a profile.

All functions are pure: same input always produces same output, no side effects.
"""

from datetime import datetime
from typing import Optional

from .errors import InvalidProfile
from .models import Gender, GoalRecommendations, GoalType, NutritionGoals, UserProfile


FIBER_GOAL = 25.0

MIN_PROTEIN = 50.0
MIN_FAT = 30.0
MIN_CARBS = 50.0

# Calorie adjustment relative to TDEE
CALORIE_FACTORS = {
    GoalType.WEIGHT_LOSS: 0.85,
    GoalType.WEIGHT_GAIN: 1.15,
    GoalType.MAINTENANCE: 1.00,
    GoalType.MUSCLE_GAIN: 1.10,
    GoalType.ENDURANCE: 1.05,
}

# Grams of protein per kg of body weight
PROTEIN_PER_KG = {
    GoalType.WEIGHT_LOSS: 1.2,
    GoalType.WEIGHT_GAIN: 1.6,
    GoalType.MAINTENANCE: 1.0,
    GoalType.MUSCLE_GAIN: 1.6,
    GoalType.ENDURANCE: 1.0,
}

# Share of calories from fat
FAT_FRACTIONS = {
    GoalType.WEIGHT_LOSS: 0.25,
    GoalType.WEIGHT_GAIN: 0.30,
    GoalType.MAINTENANCE: 0.25,
    GoalType.MUSCLE_GAIN: 0.30,
    GoalType.ENDURANCE: 0.20,
}

EXPLANATIONS = {
    GoalType.WEIGHT_LOSS: (
        "This calorie target creates a sustainable deficit to help you lose weight "
        "while preserving muscle mass. Higher protein helps maintain metabolism and "
        "keeps you feeling full."
    ),
    GoalType.WEIGHT_GAIN: (
        "This calorie surplus supports healthy weight gain. Focus on nutrient-dense "
        "foods and combine with strength training for optimal results."
    ),
    GoalType.MAINTENANCE: (
        "These targets help maintain your current weight while supporting your "
        "activity level and overall health."
    ),
    GoalType.MUSCLE_GAIN: (
        "Higher calories and protein support muscle growth. The increased protein "
        "intake aids muscle protein synthesis when combined with resistance training."
    ),
    GoalType.ENDURANCE: (
        "Higher carbohydrates fuel your endurance activities while maintaining "
        "adequate protein for recovery."
    ),
}

TIPS = {
    GoalType.WEIGHT_LOSS: [
        "Focus on lean proteins like chicken, fish, and legumes",
        "Include plenty of vegetables for nutrients and satiety",
        "Stay hydrated - sometimes thirst feels like hunger",
        "Plan meals ahead to avoid impulsive food choices",
    ],
    GoalType.WEIGHT_GAIN: [
        "Eat frequent, nutrient-dense meals throughout the day",
        "Include healthy fats like nuts, avocados, and olive oil",
        "Don't skip meals, even if you're not feeling hungry",
        "Consider liquid calories like smoothies and protein shakes",
    ],
    GoalType.MAINTENANCE: [
        "Listen to your hunger and fullness cues",
        "Maintain a balanced approach to eating",
        "Include a variety of foods for optimal nutrition",
        "Stay consistent with your eating patterns",
    ],
    GoalType.MUSCLE_GAIN: [
        "Eat protein within 2 hours of strength training workouts",
        "Don't neglect carbs - they fuel your training sessions",
        "Get adequate sleep for muscle recovery and growth",
        "Be patient - muscle growth takes time and consistency",
    ],
    GoalType.ENDURANCE: [
        "Fuel before, during, and after long training sessions",
        "Focus on complex carbohydrates for sustained energy",
        "Don't forget electrolyte replacement during long activities",
        "Time your nutrition around your training schedule",
    ],
}


def validate_profile(profile: UserProfile) -> None:
    """Reject profiles that cannot produce meaningful goals.

    Raises:
        InvalidProfile: If age, weight or height is not positive
    """
    for field in ("age", "weight", "height"):
        value = getattr(profile, field)
        if value <= 0:
            raise InvalidProfile(field, value)


def calculate_bmr(profile: UserProfile) -> float:
    """Basal metabolic rate using the Mifflin-St Jeor equation.

    Args:
        profile: User profile (weight kg, height cm, age years)

    Returns:
        BMR in kcal/day
    """
    base = 10 * profile.weight + 6.25 * profile.height - 5 * profile.age
    if profile.gender == Gender.MALE:
        return base + 5
    return base - 161


def calculate_tdee(profile: UserProfile) -> float:
    """Total daily energy expenditure: BMR scaled by activity level."""
    return calculate_bmr(profile) * profile.activity_level.multiplier


def calculate_macro_goals(
    calorie_goal: int, weight: float, goal_type: GoalType
) -> tuple[float, float, float]:
    """Split a calorie goal into protein, fat and carbs grams.

    Carbs take whatever calories remain after protein (4 kcal/g) and
    fat (9 kcal/g). Floors are applied after the split.

    Args:
        calorie_goal: Daily calorie target
        weight: Body weight in kg
        goal_type: The user's goal

    Returns:
        Tuple of (protein, fat, carbs) in grams
    """
    protein = weight * PROTEIN_PER_KG[goal_type]
    fat = calorie_goal * FAT_FRACTIONS[goal_type] / 9
    carbs = (calorie_goal - protein * 4 - fat * 9) / 4

    return (
        round(max(protein, MIN_PROTEIN), 1),
        round(max(fat, MIN_FAT), 1),
        round(max(carbs, MIN_CARBS), 1),
    )


def compute_goals(profile: UserProfile, now: Optional[datetime] = None) -> NutritionGoals:
    """Derive recommended daily goals from a user profile.

    Args:
        profile: The user's profile
        now: Timestamp to stamp as updated_at (defaults to current time)

    Returns:
        NutritionGoals for the profile

    Raises:
        InvalidProfile: If age, weight or height is not positive
    """
    validate_profile(profile)

    calorie_goal = int(calculate_tdee(profile) * CALORIE_FACTORS[profile.goal_type])
    protein, fat, carbs = calculate_macro_goals(calorie_goal, profile.weight, profile.goal_type)

    return NutritionGoals(
        daily_calorie_goal=calorie_goal,
        protein_goal=protein,
        fat_goal=fat,
        carbs_goal=carbs,
        fiber_goal=FIBER_GOAL,
        activity_level=profile.activity_level,
        updated_at=now or datetime.now(),
    )


def recommend_goals(profile: UserProfile, now: Optional[datetime] = None) -> GoalRecommendations:
    """Goals plus the BMR/TDEE behind them and goal-specific guidance."""
    goals = compute_goals(profile, now)

    return GoalRecommendations(
        goals=goals,
        bmr=int(calculate_bmr(profile)),
        tdee=int(calculate_tdee(profile)),
        goal_type=profile.goal_type,
        explanation=EXPLANATIONS[profile.goal_type],
        tips=list(TIPS[profile.goal_type]),
    )
