"""Domain Errors - Exception types raised by the core.

Aggregation and analytics never raise for empty input; these cover the few
cases that are surfaced back to the caller.
"""


class NutritionTrackError(Exception):
    """Base class for all NutriTrack domain errors."""


class InvalidProfile(NutritionTrackError, ValueError):
    """A user profile has a non-positive age, weight or height."""

    def __init__(self, field: str, value: float) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Profile {field} must be positive, got {value}")


class EncodingError(NutritionTrackError):
    """An export payload could not be serialized to bytes."""


class GoalsNotSet(NutritionTrackError):
    """No active nutrition goals exist for the user."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"No active nutrition goals for user {user_id[:8]}")
