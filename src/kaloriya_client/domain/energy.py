"""Energy expenditure formulas used for optimistic profile edits."""

from kaloriya_client.domain.models import User

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}
DEFAULT_MULTIPLIER = ACTIVITY_MULTIPLIERS["sedentary"]


def bmr_mifflin(gender: str, age: int, height_cm: float, weight_kg: float) -> float:
    """Return basal metabolic rate by the Mifflin-St Jeor equation."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    if gender.lower().strip() == "male":
        return base + 5
    return base - 161


def tdee_from_activity(bmr: float, activity_level: str | None) -> float:
    """Scale BMR by the activity tier multiplier."""
    key = (activity_level or "").lower().strip()
    return bmr * ACTIVITY_MULTIPLIERS.get(key, DEFAULT_MULTIPLIER)


def activity_calories(met: float, weight_kg: float, duration_minutes: float) -> int:
    """Return calories burned for an activity using the MET formula."""
    return round(met * weight_kg * (duration_minutes / 60))


def recompute_energy(user: User) -> User:
    """Return the user with BMR and TDEE recomputed from body metrics.

    The user is returned unchanged unless weight, height, age and gender are
    all known.
    """
    if (
        user.weight_kg is None
        or user.height_cm is None
        or user.age is None
        or user.gender is None
    ):
        return user
    bmr = bmr_mifflin(user.gender, user.age, user.height_cm, user.weight_kg)
    tdee = tdee_from_activity(bmr, user.activity_level)
    return user.model_copy(update={"bmr": round(bmr), "tdee": round(tdee)})
