"""Pydantic models for backend request and response payloads."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UserType = Literal["anonymous", "registered", "telegram"]
Gender = Literal["male", "female"]


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class User(_Payload):
    """Authenticated principal as returned by the backend."""

    id: str
    user_type: UserType = "anonymous"
    email: str | None = None
    name: str | None = None
    telegram_id: int | str | None = None
    telegram_username: str | None = None
    daily_calorie_goal: int = 2000
    daily_protein_goal: int = 150
    daily_carbs_goal: int = 250
    daily_fat_goal: int = 65
    weight_kg: float | None = None
    height_cm: float | None = None
    age: int | None = None
    gender: Gender | None = None
    activity_level: str | None = None
    bmr: float | None = None
    tdee: float | None = None
    created_at: datetime | None = None


class AuthResponse(_Payload):
    """Credential and user pair issued by every sign-in endpoint."""

    access_token: str
    token_type: str = "bearer"
    user: User


class ProfileUpdate(BaseModel):
    """Partial profile settings in client shape.

    Only fields explicitly passed are sent; serialization renames the goal
    fields to the backend's column names.
    """

    name: str | None = None
    calorie_goal: int | None = Field(
        default=None, serialization_alias="daily_calorie_goal"
    )
    protein_goal: int | None = Field(
        default=None, serialization_alias="daily_protein_goal"
    )
    carbs_goal: int | None = Field(default=None, serialization_alias="daily_carbs_goal")
    fat_goal: int | None = Field(default=None, serialization_alias="daily_fat_goal")
    weight_kg: float | None = None
    height_cm: float | None = None
    age: int | None = None
    gender: Gender | None = None
    activity_level: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Return the backend-shaped body with only the explicitly set fields."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class MealCreate(BaseModel):
    """Body of a meal creation request."""

    food_name: str
    weight_grams: float
    calories: float
    protein: float
    carbs: float
    fat: float
    image_preview: str | None = None
    date: str | None = None


class MealEntry(_Payload):
    """One logged meal."""

    id: str
    food_name: str
    weight_grams: float = 0.0
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    image_preview: str | None = None
    timestamp: datetime | None = None
    date: str | None = None


class ActivityEntry(_Payload):
    """One logged activity, catalog-based or custom."""

    id: str
    activity_id: str | None = None
    name: str | None = None
    duration_minutes: float | None = None
    distance_km: float | None = None
    calories_burned: float = 0.0
    timestamp: datetime | None = None
    date: str | None = None
    is_custom: bool = False


class DailyLog(_Payload):
    """Rollup of one calendar day."""

    date: str
    meals: list[MealEntry] = Field(default_factory=list)
    activities: list[ActivityEntry] = Field(default_factory=list)
    total_calories: float = 0.0
    total_protein: float = 0.0
    total_carbs: float = 0.0
    total_fat: float = 0.0
    total_calories_burned: float = 0.0


class DailyLogSummary(_Payload):
    """Totals of one day in the history list."""

    date: str
    total_calories: float = 0.0
    total_protein: float = 0.0
    total_carbs: float = 0.0
    total_fat: float = 0.0
    meal_count: int = 0


class DateRangeStats(_Payload):
    """Aggregated statistics over a date range."""

    start_date: str
    end_date: str
    days: list[DailyLogSummary] = Field(default_factory=list)
    total_days: int = 0
    avg_calories: float = 0.0
    avg_protein: float = 0.0
    avg_carbs: float = 0.0
    avg_fat: float = 0.0


class FoodStats(_Payload):
    """Frequency of a food in recent meals."""

    food_name: str
    count: int = 0
    total_calories: float = 0.0


class ActivityCreate(BaseModel):
    """Body of a catalog activity creation request."""

    activity_id: str
    duration_minutes: float
    distance_km: float | None = None
    date: str | None = None


class CustomActivityCreate(BaseModel):
    """Body of a custom activity creation request."""

    name: str
    calories_burned: float
    duration_minutes: float | None = None
    date: str | None = None


class CatalogActivity(_Payload):
    """Activity type with its metabolic equivalent."""

    id: str
    name: str
    met: float
    category: str | None = None
    has_distance: bool = False


class ActivityCatalog(_Payload):
    """Catalog of known activity types."""

    activities: list[CatalogActivity] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)

    def find(self, activity_id: str) -> CatalogActivity | None:
        """Return the catalog entry for an id, if present."""
        for activity in self.activities:
            if activity.id == activity_id:
                return activity
        return None


FeedbackStatus = Literal["pending", "in_review", "responded", "closed"]


class FeedbackCreate(BaseModel):
    """Body of a feedback submission."""

    subject: str
    message: str
    category: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)


class FeedbackItem(_Payload):
    """Feedback thread as seen by its author."""

    id: str
    user_id: str
    subject: str
    message: str
    rating: int | None = None
    category: str = "general"
    admin_response: str | None = None
    responded_at: datetime | None = None
    status: FeedbackStatus = "pending"
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FeedbackParticipant(_Payload):
    """Short user reference attached to feedback in admin views."""

    id: str
    name: str | None = None
    telegram_username: str | None = None
    user_type: str


class FeedbackDetailItem(FeedbackItem):
    """Feedback with author and responder for admins."""

    user: FeedbackParticipant | None = None
    responder: FeedbackParticipant | None = None


class FeedbackListResponse(_Payload):
    """Page of feedback for admins."""

    feedbacks: list[FeedbackDetailItem] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20
    total_pages: int = 0


class FeedbackStats(_Payload):
    """Feedback counters per status."""

    total: int = 0
    pending: int = 0
    in_review: int = 0
    responded: int = 0
    closed: int = 0
    average_rating: float | None = None


class AdminTelegramUser(_Payload):
    """User reachable through the messaging host."""

    id: str
    name: str | None = None
    email: str | None = None
    user_type: str
    telegram_id: int | str | None = None
    telegram_username: str | None = None
    telegram_first_name: str | None = None
    created_at: datetime | None = None
    is_active: bool = True


class ReplyResult(_Payload):
    """Outcome of an admin message sent through the messaging host."""

    success: bool
    message: str
    telegram_sent: bool | None = None


class NutritionData(_Payload):
    """Macronutrients of a portion."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    calories: float | None = None
    protein: float | None = Field(default=None, alias="oqsil")
    carbs: float | None = None
    fat: float | None = None


class AnalysisResult(_Payload):
    """Nutrition estimate for a photographed meal."""

    food: str
    confidence: float = Field(ge=0.0, le=1.0)
    ingredients: list[str] = Field(default_factory=list)
    estimated_weight_grams: float | None = None
    nutrition_per_100g: NutritionData = Field(default_factory=NutritionData)
    total_nutrition: NutritionData | None = None
    note: str = ""


class HealthStatus(_Payload):
    """Backend health check result."""

    status: str


def today_iso() -> str:
    """Return today's local date as YYYY-MM-DD."""
    return date.today().isoformat()
