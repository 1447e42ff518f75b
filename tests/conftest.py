"""Shared test fixtures."""

import asyncio
import itertools
from dataclasses import dataclass, field

import pytest

from kaloriya_client.config import Settings
from kaloriya_client.domain.models import (
    ActivityCatalog,
    ActivityCreate,
    ActivityEntry,
    AdminTelegramUser,
    AnalysisResult,
    AuthResponse,
    CustomActivityCreate,
    DailyLog,
    DailyLogSummary,
    DateRangeStats,
    FeedbackCreate,
    FeedbackItem,
    FeedbackListResponse,
    FeedbackStats,
    FeedbackStatus,
    FoodStats,
    HealthStatus,
    MealCreate,
    MealEntry,
    ReplyResult,
    User,
    today_iso,
)
from kaloriya_client.domain.session import PersistedSession
from kaloriya_client.errors import ApiError
from kaloriya_client.services.activities import ActivitiesApi
from kaloriya_client.services.admin import AdminApi
from kaloriya_client.services.analysis import AnalysisApi
from kaloriya_client.services.feedback import FeedbackApi
from kaloriya_client.services.meals import MealsApi
from kaloriya_client.services.query_cache import QueryCache
from kaloriya_client.services.session_store import AuthApi, EmbeddedHost, SessionStore
from kaloriya_client.services.storage import InMemoryStore

AUTH_KEY = "kaloriya-auth"


def make_user(**overrides: object) -> User:
    values: dict[str, object] = {"id": "user-1", "user_type": "registered"}
    values.update(overrides)
    return User.model_validate(values)


def make_meal(meal_id: str, calories: float = 100.0, **overrides: object) -> MealEntry:
    values: dict[str, object] = {
        "id": meal_id,
        "food_name": f"food {meal_id}",
        "weight_grams": 100.0,
        "calories": calories,
        "protein": 10.0,
        "carbs": 20.0,
        "fat": 5.0,
        "date": today_iso(),
    }
    values.update(overrides)
    return MealEntry.model_validate(values)


def make_log(meals: list[MealEntry] | None = None, day: str | None = None) -> DailyLog:
    entries = meals or []
    return DailyLog(
        date=day or today_iso(),
        meals=entries,
        total_calories=sum(meal.calories for meal in entries),
        total_protein=sum(meal.protein for meal in entries),
        total_carbs=sum(meal.carbs for meal in entries),
        total_fat=sum(meal.fat for meal in entries),
    )


def unreachable() -> ApiError:
    return ApiError("Could not reach the server. Check your internet connection.")


def rejected() -> ApiError:
    return ApiError("Could not validate credentials", status_code=401)


@dataclass
class FakeAuthApi(AuthApi):
    """Auth API double issuing sequential credentials."""

    user: User = field(default_factory=make_user)
    errors: dict[str, Exception] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    update_gate: asyncio.Event | None = None
    updates: list[dict[str, object]] = field(default_factory=list)
    _tokens: itertools.count = field(default_factory=lambda: itertools.count(1))

    async def create_anonymous(self) -> AuthResponse:
        return self._issue("create_anonymous", user_type="anonymous")

    async def login(self, email: str, password: str) -> AuthResponse:
        return self._issue("login", email=email)

    async def register(
        self, email: str, password: str, name: str | None = None
    ) -> AuthResponse:
        return self._issue(
            "register", email=email, name=name, user_type="registered"
        )

    async def convert(
        self, credential: str, email: str, password: str, name: str | None = None
    ) -> AuthResponse:
        return self._issue(
            "convert", email=email, name=name, user_type="registered"
        )

    async def get_me(self, credential: str) -> User:
        self._record("get_me")
        return self.user

    async def update_me(self, credential: str, fields: dict[str, object]) -> User:
        self.updates.append(fields)
        if self.update_gate is not None:
            await self.update_gate.wait()
        self._record("update_me")
        self.user = self.user.model_copy(update=fields)
        return self.user

    async def refresh(self, credential: str) -> AuthResponse:
        return self._issue("refresh")

    async def embedded_login(self, init_data: str) -> AuthResponse:
        return self._issue("embedded_login", user_type="telegram")

    async def embedded_link(self, credential: str, init_data: str) -> AuthResponse:
        return self._issue("embedded_link", user_type="telegram")

    def _record(self, name: str) -> None:
        self.calls.append(name)
        error = self.errors.get(name)
        if error is not None:
            raise error

    def _issue(self, name: str, /, **user_updates: object) -> AuthResponse:
        self._record(name)
        self.user = self.user.model_copy(update=user_updates)
        return AuthResponse(access_token=f"token-{next(self._tokens)}", user=self.user)


@dataclass(frozen=True)
class FakeEmbeddedHost(EmbeddedHost):
    payload: str | None = None

    def init_data(self) -> str | None:
        return self.payload


@dataclass
class FakeMealsApi(MealsApi):
    """Meals backend double holding the server-side rows."""

    meals: list[MealEntry] = field(default_factory=list)
    gate: asyncio.Event | None = None
    fail_next: list[ApiError] = field(default_factory=list)
    added: list[MealCreate] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    today_calls: int = 0
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    async def add_meal(self, credential: str, meal: MealCreate) -> MealEntry:
        self.added.append(meal)
        await self._wait()
        entry = make_meal(
            f"meal-{next(self._ids)}",
            calories=meal.calories,
            food_name=meal.food_name,
            protein=meal.protein,
            carbs=meal.carbs,
            fat=meal.fat,
            date=meal.date or today_iso(),
        )
        self.meals.append(entry)
        return entry

    async def delete_meal(self, credential: str, meal_id: str) -> None:
        self.deleted.append(meal_id)
        await self._wait()
        self.meals = [meal for meal in self.meals if meal.id != meal_id]

    async def get_today(self, credential: str) -> DailyLog:
        self.today_calls += 1
        return make_log([meal for meal in self.meals if meal.date == today_iso()])

    async def get_by_date(self, credential: str, day: str) -> DailyLog:
        return make_log([meal for meal in self.meals if meal.date == day], day=day)

    async def get_history(self, credential: str, days: int) -> list[DailyLogSummary]:
        log = make_log(self.meals)
        return [
            DailyLogSummary(
                date=log.date,
                total_calories=log.total_calories,
                meal_count=len(log.meals),
            )
        ]

    async def get_range_stats(
        self, credential: str, start_date: str, end_date: str
    ) -> DateRangeStats:
        return DateRangeStats(start_date=start_date, end_date=end_date)

    async def get_food_stats(
        self, credential: str, days: int, limit: int
    ) -> list[FoodStats]:
        return [FoodStats(food_name=meal.food_name, count=1) for meal in self.meals]

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next:
            raise self.fail_next.pop(0)


@dataclass
class FakeActivitiesApi(ActivitiesApi):
    catalog: ActivityCatalog = field(default_factory=ActivityCatalog)
    entries: list[ActivityEntry] = field(default_factory=list)
    gate: asyncio.Event | None = None
    error: ApiError | None = None
    deleted: list[str] = field(default_factory=list)

    async def get_catalog(self) -> ActivityCatalog:
        return self.catalog

    async def add_activity(
        self, credential: str, activity: ActivityCreate
    ) -> ActivityEntry:
        await self._wait()
        entry = ActivityEntry(
            id=f"activity-{len(self.entries) + 1}",
            activity_id=activity.activity_id,
            duration_minutes=activity.duration_minutes,
            calories_burned=321,
        )
        self.entries.append(entry)
        return entry

    async def add_custom_activity(
        self, credential: str, activity: CustomActivityCreate
    ) -> ActivityEntry:
        await self._wait()
        entry = ActivityEntry(
            id=f"activity-{len(self.entries) + 1}",
            name=activity.name,
            calories_burned=activity.calories_burned,
            is_custom=True,
        )
        self.entries.append(entry)
        return entry

    async def delete_activity(self, credential: str, activity_id: str) -> None:
        self.deleted.append(activity_id)
        await self._wait()
        self.entries = [entry for entry in self.entries if entry.id != activity_id]

    async def get_today(self, credential: str) -> list[ActivityEntry]:
        return list(self.entries)

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error


@dataclass
class FakeFeedbackApi(FeedbackApi):
    items: list[FeedbackItem] = field(default_factory=list)
    gate: asyncio.Event | None = None
    error: ApiError | None = None

    async def submit(self, credential: str, feedback: FeedbackCreate) -> FeedbackItem:
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        item = FeedbackItem(
            id=f"feedback-{len(self.items) + 1}",
            user_id="user-1",
            subject=feedback.subject,
            message=feedback.message,
        )
        self.items.insert(0, item)
        return item

    async def get_my(self, credential: str) -> list[FeedbackItem]:
        return list(self.items)


@dataclass
class FakeAdminApi(AdminApi):
    admin: bool = True
    error: ApiError | None = None
    replies: list[tuple[str, str, FeedbackStatus]] = field(default_factory=list)

    async def check_admin(self, credential: str) -> bool:
        if self.error is not None:
            raise self.error
        return self.admin

    async def list_feedbacks(
        self,
        credential: str,
        page: int,
        page_size: int,
        status: FeedbackStatus | None,
    ) -> FeedbackListResponse:
        return FeedbackListResponse(page=page, page_size=page_size)

    async def feedback_stats(self, credential: str) -> FeedbackStats:
        return FeedbackStats(total=3, pending=1, responded=2)

    async def reply_via_telegram(
        self,
        credential: str,
        feedback_id: str,
        admin_response: str,
        status: FeedbackStatus,
    ) -> ReplyResult:
        self.replies.append((feedback_id, admin_response, status))
        return ReplyResult(success=True, message="sent", telegram_sent=False)

    async def send_message(
        self, credential: str, user_id: str, message: str
    ) -> ReplyResult:
        return ReplyResult(success=True, message="sent")

    async def telegram_users(self, credential: str) -> list[AdminTelegramUser]:
        return [AdminTelegramUser(id="user-2", user_type="telegram", telegram_id=42)]


@dataclass
class FakeAnalysisApi(AnalysisApi):
    uploads: list[tuple[bytes, str, str, str | None]] = field(default_factory=list)

    async def analyze(
        self,
        image: bytes,
        filename: str,
        content_type: str,
        prompt: str | None = None,
    ) -> AnalysisResult:
        self.uploads.append((image, filename, content_type, prompt))
        return AnalysisResult(food="Plov", confidence=0.9)

    async def health(self) -> HealthStatus:
        return HealthStatus(status="ok")


async def signed_in_session(
    auth_api: FakeAuthApi | None = None, user: User | None = None
) -> SessionStore:
    """Return an initialized session restored from a persisted credential."""
    api = auth_api or FakeAuthApi()
    if user is not None:
        api.user = user
    snapshot = PersistedSession(credential="persisted-token", user=api.user)
    storage = InMemoryStore({AUTH_KEY: snapshot.model_dump_json()})
    store = SessionStore(auth_api=api, storage=storage)
    await store.initialize()
    return store


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        api_base_url="http://api.test/",
        storage_path=tmp_path / "storage.json",
        query_retry_delay_seconds=0,
    )


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache(retry_delay_seconds=0)
