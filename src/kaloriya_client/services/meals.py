"""Meal queries and optimistic meal mutations."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from kaloriya_client.domain.models import (
    DailyLog,
    DailyLogSummary,
    DateRangeStats,
    FoodStats,
    MealCreate,
    MealEntry,
    today_iso,
)
from kaloriya_client.errors import MissingCredentialError
from kaloriya_client.services.mutations import OptimisticMutator, temporary_id
from kaloriya_client.services.query_cache import QueryCache, QueryKey
from kaloriya_client.services.session_store import SessionStore


class MealKeys:
    """Cache keys of the meal query family."""

    ALL: QueryKey = ("meals",)

    @classmethod
    def today(cls) -> QueryKey:
        """Today's log."""
        return (*cls.ALL, "today")

    @classmethod
    def date(cls, day: str) -> QueryKey:
        """Log of one date."""
        return (*cls.ALL, "date", day)

    @classmethod
    def history(cls, days: int) -> QueryKey:
        """Per-day summaries."""
        return (*cls.ALL, "history", days)

    @classmethod
    def food_stats(cls, days: int, limit: int) -> QueryKey:
        """Most eaten foods."""
        return (*cls.ALL, "foodStats", days, limit)

    @classmethod
    def range_stats(cls, start_date: str, end_date: str) -> QueryKey:
        """Statistics over a date range."""
        return (*cls.ALL, "rangeStats", start_date, end_date)


class MealsApi(Protocol):
    """Backend operations on meals and their rollups."""

    async def add_meal(self, credential: str, meal: MealCreate) -> MealEntry:
        """Create a meal and return the stored record."""

    async def delete_meal(self, credential: str, meal_id: str) -> None:
        """Delete a meal."""

    async def get_today(self, credential: str) -> DailyLog:
        """Return today's log."""

    async def get_by_date(self, credential: str, day: str) -> DailyLog:
        """Return the log of a given date."""

    async def get_history(self, credential: str, days: int) -> list[DailyLogSummary]:
        """Return per-day summaries for the last `days` days."""

    async def get_range_stats(
        self, credential: str, start_date: str, end_date: str
    ) -> DateRangeStats:
        """Return statistics over an inclusive date range."""

    async def get_food_stats(
        self, credential: str, days: int, limit: int
    ) -> list[FoodStats]:
        """Return the most eaten foods."""


@dataclass
class MealService:
    """Meal reads through the cache and optimistic meal writes."""

    api: MealsApi
    session: SessionStore
    cache: QueryCache
    mutator: OptimisticMutator
    today_stale_seconds: float = 120
    day_stale_seconds: float = 300
    history_stale_seconds: float = 300
    stats_stale_seconds: float = 600

    async def today(self) -> DailyLog | None:
        """Return today's log, or None while the session is not ready."""
        credential = self._enabled_credential()
        if credential is None:
            return None
        return await self.cache.fetch(
            MealKeys.today(),
            lambda: self.api.get_today(credential),
            self.today_stale_seconds,
        )

    async def by_date(self, day: str) -> DailyLog | None:
        """Return the log of a date, or None while disabled."""
        credential = self._enabled_credential()
        if credential is None or not day:
            return None
        return await self.cache.fetch(
            MealKeys.date(day),
            lambda: self.api.get_by_date(credential, day),
            self.day_stale_seconds,
        )

    async def history(self, days: int = 7) -> list[DailyLogSummary] | None:
        """Return per-day summaries, or None while disabled."""
        credential = self._enabled_credential()
        if credential is None:
            return None
        return await self.cache.fetch(
            MealKeys.history(days),
            lambda: self.api.get_history(credential, days),
            self.history_stale_seconds,
        )

    async def food_stats(
        self, days: int = 30, limit: int = 10
    ) -> list[FoodStats] | None:
        """Return the most eaten foods, or None while disabled."""
        credential = self._enabled_credential()
        if credential is None:
            return None
        return await self.cache.fetch(
            MealKeys.food_stats(days, limit),
            lambda: self.api.get_food_stats(credential, days, limit),
            self.stats_stale_seconds,
        )

    async def range_stats(
        self, start_date: str, end_date: str
    ) -> DateRangeStats | None:
        """Return range statistics, or None while disabled."""
        credential = self._enabled_credential()
        if credential is None or not start_date or not end_date:
            return None
        return await self.cache.fetch(
            MealKeys.range_stats(start_date, end_date),
            lambda: self.api.get_range_stats(credential, start_date, end_date),
            self.stats_stale_seconds,
        )

    async def add_meal(self, meal: MealCreate) -> MealEntry:
        """Log a meal, showing it in the day's log before the server answers."""
        credential = self._require_credential()
        provisional = MealEntry(
            id=temporary_id(),
            food_name=meal.food_name,
            weight_grams=meal.weight_grams,
            calories=meal.calories,
            protein=meal.protein,
            carbs=meal.carbs,
            fat=meal.fat,
            image_preview=meal.image_preview,
            timestamp=datetime.now(tz=UTC),
            date=meal.date,
        )
        return await self.mutator.run(
            key=self._day_key(meal.date),
            predict=lambda log: add_meal_to_log(log, provisional),
            request=lambda: self.api.add_meal(credential, meal),
            invalidate=(MealKeys.ALL,),
        )

    async def delete_meal(self, meal_id: str, day: str | None = None) -> None:
        """Delete a meal, removing it from the day's log immediately.

        Deletes of the same meal are serialized.
        """
        credential = self._require_credential()
        await self.mutator.run(
            key=self._day_key(day),
            predict=lambda log: remove_meal_from_log(log, meal_id),
            request=lambda: self.api.delete_meal(credential, meal_id),
            invalidate=(MealKeys.ALL,),
            serialize_on=("meal", meal_id),
        )

    def _day_key(self, day: str | None) -> QueryKey:
        if day is None or day == today_iso():
            return MealKeys.today()
        today_log = self.cache.get_data(MealKeys.today())
        if isinstance(today_log, DailyLog) and today_log.date == day:
            return MealKeys.today()
        return MealKeys.date(day)

    def _enabled_credential(self) -> str | None:
        state = self.session.state
        return state.credential if state.is_ready else None

    def _require_credential(self) -> str:
        credential = self.session.credential
        if credential is None:
            raise MissingCredentialError()
        return credential


def add_meal_to_log(log: object, meal: MealEntry) -> object:
    """Append a meal to a cached day and add its macros to the totals."""
    if not isinstance(log, DailyLog):
        return log
    return log.model_copy(
        update={
            "meals": [*log.meals, meal],
            "total_calories": log.total_calories + meal.calories,
            "total_protein": log.total_protein + meal.protein,
            "total_carbs": log.total_carbs + meal.carbs,
            "total_fat": log.total_fat + meal.fat,
        }
    )


def remove_meal_from_log(log: object, meal_id: str) -> object:
    """Drop a meal from a cached day and subtract its macros.

    The log is returned unchanged when the meal is not in it.
    """
    if not isinstance(log, DailyLog):
        return log
    meal = next((entry for entry in log.meals if entry.id == meal_id), None)
    if meal is None:
        return log
    return log.model_copy(
        update={
            "meals": [entry for entry in log.meals if entry.id != meal_id],
            "total_calories": log.total_calories - meal.calories,
            "total_protein": log.total_protein - meal.protein,
            "total_carbs": log.total_carbs - meal.carbs,
            "total_fat": log.total_fat - meal.fat,
        }
    )
