"""Backend client for meal endpoints."""

from dataclasses import dataclass

from kaloriya_client.adapters.http import HttpxApiTransport, parse_model, parse_rows
from kaloriya_client.domain.models import (
    DailyLog,
    DailyLogSummary,
    DateRangeStats,
    FoodStats,
    MealCreate,
    MealEntry,
)
from kaloriya_client.services.meals import MealsApi


@dataclass
class HttpxMealsApi(MealsApi):
    """Meals API implemented over the shared HTTPX transport."""

    transport: HttpxApiTransport

    async def add_meal(self, credential: str, meal: MealCreate) -> MealEntry:
        """Create a meal and return the stored record."""
        payload = await self.transport.post_json(
            "/meals", meal.model_dump(exclude_none=True), credential=credential
        )
        return parse_model(MealEntry, payload)

    async def delete_meal(self, credential: str, meal_id: str) -> None:
        """Delete a meal."""
        await self.transport.delete(f"/meals/{meal_id}", credential=credential)

    async def get_today(self, credential: str) -> DailyLog:
        """Return today's log."""
        payload = await self.transport.get_json("/meals/today", credential=credential)
        return parse_model(DailyLog, payload)

    async def get_by_date(self, credential: str, day: str) -> DailyLog:
        """Return the log of a given date."""
        payload = await self.transport.get_json(
            f"/meals/date/{day}", credential=credential
        )
        return parse_model(DailyLog, payload)

    async def get_history(self, credential: str, days: int) -> list[DailyLogSummary]:
        """Return per-day summaries for the last days."""
        payload = await self.transport.get_json(
            "/meals/history", credential=credential, params={"days": days}
        )
        return parse_rows(DailyLogSummary, payload)

    async def get_range_stats(
        self, credential: str, start_date: str, end_date: str
    ) -> DateRangeStats:
        """Return statistics over an inclusive date range."""
        payload = await self.transport.get_json(
            "/meals/stats/range",
            credential=credential,
            params={"start_date": start_date, "end_date": end_date},
        )
        return parse_model(DateRangeStats, payload)

    async def get_food_stats(
        self, credential: str, days: int, limit: int
    ) -> list[FoodStats]:
        """Return the most eaten foods."""
        payload = await self.transport.get_json(
            "/meals/stats/foods",
            credential=credential,
            params={"days": days, "limit": limit},
        )
        return parse_rows(FoodStats, payload)
