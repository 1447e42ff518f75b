"""Activity catalog, today's activities and optimistic activity mutations."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from kaloriya_client.domain.energy import activity_calories
from kaloriya_client.domain.models import (
    ActivityCatalog,
    ActivityCreate,
    ActivityEntry,
    CustomActivityCreate,
    today_iso,
)
from kaloriya_client.errors import MissingCredentialError
from kaloriya_client.services.meals import MealKeys
from kaloriya_client.services.mutations import OptimisticMutator, temporary_id
from kaloriya_client.services.query_cache import QueryCache, QueryKey
from kaloriya_client.services.session_store import SessionStore


class ActivityKeys:
    """Cache keys of the activity query family."""

    ALL: QueryKey = ("activities",)

    @classmethod
    def today(cls) -> QueryKey:
        """Today's activities."""
        return (*cls.ALL, "today")

    @classmethod
    def catalog(cls) -> QueryKey:
        """Activity catalog."""
        return (*cls.ALL, "catalog")


class ActivitiesApi(Protocol):
    """Backend operations on activities."""

    async def get_catalog(self) -> ActivityCatalog:
        """Return the catalog of activity types."""

    async def add_activity(
        self, credential: str, activity: ActivityCreate
    ) -> ActivityEntry:
        """Log a catalog activity."""

    async def add_custom_activity(
        self, credential: str, activity: CustomActivityCreate
    ) -> ActivityEntry:
        """Log an activity with user-supplied calories."""

    async def delete_activity(self, credential: str, activity_id: str) -> None:
        """Delete a logged activity."""

    async def get_today(self, credential: str) -> list[ActivityEntry]:
        """Return today's activities."""


@dataclass
class ActivityService:
    """Activity reads through the cache and optimistic activity writes.

    Activities change the day's burned calories, so every write also
    invalidates the meal family.
    """

    api: ActivitiesApi
    session: SessionStore
    cache: QueryCache
    mutator: OptimisticMutator
    activities_stale_seconds: float = 300
    catalog_stale_seconds: float = 3600

    async def catalog(self) -> ActivityCatalog:
        """Return the activity catalog; it is public and not gated."""
        return await self.cache.fetch(
            ActivityKeys.catalog(), self.api.get_catalog, self.catalog_stale_seconds
        )

    async def today(self) -> list[ActivityEntry] | None:
        """Return today's activities, or None while the session is not ready."""
        state = self.session.state
        if not state.is_ready:
            return None
        credential = state.credential
        return await self.cache.fetch(
            ActivityKeys.today(),
            lambda: self.api.get_today(credential),
            self.activities_stale_seconds,
        )

    async def add_activity(self, activity: ActivityCreate) -> ActivityEntry:
        """Log a catalog activity with a provisional calorie estimate."""
        credential = self._require_credential()
        provisional = ActivityEntry(
            id=temporary_id(),
            activity_id=activity.activity_id,
            duration_minutes=activity.duration_minutes,
            distance_km=activity.distance_km,
            calories_burned=self.estimate_calories(
                activity.activity_id, activity.duration_minutes
            ),
            timestamp=datetime.now(tz=UTC),
            date=activity.date or today_iso(),
        )
        return await self.mutator.run(
            key=ActivityKeys.today(),
            predict=lambda entries: append_entry(entries, provisional),
            request=lambda: self.api.add_activity(credential, activity),
            invalidate=(ActivityKeys.ALL, MealKeys.ALL),
        )

    async def add_custom_activity(
        self, activity: CustomActivityCreate
    ) -> ActivityEntry:
        """Log an activity whose calories the user entered."""
        credential = self._require_credential()
        provisional = ActivityEntry(
            id=temporary_id(),
            name=activity.name,
            duration_minutes=activity.duration_minutes,
            calories_burned=activity.calories_burned,
            timestamp=datetime.now(tz=UTC),
            date=activity.date or today_iso(),
            is_custom=True,
        )
        return await self.mutator.run(
            key=ActivityKeys.today(),
            predict=lambda entries: append_entry(entries, provisional),
            request=lambda: self.api.add_custom_activity(credential, activity),
            invalidate=(ActivityKeys.ALL, MealKeys.ALL),
        )

    async def delete_activity(self, activity_id: str) -> None:
        """Delete an activity, removing it from today's list immediately."""
        credential = self._require_credential()
        await self.mutator.run(
            key=ActivityKeys.today(),
            predict=lambda entries: remove_entry(entries, activity_id),
            request=lambda: self.api.delete_activity(credential, activity_id),
            invalidate=(ActivityKeys.ALL, MealKeys.ALL),
            serialize_on=("activity", activity_id),
        )

    def estimate_calories(self, activity_id: str, duration_minutes: float) -> float:
        """Estimate burned calories from the cached catalog and user weight.

        Returns 0 when either is unknown; the server computes the real value.
        """
        catalog = self.cache.get_data(ActivityKeys.catalog())
        user = self.session.user
        if not isinstance(catalog, ActivityCatalog) or user is None:
            return 0
        entry = catalog.find(activity_id)
        if entry is None or user.weight_kg is None:
            return 0
        return activity_calories(entry.met, user.weight_kg, duration_minutes)

    def _require_credential(self) -> str:
        credential = self.session.credential
        if credential is None:
            raise MissingCredentialError()
        return credential


def append_entry(entries: object, entry: ActivityEntry) -> object:
    """Add a provisional entry to a cached activity list."""
    if not isinstance(entries, list):
        return entries
    return [*entries, entry]


def remove_entry(entries: object, activity_id: str) -> object:
    """Drop an entry from a cached activity list."""
    if not isinstance(entries, list):
        return entries
    return [entry for entry in entries if entry.id != activity_id]
