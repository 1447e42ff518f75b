"""Backend client for activity endpoints."""

from dataclasses import dataclass

from kaloriya_client.adapters.http import HttpxApiTransport, parse_model, parse_rows
from kaloriya_client.domain.models import (
    ActivityCatalog,
    ActivityCreate,
    ActivityEntry,
    CustomActivityCreate,
)
from kaloriya_client.services.activities import ActivitiesApi


@dataclass
class HttpxActivitiesApi(ActivitiesApi):
    """Activities API implemented over the shared HTTPX transport."""

    transport: HttpxApiTransport

    async def get_catalog(self) -> ActivityCatalog:
        """Return the catalog of activity types."""
        payload = await self.transport.get_json("/activities/catalog")
        return parse_model(ActivityCatalog, payload)

    async def add_activity(
        self, credential: str, activity: ActivityCreate
    ) -> ActivityEntry:
        """Log a catalog activity."""
        payload = await self.transport.post_json(
            "/activities", activity.model_dump(exclude_none=True), credential=credential
        )
        return parse_model(ActivityEntry, payload)

    async def add_custom_activity(
        self, credential: str, activity: CustomActivityCreate
    ) -> ActivityEntry:
        """Log an activity with user-supplied calories."""
        payload = await self.transport.post_json(
            "/activities/custom",
            activity.model_dump(exclude_none=True),
            credential=credential,
        )
        return parse_model(ActivityEntry, payload)

    async def delete_activity(self, credential: str, activity_id: str) -> None:
        """Delete a logged activity."""
        await self.transport.delete(f"/activities/{activity_id}", credential=credential)

    async def get_today(self, credential: str) -> list[ActivityEntry]:
        """Return today's activities."""
        payload = await self.transport.get_json(
            "/activities/today", credential=credential
        )
        return parse_rows(ActivityEntry, payload)
