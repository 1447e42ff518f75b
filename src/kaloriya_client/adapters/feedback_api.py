"""Backend client for the user's feedback endpoints."""

from dataclasses import dataclass

from kaloriya_client.adapters.http import HttpxApiTransport, parse_model, parse_rows
from kaloriya_client.domain.models import FeedbackCreate, FeedbackItem
from kaloriya_client.services.feedback import FeedbackApi


@dataclass
class HttpxFeedbackApi(FeedbackApi):
    """Feedback API implemented over the shared HTTPX transport."""

    transport: HttpxApiTransport

    async def submit(self, credential: str, feedback: FeedbackCreate) -> FeedbackItem:
        """Submit feedback and return the stored thread."""
        payload = await self.transport.post_json(
            "/feedback", feedback.model_dump(exclude_none=True), credential=credential
        )
        return parse_model(FeedbackItem, payload)

    async def get_my(self, credential: str) -> list[FeedbackItem]:
        """Return the current user's feedback threads."""
        payload = await self.transport.get_json("/feedback/my", credential=credential)
        return parse_rows(FeedbackItem, payload)
