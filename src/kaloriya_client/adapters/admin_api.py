"""Backend client for admin endpoints."""

from dataclasses import dataclass

from kaloriya_client.adapters.http import HttpxApiTransport, parse_model, parse_rows
from kaloriya_client.domain.models import (
    AdminTelegramUser,
    FeedbackListResponse,
    FeedbackStats,
    FeedbackStatus,
    ReplyResult,
)
from kaloriya_client.services.admin import AdminApi


@dataclass
class HttpxAdminApi(AdminApi):
    """Admin API implemented over the shared HTTPX transport."""

    transport: HttpxApiTransport

    async def check_admin(self, credential: str) -> bool:
        """Return whether the credential's owner is an admin."""
        payload = await self.transport.get_json(
            "/feedback/admin/check", credential=credential
        )
        return isinstance(payload, dict) and payload.get("is_admin") is True

    async def list_feedbacks(
        self,
        credential: str,
        page: int,
        page_size: int,
        status: FeedbackStatus | None,
    ) -> FeedbackListResponse:
        """Return a page of feedback from all users."""
        params: dict[str, object] = {"page": page, "page_size": page_size}
        if status:
            params["status_filter"] = status
        payload = await self.transport.get_json(
            "/feedback", credential=credential, params=params
        )
        return parse_model(FeedbackListResponse, payload)

    async def feedback_stats(self, credential: str) -> FeedbackStats:
        """Return feedback counters."""
        payload = await self.transport.get_json(
            "/feedback/stats", credential=credential
        )
        return parse_model(FeedbackStats, payload)

    async def reply_via_telegram(
        self,
        credential: str,
        feedback_id: str,
        admin_response: str,
        status: FeedbackStatus,
    ) -> ReplyResult:
        """Answer a feedback thread through the messaging host."""
        payload = await self.transport.post_json(
            f"/feedback/{feedback_id}/reply-telegram",
            {"admin_response": admin_response, "status": status},
            credential=credential,
        )
        return parse_model(ReplyResult, payload)

    async def send_message(
        self, credential: str, user_id: str, message: str
    ) -> ReplyResult:
        """Send a free-form message through the messaging host."""
        payload = await self.transport.post_json(
            "/feedback/send-message",
            {"user_id": user_id, "message": message},
            credential=credential,
        )
        return parse_model(ReplyResult, payload)

    async def telegram_users(self, credential: str) -> list[AdminTelegramUser]:
        """Return users reachable through the messaging host."""
        payload = await self.transport.get_json(
            "/feedback/admin/users", credential=credential
        )
        return parse_rows(AdminTelegramUser, payload)
