"""Admin operations on feedback and messaging-host users."""

import logging
from dataclasses import dataclass
from typing import Protocol

from kaloriya_client.domain.models import (
    AdminTelegramUser,
    FeedbackListResponse,
    FeedbackStats,
    FeedbackStatus,
    ReplyResult,
)
from kaloriya_client.errors import ApiError, MissingCredentialError
from kaloriya_client.services.session_store import SessionStore

_logger = logging.getLogger(__name__)


class AdminApi(Protocol):
    """Backend operations restricted to admins."""

    async def check_admin(self, credential: str) -> bool:
        """Return whether the credential's owner is an admin."""

    async def list_feedbacks(
        self,
        credential: str,
        page: int,
        page_size: int,
        status: FeedbackStatus | None,
    ) -> FeedbackListResponse:
        """Return a page of feedback from all users."""

    async def feedback_stats(self, credential: str) -> FeedbackStats:
        """Return feedback counters."""

    async def reply_via_telegram(
        self,
        credential: str,
        feedback_id: str,
        admin_response: str,
        status: FeedbackStatus,
    ) -> ReplyResult:
        """Answer a feedback thread and forward the answer to its author."""

    async def send_message(
        self, credential: str, user_id: str, message: str
    ) -> ReplyResult:
        """Send a free-form message to a user through the messaging host."""

    async def telegram_users(self, credential: str) -> list[AdminTelegramUser]:
        """Return users reachable through the messaging host."""


@dataclass
class AdminService:
    """Admin console operations for the signed-in user."""

    api: AdminApi
    session: SessionStore

    async def is_admin(self) -> bool:
        """Return admin status, treating any failure as not an admin."""
        credential = self.session.credential
        if credential is None:
            return False
        try:
            return await self.api.check_admin(credential)
        except ApiError as exc:
            _logger.info("Admin check failed: %s", exc.message)
            return False

    async def list_feedbacks(
        self,
        page: int = 1,
        page_size: int = 20,
        status: FeedbackStatus | None = None,
    ) -> FeedbackListResponse:
        """Return one page of all users' feedback, optionally by status."""
        return await self.api.list_feedbacks(
            self._require_credential(), page, page_size, status
        )

    async def feedback_stats(self) -> FeedbackStats:
        """Return feedback counts per status."""
        return await self.api.feedback_stats(self._require_credential())

    async def reply_via_telegram(
        self,
        feedback_id: str,
        admin_response: str,
        status: FeedbackStatus = "responded",
    ) -> ReplyResult:
        """Answer a feedback thread and notify its author in Telegram."""
        result = await self.api.reply_via_telegram(
            self._require_credential(), feedback_id, admin_response, status
        )
        if result.telegram_sent is False:
            _logger.warning("Reply to feedback %s was not delivered", feedback_id)
        return result

    async def send_message(self, user_id: str, message: str) -> ReplyResult:
        """Send a direct Telegram message to a user."""
        return await self.api.send_message(self._require_credential(), user_id, message)

    async def telegram_users(self) -> list[AdminTelegramUser]:
        """Return users reachable through Telegram."""
        return await self.api.telegram_users(self._require_credential())

    def _require_credential(self) -> str:
        credential = self.session.credential
        if credential is None:
            raise MissingCredentialError()
        return credential
