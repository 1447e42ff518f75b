"""User feedback threads."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from kaloriya_client.domain.models import FeedbackCreate, FeedbackItem
from kaloriya_client.errors import MissingCredentialError
from kaloriya_client.services.mutations import OptimisticMutator, temporary_id
from kaloriya_client.services.query_cache import QueryCache, QueryKey
from kaloriya_client.services.session_store import SessionStore


class FeedbackKeys:
    """Cache keys of the feedback query family."""

    ALL: QueryKey = ("feedbacks",)

    @classmethod
    def my(cls) -> QueryKey:
        """Current user's threads."""
        return (*cls.ALL, "my")


class FeedbackApi(Protocol):
    """Backend operations on the current user's feedback."""

    async def submit(self, credential: str, feedback: FeedbackCreate) -> FeedbackItem:
        """Submit feedback and return the stored thread."""

    async def get_my(self, credential: str) -> list[FeedbackItem]:
        """Return the current user's feedback threads, newest first."""


@dataclass
class FeedbackService:
    """Feedback reads through the cache and optimistic submission."""

    api: FeedbackApi
    session: SessionStore
    cache: QueryCache
    mutator: OptimisticMutator
    stale_seconds: float = 120

    async def my_feedbacks(self) -> list[FeedbackItem] | None:
        """Return the user's threads, or None while the session is not ready."""
        state = self.session.state
        if not state.is_ready:
            return None
        credential = state.credential
        return await self.cache.fetch(
            FeedbackKeys.my(),
            lambda: self.api.get_my(credential),
            self.stale_seconds,
        )

    async def submit_feedback(self, feedback: FeedbackCreate) -> FeedbackItem:
        """Submit feedback, listing it as pending before the server answers."""
        credential = self.session.credential
        user = self.session.user
        if credential is None:
            raise MissingCredentialError()
        now = datetime.now(tz=UTC)
        provisional = FeedbackItem(
            id=temporary_id(),
            user_id=user.id if user else "",
            subject=feedback.subject,
            message=feedback.message,
            rating=feedback.rating,
            category=feedback.category or "general",
            status="pending",
            created_at=now,
            updated_at=now,
        )
        return await self.mutator.run(
            key=FeedbackKeys.my(),
            predict=lambda items: prepend_item(items, provisional),
            request=lambda: self.api.submit(credential, feedback),
            invalidate=(FeedbackKeys.ALL,),
        )


def prepend_item(items: object, item: FeedbackItem) -> object:
    """Put a provisional thread first in a cached list, starting one if empty."""
    if items is None:
        return [item]
    if not isinstance(items, list):
        return items
    return [item, *items]
