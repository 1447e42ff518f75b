"""Tests for feedback submission."""

import asyncio

import pytest

from kaloriya_client.domain.models import FeedbackCreate, FeedbackItem
from kaloriya_client.errors import ApiError
from kaloriya_client.services.feedback import FeedbackKeys, FeedbackService
from kaloriya_client.services.mutations import OptimisticMutator, is_temporary_id
from kaloriya_client.services.query_cache import QueryCache
from kaloriya_client.services.session_store import SessionStore
from tests.conftest import FakeFeedbackApi, signed_in_session

REPORT = FeedbackCreate(subject="Bug", message="Totals are off", rating=4)
EARLIER = FeedbackItem(id="fb-0", user_id="user-1", subject="Hi", message="Thanks")


def _service(session: SessionStore, api: FakeFeedbackApi) -> FeedbackService:
    cache = QueryCache(retry_delay_seconds=0)
    return FeedbackService(
        api=api, session=session, cache=cache, mutator=OptimisticMutator(cache)
    )


def test_submitted_feedback_is_listed_first_while_pending() -> None:
    gate = asyncio.Event()
    api = FakeFeedbackApi(items=[EARLIER], gate=gate)

    async def scenario():  # type: ignore[no-untyped-def]
        service = _service(await signed_in_session(), api)
        await service.my_feedbacks()
        task = asyncio.create_task(service.submit_feedback(REPORT))
        await asyncio.sleep(0)
        during = service.cache.get_data(FeedbackKeys.my())
        gate.set()
        await task
        return service, during, await service.my_feedbacks()

    service, during, refreshed = asyncio.run(scenario())

    assert isinstance(during, list)
    assert is_temporary_id(during[0].id)
    assert during[0].status == "pending"
    assert during[0].user_id == "user-1"
    assert during[1] == EARLIER
    assert [item.id for item in refreshed] == ["feedback-2", "fb-0"]


def test_failed_submission_restores_list() -> None:
    api = FakeFeedbackApi(items=[EARLIER], error=ApiError("Too many requests", 429))

    async def scenario():  # type: ignore[no-untyped-def]
        service = _service(await signed_in_session(), api)
        before = await service.my_feedbacks()
        with pytest.raises(ApiError):
            await service.submit_feedback(REPORT)
        return before, service.cache.get_data(FeedbackKeys.my())

    before, after = asyncio.run(scenario())

    assert after == before == [EARLIER]


def test_first_submission_starts_the_list_before_any_read() -> None:
    gate = asyncio.Event()
    api = FakeFeedbackApi(gate=gate)

    async def scenario():  # type: ignore[no-untyped-def]
        service = _service(await signed_in_session(), api)
        task = asyncio.create_task(service.submit_feedback(REPORT))
        await asyncio.sleep(0)
        during = service.cache.get_data(FeedbackKeys.my())
        gate.set()
        await task
        return during, await service.my_feedbacks()

    during, refreshed = asyncio.run(scenario())

    assert isinstance(during, list)
    assert len(during) == 1
    assert is_temporary_id(during[0].id)
    assert [item.id for item in refreshed] == ["feedback-1"]


def test_failed_first_submission_leaves_nothing_cached() -> None:
    api = FakeFeedbackApi(error=ApiError("Server error occurred", 500))

    async def scenario():  # type: ignore[no-untyped-def]
        service = _service(await signed_in_session(), api)
        with pytest.raises(ApiError):
            await service.submit_feedback(REPORT)
        return service.cache.get_data(FeedbackKeys.my())

    assert asyncio.run(scenario()) is None


def test_rating_is_bounded() -> None:
    with pytest.raises(ValueError):
        FeedbackCreate(subject="Bug", message="x", rating=6)
