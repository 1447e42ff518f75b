"""Optimistic mutations over the query cache."""

import asyncio
import itertools
import logging
import time
from collections.abc import Awaitable, Callable, Hashable, Iterable
from dataclasses import dataclass, field
from typing import TypeVar

from kaloriya_client.services.query_cache import QueryCache, QueryKey

_logger = logging.getLogger(__name__)

T = TypeVar("T")

_temp_counter = itertools.count(1)


def temporary_id() -> str:
    """Return a placeholder id for a record the server has not confirmed."""
    return f"temp-{int(time.time() * 1000)}-{next(_temp_counter)}"


def is_temporary_id(record_id: str) -> bool:
    """Return True for ids produced by `temporary_id`."""
    return record_id.startswith("temp-")


@dataclass
class OptimisticMutator:
    """Applies predicted cache edits around a request.

    The edit is written before the request is sent, restored from a snapshot
    if the request fails, and every related key is invalidated once the
    request settles either way.
    """

    cache: QueryCache
    _locks: dict[Hashable, asyncio.Lock] = field(default_factory=dict, init=False)
    _waiters: dict[Hashable, int] = field(default_factory=dict, init=False)

    async def run(  # noqa: PLR0913
        self,
        *,
        key: QueryKey,
        predict: Callable[[object], object],
        request: Callable[[], Awaitable[T]],
        invalidate: Iterable[QueryKey],
        serialize_on: Hashable | None = None,
    ) -> T:
        """Run `request` with an optimistic edit of the entry at `key`.

        `predict` receives the cached value, or None when nothing is cached,
        and returns the value to show meanwhile; None leaves the entry alone.
        Mutations sharing a `serialize_on` token run one after another, so a
        second mutation snapshots the cache only after the first one settled.
        """
        if serialize_on is None:
            return await self._apply(key, predict, request, tuple(invalidate))
        lock = self._locks.setdefault(serialize_on, asyncio.Lock())
        self._waiters[serialize_on] = self._waiters.get(serialize_on, 0) + 1
        try:
            async with lock:
                return await self._apply(key, predict, request, tuple(invalidate))
        finally:
            self._waiters[serialize_on] -= 1
            if not self._waiters[serialize_on]:
                del self._waiters[serialize_on]
                self._locks.pop(serialize_on, None)

    async def _apply(
        self,
        key: QueryKey,
        predict: Callable[[object], object],
        request: Callable[[], Awaitable[T]],
        invalidate: tuple[QueryKey, ...],
    ) -> T:
        # Nothing below may yield before the predicted value is written.
        cancelled = self.cache.cancel_fetches(key)
        snapshot = self.cache.get_data(key)
        predicted = predict(snapshot)
        if predicted is not None:
            self.cache.set_data(key, predicted)
        try:
            if cancelled:
                await asyncio.gather(*cancelled, return_exceptions=True)
            return await request()
        except BaseException:
            # Includes cancellation.
            if snapshot is not None:
                self.cache.set_data(key, snapshot)
            elif predicted is not None:
                self.cache.remove(key)
            _logger.info("Rolled back optimistic edit of %s", key)
            raise
        finally:
            for prefix in invalidate:
                self.cache.invalidate(prefix)
