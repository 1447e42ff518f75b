"""Cache of server-owned resources keyed by query parameters."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from kaloriya_client.errors import ApiError

_logger = logging.getLogger(__name__)

QueryKey = tuple[object, ...]
QueryFn = Callable[[], Awaitable[object]]


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _QueryEntry:
    data: object | None = None
    updated_at: datetime | None = None
    last_used: datetime = field(default_factory=_now)
    is_invalidated: bool = False
    task: "asyncio.Task[object] | None" = None

    def is_fresh(self, stale_seconds: float) -> bool:
        if self.updated_at is None or self.is_invalidated:
            return False
        age = _now() - self.updated_at
        return age < timedelta(seconds=stale_seconds)


def matches(key: QueryKey, prefix: QueryKey) -> bool:
    """Return True when `prefix` is a leading slice of `key`."""
    return key[: len(prefix)] == prefix


@dataclass
class QueryCache:
    """Keyed cache with staleness, in-flight deduplication and cancellation.

    All methods run on one event loop; the synchronous ones never yield, so
    a read-modify-write made of them is atomic with respect to other tasks.
    Entries nobody has read or written for `gc_seconds` are dropped.
    """

    retry_attempts: int = 2
    retry_delay_seconds: float = 0.3
    gc_seconds: float = 300
    _entries: dict[QueryKey, _QueryEntry] = field(default_factory=dict, init=False)

    async def fetch(self, key: QueryKey, fn: QueryFn, stale_seconds: float) -> object:
        """Return fresh cached data or fetch it, sharing any in-flight fetch."""
        self.collect_garbage()
        entry = self._entries.setdefault(key, _QueryEntry())
        entry.last_used = _now()
        if entry.task is None and entry.is_fresh(stale_seconds):
            return entry.data
        if entry.task is None:
            entry.task = asyncio.create_task(self._run(key, entry, fn))
        task = entry.task
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and not (current and current.cancelling()):
                return self.get_data(key)
            raise

    def get_data(self, key: QueryKey) -> object | None:
        """Return the cached value for a key without fetching."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        entry.last_used = _now()
        return entry.data

    def set_data(self, key: QueryKey, data: object | None) -> None:
        """Overwrite the cached value for a key and mark it fresh."""
        entry = self._entries.setdefault(key, _QueryEntry())
        entry.data = data
        entry.updated_at = entry.last_used = _now()
        entry.is_invalidated = False

    def is_stale(self, key: QueryKey, stale_seconds: float) -> bool:
        """Return True when the next fetch for a key would hit the network."""
        entry = self._entries.get(key)
        return entry is None or not entry.is_fresh(stale_seconds)

    def is_fetching(self, key: QueryKey) -> bool:
        """Return True while a fetch for the key is in flight."""
        entry = self._entries.get(key)
        return entry is not None and entry.task is not None

    def cancel_fetches(self, prefix: QueryKey) -> list["asyncio.Task[object]"]:
        """Cancel and detach in-flight fetches for every key under a prefix.

        Detached fetches can no longer write, and the next `fetch` of such a
        key starts afresh. Returns the cancelled tasks so callers can await
        their completion.
        """
        tasks = []
        for key, entry in self._entries.items():
            if matches(key, prefix) and entry.task is not None:
                entry.task.cancel()
                tasks.append(entry.task)
                entry.task = None
        return tasks

    async def cancel(self, prefix: QueryKey) -> None:
        """Cancel in-flight fetches under a prefix and wait for them to stop."""
        tasks = self.cancel_fetches(prefix)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def invalidate(self, prefix: QueryKey) -> None:
        """Mark every key under a prefix as stale."""
        for key, entry in self._entries.items():
            if matches(key, prefix):
                entry.is_invalidated = True

    def remove(self, prefix: QueryKey) -> None:
        """Drop every key under a prefix, cancelling their fetches."""
        for key in [key for key in self._entries if matches(key, prefix)]:
            entry = self._entries.pop(key)
            if entry.task is not None:
                entry.task.cancel()

    def clear(self) -> None:
        """Drop every cached entry."""
        self.remove(())

    def collect_garbage(self) -> int:
        """Drop idle entries and return how many were dropped."""
        cutoff = _now() - timedelta(seconds=self.gc_seconds)
        idle = [
            key
            for key, entry in self._entries.items()
            if entry.task is None and entry.last_used <= cutoff
        ]
        for key in idle:
            del self._entries[key]
        if idle:
            _logger.debug("Dropped %s idle cache entries", len(idle))
        return len(idle)

    async def _run(self, key: QueryKey, entry: _QueryEntry, fn: QueryFn) -> object:
        task = asyncio.current_task()
        try:
            data = await self._call_with_retry(key, fn)
        finally:
            owned = entry.task is task
            if owned:
                entry.task = None
        if owned and self._entries.get(key) is entry:
            entry.data = data
            entry.updated_at = _now()
            entry.is_invalidated = False
        return data

    async def _call_with_retry(self, key: QueryKey, fn: QueryFn) -> object:
        """Call a query function with a short retry for retryable failures."""
        attempt = 0
        while True:
            try:
                return await fn()
            except ApiError as exc:
                attempt += 1
                if exc.is_client_error or attempt > self.retry_attempts:
                    raise
                _logger.warning(
                    "Query %s failed (attempt %s/%s, status=%s): %s",
                    key,
                    attempt,
                    self.retry_attempts + 1,
                    exc.status_code if exc.status_code is not None else "n/a",
                    exc.message,
                )
                await asyncio.sleep(self.retry_delay_seconds)
