"""History view preferences.

Only the view mode and day window survive restarts; the range dates and
the selected day reset on every launch.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from kaloriya_client.services.storage import KeyValueStore

_logger = logging.getLogger(__name__)

HistoryViewMode = Literal["list", "range"]

DEFAULT_RANGE_DAYS = 7


class PersistedPreferences(BaseModel):
    """Durable part of the history preferences."""

    view_mode: HistoryViewMode = "list"
    days: int = Field(default=7, ge=1)


def default_range(today: date | None = None) -> tuple[str, str]:
    """Return the start and end dates of the default history range."""
    end = today or date.today()
    start = end - timedelta(days=DEFAULT_RANGE_DAYS)
    return start.isoformat(), end.isoformat()


@dataclass(frozen=True)
class HistoryPreferences:
    """History screen state."""

    view_mode: HistoryViewMode = "list"
    days: int = 7
    start_date: str = field(default_factory=lambda: default_range()[0])
    end_date: str = field(default_factory=lambda: default_range()[1])
    selected_date: str | None = None


@dataclass
class PreferencesStore:
    """Holds history preferences and persists the durable part."""

    storage: KeyValueStore
    storage_key: str = "kaloriya-ui"
    _current: HistoryPreferences = field(default_factory=HistoryPreferences, init=False)

    @property
    def current(self) -> HistoryPreferences:
        """Return the current preferences."""
        return self._current

    async def load(self) -> HistoryPreferences:
        """Read persisted preferences, keeping defaults for anything unreadable."""
        raw = await self.storage.get(self.storage_key)
        if raw:
            try:
                persisted = PersistedPreferences.model_validate_json(raw)
            except ValidationError:
                _logger.warning("Discarding unreadable UI preferences")
            else:
                self._current = replace(
                    self._current, view_mode=persisted.view_mode, days=persisted.days
                )
        return self._current

    async def set_view_mode(self, view_mode: HistoryViewMode) -> None:
        """Switch the history view and persist it."""
        self._current = replace(self._current, view_mode=view_mode)
        await self._persist()

    async def set_days(self, days: int) -> None:
        """Change the history window and persist it."""
        if days < 1:
            raise ValueError("days must be positive")
        self._current = replace(self._current, days=days)
        await self._persist()

    def set_range(self, start_date: str, end_date: str) -> None:
        """Set the transient range dates."""
        self._current = replace(self._current, start_date=start_date, end_date=end_date)

    def reset_range(self) -> None:
        """Reset the range to the last seven days."""
        start_date, end_date = default_range()
        self.set_range(start_date, end_date)

    def select_date(self, day: str | None) -> None:
        """Select the day shown in detail."""
        self._current = replace(self._current, selected_date=day)

    async def _persist(self) -> None:
        persisted = PersistedPreferences(
            view_mode=self._current.view_mode, days=self._current.days
        )
        await self.storage.set(self.storage_key, persisted.model_dump_json())
