"""Durable key-value storage abstractions."""

from dataclasses import dataclass, field
from typing import Protocol


class KeyValueStore(Protocol):
    """Durable string slots that survive restarts."""

    async def get(self, key: str) -> str | None:
        """Return the stored value, if present."""

    async def set(self, key: str, value: str) -> None:
        """Store a value under a key."""

    async def delete(self, key: str) -> None:
        """Remove a key if present."""


@dataclass
class InMemoryStore(KeyValueStore):
    """Process-local store, used when no durable location is configured."""

    values: dict[str, str] = field(default_factory=dict)

    async def get(self, key: str) -> str | None:
        """Return the stored value, if present."""
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        """Store a value under a key."""
        self.values[key] = value

    async def delete(self, key: str) -> None:
        """Remove a key if present."""
        self.values.pop(key, None)
