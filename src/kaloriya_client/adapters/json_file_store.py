"""JSON file implementation of the durable key-value store."""

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from kaloriya_client.services.storage import KeyValueStore

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileStore(KeyValueStore):
    """Keeps all slots in one JSON object on disk.

    Reads and writes run in a worker thread; writes replace the file
    atomically so a crash never leaves a truncated document.
    """

    path: Path
    _write_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def get(self, key: str) -> str | None:
        """Return the stored value, if present."""
        values = await asyncio.to_thread(self._read)
        value = values.get(key)
        return value if isinstance(value, str) else None

    async def set(self, key: str, value: str) -> None:
        """Store a value under a key."""
        async with self._write_lock:
            await asyncio.to_thread(self._update, key, value)

    async def delete(self, key: str) -> None:
        """Remove a key if present."""
        async with self._write_lock:
            await asyncio.to_thread(self._update, key, None)

    def _read(self) -> dict[str, object]:
        try:
            values = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (UnicodeDecodeError, json.JSONDecodeError):
            _logger.warning("Ignoring corrupt storage file %s", self.path)
            return {}
        return values if isinstance(values, dict) else {}

    def _update(self, key: str, value: str | None) -> None:
        values = self._read()
        if value is None:
            values.pop(key, None)
        else:
            values[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(values), encoding="utf-8")
        os.replace(tmp_path, self.path)
