"""Telegram Mini App host integration."""

from dataclasses import dataclass

from kaloriya_client.services.session_store import EmbeddedHost


@dataclass(frozen=True)
class StaticEmbeddedHost(EmbeddedHost):
    """Host that hands out init data supplied at startup."""

    raw_init_data: str | None = None

    def init_data(self) -> str | None:
        """Return the signed payload, or None outside the host."""
        if self.raw_init_data and self.raw_init_data.strip():
            return self.raw_init_data
        return None
