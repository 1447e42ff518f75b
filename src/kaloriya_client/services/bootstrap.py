"""Startup and sign-out flows around the session store."""

import logging
from dataclasses import dataclass

from kaloriya_client.domain.session import SessionState
from kaloriya_client.errors import ApiError
from kaloriya_client.services.query_cache import QueryCache
from kaloriya_client.services.session_store import SessionStore

_logger = logging.getLogger(__name__)


@dataclass
class SessionBootstrapper:
    """Decides when to provision a device-local identity.

    The session store never provisions one by itself; this collaborator does
    it when startup or sign-out leaves the client without a credential.
    """

    session: SessionStore
    cache: QueryCache

    async def start(self) -> SessionState:
        """Initialize the session and fall back to an anonymous identity."""
        await self.session.initialize()
        if self.session.credential is None:
            await self._provision()
        return self.session.state

    async def sign_out(self) -> SessionState:
        """Forget the current account and continue anonymously."""
        await self.session.logout()
        self.cache.clear()
        await self._provision()
        return self.session.state

    async def _provision(self) -> None:
        try:
            await self.session.provision_anonymous()
        except ApiError as exc:
            _logger.warning("Could not create an anonymous session: %s", exc.message)
