"""Session state and its pure transitions."""

import logging
from dataclasses import dataclass, replace

from pydantic import BaseModel, ValidationError

from kaloriya_client.domain.models import AuthResponse, User

_logger = logging.getLogger(__name__)

_REGISTERED_TYPES = frozenset({"registered", "telegram"})


@dataclass(frozen=True)
class SessionState:
    """Snapshot of who is acting and how far initialization got."""

    user: User | None = None
    credential: str | None = None
    is_loading: bool = True
    is_initialized: bool = False
    is_embedded_client: bool = False

    @property
    def is_authenticated(self) -> bool:
        """Return True when a user identity is present."""
        return self.user is not None

    @property
    def is_registered(self) -> bool:
        """Return True for users that can recover their account."""
        return self.user is not None and self.user.user_type in _REGISTERED_TYPES

    @property
    def is_ready(self) -> bool:
        """Return True when gated queries may run."""
        return self.is_initialized and self.credential is not None


class PersistedSession(BaseModel):
    """Durable slot contents: credential plus last-known user."""

    credential: str | None = None
    user: User | None = None


def with_auth(state: SessionState, response: AuthResponse) -> SessionState:
    """Adopt a freshly issued credential and user together."""
    return replace(state, credential=response.access_token, user=response.user)


def with_user(state: SessionState, user: User | None) -> SessionState:
    """Replace the user while keeping the credential."""
    return replace(state, user=user)


def cleared(state: SessionState) -> SessionState:
    """Forget the credential and user."""
    return replace(state, credential=None, user=None)


def loading(state: SessionState, *, embedded: bool) -> SessionState:
    """Mark initialization as in progress."""
    return replace(state, is_loading=True, is_embedded_client=embedded)


def settled(state: SessionState) -> SessionState:
    """Mark initialization as finished, whatever its outcome."""
    return replace(state, is_loading=False, is_initialized=True)


def restored(state: SessionState, snapshot: PersistedSession) -> SessionState:
    """Load the persisted credential and user into the state."""
    return replace(state, credential=snapshot.credential, user=snapshot.user)


def to_snapshot(state: SessionState) -> PersistedSession:
    """Return the durable part of the state."""
    return PersistedSession(credential=state.credential, user=state.user)


def parse_snapshot(raw: str | None) -> PersistedSession:
    """Parse the durable slot, treating corrupt content as empty."""
    if not raw:
        return PersistedSession()
    try:
        snapshot = PersistedSession.model_validate_json(raw)
    except ValidationError:
        _logger.warning("Discarding unreadable persisted session")
        return PersistedSession()
    if snapshot.credential is None:
        return PersistedSession()
    return snapshot
