"""Session store owning the credential, the user and their lifecycle."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from kaloriya_client.domain.embedded import parse_init_data
from kaloriya_client.domain.energy import recompute_energy
from kaloriya_client.domain.models import AuthResponse, ProfileUpdate, User
from kaloriya_client.domain.session import (
    PersistedSession,
    SessionState,
    cleared,
    loading,
    parse_snapshot,
    restored,
    settled,
    to_snapshot,
    with_auth,
    with_user,
)
from kaloriya_client.errors import ApiError, MissingCredentialError
from kaloriya_client.services.storage import KeyValueStore

_logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionState], None]


class AuthApi(Protocol):
    """Backend operations that issue or inspect credentials."""

    async def create_anonymous(self) -> AuthResponse:
        """Provision a device-local identity."""

    async def login(self, email: str, password: str) -> AuthResponse:
        """Exchange email and password for a session."""

    async def register(
        self, email: str, password: str, name: str | None = None
    ) -> AuthResponse:
        """Create a registered account."""

    async def convert(
        self, credential: str, email: str, password: str, name: str | None = None
    ) -> AuthResponse:
        """Upgrade the current anonymous identity to a registered one."""

    async def get_me(self, credential: str) -> User:
        """Fetch the profile of the credential's owner."""

    async def update_me(self, credential: str, fields: dict[str, object]) -> User:
        """Update profile fields and return the stored profile."""

    async def refresh(self, credential: str) -> AuthResponse:
        """Exchange a credential for a fresh one."""

    async def embedded_login(self, init_data: str) -> AuthResponse:
        """Sign in with a host-signed identity payload."""

    async def embedded_link(self, credential: str, init_data: str) -> AuthResponse:
        """Attach a host identity to the current account."""


class EmbeddedHost(Protocol):
    """Messaging-app container that may host the client."""

    def init_data(self) -> str | None:
        """Return the host-signed identity payload, or None outside the host."""


@dataclass
class SessionStore:
    """Single source of truth for who is acting.

    State changes go through pure transitions in `domain.session`; every
    change to the credential or user is then written to the durable slot.
    """

    auth_api: AuthApi
    storage: KeyValueStore
    embedded_host: EmbeddedHost | None = None
    storage_key: str = "kaloriya-auth"
    optimistic_profile_updates: bool = True
    _state: SessionState = field(default_factory=SessionState, init=False)
    _listeners: list[SessionListener] = field(default_factory=list, init=False)

    @property
    def state(self) -> SessionState:
        """Return the current snapshot."""
        return self._state

    @property
    def credential(self) -> str | None:
        """Return the current bearer credential, if any."""
        return self._state.credential

    @property
    def user(self) -> User | None:
        """Return the current user, if any."""
        return self._state.user

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call `listener` with each new state; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def initialize(self) -> None:
        """Restore or establish the session at startup.

        Never raises for API failures and always ends initialized and not
        loading. Only an explicit authorization rejection clears a persisted
        session; transient failures keep it.
        """
        init_data = self.embedded_host.init_data() if self.embedded_host else None
        await self._commit(loading(self._state, embedded=init_data is not None))
        try:
            if init_data is not None and await self._try_embedded_login(init_data):
                return
            snapshot = await self._load_persisted()
            await self._commit(restored(self._state, snapshot))
            if snapshot.credential is not None:
                await self._revalidate(snapshot.credential)
        finally:
            await self._commit(settled(self._state))

    async def provision_anonymous(self) -> User:
        """Create a device-local identity and adopt it."""
        response = await self.auth_api.create_anonymous()
        await self._commit(with_auth(self._state, response))
        return response.user

    async def login(self, email: str, password: str) -> User:
        """Sign in with email and password."""
        response = await self.auth_api.login(email, password)
        await self._commit(with_auth(self._state, response))
        return response.user

    async def register(
        self, email: str, password: str, name: str | None = None
    ) -> User:
        """Register a new account and sign in to it."""
        response = await self.auth_api.register(email, password, name)
        await self._commit(with_auth(self._state, response))
        return response.user

    async def login_with_embedded_identity(self, init_data: str) -> User:
        """Sign in with a host-signed identity payload."""
        response = await self.auth_api.embedded_login(init_data)
        await self._commit(with_auth(self._state, response))
        return response.user

    async def link_embedded_identity(self, init_data: str) -> User:
        """Link a host identity to the current account, keeping its history."""
        credential = self._require_credential()
        response = await self.auth_api.embedded_link(credential, init_data)
        await self._commit(with_auth(self._state, response))
        return response.user

    async def convert_anonymous(
        self, email: str, password: str, name: str | None = None
    ) -> User:
        """Upgrade the current anonymous identity to a registered account."""
        credential = self._require_credential()
        response = await self.auth_api.convert(credential, email, password, name)
        await self._commit(with_auth(self._state, response))
        return response.user

    async def logout(self) -> None:
        """Forget the credential and user locally."""
        await self._commit(cleared(self._state))

    async def update_profile(self, update: ProfileUpdate) -> User:
        """Send partial settings and adopt the server's profile.

        With optimistic updates enabled the cached user, including derived
        BMR and TDEE, changes before the request is sent and is restored if
        the request fails. A reply that arrives after the session changed,
        for example after a logout, is returned but not adopted.
        """
        credential = self._require_credential()
        fields = update.to_payload()
        previous = self._state.user
        optimistic = self.optimistic_profile_updates
        if optimistic and previous is not None:
            predicted = recompute_energy(previous.model_copy(update=fields))
            await self._commit(with_user(self._state, predicted))
        try:
            user = await self.auth_api.update_me(credential, fields)
        except ApiError:
            if optimistic and previous is not None and self.credential == credential:
                await self._commit(with_user(self._state, previous))
            raise
        if self.credential == credential:
            await self._commit(with_user(self._state, user))
        else:
            _logger.info("Session changed during profile update; reply discarded")
        return user

    def _require_credential(self) -> str:
        credential = self._state.credential
        if credential is None:
            raise MissingCredentialError()
        return credential

    async def _try_embedded_login(self, init_data: str) -> bool:
        parsed = parse_init_data(init_data)
        embedded_id = parsed.user.id if parsed and parsed.user else "unknown"
        _logger.info("Signing in embedded user %s", embedded_id)
        try:
            response = await self.auth_api.embedded_login(init_data)
        except ApiError as exc:
            _logger.warning(
                "Embedded sign-in failed for user %s: %s", embedded_id, exc.message
            )
            return False
        await self._commit(with_auth(self._state, response))
        return True

    async def _revalidate(self, credential: str) -> None:
        try:
            response = await self.auth_api.refresh(credential)
        except ApiError as exc:
            _logger.info("Credential refresh failed: %s", exc.message)
        else:
            await self._commit(with_auth(self._state, response))
            return

        try:
            user = await self.auth_api.get_me(credential)
        except ApiError as exc:
            if exc.is_authorization_rejection:
                _logger.warning("Persisted credential rejected; clearing session")
                await self._commit(cleared(self._state))
            else:
                _logger.warning(
                    "Could not verify session, keeping it: %s", exc.message
                )
            return
        await self._commit(with_user(self._state, user))

    async def _load_persisted(self) -> PersistedSession:
        try:
            raw = await self.storage.get(self.storage_key)
        except OSError:
            _logger.exception("Failed to read persisted session")
            return PersistedSession()
        return parse_snapshot(raw)

    async def _commit(self, state: SessionState) -> None:
        previous = self._state
        self._state = state
        for listener in list(self._listeners):
            listener(state)
        if previous.credential != state.credential or previous.user != state.user:
            await self.storage.set(
                self.storage_key, to_snapshot(state).model_dump_json()
            )
