"""Backend client for authentication endpoints."""

from dataclasses import dataclass

from kaloriya_client.adapters.http import HttpxApiTransport, parse_model
from kaloriya_client.domain.models import AuthResponse, User
from kaloriya_client.services.session_store import AuthApi


@dataclass
class HttpxAuthApi(AuthApi):
    """Auth API implemented over the shared HTTPX transport."""

    transport: HttpxApiTransport

    async def create_anonymous(self) -> AuthResponse:
        """Provision a device-local identity."""
        payload = await self.transport.post_json("/auth/anonymous", {})
        return parse_model(AuthResponse, payload)

    async def login(self, email: str, password: str) -> AuthResponse:
        """Exchange email and password for a session."""
        payload = await self.transport.post_json(
            "/auth/login", {"email": email, "password": password}
        )
        return parse_model(AuthResponse, payload)

    async def register(
        self, email: str, password: str, name: str | None = None
    ) -> AuthResponse:
        """Create a registered account."""
        payload = await self.transport.post_json(
            "/auth/register", {"email": email, "password": password, "name": name}
        )
        return parse_model(AuthResponse, payload)

    async def convert(
        self, credential: str, email: str, password: str, name: str | None = None
    ) -> AuthResponse:
        """Upgrade the current anonymous identity to a registered one."""
        payload = await self.transport.post_json(
            "/auth/convert",
            {"email": email, "password": password, "name": name},
            credential=credential,
        )
        return parse_model(AuthResponse, payload)

    async def get_me(self, credential: str) -> User:
        """Fetch the profile of the credential's owner."""
        payload = await self.transport.get_json("/auth/me", credential=credential)
        return parse_model(User, payload)

    async def update_me(self, credential: str, fields: dict[str, object]) -> User:
        """Update profile fields and return the stored profile."""
        payload = await self.transport.put_json(
            "/auth/me", fields, credential=credential
        )
        return parse_model(User, payload)

    async def refresh(self, credential: str) -> AuthResponse:
        """Exchange a credential for a fresh one."""
        payload = await self.transport.post_json(
            "/auth/refresh", {}, credential=credential
        )
        return parse_model(AuthResponse, payload)

    async def embedded_login(self, init_data: str) -> AuthResponse:
        """Sign in with a host-signed identity payload."""
        payload = await self.transport.post_json(
            "/auth/telegram", {"init_data": init_data}
        )
        return parse_model(AuthResponse, payload)

    async def embedded_link(self, credential: str, init_data: str) -> AuthResponse:
        """Attach a host identity to the current account."""
        payload = await self.transport.post_json(
            "/auth/telegram/link", {"init_data": init_data}, credential=credential
        )
        return parse_model(AuthResponse, payload)
