"""Normalized error type shared by every API call."""

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_REQUEST_TIMEOUT = 408
_CLIENT_ERROR_RANGE = range(400, 500)
_SERVER_ERROR_RANGE = range(500, 600)

SERVER_ERROR_MESSAGE = "Server error occurred"
UNREACHABLE_MESSAGE = "Could not reach the server. Check your internet connection."
UNEXPECTED_MESSAGE = "Unexpected error occurred"


class ApiError(Exception):
    """Failure of a remote call, with the HTTP status when one was received."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.request_id = request_id

    def __repr__(self) -> str:
        return f"ApiError({self.message!r}, status_code={self.status_code!r})"

    @property
    def is_authorization_rejection(self) -> bool:
        """Return True when the server explicitly rejected the credential."""
        return self.status_code in {HTTP_UNAUTHORIZED, HTTP_FORBIDDEN}

    @property
    def is_transport_failure(self) -> bool:
        """Return True when no response was received."""
        return self.status_code is None

    @property
    def is_client_error(self) -> bool:
        """Return True for 4xx responses."""
        return self.status_code in _CLIENT_ERROR_RANGE

    @property
    def is_server_fault(self) -> bool:
        """Return True for 5xx responses."""
        return self.status_code in _SERVER_ERROR_RANGE


class MissingCredentialError(ApiError):
    """Raised when an authenticated operation runs without a credential."""

    def __init__(self) -> None:
        super().__init__("No credential available; sign in first")
