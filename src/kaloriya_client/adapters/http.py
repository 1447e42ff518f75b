"""HTTPX transport shared by every backend client."""

import logging
from dataclasses import dataclass
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from kaloriya_client.errors import (
    HTTP_REQUEST_TIMEOUT,
    SERVER_ERROR_MESSAGE,
    UNEXPECTED_MESSAGE,
    UNREACHABLE_MESSAGE,
    ApiError,
)

_logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class HttpxApiTransport:
    """Sends requests to the backend and normalizes every failure to ApiError."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0

    @classmethod
    def create(cls, base_url: str, timeout_seconds: float) -> "HttpxApiTransport":
        """Create a transport with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def request(  # noqa: PLR0913
        self,
        method: str,
        path: str,
        *,
        credential: str | None = None,
        json: object | None = None,
        params: dict[str, object] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
        data: dict[str, str] | None = None,
        timeout: float | None = None,
        report_timeout: bool = False,
    ) -> httpx.Response:
        """Send a request and return the successful response.

        With `report_timeout`, a timeout is reported as a 408 instead of an
        unreachable server.
        """
        headers = bearer_headers(credential)
        effective_timeout = timeout if timeout is not None else self.timeout_seconds
        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                headers=headers,
                json=json,
                params=params,
                files=files,
                data=data,
                timeout=effective_timeout,
            )
        except httpx.UnsupportedProtocol as exc:
            raise ApiError(str(exc) or UNEXPECTED_MESSAGE) from exc
        except httpx.TimeoutException as exc:
            if report_timeout:
                raise ApiError(
                    f"Request timed out ({effective_timeout:g}s)",
                    status_code=HTTP_REQUEST_TIMEOUT,
                ) from exc
            _logger.warning("%s %s timed out", method, path)
            raise ApiError(UNREACHABLE_MESSAGE) from exc
        except httpx.TransportError as exc:
            _logger.warning("%s %s failed without response: %r", method, path, exc)
            raise ApiError(UNREACHABLE_MESSAGE) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ApiError(str(exc) or UNEXPECTED_MESSAGE) from exc
        if response.is_error:
            raise error_from_response(response)
        return response

    async def get_json(
        self,
        path: str,
        *,
        credential: str | None = None,
        params: dict[str, object] | None = None,
    ) -> object:
        """Send a GET request and decode the JSON body."""
        response = await self.request("GET", path, credential=credential, params=params)
        return decode_json(response)

    async def post_json(
        self, path: str, body: object, *, credential: str | None = None
    ) -> object:
        """Send a POST request with a JSON body and decode the JSON reply."""
        response = await self.request("POST", path, credential=credential, json=body)
        return decode_json(response)

    async def put_json(
        self, path: str, body: object, *, credential: str | None = None
    ) -> object:
        """Send a PUT request with a JSON body and decode the JSON reply."""
        response = await self.request("PUT", path, credential=credential, json=body)
        return decode_json(response)

    async def delete(self, path: str, *, credential: str | None = None) -> None:
        """Send a DELETE request, ignoring any body."""
        await self.request("DELETE", path, credential=credential)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def bearer_headers(credential: str | None) -> dict[str, str]:
    """Build the authorization header for a credential, if any."""
    if not credential:
        return {}
    return {"Authorization": f"Bearer {credential}"}


def error_from_response(response: httpx.Response) -> ApiError:
    """Build an ApiError from an error response, preferring its detail field."""
    message = SERVER_ERROR_MESSAGE
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, str) and detail:
            message = detail
    return ApiError(
        message,
        status_code=response.status_code,
        request_id=response.headers.get(REQUEST_ID_HEADER),
    )


def decode_json(response: httpx.Response) -> object:
    """Decode a successful response body, reporting a non-JSON body as ApiError."""
    try:
        return response.json()
    except ValueError as exc:
        _logger.warning(
            "%s %s returned a non-JSON body",
            response.request.method,
            response.request.url.path,
        )
        raise ApiError(
            UNEXPECTED_MESSAGE,
            status_code=response.status_code,
            request_id=response.headers.get(REQUEST_ID_HEADER),
        ) from exc


def parse_model(model: type[ModelT], payload: object) -> ModelT:
    """Validate a decoded payload, reporting a malformed one as ApiError."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        _logger.warning(
            "Malformed %s payload (%s errors)", model.__name__, exc.error_count()
        )
        raise ApiError(UNEXPECTED_MESSAGE) from exc


def parse_rows(model: type[ModelT], payload: object) -> list[ModelT]:
    """Validate a JSON array payload row by row."""
    return [parse_model(model, row) for row in json_rows(payload)]


def json_rows(payload: object) -> list[object]:
    """Return a JSON array payload, rejecting any other shape."""
    if not isinstance(payload, list):
        raise ApiError(UNEXPECTED_MESSAGE)
    return payload
