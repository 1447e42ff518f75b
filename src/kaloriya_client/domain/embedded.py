"""Telegram Mini App init data."""

import json
import logging
from urllib.parse import parse_qsl

from pydantic import BaseModel, ValidationError

_logger = logging.getLogger(__name__)


class EmbeddedUser(BaseModel):
    """User block of the Mini App init data."""

    id: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None


class InitData(BaseModel):
    """Decoded Mini App init data. The signature is verified by the backend."""

    user: EmbeddedUser | None = None
    auth_date: int | None = None
    query_id: str | None = None
    hash: str | None = None


def parse_init_data(raw: str) -> InitData | None:
    """Decode a Mini App query string, returning None when malformed."""
    fields: dict[str, object] = dict(parse_qsl(raw, keep_blank_values=True))
    user_raw = fields.get("user")
    try:
        if isinstance(user_raw, str):
            fields["user"] = json.loads(user_raw)
        return InitData.model_validate(fields)
    except (json.JSONDecodeError, ValidationError):
        _logger.warning("Malformed embedded init data")
        return None
