"""Provider authentication and versioning headers."""

from __future__ import annotations

import base64
from typing import Any

from .. import config
from .errors import InvalidCredentialKind
from .http import BODY_METHODS
from .models import TokenKind


def uses_data_sources(api_version: str) -> bool:
    """Whether a Notion revision queries data sources instead of databases.

    Revisions are ISO dates, so they order lexicographically.
    """
    return api_version >= config.DATA_SOURCES_API_VERSION


def basic_auth(secret: str) -> str:
    # Toggl convention: the token is the username, the password is literally "api_token".
    encoded = base64.b64encode(f"{secret}:api_token".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def build_headers(
    kind: Any,
    secret: str,
    method: str = "GET",
    *,
    api_version: str = config.NOTION_API_VERSION,
) -> dict[str, str]:
    """Build the header set for one outbound call.

    Args:
        kind: ``TokenKind`` (or its wire value) naming the provider.
        secret: The caller-supplied token.
        method: HTTP method; body-bearing methods get a JSON content type.
        api_version: Notion revision sent with primary-provider calls.

    Raises:
        InvalidCredentialKind: ``kind`` is not a known provider.
    """
    kind = TokenKind.parse(kind)
    if kind is TokenKind.PRIMARY:
        headers = {
            "Authorization": f"Bearer {secret}",
            "Notion-Version": api_version,
        }
    elif kind is TokenKind.TRACKING:
        headers = {"Authorization": basic_auth(secret)}
    else:  # pragma: no cover - TokenKind.parse already rejected it
        raise InvalidCredentialKind(f"Invalid token kind: {kind!r}")

    if method.upper() in BODY_METHODS:
        headers["Content-Type"] = "application/json"
    return headers
