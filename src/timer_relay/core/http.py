"""Shared outbound HTTP plumbing for the provider clients and the relay."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from .. import config
from .errors import UpstreamUnreachable
from .models import DecodedBody, RawBody, StructuredBody

logger = logging.getLogger(__name__)

BODY_METHODS = frozenset({"POST", "PATCH", "PUT"})


def new_client(timeout: Optional[float] = None) -> httpx.AsyncClient:
    """Create the async client used for one core operation."""
    seconds = timeout if timeout is not None else config.HTTP_TIMEOUT_SECONDS
    return httpx.AsyncClient(timeout=httpx.Timeout(seconds))


async def send(client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """Issue one request; network-level failures become ``UpstreamUnreachable``."""
    try:
        return await client.request(method, url, **kwargs)
    except httpx.TransportError as exc:
        logger.warning("Upstream %s %s unreachable: %s", method, url, exc)
        raise UpstreamUnreachable(details=str(exc)) from exc


def decode_body(content: bytes) -> DecodedBody:
    """Decode a payload as JSON, or pass it through raw when it is not JSON."""
    if not content:
        return RawBody(content=b"")
    try:
        return StructuredBody(data=json.loads(content))
    except (ValueError, UnicodeDecodeError):
        return RawBody(content=content)


def error_details(response: httpx.Response) -> Any:
    """Upstream error body for diagnostics: parsed JSON, else the raw text."""
    decoded = decode_body(response.content)
    if isinstance(decoded, StructuredBody):
        return decoded.data
    return decoded.text
