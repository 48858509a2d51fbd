"""Generic relay: forward one call to a provider and return its answer verbatim."""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlsplit

from .. import config
from .errors import MalformedRequest
from .headers import build_headers
from .http import BODY_METHODS, new_client, send
from .models import Credential, RelayResult

logger = logging.getLogger(__name__)


async def relay(
    target_url: str,
    method: Optional[str],
    body: Any,
    credential: Credential,
    *,
    api_version: Optional[str] = None,
) -> RelayResult:
    """Forward a call with provider headers attached.

    Upstream error statuses are not failures here: status and body are handed
    back untouched so the caller sees exactly what the provider answered.
    ``decode_body(result.content)`` gives the structured or raw view.

    Raises:
        MalformedRequest: ``target_url`` is not an absolute http(s) URL.
        UpstreamUnreachable: No response was received.
    """
    parts = urlsplit(target_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise MalformedRequest(f"Invalid targetUrl: {target_url!r}", code="invalid_target_url")

    method = (method or "GET").upper()
    headers = build_headers(
        credential.kind, credential.secret, method,
        api_version=api_version or config.NOTION_API_VERSION,
    )
    kwargs: dict[str, Any] = {"headers": headers}
    if body is not None and method in BODY_METHODS:
        kwargs["json"] = body

    async with new_client() as client:
        response = await send(client, method, target_url, **kwargs)

    logger.info("Relayed %s %s -> %d", method, parts.netloc + parts.path, response.status_code)
    return RelayResult(
        status_code=response.status_code,
        content=response.content,
        content_type=response.headers.get("content-type"),
    )
