"""Request router.

Dispatches one decoded request body to discovery, KPI aggregation, timer
control or the generic relay, and turns every outcome into exactly one
``ProxyResponse``. ``handle`` never raises.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from .. import config
from .clients import notion, toggl
from .errors import MalformedRequest, RelayError, Unauthenticated, UnknownOperation
from .kpi import compute_kpi
from .models import Credential, ProxyRequest, ProxyResponse, RawBody, TokenKind
from .relay import relay

logger = logging.getLogger(__name__)

Handler = Callable[[ProxyRequest], Awaitable[ProxyResponse]]


def parse_request(payload: Any) -> ProxyRequest:
    if not isinstance(payload, dict):
        raise MalformedRequest("Request body must be a JSON object.")
    try:
        return ProxyRequest.model_validate(payload)
    except ValidationError as exc:
        details = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise MalformedRequest("Invalid request fields.", details=details) from exc


def _api_version(request: ProxyRequest) -> str:
    return request.notion_version or config.NOTION_API_VERSION


async def _get_config(request: ProxyRequest) -> ProxyResponse:
    if not request.container_id:
        raise MalformedRequest("Database ID is required for getConfig.", code="missing_container_id")
    result = await notion.discover(request.container_id, request.token_value, api_version=_api_version(request))
    return ProxyResponse.from_data(200, result.model_dump(by_alias=True))


async def _get_kpi(request: ProxyRequest) -> ProxyResponse:
    if not request.source_id:
        raise MalformedRequest("Data source ID is required for getKpi.", code="missing_source_id")
    summary = await compute_kpi(request.source_id, request.token_value, api_version=_api_version(request))
    return ProxyResponse.from_data(200, summary.model_dump(by_alias=True))


async def _start_tracking(request: ProxyRequest) -> ProxyResponse:
    if request.workspace_id in (None, "") or not request.description:
        raise MalformedRequest(
            "Toggl parameters missing (workspaceId or description).",
            code="missing_tracking_params",
        )
    entry = await toggl.start_tracking(request.token_value, request.workspace_id, request.description)
    return ProxyResponse.from_data(200, entry.as_reported())


OPERATIONS: dict[str, Handler] = {
    "getConfig": _get_config,
    "getKpi": _get_kpi,
    "startTracking": _start_tracking,
    "startTogglTracking": _start_tracking,
}


async def _relay(request: ProxyRequest) -> ProxyResponse:
    credential = Credential(kind=TokenKind.parse(request.token_kind), secret=request.token_value)
    api_version = request.notion_version if credential.kind is TokenKind.PRIMARY else None
    result = await relay(request.target_url, request.method, request.body, credential, api_version=api_version)
    return ProxyResponse(
        status_code=result.status_code,
        body=RawBody(content=result.content),
        content_type=result.content_type,
    )


async def dispatch(payload: Any) -> ProxyResponse:
    """Route one request. Failures are raised as ``RelayError``."""
    request = parse_request(payload)
    if not request.token_value:
        raise Unauthenticated()

    if request.custom_operation:
        handler = OPERATIONS.get(request.custom_operation)
        if handler is None:
            raise UnknownOperation(f"Invalid custom operation: {request.custom_operation}")
        return await handler(request)

    if request.target_url:
        return await _relay(request)

    raise MalformedRequest()


async def handle(payload: Any) -> ProxyResponse:
    """Route one request and convert any failure into an error response."""
    try:
        return await dispatch(payload)
    except RelayError as exc:
        logger.warning("Request failed (%d %s): %s", exc.status_code, exc.code, exc.message)
        return ProxyResponse.from_data(exc.status_code, exc.to_payload())
    except Exception as exc:
        logger.error("Proxy error: %s", exc, exc_info=True)
        return ProxyResponse.from_data(500, {"message": "Internal Server Error", "details": str(exc)})
