"""Error taxonomy.

Every failure the core can produce is a ``RelayError`` carrying the HTTP-style
status and payload the router answers with. Upstream failures keep the
upstream status code and its decoded error body as ``details``.
"""

from __future__ import annotations

from typing import Any, Optional


class RelayError(Exception):
    """Base class for all failures surfaced across the request boundary."""

    status_code: int = 500
    code: Optional[str] = None
    default_message: str = "Relay error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Any = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> dict:
        payload: dict[str, Any] = {"message": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidCredentialKind(RelayError):
    status_code = 400
    code = "invalid_token_kind"
    default_message = "Invalid token kind."


class Unauthenticated(RelayError):
    status_code = 401
    code = "missing_token"
    default_message = "Token value missing in request body."


class MalformedRequest(RelayError):
    status_code = 400
    code = "malformed_request"
    default_message = "Invalid request format. Missing targetUrl or customOperation."


class UnknownOperation(RelayError):
    status_code = 400
    code = "unknown_operation"
    default_message = "Invalid custom operation."


class UpstreamStatusError(RelayError):
    """An upstream call answered with a non-success status."""

    def __init__(self, status: int, details: Any = None, message: Optional[str] = None):
        self.status = status
        super().__init__(message, status_code=status, details=details)


class ContainerFetchError(UpstreamStatusError):
    code = "container_fetch_failed"
    default_message = "Failed to fetch database"


class NoQueryableSource(RelayError):
    status_code = 404
    code = "no_queryable_source"
    default_message = "Database has no data sources"


class SourceFetchError(UpstreamStatusError):
    code = "source_fetch_failed"
    default_message = "Failed to fetch data source"


class QueryError(UpstreamStatusError):
    code = "query_failed"
    default_message = "Failed to query data source"


class InvalidWorkspaceId(RelayError):
    status_code = 400
    code = "invalid_workspace_id"
    default_message = "Workspace ID must be an integer."


class TrackingStopError(UpstreamStatusError):
    code = "tracking_stop_failed"
    default_message = "Failed to stop running Toggl entry"


class TrackingStartError(UpstreamStatusError):
    code = "tracking_start_failed"
    default_message = "Failed to start Toggl entry"


class UpstreamUnreachable(RelayError):
    """Network-level failure: no upstream status was received at all."""

    status_code = 502
    code = "upstream_unreachable"
    default_message = "Upstream API unreachable"
