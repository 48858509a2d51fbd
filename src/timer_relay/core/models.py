"""Pydantic data models — the shared business objects.

Request, result and upstream entity shapes used by the header builder,
the provider clients, the KPI aggregator, the relay and the router.
Wire-facing models serialize with the camelCase names the browser client uses.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr, computed_field

from .errors import InvalidCredentialKind


class TokenKind(str, Enum):
    """Which provider a secret belongs to."""

    PRIMARY = "primaryToken"
    TRACKING = "trackingToken"

    @classmethod
    def parse(cls, value: Any) -> "TokenKind":
        """Resolve a wire value, including the legacy provider-named keys."""
        if isinstance(value, cls):
            return value
        kind = _TOKEN_KIND_ALIASES.get(value) if isinstance(value, str) else None
        if kind is None:
            raise InvalidCredentialKind(f"Invalid token kind: {value!r}")
        return kind


_TOKEN_KIND_ALIASES = {
    "primaryToken": TokenKind.PRIMARY,
    "trackingToken": TokenKind.TRACKING,
    "notionToken": TokenKind.PRIMARY,
    "togglApiToken": TokenKind.TRACKING,
}


class Credential(BaseModel):
    """A call-scoped secret. Never persisted."""

    kind: TokenKind
    secret: str = Field(repr=False)


class DiscoveryResult(BaseModel):
    """Queryable source and configuration lists found for a container."""

    model_config = ConfigDict(populate_by_name=True)

    source_id: str = Field(serialization_alias="sourceId")
    categories: list[str] = Field(default_factory=list)
    departments: list[str] = Field(default_factory=list)


class TimeRecord(BaseModel):
    """One unit of tracked work read from a query result page."""

    minutes: Optional[int] = None
    completed_date: Optional[date] = None
    category: Optional[str] = None


class KpiWindow(BaseModel):
    """Temporal anchors for one KPI computation."""

    week_start: date
    month_start: date
    lookback_start: date


class KpiSummary(BaseModel):
    """Weekly/monthly minute totals, recomputed on every call."""

    total_week_minutes: int = Field(0, ge=0, serialization_alias="totalWeekMinutes")
    total_month_minutes: int = Field(0, ge=0, serialization_alias="totalMonthMinutes")
    category_week_minutes: dict[str, int] = Field(
        default_factory=dict, serialization_alias="categoryWeekMinutes"
    )


class KpiProperties(BaseModel):
    """Names of the schema properties the aggregator reads."""

    hours: str
    minutes: str = ""
    completed_date: str
    category: str
    status: str = ""
    completed_status: str = ""


class TrackingEntry(BaseModel):
    """A Toggl time entry as reported by the upstream. Unknown fields are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int
    description: Optional[str] = None
    workspace_id: int
    started_at: Optional[datetime] = Field(None, alias="start")
    duration: Optional[int] = None
    stop: Optional[datetime] = None

    _upstream: dict = PrivateAttr(default_factory=dict)

    @classmethod
    def from_upstream(cls, data: dict) -> "TrackingEntry":
        entry = cls.model_validate(data)
        entry._upstream = dict(data)
        return entry

    @computed_field
    @property
    def is_running(self) -> bool:
        return self.stop is None and self.duration is not None and self.duration < 0

    def as_reported(self) -> dict:
        """The entry exactly as Toggl returned it, without derived fields."""
        if self._upstream:
            return dict(self._upstream)
        return self.model_dump(mode="json", by_alias=True, exclude={"is_running"})


class StructuredBody(BaseModel):
    """A payload that decoded as JSON."""

    kind: Literal["structured"] = "structured"
    data: Any = None


class RawBody(BaseModel):
    """A payload passed through undecoded."""

    kind: Literal["raw"] = "raw"
    content: bytes = b""

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


DecodedBody = Union[StructuredBody, RawBody]


class RelayResult(BaseModel):
    """Upstream answer of a relayed call, unmodified."""

    status_code: int
    content: bytes = b""
    content_type: Optional[str] = None


class ProxyRequest(BaseModel):
    """Decoded request body delivered by the hosting boundary."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    custom_operation: Optional[str] = Field(
        None, validation_alias=AliasChoices("customOperation", "customEndpoint", "custom_operation")
    )
    container_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("containerId", "dbId", "container_id")
    )
    source_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("sourceId", "dataSourceId", "source_id")
    )
    workspace_id: Any = Field(None, validation_alias=AliasChoices("workspaceId", "workspace_id"))
    description: Optional[str] = None
    target_url: Optional[str] = Field(None, validation_alias=AliasChoices("targetUrl", "target_url"))
    method: Optional[str] = None
    body: Any = None
    token_kind: Optional[str] = Field(
        None, validation_alias=AliasChoices("tokenKind", "tokenKey", "token_kind")
    )
    token_value: Optional[str] = Field(
        None, repr=False, validation_alias=AliasChoices("tokenValue", "token_value")
    )
    notion_version: Optional[str] = Field(
        None, validation_alias=AliasChoices("notionVersion", "notion_version")
    )


class ProxyResponse(BaseModel):
    """Terminal answer handed back to the hosting boundary."""

    status_code: int
    body: DecodedBody = Field(discriminator="kind")
    content_type: Optional[str] = None

    @classmethod
    def from_data(cls, status_code: int, data: Any) -> "ProxyResponse":
        return cls(status_code=status_code, body=StructuredBody(data=data), content_type="application/json")
