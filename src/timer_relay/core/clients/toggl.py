"""Toggl Track API client — single running timer control.

API docs: https://engineering.toggl.com/docs/api/time_entries
Auth is HTTP Basic with the API token as username and "api_token" as password.
An account has at most one running time entry; starting always stops first.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from ... import config
from ..errors import InvalidWorkspaceId, TrackingStartError, TrackingStopError
from ..headers import build_headers
from ..http import error_details, new_client, send
from ..models import TokenKind, TrackingEntry

logger = logging.getLogger(__name__)

RUNNING_DURATION = -1


def coerce_workspace_id(value: Any) -> int:
    """Return the workspace ID as an int, or raise ``InvalidWorkspaceId``."""
    if isinstance(value, bool):
        raise InvalidWorkspaceId(details={"workspaceId": value})
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidWorkspaceId(details={"workspaceId": value})


def _rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


async def fetch_current_entry(client: httpx.AsyncClient, secret: str) -> Optional[TrackingEntry]:
    """Fetch the running entry. "Nothing running" (204, empty or null body) is ``None``."""
    headers = build_headers(TokenKind.TRACKING, secret, "GET")
    response = await send(client, "GET", f"{config.TOGGL_API_BASE}/me/time_entries/current", headers=headers)
    if response.status_code == 204:
        return None
    if not response.is_success:
        raise TrackingStopError(
            response.status_code,
            error_details(response),
            message="Failed to fetch running Toggl entry",
        )
    if not response.content.strip():
        return None
    data = response.json()
    if not isinstance(data, dict) or not data.get("id"):
        return None
    return TrackingEntry.from_upstream(data)


async def stop_entry(client: httpx.AsyncClient, secret: str, entry: TrackingEntry) -> TrackingEntry:
    """Stop a running entry and return it as reported by Toggl."""
    headers = build_headers(TokenKind.TRACKING, secret, "PATCH")
    url = f"{config.TOGGL_API_BASE}/workspaces/{entry.workspace_id}/time_entries/{entry.id}/stop"
    response = await send(client, "PATCH", url, headers=headers)
    if not response.is_success:
        raise TrackingStopError(response.status_code, error_details(response))
    logger.info("Stopped Toggl entry %s", entry.id)
    data = response.json() if response.content.strip() else None
    return TrackingEntry.from_upstream(data) if isinstance(data, dict) and data.get("id") else entry


async def stop_current(secret: str, *, client: Optional[httpx.AsyncClient] = None) -> Optional[TrackingEntry]:
    """Stop the running entry, if any. Returns the stopped entry or ``None``.

    A failed stop propagates: starting while another timer is open would leave
    two entries running.
    """
    if client is None:
        async with new_client() as own_client:
            return await stop_current(secret, client=own_client)

    current = await fetch_current_entry(client, secret)
    if current is None:
        return None
    return await stop_entry(client, secret, current)


async def start_tracking(
    secret: str,
    workspace_id: Any,
    description: str,
    *,
    now: Optional[datetime] = None,
    created_with: str = config.TOGGL_CLIENT_TAG,
) -> TrackingEntry:
    """Stop whatever is running, then start a new entry.

    Args:
        secret: Toggl API token.
        workspace_id: Numeric workspace ID (int or numeric string).
        description: Entry description.
        now: Start timestamp; defaults to the current time, read once any running entry
            has been stopped.
        created_with: Client identifier Toggl records on the entry.

    Raises:
        InvalidWorkspaceId: ``workspace_id`` is not an integer. Nothing is stopped or created.
        TrackingStopError: The running entry could not be fetched or stopped.
        TrackingStartError: Toggl rejected the new entry.
    """
    wid = coerce_workspace_id(workspace_id)

    async with new_client() as client:
        await stop_current(secret, client=client)

        # Read after the stop so the new entry never starts before the old one ends.
        start = _rfc3339(now or datetime.now(timezone.utc))
        headers = build_headers(TokenKind.TRACKING, secret, "POST")
        payload = {
            "description": description,
            "workspace_id": wid,
            "created_with": created_with,
            "start": start,
            "duration": RUNNING_DURATION,
        }
        response = await send(
            client, "POST", f"{config.TOGGL_API_BASE}/workspaces/{wid}/time_entries",
            headers=headers, json=payload,
        )

    if not response.is_success:
        # Toggl answers validation errors as plain text; keep it verbatim.
        raise TrackingStartError(response.status_code, response.text)

    entry = TrackingEntry.from_upstream(response.json())
    logger.info("Started Toggl entry %s in workspace %s", entry.id, wid)
    return entry
