"""Timer Relay server.

FastMCP application exposing the browser-facing proxy route plus MCP tools
over the same core.
Run: timer-relay
"""

from __future__ import annotations

import json
import logging
import os

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from . import config
from .core.clients import notion, toggl
from .core.kpi import compute_kpi
from .core.models import ProxyResponse, StructuredBody
from .core.router import handle

logger = logging.getLogger(__name__)

PROXY_PATH = "/api/proxy"

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True)
MUTATING = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=False, openWorldHint=True)


mcp = FastMCP(
    "Timer Relay",
    instructions="Relay between a browser time-tracking client and the Notion and Toggl Track APIs. Reads database configuration and KPIs from Notion and controls the running Toggl timer.",
    host=config.RELAY_HOST,
    port=config.RELAY_PORT,
)


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": config.ALLOWED_ORIGIN,
        "Access-Control-Allow-Methods": "GET,POST,PATCH,OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type,Authorization,Notion-Version",
    }


def to_starlette(result: ProxyResponse) -> Response:
    """Render a router result; raw upstream bodies are sent byte for byte."""
    if isinstance(result.body, StructuredBody):
        return JSONResponse(result.body.data, status_code=result.status_code, headers=cors_headers())
    return Response(
        result.body.content,
        status_code=result.status_code,
        media_type=result.content_type or "text/plain",
        headers=cors_headers(),
    )


# ─── Browser proxy route ─────────────────────────────────────────────────────


@mcp.custom_route(PROXY_PATH, methods=["POST", "OPTIONS"])
async def proxy(request: Request) -> Response:
    """Pre-flight answers immediately; POST bodies go through the router."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=cors_headers())

    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else None
    except ValueError:
        logger.warning("Request body is not valid JSON")
        payload = None

    return to_starlette(await handle(payload))


# ─── MCP tools ───────────────────────────────────────────────────────────────


def _get_notion_token() -> str:
    token = os.environ.get("NOTION_TOKEN", "")
    if not token:
        raise ValueError("NOTION_TOKEN environment variable is required for Notion tools.")
    return token


def _get_toggl_token() -> str:
    token = os.environ.get("TOGGL_API_TOKEN", "")
    if not token:
        raise ValueError("TOGGL_API_TOKEN environment variable is required for Toggl tools.")
    return token


@mcp.tool(annotations=READ_ONLY)
async def relay_get_config(container_id: str) -> dict:
    """Data source ID plus category and department options of a Notion database.

    Args:
        container_id: Notion database ID.
    """
    result = await notion.discover(container_id, _get_notion_token())
    return result.model_dump(by_alias=True)


@mcp.tool(annotations=READ_ONLY)
async def relay_get_kpi(source_id: str) -> dict:
    """Minutes tracked this week and this month, with a weekly per-category breakdown.

    Args:
        source_id: Notion data source ID, as returned by relay_get_config.
    """
    summary = await compute_kpi(source_id, _get_notion_token())
    return summary.model_dump(by_alias=True)


@mcp.tool(annotations=MUTATING)
async def relay_start_tracking(workspace_id: str, description: str) -> dict:
    """Stop the running Toggl timer, if any, and start a new one.

    Args:
        workspace_id: Numeric Toggl workspace ID.
        description: Description for the new time entry.
    """
    entry = await toggl.start_tracking(_get_toggl_token(), workspace_id, description)
    return entry.as_reported()


def main():
    """Entry point for the CLI command."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    logger.info("Timer relay serving %s (Notion revision %s)", PROXY_PATH, config.NOTION_API_VERSION)
    mcp.run(transport=config.RELAY_TRANSPORT)


if __name__ == "__main__":
    main()
