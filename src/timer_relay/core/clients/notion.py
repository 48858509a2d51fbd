"""Notion API client — resource discovery and data source queries.

API docs: https://developers.notion.com/reference
From revision 2025-09-03 a database is a container of data sources, and a
data source owns the property schema and is the target of queries. On older
revisions the database is its own (single) source.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ... import config
from ..errors import ContainerFetchError, NoQueryableSource, QueryError, SourceFetchError
from ..headers import build_headers, uses_data_sources
from ..http import error_details, new_client, send
from ..models import DiscoveryResult, TokenKind

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


def option_names(properties: dict, name: str, kind: str) -> list[str]:
    """Option names of a select-like schema property.

    A missing property or one of another type yields an empty list.
    """
    prop = properties.get(name) if isinstance(properties, dict) else None
    if not isinstance(prop, dict) or prop.get("type", kind) != kind:
        return []
    config_block = prop.get(kind)
    options = config_block.get("options") if isinstance(config_block, dict) else None
    if not isinstance(options, list):
        return []
    return [opt["name"] for opt in options if isinstance(opt, dict) and opt.get("name")]


def _source_ids(container: dict, container_id: str, api_version: str) -> list[str]:
    if not uses_data_sources(api_version):
        return [container.get("id") or container_id]
    sources = container.get("data_sources") or []
    return [s["id"] for s in sources if isinstance(s, dict) and s.get("id")]


async def _get(client: httpx.AsyncClient, url: str, secret: str, api_version: str) -> httpx.Response:
    headers = build_headers(TokenKind.PRIMARY, secret, "GET", api_version=api_version)
    return await send(client, "GET", url, headers=headers)


async def discover(
    container_id: str,
    secret: str,
    *,
    api_version: str = config.NOTION_API_VERSION,
    category_property: str = config.CATEGORY_PROPERTY,
    department_property: str = config.DEPARTMENT_PROPERTY,
) -> DiscoveryResult:
    """Find the queryable source of a database and its category/department options.

    Args:
        container_id: Notion database ID.
        secret: Notion integration token.
        api_version: Notion revision; selects the discovery protocol.
        category_property: Select property holding the categories.
        department_property: Multi-select property holding the departments.

    Raises:
        ContainerFetchError: The database fetch failed.
        NoQueryableSource: The database lists no data sources.
        SourceFetchError: The data source fetch failed.
    """
    async with new_client() as client:
        response = await _get(client, f"{config.NOTION_API_BASE}/databases/{container_id}", secret, api_version)
        if not response.is_success:
            raise ContainerFetchError(response.status_code, error_details(response))
        container = response.json()
        if not isinstance(container, dict):
            container = {}

        source_ids = _source_ids(container, container_id, api_version)
        if not source_ids:
            raise NoQueryableSource(details={"containerId": container_id})
        source_id = source_ids[0]

        if uses_data_sources(api_version):
            response = await _get(client, f"{config.NOTION_API_BASE}/data_sources/{source_id}", secret, api_version)
            if not response.is_success:
                raise SourceFetchError(response.status_code, error_details(response))
            schema = response.json()
            if not isinstance(schema, dict):
                schema = {}
        else:
            schema = container

    properties = schema.get("properties")
    result = DiscoveryResult(
        source_id=source_id,
        categories=option_names(properties, category_property, "select"),
        departments=option_names(properties, department_property, "multi_select"),
    )
    logger.info(
        "Discovered source %s for database %s (%d categories, %d departments)",
        source_id, container_id, len(result.categories), len(result.departments),
    )
    return result


async def query_source(
    source_id: str,
    secret: str,
    filter: Optional[dict] = None,
    *,
    api_version: str = config.NOTION_API_VERSION,
) -> list[dict]:
    """Run one filtered query, following pagination, and return every result page.

    Raises:
        QueryError: Any page of the query failed.
    """
    if uses_data_sources(api_version):
        url = f"{config.NOTION_API_BASE}/data_sources/{source_id}/query"
    else:
        url = f"{config.NOTION_API_BASE}/databases/{source_id}/query"
    headers = build_headers(TokenKind.PRIMARY, secret, "POST", api_version=api_version)

    payload: dict[str, Any] = {"page_size": PAGE_SIZE}
    if filter:
        payload["filter"] = filter

    results: list[dict] = []
    async with new_client() as client:
        while True:
            response = await send(client, "POST", url, headers=headers, json=payload)
            if not response.is_success:
                raise QueryError(response.status_code, error_details(response))
            data = response.json() or {}
            results.extend(data.get("results", []))
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
            payload["start_cursor"] = cursor

    logger.info("Query on source %s returned %d results", source_id, len(results))
    return results
