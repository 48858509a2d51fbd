"""Contract tests for Notion resource discovery and queries."""

from __future__ import annotations

import pytest
import respx

from timer_relay.core.clients import notion
from timer_relay.core.errors import (
    ContainerFetchError,
    NoQueryableSource,
    QueryError,
    SourceFetchError,
)

BASE = "https://api.notion.com/v1"

SCHEMA = {
    "object": "data_source",
    "id": "s1",
    "properties": {
        "カテゴリ": {"type": "select", "select": {"options": [{"name": "A"}, {"name": "B"}]}},
        "部門": {"type": "multi_select", "multi_select": {"options": [{"name": "X"}]}},
        "時間": {"type": "formula", "formula": {"expression": "..."}},
    },
}


@pytest.mark.asyncio
async def test_discover_uses_first_data_source() -> None:
    """Container with two sources resolves to the first and reads its options."""
    with respx.mock(assert_all_called=True) as router:
        db_route = router.get(f"{BASE}/databases/db1").respond(
            200, json={"object": "database", "id": "db1", "data_sources": [{"id": "s1"}, {"id": "s2"}]}
        )
        source_route = router.get(f"{BASE}/data_sources/s1").respond(200, json=SCHEMA)

        result = await notion.discover("db1", "secret", api_version="2025-09-03")

    assert result.source_id == "s1"
    assert result.categories == ["A", "B"]
    assert result.departments == ["X"]
    assert result.model_dump(by_alias=True) == {"sourceId": "s1", "categories": ["A", "B"], "departments": ["X"]}
    request = db_route.calls[0].request
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.headers["Notion-Version"] == "2025-09-03"
    assert source_route.called


@pytest.mark.asyncio
async def test_discover_missing_properties_yield_empty_lists() -> None:
    schema = {"properties": {"カテゴリ": {"type": "multi_select", "multi_select": {"options": [{"name": "A"}]}}}}
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{BASE}/databases/db1").respond(200, json={"data_sources": [{"id": "s1"}]})
        router.get(f"{BASE}/data_sources/s1").respond(200, json=schema)

        result = await notion.discover("db1", "secret", api_version="2025-09-03")

    assert result.categories == []
    assert result.departments == []


@pytest.mark.asyncio
@pytest.mark.parametrize("container", [{"data_sources": []}, {"object": "database"}])
async def test_discover_without_sources_fails(container) -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{BASE}/databases/db1").respond(200, json=container)

        with pytest.raises(NoQueryableSource):
            await notion.discover("db1", "secret", api_version="2025-09-03")


@pytest.mark.asyncio
async def test_discover_container_error_keeps_upstream_status() -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{BASE}/databases/db1").respond(404, json={"code": "object_not_found"})

        with pytest.raises(ContainerFetchError) as excinfo:
            await notion.discover("db1", "secret", api_version="2025-09-03")

    assert excinfo.value.status_code == 404
    assert excinfo.value.details == {"code": "object_not_found"}


@pytest.mark.asyncio
async def test_discover_source_error_returns_no_partial_result() -> None:
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{BASE}/databases/db1").respond(200, json={"data_sources": [{"id": "s1"}]})
        router.get(f"{BASE}/data_sources/s1").respond(403, text="forbidden")

        with pytest.raises(SourceFetchError) as excinfo:
            await notion.discover("db1", "secret", api_version="2025-09-03")

    assert excinfo.value.status_code == 403
    assert excinfo.value.details == "forbidden"


@pytest.mark.asyncio
async def test_discover_legacy_revision_treats_database_as_source() -> None:
    with respx.mock(assert_all_called=True) as router:
        route = router.get(f"{BASE}/databases/db1").respond(200, json={**SCHEMA, "id": "db1"})

        result = await notion.discover("db1", "secret", api_version="2022-06-28")

    assert result.source_id == "db1"
    assert result.categories == ["A", "B"]
    assert route.call_count == 1
    assert route.calls[0].request.headers["Notion-Version"] == "2022-06-28"


@pytest.mark.asyncio
async def test_query_source_follows_cursor() -> None:
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE}/data_sources/s1/query").mock(
            side_effect=[
                respx.MockResponse(200, json={"results": [{"id": "p1"}], "has_more": True, "next_cursor": "c2"}),
                respx.MockResponse(200, json={"results": [{"id": "p2"}], "has_more": False, "next_cursor": None}),
            ]
        )

        pages = await notion.query_source("s1", "secret", {"and": []}, api_version="2025-09-03")

    assert [p["id"] for p in pages] == ["p1", "p2"]
    assert route.call_count == 2
    second = route.calls[1].request
    assert b'"start_cursor":"c2"' in second.content.replace(b" ", b"")
    assert second.headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_query_source_error() -> None:
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE}/databases/db1/query").respond(400, json={"message": "bad filter"})

        with pytest.raises(QueryError) as excinfo:
            await notion.query_source("db1", "secret", None, api_version="2022-06-28")

    assert excinfo.value.status_code == 400


def test_option_names_ignores_wrong_shapes() -> None:
    assert notion.option_names({}, "カテゴリ", "select") == []
    assert notion.option_names({"カテゴリ": "oops"}, "カテゴリ", "select") == []
    assert notion.option_names({"カテゴリ": {"type": "select", "select": None}}, "カテゴリ", "select") == []
    assert notion.option_names({"カテゴリ": {"type": "select", "select": ["A"]}}, "カテゴリ", "select") == []
    assert notion.option_names({"部門": {"type": "multi_select", "multi_select": {"options": "X"}}}, "部門", "multi_select") == []


@pytest.mark.asyncio
async def test_discover_tolerates_list_valued_select() -> None:
    schema = {"properties": {**SCHEMA["properties"], "カテゴリ": {"type": "select", "select": ["A"]}}}
    with respx.mock(assert_all_called=True) as router:
        router.get(f"{BASE}/databases/db1").respond(200, json={"data_sources": [{"id": "s1"}]})
        router.get(f"{BASE}/data_sources/s1").respond(200, json=schema)

        result = await notion.discover("db1", "secret", api_version="2025-09-03")

    assert result.categories == []
    assert result.departments == ["X"]
