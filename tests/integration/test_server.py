"""Integration tests for the CareInsight MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client

from careinsight.core.server.app import create_app


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _payload(result) -> dict:
    """Decode the JSON text returned by a tool."""
    content = getattr(result, "content", result)
    return json.loads(content[0].text)


ALL_EXPECTED_TOOLS = [
    "health_check",
    "rescue_medication_chart",
    "insight_topics",
    "date_based_insight",
    "all_date_based_insights",
    "eligible_date_based_insights",
]


@pytest.fixture
def client(seeded_repository, catalog):
    mcp = create_app(repository_override=seeded_repository, catalog_override=catalog)
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            assert "ok" in str(result)
    _run(_check())


def test_default_app_uses_bundled_catalog():
    async def _check():
        async with Client(create_app()) as client:
            result = await client.call_tool("health_check", {})
            assert "insights_in_catalog" in str(result)
    _run(_check())


def test_rescue_medication_chart(client):
    async def _check():
        async with client:
            result = await client.call_tool(
                "rescue_medication_chart", {"patient_id": "42", "end_date": "2024-03-07"}
            )
            payload = _payload(result)
            assert payload["status"] == "ok"
            assert payload["week"] == "Mar 1 - 7, 2024"
            assert [p["value"] for p in payload["data"]] == [5, 0, 0, 0, 3, 0, 0]
    _run(_check())


def test_insight_topics(client):
    async def _check():
        async with client:
            result = await client.call_tool("insight_topics", {"patient_id": "42"})
            keys = [t["insightKey"] for t in _payload(result)["data"]]
            assert keys == ["rescue_medication_use", "symptom_free_days", "night_waking"]
    _run(_check())


def test_date_based_insight(client):
    async def _check():
        async with client:
            result = await client.call_tool("date_based_insight", {
                "patient_id": "42",
                "selected_date": "2024-03-07",
                "insight_key": "night_waking",
            })
            data = _payload(result)["data"]
            assert data["insightName"] == "Night Waking"
            assert data["series"][0]["data"][-1]["value"] == 2
    _run(_check())


def test_all_and_eligible_insights(client, catalog):
    async def _check():
        async with client:
            args = {"patient_id": "42", "selected_date": "2024-03-07"}
            everything = _payload(await client.call_tool("all_date_based_insights", args))
            eligible = _payload(await client.call_tool("eligible_date_based_insights", args))
            assert len(everything["data"]) == len(catalog)
            assert len(eligible["data"]) == 3
    _run(_check())


def test_missing_patient_returns_error_payload(client):
    async def _check():
        async with client:
            result = await client.call_tool("insight_topics", {"patient_id": ""})
            payload = _payload(result)
            assert payload["status"] == "error"
            assert payload["error_type"] == "missing_patient"
            assert payload["retryable"] is False
    _run(_check())


def test_invalid_date_returns_error_payload(client):
    async def _check():
        async with client:
            result = await client.call_tool(
                "rescue_medication_chart", {"patient_id": "42", "end_date": "March 7"}
            )
            assert _payload(result)["error_type"] == "invalid_date"
    _run(_check())


def test_data_access_failure_is_retryable(client, tracking_db):
    async def _check():
        async with client:
            tracking_db.connection.execute("DROP TABLE track_response")
            result = await client.call_tool(
                "rescue_medication_chart", {"patient_id": "42", "end_date": "2024-03-07"}
            )
            payload = _payload(result)
            assert payload["error_type"] == "data_access"
            assert payload["retryable"] is True
    _run(_check())
