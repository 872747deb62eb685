"""Tests for MCP server init, tool listing, resources and error mapping."""

import json

import pytest

from memory_mcp.server import _load_tools, dispatch, read_fact_resource

EXPECTED_TOOLS = {
    "memory_save",
    "memory_load",
    "memory_query",
    "memory_summary",
    "memory_forget",
    "memory_refresh",
    "checkpoint_save",
    "checkpoint_list",
    "checkpoint_restore",
    "checkpoint_diff",
    "checkpoint_delete",
    "checkpoint_prune",
    "checkpoint_export",
    "checkpoint_import",
    "instinct_record",
    "instinct_list",
    "compaction_plan",
}


def test_load_tools_names():
    tools, handlers = _load_tools()
    assert {t.name for t in tools} == EXPECTED_TOOLS
    assert set(handlers) == EXPECTED_TOOLS


def test_tools_have_descriptions_and_object_schemas():
    tools, _ = _load_tools()
    for tool in tools:
        assert tool.description, f"Tool {tool.name} missing description"
        assert tool.inputSchema["type"] == "object", f"Tool {tool.name} bad schema type"


def test_unknown_tool():
    result = dispatch("nonexistent_tool", {})
    assert result["kind"] == "not_found"
    assert "Unknown tool" in result["error"]


def test_taxonomy_errors_become_payloads(mcp_components):
    assert dispatch("memory_load", {"category": "bogus"})["kind"] == "not_found"
    assert dispatch("memory_save", {"category": "structure", "fields": [1]})["kind"] == "invalid_input"
    assert dispatch("checkpoint_restore", {"name": "missing"})["kind"] == "not_found"
    assert dispatch("instinct_record", {"id": "x", "confidence": 3})["kind"] == "invalid_input"
    assert dispatch("checkpoint_import", {"document": {"format": "nope"}})["kind"] == "schema_mismatch"


@pytest.mark.asyncio
async def test_call_tool_returns_json_text(mcp_components):
    from memory_mcp.server import call_tool

    result = await call_tool("memory_summary", {})
    assert len(result) == 1
    data = json.loads(result[0].text)
    assert set(data["categories"]) >= {"structure", "dependencies"}


@pytest.mark.asyncio
async def test_list_tools_async():
    from memory_mcp.server import list_tools

    tools = await list_tools()
    assert len(tools) == len(EXPECTED_TOOLS)


@pytest.mark.asyncio
async def test_list_resources():
    from memory_mcp.server import list_resources

    resources = await list_resources()
    uris = {str(r.uri).rstrip("/") for r in resources}
    assert "memory://structure" in uris
    assert "memory://test-coverage" in uris
    assert len(resources) == 8


def test_read_resource(mcp_components):
    mcp_components["fact_store"].save("structure", {"modules": ["app"]})
    data = json.loads(read_fact_resource("memory://structure"))
    assert data["category"] == "structure"
    assert data["fields"]["modules"] == ["app"]

    default = json.loads(read_fact_resource("memory://screens"))
    assert default["last_updated"] is None


def test_read_resource_rejects_other_schemes(mcp_components):
    from errors import NotFound

    with pytest.raises(NotFound):
        read_fact_resource("file:///etc/passwd")
