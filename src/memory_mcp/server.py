"""MCP server entry point: stdio transport, fact resources and memory tools."""

import json
import traceback

import structlog
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Resource, TextContent, Tool

from errors import NotFound, ProjectMemoryError
from shared_types import FactCategory

logger = structlog.get_logger()

app = Server("project-memory")

RESOURCE_SCHEME = "memory://"

# Cache tool definitions at module level (populated on first list_tools call)
_tool_defs: list[Tool] | None = None
_handlers: dict | None = None


def _load_tools() -> tuple[list[Tool], dict]:
    """Load tool definitions and handlers from all tool modules."""
    from memory_mcp.tools import checkpoints, compaction, facts, instincts

    modules = [facts, checkpoints, instincts, compaction]
    tools = []
    handlers = {}
    for mod in modules:
        for name, schema, handler in mod.TOOLS:
            tools.append(Tool(name=name, description=schema["description"], inputSchema=schema))
            handlers[name] = handler
    return tools, handlers


def dispatch(name: str, arguments: dict | None) -> dict:
    """Run one tool and return its JSON-able result or an error payload."""
    global _tool_defs, _handlers
    if _handlers is None:
        _tool_defs, _handlers = _load_tools()

    handler = _handlers.get(name)
    if not handler:
        return {"error": f"Unknown tool: {name}", "kind": NotFound.kind}

    try:
        return handler(arguments or {})
    except ProjectMemoryError as e:
        logger.info("tool_rejected", tool=name, kind=e.kind, error=str(e))
        return e.to_dict()
    except Exception as e:
        logger.error("tool_error", tool=name, error=str(e))
        return {"error": str(e), "kind": "internal", "traceback": traceback.format_exc()}


@app.list_tools()
async def list_tools() -> list[Tool]:
    global _tool_defs, _handlers
    if _tool_defs is None:
        _tool_defs, _handlers = _load_tools()
    return _tool_defs


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    result = dispatch(name, arguments)
    return [TextContent(type="text", text=json.dumps(result, default=str))]


@app.list_resources()
async def list_resources() -> list[Resource]:
    return [
        Resource(
            uri=f"{RESOURCE_SCHEME}{category.value}",
            name=category.value,
            description=f"Project facts: {category.value}",
            mimeType="application/json",
        )
        for category in FactCategory
    ]


def read_fact_resource(uri: str) -> str:
    """JSON text of the fact document behind a ``memory://<category>`` URI."""
    from memory_mcp.bootstrap import get_components

    uri = str(uri)
    if not uri.startswith(RESOURCE_SCHEME):
        raise NotFound(f"Unknown resource: {uri}")
    category = uri[len(RESOURCE_SCHEME):].strip("/")
    doc = get_components()["fact_store"].load(category)
    return json.dumps(doc.to_dict(), indent=2, default=str)


@app.read_resource()
async def read_resource(uri) -> str:
    return read_fact_resource(uri)


async def run():
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def main():
    import asyncio

    from cli.config import load_config_model
    from cli.logging_config import setup_logging

    config = load_config_model()
    setup_logging(json_mode=config.logging.json_mode, level=config.logging.level)
    asyncio.run(run())


if __name__ == "__main__":
    main()
