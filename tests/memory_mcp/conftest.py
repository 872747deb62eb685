"""Shared fixtures for MCP tests."""

import pytest

import memory_mcp.bootstrap
import memory_mcp.server


@pytest.fixture(autouse=True)
def reset_bootstrap():
    """Reset the bootstrap singleton and tool cache between tests."""
    memory_mcp.bootstrap._components = None
    memory_mcp.server._tool_defs = None
    memory_mcp.server._handlers = None
    yield
    memory_mcp.bootstrap._components = None


@pytest.fixture
def mcp_components(components):
    """Real components injected into the bootstrap singleton."""
    memory_mcp.bootstrap._components = components
    return components
