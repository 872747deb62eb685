"""Lazy component initialization for the MCP server."""

import os

import structlog

logger = structlog.get_logger()

_components = None


def get_components() -> dict:
    """Lazy singleton wrapping cli.utils.get_components().

    The project root is PROJECT_MEMORY_PROJECT_ROOT when set, else the cwd
    the server was launched from.
    """
    global _components
    if _components is None:
        from cli.utils import get_components as _get

        project_root = os.environ.get("PROJECT_MEMORY_PROJECT_ROOT") or None
        _components = _get(project_root)
        logger.info(
            "mcp_bootstrap_init",
            project_root=str(_components["project_root"]),
            storage_root=str(_components["storage_root"]),
        )
    return _components
