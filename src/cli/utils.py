"""Shared CLI utilities."""

import functools
import json
import sys
from pathlib import Path

import click
import structlog
from rich.console import Console
from rich.markup import escape

from errors import InvalidInput, ProjectMemoryError

console = Console()
logger = structlog.get_logger()


def build_components(config, project_root: str | Path) -> dict:
    """Wire the stores from an already-loaded MemoryConfig."""
    from checkpoints import CheckpointManager
    from cli.config import resolve_storage_root
    from extractors import ScanLimits, default_registry
    from facts import FactStore
    from instincts import InstinctStore

    project_root = Path(project_root).resolve()
    storage_root = resolve_storage_root(config, project_root)

    registry = default_registry(ScanLimits(**config.scan.model_dump()))
    fact_store = FactStore(
        storage_root,
        registry=registry,
        project_root=project_root,
        max_store_bytes=config.storage.max_store_bytes,
    )
    inst_cfg = config.instincts
    instinct_store = InstinctStore(
        storage_root,
        max_examples=inst_cfg.max_examples,
        reinforcement_threshold=inst_cfg.reinforcement_threshold,
        reinforcement_step=inst_cfg.reinforcement_step,
        confidence_ceiling=inst_cfg.confidence_ceiling,
    )
    checkpoints = CheckpointManager(
        storage_root, fact_store, instinct_store, keep=config.retention.checkpoint_keep
    )
    return {
        "config": config,
        "project_root": project_root,
        "storage_root": storage_root,
        "registry": registry,
        "fact_store": fact_store,
        "instinct_store": instinct_store,
        "checkpoints": checkpoints,
    }


def get_components(project_root: str | Path | None = None) -> dict:
    """Initialize all components from config.

    ``project_root`` defaults to the CLI's ``--project`` option, then the cwd.
    """
    from cli.config import load_config_model

    if project_root is None:
        ctx = click.get_current_context(silent=True)
        if ctx is not None:
            project_root = (ctx.find_root().obj or {}).get("project_root")
    root = Path(project_root) if project_root else Path.cwd()
    try:
        config = load_config_model(project_root=root)
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        sys.exit(1)
    return build_components(config, root)


def handle_memory_errors(func):
    """Print taxonomy errors in red and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ProjectMemoryError as e:
            logger.debug("cli_command_failed", kind=e.kind, error=str(e))
            console.print(f"[red]{e.kind}:[/] {escape(str(e))}")
            sys.exit(1)

    return wrapper


def print_json(data) -> None:
    """Write JSON to stdout without rich markup processing."""
    click.echo(json.dumps(data, indent=2, default=str))


def read_json_arg(value: str | None, file: str | None = None):
    """Parse a JSON object given inline or as a file path."""
    if file:
        value = Path(file).read_text()
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Invalid JSON: {e}") from None
