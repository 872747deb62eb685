"""CLI entry point for project memory (`pmem`)."""

from pathlib import Path

import click
from rich.console import Console

from cli.commands import checkpoint, compact, facts, instincts
from cli.config import load_config_model
from cli.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON on stderr")
@click.option(
    "-p",
    "--project",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="PROJECT_MEMORY_PROJECT_ROOT",
    help="Project root (default: current directory)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool, project: Path | None):
    """Project memory: facts, instincts and checkpoints for coding sessions."""
    ctx.ensure_object(dict)
    ctx.obj["project_root"] = project
    try:
        config = load_config_model(project_root=project)
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        ctx.exit(1)
    level = "DEBUG" if verbose else config.logging.level
    setup_logging(json_mode=json_logs or config.logging.json_mode, level=level)


@cli.command()
def serve():
    """Run the MCP server on stdio."""
    import asyncio

    import memory_mcp.bootstrap
    from cli.utils import get_components
    from memory_mcp.server import run

    memory_mcp.bootstrap._components = get_components()
    asyncio.run(run())


cli.add_command(facts)
cli.add_command(checkpoint)
cli.add_command(instincts)
cli.add_command(compact)


if __name__ == "__main__":
    cli()
