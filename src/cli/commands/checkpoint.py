"""Checkpoint CLI commands."""

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from checkpoints import apply_checkpoint, current_vcs_pointer
from cli.utils import get_components, handle_memory_errors, print_json, read_json_arg
from shared_types import CheckpointLevel

console = Console()


def _print_plan(plan: dict) -> None:
    if plan["is_empty"]:
        console.print("Live memory already matches this checkpoint.")
        return
    rows = [
        ("facts to write", plan["facts_to_write"]),
        ("facts to forget", plan["facts_to_forget"]),
        ("instincts to add", plan["instincts_to_add"]),
        ("instincts to update", plan["instincts_to_update"]),
        ("instincts to remove", plan["instincts_to_remove"]),
    ]
    for label, values in rows:
        if values:
            console.print(f"  {label}: {', '.join(values)}")


@click.group()
def checkpoint():
    """Point-in-time snapshots of project memory."""
    pass


@checkpoint.command("save")
@click.argument("name", required=False)
@click.option(
    "-l",
    "--level",
    default=CheckpointLevel.STANDARD.value,
    type=click.Choice([lvl.value for lvl in CheckpointLevel]),
    help="Snapshot depth",
)
@click.option("-d", "--description", default="", help="Free-text note")
@click.option("--overwrite", is_flag=True, help="Replace an existing checkpoint of the same name")
@click.option("--no-vcs", is_flag=True, help="Do not record the git position")
@handle_memory_errors
def checkpoint_save(name: str | None, level: str, description: str, overwrite: bool, no_vcs: bool):
    """Save a checkpoint (auto-named when NAME is omitted)."""
    c = get_components()
    vcs = None if no_vcs else current_vcs_pointer(c["project_root"])
    cp = c["checkpoints"].save(
        name=name, level=level, vcs=vcs, overwrite=overwrite, description=description
    )
    instincts = len(cp.instincts) if cp.instincts is not None else 0
    console.print(
        f"[green]Saved checkpoint[/] {cp.name} ({cp.level.value}: "
        f"{len(cp.facts)} fact docs, {instincts} instincts)"
    )
    console.print(f"[dim]{c['checkpoints'].path_for(cp.name)}[/]")


@checkpoint.command("list")
@handle_memory_errors
def checkpoint_list():
    """List checkpoints, newest first."""
    c = get_components()
    checkpoints = c["checkpoints"].list()
    if not checkpoints:
        console.print("No checkpoints.")
        return

    table = Table(title="Checkpoints")
    table.add_column("Name")
    table.add_column("Level", width=8)
    table.add_column("Created")
    table.add_column("Description")
    for cp in checkpoints:
        table.add_row(cp["name"], cp["level"], cp["created_at"][:19], cp["description"])
    console.print(table)


@checkpoint.command("show")
@click.argument("name")
@handle_memory_errors
def checkpoint_show(name: str):
    """Print a checkpoint as JSON."""
    c = get_components()
    print_json(c["checkpoints"].restore(name).to_dict())


@checkpoint.command("diff")
@click.argument("name")
@handle_memory_errors
def checkpoint_diff(name: str):
    """Show what restoring NAME would change."""
    c = get_components()
    _print_plan(c["checkpoints"].diff(name).to_dict())


@checkpoint.command("restore")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@handle_memory_errors
def checkpoint_restore(name: str, yes: bool):
    """Overwrite live memory with checkpoint NAME."""
    c = get_components()
    cp = c["checkpoints"].restore(name)
    plan = c["checkpoints"].diff(name).to_dict()
    _print_plan(plan)
    if plan["is_empty"]:
        return
    if not yes:
        click.confirm("Apply these changes?", abort=True)
    apply_checkpoint(cp, c["fact_store"], c["instinct_store"])
    console.print(f"[green]Restored[/] {name}")


@checkpoint.command("delete")
@click.argument("name")
@handle_memory_errors
def checkpoint_delete(name: str):
    """Delete checkpoint NAME."""
    c = get_components()
    c["checkpoints"].delete(name)
    console.print(f"[green]Deleted[/] {name}")


@checkpoint.command("prune")
@click.option("--keep", type=int, help="How many to keep (default: configured checkpoint_keep)")
@handle_memory_errors
def checkpoint_prune(keep: int | None):
    """Delete all but the most recent checkpoints."""
    c = get_components()
    keep = keep if keep is not None else c["config"].retention.checkpoint_keep
    deleted = c["checkpoints"].prune(keep)
    console.print(f"Pruned {len(deleted)} checkpoint(s).")


@checkpoint.command("export")
@click.argument("name")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write to file instead of stdout")
@handle_memory_errors
def checkpoint_export(name: str, output: str | None):
    """Export checkpoint NAME as portable JSON."""
    c = get_components()
    document = c["checkpoints"].export(name)
    if output:
        Path(output).write_text(json.dumps(document, indent=2, default=str))
        console.print(f"[green]Exported[/] {name} -> {output}")
    else:
        print_json(document)


@checkpoint.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--overwrite", is_flag=True, help="Replace an existing checkpoint of the same name")
@handle_memory_errors
def checkpoint_import(file: str, overwrite: bool):
    """Import a checkpoint exported with `checkpoint export`."""
    c = get_components()
    cp = c["checkpoints"].import_document(read_json_arg(None, file), overwrite=overwrite)
    console.print(f"[green]Imported[/] {cp.name} ({cp.level.value})")
