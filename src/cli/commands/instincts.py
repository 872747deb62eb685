"""Instinct CLI commands."""

import json
from datetime import timedelta
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from cli.config import parse_duration
from cli.utils import get_components, handle_memory_errors, print_json, read_json_arg
from errors import InvalidInput
from instincts.models import HIGH_CONFIDENCE
from shared_types import InstinctSource

console = Console()


@click.group()
def instincts():
    """Learned project patterns and their confidence."""
    pass


@instincts.command("list")
@click.option("--min-confidence", type=float, help="Only instincts at or above this confidence")
@click.option("--context", help="Only this pattern family")
@handle_memory_errors
def instincts_list(min_confidence: float | None, context: str | None):
    """List instincts by confidence."""
    c = get_components()
    records = c["instinct_store"].list(min_confidence=min_confidence, context=context)
    if not records:
        console.print("No instincts recorded.")
        return

    table = Table(title="Instincts")
    table.add_column("ID")
    table.add_column("Context", width=12)
    table.add_column("Description")
    table.add_column("Conf", width=5)
    table.add_column("Seen", width=5, justify="right")

    for r in records:
        conf_style = "bold green" if r.confidence >= HIGH_CONFIDENCE else ""
        table.add_row(
            r.id,
            r.context,
            r.description[:80],
            f"[{conf_style}]{r.confidence:.2f}[/]" if conf_style else f"{r.confidence:.2f}",
            str(r.observation_count),
        )
    console.print(table)


@instincts.command("record")
@click.argument("instinct_id")
@click.option("--description", default="", help="What the pattern is")
@click.option("--context", default="", help="Pattern family")
@click.option("--confidence", type=float, default=0.3, show_default=True)
@click.option("--example", help="Where the pattern was seen")
@click.option(
    "--source",
    default=InstinctSource.DIRECT.value,
    type=click.Choice([s.value for s in InstinctSource]),
)
@handle_memory_errors
def instincts_record(
    instinct_id: str,
    description: str,
    context: str,
    confidence: float,
    example: str | None,
    source: str,
):
    """Record one observation of a pattern."""
    c = get_components()
    inst = c["instinct_store"].record(
        {
            "id": instinct_id,
            "description": description,
            "context": context,
            "confidence": confidence,
            "example": example,
            "source": source,
        }
    )
    console.print(
        f"[green]Recorded[/] {inst.id}: confidence {inst.confidence:.2f}, "
        f"seen {inst.observation_count}x"
    )


@instincts.command("decay")
@click.option("--older-than", help="Unused for at least this long (default: configured decay_after_days)")
@click.option("--step", type=float, help="Confidence removed per decay")
@click.option("--floor", type=float, help="Confidence never drops below this")
@handle_memory_errors
def instincts_decay(older_than: str | None, step: float | None, floor: float | None):
    """Lower the confidence of instincts that have not been used recently."""
    c = get_components()
    cfg = c["config"].instincts
    try:
        age = parse_duration(older_than) if older_than else timedelta(days=cfg.decay_after_days)
    except ValueError as e:
        raise InvalidInput(str(e)) from None
    changed = c["instinct_store"].decay(
        age,
        step=cfg.decay_step if step is None else step,
        floor=cfg.decay_floor if floor is None else floor,
    )
    console.print(f"Decayed {changed} instinct(s).")


@instincts.command("export")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write to file instead of stdout")
@handle_memory_errors
def instincts_export(output: str | None):
    """Export all instincts as portable JSON."""
    c = get_components()
    document = c["instinct_store"].export_document()
    if output:
        Path(output).write_text(json.dumps(document, indent=2, default=str))
        console.print(f"[green]Exported[/] {len(document['instincts'])} instincts -> {output}")
    else:
        print_json(document)


@instincts.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@handle_memory_errors
def instincts_import(file: str):
    """Merge instincts from an exported file (higher confidence wins)."""
    c = get_components()
    counts = c["instinct_store"].import_document(read_json_arg(None, file))
    console.print(
        f"Imported: {counts['added']} added, {counts['updated']} updated, "
        f"{counts['skipped']} unchanged"
    )
