"""Fact CLI commands: show, save, query, summary, forget, refresh, expire."""

from datetime import timedelta

import click
from rich.console import Console
from rich.table import Table

from cli.config import parse_duration
from cli.utils import get_components, handle_memory_errors, print_json, read_json_arg
from errors import InvalidInput
from shared_types import FactCategory

console = Console()

CATEGORY = click.Choice([c.value for c in FactCategory])


def _duration(value: str) -> timedelta:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise InvalidInput(str(e)) from None


@click.group()
def facts():
    """Persistent facts about the project, one document per category."""
    pass


@facts.command("show")
@click.argument("category", type=CATEGORY)
@handle_memory_errors
def facts_show(category: str):
    """Print a category's document as JSON (the default if nothing is stored)."""
    c = get_components()
    print_json(c["fact_store"].load(category).to_dict())


@facts.command("save")
@click.argument("category", type=CATEGORY)
@click.option("--fields", "fields_json", help="JSON object to merge into the document")
@click.option("--file", "fields_file", type=click.Path(exists=True, dir_okay=False), help="Read fields JSON from a file")
@click.option("--refresh", is_flag=True, help="Re-extract from the project first")
@click.option("--module", help="Limit extraction to a module sub-path")
@handle_memory_errors
def facts_save(category: str, fields_json: str | None, fields_file: str | None, refresh: bool, module: str | None):
    """Merge fields (and/or freshly extracted facts) into a category."""
    c = get_components()
    fields = read_json_arg(fields_json, fields_file)
    if fields is None and not refresh:
        console.print("[yellow]Nothing to save: pass --fields, --file or --refresh.[/]")
        return
    doc = c["fact_store"].save(category, fields=fields, refresh=refresh, module=module)
    console.print(f"[green]Saved[/] {category} ({len(doc.fields)} keys)")


@facts.command("query")
@click.argument("text")
@handle_memory_errors
def facts_query(text: str):
    """Find categories whose stored facts mention TEXT."""
    c = get_components()
    matches = c["fact_store"].query(text)
    if not matches:
        console.print("No matching facts.")
        return
    for category, doc in matches:
        updated = doc.last_updated.isoformat() if doc.last_updated else "-"
        console.print(f"[bold]{category.value}[/] [dim]{updated}[/] keys: {', '.join(sorted(doc.fields))}")


@facts.command("summary")
@handle_memory_errors
def facts_summary():
    """Show which categories are stored and how fresh they are."""
    c = get_components()
    summary = c["fact_store"].summary()

    table = Table(title="Project Facts")
    table.add_column("Category")
    table.add_column("Stored", width=6)
    table.add_column("Last updated")
    table.add_column("Size", justify="right")

    for category, info in summary.items():
        table.add_row(
            category,
            "yes" if info["exists"] else "[dim]no[/]",
            info["last_updated"] or "-",
            str(info["size"]),
        )
    console.print(table)


@facts.command("forget")
@click.argument("category", type=CATEGORY)
@click.option("--older-than", help="Only forget if last updated before this age (e.g. 30days)")
@handle_memory_errors
def facts_forget(category: str, older_than: str | None):
    """Delete a category's stored document."""
    c = get_components()
    age = _duration(older_than) if older_than else None
    if c["fact_store"].forget(category, older_than=age):
        console.print(f"[green]Forgot[/] {category}")
    else:
        console.print(f"Nothing to forget for {category}.")


@facts.command("refresh")
@click.argument("categories", nargs=-1, type=CATEGORY)
@handle_memory_errors
def facts_refresh(categories: tuple[str, ...]):
    """Re-extract categories from the project (default: all with an extractor)."""
    c = get_components()
    results = c["fact_store"].refresh(list(categories) or None)
    styles = {"refreshed": "green", "partial": "yellow", "skipped": "dim"}
    for category, status in results.items():
        style = styles.get(status, "red")
        console.print(f"  {category}: [{style}]{status}[/]")


@facts.command("expire")
@click.option("--max-age", help="Retention window (default: configured fact_retention_days)")
@handle_memory_errors
def facts_expire(max_age: str | None):
    """Forget documents not updated within the retention window."""
    c = get_components()
    if max_age:
        age = _duration(max_age)
    else:
        age = timedelta(days=c["config"].retention.fact_retention_days)
    expired = c["fact_store"].expire(age)
    if expired:
        console.print(f"Expired: {', '.join(expired)}")
    else:
        console.print("Nothing expired.")
