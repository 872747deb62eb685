"""Compaction CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, handle_memory_errors, print_json
from compaction import FocusHint, SizeBudget, estimate_tokens, items_from_stores, plan
from shared_types import CompactionStrategy

console = Console()


@click.group()
def compact():
    """Plan context compaction over stored memory."""
    pass


@compact.command("plan")
@click.option("--budget", type=int, help="Max retained size in characters (default: configured)")
@click.option("--strategy", type=click.Choice([s.value for s in CompactionStrategy]))
@click.option("--category", "active_category", help="Fact category currently in focus")
@click.option("--context", "active_context", help="Instinct context currently in focus")
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON")
@handle_memory_errors
def compact_plan(
    budget: int | None,
    strategy: str | None,
    active_category: str | None,
    active_context: str | None,
    as_json: bool,
):
    """Show what would be retained, summarized or dropped. Nothing is changed."""
    c = get_components()
    cfg = c["config"].compaction
    items = items_from_stores(c["fact_store"], c["instinct_store"])
    result = plan(
        items,
        SizeBudget(max_size=cfg.max_size if budget is None else budget, synopsis_size=cfg.synopsis_size),
        FocusHint(active_category=active_category, active_instinct_context=active_context),
        strategy or cfg.strategy,
    )

    if as_json:
        print_json(result.to_dict())
        return

    sizes = {item.ref: item.size for item in items}
    table = Table(title=f"Compaction plan ({result.strategy.value})")
    table.add_column("Item")
    table.add_column("Action", width=10)
    table.add_column("Score", width=6)
    table.add_column("Size", justify="right")
    for ref in result.retain:
        table.add_row(ref, "[green]retain[/]", f"{result.scores[ref]:.2f}", str(sizes[ref]))
    for ref, _ in result.summarize:
        table.add_row(ref, "[yellow]summarize[/]", f"{result.scores[ref]:.2f}", str(sizes[ref]))
    for ref in result.drop:
        table.add_row(ref, "[red]drop[/]", f"{result.scores[ref]:.2f}", str(sizes[ref]))
    console.print(table)

    console.print(
        f"Size: {result.estimated_size_before} -> {result.estimated_size_after} chars "
        f"(~{estimate_tokens(result.estimated_savings)} tokens saved)"
    )
    if result.requires_checkpoint:
        console.print("[yellow]Plan drops items; save a checkpoint before compacting.[/]")
