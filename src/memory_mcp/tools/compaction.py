"""Compaction MCP tool: plan what to keep when context must shrink."""

from compaction import ContextItem, FocusHint, SizeBudget, items_from_stores, plan
from errors import InvalidInput
from memory_mcp.bootstrap import get_components
from shared_types import CompactionStrategy


def _plan(args: dict) -> dict:
    c = get_components()
    defaults = c["config"].compaction

    raw_items = args.get("items")
    if raw_items is None:
        items = items_from_stores(c["fact_store"], c["instinct_store"])
    elif isinstance(raw_items, list):
        items = [ContextItem.from_dict(item) for item in raw_items]
    else:
        raise InvalidInput("items must be a list")

    budget = SizeBudget(
        max_size=args.get("budget", defaults.max_size),
        synopsis_size=args.get("synopsis_size", defaults.synopsis_size),
        synopsis_budget=args.get("synopsis_budget"),
    )
    focus = FocusHint(
        active_category=args.get("active_category"),
        active_instinct_context=args.get("active_context"),
    )
    result = plan(items, budget, focus, args.get("strategy", defaults.strategy))
    return result.to_dict()


TOOLS = [
    (
        "compaction_plan",
        {
            "description": "Plan which context items to retain, summarize or drop to fit a size budget. Advisory only; nothing is deleted. High-confidence instincts are never dropped. When items are omitted, every stored fact document and instinct is planned.",
            "type": "object",
            "properties": {
                "budget": {"type": "integer", "minimum": 0, "description": "Max retained size (characters)"},
                "strategy": {
                    "type": "string",
                    "enum": [s.value for s in CompactionStrategy],
                },
                "active_category": {"type": "string", "description": "Fact category currently in focus"},
                "active_context": {"type": "string", "description": "Instinct context currently in focus"},
                "synopsis_size": {"type": "integer", "minimum": 16},
                "synopsis_budget": {"type": "integer", "minimum": 0},
                "items": {
                    "type": "array",
                    "description": "Context items: {ref, size, kind, text, category, context, confidence, last_used}",
                    "items": {"type": "object"},
                },
            },
            "required": [],
        },
        _plan,
    ),
]
