"""Instinct MCP tools."""

from memory_mcp.bootstrap import get_components
from shared_types import InstinctSource


def _store():
    return get_components()["instinct_store"]


def _record(args: dict) -> dict:
    inst = _store().record(args)
    return {"instinct": inst.to_dict()}


def _list(args: dict) -> dict:
    store = _store()
    records = store.list(min_confidence=args.get("min_confidence"), context=args.get("context"))
    return {"instincts": [r.to_dict() for r in records], "count": len(records), "stats": store.stats()}


TOOLS = [
    (
        "instinct_record",
        {
            "description": "Record an observation of a recurring project pattern. Repeated observations of the same id raise confidence (never lower it) and collect examples.",
            "type": "object",
            "properties": {
                "id": {"type": "string", "description": "Stable pattern id"},
                "description": {"type": "string", "description": "What the pattern is"},
                "context": {"type": "string", "description": "Pattern family, e.g. compose, testing"},
                "confidence": {
                    "type": "number",
                    "minimum": 0,
                    "maximum": 1,
                    "default": 0.3,
                },
                "example": {"type": "string", "description": "Where it was seen"},
                "source": {
                    "type": "string",
                    "enum": [s.value for s in InstinctSource],
                    "default": "direct",
                },
            },
            "required": ["id"],
        },
        _record,
    ),
    (
        "instinct_list",
        {
            "description": "List instincts by confidence, optionally filtered by minimum confidence or context.",
            "type": "object",
            "properties": {
                "min_confidence": {"type": "number", "minimum": 0, "maximum": 1},
                "context": {"type": "string"},
            },
            "required": [],
        },
        _list,
    ),
]
