"""Fact MCP tools: save, load, query, summarize, forget and refresh fact documents."""

from cli.config import parse_duration
from errors import InvalidInput
from memory_mcp.bootstrap import get_components
from shared_types import FactCategory

CATEGORIES = [c.value for c in FactCategory]


def _store():
    return get_components()["fact_store"]


def _save(args: dict) -> dict:
    category = args.get("category", "")
    doc = _store().save(
        category,
        fields=args.get("fields"),
        refresh=bool(args.get("refresh", False)),
        module=args.get("module"),
    )
    return {"saved": True, "document": doc.to_dict()}


def _load(args: dict) -> dict:
    store = _store()
    category = args.get("category", "")
    doc = store.load(category)
    return {"document": doc.to_dict(), "exists": doc.exists, "stale": store.is_stale(category)}


def _query(args: dict) -> dict:
    matches = _store().query(args.get("query", ""))
    return {
        "matches": [{"category": cat.value, "document": doc.to_dict()} for cat, doc in matches],
        "count": len(matches),
    }


def _summary(args: dict) -> dict:
    return {"categories": _store().summary()}


def _forget(args: dict) -> dict:
    category = args.get("category", "")
    older_than = args.get("older_than")
    try:
        age = parse_duration(older_than) if older_than else None
    except ValueError as e:
        raise InvalidInput(str(e)) from None
    removed = _store().forget(category, older_than=age)
    return {"forgotten": removed, "category": category}


def _refresh(args: dict) -> dict:
    return {"results": _store().refresh(args.get("categories") or None)}


_CATEGORY = {
    "type": "string",
    "description": "Fact category",
    "enum": CATEGORIES,
}

TOOLS = [
    (
        "memory_save",
        {
            "description": "Save facts for a category. Given fields are shallow-merged over the stored document (each key replaced wholesale, lists included). With refresh=true the category's extractor runs first.",
            "type": "object",
            "properties": {
                "category": _CATEGORY,
                "fields": {
                    "type": "object",
                    "description": "Fields to merge into the document",
                },
                "refresh": {
                    "type": "boolean",
                    "description": "Re-extract from the project before merging",
                    "default": False,
                },
                "module": {
                    "type": "string",
                    "description": "Scan only this module sub-path; results are stored under module_scans",
                },
            },
            "required": ["category"],
        },
        _save,
    ),
    (
        "memory_load",
        {
            "description": "Load the fact document for a category. Missing documents come back as the category default with exists=false.",
            "type": "object",
            "properties": {"category": _CATEGORY},
            "required": ["category"],
        },
        _load,
    ),
    (
        "memory_query",
        {
            "description": "Case-insensitive text search across all stored fact documents.",
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Text to look for"},
            },
            "required": ["query"],
        },
        _query,
    ),
    (
        "memory_summary",
        {
            "description": "Which categories are stored, when they were last updated and their size on disk.",
            "type": "object",
            "properties": {},
            "required": [],
        },
        _summary,
    ),
    (
        "memory_forget",
        {
            "description": "Delete the stored document for a category, optionally only if older than a duration such as '30days'.",
            "type": "object",
            "properties": {
                "category": _CATEGORY,
                "older_than": {
                    "type": "string",
                    "description": "Only forget when last updated before this age (e.g. 30days, 12h)",
                },
            },
            "required": ["category"],
        },
        _forget,
    ),
    (
        "memory_refresh",
        {
            "description": "Re-extract categories from the project. Returns a status per category: refreshed, partial, skipped, failed (extractor error, document left unchanged) or an error kind.",
            "type": "object",
            "properties": {
                "categories": {
                    "type": "array",
                    "items": {"type": "string", "enum": CATEGORIES},
                    "description": "Categories to refresh (default: all)",
                },
            },
            "required": [],
        },
        _refresh,
    ),
]
