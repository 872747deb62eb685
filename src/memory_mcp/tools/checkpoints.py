"""Checkpoint MCP tools."""

from checkpoints import apply_checkpoint, current_vcs_pointer
from errors import InvalidInput
from memory_mcp.bootstrap import get_components
from shared_types import CheckpointLevel


def _manager():
    return get_components()["checkpoints"]


def _save(args: dict) -> dict:
    c = get_components()
    vcs = current_vcs_pointer(c["project_root"]) if args.get("capture_vcs", True) else None
    manager = c["checkpoints"]
    cp = manager.save(
        name=args.get("name") or None,
        level=args.get("level", CheckpointLevel.STANDARD),
        vcs=vcs,
        overwrite=bool(args.get("overwrite", False)),
        description=args.get("description", ""),
    )
    return {
        **cp.info(),
        "path": str(manager.path_for(cp.name)),
        "facts": sorted(cat.value for cat in cp.facts),
        "instincts": len(cp.instincts) if cp.instincts is not None else None,
    }


def _list(args: dict) -> dict:
    checkpoints = _manager().list()
    limit = args.get("limit")
    if limit:
        checkpoints = checkpoints[:limit]
    return {"checkpoints": checkpoints, "count": len(checkpoints)}


def _restore(args: dict) -> dict:
    """Return the snapshot; with apply=true also make the live stores match it."""
    c = get_components()
    cp = c["checkpoints"].restore(args.get("name", ""))
    result = {"checkpoint": cp.to_dict()}
    if args.get("apply"):
        plan = apply_checkpoint(cp, c["fact_store"], c["instinct_store"])
        result["applied"] = plan.to_dict()
    return result


def _diff(args: dict) -> dict:
    return _manager().diff(args.get("name", "")).to_dict()


def _delete(args: dict) -> dict:
    name = args.get("name", "")
    _manager().delete(name)
    return {"deleted": True, "name": name}


def _prune(args: dict) -> dict:
    manager = _manager()
    keep = args.get("keep", manager.keep)
    if keep is None:
        raise InvalidInput("keep is required")
    deleted = manager.prune(keep)
    return {"deleted": deleted, "count": len(deleted)}


def _export(args: dict) -> dict:
    return _manager().export(args.get("name", ""))


def _import(args: dict) -> dict:
    document = args.get("document")
    cp = _manager().import_document(document, overwrite=bool(args.get("overwrite", False)))
    return {"imported": True, **cp.info()}


_NAME = {"type": "string", "description": "Checkpoint name"}

TOOLS = [
    (
        "checkpoint_save",
        {
            "description": "Snapshot project memory. quick = structure facts only; standard = core facts + instincts; full = every fact category + instincts. Older checkpoints beyond the keep limit are pruned.",
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Checkpoint name (default: <level>-<timestamp>)"},
                "level": {
                    "type": "string",
                    "enum": [level.value for level in CheckpointLevel],
                    "default": "standard",
                },
                "description": {"type": "string", "description": "Free-text note"},
                "overwrite": {"type": "boolean", "default": False},
                "capture_vcs": {
                    "type": "boolean",
                    "description": "Record current git branch/revision",
                    "default": True,
                },
            },
            "required": [],
        },
        _save,
    ),
    (
        "checkpoint_list",
        {
            "description": "List checkpoints, newest first.",
            "type": "object",
            "properties": {
                "limit": {"type": "integer", "description": "Max checkpoints to return"},
            },
            "required": [],
        },
        _list,
    ),
    (
        "checkpoint_restore",
        {
            "description": "Return a stored checkpoint. Live memory is only changed when apply=true.",
            "type": "object",
            "properties": {
                "name": _NAME,
                "apply": {
                    "type": "boolean",
                    "description": "Overwrite live facts/instincts with the snapshot",
                    "default": False,
                },
            },
            "required": ["name"],
        },
        _restore,
    ),
    (
        "checkpoint_diff",
        {
            "description": "Describe what restoring a checkpoint would change in live memory.",
            "type": "object",
            "properties": {"name": _NAME},
            "required": ["name"],
        },
        _diff,
    ),
    (
        "checkpoint_delete",
        {
            "description": "Delete a checkpoint.",
            "type": "object",
            "properties": {"name": _NAME},
            "required": ["name"],
        },
        _delete,
    ),
    (
        "checkpoint_prune",
        {
            "description": "Keep only the most recent checkpoints.",
            "type": "object",
            "properties": {
                "keep": {"type": "integer", "description": "How many to keep (default: configured limit)"},
            },
            "required": [],
        },
        _prune,
    ),
    (
        "checkpoint_export",
        {
            "description": "Export one checkpoint as a portable JSON document.",
            "type": "object",
            "properties": {"name": _NAME},
            "required": ["name"],
        },
        _export,
    ),
    (
        "checkpoint_import",
        {
            "description": "Import a document produced by checkpoint_export.",
            "type": "object",
            "properties": {
                "document": {"type": "object", "description": "Exported checkpoint document"},
                "overwrite": {"type": "boolean", "default": False},
            },
            "required": ["document"],
        },
        _import,
    ),
]
