"""Checkpoint data models: snapshot contents per level and the restore plan."""

import re
from dataclasses import dataclass, field
from datetime import datetime

from errors import InvalidInput, SchemaMismatch
from facts.models import FactDocument
from instincts.models import Instinct
from shared_types import CheckpointLevel, FactCategory, parse_timestamp

SCHEMA_VERSION = 1
EXPORT_FORMAT = "project-memory-checkpoint"

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")

LEVEL_CATEGORIES: dict[CheckpointLevel, tuple[FactCategory, ...]] = {
    CheckpointLevel.QUICK: (FactCategory.STRUCTURE,),
    CheckpointLevel.STANDARD: (
        FactCategory.STRUCTURE,
        FactCategory.DEPENDENCIES,
        FactCategory.BUILD_VARIANTS,
        FactCategory.TEST_COVERAGE,
    ),
    CheckpointLevel.FULL: tuple(FactCategory),
}

LEVEL_DESCRIPTIONS = {
    CheckpointLevel.QUICK: "Quick checkpoint with VCS state and project structure",
    CheckpointLevel.STANDARD: "Standard checkpoint with build and test facts plus instincts",
    CheckpointLevel.FULL: "Full checkpoint with every fact category and all instincts",
}


def includes_instincts(level: CheckpointLevel) -> bool:
    return level != CheckpointLevel.QUICK


def validate_name(name: str) -> str:
    if not isinstance(name, str) or not _NAME_RE.match(name):
        raise InvalidInput(
            f"Invalid checkpoint name {name!r}: use letters, digits, '.', '_' or '-' "
            "(max 128 chars, must start with a letter or digit)"
        )
    return name


def coerce_level(level: str | CheckpointLevel) -> CheckpointLevel:
    try:
        return CheckpointLevel(level)
    except ValueError:
        valid = ", ".join(lvl.value for lvl in CheckpointLevel)
        raise InvalidInput(f"Unknown checkpoint level {level!r} (valid: {valid})") from None


@dataclass(frozen=True)
class VcsPointer:
    """Version-control position supplied by the caller; stored, never interpreted."""

    branch: str | None = None
    revision: str | None = None
    dirty: bool = False

    def to_dict(self) -> dict:
        return {"branch": self.branch, "revision": self.revision, "dirty": self.dirty}

    @classmethod
    def from_dict(cls, data: dict | None) -> "VcsPointer":
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise InvalidInput("vcs must be an object with branch, revision, dirty")
        return cls(
            branch=data.get("branch"),
            revision=data.get("revision"),
            dirty=bool(data.get("dirty", False)),
        )


@dataclass(frozen=True)
class Checkpoint:
    name: str
    created_at: datetime
    level: CheckpointLevel
    vcs: VcsPointer = field(default_factory=VcsPointer)
    facts: dict[FactCategory, FactDocument] = field(default_factory=dict)
    # None means the level does not snapshot instincts at all.
    instincts: list[Instinct] | None = None
    description: str = ""

    def info(self) -> dict:
        return {
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "level": self.level.value,
            "description": self.description,
        }

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            **self.info(),
            "vcs": self.vcs.to_dict(),
            "facts": {cat.value: doc.to_dict() for cat, doc in self.facts.items()},
            "instincts": (
                [i.to_dict() for i in self.instincts] if self.instincts is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Checkpoint":
        """Strict parse: wrong version or missing fields raise SchemaMismatch."""
        if not isinstance(data, dict):
            raise SchemaMismatch("checkpoint must be a JSON object")
        if data.get("schema_version") != SCHEMA_VERSION:
            raise SchemaMismatch(
                f"Unsupported checkpoint schema_version {data.get('schema_version')!r}"
            )
        missing = [k for k in ("name", "created_at", "level", "facts") if k not in data]
        if missing:
            raise SchemaMismatch(f"Checkpoint missing required fields: {', '.join(missing)}")

        try:
            level = CheckpointLevel(data["level"])
            created_at = parse_timestamp(data["created_at"])
            if created_at is None:
                raise ValueError("created_at is empty")
            vcs = VcsPointer.from_dict(data.get("vcs"))
        except (TypeError, ValueError, InvalidInput) as e:
            raise SchemaMismatch(f"Invalid checkpoint header: {e}") from None

        if not isinstance(data["facts"], dict):
            raise SchemaMismatch("checkpoint 'facts' must be an object")
        facts = {}
        for key, doc in data["facts"].items():
            try:
                category = FactCategory(key)
            except ValueError:
                raise SchemaMismatch(f"Unknown fact category in checkpoint: {key!r}") from None
            facts[category] = FactDocument.from_dict(doc, expected=category)

        raw_instincts = data.get("instincts")
        if raw_instincts is not None and not isinstance(raw_instincts, list):
            raise SchemaMismatch("checkpoint 'instincts' must be a list or null")
        instincts = (
            [Instinct.from_dict(i) for i in raw_instincts] if raw_instincts is not None else None
        )

        return cls(
            name=str(data["name"]),
            created_at=created_at,
            level=level,
            vcs=vcs,
            facts=facts,
            instincts=instincts,
            description=str(data.get("description") or ""),
        )


@dataclass
class RestorePlan:
    """What applying a checkpoint would change in the live stores."""

    checkpoint: str
    facts_to_write: list[FactCategory] = field(default_factory=list)
    facts_to_forget: list[FactCategory] = field(default_factory=list)
    restores_instincts: bool = False
    instincts_to_add: list[str] = field(default_factory=list)
    instincts_to_update: list[str] = field(default_factory=list)
    instincts_to_remove: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.facts_to_write
            or self.facts_to_forget
            or self.instincts_to_add
            or self.instincts_to_update
            or self.instincts_to_remove
        )

    def to_dict(self) -> dict:
        return {
            "checkpoint": self.checkpoint,
            "facts_to_write": [c.value for c in self.facts_to_write],
            "facts_to_forget": [c.value for c in self.facts_to_forget],
            "restores_instincts": self.restores_instincts,
            "instincts_to_add": self.instincts_to_add,
            "instincts_to_update": self.instincts_to_update,
            "instincts_to_remove": self.instincts_to_remove,
            "is_empty": self.is_empty,
        }
