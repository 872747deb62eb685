"""Point-in-time snapshots of the fact and instinct stores."""

from __future__ import annotations

from pathlib import Path

import structlog

from errors import InvalidInput, NotFound, SchemaMismatch
from facts.store import FactStore
from fileio import atomic_write_json, quarantine, read_json
from instincts.store import InstinctStore
from shared_types import CheckpointLevel, utcnow

from .models import (
    EXPORT_FORMAT,
    LEVEL_CATEGORIES,
    LEVEL_DESCRIPTIONS,
    SCHEMA_VERSION,
    Checkpoint,
    RestorePlan,
    VcsPointer,
    coerce_level,
    includes_instincts,
    validate_name,
)
from .restore import plan_restore

logger = structlog.get_logger()


class CheckpointManager:
    """Creates, lists, prunes and exports checkpoints; one JSON file each.

    The manager only reads the live stores. ``restore`` hands back the stored
    snapshot and ``diff`` describes what differs; applying it is a separate
    caller action (``checkpoints.restore.apply_checkpoint``).
    """

    def __init__(
        self,
        root: str | Path,
        fact_store: FactStore,
        instinct_store: InstinctStore,
        keep: int | None = 20,
    ):
        self.dir = Path(root).expanduser() / "checkpoints"
        self.dir.mkdir(parents=True, exist_ok=True)
        self.fact_store = fact_store
        self.instinct_store = instinct_store
        self.keep = keep

    def _path(self, name: str) -> Path:
        return self.dir / f"{validate_name(name)}.json"

    def exists(self, name: str) -> bool:
        return self._path(name).exists()

    def save(
        self,
        name: str | None = None,
        level: str | CheckpointLevel = CheckpointLevel.STANDARD,
        vcs: VcsPointer | dict | None = None,
        overwrite: bool = False,
        description: str = "",
    ) -> Checkpoint:
        """Snapshot the stores at ``level`` and persist it; auto-prunes afterwards."""
        level = coerce_level(level)
        now = utcnow()
        name = name or f"{level.value}-{now.strftime('%Y%m%dT%H%M%S%fZ')}"
        path = self._path(name)
        if path.exists() and not overwrite:
            raise InvalidInput(f"Checkpoint already exists: {name}")
        if not isinstance(vcs, VcsPointer):
            vcs = VcsPointer.from_dict(vcs)

        facts = {}
        for category in LEVEL_CATEGORIES[level]:
            doc = self.fact_store.stored(category)
            if doc is not None:
                facts[category] = doc
        instincts = self.instinct_store.snapshot() if includes_instincts(level) else None

        checkpoint = Checkpoint(
            name=name,
            created_at=now,
            level=level,
            vcs=vcs,
            facts=facts,
            instincts=instincts,
            description=description or LEVEL_DESCRIPTIONS[level],
        )
        atomic_write_json(path, checkpoint.to_dict())
        logger.info(
            "checkpoint_saved",
            name=name,
            level=level.value,
            facts=len(facts),
            instincts=len(instincts) if instincts is not None else None,
        )

        if self.keep:
            self.prune(self.keep)
        return checkpoint

    def _read(self, path: Path) -> Checkpoint | None:
        try:
            return Checkpoint.from_dict(read_json(path))
        except (OSError, ValueError, SchemaMismatch) as e:
            moved = quarantine(path)
            logger.warning(
                "checkpoint_corrupt",
                path=str(path),
                error=str(e),
                moved_to=str(moved) if moved else None,
            )
            return None

    def _entries(self) -> list[tuple[Path, Checkpoint]]:
        """Every readable checkpoint with the file it came from, newest first.

        Ties break on the stored name, then the file name, both descending.
        """
        entries = []
        for path in self.dir.glob("*.json"):
            checkpoint = self._read(path)
            if checkpoint is None:
                continue
            if path.stem != checkpoint.name:
                logger.warning("checkpoint_name_mismatch", path=str(path), name=checkpoint.name)
            entries.append((path, checkpoint))
        return sorted(
            entries, key=lambda e: (e[1].created_at, e[1].name, e[0].name), reverse=True
        )

    def _all(self) -> list[Checkpoint]:
        return [checkpoint for _, checkpoint in self._entries()]

    def list(self) -> list[dict]:
        return [cp.info() for cp in self._all()]

    def restore(self, name: str) -> Checkpoint:
        """The stored snapshot, unchanged. Does not touch the live stores."""
        path = self._path(name)
        if not path.exists():
            raise NotFound(f"Checkpoint not found: {name}")
        checkpoint = self._read(path)
        if checkpoint is None:
            raise NotFound(f"Checkpoint unreadable and moved aside: {name}")
        return checkpoint

    def diff(self, name: str) -> RestorePlan:
        return plan_restore(self.restore(name), self.fact_store, self.instinct_store)

    def delete(self, name: str) -> None:
        path = self._path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFound(f"Checkpoint not found: {name}") from None
        logger.info("checkpoint_deleted", name=name)

    def prune(self, keep: int) -> list[str]:
        """Delete all but the ``keep`` most recent checkpoint files.

        Returns the deleted file names (without ``.json``).
        """
        if isinstance(keep, bool) or not isinstance(keep, int) or keep < 0:
            raise InvalidInput(f"keep must be a non-negative integer, got {keep!r}")
        deleted = []
        for path, _ in self._entries()[keep:]:
            path.unlink(missing_ok=True)
            deleted.append(path.stem)
        if deleted:
            logger.info("checkpoints_pruned", kept=keep, deleted=len(deleted))
        return deleted

    def export(self, name: str) -> dict:
        """Portable single document for one checkpoint."""
        return {
            "format": EXPORT_FORMAT,
            "schema_version": SCHEMA_VERSION,
            "exported_at": utcnow().isoformat(),
            "checkpoint": self.restore(name).to_dict(),
        }

    def import_document(self, document: dict, overwrite: bool = False) -> Checkpoint:
        """Validate an exported document and store its checkpoint."""
        if not isinstance(document, dict) or document.get("format") != EXPORT_FORMAT:
            raise SchemaMismatch(f"Not a {EXPORT_FORMAT} document")
        if document.get("schema_version") != SCHEMA_VERSION:
            raise SchemaMismatch(
                f"Unsupported export schema_version {document.get('schema_version')!r}"
            )
        if "checkpoint" not in document:
            raise SchemaMismatch("Export document has no 'checkpoint'")

        checkpoint = Checkpoint.from_dict(document["checkpoint"])
        path = self._path(checkpoint.name)
        if path.exists() and not overwrite:
            raise InvalidInput(f"Checkpoint already exists: {checkpoint.name}")
        atomic_write_json(path, checkpoint.to_dict())
        logger.info("checkpoint_imported", name=checkpoint.name, level=checkpoint.level.value)
        return checkpoint

    def path_for(self, name: str) -> Path:
        return self._path(name)
