"""Instinct store: append or reinforce pattern records with a bounded confidence."""

from __future__ import annotations

import copy
from datetime import timedelta
from pathlib import Path

import structlog

from errors import InvalidInput, NotFound, SchemaMismatch
from fileio import DiskStamp, atomic_write_json, disk_stamp, quarantine, read_json
from shared_types import utcnow

from .models import HIGH_CONFIDENCE, Instinct, InstinctCandidate, check_confidence

logger = structlog.get_logger()

SCHEMA_VERSION = 1
EXPORT_FORMAT = "project-memory-instincts"


class InstinctStore:
    """Single-document JSON store of instincts keyed by detector-assigned id.

    Confidence rules for a repeated id:
      confidence = min(ceiling, max(existing, offered))
      + reinforcement_step each time observation_count reaches a multiple of
        reinforcement_threshold (still capped at ceiling)
    ``record`` never lowers confidence; only the explicit ``decay`` does.
    """

    def __init__(
        self,
        root: str | Path,
        max_examples: int = 5,
        reinforcement_threshold: int = 3,
        reinforcement_step: float = 0.15,
        confidence_ceiling: float = 0.9,
    ):
        if max_examples < 1 or reinforcement_threshold < 1:
            raise ValueError("max_examples and reinforcement_threshold must be >= 1")
        self.path = Path(root).expanduser() / "instincts.json"
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.max_examples = max_examples
        self.reinforcement_threshold = reinforcement_threshold
        self.reinforcement_step = reinforcement_step
        self.confidence_ceiling = confidence_ceiling
        self._cache: tuple[DiskStamp, dict[str, Instinct]] | None = None

    # -- persistence ---------------------------------------------------------

    def _load(self) -> dict[str, Instinct]:
        stamp = disk_stamp(self.path)
        if stamp is None:
            if self._cache:
                logger.warning("instinct_store_removed_on_disk", path=str(self.path))
            self._cache = None
            return {}

        if self._cache:
            if self._cache[0] == stamp:
                return copy.deepcopy(self._cache[1])
            logger.warning("instinct_store_changed_on_disk", path=str(self.path))

        try:
            records = self._parse(read_json(self.path))
        except (OSError, ValueError, SchemaMismatch) as e:
            self._cache = None
            moved = quarantine(self.path)
            logger.warning(
                "instinct_store_corrupt",
                error=str(e),
                moved_to=str(moved) if moved else None,
            )
            return {}

        self._cache = (stamp, records)
        return copy.deepcopy(records)

    @staticmethod
    def _parse(data) -> dict[str, Instinct]:
        if not isinstance(data, dict):
            raise SchemaMismatch("instinct store must be a JSON object")
        if data.get("schema_version") != SCHEMA_VERSION:
            raise SchemaMismatch(
                f"Unsupported instinct schema_version {data.get('schema_version')!r}"
            )
        items = data.get("instincts")
        if not isinstance(items, list):
            raise SchemaMismatch("'instincts' must be a list")

        records: dict[str, Instinct] = {}
        for item in items:
            try:
                inst = Instinct.from_dict(item)
            except SchemaMismatch as e:
                logger.warning("instinct_record_skipped", error=str(e))
                continue
            records[inst.id] = inst
        return records

    def _save(self, records: dict[str, Instinct]) -> None:
        data = {
            "schema_version": SCHEMA_VERSION,
            "last_updated": utcnow().isoformat(),
            "instincts": [r.to_dict() for r in records.values()],
        }
        atomic_write_json(self.path, data)
        self._cache = (disk_stamp(self.path), copy.deepcopy(records))

    # -- recording -----------------------------------------------------------

    def record(self, candidate: InstinctCandidate | dict) -> Instinct:
        """Insert a new instinct or reinforce an existing one."""
        if isinstance(candidate, InstinctCandidate):
            candidate = candidate.validate()
        else:
            candidate = InstinctCandidate.from_dict(candidate)

        records = self._load()
        now = utcnow()
        inst = records.get(candidate.id)

        if inst is None:
            inst = Instinct(
                id=candidate.id,
                description=candidate.description,
                context=candidate.context,
                confidence=candidate.confidence,
                examples=[candidate.example] if candidate.example else [],
                source=candidate.source,
                first_seen=now,
                last_used=now,
            )
            records[inst.id] = inst
            logger.info("instinct_added", id=inst.id, confidence=inst.confidence)
        else:
            previous = inst.confidence
            inst.observation_count += 1
            if candidate.example:
                self._add_example(inst, candidate.example)
            inst.confidence = self._reinforce(
                inst.confidence, candidate.confidence, inst.observation_count
            )
            inst.last_used = now
            inst.description = inst.description or candidate.description
            inst.context = inst.context or candidate.context
            logger.info(
                "instinct_reinforced",
                id=inst.id,
                observations=inst.observation_count,
                confidence=inst.confidence,
                previous=previous,
            )

        self._save(records)
        return copy.deepcopy(inst)

    def _reinforce(self, current: float, offered: float, count: int) -> float:
        updated = min(self.confidence_ceiling, max(current, offered))
        if count % self.reinforcement_threshold == 0:
            updated = min(self.confidence_ceiling, updated + self.reinforcement_step)
        # A value already above the ceiling (inserted that way) is kept as-is.
        return round(max(current, updated), 6)

    def _add_example(self, inst: Instinct, example: str) -> None:
        if example in inst.examples:
            return
        inst.examples.append(example)
        del inst.examples[: max(0, len(inst.examples) - self.max_examples)]

    # -- reads ---------------------------------------------------------------

    def list(self, min_confidence: float | None = None, context: str | None = None) -> list[Instinct]:
        """Instincts sorted by confidence (desc) then id, optionally filtered."""
        if min_confidence is not None:
            min_confidence = check_confidence(min_confidence, "min_confidence")
        records = self._load().values()
        out = [
            r
            for r in records
            if (min_confidence is None or r.confidence >= min_confidence)
            and (context is None or r.context == context)
        ]
        return sorted(out, key=lambda r: (-r.confidence, r.id))

    def get(self, instinct_id: str) -> Instinct:
        inst = self._load().get(instinct_id)
        if inst is None:
            raise NotFound(f"Instinct not found: {instinct_id}")
        return inst

    def stats(self) -> dict:
        records = list(self._load().values())
        by_context: dict[str, int] = {}
        for r in records:
            by_context[r.context] = by_context.get(r.context, 0) + 1
        return {
            "total": len(records),
            "high_confidence": sum(1 for r in records if r.confidence >= HIGH_CONFIDENCE),
            "by_context": by_context,
        }

    def snapshot(self) -> list[Instinct]:
        """Independent copy of every record, in insertion order."""
        return list(self._load().values())

    # -- maintenance ---------------------------------------------------------

    def remove(self, instinct_id: str) -> None:
        records = self._load()
        if instinct_id not in records:
            raise NotFound(f"Instinct not found: {instinct_id}")
        del records[instinct_id]
        self._save(records)
        logger.info("instinct_removed", id=instinct_id)

    def replace_all(self, instincts: list[Instinct]) -> None:
        """Overwrite the whole store (used when applying a checkpoint)."""
        self._save({inst.id: copy.deepcopy(inst) for inst in instincts})
        logger.info("instinct_store_replaced", count=len(instincts))

    def decay(self, older_than: timedelta, step: float = 0.05, floor: float = 0.1) -> int:
        """Lower confidence of instincts unused for ``older_than``. Returns how many changed.

        Opt-in: nothing in the store calls this implicitly.
        """
        if step < 0:
            raise InvalidInput(f"decay step must be >= 0, got {step}")
        floor = check_confidence(floor, "floor")
        cutoff = utcnow() - older_than
        records = self._load()
        changed = 0
        for inst in records.values():
            if inst.last_used < cutoff and inst.confidence > floor:
                inst.confidence = round(max(floor, inst.confidence - step), 6)
                changed += 1
        if changed:
            self._save(records)
        logger.info("instincts_decayed", changed=changed, older_than_days=older_than.days)
        return changed

    def export_document(self) -> dict:
        return {
            "format": EXPORT_FORMAT,
            "schema_version": SCHEMA_VERSION,
            "exported_at": utcnow().isoformat(),
            "instincts": [r.to_dict() for r in self._load().values()],
        }

    def import_document(self, document: dict) -> dict[str, int]:
        """Merge an exported document, keeping the higher-confidence record per id."""
        if not isinstance(document, dict) or document.get("format") != EXPORT_FORMAT:
            raise SchemaMismatch(f"Not a {EXPORT_FORMAT} document")
        if document.get("schema_version") != SCHEMA_VERSION:
            raise SchemaMismatch(
                f"Unsupported schema_version {document.get('schema_version')!r}"
            )
        items = document.get("instincts")
        if not isinstance(items, list):
            raise SchemaMismatch("'instincts' must be a list")
        incoming = [Instinct.from_dict(item) for item in items]

        records = self._load()
        counts = {"added": 0, "updated": 0, "skipped": 0}
        for inst in incoming:
            existing = records.get(inst.id)
            if existing is None:
                records[inst.id] = inst
                counts["added"] += 1
            elif inst.confidence > existing.confidence:
                records[inst.id] = inst
                counts["updated"] += 1
            else:
                counts["skipped"] += 1
        self._save(records)
        logger.info("instincts_imported", **counts)
        return counts
