"""Persistent storage for project facts, one JSON document per category."""

import copy
import json
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import structlog

from errors import InvalidInput, NotFound, ProjectMemoryError, SchemaMismatch
from fileio import DiskStamp, atomic_write_json, dir_size, disk_stamp, quarantine, read_json
from shared_types import FactCategory, utcnow

from .models import FactDocument, coerce_category, default_fields

logger = structlog.get_logger()

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class FactStore:
    """JSON-file persistence for fact documents.

    Reads never raise for storage problems: a missing document is the
    category default, and an unparsable one is logged, moved aside and
    treated as missing. Documents are cached in memory together with the
    file's (mtime, size) stamp so edits made by another tool are picked up
    on the next read (last write wins).
    """

    def __init__(
        self,
        root: str | Path,
        registry=None,
        project_root: str | Path | None = None,
        max_store_bytes: int | None = None,
    ):
        self.dir = Path(root).expanduser() / "facts"
        self.dir.mkdir(parents=True, exist_ok=True)
        self.registry = registry
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.max_store_bytes = max_store_bytes
        self._cache: dict[FactCategory, tuple[DiskStamp, FactDocument]] = {}

    def _path(self, category: FactCategory) -> Path:
        return self.dir / f"{category.value}.json"

    def _read(self, category: FactCategory) -> FactDocument | None:
        path = self._path(category)
        stamp = disk_stamp(path)
        cached = self._cache.get(category)

        if stamp is None:
            if cached:
                logger.warning("fact_document_removed_on_disk", category=category.value)
                self._cache.pop(category, None)
            return None

        if cached:
            if cached[0] == stamp:
                return copy.deepcopy(cached[1])
            logger.warning("fact_document_changed_on_disk", category=category.value)

        try:
            doc = FactDocument.from_dict(read_json(path), expected=category)
        except (OSError, ValueError, SchemaMismatch) as e:
            self._cache.pop(category, None)
            moved = quarantine(path)
            logger.warning(
                "fact_document_corrupt",
                category=category.value,
                error=str(e),
                moved_to=str(moved) if moved else None,
            )
            return None

        self._cache[category] = (stamp, doc)
        return copy.deepcopy(doc)

    # -- reads ---------------------------------------------------------------

    def load(self, category: str | FactCategory) -> FactDocument:
        """Persisted document, or the category's default when there is none."""
        category = coerce_category(category)
        return self._read(category) or FactDocument.default(category)

    def stored(self, category: str | FactCategory) -> FactDocument | None:
        """Persisted document only; None when the category has never been saved."""
        return self._read(coerce_category(category))

    def all_stored(self) -> dict[FactCategory, FactDocument]:
        docs = {}
        for category in FactCategory:
            doc = self._read(category)
            if doc is not None:
                docs[category] = doc
        return docs

    def query(self, text: str) -> list[tuple[FactCategory, FactDocument]]:
        """Case-insensitive substring match over each stored document's JSON."""
        needle = (text or "").strip().lower()
        if not needle:
            return []
        results = []
        for category, doc in self.all_stored().items():
            haystack = json.dumps(doc.to_dict(), default=str).lower()
            if needle in haystack:
                results.append((category, doc))
        return results

    def summary(self) -> dict[str, dict]:
        """Existence and freshness per category from file metadata only.

        ``last_updated`` is the file's mtime. ``write`` pins that mtime to the
        document's own ``last_updated``, so both agree for documents this store
        wrote; a file edited by another tool reports when it was edited.
        """
        out = {}
        for category in FactCategory:
            try:
                st = self._path(category).stat()
            except FileNotFoundError:
                out[category.value] = {"exists": False, "last_updated": None, "size": 0}
                continue
            out[category.value] = {
                "exists": True,
                "last_updated": (_EPOCH + timedelta(microseconds=st.st_mtime_ns // 1000)).isoformat(),
                "size": st.st_size,
            }
        return out

    def is_stale(self, category: str | FactCategory) -> bool:
        """True when the extractor inputs changed since the stored document was produced.

        A document without a signature (hand-written, partial or module-scoped
        extraction) is stale whenever an extractor exists for its category.
        """
        category = coerce_category(category)
        doc = self._read(category)
        if doc is None:
            return True
        if self.registry is None or not self.registry.has(category):
            return False
        if doc.source_signature is None:
            return True
        return self.registry.signature(category, self.project_root) != doc.source_signature

    # -- writes --------------------------------------------------------------

    def save(
        self,
        category: str | FactCategory,
        fields: dict | None = None,
        refresh: bool = False,
        module: str | None = None,
    ) -> FactDocument:
        """Shallow-merge ``fields`` over the current document and persist it.

        With ``refresh`` the registered extractor runs first and its payload is
        merged before ``fields``. Every key is replaced wholesale, lists
        included, so repeated refreshes never grow a document. A ``module``
        refresh only scans that sub-directory; its payload is kept under
        ``module_scans[module]`` and the project-wide keys are left alone.
        """
        doc, _ = self._merge_and_write(coerce_category(category), fields, refresh, module)
        return doc

    def _merge_and_write(
        self,
        category: FactCategory,
        fields: dict | None,
        refresh: bool,
        module: str | None = None,
    ) -> tuple[FactDocument, str]:
        if fields is not None and not isinstance(fields, dict):
            raise InvalidInput(f"fields must be an object, got {type(fields).__name__}")

        previous = self._read(category)
        merged = previous.fields if previous else default_fields(category)
        signature = previous.source_signature if previous else None
        status = "saved"

        if refresh:
            if self.registry is None or not self.registry.has(category):
                raise NotFound(f"No extractor registered for category: {category}")
            result = self.registry.extract(category, self.project_root, module=module)
            if result.error:
                status = "failed"
                if not fields:
                    return previous or FactDocument.default(category), status
            elif module:
                scans = dict(merged.get("module_scans") or {})
                scans[Path(module).as_posix().strip("/")] = result.fields
                merged["module_scans"] = scans
                status = "partial" if result.partial else "refreshed"
            else:
                merged.update(result.fields)
                signature = result.signature
                status = "partial" if result.partial else "refreshed"

        if fields:
            merged.update(fields)

        doc = FactDocument(
            category=category,
            fields=merged,
            source_signature=signature,
            last_updated=utcnow(),
        )
        self.write(doc)
        logger.info(
            "fact_document_saved",
            category=category.value,
            keys=len(merged),
            refreshed=refresh,
            module=module,
            status=status,
        )
        return doc, status

    def write(self, doc: FactDocument) -> Path:
        """Persist ``doc`` as-is (atomic replace), enforcing the store size cap.

        The file's mtime is set to ``doc.last_updated`` so ``summary`` agrees
        with ``load`` even for documents restored from an older checkpoint.
        """
        path = self._path(doc.category)
        data = doc.to_dict()

        if self.max_store_bytes:
            size = len(json.dumps(data, indent=2, default=str)) + 1
            current = disk_stamp(path)
            others = dir_size(self.dir) - (current[1] if current else 0)
            if others + size > self.max_store_bytes:
                raise InvalidInput(
                    f"Saving {doc.category} would exceed the store limit of "
                    f"{self.max_store_bytes} bytes ({others + size} bytes)"
                )

        atomic_write_json(path, data)
        if doc.last_updated is not None:
            ns = round(doc.last_updated.timestamp() * 1_000_000) * 1000
            os.utime(path, ns=(ns, ns))
        self._cache[doc.category] = (disk_stamp(path), copy.deepcopy(doc))
        return path

    def forget(self, category: str | FactCategory, older_than: timedelta | None = None) -> bool:
        """Delete the stored document. Returns False when nothing was removed.

        With ``older_than``, only a document last updated before that age is removed.
        """
        category = coerce_category(category)
        path = self._path(category)

        if older_than is not None:
            doc = self._read(category)
            if doc is None:
                return False
            if doc.last_updated and utcnow() - doc.last_updated < older_than:
                return False

        self._cache.pop(category, None)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info("fact_document_forgotten", category=category.value)
        return True

    def refresh(self, categories: list[str] | None = None) -> dict[str, str]:
        """Re-extract categories.

        Status per category: refreshed, partial, skipped, failed (the extractor
        raised; the stored document is left as it was) or an error kind. One
        category failing never stops the others.
        """
        targets = categories or [c.value for c in FactCategory]
        results = {}
        for raw in targets:
            key = str(raw)
            try:
                category = coerce_category(raw)
                if self.registry is None or not self.registry.has(category):
                    results[key] = "skipped"
                    continue
                _, results[key] = self._merge_and_write(category, None, refresh=True)
            except ProjectMemoryError as e:
                logger.warning("fact_refresh_failed", category=key, kind=e.kind, error=str(e))
                results[key] = e.kind
        return results

    def expire(self, max_age: timedelta) -> list[str]:
        """Forget every document not updated within ``max_age``."""
        expired = []
        for category in list(self.all_stored()):
            if self.forget(category, older_than=max_age):
                expired.append(category.value)
        if expired:
            logger.info("fact_documents_expired", categories=expired)
        return expired
