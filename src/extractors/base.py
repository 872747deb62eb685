"""Extractor protocol and the bounded scan context handed to every extractor."""

import hashlib
import os
import time
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog

from errors import InvalidInput
from shared_types import FactCategory

logger = structlog.get_logger()

SKIP_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".gradle",
        ".idea",
        ".claude",
        ".venv",
        "venv",
        "__pycache__",
        "node_modules",
        "build",
        "dist",
        "Pods",
        "DerivedData",
    }
)


@dataclass(frozen=True)
class ScanLimits:
    """Upper bounds for one extraction pass."""

    max_files: int = 5000
    max_depth: int = 8
    timeout_seconds: float = 5.0


@dataclass
class ScanContext:
    """Everything an extractor needs about where to look.

    Passed explicitly to each call; extractors never share scan state.
    ``truncated`` is set when the walk stopped early (file cap or deadline),
    ``timed_out`` only for the deadline.
    """

    project_root: Path
    module: str | None = None
    limits: ScanLimits = field(default_factory=ScanLimits)
    files_seen: int = 0
    truncated: bool = False
    timed_out: bool = False
    _deadline: float | None = field(default=None, repr=False)

    def __post_init__(self):
        if self.module:
            root = self.project_root.resolve()
            target = (root / self.module).resolve()
            if target != root and root not in target.parents:
                raise InvalidInput(f"Module path escapes the project root: {self.module!r}")

    @property
    def root(self) -> Path:
        """Scan root: the module sub-directory when one was given."""
        if self.module:
            return self.project_root / self.module
        return self.project_root

    def _expired(self) -> bool:
        if self._deadline is None:
            self._deadline = time.monotonic() + self.limits.timeout_seconds
        return time.monotonic() > self._deadline

    def walk(
        self,
        suffixes: Iterable[str] | None = None,
        names: Iterable[str] | None = None,
    ) -> Iterator[Path]:
        """Yield files under ``root`` breadth-first, honoring the scan limits.

        A file is yielded when it matches any of ``suffixes`` or ``names``
        (everything when both are None). Stops quietly once a limit is hit.
        """
        suffixes = tuple(suffixes) if suffixes else ()
        names = frozenset(names) if names else frozenset()
        match_all = not suffixes and not names

        root = self.root
        if not root.is_dir():
            return

        queue: deque[tuple[Path, int]] = deque([(root, 0)])
        while queue:
            directory, depth = queue.popleft()
            try:
                entries = sorted(os.scandir(directory), key=lambda e: e.name)
            except OSError as e:
                logger.debug("scan_dir_unreadable", path=str(directory), error=str(e))
                continue
            for entry in entries:
                if self._expired():
                    self.truncated = self.timed_out = True
                    logger.warning(
                        "scan_timeout",
                        root=str(root),
                        files_seen=self.files_seen,
                        timeout=self.limits.timeout_seconds,
                    )
                    return
                if entry.is_dir(follow_symlinks=False):
                    if entry.name not in SKIP_DIRS and depth + 1 <= self.limits.max_depth:
                        queue.append((Path(entry.path), depth + 1))
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
                self.files_seen += 1
                if self.files_seen > self.limits.max_files:
                    self.truncated = True
                    logger.warning(
                        "scan_file_cap_reached", root=str(root), max_files=self.limits.max_files
                    )
                    return
                if match_all or entry.name in names or entry.name.endswith(suffixes):
                    yield Path(entry.path)

    def relative(self, path: Path) -> str:
        """Path relative to the project root, with forward slashes."""
        return path.relative_to(self.project_root).as_posix()

    def read_text(self, path: Path, max_bytes: int = 512_000) -> str:
        """Read a (bounded) text file; unreadable files read as empty."""
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                return f.read(max_bytes)
        except OSError as e:
            logger.debug("scan_file_unreadable", path=str(path), error=str(e))
            return ""


@runtime_checkable
class Extractor(Protocol):
    """Produces a fresh payload for one fact category."""

    category: FactCategory

    def extract(self, scan: ScanContext) -> dict[str, Any]: ...


@dataclass
class ExtractionResult:
    fields: dict[str, Any]
    signature: str | None = None
    partial: bool = False
    error: str | None = None


def files_signature(paths: Iterable[Path]) -> str | None:
    """SHA256 over (path, mtime_ns, size) of the existing ``paths``; None if none exist."""
    h = hashlib.sha256()
    found = False
    for path in sorted(set(paths)):
        try:
            st = path.stat()
        except OSError:
            continue
        found = True
        h.update(f"{path}:{st.st_mtime_ns}:{st.st_size}\n".encode())
    return h.hexdigest()[:16] if found else None
