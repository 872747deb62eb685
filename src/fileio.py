"""Shared JSON file helpers: atomic writes and on-disk change stamps."""

import json
import os
import tempfile
from pathlib import Path

DiskStamp = tuple[int, int]


def atomic_write_json(path: str | Path, data) -> Path:
    """Write ``data`` as JSON via a temp file in the same directory + os.replace.

    Readers see either the old document or the new one, never a partial write.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def read_json(path: str | Path):
    """Parse a JSON file. Raises OSError / ValueError on failure."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def disk_stamp(path: str | Path) -> DiskStamp | None:
    """(mtime_ns, size) of ``path``, or None when it does not exist."""
    try:
        st = os.stat(path)
    except FileNotFoundError:
        return None
    return (st.st_mtime_ns, st.st_size)


def quarantine(path: str | Path) -> Path | None:
    """Move an unreadable document aside so it stops shadowing the default."""
    path = Path(path)
    target = path.with_name(path.name + ".corrupt")
    try:
        os.replace(path, target)
    except FileNotFoundError:
        return None
    return target


def dir_size(path: str | Path, pattern: str = "*.json") -> int:
    """Total bytes of files matching ``pattern`` directly under ``path``."""
    path = Path(path)
    if not path.exists():
        return 0
    return sum(p.stat().st_size for p in path.glob(pattern) if p.is_file())
