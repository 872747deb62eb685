"""Read the current git position for checkpoint metadata."""

import subprocess
from pathlib import Path

import structlog

from .models import VcsPointer

logger = structlog.get_logger()


def _git(args: list[str], cwd: Path, timeout: float) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
        logger.debug("git_command_failed", args=args, error=str(e))
        return None
    return result.stdout.strip()


def current_vcs_pointer(project_root: str | Path, timeout: float = 5.0) -> VcsPointer:
    """Branch, HEAD revision and dirty flag; unknown values are None (not a repo, no git)."""
    cwd = Path(project_root)
    branch = _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd, timeout)
    revision = _git(["rev-parse", "HEAD"], cwd, timeout)
    status = _git(["status", "--porcelain"], cwd, timeout)
    return VcsPointer(branch=branch, revision=revision, dirty=bool(status))
