"""Immutable snapshots of both stores plus a VCS pointer."""

from .manager import CheckpointManager
from .models import LEVEL_CATEGORIES, Checkpoint, RestorePlan, VcsPointer
from .restore import apply_checkpoint, plan_restore
from .vcs import current_vcs_pointer

__all__ = [
    "LEVEL_CATEGORIES",
    "Checkpoint",
    "CheckpointManager",
    "RestorePlan",
    "VcsPointer",
    "apply_checkpoint",
    "current_vcs_pointer",
    "plan_restore",
]
