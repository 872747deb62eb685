"""CLI command modules."""

from .checkpoint import checkpoint
from .compact import compact
from .facts import facts
from .instincts import instincts

__all__ = [
    "checkpoint",
    "compact",
    "facts",
    "instincts",
]
