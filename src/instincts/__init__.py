"""Recurring project patterns with an evolving confidence score."""

from .models import HIGH_CONFIDENCE, Instinct, InstinctCandidate
from .store import InstinctStore

__all__ = ["HIGH_CONFIDENCE", "Instinct", "InstinctCandidate", "InstinctStore"]
