"""Inputs and output of the compaction planner."""

import math
from dataclasses import dataclass, field
from datetime import datetime

from errors import InvalidInput
from instincts.models import check_confidence
from shared_types import CompactionStrategy, ItemKind, parse_timestamp


def estimate_tokens(chars: int) -> int:
    """Rough token count (about four characters per token)."""
    return math.ceil(max(chars, 0) / 4)


@dataclass
class ContextItem:
    """One piece of working context the caller may keep, summarize or drop."""

    ref: str
    size: int
    kind: ItemKind = ItemKind.OTHER
    text: str = ""
    category: str | None = None
    context: str | None = None
    confidence: float | None = None
    last_used: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "ContextItem":
        if not isinstance(data, dict) or not data.get("ref"):
            raise InvalidInput("context item needs a 'ref'")
        text = str(data.get("text") or "")
        try:
            kind = ItemKind(data.get("kind", ItemKind.OTHER))
            last_used = parse_timestamp(data.get("last_used"))
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Invalid context item {data['ref']!r}: {e}") from None
        confidence = data.get("confidence")
        return cls(
            ref=str(data["ref"]),
            size=data.get("size", len(text)),
            kind=kind,
            text=text,
            category=data.get("category"),
            context=data.get("context"),
            confidence=check_confidence(confidence) if confidence is not None else None,
            last_used=last_used,
        )


@dataclass(frozen=True)
class FocusHint:
    active_category: str | None = None
    active_instinct_context: str | None = None


@dataclass(frozen=True)
class SizeBudget:
    """Budget for retained items; synopses draw from their own, smaller budget."""

    max_size: int
    synopsis_size: int = 200
    synopsis_budget: int | None = None

    def validate(self) -> "SizeBudget":
        for label, value in (("max_size", self.max_size), ("synopsis_size", self.synopsis_size)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidInput(f"{label} must be a non-negative integer, got {value!r}")
        if self.synopsis_size < 16:
            raise InvalidInput("synopsis_size must be at least 16")
        if self.synopsis_budget is not None and self.synopsis_budget < 0:
            raise InvalidInput("synopsis_budget must be non-negative")
        return self

    @property
    def effective_synopsis_budget(self) -> int:
        if self.synopsis_budget is not None:
            return self.synopsis_budget
        return max(self.synopsis_size, self.max_size // 4)


@dataclass
class CompactionPlan:
    """Advisory partition of context items. Never applied by the planner."""

    strategy: CompactionStrategy
    budget: int
    retain: list[str] = field(default_factory=list)
    summarize: list[tuple[str, str]] = field(default_factory=list)
    drop: list[str] = field(default_factory=list)
    estimated_size_before: int = 0
    estimated_size_after: int = 0
    scores: dict[str, float] = field(default_factory=dict)

    @property
    def estimated_savings(self) -> int:
        return self.estimated_size_before - self.estimated_size_after

    @property
    def requires_checkpoint(self) -> bool:
        """Dropping is lossy, so take a checkpoint before applying such a plan."""
        return bool(self.drop)

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy.value,
            "budget": self.budget,
            "retain": self.retain,
            "summarize": [{"ref": ref, "synopsis": syn} for ref, syn in self.summarize],
            "drop": self.drop,
            "estimated_size_before": self.estimated_size_before,
            "estimated_size_after": self.estimated_size_after,
            "estimated_savings": self.estimated_savings,
            "requires_checkpoint": self.requires_checkpoint,
            "scores": self.scores,
        }
