"""Budget-aware compaction planning over facts and instincts."""

from .models import CompactionPlan, ContextItem, FocusHint, SizeBudget, estimate_tokens
from .planner import items_from_stores, make_synopsis, plan, score_item

__all__ = [
    "CompactionPlan",
    "ContextItem",
    "FocusHint",
    "SizeBudget",
    "estimate_tokens",
    "items_from_stores",
    "make_synopsis",
    "plan",
    "score_item",
]
