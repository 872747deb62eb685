"""Decide what to retain, summarize or drop when context must fit a size budget.

Scoring tiers (before the strategy bias):
  focus match                      1.0
  confidence >= 0.7                0.6   (never dropped, any kind)
  anything else                    0.1
A strategy adds at most STRATEGY_BONUS. Items that do not fit the budget are
summarized when their score reaches SUMMARIZE_MIN_SCORE, otherwise dropped.
"""

import json
from datetime import timedelta

import structlog

from errors import InvalidInput
from facts.store import FactStore
from instincts.models import HIGH_CONFIDENCE
from instincts.store import InstinctStore
from shared_types import CompactionStrategy, FactCategory, ItemKind, utcnow

from .models import CompactionPlan, ContextItem, FocusHint, SizeBudget

logger = structlog.get_logger()

FOCUS_SCORE = 1.0
HIGH_CONFIDENCE_SCORE = 0.6
BASE_SCORE = 0.1
STRATEGY_BONUS = 0.25
SUMMARIZE_MIN_SCORE = 0.3
RECENT_WINDOW = timedelta(days=7)

_STRATEGY_CATEGORIES = {
    CompactionStrategy.MODULE_FOCUSED: {FactCategory.STRUCTURE, FactCategory.DEPENDENCIES},
    CompactionStrategy.LAYER_FOCUSED: {
        FactCategory.ARCHITECTURE,
        FactCategory.SCREENS,
        FactCategory.NAVIGATION,
    },
    CompactionStrategy.TEST_FOCUSED: {FactCategory.TEST_COVERAGE},
}


def is_high_confidence(item: ContextItem) -> bool:
    return item.confidence is not None and item.confidence >= HIGH_CONFIDENCE


def _matches_focus(item: ContextItem, focus: FocusHint) -> bool:
    if focus.active_category and item.category == focus.active_category:
        return True
    if focus.active_instinct_context and item.context == focus.active_instinct_context:
        return True
    return False


def _strategy_bonus(item: ContextItem, strategy: CompactionStrategy, now) -> float:
    if strategy == CompactionStrategy.SMART:
        bonus = 0.0
        if item.last_used is not None:
            age = now - item.last_used
            if age < RECENT_WINDOW:
                bonus += 0.15 * (1 - max(age, timedelta(0)) / RECENT_WINDOW)
        if item.confidence is not None:
            bonus += 0.1 * item.confidence
        return min(STRATEGY_BONUS, bonus)

    if item.category in _STRATEGY_CATEGORIES[strategy]:
        return STRATEGY_BONUS
    if strategy == CompactionStrategy.TEST_FOCUSED and "test" in (item.context or "").lower():
        return STRATEGY_BONUS
    return 0.0


def score_item(
    item: ContextItem,
    focus: FocusHint,
    strategy: CompactionStrategy = CompactionStrategy.SMART,
    now=None,
) -> float:
    """Retention score for one item; higher is kept first."""
    now = now or utcnow()
    if _matches_focus(item, focus):
        score = FOCUS_SCORE
    elif is_high_confidence(item):
        score = HIGH_CONFIDENCE_SCORE
    else:
        score = BASE_SCORE
    return round(score + _strategy_bonus(item, strategy, now), 6)


def make_synopsis(item: ContextItem, size: int) -> str:
    """Fixed-size one-line stand-in for an item."""
    if item.kind == ItemKind.INSTINCT:
        label = f"[{item.context or 'instinct'}] "
        tail = f" (confidence {item.confidence:.2f})" if item.confidence is not None else ""
    else:
        label = f"[{item.category or item.kind.value}] "
        tail = ""
    body = " ".join((item.text or item.ref).split())
    text = f"{label}{body}{tail}"
    if len(text) <= size:
        return text
    return text[: size - 3].rstrip() + "..."


def _validate(items: list[ContextItem]) -> None:
    seen = set()
    for item in items:
        if item.ref in seen:
            raise InvalidInput(f"Duplicate context item ref: {item.ref}")
        seen.add(item.ref)
        if isinstance(item.size, bool) or not isinstance(item.size, int) or item.size < 0:
            raise InvalidInput(f"Item {item.ref} has invalid size {item.size!r}")
        if item.confidence is not None and not 0.0 <= item.confidence <= 1.0:
            raise InvalidInput(f"Item {item.ref} confidence out of range: {item.confidence}")


def plan(
    items: list[ContextItem],
    budget: SizeBudget | int,
    focus: FocusHint | None = None,
    strategy: CompactionStrategy | str = CompactionStrategy.SMART,
) -> CompactionPlan:
    """Partition ``items`` into retain / summarize / drop. Pure; nothing is applied."""
    if isinstance(budget, int) and not isinstance(budget, bool):
        budget = SizeBudget(max_size=budget)
    budget = budget.validate()
    focus = focus or FocusHint()
    try:
        strategy = CompactionStrategy(strategy)
    except ValueError:
        raise InvalidInput(f"Unknown compaction strategy: {strategy!r}") from None
    _validate(items)

    now = utcnow()
    scored = [(item, score_item(item, focus, strategy, now)) for item in items]
    scored.sort(key=lambda pair: (-pair[1], pair[0].size, pair[0].ref))

    result = CompactionPlan(
        strategy=strategy,
        budget=budget.max_size,
        estimated_size_before=sum(item.size for item in items),
        scores={item.ref: score for item, score in scored},
    )
    used = 0
    synopsis_used = 0
    synopsis_budget = budget.effective_synopsis_budget

    for item, score in scored:
        if used + item.size <= budget.max_size:
            result.retain.append(item.ref)
            used += item.size
            continue

        high = is_high_confidence(item)
        if high or score >= SUMMARIZE_MIN_SCORE:
            synopsis = make_synopsis(item, budget.synopsis_size)
            # High-confidence items are summarized even past the synopsis budget.
            if high or synopsis_used + len(synopsis) <= synopsis_budget:
                result.summarize.append((item.ref, synopsis))
                synopsis_used += len(synopsis)
                continue

        result.drop.append(item.ref)

    result.estimated_size_after = used + synopsis_used
    logger.info(
        "compaction_planned",
        strategy=strategy.value,
        items=len(items),
        retained=len(result.retain),
        summarized=len(result.summarize),
        dropped=len(result.drop),
        before=result.estimated_size_before,
        after=result.estimated_size_after,
    )
    return result


def items_from_stores(fact_store: FactStore, instinct_store: InstinctStore) -> list[ContextItem]:
    """Context items for every stored fact document and every instinct."""
    items = []
    for category, doc in fact_store.all_stored().items():
        text = json.dumps(doc.fields, sort_keys=True, default=str)
        items.append(
            ContextItem(
                ref=f"fact:{category.value}",
                size=len(text),
                kind=ItemKind.FACT,
                text=text,
                category=category.value,
                last_used=doc.last_updated,
            )
        )
    for inst in instinct_store.snapshot():
        text = inst.description
        if inst.examples:
            text += " e.g. " + ", ".join(inst.examples)
        items.append(
            ContextItem(
                ref=f"instinct:{inst.id}",
                size=len(json.dumps(inst.to_dict())),
                kind=ItemKind.INSTINCT,
                text=text,
                context=inst.context,
                confidence=inst.confidence,
                last_used=inst.last_used,
            )
        )
    return items
