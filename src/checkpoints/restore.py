"""Diffing a checkpoint against live state, and applying it on request."""

import structlog

from facts.store import FactStore
from instincts.store import InstinctStore

from .models import LEVEL_CATEGORIES, Checkpoint, RestorePlan

logger = structlog.get_logger()


def plan_restore(
    checkpoint: Checkpoint, fact_store: FactStore, instinct_store: InstinctStore
) -> RestorePlan:
    """Describe how live state differs from ``checkpoint``. Read-only."""
    plan = RestorePlan(checkpoint=checkpoint.name)
    live = fact_store.all_stored()

    for category in LEVEL_CATEGORIES[checkpoint.level]:
        snap = checkpoint.facts.get(category)
        current = live.get(category)
        if snap is None:
            if current is not None:
                plan.facts_to_forget.append(category)
        elif current is None or current.to_dict() != snap.to_dict():
            plan.facts_to_write.append(category)

    if checkpoint.instincts is not None:
        plan.restores_instincts = True
        live_instincts = {i.id: i.to_dict() for i in instinct_store.snapshot()}
        snap_instincts = {i.id: i.to_dict() for i in checkpoint.instincts}
        for inst_id, record in snap_instincts.items():
            if inst_id not in live_instincts:
                plan.instincts_to_add.append(inst_id)
            elif live_instincts[inst_id] != record:
                plan.instincts_to_update.append(inst_id)
        plan.instincts_to_remove = [i for i in live_instincts if i not in snap_instincts]

    return plan


def apply_checkpoint(
    checkpoint: Checkpoint, fact_store: FactStore, instinct_store: InstinctStore
) -> RestorePlan:
    """Make live state match ``checkpoint`` for the categories its level covers.

    This is the explicit caller action; the checkpoint manager never calls it.
    """
    plan = plan_restore(checkpoint, fact_store, instinct_store)
    for category in plan.facts_to_write:
        fact_store.write(checkpoint.facts[category])
    for category in plan.facts_to_forget:
        fact_store.forget(category)
    if plan.restores_instincts and (
        plan.instincts_to_add or plan.instincts_to_update or plan.instincts_to_remove
    ):
        instinct_store.replace_all(checkpoint.instincts)
    logger.info("checkpoint_applied", name=checkpoint.name, **_counts(plan))
    return plan


def _counts(plan: RestorePlan) -> dict:
    return {
        "facts_written": len(plan.facts_to_write),
        "facts_forgotten": len(plan.facts_to_forget),
        "instincts_added": len(plan.instincts_to_add),
        "instincts_updated": len(plan.instincts_to_update),
        "instincts_removed": len(plan.instincts_to_remove),
    }
