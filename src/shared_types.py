"""Shared enums, types and timestamp helpers for project-memory."""

from datetime import datetime, timezone
from enum import StrEnum


class FactCategory(StrEnum):
    STRUCTURE = "structure"
    DEPENDENCIES = "dependencies"
    ARCHITECTURE = "architecture"
    TEST_COVERAGE = "test-coverage"
    SCREENS = "screens"
    BUILD_VARIANTS = "build-variants"
    NAVIGATION = "navigation"
    RECENT_CHANGES = "recent-changes"


class InstinctSource(StrEnum):
    DIRECT = "direct"
    OBSERVED = "observed"


class CheckpointLevel(StrEnum):
    QUICK = "quick"
    STANDARD = "standard"
    FULL = "full"


class CompactionStrategy(StrEnum):
    MODULE_FOCUSED = "module-focused"
    LAYER_FOCUSED = "layer-focused"
    TEST_FOCUSED = "test-focused"
    SMART = "smart"


class ItemKind(StrEnum):
    FACT = "fact"
    INSTINCT = "instinct"
    OTHER = "other"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str | None) -> datetime | None:
    """ISO-8601 string to an aware datetime; naive values are taken as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
