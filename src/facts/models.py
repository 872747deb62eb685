"""Fact document model and per-category default payloads."""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from errors import NotFound, SchemaMismatch
from shared_types import FactCategory, parse_timestamp

SCHEMA_VERSION = 1

_DEFAULT_FIELDS: dict[FactCategory, dict[str, Any]] = {
    FactCategory.STRUCTURE: {
        "modules": [],
        "feature_modules": [],
        "source_dirs": [],
        "build_files": [],
    },
    FactCategory.DEPENDENCIES: {
        "libraries": [],
        "plugins": [],
        "build_tool_version": None,
    },
    FactCategory.ARCHITECTURE: {
        "pattern": None,
        "ui_layer": {"screens": [], "components": [], "viewmodels": []},
        "data_layer": {"repositories": [], "datasources": [], "models": []},
        "domain_layer": {"usecases": [], "models": []},
        "di": {"framework": None, "modules": []},
    },
    FactCategory.TEST_COVERAGE: {
        "modules": [],
        "total_coverage": 0,
        "trend": "stable",
        "failing_tests": [],
        "flaky_tests": [],
    },
    FactCategory.SCREENS: {
        "screens": [],
        "navigation": {"type": None, "graph_file": None},
    },
    FactCategory.BUILD_VARIANTS: {"variants": [], "flavors": []},
    FactCategory.NAVIGATION: {"routes": [], "deep_links": [], "nested_graphs": []},
    FactCategory.RECENT_CHANGES: {"files": [], "sessions": []},
}


def coerce_category(category: str | FactCategory) -> FactCategory:
    """Map a boundary string onto the category enum, raising NotFound for unknown names."""
    if isinstance(category, FactCategory):
        return category
    try:
        return FactCategory(category)
    except ValueError:
        valid = ", ".join(c.value for c in FactCategory)
        raise NotFound(f"Unknown fact category: {category!r} (valid: {valid})") from None


def default_fields(category: FactCategory) -> dict[str, Any]:
    """Fresh copy of the zero-value payload for ``category``."""
    return copy.deepcopy(_DEFAULT_FIELDS.get(category, {}))


@dataclass
class FactDocument:
    category: FactCategory
    fields: dict[str, Any] = field(default_factory=dict)
    schema_version: int = SCHEMA_VERSION
    source_signature: str | None = None
    last_updated: datetime | None = None

    @classmethod
    def default(cls, category: FactCategory) -> "FactDocument":
        return cls(category=category, fields=default_fields(category))

    @property
    def exists(self) -> bool:
        return self.last_updated is not None

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "schema_version": self.schema_version,
            "fields": self.fields,
            "source_signature": self.source_signature,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: dict, expected: FactCategory | None = None) -> "FactDocument":
        """Validate and build a document. Raises SchemaMismatch on any structural problem."""
        if not isinstance(data, dict):
            raise SchemaMismatch("Fact document must be a JSON object")
        version = data.get("schema_version")
        if version != SCHEMA_VERSION:
            raise SchemaMismatch(
                f"Unsupported fact schema_version {version!r} (expected {SCHEMA_VERSION})"
            )
        try:
            category = FactCategory(data.get("category"))
        except ValueError:
            raise SchemaMismatch(f"Unknown category in document: {data.get('category')!r}") from None
        if expected is not None and category != expected:
            raise SchemaMismatch(f"Document category {category} does not match {expected}")
        fields = data.get("fields")
        if not isinstance(fields, dict):
            raise SchemaMismatch("Fact document 'fields' must be an object")
        last_updated = data.get("last_updated")
        try:
            parsed = parse_timestamp(last_updated)
        except (TypeError, ValueError):
            raise SchemaMismatch(f"Invalid last_updated: {last_updated!r}") from None
        return cls(
            category=category,
            fields=fields,
            schema_version=version,
            source_signature=data.get("source_signature"),
            last_updated=parsed,
        )
