"""Project fact store: schema-versioned documents keyed by category."""

from .models import SCHEMA_VERSION, FactDocument, coerce_category, default_fields
from .store import FactStore

__all__ = [
    "SCHEMA_VERSION",
    "FactDocument",
    "FactStore",
    "coerce_category",
    "default_fields",
]
