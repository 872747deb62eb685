"""Error taxonomy shared by the stores, the tool server and the CLI."""


class ProjectMemoryError(Exception):
    """Base class; ``kind`` is the stable identifier reported to callers."""

    kind = "error"

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind}


class NotFound(ProjectMemoryError):
    """Unknown category, checkpoint or instinct id."""

    kind = "not_found"


class SchemaMismatch(ProjectMemoryError):
    """Malformed or outdated document."""

    kind = "schema_mismatch"


class ExtractionTimeout(ProjectMemoryError):
    """A bounded project scan hit its limit."""

    kind = "extraction_timeout"


class InvalidInput(ProjectMemoryError):
    """Caller-supplied input was rejected."""

    kind = "invalid_input"
