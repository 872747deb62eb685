"""Data models for learned instincts (recurring project patterns)."""

from dataclasses import dataclass, field
from datetime import datetime

from errors import InvalidInput, SchemaMismatch
from shared_types import InstinctSource, parse_timestamp, utcnow

# Instincts at or above this confidence are never dropped by compaction.
HIGH_CONFIDENCE = 0.7


def check_confidence(value, label: str = "confidence") -> float:
    """Reject anything that is not a number in [0, 1]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{label} must be a number, got {value!r}")
    if not 0.0 <= value <= 1.0:
        raise InvalidInput(f"{label} must be within [0, 1], got {value}")
    return float(value)


@dataclass
class InstinctCandidate:
    """A pattern hit reported by a detector."""

    id: str
    description: str = ""
    context: str = ""
    confidence: float = 0.3
    example: str | None = None
    source: InstinctSource = InstinctSource.DIRECT

    def validate(self) -> "InstinctCandidate":
        if not isinstance(self.id, str) or not self.id.strip():
            raise InvalidInput("instinct id is required")
        self.confidence = check_confidence(self.confidence)
        try:
            self.source = InstinctSource(self.source)
        except ValueError:
            raise InvalidInput(f"Unknown instinct source: {self.source!r}") from None
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "InstinctCandidate":
        if not isinstance(data, dict):
            raise InvalidInput("candidate must be an object")
        return cls(
            id=data.get("id", ""),
            description=data.get("description", ""),
            context=data.get("context", ""),
            confidence=data.get("confidence", 0.3),
            example=data.get("example"),
            source=data.get("source", InstinctSource.DIRECT),
        ).validate()


@dataclass
class Instinct:
    id: str
    description: str
    context: str
    confidence: float
    observation_count: int = 1
    examples: list[str] = field(default_factory=list)
    source: InstinctSource = InstinctSource.DIRECT
    first_seen: datetime = field(default_factory=utcnow)
    last_used: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "context": self.context,
            "confidence": self.confidence,
            "observation_count": self.observation_count,
            "examples": list(self.examples),
            "source": self.source.value,
            "first_seen": self.first_seen.isoformat(),
            "last_used": self.last_used.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Instinct":
        """Build from a stored/imported record. Raises SchemaMismatch when malformed."""
        if not isinstance(data, dict):
            raise SchemaMismatch("instinct record must be an object")
        try:
            inst_id = data["id"]
            confidence = check_confidence(data["confidence"])
            count = int(data.get("observation_count", 1))
            examples = data.get("examples") or []
            if not isinstance(inst_id, str) or not inst_id or count < 1:
                raise ValueError("id must be a non-empty string and observation_count >= 1")
            if not isinstance(examples, list):
                raise ValueError("examples must be a list")
            now = utcnow()
            return cls(
                id=inst_id,
                description=str(data.get("description", "")),
                context=str(data.get("context", "")),
                confidence=confidence,
                observation_count=count,
                examples=[str(e) for e in examples],
                source=InstinctSource(data.get("source", InstinctSource.DIRECT)),
                first_seen=parse_timestamp(data.get("first_seen")) or now,
                last_used=parse_timestamp(data.get("last_used")) or now,
            )
        except (KeyError, TypeError, ValueError, InvalidInput) as e:
            raise SchemaMismatch(f"Invalid instinct record: {e}") from None
