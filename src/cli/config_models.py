"""Pydantic configuration models for project memory."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from shared_types import CompactionStrategy


class StorageConfig(BaseModel):
    """Where memory lives. A relative root is resolved against the project root."""

    root: Path = Path(".claude/project-memory")
    max_store_bytes: Optional[int] = 10 * 1024 * 1024  # None = unlimited

    @field_validator("max_store_bytes")
    @classmethod
    def validate_max_store_bytes(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError(f"max_store_bytes must be positive, got {v}")
        return v


class RetentionConfig(BaseModel):
    """Retention windows for facts and checkpoints."""

    fact_retention_days: int = Field(default=90, ge=1)
    checkpoint_keep: int = Field(default=20, ge=0)


class InstinctConfig(BaseModel):
    """Instinct reinforcement and decay tuning."""

    max_examples: int = Field(default=5, ge=1)
    reinforcement_threshold: int = Field(default=3, ge=1)
    reinforcement_step: float = Field(default=0.15, ge=0.0, le=1.0)
    confidence_ceiling: float = Field(default=0.9, ge=0.0, le=1.0)
    decay_after_days: int = Field(default=30, ge=1)
    decay_step: float = Field(default=0.05, ge=0.0, le=1.0)
    decay_floor: float = Field(default=0.1, ge=0.0, le=1.0)


class ScanConfig(BaseModel):
    """Bounds for extractor filesystem scans."""

    max_files: int = Field(default=5000, ge=1)
    max_depth: int = Field(default=8, ge=0)
    timeout_seconds: float = Field(default=5.0, gt=0)


class CompactionConfig(BaseModel):
    """Defaults for compaction planning."""

    strategy: str = CompactionStrategy.SMART.value
    max_size: int = Field(default=20000, ge=0)
    synopsis_size: int = Field(default=200, ge=16)

    @field_validator("strategy")
    @classmethod
    def validate_strategy(cls, v: str) -> str:
        valid = {s.value for s in CompactionStrategy}
        if v not in valid:
            raise ValueError(f"Invalid compaction strategy: {v}. Must be one of {sorted(valid)}")
        return v


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class MemoryConfig(BaseModel):
    """Main configuration model."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    instincts: InstinctConfig = Field(default_factory=InstinctConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    compaction: CompactionConfig = Field(default_factory=CompactionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryConfig":
        """Create config from a (possibly partial) dict."""
        storage = data.get("storage")
        if isinstance(storage, dict) and isinstance(storage.get("root"), str):
            storage["root"] = Path(storage["root"])
        return cls.model_validate(data)
