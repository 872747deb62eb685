"""Configuration loading: YAML file, then environment overrides."""

import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

import yaml

from .config_models import MemoryConfig

_SIZE_UNITS = {"": 1, "b": 1, "kb": 1024, "k": 1024, "mb": 1024**2, "m": 1024**2, "gb": 1024**3, "g": 1024**3}
_DURATION_UNITS = {
    "m": "minutes", "min": "minutes", "mins": "minutes", "minute": "minutes", "minutes": "minutes",
    "h": "hours", "hour": "hours", "hours": "hours",
    "d": "days", "day": "days", "days": "days",
    "w": "weeks", "week": "weeks", "weeks": "weeks",
}


def parse_size(value: str | int) -> int:
    """Parse ``10MB`` / ``512k`` / ``2048`` into bytes."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    m = re.fullmatch(r"\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*", str(value))
    if not m or m.group(2).lower() not in _SIZE_UNITS:
        raise ValueError(f"Invalid size: {value!r} (expected e.g. 10MB, 512KB, 2048)")
    return int(float(m.group(1)) * _SIZE_UNITS[m.group(2).lower()])


def parse_duration(value: str | int) -> timedelta:
    """Parse ``90days`` / ``12h`` / ``2w`` into a timedelta. A bare number means days."""
    if isinstance(value, int) and not isinstance(value, bool):
        return timedelta(days=value)
    m = re.fullmatch(r"\s*(\d+)\s*([a-zA-Z]*)\s*", str(value))
    if not m:
        raise ValueError(f"Invalid duration: {value!r} (expected e.g. 90days, 12h, 2w)")
    unit = m.group(2).lower() or "days"
    if unit not in _DURATION_UNITS:
        raise ValueError(f"Invalid duration unit in {value!r}")
    return timedelta(**{_DURATION_UNITS[unit]: int(m.group(1))})


def find_config(project_root: Optional[Path] = None) -> Optional[Path]:
    """Find config file in standard locations."""
    root = Path(project_root) if project_root else Path.cwd()
    locations = [
        root / ".claude" / "project-memory.yaml",
        Path.home() / ".config" / "project-memory" / "config.yaml",
    ]
    for loc in locations:
        if loc.exists():
            return loc
    return None


def _env_overrides(env: Mapping[str, str]) -> dict:
    overrides: dict = {}
    try:
        if env.get("PROJECT_MEMORY_DIR"):
            overrides.setdefault("storage", {})["root"] = Path(env["PROJECT_MEMORY_DIR"])
        if env.get("PROJECT_MEMORY_MAX_SIZE"):
            overrides.setdefault("storage", {})["max_store_bytes"] = parse_size(
                env["PROJECT_MEMORY_MAX_SIZE"]
            )
        if env.get("PROJECT_MEMORY_RETENTION"):
            days = parse_duration(env["PROJECT_MEMORY_RETENTION"]).days
            overrides.setdefault("retention", {})["fact_retention_days"] = days
        if env.get("PROJECT_MEMORY_CHECKPOINT_KEEP"):
            overrides.setdefault("retention", {})["checkpoint_keep"] = int(
                env["PROJECT_MEMORY_CHECKPOINT_KEEP"]
            )
    except ValueError as e:
        raise ValueError(f"Invalid environment override: {e}") from e
    if env.get("PROJECT_MEMORY_LOG_LEVEL"):
        overrides.setdefault("logging", {})["level"] = env["PROJECT_MEMORY_LOG_LEVEL"]
    return overrides


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config_model(
    config_path: Optional[Path] = None,
    project_root: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> MemoryConfig:
    """Load configuration as Pydantic model with validation."""
    base_config = {}

    path = config_path or find_config(project_root)
    if path and path.exists():
        try:
            with open(path) as f:
                base_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {path}: {e}")
        if not isinstance(base_config, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

    merged = _deep_merge(base_config, _env_overrides(os.environ if env is None else env))
    try:
        return MemoryConfig.from_dict(merged)
    except Exception as e:
        raise ValueError(f"Config validation failed: {e}")


def resolve_storage_root(config: MemoryConfig, project_root: Path) -> Path:
    """Absolute storage directory; relative roots hang off the project root."""
    root = config.storage.root.expanduser()
    return root if root.is_absolute() else Path(project_root) / root
