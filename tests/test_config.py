"""Tests for configuration loading, env overrides and size/duration parsing."""

from datetime import timedelta
from pathlib import Path

import pytest

from cli.config import (
    find_config,
    load_config_model,
    parse_duration,
    parse_size,
    resolve_storage_root,
)
from cli.config_models import MemoryConfig


class TestParsing:
    @pytest.mark.parametrize(
        "value,expected",
        [("10MB", 10 * 1024**2), ("512kb", 512 * 1024), ("2048", 2048), (" 1 GB ", 1024**3), (42, 42)],
    )
    def test_parse_size(self, value, expected):
        assert parse_size(value) == expected

    @pytest.mark.parametrize("value", ["ten", "10XB", "", "-5MB"])
    def test_parse_size_invalid(self, value):
        with pytest.raises(ValueError):
            parse_size(value)

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("90days", timedelta(days=90)),
            ("12h", timedelta(hours=12)),
            ("2w", timedelta(weeks=2)),
            ("45min", timedelta(minutes=45)),
            ("7", timedelta(days=7)),
            (3, timedelta(days=3)),
        ],
    )
    def test_parse_duration(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["soon", "10years", "1.5d"])
    def test_parse_duration_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestLoading:
    def test_defaults(self, tmp_path):
        config = load_config_model(project_root=tmp_path, env={})
        assert config.storage.root == Path(".claude/project-memory")
        assert config.retention.fact_retention_days == 90
        assert config.retention.checkpoint_keep == 20
        assert config.compaction.strategy == "smart"

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("retention:\n  checkpoint_keep: 5\nscan:\n  max_files: 10\n")
        config = load_config_model(path, env={})
        assert config.retention.checkpoint_keep == 5
        assert config.scan.max_files == 10
        assert config.retention.fact_retention_days == 90

    def test_project_config_is_found(self, tmp_path):
        path = tmp_path / ".claude" / "project-memory.yaml"
        path.parent.mkdir()
        path.write_text("logging:\n  level: debug\n")
        assert find_config(tmp_path) == path
        assert load_config_model(project_root=tmp_path, env={}).logging.level == "DEBUG"

    def test_env_overrides_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("retention:\n  checkpoint_keep: 5\n")
        env = {
            "PROJECT_MEMORY_DIR": "/var/memory",
            "PROJECT_MEMORY_MAX_SIZE": "1MB",
            "PROJECT_MEMORY_RETENTION": "30days",
            "PROJECT_MEMORY_CHECKPOINT_KEEP": "7",
            "PROJECT_MEMORY_LOG_LEVEL": "warning",
        }
        config = load_config_model(path, env=env)
        assert config.storage.root == Path("/var/memory")
        assert config.storage.max_store_bytes == 1024**2
        assert config.retention.fact_retention_days == 30
        assert config.retention.checkpoint_keep == 7
        assert config.logging.level == "WARNING"

    @pytest.mark.parametrize(
        "env",
        [
            {"PROJECT_MEMORY_MAX_SIZE": "lots"},
            {"PROJECT_MEMORY_RETENTION": "forever"},
            {"PROJECT_MEMORY_CHECKPOINT_KEEP": "-1"},
            {"PROJECT_MEMORY_LOG_LEVEL": "loud"},
        ],
    )
    def test_invalid_env(self, tmp_path, env):
        with pytest.raises(ValueError):
            load_config_model(project_root=tmp_path, env=env)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("retention: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_model(path, env={})

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("compaction:\n  strategy: random\n")
        with pytest.raises(ValueError, match="Config validation failed"):
            load_config_model(path, env={})


class TestStorageRoot:
    def test_relative_root_hangs_off_project(self, tmp_path):
        assert resolve_storage_root(MemoryConfig(), tmp_path) == tmp_path / ".claude" / "project-memory"

    def test_absolute_root(self, tmp_path):
        config = MemoryConfig.from_dict({"storage": {"root": str(tmp_path / "elsewhere")}})
        assert resolve_storage_root(config, Path("/somewhere")) == tmp_path / "elsewhere"
