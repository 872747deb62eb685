"""Shared test fixtures for project memory."""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from checkpoints import CheckpointManager  # noqa: E402
from extractors import default_registry  # noqa: E402
from facts import FactStore  # noqa: E402
from instincts import InstinctStore  # noqa: E402

SETTINGS_KTS = """\
rootProject.name = "demo"
include(":app", ":feature:home", ":core:data")
"""

APP_BUILD_KTS = """\
plugins {
    id("com.android.application")
    id("org.jetbrains.kotlin.android")
}

dependencies {
    implementation("androidx.compose.ui:ui:1.6.0")
    testImplementation("junit:junit:4.13.2")
}
"""

WRAPPER_PROPERTIES = (
    "distributionUrl=https\\://services.gradle.org/distributions/gradle-8.5-bin.zip\n"
)


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


@pytest.fixture
def project_dir(tmp_path):
    """A small multi-module Gradle project on disk."""
    root = tmp_path / "project"
    write(root / "settings.gradle.kts", SETTINGS_KTS)
    write(root / "app" / "build.gradle.kts", APP_BUILD_KTS)
    write(root / "app" / "src" / "main" / "java" / "com" / "demo" / "MainActivity.kt", "class MainActivity\n")
    write(root / "feature" / "home" / "build.gradle.kts", "plugins { id(\"com.android.library\") }\n")
    write(root / "feature" / "home" / "src" / "main" / "kotlin" / "HomeScreen.kt", "fun HomeScreen() {}\n")
    write(root / "gradle" / "wrapper" / "gradle-wrapper.properties", WRAPPER_PROPERTIES)
    write(root / "build" / "generated" / "Generated.kt", "object Generated\n")
    return root


@pytest.fixture
def memory_root(tmp_path):
    return tmp_path / "memory"


@pytest.fixture
def fact_store(memory_root, project_dir):
    return FactStore(memory_root, registry=default_registry(), project_root=project_dir)


@pytest.fixture
def instinct_store(memory_root):
    return InstinctStore(memory_root)


@pytest.fixture
def checkpoint_manager(memory_root, fact_store, instinct_store):
    return CheckpointManager(memory_root, fact_store, instinct_store)


@pytest.fixture
def components(memory_root, project_dir):
    """Real, fully wired components rooted in tmp_path."""
    from cli.config_models import MemoryConfig
    from cli.utils import build_components

    config = MemoryConfig.from_dict({"storage": {"root": str(memory_root)}})
    return build_components(config, project_dir)
