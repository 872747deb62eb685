"""Generic build-file extractors for the structure and dependencies categories.

These only read build metadata (Gradle settings/build scripts, Python
requirement files, package manifests). Source-layout detectors live in
``extractors.source`` and register the same way.
"""

import re
from pathlib import Path

from shared_types import FactCategory

from .base import ScanContext, files_signature

BUILD_FILE_NAMES = frozenset(
    {
        "settings.gradle",
        "settings.gradle.kts",
        "build.gradle",
        "build.gradle.kts",
        "pyproject.toml",
        "setup.py",
        "package.json",
        "Package.swift",
        "Podfile",
    }
)

SOURCE_SUFFIXES = (".kt", ".java", ".swift", ".py", ".ts", ".tsx", ".js")

_INCLUDE_KTS = re.compile(r"""include\s*\(\s*((?:["'][^"']+["']\s*,?\s*)+)\)""")
_INCLUDE_GROOVY = re.compile(r"""^\s*include\s+((?:['"][^'"]+['"]\s*,?\s*)+)$""", re.MULTILINE)
_QUOTED = re.compile(r"""["']([^"']+)["']""")

_PLUGIN_ID = re.compile(r"""id\s*\(\s*["']([^"']+)["']\s*\)""")
_GRADLE_DEP = re.compile(
    r"""\b(implementation|api|compileOnly|runtimeOnly|testImplementation|"""
    r"""androidTestImplementation|debugImplementation|kapt|ksp)\s*\(\s*"""
    r"""["']([^:"']+):([^:"']+):([^"']+)["']\s*\)"""
)
_WRAPPER_VERSION = re.compile(r"gradle-([\d.]+)")
_REQUIREMENT = re.compile(r"^([A-Za-z0-9][A-Za-z0-9_.\-]*)\s*(?:\[[^\]]*\])?\s*(?:[<>=!~]=?\s*([^\s;#,]+))?")


def _module_name(raw: str) -> str:
    return raw.lstrip(":").replace(":", "/")


def _root_build_files(root: Path) -> list[Path]:
    """Build files at the root and one level down, without a full scan."""
    found = [root / name for name in BUILD_FILE_NAMES]
    if root.is_dir():
        for child in root.iterdir():
            if child.is_dir() and not child.name.startswith("."):
                found.extend(child / name for name in BUILD_FILE_NAMES)
    return found


class StructureExtractor:
    """Modules, feature modules, source roots and build files of the project."""

    category = FactCategory.STRUCTURE

    def extract(self, scan: ScanContext) -> dict:
        modules: list[str] = []
        feature_modules: list[str] = []
        build_files: list[str] = []
        source_dirs: set[str] = set()

        for path in scan.walk(suffixes=SOURCE_SUFFIXES, names=BUILD_FILE_NAMES):
            rel = scan.relative(path)
            if path.name in BUILD_FILE_NAMES:
                build_files.append(rel)
                if path.name.startswith("settings.gradle"):
                    for name in self._gradle_includes(scan.read_text(path)):
                        if name not in modules:
                            modules.append(name)
                elif path.parent != scan.root:
                    module = scan.relative(path.parent)
                    if module not in modules:
                        modules.append(module)
            if path.suffix in SOURCE_SUFFIXES:
                parts = rel.split("/")[:-1]
                if parts:
                    source_dirs.add("/".join(parts[:2]))

        for name in modules:
            if name.startswith("feature/"):
                feature_modules.append(name.split("/", 1)[1])

        return {
            "modules": modules,
            "feature_modules": feature_modules,
            "source_dirs": sorted(source_dirs),
            "build_files": sorted(build_files),
        }

    @staticmethod
    def _gradle_includes(text: str) -> list[str]:
        names = []
        for pattern in (_INCLUDE_KTS, _INCLUDE_GROOVY):
            for match in pattern.finditer(text):
                names.extend(_module_name(q) for q in _QUOTED.findall(match.group(1)))
        return names

    def signature(self, project_root: Path) -> str | None:
        return files_signature(_root_build_files(project_root))


class DependenciesExtractor:
    """Declared libraries, build plugins and the build tool version."""

    category = FactCategory.DEPENDENCIES

    _names = frozenset(
        {
            "build.gradle",
            "build.gradle.kts",
            "libs.versions.toml",
            "gradle-wrapper.properties",
            "requirements.txt",
            "requirements-dev.txt",
        }
    )

    def extract(self, scan: ScanContext) -> dict:
        libraries: list[dict] = []
        plugins: list[str] = []
        build_tool_version = None
        seen: set[tuple] = set()

        def add_library(entry: dict) -> None:
            key = (entry["group"], entry["name"], entry["type"])
            if key not in seen:
                seen.add(key)
                libraries.append(entry)

        for path in scan.walk(names=self._names):
            text = scan.read_text(path)
            if path.name == "gradle-wrapper.properties":
                match = _WRAPPER_VERSION.search(text)
                if match:
                    build_tool_version = match.group(1)
            elif path.name.startswith("requirements"):
                for line in text.splitlines():
                    line = line.strip()
                    if not line or line.startswith(("#", "-")):
                        continue
                    match = _REQUIREMENT.match(line)
                    if match:
                        add_library(
                            {
                                "group": None,
                                "name": match.group(1),
                                "version": match.group(2),
                                "type": "python",
                            }
                        )
            else:
                for plugin in _PLUGIN_ID.findall(text):
                    if plugin not in plugins:
                        plugins.append(plugin)
                for conf, group, name, version in _GRADLE_DEP.findall(text):
                    add_library({"group": group, "name": name, "version": version, "type": conf})

        return {
            "libraries": libraries,
            "plugins": plugins,
            "build_tool_version": build_tool_version,
        }

    def signature(self, project_root: Path) -> str | None:
        watched = [
            project_root / "gradle" / "wrapper" / "gradle-wrapper.properties",
            project_root / "gradle" / "libs.versions.toml",
            project_root / "requirements.txt",
            project_root / "requirements-dev.txt",
        ]
        watched.extend(p for p in _root_build_files(project_root) if p.name.startswith("build."))
        return files_signature(watched)
