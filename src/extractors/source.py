"""Source-layout extractors for the architecture and screens categories.

Both walk Kotlin sources through the bounded ScanContext and classify files
by path and name, reading contents only where a file is a likely match.
"""

import re
from pathlib import Path

from shared_types import FactCategory

from .base import ScanContext, files_signature

KOTLIN = (".kt",)
TEST_DIRS = frozenset({"test", "androidTest", "testDebug", "testRelease"})

_COMPOSABLE_SCREEN = re.compile(
    r"@Composable\s+(?:(?:private|internal|public)\s+)?fun\s+(\w+Screen)\s*\("
)
_NAV_HOST = re.compile(r"\bNavHost\s*\(")

_DI_FRAMEWORKS = (
    ("org.koin", "koin"),
    ("dagger.hilt", "hilt"),
    ("dagger.", "dagger"),
)


def _is_test_source(rel: str) -> bool:
    return any(part in TEST_DIRS for part in rel.split("/"))


def _sources_signature(project_root: Path, suffixes: tuple[str, ...] = KOTLIN) -> str | None:
    scan = ScanContext(project_root)
    paths = list(scan.walk(suffixes=suffixes))
    if scan.truncated:
        return None
    return files_signature(paths)


class ArchitectureExtractor:
    """UI / data / domain layering, DI framework and the overall pattern."""

    category = FactCategory.ARCHITECTURE

    def extract(self, scan: ScanContext) -> dict:
        ui = {"screens": [], "components": [], "viewmodels": []}
        data = {"repositories": [], "datasources": [], "models": []}
        domain = {"usecases": [], "models": []}
        di = {"framework": None, "modules": []}

        for path in scan.walk(suffixes=KOTLIN):
            rel = scan.relative(path)
            if _is_test_source(rel):
                continue
            dirs = {part.lower() for part in rel.split("/")[:-1]}
            stem = path.stem

            if "ViewModel" in stem:
                ui["viewmodels"].append(rel)
            elif stem.endswith("Screen"):
                ui["screens"].append(rel)
            elif dirs & {"ui", "screen", "screens", "presentation", "components"}:
                ui["components"].append(rel)

            if "Repository" in stem or dirs & {"repository", "repositories"}:
                data["repositories"].append(rel)
            elif "DataSource" in stem or dirs & {"datasource", "datasources"}:
                data["datasources"].append(rel)
            elif "UseCase" in stem or dirs & {"usecase", "usecases"}:
                domain["usecases"].append(rel)
            elif dirs & {"model", "models", "entity", "entities"}:
                layer = domain if "domain" in dirs else data
                layer["models"].append(rel)

            if "di" in dirs or stem.endswith("Module"):
                di["modules"].append(rel)
                if di["framework"] is None:
                    text = scan.read_text(path)
                    for marker, framework in _DI_FRAMEWORKS:
                        if marker in text:
                            di["framework"] = framework
                            break

        if domain["usecases"] and data["repositories"]:
            pattern = "clean-architecture"
        elif ui["viewmodels"]:
            pattern = "mvvm"
        else:
            pattern = None

        return {
            "pattern": pattern,
            "ui_layer": ui,
            "data_layer": data,
            "domain_layer": domain,
            "di": di,
        }

    def signature(self, project_root: Path) -> str | None:
        return _sources_signature(project_root)


class ScreensExtractor:
    """Composable screens, whether they have previews or tests, and the nav host."""

    category = FactCategory.SCREENS

    def extract(self, scan: ScanContext) -> dict:
        screens: list[dict] = []
        test_text: list[str] = []
        navigation = {"type": None, "graph_file": None}

        for path in scan.walk(suffixes=KOTLIN + (".xml",)):
            rel = scan.relative(path)
            if path.suffix == ".xml":
                if navigation["type"] is None and "/res/navigation/" in f"/{rel}":
                    navigation = {"type": "navigation-xml", "graph_file": rel}
                continue
            text = scan.read_text(path)
            if _is_test_source(rel):
                test_text.append(text)
                continue
            for name in _COMPOSABLE_SCREEN.findall(text):
                screens.append(
                    {"name": name, "file": rel, "previewable": "@Preview" in text, "testable": False}
                )
            if _NAV_HOST.search(text) and navigation["type"] != "compose-navigation":
                navigation = {"type": "compose-navigation", "graph_file": rel}

        tests = "\n".join(test_text)
        for screen in screens:
            screen["testable"] = screen["name"] in tests

        return {"screens": screens, "navigation": navigation}

    def signature(self, project_root: Path) -> str | None:
        return _sources_signature(project_root, KOTLIN + (".xml",))
