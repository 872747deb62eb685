"""Pluggable fact extractors and the registry the fact store refreshes through."""

from .base import ExtractionResult, Extractor, ScanContext, ScanLimits, files_signature
from .builtin import DependenciesExtractor, StructureExtractor
from .registry import ExtractorRegistry
from .source import ArchitectureExtractor, ScreensExtractor


def default_registry(limits: ScanLimits | None = None) -> ExtractorRegistry:
    """Registry pre-loaded with the build-file and source-layout extractors."""
    registry = ExtractorRegistry(limits)
    registry.register(StructureExtractor())
    registry.register(DependenciesExtractor())
    registry.register(ArchitectureExtractor())
    registry.register(ScreensExtractor())
    return registry


__all__ = [
    "ArchitectureExtractor",
    "DependenciesExtractor",
    "ExtractionResult",
    "Extractor",
    "ExtractorRegistry",
    "ScanContext",
    "ScanLimits",
    "ScreensExtractor",
    "StructureExtractor",
    "default_registry",
    "files_signature",
]
