"""Maps fact categories to the extractor that refreshes them."""

from pathlib import Path

import structlog

from errors import ExtractionTimeout, NotFound
from shared_types import FactCategory

from .base import ExtractionResult, Extractor, ScanContext, ScanLimits

logger = structlog.get_logger()


class ExtractorRegistry:
    """Holds at most one extractor per category and runs it under scan limits."""

    def __init__(self, limits: ScanLimits | None = None):
        self.limits = limits or ScanLimits()
        self._extractors: dict[FactCategory, Extractor] = {}

    def register(self, extractor: Extractor) -> None:
        category = FactCategory(extractor.category)
        if category in self._extractors:
            logger.info("extractor_replaced", category=category.value)
        self._extractors[category] = extractor

    def get(self, category: FactCategory) -> Extractor:
        extractor = self._extractors.get(category)
        if extractor is None:
            raise NotFound(f"No extractor registered for category: {category}")
        return extractor

    def has(self, category: FactCategory) -> bool:
        return category in self._extractors

    def categories(self) -> list[FactCategory]:
        return list(self._extractors)

    def signature(self, category: FactCategory, project_root: str | Path) -> str | None:
        """Cheap input fingerprint for staleness checks, if the extractor offers one."""
        extractor = self.get(category)
        sig_fn = getattr(extractor, "signature", None)
        if sig_fn is None:
            return None
        try:
            return sig_fn(Path(project_root))
        except Exception as e:
            logger.warning("extractor_signature_failed", category=category.value, error=str(e))
            return None

    def extract(
        self,
        category: FactCategory,
        project_root: str | Path,
        module: str | None = None,
    ) -> ExtractionResult:
        """Run the extractor for ``category``.

        A scan that hits its limits, or an extractor raising ExtractionTimeout,
        yields a partial (possibly empty) payload instead of an error. Any other
        failure inside the extractor is logged and reported through ``error``.
        Partial and module-scoped results carry no signature, so the stored
        document stays stale until a complete project-wide pass succeeds.
        """
        extractor = self.get(category)
        scan = ScanContext(Path(project_root), module=module, limits=self.limits)

        try:
            fields = extractor.extract(scan)
        except ExtractionTimeout as e:
            logger.warning("extraction_timeout", category=category.value, error=str(e))
            return ExtractionResult(fields={}, partial=True)
        except Exception as e:
            logger.error(
                "extractor_failed", category=category.value, error=str(e), exc_info=True
            )
            return ExtractionResult(fields={}, partial=True, error=f"{type(e).__name__}: {e}")

        if not isinstance(fields, dict):
            logger.error(
                "extractor_bad_payload", category=category.value, type=type(fields).__name__
            )
            return ExtractionResult(fields={}, partial=True)

        if scan.truncated:
            logger.warning(
                "extraction_partial",
                category=category.value,
                files_seen=scan.files_seen,
                timed_out=scan.timed_out,
            )
            return ExtractionResult(fields=fields, partial=True)

        if module:
            return ExtractionResult(fields=fields)

        return ExtractionResult(fields=fields, signature=self.signature(category, project_root))
