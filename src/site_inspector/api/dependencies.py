"""Shared FastAPI dependencies.

The coordinator and the analysis repository are process-wide singletons
built lazily from :func:`~site_inspector.config.settings.get_settings`.
Tests replace them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from site_inspector.config.settings import get_settings
from site_inspector.core.exceptions import InvalidRequestError
from site_inspector.core.repository import InMemoryAnalysisRepository
from site_inspector.scraper.config import ExtractionLimits
from site_inspector.scraper.coordinator import ExtractionCoordinator
from site_inspector.scraper.playwright_fetcher import BrowserExtractor

#: Upper bound of ``limit`` on list endpoints.
MAX_PAGE_SIZE = 200


@lru_cache
def get_repository() -> InMemoryAnalysisRepository:
    """Return the process-wide analysis repository."""
    return InMemoryAnalysisRepository(max_records=get_settings().repository_max_records)


@lru_cache
def get_coordinator() -> ExtractionCoordinator:
    """Return the process-wide coordinator, wired to :func:`get_repository`."""
    return ExtractionCoordinator.from_settings(get_settings(), repository=get_repository())


def get_browser_prober() -> BrowserExtractor:
    """Browser extractor used only for the ``GET /status`` availability probe."""
    return BrowserExtractor(ExtractionLimits.from_settings(get_settings()))


# ---------------------------------------------------------------------------
# Pagination parameters
# ---------------------------------------------------------------------------


@dataclass
class PaginationParams:
    """Offset-pagination parameters shared across list endpoints.

    Attributes:
        limit: Number of records to return (1 to :data:`MAX_PAGE_SIZE`).
        offset: Number of matching records to skip.
    """

    limit: int
    offset: int


def get_pagination(limit: int = 50, offset: int = 0) -> PaginationParams:
    """Parse and validate pagination query parameters.

    Raises:
        InvalidRequestError: If ``limit`` or ``offset`` is out of range.
    """
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise InvalidRequestError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
    if offset < 0:
        raise InvalidRequestError("offset must not be negative")
    return PaginationParams(limit=limit, offset=offset)
