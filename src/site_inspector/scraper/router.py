"""FastAPI router for page analysis.

Routes:
    POST   /analyze    analyse one page through the fallback ladder
    GET    /status     service, browser and host status
    GET    /analyses   recent analyses (paginated, filterable)

``POST /analyze`` answers 200 whenever the ladder produced a result, even a
simulated one; callers must read ``mode`` and ``warning``.  Malformed bodies
are rejected with 400 by the application-level validation handler.
"""

from __future__ import annotations

import asyncio
import platform
import sys
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from typing import Annotated, Optional

import psutil
import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from site_inspector.api.dependencies import (
    PaginationParams,
    get_browser_prober,
    get_coordinator,
    get_pagination,
    get_repository,
)
from site_inspector.config.settings import Settings, get_settings
from site_inspector.core.exceptions import InvalidRequestError
from site_inspector.core.repository import AnalysisFilter, InMemoryAnalysisRepository
from site_inspector.core.schemas.analysis import (
    AnalysisRequest,
    AnalyzeResponse,
    ErrorResponse,
    ExtractionMode,
    utc_timestamp,
)
from site_inspector.scraper.coordinator import ExtractionCoordinator
from site_inspector.scraper.playwright_fetcher import BrowserExtractor

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["analysis"])

_MB = 1024 * 1024


def api_version() -> str:
    try:
        return version("site-inspector")
    except PackageNotFoundError:
        return "0.0.0"


# ---------------------------------------------------------------------------
# Analyze
# ---------------------------------------------------------------------------


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze(
    payload: AnalysisRequest,
    coordinator: Annotated[ExtractionCoordinator, Depends(get_coordinator)],
) -> AnalyzeResponse | JSONResponse:
    """Analyse ``payload.url`` and report which strategy produced the data.

    Returns:
        ``{success, mode, data, warning?}``.  A 500 ``{error, details}`` is
        only returned for faults outside the extraction ladder.
    """
    logger.info(
        "analysis_requested",
        url=payload.url,
        selector=payload.selector,
        keywords=len(payload.keywords),
    )
    try:
        outcome = await coordinator.analyze(payload)
    except Exception as exc:
        logger.exception("analysis_failed", url=payload.url)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Analysis failed", details=str(exc)).model_dump(),
        )
    return AnalyzeResponse(mode=outcome.mode, data=outcome.result, warning=outcome.warning)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


async def _probe_browser(prober: BrowserExtractor, timeout: float) -> dict[str, str]:
    """Launch and close a throwaway browser; never raises."""
    try:
        # Extra headroom so the launch timeout fires before the outer deadline.
        available, details = await asyncio.wait_for(prober.probe(timeout), timeout=timeout + 5)
    except asyncio.TimeoutError:
        available, details = False, f"Browser probe did not finish within {timeout + 5:g}s"
    except Exception as exc:  # noqa: BLE001
        logger.warning("browser_probe_error", error=str(exc))
        available, details = False, f"Browser probe failed: {exc}"
    return {"status": "available" if available else "unavailable", "details": details}


def _as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Treat naive query timestamps as UTC."""
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _memory_usage() -> dict[str, float]:
    rss = psutil.Process().memory_info().rss
    total = psutil.virtual_memory().total
    return {"usedMb": round(rss / _MB, 1), "totalMb": round(total / _MB, 1)}


@router.get("/status")
async def service_status(
    settings: Annotated[Settings, Depends(get_settings)],
    prober: Annotated[BrowserExtractor, Depends(get_browser_prober)],
    repository: Annotated[InMemoryAnalysisRepository, Depends(get_repository)],
) -> JSONResponse:
    """Report API, browser and host status.

    Always returns HTTP 200; browser availability is reported in
    ``data.browser.status``.
    """
    browser = await _probe_browser(prober, settings.status_probe_timeout_seconds)
    logger.info("status_checked", browser=browser["status"])
    return JSONResponse(
        {
            "success": True,
            "data": {
                "timestamp": utc_timestamp(),
                "api": {"status": "online", "version": api_version()},
                "browser": browser,
                "system": {
                    "platform": sys.platform,
                    "pythonVersion": platform.python_version(),
                    "memory": _memory_usage(),
                },
                "analyses": {"total": len(repository)},
            },
        }
    )


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@router.get("/analyses")
async def list_analyses(
    repository: Annotated[InMemoryAnalysisRepository, Depends(get_repository)],
    pagination: Annotated[PaginationParams, Depends(get_pagination)],
    url: Optional[str] = None,
    mode: Optional[ExtractionMode] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> JSONResponse:
    """List stored analyses, newest first.

    Raises:
        InvalidRequestError: If ``since`` is later than ``until``.
    """
    since, until = _as_utc(since), _as_utc(until)
    if since is not None and until is not None and since > until:
        raise InvalidRequestError("'since' must not be later than 'until'")

    page = repository.list(
        AnalysisFilter(
            url=url,
            mode=mode,
            since=since,
            until=until,
            limit=pagination.limit,
            offset=pagination.offset,
        )
    )
    return JSONResponse(
        {
            "success": True,
            "data": [record.model_dump(mode="json", by_alias=True) for record in page.records],
            "pagination": {
                "total": page.total,
                "limit": page.limit,
                "offset": page.offset,
                "hasMore": page.has_more,
            },
            "stats": repository.stats(),
        }
    )
