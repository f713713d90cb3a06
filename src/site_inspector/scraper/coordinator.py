"""Extraction coordinator: the fallback ladder.

A request is analysed by folding over an ordered plan of strategies and
stopping at the first one that succeeds::

    browser (real) -> fetch (alternative) -> simulated

Hosts on the denylist skip the browser and start at ``fetch``.  Every
strategy is wrapped in an :class:`ExtractionStrategy` whose
:meth:`~ExtractionStrategy.attempt` returns a :class:`StrategyAttempt`
(result or error) instead of raising, so the fold needs no nested
``try`` blocks.  Because the simulated strategy cannot fail,
:meth:`ExtractionCoordinator.analyze` always returns a result.

Usage::

    coordinator = ExtractionCoordinator.from_settings(get_settings())
    outcome = await coordinator.analyze(request)
    outcome.mode, outcome.warning, outcome.result
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional, Protocol

import structlog

from site_inspector.core.exceptions import ExtractionError, ExtractionTimeoutError
from site_inspector.core.repository import AnalysisRepository
from site_inspector.core.schemas.analysis import (
    AnalysisOptions,
    AnalysisRecord,
    AnalysisRequest,
    AnalysisResult,
    ExtractionMode,
)
from site_inspector.scraper.config import DEFAULT_DENYLIST, ExtractionLimits
from site_inspector.scraper.http_fetcher import FetchExtractor
from site_inspector.scraper.normalizer import normalize
from site_inspector.scraper.playwright_fetcher import BrowserExtractor
from site_inspector.scraper.simulated import SimulatedExtractor

if TYPE_CHECKING:
    from site_inspector.config.settings import Settings

logger = structlog.get_logger(__name__)


class Extractor(Protocol):
    async def extract(
        self,
        url: str,
        selector: str,
        keywords: list[str],
        options: AnalysisOptions,
    ) -> AnalysisResult: ...


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


@dataclass
class StrategyAttempt:
    """Outcome of one strategy run: exactly one of ``result``/``error`` is set."""

    mode: ExtractionMode
    result: Optional[AnalysisResult] = None
    error: Optional[Exception] = None
    elapsed_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.result is not None

    def describe(self) -> str:
        if self.error is None:
            return f"{self.mode.value}: ok"
        return f"{self.mode.value}: {type(self.error).__name__}: {self.error}"


class ExtractionStrategy:
    """Runs an extractor and turns its failures into a :class:`StrategyAttempt`.

    Args:
        mode: Provenance tag for results produced by this strategy.
        extractor: Object with an async ``extract(url, selector, keywords, options)``.
        budget: Optional overall deadline in seconds; exceeding it counts as
            an :class:`~site_inspector.core.exceptions.ExtractionTimeoutError`.
    """

    def __init__(self, mode: ExtractionMode, extractor: Extractor, budget: Optional[float] = None) -> None:
        self.mode = mode
        self.extractor = extractor
        self.budget = budget

    def __repr__(self) -> str:
        return f"ExtractionStrategy(mode={self.mode.value!r}, budget={self.budget!r})"

    async def _run(self, request: AnalysisRequest) -> AnalysisResult:
        call = self.extractor.extract(
            request.url,
            request.selector,
            list(request.keywords),
            request.analysis_options,
        )
        if self.budget is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.budget)
        except asyncio.TimeoutError as exc:
            raise ExtractionTimeoutError(
                f"{self.mode.value} extraction exceeded its {self.budget:g}s budget",
                url=request.url,
            ) from exc

    async def attempt(self, request: AnalysisRequest) -> StrategyAttempt:
        """Run the extractor; never raises for extraction failures.

        :class:`~site_inspector.core.exceptions.ExtractionError` is the
        expected failure signal.  Anything else escaping an extractor is a
        bug, but it is still contained here and logged with its traceback so
        the ladder can continue.
        """
        start = time.perf_counter()
        try:
            result = await self._run(request)
        except ExtractionError as exc:
            error: Exception = exc
        except Exception as exc:  # noqa: BLE001
            logger.exception("strategy_unexpected_error", mode=self.mode.value, url=request.url)
            error = exc
        else:
            return StrategyAttempt(
                mode=self.mode,
                result=result,
                elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
            )
        return StrategyAttempt(
            mode=self.mode,
            error=error,
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------


@dataclass
class AnalysisOutcome:
    """What :meth:`ExtractionCoordinator.analyze` returns.

    Attributes:
        result: Normalised result of the first successful strategy.
        mode: Strategy that produced ``result``.
        warning: Human-readable fallback description, ``None`` when the first
            planned strategy succeeded.
        attempts: Every attempt made, in order, the successful one last.
        record_id: Id under which the result was saved, if a repository is set.
    """

    result: AnalysisResult
    mode: ExtractionMode
    warning: Optional[str] = None
    attempts: list[StrategyAttempt] = field(default_factory=list)
    record_id: Optional[str] = None


_MODE_LABELS = {
    ExtractionMode.REAL: "browser",
    ExtractionMode.ALTERNATIVE: "HTTP fetch",
    ExtractionMode.SIMULATED: "simulation",
}


def host_is_denied(host: str, denylist: Iterable[str]) -> bool:
    """True when ``host`` equals, or is a subdomain of, a denylisted host."""
    host = host.lower().rstrip(".")
    if not host:
        return False
    for denied in denylist:
        denied = denied.lower().strip().lstrip(".")
        if denied and (host == denied or host.endswith("." + denied)):
            return True
    return False


def build_warning(failed: list[StrategyAttempt], mode: ExtractionMode, denylisted: bool) -> Optional[str]:
    """Describe the fallback that led to ``mode``, or ``None`` if there was none."""
    parts: list[str] = []
    if denylisted:
        parts.append("Host is on the browser denylist; browser analysis skipped")
    if failed:
        names = ", ".join(_MODE_LABELS[a.mode] for a in failed)
        parts.append(f"{names} analysis failed; using {_MODE_LABELS[mode]} analysis")
    if not parts:
        return None
    return ". ".join(parts)


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------


class ExtractionCoordinator:
    """Selects the strategy plan for a request and folds over it.

    Args:
        browser: Strategy tagged :attr:`ExtractionMode.REAL`.
        fetch: Strategy tagged :attr:`ExtractionMode.ALTERNATIVE`.
        simulated: Strategy tagged :attr:`ExtractionMode.SIMULATED`; must
            not fail.
        denylist: Hosts routed straight to ``fetch``.
        limits: Caps applied by the normaliser.
        repository: Optional sink for finished analyses.
    """

    def __init__(
        self,
        browser: ExtractionStrategy,
        fetch: ExtractionStrategy,
        simulated: ExtractionStrategy,
        *,
        denylist: Iterable[str] = DEFAULT_DENYLIST,
        limits: ExtractionLimits | None = None,
        repository: AnalysisRepository | None = None,
    ) -> None:
        self.browser = browser
        self.fetch = fetch
        self.simulated = simulated
        self.denylist = tuple(denylist)
        self.limits = limits or ExtractionLimits()
        self.repository = repository

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        repository: AnalysisRepository | None = None,
    ) -> "ExtractionCoordinator":
        """Wire the three production extractors from :class:`Settings`."""
        limits = ExtractionLimits.from_settings(settings)
        return cls(
            browser=ExtractionStrategy(
                ExtractionMode.REAL,
                BrowserExtractor(limits),
                budget=settings.browser_budget_seconds,
            ),
            fetch=ExtractionStrategy(ExtractionMode.ALTERNATIVE, FetchExtractor(limits)),
            simulated=ExtractionStrategy(
                ExtractionMode.SIMULATED,
                SimulatedExtractor(delay=settings.simulated_delay_seconds),
            ),
            denylist=settings.denylist,
            limits=limits,
            repository=repository,
        )

    def plan(self, request: AnalysisRequest) -> list[ExtractionStrategy]:
        """Ordered strategies to try for ``request``."""
        if host_is_denied(request.host, self.denylist):
            return [self.fetch, self.simulated]
        return [self.browser, self.fetch, self.simulated]

    async def analyze(self, request: AnalysisRequest) -> AnalysisOutcome:
        """Analyse ``request``, falling back until a strategy succeeds."""
        log = logger.bind(url=request.url)
        denylisted = host_is_denied(request.host, self.denylist)
        if denylisted:
            log.info("browser_skipped_denylisted_host", host=request.host)

        attempts: list[StrategyAttempt] = []
        success: Optional[StrategyAttempt] = None
        for strategy in self.plan(request):
            attempt = await strategy.attempt(request)
            attempts.append(attempt)
            if attempt.succeeded:
                success = attempt
                break
            log.warning(
                "strategy_failed",
                mode=attempt.mode.value,
                error_type=type(attempt.error).__name__,
                error=str(attempt.error),
                elapsed_ms=attempt.elapsed_ms,
            )

        if success is None or success.result is None:
            # Only reachable when the simulated strategy itself is broken.
            raise RuntimeError("every extraction strategy failed: " + "; ".join(a.describe() for a in attempts))

        failed = attempts[:-1]
        result = success.result
        if success.mode is ExtractionMode.SIMULATED and failed:
            result.errors.append(
                "All real extraction strategies failed: " + "; ".join(a.describe() for a in failed)
            )

        result = normalize(result, request.keywords, request.analysis_options, self.limits)
        outcome = AnalysisOutcome(
            result=result,
            mode=success.mode,
            warning=build_warning(failed, success.mode, denylisted),
            attempts=attempts,
        )

        if self.repository is not None:
            record = AnalysisRecord(
                id=uuid.uuid4().hex,
                url=request.url,
                mode=outcome.mode,
                warning=outcome.warning,
                data=result,
            )
            self.repository.save(record)
            outcome.record_id = record.id

        log.info(
            "analysis_complete",
            mode=outcome.mode.value,
            attempts=len(attempts),
            keywords_found=len(result.keywords.found),
            section_errors=len(result.errors),
        )
        return outcome
