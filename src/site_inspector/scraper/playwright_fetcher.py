"""Headless-browser strategy built on Playwright's Chromium.

Every call launches its own browser, opens one context and one page, and
releases all three (plus the Playwright driver) in ``finally`` blocks, so
concurrent analyses never share a process and no handle outlives a call.

Extraction runs as a sequence of in-page steps (basic info, content,
keywords, assets, technical, SEO).  Each step has its own deadline; a step
that times out or throws is recorded in ``errors`` and leaves its section
at the default value.  Only failures that make the page unusable raise:

- :class:`~site_inspector.core.exceptions.LaunchError`
- :class:`~site_inspector.core.exceptions.NavigationError`
- :class:`~site_inspector.core.exceptions.EvaluationError` (every step failed)

Install the browser binary once per machine::

    playwright install chromium
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

from playwright.async_api import Browser, Page, Route, async_playwright
from playwright.async_api import Error as PlaywrightError

from site_inspector.core.exceptions import EvaluationError, LaunchError, NavigationError
from site_inspector.core.schemas.analysis import (
    AnalysisOptions,
    AnalysisResult,
    Assets,
    BasicInfo,
    ImageAsset,
    KeywordFindings,
    LinkAsset,
    PageContent,
    SeoInfo,
)
from site_inspector.scraper import page_scripts
from site_inspector.scraper.config import (
    BLOCKED_RESOURCE_TYPES,
    CHROMIUM_ARGS,
    KEYWORD_SNIPPET_LENGTH,
    USER_AGENT,
    VIEWPORT,
    ExtractionLimits,
)
from site_inspector.scraper.markup_parser import classify_link, detect_signatures

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _close_quietly(close: Callable[[], Awaitable[Any]], label: str) -> None:
    """Await ``close()`` and log, rather than raise, any failure."""
    try:
        await close()
    except Exception as exc:  # noqa: BLE001
        logger.warning("browser: error closing %s: %s", label, exc)


class BrowserExtractor:
    """Analyses a page in a real rendering engine.

    Args:
        limits: Step deadlines, navigation timeouts and scan limits.
        playwright_factory: Callable returning an object with an async
            ``start()`` that yields a Playwright instance.  Defaults to
            :func:`playwright.async_api.async_playwright`.
    """

    def __init__(
        self,
        limits: ExtractionLimits | None = None,
        *,
        playwright_factory: Callable[[], Any] = async_playwright,
    ) -> None:
        self.limits = limits or ExtractionLimits()
        self._playwright_factory = playwright_factory

    # ------------------------------------------------------------------
    # Process lifecycle
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _launched_browser(self, launch_timeout: float) -> AsyncIterator[Browser]:
        """Start the driver and Chromium; stop both on exit."""
        try:
            playwright = await self._playwright_factory().start()
        except Exception as exc:  # noqa: BLE001
            raise LaunchError(f"Playwright driver failed to start: {exc}") from exc

        try:
            try:
                browser = await playwright.chromium.launch(
                    headless=True,
                    args=list(CHROMIUM_ARGS),
                    timeout=launch_timeout * 1000,
                )
            except Exception as exc:  # noqa: BLE001
                raise LaunchError(f"Chromium failed to launch: {exc}") from exc
            try:
                yield browser
            finally:
                await _close_quietly(browser.close, "browser")
        finally:
            await _close_quietly(playwright.stop, "playwright driver")

    @asynccontextmanager
    async def _open_page(self) -> AsyncIterator[Page]:
        """Yield a fresh page in its own context inside a freshly launched browser."""
        async with self._launched_browser(self.limits.launch_timeout) as browser:
            try:
                context = await browser.new_context(user_agent=USER_AGENT, viewport=VIEWPORT)
            except Exception as exc:  # noqa: BLE001
                raise LaunchError(f"Browser context could not be created: {exc}") from exc
            try:
                try:
                    page = await context.new_page()
                except Exception as exc:  # noqa: BLE001
                    raise LaunchError(f"Browser page could not be opened: {exc}") from exc
                try:
                    yield page
                finally:
                    if not page.is_closed():
                        await _close_quietly(page.close, "page")
            finally:
                await _close_quietly(context.close, "context")

    async def probe(self, launch_timeout: float) -> tuple[bool, str]:
        """Launch and immediately close a browser.

        Returns:
            ``(available, details)``; never raises for launch failures.
        """
        try:
            async with self._launched_browser(launch_timeout) as browser:
                version = browser.version
        except LaunchError as exc:
            logger.info("browser: probe failed: %s", exc)
            return False, str(exc)
        return True, f"Chromium {version} launched and closed successfully"

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def _navigate(self, page: Page, url: str) -> None:
        """Load ``url``: ``domcontentloaded`` first, one ``load`` retry, then give up."""
        limits = self.limits
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=limits.navigation_timeout * 1000)
            return
        except PlaywrightError as exc:
            logger.warning("browser: domcontentloaded navigation to %s failed (%s); retrying with load", url, exc)

        try:
            await page.goto(url, wait_until="load", timeout=limits.navigation_retry_timeout * 1000)
        except PlaywrightError as exc:
            raise NavigationError(f"Navigation failed: {exc}", url=url) from exc

    async def _settle(self, page: Page, url: str) -> None:
        """Give late scripts a moment; never fatal."""
        try:
            await page.wait_for_selector("body", timeout=self.limits.step_timeout * 1000)
        except PlaywrightError as exc:
            logger.warning("browser: body never appeared on %s: %s", url, exc)
        if self.limits.settle_delay > 0:
            await asyncio.sleep(self.limits.settle_delay)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _run_step(
        self,
        result: AnalysisResult,
        label: str,
        step: Callable[[], Awaitable[T]],
    ) -> T | None:
        """Run one extraction step under its own deadline.

        Returns:
            The step's value, or ``None`` after recording the failure in
            ``result.errors``.
        """
        try:
            return await asyncio.wait_for(step(), timeout=self.limits.step_timeout)
        except asyncio.TimeoutError:
            message = f"Timed out extracting {label} after {self.limits.step_timeout:g}s"
        except Exception as exc:  # noqa: BLE001
            message = f"Error extracting {label}: {exc}"
        logger.warning("browser: %s (%s)", message, result.url)
        result.errors.append(message)
        return None

    async def _basic_info(self, page: Page) -> BasicInfo:
        return BasicInfo.model_validate(await page.evaluate(page_scripts.BASIC_INFO))

    async def _content(self, page: Page, selector: str) -> PageContent:
        return PageContent.model_validate(await page.evaluate(page_scripts.CONTENT, selector))

    async def _keywords(self, page: Page, keywords: list[str], deep_scan: bool) -> KeywordFindings:
        payload = await page.evaluate(
            page_scripts.KEYWORDS,
            {
                "keywords": keywords,
                "limit": None if deep_scan else self.limits.keyword_scan_limit,
                "snippetLength": KEYWORD_SNIPPET_LENGTH,
            },
        )
        return KeywordFindings.model_validate(payload)

    async def _assets(self, page: Page, options: AnalysisOptions) -> Assets:
        payload = await page.evaluate(
            page_scripts.ASSETS,
            {
                "images": options.extract_images,
                "links": options.extract_links,
                "scripts": options.extract_js,
                "stylesheets": options.extract_css,
            },
        )
        return Assets(
            images=[ImageAsset.model_validate(img) for img in payload.get("images", [])],
            links=[
                LinkAsset(href=link.get("href", ""), text=link.get("text", ""), type=classify_link(link.get("href", "")))
                for link in payload.get("links", [])
            ],
            scripts=[src for src in payload.get("scripts", []) if src],
            stylesheets=[href for href in payload.get("stylesheets", []) if href],
        )

    async def _technical(self, page: Page) -> dict[str, Any]:
        return await page.evaluate(page_scripts.TECHNICAL)

    async def _seo(self, page: Page) -> SeoInfo:
        return SeoInfo.model_validate(await page.evaluate(page_scripts.SEO))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract(
        self,
        url: str,
        selector: str,
        keywords: list[str],
        options: AnalysisOptions,
    ) -> AnalysisResult:
        """Analyse ``url`` in headless Chromium.

        Raises:
            LaunchError: Browser, context or page could not be created.
            NavigationError: Both navigation attempts failed.
            EvaluationError: Every extraction step failed.
        """
        start = time.perf_counter()
        requests: list[str] = []

        async def _intercept(route: Route) -> None:
            request = route.request
            requests.append(request.url)
            try:
                if request.resource_type in BLOCKED_RESOURCE_TYPES:
                    await route.abort()
                else:
                    await route.continue_()
            except PlaywrightError as exc:
                logger.debug("browser: route for %s already handled: %s", request.url, exc)

        async with self._open_page() as page:
            page.set_default_navigation_timeout(self.limits.navigation_timeout * 1000)
            page.set_default_timeout(self.limits.step_timeout * 1000)
            page.on("pageerror", lambda error: logger.warning("browser: page error on %s: %s", url, error))
            await page.route("**/*", _intercept)

            logger.info("browser: navigating to %s", url)
            await self._navigate(page, url)
            await self._settle(page, url)
            load_time_ms = round((time.perf_counter() - start) * 1000, 2)

            result = AnalysisResult(url=url)
            attempted = 0
            failed = 0

            async def step(label: str, run: Callable[[], Awaitable[T]]) -> T | None:
                nonlocal attempted, failed
                attempted += 1
                value = await self._run_step(result, label, run)
                if value is None:
                    failed += 1
                return value

            basic_info = await step("basic info", lambda: self._basic_info(page))
            if basic_info is not None:
                result.basic_info = basic_info

            if options.extract_html:
                content = await step("content", lambda: self._content(page, selector))
                if content is not None:
                    result.content = content

            if keywords:
                findings = await step("keywords", lambda: self._keywords(page, keywords, options.deep_scan))
                if findings is not None:
                    result.keywords = findings

            if options.extract_images or options.extract_links or options.extract_js or options.extract_css:
                assets = await step("assets", lambda: self._assets(page, options))
                if assets is not None:
                    result.assets = assets

            technical = await step("technologies", lambda: self._technical(page))
            if technical is not None:
                frameworks, technologies = detect_signatures(technical.get("sources", []))
                result.technical.frameworks = list(technical.get("globals", [])) + frameworks
                result.technical.technologies = technologies
                result.technical.performance.dom_element_count = int(technical.get("domElementCount", 0))

            seo = await step("SEO", lambda: self._seo(page))
            if seo is not None:
                result.seo = seo

            result.technical.performance.load_time_ms = load_time_ms
            result.technical.performance.request_count = len(requests)

            if attempted and failed == attempted:
                raise EvaluationError(
                    f"All {attempted} extraction steps failed: {'; '.join(result.errors)}",
                    url=url,
                )

        logger.info(
            "browser: analysis of %s done in %.0fms (%d requests, %d section errors)",
            url,
            load_time_ms,
            len(requests),
            len(result.errors),
        )
        return result
