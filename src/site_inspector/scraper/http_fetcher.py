"""HTTP fetch strategy: one GET, pattern-matching extraction.

Uses ``httpx`` for the request and :mod:`site_inspector.scraper.markup_parser`
for everything else.  The page's scripts never run, so client-rendered
content is invisible here; in exchange the strategy needs no browser and
works for hosts that break headless navigation.

Failures raise :class:`~site_inspector.core.exceptions.FetchError`
subclasses so the coordinator can fall back:

- :class:`~site_inspector.core.exceptions.FetchTimeoutError`: the
  wall-clock deadline passed (the in-flight request is cancelled).
- :class:`~site_inspector.core.exceptions.HTTPStatusError`: non-2xx status.
- :class:`~site_inspector.core.exceptions.NetworkError`: transport failure.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

import httpx

from site_inspector.core.exceptions import FetchTimeoutError, HTTPStatusError, NetworkError
from site_inspector.core.schemas.analysis import AnalysisOptions, AnalysisResult
from site_inspector.scraper import markup_parser
from site_inspector.scraper.config import BROWSER_HEADERS, ExtractionLimits

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Raw fetch
# ---------------------------------------------------------------------------


@dataclass
class FetchResult:
    """A successfully fetched page.

    Attributes:
        html: Decoded response body.
        status_code: HTTP status code (always 2xx).
        final_url: URL after following redirects.
        elapsed_ms: Wall-clock time of the request in milliseconds.
    """

    html: str
    status_code: int
    final_url: str
    elapsed_ms: float


async def fetch_url(url: str, *, client: httpx.AsyncClient, timeout: float) -> FetchResult:
    """GET ``url`` with browser-like headers under a hard deadline.

    The httpx per-phase timeouts bound each socket operation; the outer
    ``asyncio.wait_for`` bounds the whole exchange, so a server trickling
    bytes cannot hold the call past ``timeout`` seconds.

    Args:
        url: Target URL.
        client: The :class:`httpx.AsyncClient` to send the request with.
        timeout: Deadline in seconds for the complete request.

    Returns:
        A :class:`FetchResult`.

    Raises:
        FetchTimeoutError: The deadline passed.
        HTTPStatusError: The response status is not 2xx.
        NetworkError: Any other transport failure.
    """
    start = time.perf_counter()
    try:
        response = await asyncio.wait_for(
            client.get(url, headers=BROWSER_HEADERS, follow_redirects=True, timeout=timeout),
            timeout=timeout,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        logger.warning("fetch: timeout after %.1fs for %s", timeout, url)
        raise FetchTimeoutError(f"Request timed out after {timeout:g}s", url=url) from exc
    except httpx.RequestError as exc:
        logger.warning("fetch: request error for %s: %s", url, exc)
        raise NetworkError(f"Request failed: {exc}", url=url) from exc

    elapsed_ms = round((time.perf_counter() - start) * 1000, 2)

    if not response.is_success:
        logger.info("fetch: HTTP %d for %s", response.status_code, url)
        raise HTTPStatusError(response.status_code, url=url, reason=response.reason_phrase)

    return FetchResult(
        html=response.text,
        status_code=response.status_code,
        final_url=str(response.url),
        elapsed_ms=elapsed_ms,
    )


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class FetchExtractor:
    """Builds an :class:`AnalysisResult` from a single HTTP GET.

    Args:
        limits: Caps and the fetch deadline.  Defaults to
            :class:`~site_inspector.scraper.config.ExtractionLimits`.
        client: Optional shared client.  When omitted, a client is opened
            and closed around every call.
    """

    def __init__(
        self,
        limits: ExtractionLimits | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.limits = limits or ExtractionLimits()
        self._client = client

    async def _fetch(self, url: str) -> FetchResult:
        if self._client is not None:
            return await fetch_url(url, client=self._client, timeout=self.limits.fetch_timeout)
        async with httpx.AsyncClient() as client:
            return await fetch_url(url, client=client, timeout=self.limits.fetch_timeout)

    async def extract(
        self,
        url: str,
        selector: str,
        keywords: list[str],
        options: AnalysisOptions,
    ) -> AnalysisResult:
        """Fetch ``url`` and parse it with pattern matching.

        ``selector`` cannot be evaluated without a DOM: content always comes
        from ``<body>`` and a note is added to ``errors`` when a different
        selector was requested.

        Raises:
            FetchError: See module docstring.
        """
        page = await self._fetch(url)
        html = page.html
        limits = self.limits
        logger.info("fetch: %d characters from %s in %.0fms", len(html), url, page.elapsed_ms)

        result = AnalysisResult(url=url)
        result.basic_info = markup_parser.parse_basic_info(html)

        body = markup_parser.extract_body(html)
        text = markup_parser.html_to_text(body if body is not None else html)

        if options.extract_html and body is not None:
            result.content.html = body
            result.content.text = text
            result.content.structure = {"tagName": "body"}
            if selector != "body":
                result.errors.append(
                    f"Selector '{selector}' requires a browser; reported <body> content instead"
                )

        if keywords:
            result.keywords = markup_parser.find_keywords(text, keywords)

        if options.extract_images:
            result.assets.images = markup_parser.extract_images(html, limits.max_images)
            result.seo.alt_texts = markup_parser.extract_alt_texts(result.assets.images)
        if options.extract_links:
            result.assets.links = markup_parser.extract_links(html, limits.max_links)
        if options.extract_js:
            result.assets.scripts = markup_parser.extract_scripts(html, limits.max_scripts)
        if options.extract_css:
            result.assets.stylesheets = markup_parser.extract_stylesheets(html, limits.max_stylesheets)

        frameworks, technologies = markup_parser.detect_signatures([html])
        result.technical.frameworks = frameworks
        result.technical.technologies = technologies
        result.technical.performance.load_time_ms = page.elapsed_ms
        result.technical.performance.dom_element_count = markup_parser.count_elements(html)
        result.technical.performance.request_count = 1

        if options.extract_metadata:
            result.seo.meta_tags = markup_parser.extract_meta_tags(html, limits.max_meta_tags)
        result.seo.headings = markup_parser.extract_headings(html, limits.max_headings)

        logger.info(
            "fetch: analysis of %s found %d/%d keywords, %d frameworks",
            url,
            len(result.keywords.found),
            len(keywords),
            len(result.technical.frameworks),
        )
        return result
