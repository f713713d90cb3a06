"""Shared pytest fixtures for Site Inspector tests.

Fixture summary
---------------
fast_limits     : ExtractionLimits with sub-second deadlines and no settle delay.
sample_html     : A static page exercising every fetch-strategy extractor.
make_request    : Factory building validated AnalysisRequest objects.

No test touches the network or launches a real browser: httpx is mocked
with respx and Playwright with ``unittest.mock``.
"""

from __future__ import annotations

import os
from typing import Any, Callable

import pytest

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Keep the suite independent of a developer's .env and shell.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "SITE_INSPECTOR_LOG_LEVEL": "INFO",
    "SITE_INSPECTOR_SETTLE_DELAY_SECONDS": "0",
    "SITE_INSPECTOR_SIMULATED_DELAY_SECONDS": "0",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

from site_inspector.config.settings import get_settings  # noqa: E402
from site_inspector.core.schemas.analysis import AnalysisOptions, AnalysisRequest  # noqa: E402
from site_inspector.scraper.config import ExtractionLimits  # noqa: E402

get_settings.cache_clear()


SAMPLE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Example Domain</title>
  <meta name="description" content="An illustrative page">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <meta property="og:title" content="Example">
  <link rel="icon" href="/favicon.ico">
  <link rel="stylesheet" href="/css/bootstrap.min.css">
  <script src="/js/jquery-3.7.1.min.js"></script>
  <style>body { color: red; }</style>
</head>
<body>
  <h1>Example Domain</h1>
  <p>This domain is for use in illustrative examples in documents. PRICE on request.</p>
  <script>var hidden = "secret keyword";</script>
  <h2>More information</h2>
  <img src="/a.png" alt="First image">
  <img src="/b.png" alt="">
  <a href="https://www.iana.org/domains/example">More information...</a>
  <a href="mailto:info@example.com">Mail us</a>
  <a href="tel:+4512345678">Call us</a>
</body>
</html>
"""


@pytest.fixture
def sample_html() -> str:
    return SAMPLE_HTML


@pytest.fixture
def fast_limits() -> ExtractionLimits:
    """Limits with short deadlines so timeout paths finish quickly."""
    return ExtractionLimits(
        fetch_timeout=1.0,
        launch_timeout=1.0,
        navigation_timeout=1.0,
        navigation_retry_timeout=1.0,
        step_timeout=0.2,
        settle_delay=0.0,
    )


@pytest.fixture
def make_request() -> Callable[..., AnalysisRequest]:
    """Return a factory: ``make_request(url=..., keywords=[...], extract_html=True)``."""

    def _make(
        url: str = "https://example.com/",
        selector: str = "body",
        keywords: list[str] | None = None,
        **flags: Any,
    ) -> AnalysisRequest:
        return AnalysisRequest(
            url=url,
            selector=selector,
            keywords=keywords or [],
            analysis_options=AnalysisOptions(**flags),
        )

    return _make
