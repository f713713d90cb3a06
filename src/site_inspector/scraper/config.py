"""Constants shared by the extraction strategies.

Tunable caps and timeouts live in :mod:`site_inspector.config.settings`;
this module holds the fixed tables every strategy reads identically.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from site_inspector.config.settings import Settings

# ---------------------------------------------------------------------------
# HTTP identity
# ---------------------------------------------------------------------------

#: Desktop Chrome user-agent sent by both the browser and the fetch strategy.
USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

#: Browser-like request headers for the fetch strategy.
BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "es-ES,es;q=0.8,en-US;q=0.5,en;q=0.3",
    "Accept-Encoding": "gzip, deflate",
    "Upgrade-Insecure-Requests": "1",
}

# ---------------------------------------------------------------------------
# Browser
# ---------------------------------------------------------------------------

#: Fixed viewport used for every browser analysis.
VIEWPORT: dict[str, int] = {"width": 1920, "height": 1080}

#: Chromium flags that keep the headless process lean inside containers.
CHROMIUM_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--no-zygote",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-default-apps",
    "--disable-sync",
    "--disable-translate",
)

#: Playwright resource types aborted by the request interceptor.
BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset({"image", "stylesheet", "font", "media"})

# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

#: Hosts observed to break headless navigation.  Overridable through
#: ``SITE_INSPECTOR_DENYLIST``.
DEFAULT_DENYLIST: tuple[str, ...] = (
    "secretariasenado.gov.co",
    "senado.gov.co",
    "congreso.gov.co",
)

# ---------------------------------------------------------------------------
# Technology fingerprints
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Signature:
    """One substring fingerprint.

    Attributes:
        name: Reported framework or technology name.
        kind: ``"framework"`` or ``"technology"``.
        needles: Case-sensitive substrings searched in script sources, link
            hrefs and the generator meta tag (browser) or in the raw markup
            (fetch).
    """

    name: str
    kind: str
    needles: tuple[str, ...]


SIGNATURES: tuple[Signature, ...] = (
    Signature("React", "framework", ("react", "React", "data-reactroot")),
    Signature("Vue.js", "framework", ("vue", "Vue")),
    Signature("Angular", "framework", ("ng-version", "angular.js", "angular.min.js")),
    Signature("Next.js", "framework", ("__NEXT_DATA__", "/_next/")),
    Signature("jQuery", "framework", ("jquery", "jQuery")),
    Signature("Bootstrap", "framework", ("bootstrap",)),
    Signature("Tailwind CSS", "framework", ("tailwind",)),
    Signature("WordPress", "technology", ("wp-content", "WordPress")),
    Signature("Drupal", "technology", ("Drupal", "/sites/default/files/")),
    Signature("Joomla", "technology", ("Joomla",)),
    Signature("Shopify", "technology", ("cdn.shopify.com",)),
    Signature("Google Analytics", "technology", ("google-analytics.com", "googletagmanager.com")),
)

# ---------------------------------------------------------------------------
# Keyword context
# ---------------------------------------------------------------------------

#: Characters kept before / after a keyword hit in the fetch strategy.
KEYWORD_CONTEXT_BEFORE: int = 30
KEYWORD_CONTEXT_AFTER: int = 50

#: Maximum characters of element text kept in a browser keyword hit.
KEYWORD_SNIPPET_LENGTH: int = 100

# ---------------------------------------------------------------------------
# Runtime limits
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtractionLimits:
    """Caps and deadlines handed to the extractors.

    Defaults match :class:`~site_inspector.config.settings.Settings` so an
    extractor built without arguments behaves like the configured service.
    """

    max_images: int = 10
    max_links: int = 15
    max_meta_tags: int = 10
    max_headings: int = 10
    max_scripts: int = 15
    max_stylesheets: int = 15
    fetch_timeout: float = 15.0
    launch_timeout: float = 30.0
    navigation_timeout: float = 15.0
    navigation_retry_timeout: float = 10.0
    step_timeout: float = 5.0
    settle_delay: float = 2.0
    keyword_scan_limit: int = 1500

    @classmethod
    def from_settings(cls, settings: Settings) -> ExtractionLimits:
        return cls(
            max_images=settings.max_images,
            max_links=settings.max_links,
            max_meta_tags=settings.max_meta_tags,
            max_headings=settings.max_headings,
            max_scripts=settings.max_scripts,
            max_stylesheets=settings.max_stylesheets,
            fetch_timeout=settings.fetch_timeout_seconds,
            launch_timeout=settings.browser_launch_timeout_seconds,
            navigation_timeout=settings.navigation_timeout_seconds,
            navigation_retry_timeout=settings.navigation_retry_timeout_seconds,
            step_timeout=settings.step_timeout_seconds,
            settle_delay=settings.settle_delay_seconds,
            keyword_scan_limit=settings.keyword_scan_limit,
        )
