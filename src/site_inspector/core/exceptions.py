"""Application-wide exception hierarchy for Site Inspector.

All custom exceptions subclass ``SiteInspectorError``.  Strategy-level
failures subclass ``ExtractionError``; the extraction coordinator treats any
of them as the signal to fall back to the next strategy.

Hierarchy::

    SiteInspectorError
    ├── ExtractionError                (url)
    │   ├── BrowserError
    │   │   ├── LaunchError
    │   │   ├── NavigationError
    │   │   └── EvaluationError
    │   ├── FetchError
    │   │   ├── NetworkError
    │   │   ├── HTTPStatusError        (status_code)
    │   │   └── FetchTimeoutError      (also TimeoutError)
    │   └── ExtractionTimeoutError     (also TimeoutError)
    └── InvalidRequestError
"""

from __future__ import annotations


class SiteInspectorError(Exception):
    """Base class for all Site Inspector exceptions."""


# ---------------------------------------------------------------------------
# Extraction exceptions
# ---------------------------------------------------------------------------


class ExtractionError(SiteInspectorError):
    """Raised when an extraction strategy cannot produce a result at all.

    Section-level problems inside an otherwise successful run are recorded in
    the result's ``errors`` list instead of raising.

    Args:
        message: Human-readable description of the failure.
        url: The URL being analysed.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class BrowserError(ExtractionError):
    """Base class for failures of the headless-browser strategy."""


class LaunchError(BrowserError):
    """Raised when the Chromium process cannot be started."""


class NavigationError(BrowserError):
    """Raised when the target cannot be loaded (DNS, TLS, timeout, HTTP abort).

    Navigation is attempted twice (``domcontentloaded`` then ``load``) before
    this is raised.
    """


class EvaluationError(BrowserError):
    """Raised when in-page extraction fails so badly that no section survived."""


class FetchError(ExtractionError):
    """Base class for failures of the plain HTTP fetch strategy."""


class NetworkError(FetchError):
    """Raised on transport-level failures (connection refused, DNS, TLS)."""


class HTTPStatusError(FetchError):
    """Raised when the target answers with a non-2xx status.

    Args:
        status_code: The HTTP status code received.
        url: The URL being analysed.
        reason: Optional reason phrase.
    """

    def __init__(self, status_code: int, url: str | None = None, reason: str = "") -> None:
        msg = f"HTTP {status_code}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, url=url)
        self.status_code = status_code


class FetchTimeoutError(FetchError, TimeoutError):
    """Raised when the fetch request exceeds its wall-clock deadline."""


class ExtractionTimeoutError(ExtractionError, TimeoutError):
    """Raised when a whole strategy run exceeds its overall time budget."""


# ---------------------------------------------------------------------------
# Request exceptions
# ---------------------------------------------------------------------------


class InvalidRequestError(SiteInspectorError):
    """Raised when an analysis request is malformed (e.g. missing or relative URL)."""
