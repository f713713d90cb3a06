"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.  Every
variable is read with the ``SITE_INSPECTOR_`` prefix, e.g.
``SITE_INSPECTOR_LOG_LEVEL=DEBUG``.

Usage::

    from site_inspector.config.settings import get_settings

    settings = get_settings()
    budget = settings.browser_budget_seconds
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from site_inspector.scraper.config import DEFAULT_DENYLIST


class Settings(BaseSettings):
    """Service configuration backed by environment variables and an optional .env file.

    Every field has a default so the service starts without any environment.
    Caps and timeouts that used to be compiled in are exposed here so tests
    and deployments can tune them.
    """

    model_config = SettingsConfigDict(
        env_prefix="SITE_INSPECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    app_name: str = "Site Inspector"
    """Human-readable application name shown in the OpenAPI docs."""

    debug: bool = False
    """Enable FastAPI debug mode.  Never True in production."""

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    allowed_origins: list[str] = ["http://localhost:3000"]
    """Origins permitted by the CORS middleware (the dashboard front-end)."""

    # ------------------------------------------------------------------
    # Strategy policy
    # ------------------------------------------------------------------

    denylist: list[str] = list(DEFAULT_DENYLIST)
    """Hosts known to break the browser strategy.  Requests for these hosts
    (or any of their subdomains) go straight to the HTTP fetch strategy."""

    # ------------------------------------------------------------------
    # Browser strategy timing (seconds)
    # ------------------------------------------------------------------

    browser_budget_seconds: float = 45.0
    """Overall time budget for one browser analysis, launch to close."""

    browser_launch_timeout_seconds: float = 30.0
    """Maximum time Chromium may take to start."""

    navigation_timeout_seconds: float = 15.0
    """Timeout of the first ``domcontentloaded`` navigation attempt."""

    navigation_retry_timeout_seconds: float = 10.0
    """Timeout of the lenient ``load`` navigation retry."""

    step_timeout_seconds: float = 5.0
    """Deadline applied to each in-page extraction step."""

    settle_delay_seconds: float = 2.0
    """Extra wait after ``body`` appears so late scripts can render."""

    keyword_scan_limit: int = 1500
    """Candidate elements scanned per keyword when ``deepScan`` is off."""

    status_probe_timeout_seconds: float = 10.0
    """Launch timeout of the browser availability probe behind ``GET /status``."""

    # ------------------------------------------------------------------
    # HTTP fetch strategy
    # ------------------------------------------------------------------

    fetch_timeout_seconds: float = 15.0
    """Wall-clock deadline of the single fetch request; aborted when exceeded."""

    max_images: int = 10
    max_links: int = 15
    max_meta_tags: int = 10
    max_headings: int = 10
    max_scripts: int = 15
    max_stylesheets: int = 15

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    simulated_delay_seconds: float = 0.0
    """Artificial latency of the simulated strategy (the dashboard demo uses 2s)."""

    # ------------------------------------------------------------------
    # Analysis history
    # ------------------------------------------------------------------

    repository_max_records: int = 1000
    """Number of analyses kept by the in-memory repository."""

    @field_validator("denylist")
    @classmethod
    def _normalise_hosts(cls, value: list[str]) -> list[str]:
        """Lower-case hosts and drop blanks so matching is case-insensitive."""
        return [host.strip().lower().lstrip(".") for host in value if host.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide :class:`Settings` instance (cached)."""
    return Settings()
