"""Structured logging configuration using structlog.

Call ``configure_logging()`` once at application startup (``api/main.py``
does this).  Extractors log through the stdlib API, the coordinator and the
HTTP layer through structlog; both end up in the same renderer::

    import logging
    logger = logging.getLogger(__name__)
    logger.warning("browser: step %s failed: %s", step, exc)

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("analysis_complete", url=url, mode="real")

``request_id_var`` is populated by the HTTP middleware and merged into every
record emitted while that request is being served.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, WrappedLogger

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Per-request ID propagated from the HTTP middleware to log processors."""


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------

_SECRET_SUBSTRINGS: frozenset[str] = frozenset({
    "cookie",
    "authorization",
    "token",
    "api_key",
})
"""Lower-cased key fragments whose values are redacted.  Target pages may
echo session cookies or auth headers back into request logs."""


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Replace values of secret-bearing keys (top level and one nested dict deep)."""
    redacted = "[REDACTED]"
    for key in list(event_dict.keys()):
        if any(secret in key.lower() for secret in _SECRET_SUBSTRINGS):
            event_dict[key] = redacted
            continue
        val = event_dict[key]
        if isinstance(val, dict):
            for nested_key in list(val.keys()):
                if any(secret in str(nested_key).lower() for secret in _SECRET_SUBSTRINGS):
                    val[nested_key] = redacted
    return event_dict


_MAX_VALUE_LENGTH = 300
"""Longest string value rendered as-is.  Page text, HTML and error messages
quoting whole documents are cut to this length."""


def _truncate_page_text(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Shorten long string values, leaving ``event`` and tracebacks intact."""
    for key, val in event_dict.items():
        if key in ("event", "exception") or not isinstance(val, str):
            continue
        if len(val) > _MAX_VALUE_LENGTH:
            event_dict[key] = f"{val[:_MAX_VALUE_LENGTH]}... [{len(val)} chars]"
    return event_dict


def _inject_request_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Add ``request_id`` from :data:`request_id_var` when it is set and absent."""
    rid = request_id_var.get()
    if rid is not None and "request_id" not in event_dict:
        event_dict["request_id"] = rid
    return event_dict


# ---------------------------------------------------------------------------
# Public configuration entry-point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog and stdlib logging.

    Outside ``DEBUG`` the output is newline-delimited JSON; at ``DEBUG`` it
    is structlog's coloured console renderer.  Every record carries
    ``timestamp``, ``level``, ``logger``, ``event`` and, inside a request,
    ``request_id``.

    Safe to call repeatedly; handlers are replaced, not stacked.

    Args:
        log_level: ``"DEBUG"``, ``"INFO"``, ``"WARNING"``, ``"ERROR"`` or
            ``"CRITICAL"`` (case-insensitive).  Unknown values mean INFO.
    """
    level_upper = log_level.upper()
    numeric_level = getattr(logging, level_upper, logging.INFO)
    is_development = level_upper == "DEBUG"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_request_id,
        _redact_secrets,
        _truncate_page_text,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if is_development:
        final_renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        final_renderer = structlog.processors.JSONRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            final_renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    if not is_development:
        for noisy_logger in ("uvicorn.access", "httpx", "httpcore", "asyncio"):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
