"""Unit tests for the structured logging configuration.

Verifies that ``configure_logging()`` produces well-formed output, that the
``request_id_var`` context variable is propagated, and that secret-bearing
fields are redacted and long values shortened.
"""

from __future__ import annotations

import json
import logging
from io import StringIO
from typing import Callable

import structlog

from site_inspector.core.logging_config import configure_logging, request_id_var


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _capture(log_level: str, emit: Callable[[], None]) -> list[dict]:
    """Run ``emit`` with the root handler writing to a buffer; return parsed records."""
    configure_logging(log_level)
    structlog.contextvars.clear_contextvars()

    buffer = StringIO()
    root = logging.getLogger()
    original_streams = []
    for handler in root.handlers:
        if hasattr(handler, "stream"):
            original_streams.append((handler, handler.stream))
            handler.stream = buffer

    try:
        emit()
    finally:
        for handler, stream in original_streams:
            handler.flush()
            handler.stream = stream

    lines = [line for line in buffer.getvalue().splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


def _stdlib_record(message: str) -> dict:
    records = _capture("INFO", lambda: logging.getLogger("test.logging_config").info(message))
    target = next((r for r in records if r.get("event") == message), None)
    assert target is not None, f"No record with event={message!r} in {records!r}"
    return target


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestConfigureLoggingJson:
    """Verify INFO-level (production) JSON output."""

    def test_stdlib_record_rendered_as_json(self) -> None:
        """Extractor-style stdlib records go through the structlog renderer."""
        record = _stdlib_record("browser: launched")

        assert record["level"] == "info"
        assert record["logger"] == "test.logging_config"
        assert "timestamp" in record

    def test_structlog_event_with_fields(self) -> None:
        records = _capture(
            "INFO",
            lambda: structlog.get_logger("test.coordinator").info(
                "analysis_complete", mode="real", attempts=1
            ),
        )
        target = next(r for r in records if r.get("event") == "analysis_complete")

        assert target["mode"] == "real"
        assert target["attempts"] == 1
        assert target["level"] == "info"

    def test_level_filters_records(self) -> None:
        records = _capture(
            "WARNING",
            lambda: logging.getLogger("test.logging_config").info("too_quiet"),
        )

        assert not [r for r in records if r.get("event") == "too_quiet"]

    def test_unknown_level_means_info(self) -> None:
        configure_logging("chatty")

        assert logging.getLogger().level == logging.INFO


class TestRequestIdContextVar:
    """Verify that the request_id ContextVar is propagated into log records."""

    def test_request_id_appears_in_json_output(self) -> None:
        token = request_id_var.set("test-req-1234")
        try:
            record = _stdlib_record("request_id_propagation_test")
        finally:
            request_id_var.reset(token)

        assert record.get("request_id") == "test-req-1234"

    def test_no_request_id_when_var_unset(self) -> None:
        token = request_id_var.set(None)
        try:
            record = _stdlib_record("no_request_id_test")
        finally:
            request_id_var.reset(token)

        assert record.get("request_id") is None


class TestSecretRedaction:
    def test_top_level_and_nested_keys_redacted(self) -> None:
        records = _capture(
            "INFO",
            lambda: structlog.get_logger("test.redaction").info(
                "redaction_test",
                api_key="abc123",
                headers={"Cookie": "session=1", "Accept": "text/html"},
                url="https://example.com/",
            ),
        )
        target = next(r for r in records if r.get("event") == "redaction_test")

        assert target["api_key"] == "[REDACTED]"
        assert target["headers"] == {"Cookie": "[REDACTED]", "Accept": "text/html"}
        assert target["url"] == "https://example.com/"


class TestConfigureLoggingIdempotent:
    """Verify configure_logging() is safe to call multiple times."""

    def test_calling_twice_does_not_duplicate_handlers(self) -> None:
        configure_logging("INFO")
        configure_logging("INFO")

        assert len(logging.getLogger().handlers) == 1


class TestLongValueTruncation:
    def test_page_text_shortened(self) -> None:
        page_text = "x" * 5000
        records = _capture(
            "INFO",
            lambda: structlog.get_logger("test.truncation").warning(
                "strategy_failed", error=page_text, mode="alternative"
            ),
        )
        target = next(r for r in records if r.get("event") == "strategy_failed")

        assert target["error"].startswith("x" * 300 + "...")
        assert target["error"].endswith("[5000 chars]")
        assert target["mode"] == "alternative"
