"""Health check route handlers for the Site Inspector API.

``GET /api/health``
    Shallow liveness check.  Performs no I/O beyond reading process state:
    it never launches a browser (``GET /status`` does that).  Always returns
    HTTP 200.

These endpoints are diagnostic: they must never raise HTTP 5xx errors.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from site_inspector.config.settings import get_settings

router = APIRouter(tags=["system"])


@router.get("/api/health", include_in_schema=True)
async def system_health() -> JSONResponse:
    """Return process-level liveness.

    Returns:
        JSON response with ``status``, ``app`` and ``timestamp``.
    """
    settings = get_settings()
    return JSONResponse(
        {
            "status": "ok",
            "app": settings.app_name,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )
