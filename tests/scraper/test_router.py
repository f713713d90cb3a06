"""HTTP-level tests for the analysis routes and the health check.

The coordinator, repository and browser prober are replaced through
``app.dependency_overrides``; requests go through ``httpx.ASGITransport``
so middleware and error handlers run exactly as in production.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi import FastAPI

from site_inspector.api.dependencies import get_browser_prober, get_coordinator, get_repository
from site_inspector.api.main import create_app
from site_inspector.core.repository import InMemoryAnalysisRepository
from site_inspector.core.schemas.analysis import (
    AnalysisRecord,
    AnalysisRequest,
    AnalysisResult,
    ExtractionMode,
)
from site_inspector.scraper.coordinator import AnalysisOutcome


class FakeCoordinator:
    """Returns a canned outcome, or raises ``error`` when set."""

    def __init__(
        self,
        mode: ExtractionMode = ExtractionMode.REAL,
        warning: str | None = None,
        error: Exception | None = None,
    ) -> None:
        self.mode = mode
        self.warning = warning
        self.error = error
        self.requests: list[AnalysisRequest] = []

    async def analyze(self, request: AnalysisRequest) -> AnalysisOutcome:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        result = AnalysisResult(url=request.url)
        result.basic_info.title = "Example Domain"
        result.keywords.found = list(request.keywords)
        return AnalysisOutcome(result=result, mode=self.mode, warning=self.warning)


def _record(
    url: str = "https://example.com/",
    mode: ExtractionMode = ExtractionMode.REAL,
    created_at: datetime | None = None,
) -> AnalysisRecord:
    return AnalysisRecord(
        id=f"{mode.value}-{url}",
        url=url,
        mode=mode,
        created_at=created_at or datetime.now(timezone.utc),
        data=AnalysisResult(url=url),
    )


def _prober(available: bool = True, details: str = "Chromium 120 launched and closed successfully") -> MagicMock:
    prober = MagicMock()
    prober.probe = AsyncMock(return_value=(available, details))
    return prober


@pytest.fixture
def repository() -> InMemoryAnalysisRepository:
    return InMemoryAnalysisRepository()


@pytest.fixture
def coordinator() -> FakeCoordinator:
    return FakeCoordinator()


@pytest.fixture
def prober() -> MagicMock:
    return _prober()


@pytest.fixture
def app(
    coordinator: FakeCoordinator,
    repository: InMemoryAnalysisRepository,
    prober: MagicMock,
) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_coordinator] = lambda: coordinator
    application.dependency_overrides[get_repository] = lambda: repository
    application.dependency_overrides[get_browser_prober] = lambda: prober
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


# ---------------------------------------------------------------------------
# POST /analyze
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestAnalyzeRoute:
    async def test_success_envelope(self, client: httpx.AsyncClient, coordinator: FakeCoordinator) -> None:
        response = await client.post(
            "/analyze",
            json={
                "url": "https://example.com/",
                "keywords": ["example", " "],
                "analysisOptions": {"extractHTML": True, "extractCSS": True},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["mode"] == "real"
        assert "warning" not in body
        assert body["data"]["basicInfo"]["title"] == "Example Domain"
        assert body["data"]["keywords"]["found"] == ["example"]
        assert "loadTimeMs" in body["data"]["technical"]["performance"]
        assert response.headers["X-Request-ID"]

        request = coordinator.requests[0]
        assert request.selector == "body"
        assert request.analysis_options.extract_html is True
        assert request.analysis_options.extract_css is True
        assert request.analysis_options.extract_js is False

    async def test_warning_reported(self, app: FastAPI, client: httpx.AsyncClient) -> None:
        fallback = FakeCoordinator(
            mode=ExtractionMode.ALTERNATIVE,
            warning="browser analysis failed; using HTTP fetch analysis",
        )
        app.dependency_overrides[get_coordinator] = lambda: fallback

        response = await client.post("/analyze", json={"url": "https://example.com/"})

        body = response.json()
        assert response.status_code == 200
        assert body["mode"] == "alternative"
        assert body["warning"] == "browser analysis failed; using HTTP fetch analysis"

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"url": ""},
            {"url": "example.com"},
            {"url": "ftp://example.com/file"},
            {"url": "https://example.com/", "keywords": "not-a-list"},
        ],
    )
    async def test_invalid_body_rejected(
        self,
        client: httpx.AsyncClient,
        coordinator: FakeCoordinator,
        payload: dict,
    ) -> None:
        response = await client.post("/analyze", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request"
        assert isinstance(body["details"], list) and body["details"]
        assert coordinator.requests == []

    async def test_internal_fault_returns_500(self, app: FastAPI, client: httpx.AsyncClient) -> None:
        app.dependency_overrides[get_coordinator] = lambda: FakeCoordinator(error=RuntimeError("disk on fire"))

        response = await client.post("/analyze", json={"url": "https://example.com/"})

        assert response.status_code == 500
        assert response.json() == {"error": "Analysis failed", "details": "disk on fire"}


# ---------------------------------------------------------------------------
# GET /status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestStatusRoute:
    async def test_browser_available(
        self,
        client: httpx.AsyncClient,
        prober: MagicMock,
        repository: InMemoryAnalysisRepository,
    ) -> None:
        repository.save(_record())

        response = await client.get("/status")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["api"]["status"] == "online"
        assert data["browser"] == {
            "status": "available",
            "details": "Chromium 120 launched and closed successfully",
        }
        assert data["system"]["memory"]["usedMb"] > 0
        assert data["system"]["memory"]["totalMb"] >= data["system"]["memory"]["usedMb"]
        assert data["system"]["pythonVersion"]
        assert data["analyses"] == {"total": 1}
        prober.probe.assert_awaited_once()

    async def test_browser_unavailable_still_200(self, app: FastAPI, client: httpx.AsyncClient) -> None:
        app.dependency_overrides[get_browser_prober] = lambda: _prober(False, "Executable doesn't exist")

        response = await client.get("/status")

        assert response.status_code == 200
        assert response.json()["data"]["browser"] == {
            "status": "unavailable",
            "details": "Executable doesn't exist",
        }

    async def test_probe_crash_reported(self, app: FastAPI, client: httpx.AsyncClient) -> None:
        broken = MagicMock()
        broken.probe = AsyncMock(side_effect=OSError("fork failed"))
        app.dependency_overrides[get_browser_prober] = lambda: broken

        response = await client.get("/status")

        assert response.status_code == 200
        browser = response.json()["data"]["browser"]
        assert browser["status"] == "unavailable"
        assert "fork failed" in browser["details"]


# ---------------------------------------------------------------------------
# GET /analyses
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestAnalysesRoute:
    async def test_newest_first_with_pagination(
        self,
        client: httpx.AsyncClient,
        repository: InMemoryAnalysisRepository,
    ) -> None:
        for i in range(3):
            repository.save(_record(url=f"https://example.com/{i}"))

        response = await client.get("/analyses", params={"limit": 2})

        assert response.status_code == 200
        body = response.json()
        assert [r["url"] for r in body["data"]] == ["https://example.com/2", "https://example.com/1"]
        assert body["pagination"] == {"total": 3, "limit": 2, "offset": 0, "hasMore": True}
        assert body["stats"]["total"] == 3
        assert "createdAt" in body["data"][0]
        assert "basicInfo" in body["data"][0]["data"]

    async def test_mode_filter(
        self,
        client: httpx.AsyncClient,
        repository: InMemoryAnalysisRepository,
    ) -> None:
        repository.save(_record(mode=ExtractionMode.REAL))
        repository.save(_record(mode=ExtractionMode.SIMULATED))

        response = await client.get("/analyses", params={"mode": "simulated"})

        body = response.json()
        assert [r["mode"] for r in body["data"]] == ["simulated"]
        assert body["stats"] == {"total": 2, "real": 1, "alternative": 0, "simulated": 1}

    async def test_since_filter(
        self,
        client: httpx.AsyncClient,
        repository: InMemoryAnalysisRepository,
    ) -> None:
        now = datetime.now(timezone.utc)
        repository.save(_record(url="https://old.example.com/", created_at=now - timedelta(days=2)))
        repository.save(_record(url="https://new.example.com/", created_at=now))

        response = await client.get("/analyses", params={"since": (now - timedelta(days=1)).isoformat()})

        assert [r["url"] for r in response.json()["data"]] == ["https://new.example.com/"]

    async def test_since_after_until_rejected(self, client: httpx.AsyncClient) -> None:
        response = await client.get(
            "/analyses",
            params={"since": "2026-02-01T00:00:00", "until": "2026-01-01T00:00:00"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    @pytest.mark.parametrize("params", [{"limit": 0}, {"limit": 1000}, {"offset": -1}])
    async def test_bad_pagination_rejected(self, client: httpx.AsyncClient, params: dict) -> None:
        response = await client.get("/analyses", params=params)

        assert response.status_code == 400

    async def test_unknown_mode_rejected(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/analyses", params={"mode": "psychic"})

        assert response.status_code == 400


# ---------------------------------------------------------------------------
# GET /api/health
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestHealthRoute:
    async def test_health(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["app"] == "Site Inspector"
        assert "timestamp" in body
