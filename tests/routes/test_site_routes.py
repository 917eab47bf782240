"""Error page, user profiles, documents, libraries and middleware."""

from __future__ import annotations

from pathlib import Path

import pytest
from httpx import AsyncClient

from conftest import FakeResult
from pdm.config import get_settings

pytestmark = pytest.mark.asyncio


@pytest.fixture
def site_dirs(tmp_path: Path, monkeypatch):
    """Docs and node_modules directories with a few real files."""
    (tmp_path / "README.md").write_text("# Projet du mois\n", encoding="utf-8")
    lib = tmp_path / "node_modules" / "chart.js" / "dist"
    lib.mkdir(parents=True)
    (lib / "Chart.bundle.min.js").write_text("/* chart */", encoding="utf-8")

    monkeypatch.setenv("PDM_DOCS_DIR", str(tmp_path))
    monkeypatch.setenv("PDM_NODE_MODULES_DIR", str(tmp_path / "node_modules"))
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def small_rate_limit(monkeypatch):
    """Budget of 5 requests per window; must be set up before the app."""
    monkeypatch.setenv("PDM_RATE_LIMIT_REQUESTS", "5")
    get_settings.cache_clear()
    yield 5
    get_settings.cache_clear()


class TestErrorPage:
    async def test_known_code(self, client: AsyncClient) -> None:
        response = await client.get("/error/404")
        assert response.status_code == 404
        assert "404" in response.text

    async def test_non_numeric_is_400(self, client: AsyncClient) -> None:
        response = await client.get("/error/oops")
        assert response.status_code == 400

    async def test_out_of_range_is_400(self, client: AsyncClient) -> None:
        response = await client.get("/error/200")
        assert response.status_code == 400

    async def test_unmatched_route_redirects(self, client: AsyncClient) -> None:
        response = await client.get("/nothing/here")
        assert response.status_code == 303
        assert response.headers["location"] == "/error/404"


class TestUserPage:
    async def test_badges_rendered(self, client: AsyncClient, db) -> None:
        db.execute.side_effect = [
            FakeResult([{"userid": 123}]),
            FakeResult([
                {"project": "2001_02_fuel", "id": "1", "acquired": 2},
                {"project": "meta", "id": "1", "acquired": 0},
            ]),
        ]
        response = await client.get("/users/alice")
        assert response.status_code == 200
        assert "alice" in response.text
        assert "Pump attendant" in response.text
        assert "Regular" in response.text

    async def test_unknown_user(self, client: AsyncClient, db) -> None:
        db.execute.return_value = FakeResult([])
        response = await client.get("/users/nobody")
        assert response.status_code == 303
        assert response.headers["location"] == "/error/404"


class TestStaticRoutes:
    async def test_document(self, client: AsyncClient, site_dirs) -> None:
        response = await client.get("/README.md")
        assert response.status_code == 200
        assert "Projet du mois" in response.text

    async def test_missing_document(self, client: AsyncClient, site_dirs) -> None:
        response = await client.get("/LICENSE.txt")
        assert response.status_code == 404

    async def test_allowed_library(self, client: AsyncClient, site_dirs) -> None:
        response = await client.get("/lib/chart.js/chart.js")
        assert response.status_code == 200
        assert response.text == "/* chart */"

    async def test_allowed_library_missing_on_disk(self, client: AsyncClient, site_dirs) -> None:
        response = await client.get("/lib/chart.js/chart.css")
        assert response.status_code == 500

    @pytest.mark.parametrize("path", ["/lib/chart.js/secret.js", "/lib/left-pad/index.js"])
    async def test_outside_allow_list(self, client: AsyncClient, site_dirs, path) -> None:
        response = await client.get(path)
        assert response.status_code == 404
        assert response.text == "File not found"

    async def test_missing_parameter(self, client: AsyncClient) -> None:
        response = await client.get("/lib/chart.js")
        assert response.status_code == 400


class TestMiddleware:
    async def test_request_id_generated(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert len(response.headers["x-request-id"]) == 36

    async def test_request_id_preserved(self, client: AsyncClient) -> None:
        response = await client.get("/health", headers={"X-Request-Id": "abc-123"})
        assert response.headers["x-request-id"] == "abc-123"

    async def test_rate_limit(self, small_rate_limit, client: AsyncClient, monkeypatch) -> None:
        counts = {"n": 0}

        class FakePipeline:
            def incr(self, key: str) -> None:
                counts["n"] += 1

            def expire(self, key: str, seconds: int) -> None:
                pass

            async def execute(self) -> list:
                return [counts["n"], True]

        class FakeRedis:
            def pipeline(self) -> FakePipeline:
                return FakePipeline()

        monkeypatch.setattr("pdm.middleware.rate_limit.get_redis", lambda: FakeRedis())
        response = await client.get("/error/404")  # exempt
        assert "x-ratelimit-limit" not in response.headers

        for _ in range(small_rate_limit):
            response = await client.get("/projects/2001_02_fuel")
            assert response.status_code == 200
        assert response.headers["x-ratelimit-remaining"] == "0"

        response = await client.get("/projects/2001_02_fuel")
        assert response.status_code == 429
        assert "retry-after" in response.headers


class TestProbes:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.json() == {"status": "healthy"}

    async def test_ready_without_redis(self, client: AsyncClient) -> None:
        body = (await client.get("/ready")).json()
        assert body["status"] == "degraded"
        assert body["checks"]["database"] == "ok"
        assert body["checks"]["redis"].startswith("error")
        assert body["projects"] == 3
