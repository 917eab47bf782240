"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from pdm.database import get_session
from pdm.dependencies import get_stats_aggregator
from pdm.main import create_app
from pdm.projects.registry import ProjectRegistry, get_registry


class FakeResult:
    """Just enough of a SQLAlchemy Result for the code under test."""

    def __init__(self, rows: list[dict] | None = None) -> None:
        self._rows = rows or []

    def mappings(self) -> list[dict]:
        return list(self._rows)

    def all(self) -> list[SimpleNamespace]:
        return [SimpleNamespace(**r) for r in self._rows]


class FakeSessionFactory:
    """Stands in for async_sessionmaker; ``handler(sql, params)`` returns rows or raises."""

    def __init__(self, handler: Callable[[str, dict], list[dict]]) -> None:
        self.handler = handler
        self.statements: list[str] = []

    def __call__(self) -> FakeSessionFactory:
        return self

    async def __aenter__(self) -> FakeSessionFactory:
        return self

    async def __aexit__(self, *exc: object) -> bool:
        return False

    async def execute(self, statement: object, params: dict | None = None) -> FakeResult:
        sql = str(statement)
        self.statements.append(sql)
        return FakeResult(self.handler(sql, params or {}))


def project_data(project_id: str, start: date, end: date | None, **extra: object) -> dict:
    data: dict = {
        "id": project_id,
        "title": project_id.split("_")[-1].title(),
        "start_date": start,
        "end_date": end,
        "database": {"imposm": {"types": ["point"], "mapping": {"amenity": ["fuel"]}}},
    }
    data.update(extra)
    return data


def today() -> date:
    return datetime.now(timezone.utc).date()


@pytest.fixture
def registry() -> ProjectRegistry:
    """Past, current and next project around today."""
    day = today()
    return ProjectRegistry.from_data({
        "projects": [
            project_data("2001_01_old", day - timedelta(days=60), day - timedelta(days=30)),
            project_data(
                "2001_02_fuel",
                day - timedelta(days=5),
                day + timedelta(days=5),
                datasources=[
                    {"source": "osmose", "name": "Missing brand", "item": 3230, "class": 1, "color": "#1565C0"},
                    {"source": "notes", "name": "Notes"},
                ],
                statistics={"count": True},
                badges=[{"id": "1", "name": "Pump attendant", "description": "Edit fuel stations", "levels": [1, 10, 50]}],
            ),
            project_data("2001_03_later", day + timedelta(days=20), day + timedelta(days=50)),
        ],
        "meta": [{"id": "1", "name": "Regular", "description": "Contribute to several projects"}],
    })


@pytest.fixture
def db() -> AsyncMock:
    """Mocked AsyncSession for request handlers."""
    session = AsyncMock()
    session.execute.return_value = FakeResult()
    return session


@pytest.fixture
def app(registry: ProjectRegistry, db: AsyncMock):
    application = create_app()

    async def _session() -> AsyncGenerator[AsyncMock, None]:
        yield db

    application.dependency_overrides[get_registry] = lambda: registry
    application.dependency_overrides[get_session] = _session
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over the ASGI app (no lifespan, no database)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def override_aggregator(app):
    """Install a StatsAggregator built by the test."""

    def _install(aggregator) -> None:
        app.dependency_overrides[get_stats_aggregator] = lambda: aggregator

    return _install
