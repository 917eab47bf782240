"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from pdm.config import get_settings
from pdm.contributions.router import router as contributions_router
from pdm.database import close_db, init_db
from pdm.health.router import router as health_router
from pdm.middleware import setup_middleware
from pdm.pages.router import router as pages_router
from pdm.projects.registry import get_registry
from pdm.projects.router import router as projects_router
from pdm.redis_client import close_redis, init_redis
from pdm.stats.router import router as stats_router
from pdm.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    registry = get_registry()  # fail fast on an invalid registry
    await init_db(settings)
    await init_redis(settings.redis_url)
    logger.info("app_started", projects=len(registry), environment=settings.environment)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Projet du mois",
        description="Dashboards of the monthly OpenStreetMap mapping projects",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(projects_router)
    app.include_router(stats_router)
    app.include_router(contributions_router)
    app.include_router(users_router)

    app.mount("/images", StaticFiles(directory=settings.static_dir, check_dir=False), name="images")
    app.mount(
        "/lib/fontawesome",
        StaticFiles(directory=str(Path(settings.node_modules_dir) / "@fortawesome" / "fontawesome-free"), check_dir=False),
        name="fontawesome",
    )
    app.include_router(pages_router)

    return app


app = create_app()
