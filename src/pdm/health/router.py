"""Liveness and readiness probes."""

from collections.abc import Awaitable

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pdm.config import get_settings
from pdm.database import get_session
from pdm.projects.registry import ProjectRegistry, get_registry
from pdm.redis_client import get_redis

router = APIRouter()


async def _probe(check: Awaitable[object]) -> str:
    try:
        await check
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    registry: ProjectRegistry = Depends(get_registry),  # noqa: B008
) -> dict[str, object]:
    """Database and Redis connectivity, plus what this instance is serving."""
    checks = {"database": await _probe(db.execute(text("SELECT 1")))}
    try:
        checks["redis"] = await _probe(get_redis().ping())
    except RuntimeError as exc:
        checks["redis"] = f"error: {exc}"

    return {
        "status": "ready" if all(v == "ok" for v in checks.values()) else "degraded",
        "checks": checks,
        "projects": len(registry),
        "version": get_settings().app_version,
    }
