"""Shared FastAPI dependencies."""

from fastapi import Depends, HTTPException

from pdm.config import Settings, get_settings
from pdm.database import get_session_factory
from pdm.projects.registry import Project, ProjectRegistry, get_registry
from pdm.stats.osmose import OsmoseClient
from pdm.stats.service import StatsAggregator


def get_project(project_id: str, registry: ProjectRegistry = Depends(get_registry)) -> Project:  # noqa: B008
    """Resolve the ``project_id`` path parameter, 404 when unknown."""
    project = registry.get(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def get_stats_aggregator(settings: Settings = Depends(get_settings)) -> StatsAggregator:  # noqa: B008
    """Aggregator bound to the pooled session factory and the Osmose client."""
    return StatsAggregator(
        get_session_factory(),
        OsmoseClient(settings.osmose_url, timeout=settings.fetch_timeout_seconds),
        timeout=settings.fetch_timeout_seconds,
    )
