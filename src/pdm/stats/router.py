"""Project statistics endpoint."""

from fastapi import APIRouter, Depends, Query

from pdm.dependencies import get_project, get_stats_aggregator
from pdm.projects.registry import Project
from pdm.stats.service import StatsAggregator

router = APIRouter(tags=["Statistics"])


@router.get("/projects/{project_id}/stats")
async def project_stats(
    project: Project = Depends(get_project),  # noqa: B008
    osm_user: str | None = Query(None),
    aggregator: StatsAggregator = Depends(get_stats_aggregator),  # noqa: B008
) -> dict:
    """Charts, counters and leaderboard of a project, merged into one JSON object."""
    return await aggregator.collect(project, osm_user)
