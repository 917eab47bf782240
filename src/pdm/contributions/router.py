"""Contribution endpoint used by the map editor."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pdm.contributions.schemas import ContributionResponse
from pdm.contributions.service import InvalidContribution, record_contribution, validate_contribution
from pdm.database import get_session
from pdm.projects.filter import filter_projects
from pdm.projects.registry import ProjectRegistry, get_registry

router = APIRouter(tags=["Contributions"])


@router.post("/projects/{project_id}/contribute/{user_id}", response_model=ContributionResponse)
async def contribute(
    project_id: str,
    user_id: str,
    username: str | None = Query(None),
    type: str | None = Query(None),  # noqa: A002
    registry: ProjectRegistry = Depends(get_registry),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> ContributionResponse:
    """Log an add/edit/delete on the current project and return newly changed badges."""
    try:
        uid, name, kind = validate_contribution(
            registry, filter_projects(registry), project_id, user_id, username, type,
        )
    except InvalidContribution as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    badges = await record_contribution(db, project_id, uid, name, kind)
    return ContributionResponse(badges=badges)
