"""Project pages: landing redirect, detail and map editor."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from pdm.config import Settings, get_settings
from pdm.dependencies import get_project
from pdm.pages.templates import get_templates
from pdm.projects.filter import filter_projects
from pdm.projects.map_style import get_map_style
from pdm.projects.registry import Project, ProjectRegistry, get_registry

router = APIRouter(tags=["Projects"])


@router.get("/")
async def index(registry: ProjectRegistry = Depends(get_registry)) -> RedirectResponse:  # noqa: B008
    """Send visitors to the current project, else the next one, else the last finished one."""
    landing = filter_projects(registry).landing()
    if landing is None:
        raise HTTPException(status_code=404, detail="No project")
    return RedirectResponse(f"/projects/{landing.id}", status_code=302)


@router.get("/projects/{project_id}", response_class=HTMLResponse)
async def project_page(
    request: Request,
    project: Project = Depends(get_project),  # noqa: B008
    registry: ProjectRegistry = Depends(get_registry),  # noqa: B008
):
    filtered = filter_projects(registry)
    return get_templates().TemplateResponse(request, "pages/project.html", {
        "project": project,
        "projects": filtered,
        "is_active": filtered.is_current(project.id),
        "is_next": filtered.is_next(project.id),
    })


@router.get("/projects/{project_id}/map", response_class=HTMLResponse)
async def map_page(
    request: Request,
    project: Project = Depends(get_project),  # noqa: B008
    registry: ProjectRegistry = Depends(get_registry),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
):
    filtered = filter_projects(registry)
    return get_templates().TemplateResponse(request, "pages/map.html", {
        "project": project,
        "is_active": filtered.is_current(project.id),
        **get_map_style(project, settings.osmose_url),
    })
