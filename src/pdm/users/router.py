"""User profile page."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pdm.badges.presenter import present_badges
from pdm.badges.service import get_user_badges
from pdm.database import get_session
from pdm.pages.templates import get_templates
from pdm.projects.registry import ProjectRegistry, get_registry

router = APIRouter(tags=["Users"])


@router.get("/users/{name}", response_class=HTMLResponse)
async def user_page(
    request: Request,
    name: str,
    registry: ProjectRegistry = Depends(get_registry),  # noqa: B008
    db: AsyncSession = Depends(get_session),  # noqa: B008
):
    """Badges of a user, looked up by the last username seen for them."""
    result = await db.execute(text("SELECT userid FROM user_names WHERE username = :name"), {"name": name})
    rows = result.all()
    if len(rows) != 1:
        raise HTTPException(status_code=404, detail="User not found")
    user_id = rows[0].userid

    badges = present_badges(registry, await get_user_badges(db, registry, user_id))
    return get_templates().TemplateResponse(request, "pages/user.html", {
        "username": name,
        "userid": user_id,
        "badges": badges,
    })
