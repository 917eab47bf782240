"""Badge state reads. The state itself is computed by get_badges() in the database."""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pdm.projects.registry import META_PROJECT_ID, ProjectRegistry


async def get_badges(db: AsyncSession, project_id: str, user_id: int) -> list[dict]:
    """All badges, acquired or not, of a user for one project (or ``meta``)."""
    result = await db.execute(
        text("SELECT * FROM get_badges(:project, :userid)"),
        {"project": project_id, "userid": user_id},
    )
    return [dict(row) for row in result.mappings()]


async def get_user_badges(db: AsyncSession, registry: ProjectRegistry, user_id: int) -> list[dict]:
    """Badges of a user across every registry project plus ``meta``, tagged by project."""
    project_ids = [p.id for p in registry] + [META_PROJECT_ID]
    params: dict[str, object] = {"userid": user_id}
    selects = []
    for i, project_id in enumerate(project_ids):
        params[f"p{i}"] = project_id
        selects.append(f"SELECT CAST(:p{i} AS TEXT) AS project, * FROM get_badges(:p{i}, :userid)")

    result = await db.execute(text(" UNION ALL ".join(selects)), params)
    return [dict(row) for row in result.mappings()]


def diff_badges(before: list[dict], after: list[dict]) -> list[dict]:
    """Badges of ``after`` that are new or whose acquired state changed since ``before``."""
    previous = {b["id"]: b.get("acquired") for b in before}
    return [
        b for b in after
        if b["id"] not in previous or previous[b["id"]] != b.get("acquired")
    ]
