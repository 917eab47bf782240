"""Record a user contribution and report the badges it changed.

One call runs four stages inside a single transaction:
snapshot badges, insert the contribution, snapshot badges again, diff.
The username upsert joins the same transaction.
"""

from __future__ import annotations

import re

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pdm.badges.service import diff_badges, get_badges
from pdm.contributions.schemas import ContributionType
from pdm.projects.filter import FilteredProjects
from pdm.projects.registry import ProjectRegistry

logger = structlog.get_logger()

USER_ID_PATTERN = re.compile(r"[0-9]+")


class InvalidContribution(ValueError):
    """The contribution request is rejected before touching the database."""


def validate_contribution(
    registry: ProjectRegistry,
    filtered: FilteredProjects,
    project_id: str,
    user_id: str,
    username: str | None,
    kind: str | None,
) -> tuple[int, str, ContributionType]:
    """Check a raw contribution request, returning typed values."""
    if project_id not in registry or not filtered.is_current(project_id):
        msg = f"project {project_id} is not accepting contributions"
        raise InvalidContribution(msg)
    if not USER_ID_PATTERN.fullmatch(user_id or "") or int(user_id) == 0:
        msg = "user id must be a positive integer"
        raise InvalidContribution(msg)
    if not isinstance(username, str) or not username.strip():
        msg = "username is required"
        raise InvalidContribution(msg)
    try:
        contribution_type = ContributionType(kind)
    except ValueError:
        msg = f"unknown contribution type: {kind!r}"
        raise InvalidContribution(msg) from None
    return int(user_id), username, contribution_type


async def upsert_username(db: AsyncSession, user_id: int, username: str) -> None:
    """Store the display name of a user, last write wins."""
    await db.execute(
        text("""
            INSERT INTO user_names(userid, username)
            VALUES (:userid, :username)
            ON CONFLICT (userid) DO UPDATE SET username = EXCLUDED.username
        """),
        {"userid": user_id, "username": username},
    )


async def insert_contribution(db: AsyncSession, project_id: str, user_id: int, kind: ContributionType) -> None:
    """Append a contribution row; points are computed by get_points() in the database."""
    await db.execute(
        text("""
            INSERT INTO user_contributions(project, userid, ts, contribution, verified, points)
            VALUES (:project, :userid, current_timestamp, :kind, false, get_points(:project, :kind))
        """),
        {"project": project_id, "userid": user_id, "kind": kind.value},
    )


async def record_contribution(
    db: AsyncSession,
    project_id: str,
    user_id: int,
    username: str,
    kind: ContributionType,
) -> list[dict]:
    """Persist one contribution and return the badges whose state changed."""
    try:
        await upsert_username(db, user_id, username)
        before = await get_badges(db, project_id, user_id)
        await insert_contribution(db, project_id, user_id, kind)
        after = await get_badges(db, project_id, user_id)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.error("contribution_failed", project=project_id, user_id=user_id, type=kind.value, exc_info=True)
        raise

    changed = diff_badges(before, after)
    logger.info("contribution_recorded", project=project_id, user_id=user_id, type=kind.value, badges=len(changed))
    return changed
