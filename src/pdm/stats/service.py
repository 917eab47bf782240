"""Project statistics aggregation.

Every piece of the statistics payload comes from an independent fetch
(Osmose API call or database query). The fetches run concurrently, each on
its own pooled session, and the payload is assembled once all of them have
settled. A failing or slow fetch is logged and contributes empty data
instead of failing the whole response.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pdm.projects.registry import DataSource, Project
from pdm.stats.osmose import OsmoseClient

logger = structlog.get_logger()

DEFAULT_SERIES_COLOR = "#c62828"
OPEN_NOTES_COLOR = "#c62828"
CLOSED_NOTES_COLOR = "#388E3C"
FEATURE_COUNT_COLOR = "#388E3C"
TAG_KEYS_COLOR = "#1E88E5"
TAG_KEY_MIN_RATIO = 0.1

SessionFactory = async_sessionmaker[AsyncSession]


def line_series(label: str, points: list[tuple[Any, Any]], color: str) -> dict:
    """Chart.js line dataset."""
    return {
        "label": label,
        "data": [{"t": t, "y": y} for t, y in points],
        "fill": False,
        "borderColor": color,
        "lineTension": 0,
    }


def merge_results(results: list[dict]) -> dict:
    """Shallow union of partial payloads; ``chart`` lists are concatenated in order."""
    merged: dict = {}
    for result in results:
        for key, value in result.items():
            if key == "chart":
                merged["chart"] = merged.get("chart", []) + list(value)
            elif key not in merged:
                merged[key] = value
    return merged


class StatsAggregator:
    """Build the statistics payload of one project."""

    def __init__(self, session_factory: SessionFactory, osmose: OsmoseClient, timeout: float = 10.0) -> None:
        self.session_factory = session_factory
        self.osmose = osmose
        self.timeout = timeout

    async def _guarded(self, name: str, project: Project, fetch: Callable[[], Awaitable[Any]], fallback: Any) -> Any:
        try:
            return await asyncio.wait_for(fetch(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("stats_fetch_timeout", fetch=name, project=project.id, timeout=self.timeout)
        except Exception:
            logger.warning("stats_fetch_failed", fetch=name, project=project.id, exc_info=True)
        return fallback

    async def _rows(self, name: str, project: Project, sql: str, params: dict | None = None) -> list[dict]:
        async def fetch() -> list[dict]:
            async with self.session_factory() as session:
                result = await session.execute(text(sql), params or {})
                return [dict(row) for row in result.mappings()]

        return await self._guarded(name, project, fetch, [])

    # --- Osmose ---

    async def _osmose_series(self, project: Project, source: DataSource) -> dict:
        points = await self._guarded(
            f"osmose:{source.name}",
            project,
            lambda: self.osmose.issue_counts(source, project.start_date, project.end_date),
            [],
        )
        return line_series(source.name, points, source.color or DEFAULT_SERIES_COLOR)

    async def osmose_stats(self, project: Project) -> dict:
        sources = [ds for ds in project.datasources if ds.source == "osmose"]
        if not sources:
            return {}
        series = list(await asyncio.gather(*(self._osmose_series(project, ds) for ds in sources)))
        if not any(s["data"] for s in series):
            return {}
        result: dict = {"chart": series}
        if all(s["data"] for s in series):
            first = sum(s["data"][0]["y"] for s in series)
            last = sum(s["data"][-1]["y"] for s in series)
            result["tasksSolved"] = first - last
        return result

    # --- Database ---

    async def notes_stats(self, project: Project) -> dict:
        rows = await self._rows(
            "note_counts",
            project,
            "SELECT ts, open, closed FROM note_counts WHERE project = :project ORDER BY ts",
            {"project": project.id},
        )
        return {
            "chartNotes": [
                line_series("Open", [(r["ts"], r["open"]) for r in rows], OPEN_NOTES_COLOR),
                line_series("Closed", [(r["ts"], r["closed"]) for r in rows], CLOSED_NOTES_COLOR),
            ],
            "closedNotes": bool(rows) and bool(rows[-1]["closed"]),
        }

    async def feature_count_stats(self, project: Project) -> dict:
        rows = await self._rows(
            "feature_counts",
            project,
            "SELECT ts, amount FROM feature_counts WHERE project = :project ORDER BY ts",
            {"project": project.id},
        )
        return {
            "chart": [line_series("Features in OSM", [(r["ts"], r["amount"]) for r in rows], FEATURE_COUNT_COLOR)],
            "added": rows[-1]["amount"] - rows[0]["amount"] if rows else None,
        }

    async def feature_total(self, project: Project) -> dict:
        # table_name is built from a registry-validated id
        rows = await self._rows("feature_total", project, f"SELECT COUNT(*) AS amount FROM {project.table_name}")  # noqa: S608
        return {"count": rows[0]["amount"] if rows else None}

    async def leaderboard(self, project: Project, include_rows: bool) -> dict:
        rows = await self._rows(
            "leaderboard",
            project,
            "SELECT * FROM leaderboard WHERE project = :project ORDER BY pos",
            {"project": project.id},
        )
        return {
            "nbContributors": len(rows),
            "leaderboard": rows if include_rows else None,
        }

    async def tag_keys(self, project: Project) -> dict:
        rows = await self._rows(
            "tag_keys",
            project,
            f"""
                SELECT k, COUNT(*) AS amount
                FROM (SELECT json_object_keys(tags) AS k FROM {project.table_name}) a
                GROUP BY k
                ORDER BY COUNT(*) DESC
            """,  # noqa: S608
        )
        kept = [r for r in rows if r["amount"] >= rows[0]["amount"] * TAG_KEY_MIN_RATIO] if rows else []
        return {
            "chartKeys": {
                "labels": [r["k"] for r in kept],
                "datasets": [{
                    "label": "Features per key",
                    "data": [r["amount"] for r in kept],
                    "fill": False,
                    "backgroundColor": TAG_KEYS_COLOR,
                }],
            },
        }

    async def collect(self, project: Project, osm_user: str | None = None) -> dict:
        """Run every fetch configured for ``project`` and merge the results.

        The leaderboard rows are only returned when ``osm_user`` is a
        non-blank string; the contributor count is always public.
        """
        authenticated = isinstance(osm_user, str) and bool(osm_user.strip())

        fetches: list[Awaitable[dict]] = [self.osmose_stats(project)]
        if project.has_source("notes"):
            fetches.append(self.notes_stats(project))
        if project.statistics.count:
            fetches.append(self.feature_count_stats(project))
            fetches.append(self.feature_total(project))
        fetches.append(self.leaderboard(project, authenticated))
        fetches.append(self.tag_keys(project))

        results = await asyncio.gather(*fetches)
        return merge_results(list(results))
