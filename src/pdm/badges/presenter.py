"""Turn raw badge rows into the structure shown on a user profile."""

from __future__ import annotations

from pdm.projects.registry import META_PROJECT_ID, ProjectRegistry


def _level(acquired: object) -> int:
    if acquired is True:
        return 1
    if not acquired:
        return 0
    return int(acquired)  # type: ignore[call-overload]


def present_badges(registry: ProjectRegistry, rows: list[dict]) -> list[dict]:
    """Group badge rows by project and merge in the registry definitions.

    Groups follow registry order with ``meta`` first. Rows of projects the
    registry does not know are dropped; badges without a definition keep
    their id as name.
    """
    by_project: dict[str, list[dict]] = {}
    for row in rows:
        by_project.setdefault(row["project"], []).append(row)

    groups = []
    titles = [(META_PROJECT_ID, None)] + [(p.id, p.title) for p in registry]
    for project_id, title in titles:
        project_rows = by_project.get(project_id)
        if not project_rows:
            continue
        definitions = {d.id: d for d in registry.badge_definitions(project_id)}

        badges = []
        for row in project_rows:
            definition = definitions.get(str(row["id"]))
            level = _level(row.get("acquired"))
            badges.append({
                "id": row["id"],
                "name": definition.name if definition else str(row["id"]),
                "description": definition.description if definition else "",
                "icon": definition.icon if definition else None,
                "acquired": level > 0,
                "level": level,
                "max_level": definition.max_level if definition else 1,
            })

        groups.append({
            "project": project_id,
            "title": title,
            "badges": badges,
            "acquired": sum(1 for b in badges if b["acquired"]),
        })
    return groups
