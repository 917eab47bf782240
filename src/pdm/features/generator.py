"""Imposm mapping and SQL views generated from the project registry.

Table and view names are derived from registry ids only, which are
validated against a strict pattern when the registry is loaded.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pdm.projects.registry import CompareMapping, ImposmMapping, Project, ProjectRegistry

IMPOSM_COLUMNS = [
    {"name": "osm_id", "type": "id"},
    {"name": "name", "key": "name", "type": "string"},
    {"name": "tags", "type": "hstore_tags"},
    {"name": "geom", "type": "geometry"},
]


@dataclass
class SqlBatches:
    pre: list[str] = field(default_factory=list)          # before the initial import
    post: list[str] = field(default_factory=list)         # once, after the initial import
    post_update: list[str] = field(default_factory=list)  # after every diff import


def _table(mapping: ImposmMapping, geometry_type: str) -> dict:
    return {
        "type": geometry_type,
        "mapping": mapping.mapping,
        "columns": [dict(c) for c in IMPOSM_COLUMNS],
    }


def build_imposm_mapping(registry: ProjectRegistry) -> dict:
    """Imposm mapping document with one table per project and geometry type."""
    tables: dict[str, dict] = {}
    for project in registry:
        suffix = project.table_suffix
        for geometry_type in project.database.imposm.types:
            tables[f"{suffix}_{geometry_type}"] = _table(project.database.imposm, geometry_type)

        compare = project.database.compare
        if compare:
            for geometry_type in compare.types:
                tables[f"{suffix}_compare_{geometry_type}"] = _table(compare, geometry_type)

    return {"tables": tables, "tags": {"load_all": True}}


def osm_id_column(geometry_type: str) -> str:
    """Normalize the Imposm id into ``node/<id>``, ``way/<id>`` or ``relation/<id>``.

    Imposm stores relation ids as negative numbers in non-point tables.
    """
    if geometry_type == "point":
        return "CONCAT('node/', osm_id) AS osm_id"
    return "CASE WHEN osm_id < 0 THEN CONCAT('relation/', -osm_id) ELSE CONCAT('way/', osm_id) END AS osm_id"


def geom_column(geometry_type: str, reducer: str = "ST_PointOnSurface") -> str:
    if geometry_type == "point":
        return "geom::GEOMETRY(Point, 3857) AS geom"
    return f"{reducer}(geom)::GEOMETRY(Point, 3857) AS geom"


def unified_view(project: Project) -> str:
    """One point view over all geometry tables of a project."""
    selects = [
        f"SELECT {osm_id_column(t)}, name, hstore_to_json(tags) AS tags, "
        f"tags ?| ARRAY['note','fixme'] AS needs_check, {geom_column(t)} "
        f"FROM {project.table_name}_{t}"
        for t in project.database.imposm.types
    ]
    return f"CREATE OR REPLACE VIEW {project.table_name} AS " + " UNION ALL ".join(selects)


def compare_view(project: Project, compare: CompareMapping) -> str:
    selects = [
        f"SELECT {osm_id_column(t)}, name, hstore_to_json(tags) AS tags, {geom_column(t, 'ST_Centroid')} "
        f"FROM {project.table_name}_compare_{t}"
        for t in compare.types
    ]
    return f"CREATE OR REPLACE VIEW {project.table_name}_compare AS " + " UNION ALL ".join(selects)


def compare_tiles_view(project: Project, compare: CompareMapping) -> str:
    """Comparison features with no production feature within the configured radius."""
    base = project.table_name
    return (
        f"CREATE MATERIALIZED VIEW IF NOT EXISTS {base}_compare_tiles AS "
        f"SELECT * FROM {base}_compare WHERE osm_id NOT IN ("
        f"SELECT DISTINCT c.osm_id FROM {base}_compare c, {base} b "
        f"WHERE ST_DWithin(c.geom, b.geom, {compare.radius:g}))"
    )


def build_sql(registry: ProjectRegistry) -> SqlBatches:
    """SQL statements to (re)create project views around an import."""
    batches = SqlBatches()
    for project in registry:
        base = project.table_name
        batches.pre.append(f"DROP VIEW IF EXISTS {base} CASCADE")
        batches.post.append(unified_view(project))

        compare = project.database.compare
        if compare:
            batches.pre.append(f"DROP VIEW IF EXISTS {base}_compare CASCADE")
            batches.post.append(compare_view(project, compare))

            batches.pre.append(f"DROP MATERIALIZED VIEW IF EXISTS {base}_compare_tiles")
            batches.post.append(compare_tiles_view(project, compare))
            batches.post.append(
                f"CREATE INDEX {base}_compare_tiles_geom_idx ON {base}_compare_tiles USING GIST(geom)"
            )
            batches.post_update.append(f"REFRESH MATERIALIZED VIEW {base}_compare_tiles")
    return batches
