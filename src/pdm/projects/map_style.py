"""Mapbox GL style for the map editor page."""

from __future__ import annotations

from urllib.parse import urlencode

from pdm.projects.registry import Project

OSM_RASTER_TILES = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"
OSMOSE_TILES_PATH = "/api/0.3/issues/{z}/{x}/{y}.mvt"
DEFAULT_LAYER_COLOR = "#c62828"


def get_map_style(project: Project, osmose_url: str) -> dict:
    """Basemap plus one Osmose issue layer per osmose data source."""
    sources: dict[str, dict] = {
        "osm": {
            "type": "raster",
            "tiles": [OSM_RASTER_TILES],
            "tileSize": 256,
            "attribution": "&copy; OpenStreetMap contributors",
        },
    }
    layers: list[dict] = [{"id": "osm", "type": "raster", "source": "osm"}]

    for i, ds in enumerate(d for d in project.datasources if d.source == "osmose"):
        query = urlencode({k: v for k, v in (("item", ds.item), ("class", ds.class_), ("country", ds.country)) if v})
        source_id = f"osmose_{i}"
        sources[source_id] = {
            "type": "vector",
            "tiles": [f"{osmose_url.rstrip('/')}{OSMOSE_TILES_PATH}?{query}"],
            "minzoom": 7,
            "maxzoom": 18,
        }
        layers.append({
            "id": source_id,
            "type": "circle",
            "source": source_id,
            "source-layer": "issues",
            "paint": {
                "circle-color": ds.color or DEFAULT_LAYER_COLOR,
                "circle-radius": 6,
                "circle-stroke-color": "#ffffff",
                "circle-stroke-width": 1,
            },
            "metadata": {"name": ds.name},
        })

    return {"mapstyle": {"version": 8, "name": project.title, "sources": sources, "layers": layers}}
