"""Error page, documentation files and whitelisted front-end libraries."""

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse, HTMLResponse, PlainTextResponse, Response

from pdm.config import Settings, get_settings
from pdm.pages.templates import get_templates

router = APIRouter(tags=["Pages"])

DOCUMENTS = ("README.md", "DEVELOP.md", "LICENSE.txt")

# module -> {public file name -> path inside the package}
LIBRARIES: dict[str, dict[str, str]] = {
    "bootstrap": {
        "bootstrap.css": "dist/css/bootstrap.min.css",
    },
    "bootstrap.native": {
        "bootstrap.js": "dist/bootstrap-native.min.js",
    },
    "mapbox-gl": {
        "mapbox-gl.js": "dist/mapbox-gl.js",
        "mapbox-gl.css": "dist/mapbox-gl.css",
    },
    "chart.js": {
        "chart.js": "dist/Chart.bundle.min.js",
        "chart.css": "dist/Chart.min.css",
    },
    "osm-auth": {
        "osmauth.js": "osmauth.min.js",
    },
    "osm-request": {
        "osmrequest.js": "dist/OsmRequest.js",
    },
}


def parse_status(code: str) -> int:
    """HTTP status from the path, 400 when it is not an error code."""
    if code.isdigit() and 400 <= int(code) <= 599:
        return int(code)
    return 400


@router.get("/error/{code}", response_class=HTMLResponse)
async def error_page(request: Request, code: str):
    status = parse_status(code)
    return get_templates().TemplateResponse(
        request, "pages/error.html", {"httpcode": status}, status_code=status,
    )


def _document_route(name: str):
    async def document(settings: Settings = Depends(get_settings)) -> Response:  # noqa: B008
        path = Path(settings.docs_dir) / name
        if not path.is_file():
            return PlainTextResponse("File not found", status_code=404)
        return FileResponse(path, media_type="text/plain; charset=utf-8")

    document.__name__ = f"document_{name.split('.')[0].lower()}"
    return document


for _name in DOCUMENTS:
    router.add_api_route(f"/{_name}", _document_route(_name), methods=["GET"])


def resolve_library(modname: str, file: str) -> str | None:
    """Relative path of an allowed library file, ``None`` outside the allow-list."""
    files = LIBRARIES.get(modname)
    if not files or file not in files:
        return None
    return f"{modname}/{files[file]}"


@router.get("/lib/{modname}")
async def library_missing_file(modname: str) -> Response:
    return PlainTextResponse("Missing parameters", status_code=400)


@router.get("/lib/{modname}/{file}")
async def library(modname: str, file: str, settings: Settings = Depends(get_settings)) -> Response:  # noqa: B008
    relative = resolve_library(modname, file)
    if relative is None:
        return PlainTextResponse("File not found", status_code=404)

    path = Path(settings.node_modules_dir) / relative
    if not path.is_file():
        return PlainTextResponse("Error when retrieving file", status_code=500)
    return FileResponse(path)
