"""Jinja2 environment shared by the HTML routes."""

from functools import lru_cache
from pathlib import Path

from fastapi.templating import Jinja2Templates

from pdm.config import get_settings

_PACKAGE_TEMPLATES = Path(__file__).resolve().parent.parent / "templates"


@lru_cache
def get_templates() -> Jinja2Templates:
    """Templates from the configured directory, falling back to the packaged ones."""
    configured = Path(get_settings().templates_dir)
    directory = configured if configured.is_dir() else _PACKAGE_TEMPLATES
    templates = Jinja2Templates(directory=str(directory))
    templates.env.globals["CONFIG"] = get_settings().template_config()
    return templates
