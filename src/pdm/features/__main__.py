"""pdm-features — write the Imposm mapping and the features update script.

Usage:
    python -m pdm.features
    python -m pdm.features --mapping /data/imposm.yml --script ./features_update_tmp.sh
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

import structlog
import yaml

from pdm.config import get_settings
from pdm.features.generator import build_imposm_mapping, build_sql
from pdm.features.script import ImportPaths, render_update_script
from pdm.middleware.logging import setup_logging
from pdm.projects.registry import ProjectRegistry

logger = structlog.get_logger()

SCRIPT_MODE = 0o766


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="pdm-features",
        description="Generate the Imposm mapping and the shell script importing project features",
    )
    parser.add_argument("--projects", default=settings.projects_file, help="Project registry YAML file")
    parser.add_argument("--mapping", default=None, help="Imposm mapping output (default: <work_dir>/imposm.yml)")
    parser.add_argument("--script", default=settings.update_script_path, help="Update script output")
    return parser.parse_args(argv)


def generate(registry: ProjectRegistry, mapping_path: Path, script_path: Path) -> None:
    """Write both artifacts for ``registry``."""
    settings = get_settings()
    if str(mapping_path) != ImportPaths.from_settings(settings).imposm_mapping:
        settings = settings.model_copy(update={"imposm_mapping_path": str(mapping_path)})

    mapping_path.parent.mkdir(parents=True, exist_ok=True)
    with open(mapping_path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(build_imposm_mapping(registry), fh, sort_keys=False)

    script_path.parent.mkdir(parents=True, exist_ok=True)
    script_path.write_text(render_update_script(settings, build_sql(registry)), encoding="utf-8")
    os.chmod(script_path, SCRIPT_MODE)

    logger.info("features_generated", mapping=str(mapping_path), script=str(script_path), projects=len(registry))


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    setup_logging(settings.model_copy(update={"log_format": "console"}))
    args = parse_args(argv)

    registry = ProjectRegistry.from_file(args.projects)
    mapping = Path(args.mapping or ImportPaths.from_settings(settings).imposm_mapping)
    generate(registry, mapping, Path(args.script))
    return 0


if __name__ == "__main__":
    sys.exit(main())
