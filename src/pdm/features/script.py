"""Bash script chaining osmupdate, osmium, Imposm and psql."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from sqlalchemy.engine import make_url

from pdm.config import Settings
from pdm.features.generator import SqlBatches

SEPARATOR = 'echo "-------------------------------------------------------------------"\necho ""'


@dataclass(frozen=True)
class ImportPaths:
    """Files used by the import pipeline, all inside the work directory."""

    work_dir: str
    pbf_latest: str
    pbf_unstable: str
    pbf_unstable_filtered: str
    poly: str
    imposm_mapping: str
    imposm_cache_dir: str
    imposm_diff_dir: str
    osc_full: str
    osc_local: str

    @classmethod
    def from_settings(cls, settings: Settings) -> ImportPaths:
        work = PurePosixPath(settings.work_dir)
        history_name = settings.osh_pbf_url.rsplit("/", 1)[-1]
        latest = str(work / history_name.replace(".osh.pbf", ".osm.pbf"))
        return cls(
            work_dir=str(work),
            pbf_latest=latest,
            pbf_unstable=latest.replace(".osm.pbf", ".new.osm.pbf"),
            pbf_unstable_filtered=latest.replace(".osm.pbf", ".new-local.osm.pbf"),
            poly=latest.replace("-internal.osm.pbf", ".poly"),
            imposm_mapping=settings.imposm_mapping_path or str(work / "imposm.yml"),
            imposm_cache_dir=str(work / "imposm_cache"),
            imposm_diff_dir=str(work / "imposm_diffs"),
            osc_full=str(work / "changes_features.osc.gz"),
            osc_local=str(work / "changes_features.local.osc.gz"),
        )


def psql_url(database_url: str) -> str:
    """Plain libpq URL for psql and Imposm, without the async driver suffix."""
    url = make_url(database_url).set(drivername="postgres")
    return url.render_as_string(hide_password=False)


def psql_commands(db_url: str, statements: list[str]) -> str:
    return "\n\t".join(f'psql "{db_url}" -c "{sql}"' for sql in statements)


def render_update_script(settings: Settings, batches: SqlBatches) -> str:
    """Script with two modes: ``init`` (full import) and ``update`` (default, diff import)."""
    p = ImportPaths.from_settings(settings)
    db = psql_url(settings.database_url)

    return f"""#!/bin/bash

# Update OSM features of every project
# Generated by pdm-features, do not edit

set -e

mode="$1"
if [ "$mode" == "" ]; then
	mode="update"
fi

echo "==== Get latest changes"
osmupdate --keep-tempfiles --trust-tempfiles \\
	-t="{p.work_dir}/osmupdate/" \\
	-v "{p.pbf_latest}" \\
	"{p.osc_full}"
osmium apply-changes "{p.pbf_latest}" \\
	"{p.osc_full}" \\
	-O -o "{p.pbf_unstable}"
osmium extract -p "{p.poly}" -s simple "{p.pbf_unstable}" -O -o "{p.pbf_unstable_filtered}"
rm -f "{p.pbf_unstable}" "{p.osc_full}"
{SEPARATOR}

if [ "$mode" == "init" ]; then
	echo "==== Initial import with Imposm"
	rm -f "{p.pbf_latest}" "{p.osc_local}"
	mv "{p.pbf_unstable_filtered}" "{p.pbf_latest}"
	mkdir -p "{p.imposm_cache_dir}"
	imposm import -mapping "{p.imposm_mapping}" \\
		-read "{p.pbf_latest}" \\
		-overwritecache -cachedir "{p.imposm_cache_dir}" \\
		-diff -diffdir "{p.imposm_diff_dir}"

	{psql_commands(db, batches.pre)}

	imposm import -write \\
		-connection "{db}?prefix=project_" \\
		-mapping "{p.imposm_mapping}" \\
		-cachedir "{p.imposm_cache_dir}" \\
		-dbschema-import public -diff

	{psql_commands(db, batches.post)}
else
	echo "==== Apply latest changes to database"
	osmium derive-changes "{p.pbf_latest}" "{p.pbf_unstable_filtered}" -o "{p.osc_local}"
	imposm diff -mapping "{p.imposm_mapping}" \\
		-cachedir "{p.imposm_cache_dir}" \\
		-dbschema-production public \\
		-connection "{db}?prefix=project_" \\
		"{p.osc_local}"

	{psql_commands(db, batches.post_update)}
	rm -f "{p.pbf_latest}" "{p.osc_local}"
	mv "{p.pbf_unstable_filtered}" "{p.pbf_latest}"
fi
{SEPARATOR}

echo "Done"
"""
