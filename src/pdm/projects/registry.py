"""Project registry — the static catalog of mapping campaigns.

Loaded once from a YAML file at startup and never mutated afterwards.
Project ids end up verbatim in SQL identifiers (``project_<suffix>``), so
they are validated here against a strict pattern; nothing else is allowed
to put text into identifier position.
"""

from __future__ import annotations

import re
from datetime import date
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Literal, Mapping

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pdm.config import get_settings

logger = structlog.get_logger()

PROJECT_ID_PATTERN = re.compile(r"^[a-z0-9]+(_[a-z0-9]+)*$")
META_PROJECT_ID = "meta"

GeometryType = Literal["point", "line", "linestring", "polygon", "geometry"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)


class BadgeDefinition(_Frozen):
    id: str
    name: str
    description: str = ""
    icon: str | None = None
    levels: tuple[int, ...] = ()

    @property
    def max_level(self) -> int:
        return max(len(self.levels), 1)


class DataSource(_Frozen):
    """One feed contributing a time series to the project statistics."""

    source: Literal["osmose", "notes"]
    name: str
    color: str | None = None
    # Osmose parameters
    item: str | None = None
    class_: str | None = Field(default=None, alias="class")
    country: str | None = None


class ImposmMapping(_Frozen):
    types: tuple[GeometryType, ...]
    mapping: dict[str, list[str]]


class CompareMapping(ImposmMapping):
    radius: float = Field(gt=0)


class DatabaseMapping(_Frozen):
    imposm: ImposmMapping
    compare: CompareMapping | None = None


class StatisticsConfig(_Frozen):
    count: bool = False


class Project(_Frozen):
    id: str
    title: str
    summary: str = ""
    icon: str | None = None
    links: dict[str, str] = {}
    start_date: date
    end_date: date | None = None
    datasources: tuple[DataSource, ...] = ()
    database: DatabaseMapping
    statistics: StatisticsConfig = StatisticsConfig()
    badges: tuple[BadgeDefinition, ...] = ()

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        if not PROJECT_ID_PATTERN.match(value) or value == META_PROJECT_ID:
            msg = f"invalid project id: {value!r}"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _check_dates(self) -> Project:
        if self.end_date is not None and self.end_date < self.start_date:
            msg = f"project {self.id} ends before it starts"
            raise ValueError(msg)
        return self

    @property
    def table_suffix(self) -> str:
        """Short name used in database tables, e.g. ``2019_06_fuel`` -> ``fuel``."""
        return self.id.split("_")[-1]

    @property
    def table_name(self) -> str:
        return f"project_{self.table_suffix}"

    def has_source(self, kind: str) -> bool:
        return any(ds.source == kind for ds in self.datasources)


class RegistryFile(_Frozen):
    projects: tuple[Project, ...]
    meta: tuple[BadgeDefinition, ...] = ()

    @model_validator(mode="after")
    def _check_unique(self) -> RegistryFile:
        ids = [p.id for p in self.projects]
        if len(ids) != len(set(ids)):
            msg = "duplicate project ids in registry"
            raise ValueError(msg)
        suffixes = [p.table_suffix for p in self.projects]
        if len(suffixes) != len(set(suffixes)):
            msg = "duplicate table suffixes in registry"
            raise ValueError(msg)
        return self


class ProjectRegistry:
    """Read-only view over the registry file, ordered by start date."""

    def __init__(self, projects: tuple[Project, ...], meta_badges: tuple[BadgeDefinition, ...] = ()) -> None:
        ordered = sorted(projects, key=lambda p: (p.start_date, p.id))
        self._projects: Mapping[str, Project] = MappingProxyType({p.id: p for p in ordered})
        self.meta_badges = meta_badges

    @classmethod
    def from_data(cls, data: dict) -> ProjectRegistry:
        parsed = RegistryFile.model_validate(data)
        return cls(parsed.projects, parsed.meta)

    @classmethod
    def from_file(cls, path: str | Path) -> ProjectRegistry:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        registry = cls.from_data(data)
        logger.info("registry_loaded", path=str(path), projects=len(registry))
        return registry

    @property
    def projects(self) -> Mapping[str, Project]:
        return self._projects

    def get(self, project_id: str) -> Project | None:
        return self._projects.get(project_id)

    def __contains__(self, project_id: object) -> bool:
        return project_id in self._projects

    def __iter__(self):
        return iter(self._projects.values())

    def __len__(self) -> int:
        return len(self._projects)

    def badge_definitions(self, project_id: str) -> tuple[BadgeDefinition, ...]:
        """Badge definitions for a project id, ``meta`` included."""
        if project_id == META_PROJECT_ID:
            return self.meta_badges
        project = self.get(project_id)
        return project.badges if project else ()


@lru_cache
def get_registry() -> ProjectRegistry:
    """Load the registry configured in settings (cached for the process lifetime)."""
    return ProjectRegistry.from_file(get_settings().projects_file)
