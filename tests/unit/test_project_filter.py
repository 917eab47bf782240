"""Past / current / next classification of projects."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from conftest import project_data
from pdm.projects.filter import filter_projects, is_running
from pdm.projects.registry import ProjectRegistry


def _registry(*projects: dict) -> ProjectRegistry:
    return ProjectRegistry.from_data({"projects": list(projects)})


@pytest.fixture
def yearly() -> ProjectRegistry:
    return _registry(
        project_data("2020_01_a", date(2020, 1, 1), date(2020, 1, 31)),
        project_data("2020_02_b", date(2020, 2, 1), date(2020, 2, 29)),
        project_data("2020_03_c", date(2020, 3, 1), date(2020, 3, 31)),
        project_data("2020_05_d", date(2020, 5, 1), date(2020, 5, 31)),
        project_data("2020_06_e", date(2020, 6, 1), date(2020, 6, 30)),
    )


class TestFilterProjects:
    def test_current_past_next(self, yearly):
        result = filter_projects(yearly, date(2020, 3, 15))
        assert result.current.id == "2020_03_c"
        assert result.next.id == "2020_05_d"
        assert [p.id for p in result.past] == ["2020_01_a", "2020_02_b"]

    def test_bounds_are_inclusive(self, yearly):
        assert filter_projects(yearly, date(2020, 3, 1)).current.id == "2020_03_c"
        assert filter_projects(yearly, date(2020, 3, 31)).current.id == "2020_03_c"

    def test_gap_between_projects(self, yearly):
        result = filter_projects(yearly, date(2020, 4, 10))
        assert result.current is None
        assert result.next.id == "2020_05_d"
        assert result.landing().id == "2020_05_d"

    def test_after_everything(self, yearly):
        result = filter_projects(yearly, date(2021, 1, 1))
        assert result.current is None
        assert result.next is None
        assert result.landing().id == "2020_06_e"

    def test_before_everything(self, yearly):
        result = filter_projects(yearly, date(2019, 1, 1))
        assert result.past == []
        assert result.current is None
        assert result.next.id == "2020_01_a"

    def test_accepts_datetime(self, yearly):
        now = datetime(2020, 2, 10, 23, 59, tzinfo=timezone.utc)
        assert filter_projects(yearly, now).current.id == "2020_02_b"

    def test_open_ended_project_stays_current(self):
        registry = _registry(project_data("2020_01_a", date(2020, 1, 1), None))
        result = filter_projects(registry, date(2030, 1, 1))
        assert result.current.id == "2020_01_a"
        assert result.past == []

    def test_overlap_picks_latest_start(self):
        registry = _registry(
            project_data("2020_01_long", date(2020, 1, 1), date(2020, 12, 31)),
            project_data("2020_06_short", date(2020, 6, 1), date(2020, 6, 30)),
        )
        result = filter_projects(registry, date(2020, 6, 15))
        assert result.current.id == "2020_06_short"
        assert result.is_current("2020_06_short")
        assert not result.is_current("2020_01_long")

    def test_past_sorted_by_end_date(self):
        registry = _registry(
            project_data("2020_01_long", date(2020, 1, 1), date(2020, 5, 31)),
            project_data("2020_02_short", date(2020, 2, 1), date(2020, 2, 28)),
        )
        result = filter_projects(registry, date(2021, 1, 1))
        assert [p.id for p in result.past] == ["2020_02_short", "2020_01_long"]

    def test_empty_registry(self):
        result = filter_projects(_registry(), date(2020, 1, 1))
        assert result.landing() is None

    @pytest.mark.parametrize("day", [date(2019, 12, 31), date(2020, 1, 15), date(2020, 4, 1), date(2020, 6, 30), date(2020, 7, 1)])
    def test_partition_is_disjoint_and_ordered(self, yearly, day):
        result = filter_projects(yearly, day)
        past_ids = {p.id for p in result.past}
        assert result.current is None or result.current.id not in past_ids
        assert result.next is None or result.next.id not in past_ids
        if result.current and result.next:
            assert result.current.id != result.next.id

        for p in result.past:
            assert p.end_date < day
        if result.current:
            assert is_running(result.current, day)
        if result.next:
            assert result.next.start_date > day
            assert all(p.start_date <= result.next.start_date for p in yearly if p.start_date > day)
