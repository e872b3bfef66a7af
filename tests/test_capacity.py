"""Tests for capacity aggregation and coverage ratios."""

import pytest

from citysim.core.buildings import BuildingKind, STARTER_KINDS, create_building
from citysim.core.capacity import aggregate_capacity, coverage_ratio


def _buildings(*kinds):
    return [create_building(i + 1, k) for i, k in enumerate(kinds)]


class TestCoverageRatio:
    def test_empty_city_is_fully_covered(self):
        assert coverage_ratio(0, 0) == 1.0
        assert coverage_ratio(50, 0) == 1.0

    def test_ratio_caps_at_one(self):
        assert coverage_ratio(100, 10) == 1.0

    def test_partial_ratio(self):
        assert coverage_ratio(25, 100) == pytest.approx(0.25)


class TestAggregateCapacity:
    def test_starter_city(self):
        report = aggregate_capacity(_buildings(*STARTER_KINDS), 10)
        assert report.housing == 25
        assert report.education == 50
        assert report.healthcare == 60
        assert report.water == 75
        assert report.power == 100
        assert report.total_jobs == 0
        assert report.water_plants == 1
        assert report.power_plants == 1
        assert report.building_count == 5

    def test_jobs_split(self):
        report = aggregate_capacity(
            _buildings(BuildingKind.COMMERCIAL, BuildingKind.COMMERCIAL, BuildingKind.INDUSTRIAL),
            10,
        )
        assert report.commercial_jobs == 30
        assert report.industrial_jobs == 10
        assert report.total_jobs == 40
        assert report.job_quality_ratio == pytest.approx(2 / 3)

    def test_job_quality_without_job_buildings(self):
        report = aggregate_capacity(_buildings(BuildingKind.PARK), 10)
        assert report.job_quality_ratio == 0.0

    def test_ratios_with_shortage(self):
        report = aggregate_capacity(_buildings(*STARTER_KINDS), 100)
        assert report.education_ratio == pytest.approx(0.5)
        assert report.healthcare_ratio == pytest.approx(0.6)
        assert report.water_ratio == pytest.approx(0.75)
        assert report.power_ratio == pytest.approx(1.0)
        assert report.worst_utility_ratio == pytest.approx(0.75)
        assert report.service_ratio == pytest.approx((0.5 + 0.6 + 0.75 + 1.0) / 4)
        assert not report.all_services_covered
        assert report.job_ratio == 0.0

    def test_zero_families_defaults_to_full_coverage(self):
        report = aggregate_capacity([], 0)
        assert report.ratios() == {
            "jobs": 1.0, "education": 1.0, "healthcare": 1.0, "water": 1.0, "power": 1.0,
        }
        assert report.all_services_covered

    def test_housing_figures(self):
        report = aggregate_capacity(_buildings(BuildingKind.RESIDENTIAL), 20)
        assert report.available_housing == 5
        assert report.housing_occupancy == pytest.approx(0.8)

    def test_no_housing_counts_as_full(self):
        report = aggregate_capacity([], 0)
        assert report.available_housing == 0
        assert report.housing_occupancy == 1.0
