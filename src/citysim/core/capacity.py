"""
Capacity aggregation: one pass over the buildings, coverage ratios per service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from citysim.core.buildings import Building, BuildingKind


def coverage_ratio(capacity: int, families: int) -> float:
    """``min(1, capacity / families)``; 1.0 for an empty city."""
    if families <= 0:
        return 1.0
    return min(1.0, capacity / families)


@dataclass(frozen=True)
class CapacityReport:
    """Raw capacities and building counts for the current day."""
    families: int
    housing: int = 0
    commercial_jobs: int = 0
    industrial_jobs: int = 0
    education: int = 0
    healthcare: int = 0
    water: int = 0
    power: int = 0
    commercial_count: int = 0
    industrial_count: int = 0
    water_plants: int = 0
    power_plants: int = 0
    building_count: int = 0

    @property
    def total_jobs(self) -> int:
        return self.commercial_jobs + self.industrial_jobs

    @property
    def job_ratio(self) -> float:
        return coverage_ratio(self.total_jobs, self.families)

    @property
    def education_ratio(self) -> float:
        return coverage_ratio(self.education, self.families)

    @property
    def healthcare_ratio(self) -> float:
        return coverage_ratio(self.healthcare, self.families)

    @property
    def water_ratio(self) -> float:
        return coverage_ratio(self.water, self.families)

    @property
    def power_ratio(self) -> float:
        return coverage_ratio(self.power, self.families)

    @property
    def worst_utility_ratio(self) -> float:
        return min(self.water_ratio, self.power_ratio)

    @property
    def service_ratio(self) -> float:
        """Mean coverage of education, healthcare, water and power."""
        return (
            self.education_ratio + self.healthcare_ratio
            + self.water_ratio + self.power_ratio
        ) / 4.0

    @property
    def all_services_covered(self) -> bool:
        return (
            self.education >= self.families
            and self.healthcare >= self.families
            and self.water >= self.families
            and self.power >= self.families
        )

    @property
    def job_quality_ratio(self) -> float:
        """Share of job buildings that are commercial; 0 with no job buildings."""
        total = self.commercial_count + self.industrial_count
        return self.commercial_count / total if total > 0 else 0.0

    @property
    def available_housing(self) -> int:
        return max(0, self.housing - self.families)

    @property
    def housing_occupancy(self) -> float:
        return self.families / self.housing if self.housing > 0 else 1.0

    def ratios(self) -> dict[str, float]:
        return {
            "jobs": self.job_ratio,
            "education": self.education_ratio,
            "healthcare": self.healthcare_ratio,
            "water": self.water_ratio,
            "power": self.power_ratio,
        }


def aggregate_capacity(buildings: Iterable[Building], families: int) -> CapacityReport:
    """Sum every service capacity over ``buildings``."""
    totals = {
        "housing": 0, "commercial_jobs": 0, "industrial_jobs": 0,
        "education": 0, "healthcare": 0, "water": 0, "power": 0,
        "commercial_count": 0, "industrial_count": 0,
        "water_plants": 0, "power_plants": 0, "building_count": 0,
    }
    for b in buildings:
        totals["building_count"] += 1
        kind = b.kind
        if kind == BuildingKind.RESIDENTIAL:
            totals["housing"] += b.capacity
        elif kind == BuildingKind.COMMERCIAL:
            totals["commercial_jobs"] += b.capacity
            totals["commercial_count"] += 1
        elif kind == BuildingKind.INDUSTRIAL:
            totals["industrial_jobs"] += b.capacity
            totals["industrial_count"] += 1
        elif kind == BuildingKind.SCHOOL:
            totals["education"] += b.education_capacity
        elif kind == BuildingKind.HOSPITAL:
            totals["healthcare"] += b.healthcare_capacity
        elif kind == BuildingKind.WATER_PLANT:
            totals["water"] += b.utility_capacity
            totals["water_plants"] += 1
        elif kind == BuildingKind.POWER_PLANT:
            totals["power"] += b.utility_capacity
            totals["power_plants"] += 1
    return CapacityReport(families=families, **totals)
