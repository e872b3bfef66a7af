"""
Building catalog and building records.

Every building is a single ``Building`` record tagged with a
``BuildingKind``; all per-kind parameters come from ``BUILDING_CATALOG``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UnknownBuildingKind(ValueError):
    """Raised when a building kind is not in the catalog."""


class BuildingKind(str, Enum):
    """Kinds of buildings a city can construct."""
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"
    INDUSTRIAL = "Industrial"
    PARK = "Park"
    SCHOOL = "School"
    HOSPITAL = "Hospital"
    WATER_PLANT = "Water Plant"
    POWER_PLANT = "Power Plant"


@dataclass(frozen=True)
class BuildingSpec:
    """Static parameters of one building kind."""
    kind: BuildingKind
    capacity: int  # housing or job slots
    upkeep: int
    satisfaction_impact: int
    description: str
    education_capacity: int = 0
    healthcare_capacity: int = 0
    utility_capacity: int = 0


BUILDING_CATALOG: dict[BuildingKind, BuildingSpec] = {
    BuildingKind.RESIDENTIAL: BuildingSpec(
        BuildingKind.RESIDENTIAL, 25, 5, 5,
        "Houses families, increases population",
    ),
    BuildingKind.COMMERCIAL: BuildingSpec(
        BuildingKind.COMMERCIAL, 15, 10, 2,
        "Provides jobs and generates income",
    ),
    BuildingKind.INDUSTRIAL: BuildingSpec(
        BuildingKind.INDUSTRIAL, 10, 20, -3,
        "Generates higher income but reduces satisfaction",
    ),
    BuildingKind.PARK: BuildingSpec(
        BuildingKind.PARK, 0, 2, 8,
        "Increases satisfaction but generates no income",
    ),
    BuildingKind.SCHOOL: BuildingSpec(
        BuildingKind.SCHOOL, 0, 15, 6,
        "Improves education and satisfaction",
        education_capacity=50,
    ),
    BuildingKind.HOSPITAL: BuildingSpec(
        BuildingKind.HOSPITAL, 0, 25, 7,
        "Improves health and satisfaction",
        healthcare_capacity=60,
    ),
    BuildingKind.WATER_PLANT: BuildingSpec(
        BuildingKind.WATER_PLANT, 0, 30, 3,
        "Provides water to families",
        utility_capacity=75,
    ),
    BuildingKind.POWER_PLANT: BuildingSpec(
        BuildingKind.POWER_PLANT, 0, 40, 2,
        "Provides electricity to families",
        utility_capacity=100,
    ),
}

# Service buildings whose upkeep scales with how heavily they are used
SERVICE_KINDS = frozenset({
    BuildingKind.SCHOOL,
    BuildingKind.HOSPITAL,
    BuildingKind.WATER_PLANT,
    BuildingKind.POWER_PLANT,
})

# Free infrastructure every new city starts with, in construction order
STARTER_KINDS: tuple[BuildingKind, ...] = (
    BuildingKind.RESIDENTIAL,
    BuildingKind.SCHOOL,
    BuildingKind.HOSPITAL,
    BuildingKind.WATER_PLANT,
    BuildingKind.POWER_PLANT,
)


def resolve_kind(kind: BuildingKind | str) -> BuildingKind:
    """
    Normalize a building kind.

    Accepts a ``BuildingKind``, its display value (``"Water Plant"``) or its
    member name (``"WATER_PLANT"``), case-insensitively.
    """
    if isinstance(kind, BuildingKind):
        return kind
    if isinstance(kind, str):
        key = kind.strip().lower()
        for member in BuildingKind:
            if key in (member.value.lower(), member.name.lower()):
                return member
    raise UnknownBuildingKind(f"Unknown building kind: {kind!r}")


def get_spec(kind: BuildingKind | str) -> BuildingSpec:
    return BUILDING_CATALOG[resolve_kind(kind)]


@dataclass
class Building:
    """A constructed building. Only ``occupancy`` changes after construction."""
    id: int
    kind: BuildingKind
    occupancy: int = 0

    @property
    def spec(self) -> BuildingSpec:
        return BUILDING_CATALOG[self.kind]

    @property
    def capacity(self) -> int:
        return self.spec.capacity

    @property
    def upkeep(self) -> int:
        return self.spec.upkeep

    @property
    def satisfaction_impact(self) -> int:
        return self.spec.satisfaction_impact

    @property
    def education_capacity(self) -> int:
        return self.spec.education_capacity

    @property
    def healthcare_capacity(self) -> int:
        return self.spec.healthcare_capacity

    @property
    def utility_capacity(self) -> int:
        return self.spec.utility_capacity

    def set_occupancy(self, occupancy: int) -> None:
        """Set occupancy, clamped to [0, capacity]."""
        self.occupancy = max(0, min(self.capacity, occupancy))


def create_building(building_id: int, kind: BuildingKind | str) -> Building:
    """Build a fresh ``Building`` of the given kind."""
    return Building(id=building_id, kind=resolve_kind(kind))
