"""
Population dynamics: arrivals, departures and the housing cap.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from citysim.core.capacity import CapacityReport
    from citysim.core.city import City

OVERCROWDING_THRESHOLD = 0.9

BASE_ARRIVAL_CHANCE = 0.05
SATISFACTION_ARRIVAL_WEIGHT = 0.0065
JOBS_ARRIVAL_BONUS = 0.1
SERVICE_ARRIVAL_WEIGHT = 0.2

DEFAULT_TAX_RATE = 0.10
DEFAULT_VAT_RATE = 0.05
TAX_ARRIVAL_WEIGHT = 0.8
VAT_ARRIVAL_WEIGHT = 0.6
HIGH_TAX_RATE, HIGH_TAX_PENALTY = 0.20, 0.1
HIGH_VAT_RATE, HIGH_VAT_PENALTY = 0.10, 0.05

POOR_SERVICE_RATIO = 0.5
POOR_SERVICE_WEIGHT = 0.3
CRITICAL_UTILITY_RATIO = 0.7
CRITICAL_UTILITY_PENALTY = 0.2

DEFAULT_MAX_ATTEMPTS = 5
BOOSTED_MAX_ATTEMPTS = 30
HIGH_MAX_ATTEMPTS = 50
BOOST_MIN_FREE_HOUSING = 100

DEPARTURE_SATISFACTION = 50
DEPARTURE_UTILITY_RATIO, DEPARTURE_UTILITY_CHANCE = 0.5, 0.15
DEPARTURE_SERVICE_RATIO, DEPARTURE_SERVICE_CHANCE = 0.4, 0.1
OVERCROWDING_DEPARTURE_CHANCE = 0.1
MAX_DEPARTURE_CHANCE = 0.5


@dataclass
class PopulationChange:
    """Result of one day's population update."""
    arrivals: int = 0
    departures: int = 0
    evictions: int = 0
    arrival_chance: float = 0.0
    departure_chance: float = 0.0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    families_before: int = 0
    families_after: int = 0

    @property
    def net(self) -> int:
        return self.families_after - self.families_before


def overcrowding_factor(occupancy: float) -> float:
    """0 at 90% occupancy rising to 1 at 100%."""
    return max(0.0, (occupancy - OVERCROWDING_THRESHOLD) * 10)


def base_arrival_chance(
    report: CapacityReport, satisfaction: int, tax_rate: float, vat_rate: float,
) -> float:
    """Arrival chance before housing constraints."""
    chance = BASE_ARRIVAL_CHANCE + satisfaction * SATISFACTION_ARRIVAL_WEIGHT
    if report.total_jobs > report.families:
        chance += JOBS_ARRIVAL_BONUS
    chance += report.service_ratio * SERVICE_ARRIVAL_WEIGHT

    if tax_rate > DEFAULT_TAX_RATE:
        chance -= (tax_rate - DEFAULT_TAX_RATE) * TAX_ARRIVAL_WEIGHT
    if tax_rate > HIGH_TAX_RATE:
        chance -= HIGH_TAX_PENALTY
    if vat_rate > DEFAULT_VAT_RATE:
        chance -= (vat_rate - DEFAULT_VAT_RATE) * VAT_ARRIVAL_WEIGHT
    if vat_rate > HIGH_VAT_RATE:
        chance -= HIGH_VAT_PENALTY

    for ratio in (report.education_ratio, report.healthcare_ratio):
        if ratio < POOR_SERVICE_RATIO:
            chance -= (POOR_SERVICE_RATIO - ratio) * POOR_SERVICE_WEIGHT
    if report.worst_utility_ratio < CRITICAL_UTILITY_RATIO:
        chance -= CRITICAL_UTILITY_PENALTY
    return chance


def max_attempts(satisfaction: int, available_housing: int) -> int:
    """How many arrival trials to run today."""
    if satisfaction > 90:
        return HIGH_MAX_ATTEMPTS
    if satisfaction > 85 and available_housing >= BOOST_MIN_FREE_HOUSING:
        return BOOSTED_MAX_ATTEMPTS
    return DEFAULT_MAX_ATTEMPTS


class PopulationDynamics:
    """Moves families in and out of the city once per day."""

    def update(self, city: City) -> PopulationChange:
        report = city.capacity()
        families = report.families
        occupancy = report.housing_occupancy
        available = report.available_housing
        overcrowded = occupancy > OVERCROWDING_THRESHOLD
        satisfaction = city.satisfaction
        rng = city.rng

        change = PopulationChange(families_before=families)

        # Arrivals
        chance = base_arrival_chance(report, satisfaction, city.tax_rate, city.vat_rate)
        if available <= 0:
            chance = 0.0
            city._log("WARNING - No available housing! New families cannot move in.")
        elif overcrowded:
            chance *= 1 - overcrowding_factor(occupancy)
            city._log(
                f"NOTICE - Housing nearly full ({occupancy * 100:.1f}% occupied). "
                f"Fewer families moving in."
            )
        change.arrival_chance = float(np.clip(chance, 0.0, 1.0))
        change.max_attempts = max_attempts(satisfaction, available)
        if available > 0 and change.arrival_chance > 0:
            successes = int((rng.random(change.max_attempts) < change.arrival_chance).sum())
            change.arrivals = min(successes, available)

        # Departures
        change.departure_chance = self._departure_chance(city, report, overcrowded, occupancy)
        if families > 0 and change.departure_chance > 0:
            change.departures = int((rng.random(families) < change.departure_chance).sum())

        pool = city.family_pool
        pool.remove(change.departures)
        for _ in range(change.arrivals):
            pool.add(rng)

        excess = len(pool) - report.housing
        if excess > 0:
            change.evictions = pool.remove(excess)
            city._log(
                f"CRITICAL - {change.evictions} families couldn't find housing "
                f"and left the city!"
            )

        change.families_after = len(pool)
        self._log_change(city, change, report.housing)
        return change

    def _departure_chance(
        self, city: City, report: CapacityReport, overcrowded: bool, occupancy: float,
    ) -> float:
        chance = 0.0
        if city.satisfaction < DEPARTURE_SATISFACTION:
            chance += (DEPARTURE_SATISFACTION - city.satisfaction) * 0.01
        if report.worst_utility_ratio < DEPARTURE_UTILITY_RATIO:
            chance += DEPARTURE_UTILITY_CHANCE
            city._log("CRITICAL - Severe utility shortage causing families to leave!")
        if report.education_ratio < DEPARTURE_SERVICE_RATIO:
            chance += DEPARTURE_SERVICE_CHANCE
            city._log("CRITICAL - Severe education shortage causing families to leave!")
        if report.healthcare_ratio < DEPARTURE_SERVICE_RATIO:
            chance += DEPARTURE_SERVICE_CHANCE
            city._log("CRITICAL - Severe healthcare shortage causing families to leave!")
        if overcrowded and report.families > 0:
            chance += OVERCROWDING_DEPARTURE_CHANCE * min(1.0, overcrowding_factor(occupancy))
            city._log(
                f"WARNING - Housing overcrowding ({occupancy * 100:.1f}% occupied) "
                f"causing families to leave!"
            )
        return min(MAX_DEPARTURE_CHANCE, chance)

    def _log_change(self, city: City, change: PopulationChange, housing: int) -> None:
        if change.arrivals > 0:
            city._log(f"{change.arrivals} new families moved to the city.")
        if change.departures > 0:
            city._log(f"{change.departures} families left the city.")
        after = change.families_after
        share = after * 100.0 / housing if housing > 0 else 0.0
        if after > change.families_before:
            city._log(f"Population increased to {after} families ({share:.1f}% housing capacity).")
        elif after < change.families_before:
            city._log(f"Population decreased to {after} families ({share:.1f}% housing capacity).")
