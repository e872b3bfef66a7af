"""
Economic calculator: daily income and expenses.

Income: every family's income is recomputed from job quality, job coverage
and education, scaled down by the city-size difficulty tier; the city
collects income tax on the total and VAT on family spending.

Expenses: building upkeep (scaled by city size and, for service buildings,
by how heavily they are used), per-family city services and utility
operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from citysim.core.buildings import (
    BUILDING_CATALOG, Building, BuildingKind, SERVICE_KINDS, resolve_kind,
)

if TYPE_CHECKING:
    from citysim.core.city import City


# ---------------------------------------------------------------------------
# City-size tiers: (families strictly above, value), highest tier first
# ---------------------------------------------------------------------------
DIFFICULTY_TIERS: tuple[tuple[int, float, float], ...] = (
    (200, 0.85, 1.15),
    (100, 0.90, 1.10),
    (50, 0.95, 1.05),
)
UPKEEP_SIZE_TIERS: tuple[tuple[int, float], ...] = ((200, 1.5), (100, 1.3), (50, 1.15))
PER_FAMILY_COST_TIERS: tuple[tuple[int, int], ...] = ((200, 8), (100, 6), (50, 4))
CONSTRUCTION_COST_TIERS: tuple[tuple[int, float], ...] = ((200, 1.5), (100, 1.3), (50, 1.15))

BASE_PER_FAMILY_COST = 3
BASE_CITY_SERVICES_COST = 15
CONSTRUCTION_COST_FACTOR = 10  # construction costs 10x the daily upkeep

SPENDING_SHARE = 0.25
UTILITY_INCOME_THRESHOLD = 0.8
UTILITY_INCOME_PENALTY = 0.3

WATER_BASE_COST, WATER_USAGE_COST = 8, 0.3
POWER_BASE_COST, POWER_USAGE_COST = 12, 0.4


def _tier_value(families: int, tiers, default):
    for threshold, *values in tiers:
        if families > threshold:
            return values[0] if len(values) == 1 else tuple(values)
    return default


def difficulty_multipliers(families: int) -> tuple[float, float]:
    """(income multiplier, expense multiplier) for the city's size tier."""
    return _tier_value(families, DIFFICULTY_TIERS, (1.0, 1.0))


def upkeep_size_factor(families: int) -> float:
    return _tier_value(families, UPKEEP_SIZE_TIERS, 1.0)


def per_family_cost(families: int) -> int:
    return _tier_value(families, PER_FAMILY_COST_TIERS, BASE_PER_FAMILY_COST)


def construction_cost(kind: BuildingKind | str, families: int) -> int:
    """Price of a new building: 10x upkeep, scaled by city size."""
    spec = BUILDING_CATALOG[resolve_kind(kind)]
    multiplier = _tier_value(families, CONSTRUCTION_COST_TIERS, 1.0)
    return int(spec.upkeep * CONSTRUCTION_COST_FACTOR * multiplier)


def satisfaction_spending_multiplier(satisfaction: int) -> float:
    """0.7 at 0% satisfaction up to 1.3 at 100%."""
    return 0.7 + satisfaction * 0.006


def usage_ratio(building: Building, families: int) -> float:
    """How much of a service building's specific capacity is in use."""
    if building.kind == BuildingKind.SCHOOL:
        capacity = building.education_capacity
    elif building.kind == BuildingKind.HOSPITAL:
        capacity = building.healthcare_capacity
    else:
        capacity = building.utility_capacity
    if families <= 0 or capacity <= 0:
        return 0.0
    return min(1.0, families / capacity)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
@dataclass
class IncomeReport:
    """Breakdown of one day's revenue."""
    total_family_income: int = 0
    taxable_income: int = 0
    average_income: int = 0
    daily_spending: int = 0
    income_tax: int = 0
    vat: int = 0
    utility_penalty: int = 0
    income_scaling: float = 1.0
    total: int = 0


@dataclass
class ExpenseReport:
    """Breakdown of one day's costs."""
    building_upkeep: int = 0
    upkeep_by_kind: dict[str, int] = field(default_factory=dict)
    city_services: int = 0
    utility_operations: int = 0
    scale_factor: float = 1.0
    total: int = 0


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------
class EconomicCalculator:
    """Computes and books the city's daily income and expenses."""

    def compute_income(self, city: City) -> IncomeReport:
        report = city.capacity()
        families = report.families
        income_scaling, _ = difficulty_multipliers(families)
        job_ratio = report.job_ratio

        total_family_income = city.family_pool.update_incomes(
            report.job_quality_ratio, job_ratio, report.education_ratio,
            income_scaling, city.rng,
        )

        if job_ratio < 1.0:
            city._log(
                f"Job shortage ({job_ratio * 100:.1f}% coverage) "
                f"is reducing family incomes."
            )
        if income_scaling < 1.0:
            city._log(
                f"City size difficulty scaling applied "
                f"({income_scaling * 100:.0f}% income efficiency)"
            )

        utility_penalty = 0
        worst_utility = report.worst_utility_ratio
        if worst_utility < UTILITY_INCOME_THRESHOLD:
            utility_penalty = int(
                total_family_income * (1 - worst_utility) * UTILITY_INCOME_PENALTY
            )
            city._log(f"Utility shortage reducing family income by ${utility_penalty}")

        taxable = total_family_income - utility_penalty
        average = taxable // families if families > 0 else 0

        income_tax = int(taxable * city.tax_rate)
        spending = int(average * SPENDING_SHARE)
        spending = int(spending * satisfaction_spending_multiplier(city.satisfaction))
        vat = int(families * spending * city.vat_rate)

        total = int((income_tax + vat) * city.config.income_multiplier)
        city._adjust_budget(total)

        city._log(f"Average family income: ${average}, spending: ${spending}")
        city._log(f"Collected ${income_tax} in income tax and ${vat} in VAT.")

        return IncomeReport(
            total_family_income=total_family_income,
            taxable_income=taxable,
            average_income=average,
            daily_spending=spending,
            income_tax=income_tax,
            vat=vat,
            utility_penalty=utility_penalty,
            income_scaling=income_scaling,
            total=total,
        )

    def compute_expenses(self, city: City) -> ExpenseReport:
        report = city.capacity()
        families = report.families
        _, expense_scaling = difficulty_multipliers(families)
        scale = upkeep_size_factor(families) * expense_scaling

        if expense_scaling > 1.0:
            city._log(
                f"City size difficulty scaling applied "
                f"({(expense_scaling - 1.0) * 100:.0f}% expense increase)"
            )

        upkeep_by_kind: dict[str, int] = {}
        building_upkeep = 0
        for b in city.buildings:
            scaled = int(b.upkeep * scale)
            if b.kind in SERVICE_KINDS:
                scaled = int(scaled * (0.5 + usage_ratio(b, families)))
            building_upkeep += scaled
            upkeep_by_kind[b.kind.value] = upkeep_by_kind.get(b.kind.value, 0) + scaled

        city_services = BASE_CITY_SERVICES_COST + families * per_family_cost(families)

        utility = 0
        if report.water_plants > 0:
            water_usage = min(1.0, families / report.water) if families > 0 and report.water > 0 else 0.0
            utility += WATER_BASE_COST + int(families * water_usage * WATER_USAGE_COST)
        if report.power_plants > 0:
            power_usage = min(1.0, families / report.power) if families > 0 and report.power > 0 else 0.0
            utility += POWER_BASE_COST + int(families * power_usage * POWER_USAGE_COST)

        total = int(
            (building_upkeep + city_services + utility) * city.config.expense_multiplier
        )
        city._adjust_budget(-total)

        lines = ["Expenses breakdown:", f"- Building upkeep: ${building_upkeep}"]
        for kind in BuildingKind:
            if upkeep_by_kind.get(kind.value, 0) > 0:
                lines.append(f"  - {kind.value}: ${upkeep_by_kind[kind.value]}")
        lines.append(f"- City services: ${city_services}")
        if utility > 0:
            lines.append(f"- Utility operations: ${utility}")
        lines.append(f"Total daily expenses: ${total}")
        city._log("\n".join(lines))

        return ExpenseReport(
            building_upkeep=building_upkeep,
            upkeep_by_kind=upkeep_by_kind,
            city_services=city_services,
            utility_operations=utility,
            scale_factor=scale,
            total=total,
        )
