"""
Satisfaction engine.

The daily raw score sums building impacts, tax penalties, service shortage
penalties and a service-quality bonus; a tenth of it is applied as the
day's change. Every change within a tick goes through ``capped_delta`` so
the day's total rise stays within +5 and its total fall within -50.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from citysim.core.capacity import CapacityReport
    from citysim.core.city import City

DAILY_INCREASE_CAP = 5
DAILY_DECREASE_CAP = 50

DEFAULT_TAX_RATE = 0.10
DEFAULT_VAT_RATE = 0.05

EDUCATION_SHORTAGE_WEIGHT = 25
HEALTHCARE_SHORTAGE_WEIGHT = 30
UTILITY_SHORTAGE_WEIGHT = 40

FULL_SERVICE_BONUS_CAP = 25
PARTIAL_SERVICE_BONUS_CAP = 15

COMPRESSION_THRESHOLD = 80
COMPRESSION_SPAN = 40


def capped_delta(delta: int, increased_so_far: int, decreased_so_far: int) -> int:
    """Truncate ``delta`` against what is left of today's allowance."""
    if delta > 0:
        return min(delta, max(0, DAILY_INCREASE_CAP - increased_so_far))
    if delta < 0:
        return -min(-delta, max(0, DAILY_DECREASE_CAP - decreased_so_far))
    return 0


def income_tax_penalty(rate: float) -> int:
    penalty = int(rate * 120)
    if rate > DEFAULT_TAX_RATE:
        penalty += int((rate - DEFAULT_TAX_RATE) * 180)
    return penalty


def vat_penalty(rate: float) -> int:
    penalty = int(rate * 80)
    if rate > DEFAULT_VAT_RATE:
        penalty += int((rate - DEFAULT_VAT_RATE) * 120)
    return penalty


def service_bonus(report: CapacityReport) -> int:
    if report.all_services_covered:
        return min(report.building_count * 2, FULL_SERVICE_BONUS_CAP)
    return min(report.building_count, PARTIAL_SERVICE_BONUS_CAP)


def compressed(satisfaction: int) -> int:
    """Diminishing returns above 80%: 100 maps to 90, 90 to 87."""
    if satisfaction <= COMPRESSION_THRESHOLD:
        return satisfaction
    excess = satisfaction - COMPRESSION_THRESHOLD
    return int(COMPRESSION_THRESHOLD + excess * (1 - excess / COMPRESSION_SPAN))


@dataclass
class SatisfactionBreakdown:
    """Terms of one day's satisfaction update."""
    building_impact: int = 0
    tax_penalty: int = 0
    vat_penalty: int = 0
    education_penalty: int = 0
    healthcare_penalty: int = 0
    utility_penalty: int = 0
    service_bonus: int = 0
    raw: int = 0
    applied: int = 0
    compression: int = 0

    @property
    def shortage_penalty(self) -> int:
        return self.education_penalty + self.healthcare_penalty + self.utility_penalty


class SatisfactionEngine:
    """Applies the daily satisfaction change to a city."""

    def update(self, city: City) -> SatisfactionBreakdown:
        report = city.capacity()
        b = SatisfactionBreakdown()

        b.building_impact = sum(bld.satisfaction_impact for bld in city.buildings)
        b.tax_penalty = income_tax_penalty(city.tax_rate)
        b.vat_penalty = vat_penalty(city.vat_rate)
        if report.families > 0:
            self._shortages(city, report, b)
        b.service_bonus = service_bonus(report)

        b.raw = (
            b.building_impact - b.tax_penalty - b.vat_penalty
            - b.shortage_penalty + b.service_bonus
        )
        b.applied = city._adjust_satisfaction(int(b.raw / 10))

        current = city.satisfaction
        target = compressed(current)
        if target < current:
            b.compression = city._adjust_satisfaction(target - current)

        city._log(f"Satisfaction level is now {city.satisfaction}%.")
        return b

    def _shortages(self, city: City, report: CapacityReport, b: SatisfactionBreakdown) -> None:
        families = report.families

        if report.education < families:
            ratio = report.education_ratio
            b.education_penalty = int((1 - ratio) * EDUCATION_SHORTAGE_WEIGHT)
            city._log(
                f"{_severity(ratio, 0.5)} - Not enough schools! Education capacity: "
                f"{report.education}/{families} families ({ratio * 100:.1f}%). "
                f"Satisfaction penalty: -{b.education_penalty}"
            )

        if report.healthcare < families:
            ratio = report.healthcare_ratio
            b.healthcare_penalty = int((1 - ratio) * HEALTHCARE_SHORTAGE_WEIGHT)
            city._log(
                f"{_severity(ratio, 0.5)} - Not enough hospitals! Healthcare capacity: "
                f"{report.healthcare}/{families} families ({ratio * 100:.1f}%). "
                f"Satisfaction penalty: -{b.healthcare_penalty}"
            )

        if report.water < families or report.power < families:
            b.utility_penalty = int(
                (1 - report.worst_utility_ratio) * UTILITY_SHORTAGE_WEIGHT
            )
            if report.water < families:
                ratio = report.water_ratio
                city._log(
                    f"{_severity(ratio, 0.6)} - Not enough water supply! Water capacity: "
                    f"{report.water}/{families} families ({ratio * 100:.1f}%)"
                )
            if report.power < families:
                ratio = report.power_ratio
                city._log(
                    f"{_severity(ratio, 0.6)} - Not enough power supply! Power capacity: "
                    f"{report.power}/{families} families ({ratio * 100:.1f}%)"
                )
            city._log(f"Utility shortage causing a satisfaction penalty of -{b.utility_penalty}")


def _severity(ratio: float, critical_below: float) -> str:
    return "CRITICAL" if ratio < critical_below else "WARNING"
