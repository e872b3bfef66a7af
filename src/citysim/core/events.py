"""
Random events.

Once per day the engine rolls whether an event happens at all, then
whether it is harmful, then which harmful event. Every fired event resolves
to exactly one ``EventKind`` and writes exactly one log line, even when it
has nothing to act on.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from citysim.core.capacity import CapacityReport
    from citysim.core.city import City


class EventKind(str, Enum):
    FIRE = "Fire"
    EPIDEMIC = "Epidemic"
    ECONOMIC_CRISIS = "Economic Crisis"
    GRANT = "Grant"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def is_positive(self) -> bool:
        return self is EventKind.GRANT


_DESCRIPTIONS = {
    EventKind.FIRE: "A building caught fire, causing damage and repair costs.",
    EventKind.EPIDEMIC: "A disease outbreak affected families and required healthcare expenses.",
    EventKind.ECONOMIC_CRISIS: "Market instability caused financial losses.",
    EventKind.GRANT: "The city received a financial grant from the government.",
}

NEGATIVE_KINDS: tuple[EventKind, ...] = (
    EventKind.FIRE, EventKind.EPIDEMIC, EventKind.ECONOMIC_CRISIS,
)

# Event roll
BASE_EVENT_CHANCE = 0.05
SERVICE_RISK_THRESHOLD = 0.7
SERVICE_RISK_WEIGHT = 0.1
BASE_NEGATIVE_CHANCE = 0.75
NEGATIVE_RISK_WEIGHT = 0.3
MAX_NEGATIVE_CHANCE = 0.95

# Fire
FIRE_VALUE_FACTOR = 10
WATER_MITIGATION = 0.5

# Epidemic
MAX_AFFECTED_PERCENT = 50
HOSPITAL_COST_MITIGATION = 0.6
HOSPITAL_IMPACT_MITIGATION = 0.7

# Economic crisis
CRISIS_MIN_PERCENT = 3
CRISIS_MAX_PERCENT = 25

# Grant
GRANT_MIN_AMOUNT = 100
GRANT_MIN_PERCENT = 5
GRANT_MAX_PERCENT = 25
GRANT_LOW_SATISFACTION = 40


def _size_tier(families: int, small, medium, large):
    """Pick a value by city size: >100 families large, >50 medium."""
    if families > 100:
        return large
    if families > 50:
        return medium
    return small


def _ratio_to_budget(amount: int, budget: int) -> float:
    """Amount relative to ``budget``; an empty treasury is the worst case."""
    if budget <= 0:
        return math.inf
    return amount / budget


def event_chance(families: int, service_ratio: float) -> float:
    """Probability that any event happens today."""
    chance = _size_tier(families, BASE_EVENT_CHANCE, 0.07, 0.10)
    if service_ratio < SERVICE_RISK_THRESHOLD:
        chance += (SERVICE_RISK_THRESHOLD - service_ratio) * SERVICE_RISK_WEIGHT
    return chance


def negative_chance(service_ratio: float) -> float:
    """Probability that a fired event is harmful."""
    chance = BASE_NEGATIVE_CHANCE
    if service_ratio < SERVICE_RISK_THRESHOLD:
        chance += (SERVICE_RISK_THRESHOLD - service_ratio) * NEGATIVE_RISK_WEIGHT
    return min(MAX_NEGATIVE_CHANCE, chance)


@dataclass
class EventOutcome:
    """What a resolved event did to the city."""
    kind: EventKind
    budget_delta: int = 0
    satisfaction_delta: int = 0
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "budget_delta": self.budget_delta,
            "satisfaction_delta": self.satisfaction_delta,
            "message": self.message,
            "details": dict(self.details),
        }


class RandomEventEngine:
    """Rolls and resolves the daily random event."""

    def roll(self, city: City) -> EventOutcome | None:
        report = city.capacity()
        service_ratio = report.service_ratio
        if city.rng.random() >= event_chance(report.families, service_ratio):
            return None
        if city.rng.random() < negative_chance(service_ratio):
            kind = NEGATIVE_KINDS[int(city.rng.integers(len(NEGATIVE_KINDS)))]
        else:
            kind = EventKind.GRANT
        return self.resolve(city, kind)

    def resolve(self, city: City, kind: EventKind | str) -> EventOutcome:
        """Apply one event of ``kind`` to the city."""
        kind = EventKind(kind)
        report = city.capacity()
        handler = {
            EventKind.FIRE: self._fire,
            EventKind.EPIDEMIC: self._epidemic,
            EventKind.ECONOMIC_CRISIS: self._economic_crisis,
            EventKind.GRANT: self._grant,
        }[kind]
        outcome = handler(city, report)
        city._log(outcome.message)
        return outcome

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def _fire(self, city: City, report: CapacityReport) -> EventOutcome:
        buildings = city.buildings
        if not buildings:
            return EventOutcome(
                EventKind.FIRE,
                message="FIRE! A fire broke out, but there were no buildings to damage.",
            )

        target = buildings[int(city.rng.integers(len(buildings)))]
        percent = int(city.rng.integers(25, 76))
        damage = target.upkeep * FIRE_VALUE_FACTOR * percent // 100
        if report.families > 50:
            damage = int(damage * 1.2)
        if report.families > 100:
            damage = int(damage * 1.5)

        reduction = 0
        if report.water_plants > 0:
            reduction = int(damage * report.water_ratio * WATER_MITIGATION)
            damage -= reduction

        # Measured against the budget left after repairs
        ratio = _ratio_to_budget(damage, city.budget - damage)
        penalty = 5
        if ratio > 0.2:
            penalty = 13
        elif ratio > 0.1:
            penalty = 8

        city._adjust_budget(-damage)
        applied = city._adjust_satisfaction(-penalty)

        message = f"FIRE! A {target.kind.value} caught fire, causing ${damage} in damages."
        if report.water_plants > 0:
            message += f" Water system helped reduce damage by ${reduction}."
        return EventOutcome(
            EventKind.FIRE, -damage, applied, message,
            {"building_id": target.id, "building_kind": target.kind.value,
             "damage": damage, "mitigated": reduction},
        )

    def _epidemic(self, city: City, report: CapacityReport) -> EventOutcome:
        families = report.families
        if families <= 0:
            return EventOutcome(
                EventKind.EPIDEMIC,
                message="EPIDEMIC! An outbreak was reported, but no families were affected.",
            )

        percent = int(city.rng.integers(10, 31)) + _size_tier(families, 0, 5, 15)
        percent = min(MAX_AFFECTED_PERCENT, percent)
        affected = families * percent // 100
        costs = affected * _size_tier(families, 20, 25, 30)

        reduction = 0
        impact = 10
        if report.healthcare > 0:
            ratio = report.healthcare_ratio
            reduction = int(costs * ratio * HOSPITAL_COST_MITIGATION)
            costs -= reduction
            impact = int(impact * (1 - ratio * HOSPITAL_IMPACT_MITIGATION))

        severity = affected / families
        if severity > 0.4:
            impact += 10
        elif severity > 0.3:
            impact += 5

        city._adjust_budget(-costs)
        applied = city._adjust_satisfaction(-impact)

        if report.healthcare > 0:
            message = (
                f"EPIDEMIC! {affected} families affected. "
                f"Hospitals reduced costs by ${reduction}. Total cost: ${costs}."
            )
        else:
            message = (
                f"EPIDEMIC! {affected} families affected, costing ${costs}. "
                f"No hospitals to help!"
            )
        return EventOutcome(
            EventKind.EPIDEMIC, -costs, applied, message,
            {"affected": affected, "cost": costs, "mitigated": reduction},
        )

    def _economic_crisis(self, city: City, report: CapacityReport) -> EventOutcome:
        percent = int(city.rng.integers(5, 16)) + _size_tier(report.families, 0, 3, 8)

        job_buildings = report.commercial_count + report.industrial_count
        commercial_ratio = (
            report.commercial_count / job_buildings if job_buildings > 0 else 0.5
        )
        if abs(commercial_ratio - 0.5) < 0.2:
            percent -= 2
        elif commercial_ratio < 0.3 or commercial_ratio > 0.7:
            percent += 3
        percent = max(CRISIS_MIN_PERCENT, min(CRISIS_MAX_PERCENT, percent))

        budget = city.budget
        loss = max(budget, 0) * percent // 100
        ratio = _ratio_to_budget(loss, budget)
        penalty = 8
        severity = ""
        if ratio > 0.2:
            penalty, severity = 17, "SEVERE "
        elif ratio > 0.15:
            penalty, severity = 12, "MAJOR "

        city._adjust_budget(-loss)
        applied = city._adjust_satisfaction(-penalty)

        shown = ratio * 100 if budget > 0 else float(percent)
        message = (
            f"{severity}ECONOMIC CRISIS! The city lost ${loss} "
            f"({shown:.1f}% of budget) due to market instability."
        )
        return EventOutcome(
            EventKind.ECONOMIC_CRISIS, -loss, applied, message,
            {"percent": percent, "loss": loss},
        )

    def _grant(self, city: City, report: CapacityReport) -> EventOutcome:
        percent = int(city.rng.integers(10, 21)) - _size_tier(report.families, 0, 2, 5)
        if city.satisfaction < GRANT_LOW_SATISFACTION:
            percent += 5
        percent = max(GRANT_MIN_PERCENT, min(GRANT_MAX_PERCENT, percent))

        budget = city.budget
        amount = max(GRANT_MIN_AMOUNT, max(budget, 0) * percent // 100)
        ratio = _ratio_to_budget(amount, budget)
        gain = 5
        size = ""
        if ratio > 0.2:
            gain, size = 10, "LARGE "
        elif ratio > 0.15:
            gain, size = 7, "SIGNIFICANT "

        city._adjust_budget(amount)
        applied = city._adjust_satisfaction(gain)

        shown = ratio * 100 if budget > 0 else float(percent)
        message = (
            f"{size}GRANT! The city received a ${amount} grant "
            f"({shown:.1f}% of budget) from the government."
        )
        return EventOutcome(
            EventKind.GRANT, amount, applied, message,
            {"percent": percent, "amount": amount},
        )
