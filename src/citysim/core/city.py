"""
City aggregate and the daily tick.

``City.advance_day`` runs, in order: income, expenses, the random event,
satisfaction and population. All randomness comes from ``City.rng`` so a
seeded generator reproduces a whole game.
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from citysim.core.buildings import (
    Building, BuildingKind, STARTER_KINDS, create_building, resolve_kind,
)
from citysim.core.capacity import CapacityReport, aggregate_capacity
from citysim.core.config import CityConfig
from citysim.core.economy import (
    EconomicCalculator, ExpenseReport, IncomeReport, construction_cost,
)
from citysim.core.events import EventOutcome, RandomEventEngine
from citysim.core.families import Family, FamilyPool
from citysim.core.population import PopulationChange, PopulationDynamics
from citysim.core.satisfaction import (
    SatisfactionBreakdown, SatisfactionEngine, capped_delta,
)

logger = logging.getLogger(__name__)

MAX_TAX_RATE = 0.4
MAX_VAT_RATE = 0.25
DEFAULT_TAX_RATE = 0.10
DEFAULT_VAT_RATE = 0.05
INITIAL_SATISFACTION = 50

TAX_SATISFACTION_WEIGHT = 50
VAT_SATISFACTION_WEIGHT = 40


class City:
    """
    The game state.

    Mutate only through ``advance_day``, ``add_building``, ``set_tax_rate``
    and ``set_vat_rate``. Read accessors return copies.
    """

    def __init__(
        self,
        initial_families: int = 10,
        initial_budget: int = 1000,
        *,
        config: CityConfig | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.config = config or CityConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.random_seed)

        # Pipeline stages
        self._economy = EconomicCalculator()
        self._events = RandomEventEngine()
        self._satisfaction_engine = SatisfactionEngine()
        self._population = PopulationDynamics()

        # State
        self._day = 1
        self._budget = int(initial_budget)
        self._satisfaction = INITIAL_SATISFACTION
        self._tax_rate = DEFAULT_TAX_RATE
        self._vat_rate = DEFAULT_VAT_RATE
        self._family_pool = FamilyPool.populate(max(0, initial_families), self.rng)
        self._buildings: list[Building] = []
        self._building_counts: dict[BuildingKind, int] = {k: 0 for k in BuildingKind}
        self._next_building_id = 1
        self._event_log: list[str] = []

        # Per-day results
        self._daily_income = 0
        self._daily_expenses = 0
        self._daily_satisfaction_increase = 0
        self._daily_satisfaction_decrease = 0
        self._last_income: IncomeReport | None = None
        self._last_expenses: ExpenseReport | None = None
        self._last_event: EventOutcome | None = None
        self._last_satisfaction: SatisfactionBreakdown | None = None
        self._last_population_change: PopulationChange | None = None

        for kind in STARTER_KINDS:
            self._place(kind)
        self._update_occupancy()
        self._log(
            f"City founded with {self.families} families and ${self._budget} budget."
        )

    @classmethod
    def from_config(
        cls, config: CityConfig, rng: np.random.Generator | None = None,
    ) -> City:
        """Found a city from a ``CityConfig``, sandbox mode included."""
        city = cls(
            config.effective_initial_families,
            config.effective_initial_budget,
            config=config,
            rng=rng,
        )
        city.set_tax_rate(config.initial_tax_rate)
        city.set_vat_rate(config.initial_vat_rate)
        return city

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------
    @property
    def day(self) -> int:
        return self._day

    @property
    def budget(self) -> int:
        return self._budget

    @property
    def satisfaction(self) -> int:
        return self._satisfaction

    @property
    def families(self) -> int:
        return self._family_pool.count()

    @property
    def family_pool(self) -> FamilyPool:
        return self._family_pool

    @property
    def tax_rate(self) -> float:
        return self._tax_rate

    @property
    def vat_rate(self) -> float:
        return self._vat_rate

    @property
    def buildings(self) -> tuple[Building, ...]:
        return tuple(self._buildings)

    @property
    def building_counts(self) -> dict[BuildingKind, int]:
        return dict(self._building_counts)

    @property
    def event_log(self) -> tuple[str, ...]:
        return tuple(self._event_log)

    @property
    def daily_income(self) -> int:
        return self._daily_income

    @property
    def daily_expenses(self) -> int:
        return self._daily_expenses

    @property
    def daily_satisfaction_increase(self) -> int:
        return self._daily_satisfaction_increase

    @property
    def daily_satisfaction_decrease(self) -> int:
        return self._daily_satisfaction_decrease

    @property
    def last_income(self) -> IncomeReport | None:
        return self._last_income

    @property
    def last_expenses(self) -> ExpenseReport | None:
        return self._last_expenses

    @property
    def last_event(self) -> EventOutcome | None:
        return self._last_event

    @property
    def last_satisfaction(self) -> SatisfactionBreakdown | None:
        return self._last_satisfaction

    @property
    def last_population_change(self) -> PopulationChange | None:
        return self._last_population_change

    def capacity(self) -> CapacityReport:
        """Capacities and coverage ratios for the current state."""
        return aggregate_capacity(self._buildings, self.families)

    def recent_events(self, limit: int = 5) -> tuple[str, ...]:
        if limit <= 0:
            return ()
        return tuple(self._event_log[-limit:])

    # ------------------------------------------------------------------
    # Daily tick
    # ------------------------------------------------------------------
    def advance_day(self) -> None:
        """Run one full day."""
        self._event_log = []
        self._daily_satisfaction_increase = 0
        self._daily_satisfaction_decrease = 0
        self._day += 1

        self._last_income = self._economy.compute_income(self)
        self._daily_income = self._last_income.total
        self._last_expenses = self._economy.compute_expenses(self)
        self._daily_expenses = self._last_expenses.total
        self._last_event = self._events.roll(self)
        self._last_satisfaction = self._satisfaction_engine.update(self)
        self._last_population_change = self._population.update(self)
        self._update_occupancy()

        logger.debug(
            "Day %d: families=%d budget=%d satisfaction=%d",
            self._day, self.families, self._budget, self._satisfaction,
        )

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------
    def add_building(self, kind: BuildingKind | str, cost: int | None = None) -> Building:
        """
        Construct a building and charge ``cost`` to the budget.

        Without an explicit ``cost`` the size-scaled construction cost is
        charged. Raises ``UnknownBuildingKind`` for kinds not in the catalog.
        """
        kind = resolve_kind(kind)
        if cost is None:
            cost = construction_cost(kind, self.families)
        building = self._place(kind)
        self._budget -= int(cost)
        self._update_occupancy()
        self._log(f"Built a new {kind.value} for ${cost}.")
        logger.info("Built %s #%d for $%d on day %d", kind.value, building.id, cost, self._day)
        return building

    def set_tax_rate(self, rate: float) -> None:
        """Set the income tax rate, clamped to [0, 0.4]. NaN keeps the current rate."""
        new = _clamp_rate(rate, MAX_TAX_RATE, self._tax_rate)
        effect = int(-(new - self._tax_rate) * TAX_SATISFACTION_WEIGHT)
        self._tax_rate = new
        applied = self._adjust_satisfaction(effect, capped=False)
        self._log(f"Income tax rate set to {new * 100:.1f}%." + _effect_note(applied))
        logger.info("Income tax rate set to %.3f (satisfaction %+d)", new, applied)

    def set_vat_rate(self, rate: float) -> None:
        """Set the VAT rate, clamped to [0, 0.25]. NaN keeps the current rate."""
        new = _clamp_rate(rate, MAX_VAT_RATE, self._vat_rate)
        effect = int(-(new - self._vat_rate) * VAT_SATISFACTION_WEIGHT)
        self._vat_rate = new
        applied = self._adjust_satisfaction(effect, capped=False)
        self._log(f"VAT rate set to {new * 100:.1f}%." + _effect_note(applied))
        logger.info("VAT rate set to %.3f (satisfaction %+d)", new, applied)

    # ------------------------------------------------------------------
    # Mutation hooks for the pipeline stages
    # ------------------------------------------------------------------
    def _log(self, message: str) -> None:
        self._event_log.append(f"Day {self._day}: {message}")

    def _adjust_budget(self, delta: int) -> None:
        self._budget += int(delta)

    def _adjust_satisfaction(self, delta: int, capped: bool = True) -> int:
        """Apply a satisfaction change and return the change actually applied."""
        if capped:
            delta = capped_delta(
                delta,
                self._daily_satisfaction_increase,
                self._daily_satisfaction_decrease,
            )
        before = self._satisfaction
        self._satisfaction = max(0, min(100, before + int(delta)))
        applied = self._satisfaction - before
        if capped:
            if applied > 0:
                self._daily_satisfaction_increase += applied
            else:
                self._daily_satisfaction_decrease -= applied
        return applied

    def _place(self, kind: BuildingKind) -> Building:
        building = create_building(self._next_building_id, kind)
        self._next_building_id += 1
        self._buildings.append(building)
        self._building_counts[kind] += 1
        return building

    def _update_occupancy(self) -> None:
        """Fill residential buildings with families in construction order."""
        remaining = self.families
        for b in self._buildings:
            if b.kind == BuildingKind.RESIDENTIAL:
                b.set_occupancy(remaining)
                remaining -= b.occupancy

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def snapshot(self) -> dict[str, Any]:
        """Plain-data view of the whole city."""
        return {
            "day": self._day,
            "budget": self._budget,
            "satisfaction": self._satisfaction,
            "tax_rate": self._tax_rate,
            "vat_rate": self._vat_rate,
            "buildings": [
                {"id": b.id, "kind": b.kind.value, "occupancy": b.occupancy}
                for b in self._buildings
            ],
            "families": [
                {"base_income": f.base_income, "income": f.income, "employed": f.employed}
                for f in self._family_pool.families
            ],
            "event_log": list(self._event_log),
            "daily_income": self._daily_income,
            "daily_expenses": self._daily_expenses,
            "next_building_id": self._next_building_id,
            "config": self.config.to_dict(),
            "rng_state": self.rng.bit_generator.state,
        }

    @classmethod
    def from_snapshot(
        cls, data: dict[str, Any], rng: np.random.Generator | None = None,
    ) -> City:
        """
        Rebuild a city from ``snapshot()`` output.

        Raises ``ValueError`` when a required key is missing. Out-of-range
        rates and satisfaction are clamped. Without an explicit ``rng`` the
        generator resumes from the saved ``rng_state``, falling back to the
        config seed for snapshots that carry none.
        """
        if rng is None and data.get("rng_state") is not None:
            rng = _restore_rng(data["rng_state"])
        try:
            config = CityConfig.from_dict(data.get("config") or {})
            city = cls(0, int(data["budget"]), config=config, rng=rng)
            city._day = int(data["day"])
            city._satisfaction = max(0, min(100, int(data["satisfaction"])))
            city._tax_rate = _clamp_rate(data["tax_rate"], MAX_TAX_RATE, DEFAULT_TAX_RATE)
            city._vat_rate = _clamp_rate(data["vat_rate"], MAX_VAT_RATE, DEFAULT_VAT_RATE)

            city._buildings = []
            city._building_counts = {k: 0 for k in BuildingKind}
            for entry in data["buildings"]:
                kind = resolve_kind(entry["kind"])
                building = create_building(int(entry["id"]), kind)
                city._buildings.append(building)
                city._building_counts[kind] += 1
            city._next_building_id = int(data.get(
                "next_building_id",
                max((b.id for b in city._buildings), default=0) + 1,
            ))

            city._family_pool = FamilyPool([
                Family(
                    base_income=int(f["base_income"]),
                    income=int(f["income"]),
                    employed=bool(f["employed"]),
                )
                for f in data["families"]
            ])
        except KeyError as exc:
            raise ValueError(f"Snapshot is missing required key {exc}") from exc

        city._event_log = list(data.get("event_log", []))
        city._daily_income = int(data.get("daily_income", 0))
        city._daily_expenses = int(data.get("daily_expenses", 0))
        city._update_occupancy()
        return city


def _restore_rng(state: dict[str, Any]) -> np.random.Generator:
    try:
        bit_generator = getattr(np.random, state["bit_generator"])()
        bit_generator.state = state
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Snapshot has an invalid rng_state: {exc}") from exc
    return np.random.Generator(bit_generator)


def _clamp_rate(rate: float, upper: float, fallback: float) -> float:
    rate = float(rate)
    if np.isnan(rate):
        return fallback
    return float(np.clip(rate, 0.0, upper))


def _effect_note(applied: int) -> str:
    if applied == 0:
        return ""
    return f" Satisfaction changed by {applied:+d}."
