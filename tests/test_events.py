"""Tests for the random event engine."""

import numpy as np
import pytest

from citysim.core.city import City
from citysim.core.events import (
    EventKind,
    EventOutcome,
    RandomEventEngine,
    event_chance,
    negative_chance,
)


def _city_from(make_city, families=10, budget=1000, seed=123, **changes):
    snap = make_city(families, budget).snapshot()
    replace = changes.pop("replace", None)
    if replace is not None:
        old, new = replace
        for b in snap["buildings"]:
            if b["kind"] == old:
                b["kind"] = new
    snap.update(changes)
    return City.from_snapshot(snap, rng=np.random.default_rng(seed))


class TestEventKind:
    def test_only_grant_is_positive(self):
        assert EventKind.GRANT.is_positive
        assert not any(k.is_positive for k in EventKind if k is not EventKind.GRANT)

    def test_descriptions(self):
        for kind in EventKind:
            assert kind.description

    def test_lookup_by_value(self):
        assert EventKind("Economic Crisis") is EventKind.ECONOMIC_CRISIS


class TestProbabilities:
    @pytest.mark.parametrize("families,expected", [(10, 0.05), (51, 0.07), (101, 0.10)])
    def test_event_chance_by_size(self, families, expected):
        assert event_chance(families, 1.0) == pytest.approx(expected)

    def test_poor_services_raise_event_chance(self):
        assert event_chance(10, 0.5) == pytest.approx(0.07)
        assert event_chance(10, 0.0) == pytest.approx(0.12)

    def test_negative_chance(self):
        assert negative_chance(1.0) == pytest.approx(0.75)
        assert negative_chance(0.5) == pytest.approx(0.81)
        assert negative_chance(0.0) == pytest.approx(0.95)


class TestFire:
    def test_water_plant_reduces_damage(self, make_city):
        with_water = _city_from(make_city)
        without_water = _city_from(make_city, replace=("Water Plant", "Power Plant"))

        engine = RandomEventEngine()
        wet = engine.resolve(with_water, EventKind.FIRE)
        dry = engine.resolve(without_water, EventKind.FIRE)

        assert -wet.budget_delta < -dry.budget_delta
        assert wet.details["mitigated"] > 0
        assert "Water system helped reduce damage" in wet.message

    @pytest.mark.parametrize("seed", range(10))
    def test_fire_damage_bounds(self, make_city, seed):
        city = _city_from(
            make_city, budget=10000, seed=seed, replace=("Water Plant", "Park"),
        )
        outcome = RandomEventEngine().resolve(city, EventKind.FIRE)
        upkeep = {"Residential": 5, "School": 15, "Hospital": 25, "Park": 2, "Power Plant": 40}
        value = upkeep[outcome.details["building_kind"]] * 10
        assert value * 25 // 100 <= outcome.details["damage"] <= value * 75 // 100
        assert city.budget == 10000 - outcome.details["damage"]
        assert outcome.satisfaction_delta == -5

    def test_fire_without_buildings(self, make_city):
        city = _city_from(make_city, buildings=[])
        before = len(city.event_log)
        outcome = RandomEventEngine().resolve(city, EventKind.FIRE)
        assert outcome.kind is EventKind.FIRE
        assert outcome.budget_delta == 0
        assert city.budget == 1000
        assert city.satisfaction == 50
        assert len(city.event_log) == before + 1
        assert "FIRE!" in city.event_log[-1]


class TestEpidemic:
    def test_hospitals_mitigate(self, make_city):
        city = _city_from(make_city)
        outcome = RandomEventEngine().resolve(city, EventKind.EPIDEMIC)
        assert 1 <= outcome.details["affected"] <= 3
        assert outcome.satisfaction_delta == -3
        assert "Hospitals reduced costs" in outcome.message

    def test_no_hospital(self, make_city):
        city = _city_from(make_city, replace=("Hospital", "Park"))
        outcome = RandomEventEngine().resolve(city, EventKind.EPIDEMIC)
        assert outcome.details["mitigated"] == 0
        assert outcome.budget_delta == -outcome.details["affected"] * 20
        assert outcome.satisfaction_delta == -10
        assert "No hospitals to help!" in outcome.message

    def test_empty_city(self, make_city):
        city = make_city(0, 500)
        outcome = RandomEventEngine().resolve(city, EventKind.EPIDEMIC)
        assert outcome.kind is EventKind.EPIDEMIC
        assert outcome.budget_delta == 0
        assert city.budget == 500
        assert "EPIDEMIC!" in city.event_log[-1]


class TestEconomicCrisis:
    @pytest.mark.parametrize("seed", range(10))
    def test_balanced_economy_loss(self, make_city, seed):
        city = _city_from(make_city, seed=seed)
        outcome = RandomEventEngine().resolve(city, EventKind.ECONOMIC_CRISIS)
        # No job buildings counts as balanced: 5-15% minus 2
        assert 30 <= outcome.details["loss"] <= 130
        assert outcome.satisfaction_delta == -8
        assert "ECONOMIC CRISIS!" in outcome.message

    def test_negative_budget_is_most_severe(self, make_city):
        city = _city_from(make_city, budget=-100)
        outcome = RandomEventEngine().resolve(city, EventKind.ECONOMIC_CRISIS)
        assert outcome.budget_delta == 0
        assert city.budget == -100
        assert outcome.satisfaction_delta == -17
        assert outcome.message.startswith("SEVERE ECONOMIC CRISIS!")


class TestGrant:
    @pytest.mark.parametrize("seed", range(10))
    def test_grant_amount(self, make_city, seed):
        city = _city_from(make_city, seed=seed)
        outcome = RandomEventEngine().resolve(city, EventKind.GRANT)
        assert 100 <= outcome.budget_delta <= 200
        assert city.budget == 1000 + outcome.budget_delta
        # Gain is truncated by the daily +5 allowance
        assert outcome.satisfaction_delta == 5

    def test_minimum_grant(self, make_city):
        city = _city_from(make_city, budget=200)
        outcome = RandomEventEngine().resolve(city, EventKind.GRANT)
        assert outcome.budget_delta == 100
        assert outcome.message.startswith("LARGE GRANT!")

    def test_broke_city_still_gets_minimum(self, make_city):
        city = _city_from(make_city, budget=-50)
        outcome = RandomEventEngine().resolve(city, EventKind.GRANT)
        assert outcome.budget_delta == 100
        assert city.budget == 50

    @pytest.mark.parametrize("seed", range(5))
    def test_unhappy_city_gets_more(self, make_city, seed):
        city = _city_from(make_city, seed=seed, satisfaction=30)
        outcome = RandomEventEngine().resolve(city, EventKind.GRANT)
        assert 150 <= outcome.budget_delta <= 250


class TestRoll:
    def test_roll_is_total(self, make_city):
        engine = RandomEventEngine()
        fired = 0
        for seed in range(300):
            city = _city_from(make_city, seed=seed)
            before = len(city.event_log)
            outcome = engine.roll(city)
            if outcome is None:
                assert len(city.event_log) == before
            else:
                fired += 1
                assert isinstance(outcome, EventOutcome)
                assert outcome.kind in EventKind
                assert len(city.event_log) == before + 1
        assert fired > 0

    def test_poor_services_fire_more_often(self, make_city):
        engine = RandomEventEngine()
        good = sum(
            engine.roll(_city_from(make_city, seed=s)) is not None for s in range(400)
        )
        # 150 families: larger tier and a poor-service surcharge
        poor = sum(
            engine.roll(_city_from(make_city, families=150, seed=s)) is not None
            for s in range(400)
        )
        assert poor > good


def _draws(seed, *bounds):
    """Replay the integer draws a handler makes from a fresh generator."""
    rng = np.random.default_rng(seed)
    return [int(rng.integers(*b)) for b in bounds]


_ONE_HOUSE = [{"id": 1, "kind": "Residential", "occupancy": 0}]


class TestSizeScaling:
    @pytest.mark.parametrize("seed", range(5))
    def test_large_city_fire_scaling_stacks(self, make_city, seed):
        city = _city_from(
            make_city, families=150, budget=100000, seed=seed, buildings=_ONE_HOUSE,
        )
        _, percent = _draws(seed, (1,), (25, 76))
        base = 50 * percent // 100
        outcome = RandomEventEngine().resolve(city, EventKind.FIRE)
        assert outcome.details["damage"] == int(int(base * 1.2) * 1.5)
        assert outcome.details["mitigated"] == 0

    @pytest.mark.parametrize("seed", range(5))
    def test_medium_city_fire_scaling(self, make_city, seed):
        city = _city_from(
            make_city, families=60, budget=100000, seed=seed, buildings=_ONE_HOUSE,
        )
        _, percent = _draws(seed, (1,), (25, 76))
        outcome = RandomEventEngine().resolve(city, EventKind.FIRE)
        assert outcome.details["damage"] == int(50 * percent // 100 * 1.2)

    @pytest.mark.parametrize("seed", range(5))
    def test_large_city_epidemic_share(self, make_city, seed):
        city = _city_from(make_city, families=150, seed=seed)
        (percent,) = _draws(seed, (10, 31))
        outcome = RandomEventEngine().resolve(city, EventKind.EPIDEMIC)
        assert outcome.details["affected"] == 150 * min(50, percent + 15) // 100

    @pytest.mark.parametrize("seed", range(5))
    def test_large_city_crisis_share(self, make_city, seed):
        city = _city_from(make_city, families=150, seed=seed)
        (percent,) = _draws(seed, (5, 16))
        outcome = RandomEventEngine().resolve(city, EventKind.ECONOMIC_CRISIS)
        # +8 for a large city, -2 for a balanced economy
        assert outcome.details["percent"] == percent + 6
        assert outcome.details["loss"] == 1000 * (percent + 6) // 100


class TestFireSeverity:
    def _damage(self, seed):
        _, percent = _draws(seed, (1,), (25, 76))
        return 50 * percent // 100

    @pytest.mark.parametrize("seed", range(5))
    def test_ratio_uses_budget_after_repairs(self, make_city, seed):
        damage = self._damage(seed)
        # damage / budget is exactly 0.1 before repairs and above it after
        city = _city_from(make_city, budget=10 * damage, seed=seed, buildings=_ONE_HOUSE)
        outcome = RandomEventEngine().resolve(city, EventKind.FIRE)
        assert outcome.details["damage"] == damage
        assert outcome.satisfaction_delta == -8

    @pytest.mark.parametrize("seed", range(5))
    def test_repairs_emptying_treasury_are_severe(self, make_city, seed):
        damage = self._damage(seed)
        city = _city_from(make_city, budget=damage, seed=seed, buildings=_ONE_HOUSE)
        outcome = RandomEventEngine().resolve(city, EventKind.FIRE)
        assert city.budget == 0
        assert outcome.satisfaction_delta == -13
