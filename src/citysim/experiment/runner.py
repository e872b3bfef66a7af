"""
Experiment Runner: A/B testing, parameter sweeps, and batch execution.

Plays whole games without a player, optionally driving the city with a
strategy callable invoked before every tick, and collects per-day metrics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from citysim.core.city import City
from citysim.core.config import CityConfig
from citysim.core.economy import construction_cost
from citysim.core.outcome import (
    GameOverReason, calculate_score, day_limit_reached, game_over_reason,
)
from citysim.metrics.collector import DayMetrics, MetricsCollector

logger = logging.getLogger(__name__)

Strategy = Callable[[City], None]


@dataclass
class ExperimentResult:
    """Result of a single game run."""
    config: CityConfig
    days_run: int
    final_day: int
    final_families: int
    final_budget: int
    final_satisfaction: int
    score: int
    game_over: GameOverReason | None
    metrics: list[DayMetrics] = field(default_factory=list)
    summary: dict[str, Any] = field(default_factory=dict)


@dataclass
class ComparisonResult:
    """Result of comparing two or more runs."""
    results: dict[str, ExperimentResult]
    config_diffs: dict[str, Any]


class ExperimentRunner:
    """
    Run, compare, and sweep city games.
    """

    def run_experiment(
        self,
        config: CityConfig,
        days: int | None = None,
        strategy: Strategy | None = None,
        collect_metrics: bool = True,
    ) -> ExperimentResult:
        """
        Play one game and return results.

        With ``days`` set, runs that many ticks; otherwise runs until the
        day limit. Stops early on game over.
        """
        city = City.from_config(config)
        collector = MetricsCollector()
        reason: GameOverReason | None = None
        ticks = 0

        while True:
            if days is not None:
                if ticks >= days:
                    break
            elif city.day >= config.max_days:
                break

            if strategy is not None:
                strategy(city)
            city.advance_day()
            ticks += 1
            if collect_metrics:
                collector.collect(city)

            reason = game_over_reason(city, config)
            if reason is not None:
                break

        if reason is None and day_limit_reached(city, config):
            reason = GameOverReason.DAY_LIMIT

        logger.info(
            "Run '%s' ended on day %d after %d ticks (%s)",
            config.city_name, city.day, ticks,
            reason.value if reason else "running",
        )

        return ExperimentResult(
            config=config,
            days_run=ticks,
            final_day=city.day,
            final_families=city.families,
            final_budget=city.budget,
            final_satisfaction=city.satisfaction,
            score=calculate_score(city),
            game_over=reason,
            metrics=list(collector.metrics_history),
            summary=collector.summary(),
        )

    def compare_experiments(
        self,
        configs: dict[str, CityConfig],
        days: int | None = None,
        strategy: Strategy | None = None,
        collect_metrics: bool = True,
    ) -> ComparisonResult:
        """Run multiple games and compare results."""
        results: dict[str, ExperimentResult] = {}
        for name, config in configs.items():
            results[name] = self.run_experiment(config, days, strategy, collect_metrics)

        config_names = list(configs.keys())
        diffs: dict[str, Any] = {}
        if len(config_names) >= 2:
            base = configs[config_names[0]]
            for name in config_names[1:]:
                diffs[f"{config_names[0]}_vs_{name}"] = base.diff(configs[name])

        return ComparisonResult(results=results, config_diffs=diffs)

    def run_ab_test(
        self,
        config_a: CityConfig,
        config_b: CityConfig,
        label_a: str = "A",
        label_b: str = "B",
        days: int | None = None,
        strategy: Strategy | None = None,
    ) -> ComparisonResult:
        """Run an A/B test between two configurations."""
        return self.compare_experiments(
            {label_a: config_a, label_b: config_b},
            days=days,
            strategy=strategy,
        )

    def run_parameter_sweep(
        self,
        base_config: CityConfig,
        param_name: str,
        values: list[Any],
        days: int | None = None,
        strategy: Strategy | None = None,
    ) -> dict[str, ExperimentResult]:
        """
        Sweep a single parameter across multiple values.

        Args:
            base_config: Base configuration to modify
            param_name: Name of the parameter to sweep (field on CityConfig)
            values: List of values to test
            days: Ticks per run (default: until the day limit)
            strategy: Optional per-tick player strategy

        Returns:
            Dict mapping value label -> ExperimentResult
        """
        if param_name not in base_config.to_dict():
            raise KeyError(f"Unknown config parameter: '{param_name}'")

        results: dict[str, ExperimentResult] = {}
        for val in values:
            config_dict = base_config.to_dict()
            config_dict[param_name] = val
            config_dict["city_name"] = f"sweep_{param_name}={val}"
            config = CityConfig.from_dict(config_dict)

            label = f"{param_name}={val}"
            results[label] = self.run_experiment(config, days, strategy)

        return results

    def run_multi_seed(
        self,
        config: CityConfig,
        seeds: list[int],
        days: int | None = None,
        strategy: Strategy | None = None,
    ) -> list[ExperimentResult]:
        """Run the same configuration with multiple random seeds."""
        results: list[ExperimentResult] = []
        for seed in seeds:
            config_dict = config.to_dict()
            config_dict["random_seed"] = seed
            config_dict["city_name"] = f"{config.city_name}_seed{seed}"
            results.append(self.run_experiment(
                CityConfig.from_dict(config_dict), days, strategy, collect_metrics=False,
            ))
        return results


def build_when_affordable(kinds: list[str], reserve: int = 200) -> Strategy:
    """
    A simple strategy: cycle through ``kinds``, building the next one
    whenever the budget stays above ``reserve`` after paying for it.
    """
    state = {"next": 0}

    def strategy(city: City) -> None:
        if not kinds:
            return
        kind = kinds[state["next"] % len(kinds)]
        cost = construction_cost(kind, city.families)
        if city.budget - cost >= reserve:
            city.add_building(kind, cost)
            state["next"] += 1

    return strategy
