#!/usr/bin/env python3
"""Play a baseline CitySim game with a simple build strategy and print results."""

from citysim.core.config import CityConfig
from citysim.experiment.runner import ExperimentRunner, build_when_affordable


def main():
    config = CityConfig(
        city_name="baseline",
        initial_families=10,
        initial_budget=1000,
        max_days=60,
        random_seed=42,
    )

    print(f"=== CitySim: {config.city_name} ===")
    print(f"Difficulty: {config.difficulty}")
    print(f"Families: {config.initial_families}  Budget: ${config.initial_budget}")
    print(f"Taxes: {config.initial_tax_rate:.0%} income, {config.initial_vat_rate:.0%} VAT")
    print()

    strategy = build_when_affordable(
        ["Commercial", "Residential", "Park", "School", "Hospital"], reserve=300,
    )
    result = ExperimentRunner().run_experiment(config, strategy=strategy)

    print(f"{'Day':>4} {'Fam':>4} {'Budget':>7} {'Sat':>4} {'Inc':>5} {'Exp':>5} "
          f"{'Arr':>4} {'Dep':>4} {'Bldg':>4}  Event")
    print("-" * 72)

    for m in result.metrics:
        print(
            f"{m.day:4d} {m.families:4d} {m.budget:7d} {m.satisfaction:4d} "
            f"{m.daily_income:5d} {m.daily_expenses:5d} "
            f"{m.arrivals:4d} {m.departures:4d} {m.building_count:4d}  "
            f"{m.event or ''}"
        )

    print()
    print(f"=== Final State (Day {result.final_day}) ===")
    print(f"Families: {result.final_families}")
    print(f"Budget: ${result.final_budget}")
    print(f"Satisfaction: {result.final_satisfaction}%")
    print(f"Score: {result.score}")
    if result.game_over is not None:
        print(f"Game over: {result.game_over.message}")

    if result.summary["event_counts"]:
        print("\nEvents:")
        for kind, count in sorted(result.summary["event_counts"].items()):
            print(f"  {kind:20s}: {count:3d}")

    if result.metrics:
        print("\nBuildings:")
        for kind, count in result.metrics[-1].building_counts.items():
            if count:
                print(f"  {kind:20s}: {count:3d}")


if __name__ == "__main__":
    main()
