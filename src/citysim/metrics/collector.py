"""
Metrics Collector: per-day statistics.

Records one ``DayMetrics`` row per tick from the city's accessors and the
last tick's reports. Provides time series extraction, export for
visualization and a run summary.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any

import numpy as np

from citysim.core.city import City
from citysim.core.outcome import calculate_score


@dataclass
class DayMetrics:
    """Metrics for a single day."""

    day: int
    families: int
    budget: int
    satisfaction: int

    # Economy
    daily_income: int
    daily_expenses: int
    net_income: int
    tax_rate: float
    vat_rate: float
    average_income: int
    employment_rate: float

    # Events
    event: str | None

    # Population
    arrivals: int
    departures: int
    evictions: int

    # Services
    coverage: dict[str, float]
    housing_occupancy: float
    building_count: int

    score: int

    building_counts: dict[str, int] = field(default_factory=dict)


class MetricsCollector:
    """Collects and aggregates metrics across days."""

    def __init__(self) -> None:
        self.metrics_history: list[DayMetrics] = []

    def collect(self, city: City) -> DayMetrics:
        """Record the city's state after a tick."""
        report = city.capacity()
        change = city.last_population_change
        event = city.last_event
        pool = city.family_pool

        metrics = DayMetrics(
            day=city.day,
            families=city.families,
            budget=city.budget,
            satisfaction=city.satisfaction,
            daily_income=city.daily_income,
            daily_expenses=city.daily_expenses,
            net_income=city.daily_income - city.daily_expenses,
            tax_rate=city.tax_rate,
            vat_rate=city.vat_rate,
            average_income=pool.average_income(),
            employment_rate=pool.employment_rate(),
            event=event.kind.value if event is not None else None,
            arrivals=change.arrivals if change else 0,
            departures=change.departures if change else 0,
            evictions=change.evictions if change else 0,
            coverage=report.ratios(),
            housing_occupancy=report.housing_occupancy,
            building_count=report.building_count,
            score=calculate_score(city),
            building_counts={k.value: v for k, v in city.building_counts.items()},
        )
        self.metrics_history.append(metrics)
        return metrics

    def get_time_series(self, field_name: str) -> list[Any]:
        """Extract a time series for a specific metric field."""
        if field_name not in {f.name for f in fields(DayMetrics)}:
            raise AttributeError(f"DayMetrics has no field '{field_name}'")
        return [getattr(m, field_name) for m in self.metrics_history]

    def export_for_visualization(self) -> list[dict[str, Any]]:
        """Export all metrics as a list of JSON-serializable dicts."""
        return [asdict(m) for m in self.metrics_history]

    def summary(self) -> dict[str, Any]:
        """Aggregate statistics over the recorded days."""
        if not self.metrics_history:
            return {
                "days": 0,
                "mean_satisfaction": 0.0,
                "mean_net_income": 0.0,
                "peak_families": 0,
                "final_score": 0,
                "event_counts": {},
            }

        history = self.metrics_history
        event_counts: dict[str, int] = {}
        for m in history:
            if m.event is not None:
                event_counts[m.event] = event_counts.get(m.event, 0) + 1

        return {
            "days": len(history),
            "mean_satisfaction": float(np.mean([m.satisfaction for m in history])),
            "mean_net_income": float(np.mean([m.net_income for m in history])),
            "peak_families": int(np.max([m.families for m in history])),
            "final_score": history[-1].score,
            "event_counts": event_counts,
        }
