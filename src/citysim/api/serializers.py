"""
Serializers for converting city objects to JSON-safe dicts.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from citysim.api.sessions import CitySession
from citysim.core.buildings import BUILDING_CATALOG, Building
from citysim.core.city import City
from citysim.core.economy import construction_cost
from citysim.core.outcome import capacity_status
from citysim.metrics.collector import DayMetrics


def serialize_session(session: CitySession) -> dict[str, Any]:
    city = session.city
    return {
        "id": session.id,
        "name": session.name,
        "status": session.status,
        "day": city.day,
        "max_days": session.config.max_days,
        "families": city.families,
        "budget": city.budget,
        "satisfaction": city.satisfaction,
        "game_over": session.game_over.value if session.game_over else None,
        "config": session.config.to_dict(),
    }


def serialize_building(building: Building) -> dict[str, Any]:
    return {
        "id": building.id,
        "kind": building.kind.value,
        "capacity": building.capacity,
        "upkeep": building.upkeep,
        "occupancy": building.occupancy,
    }


def serialize_catalog(families: int) -> list[dict[str, Any]]:
    """Every building kind with its construction cost at ``families``."""
    return [
        {
            "kind": kind.value,
            "capacity": spec.capacity,
            "upkeep": spec.upkeep,
            "satisfaction_impact": spec.satisfaction_impact,
            "education_capacity": spec.education_capacity,
            "healthcare_capacity": spec.healthcare_capacity,
            "utility_capacity": spec.utility_capacity,
            "description": spec.description,
            "cost": construction_cost(kind, families),
        }
        for kind, spec in BUILDING_CATALOG.items()
    ]


def serialize_city(city: City) -> dict[str, Any]:
    """Full city view: state, economy, services and buildings."""
    report = city.capacity()
    capacities = {
        "jobs": report.total_jobs,
        "education": report.education,
        "healthcare": report.healthcare,
        "water": report.water,
        "power": report.power,
    }
    services = {
        name: {
            "capacity": capacities[name],
            "ratio": round(ratio, 4),
            "status": capacity_status(ratio),
        }
        for name, ratio in report.ratios().items()
    }
    event = city.last_event
    return {
        "day": city.day,
        "budget": city.budget,
        "satisfaction": city.satisfaction,
        "families": city.families,
        "tax_rate": city.tax_rate,
        "vat_rate": city.vat_rate,
        "daily_income": city.daily_income,
        "daily_expenses": city.daily_expenses,
        "average_income": city.family_pool.average_income(),
        "employment_rate": round(city.family_pool.employment_rate(), 4),
        "housing": {
            "capacity": report.housing,
            "available": report.available_housing,
            "occupancy": round(report.housing_occupancy, 4),
        },
        "services": services,
        "building_counts": {k.value: v for k, v in city.building_counts.items()},
        "buildings": [serialize_building(b) for b in city.buildings],
        "last_event": event.to_dict() if event is not None else None,
    }


def serialize_metrics(metrics: DayMetrics) -> dict[str, Any]:
    d = asdict(metrics)
    d["coverage"] = {k: round(float(v), 4) for k, v in metrics.coverage.items()}
    d["housing_occupancy"] = round(float(metrics.housing_occupancy), 4)
    d["employment_rate"] = round(float(metrics.employment_rate), 4)
    return d
