"""
Pydantic models for API request/response validation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any


# === Simulation ===

class CreateSessionRequest(BaseModel):
    config: dict[str, Any] | None = None
    preset: str | None = None
    name: str | None = None


class StepRequest(BaseModel):
    n: int = Field(1, ge=1, le=1000)


class SessionSummary(BaseModel):
    id: str
    name: str
    status: str
    day: int
    max_days: int
    families: int
    budget: int
    satisfaction: int


class SessionResponse(SessionSummary):
    game_over: str | None
    config: dict[str, Any]


# === City ===

class BuildRequest(BaseModel):
    kind: str


class TaxRequest(BaseModel):
    tax_rate: float | None = None
    vat_rate: float | None = None


class BuildingResponse(BaseModel):
    id: int
    kind: str
    capacity: int
    upkeep: int
    occupancy: int


class BuildResponse(BaseModel):
    building: BuildingResponse
    cost: int
    budget: int


class CatalogEntry(BaseModel):
    kind: str
    capacity: int
    upkeep: int
    satisfaction_impact: int
    education_capacity: int
    healthcare_capacity: int
    utility_capacity: int
    description: str
    cost: int


class ScoreResponse(BaseModel):
    score: int
    families: int
    budget: int
    satisfaction: int
    game_over: str | None


class EventLogResponse(BaseModel):
    day: int
    entries: list[str]


# === Metrics ===

class SummaryResponse(BaseModel):
    days: int
    mean_satisfaction: float
    mean_net_income: float
    peak_families: int
    final_score: int
    event_counts: dict[str, int]


class TimeSeriesResponse(BaseModel):
    field: str
    days: list[int]
    values: list[Any]
