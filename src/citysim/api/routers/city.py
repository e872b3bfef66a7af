"""City inspection and player action endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from citysim.api.schemas import (
    BuildRequest,
    BuildResponse,
    CatalogEntry,
    EventLogResponse,
    ScoreResponse,
    TaxRequest,
)
from citysim.api.serializers import (
    serialize_building,
    serialize_catalog,
    serialize_city,
)
from citysim.api.sessions import InsufficientBudget, SessionFinished
from citysim.core.buildings import UnknownBuildingKind
from citysim.core.outcome import calculate_score

router = APIRouter()


def _get_session(request: Request, session_id: str):
    mgr = request.app.state.session_manager
    try:
        return mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.get("/catalog", response_model=list[CatalogEntry])
def get_catalog(families: int = Query(0, ge=0)):
    """Building kinds with their construction cost for a city of ``families``."""
    return serialize_catalog(families)


@router.get("/{session_id}")
def get_city(session_id: str, request: Request) -> dict[str, Any]:
    session = _get_session(request, session_id)
    return serialize_city(session.city)


@router.get("/{session_id}/log", response_model=EventLogResponse)
def get_log(
    session_id: str,
    request: Request,
    limit: int | None = Query(None, ge=1),
):
    city = _get_session(request, session_id).city
    entries = city.recent_events(limit) if limit is not None else city.event_log
    return {"day": city.day, "entries": list(entries)}


@router.post("/{session_id}/buildings", response_model=BuildResponse)
def build(session_id: str, req: BuildRequest, request: Request):
    mgr = request.app.state.session_manager
    try:
        session, building, cost = mgr.build(session_id, req.kind)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    except UnknownBuildingKind as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (InsufficientBudget, SessionFinished) as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {
        "building": serialize_building(building),
        "cost": cost,
        "budget": session.city.budget,
    }


@router.put("/{session_id}/taxes")
def set_taxes(session_id: str, req: TaxRequest, request: Request) -> dict[str, Any]:
    mgr = request.app.state.session_manager
    try:
        session = mgr.set_taxes(session_id, req.tax_rate, req.vat_rate)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    except SessionFinished as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    city = session.city
    return {
        "tax_rate": city.tax_rate,
        "vat_rate": city.vat_rate,
        "satisfaction": city.satisfaction,
    }


@router.get("/{session_id}/score", response_model=ScoreResponse)
def get_score(session_id: str, request: Request):
    session = _get_session(request, session_id)
    city = session.city
    return {
        "score": calculate_score(city),
        "families": city.families,
        "budget": city.budget,
        "satisfaction": city.satisfaction,
        "game_over": session.game_over.value if session.game_over else None,
    }
