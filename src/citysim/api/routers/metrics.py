"""Daily metrics endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from citysim.api.schemas import SummaryResponse, TimeSeriesResponse
from citysim.api.serializers import serialize_metrics

router = APIRouter()


def _get_collector(request: Request, session_id: str):
    mgr = request.app.state.session_manager
    try:
        return mgr.get_session(session_id).collector
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


@router.get("/{session_id}/days")
def get_days(
    session_id: str,
    request: Request,
    from_day: int = Query(0, ge=0),
    to_day: int | None = Query(None),
) -> list[dict[str, Any]]:
    """Recorded days with ``from_day <= day`` and, if given, ``day <= to_day``."""
    collector = _get_collector(request, session_id)
    return [
        serialize_metrics(m)
        for m in collector.metrics_history
        if m.day >= from_day and (to_day is None or m.day <= to_day)
    ]


@router.get("/{session_id}/time-series/{field_name}", response_model=TimeSeriesResponse)
def get_time_series(session_id: str, field_name: str, request: Request):
    collector = _get_collector(request, session_id)
    try:
        values = collector.get_time_series(field_name)
    except AttributeError:
        raise HTTPException(status_code=400, detail=f"Unknown metric field: '{field_name}'")

    return {
        "field": field_name,
        "days": collector.get_time_series("day"),
        "values": values,
    }


@router.get("/{session_id}/summary", response_model=SummaryResponse)
def get_summary(session_id: str, request: Request):
    collector = _get_collector(request, session_id)
    return collector.summary()
