"""Session management endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from citysim.api.schemas import (
    CreateSessionRequest,
    SessionResponse,
    SessionSummary,
    StepRequest,
)
from citysim.api.serializers import serialize_session
from citysim.api.sessions import SessionFinished
from citysim.core.config import CityConfig
from citysim.experiment.presets import get_preset

router = APIRouter()


@router.post("/sessions", response_model=SessionResponse)
def create_session(req: CreateSessionRequest, request: Request):
    mgr = request.app.state.session_manager

    config = None
    try:
        if req.preset:
            config = get_preset(req.preset)
        elif req.config:
            config = CityConfig.from_dict(req.config)
        session = mgr.create_session(config=config, name=req.name)
    except KeyError as exc:
        raise HTTPException(status_code=400, detail=str(exc.args[0]))
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid config: {exc}")
    return serialize_session(session)


@router.get("/sessions", response_model=list[SessionSummary])
def list_sessions(request: Request):
    mgr = request.app.state.session_manager
    return mgr.list_sessions()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return serialize_session(session)


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        mgr.delete_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {"deleted": True}


@router.post("/sessions/{session_id}/step", response_model=SessionResponse)
def step_session(session_id: str, req: StepRequest, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.step(session_id, req.n)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    except SessionFinished as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return serialize_session(session)


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
def reset_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.reset_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return serialize_session(session)
