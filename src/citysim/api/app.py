"""
FastAPI application factory for the CitySim API.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from citysim.api.sessions import SessionManager
from citysim.api.routers import simulation, city, metrics

# Load .env: project root first, then CWD
_project_root = Path(__file__).resolve().parents[3]  # src/citysim/api/app.py -> project root
load_dotenv(_project_root / ".env")
load_dotenv(Path.cwd() / ".env")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="CitySim API",
        description="REST API for the CitySim daily city simulation",
        version="0.1.0",
    )

    origins = os.environ.get("CITYSIM_CORS_ORIGINS", "*").split(",")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.session_manager = SessionManager()

    application.include_router(simulation.router, prefix="/api/simulation", tags=["simulation"])
    application.include_router(city.router, prefix="/api/city", tags=["city"])
    application.include_router(metrics.router, prefix="/api/metrics", tags=["metrics"])

    @application.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return application


app = create_app()
