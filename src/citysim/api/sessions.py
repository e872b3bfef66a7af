"""
In-memory session manager for city games.

Each session wraps a City + MetricsCollector and supports step-by-step
play. All mutating calls on a manager are serialized by one lock; the
city itself is not safe for concurrent callers.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any

from citysim.core.buildings import Building, BuildingKind, resolve_kind
from citysim.core.city import City
from citysim.core.config import CityConfig
from citysim.core.economy import construction_cost
from citysim.core.outcome import GameOverReason, day_limit_reached, game_over_reason
from citysim.metrics.collector import MetricsCollector

logger = logging.getLogger(__name__)

FINISHED_STATUSES = frozenset({"game_over", "completed"})


class InsufficientBudget(Exception):
    """A build request costs more than the city can pay."""

    def __init__(self, kind: BuildingKind, cost: int, budget: int):
        super().__init__(
            f"Cannot afford {kind.value}: costs ${cost}, budget is ${budget}"
        )
        self.kind = kind
        self.cost = cost
        self.budget = budget


class SessionFinished(Exception):
    """The session's game has ended and accepts no more actions."""


@dataclass
class CitySession:
    """A running or finished game."""

    id: str
    name: str
    config: CityConfig
    city: City
    collector: MetricsCollector
    status: str = "created"  # created | running | game_over | completed
    game_over: GameOverReason | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES


class SessionManager:
    """Manages multiple city sessions in memory."""

    def __init__(self) -> None:
        self.sessions: dict[str, CitySession] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def create_session(
        self,
        config: CityConfig | None = None,
        name: str | None = None,
    ) -> CitySession:
        """Found a new city."""
        if config is None:
            config = CityConfig()

        session_id = uuid.uuid4().hex[:8]
        session = CitySession(
            id=session_id,
            name=name or config.city_name,
            config=config,
            city=City.from_config(config),
            collector=MetricsCollector(),
        )
        with self._lock:
            self.sessions[session_id] = session
        logger.info(
            "Created session %s (%s, difficulty=%s, sandbox=%s)",
            session_id, session.name, config.difficulty, config.sandbox_mode,
        )
        return session

    def get_session(self, session_id: str) -> CitySession:
        """Get a session by ID. Raises KeyError if not found."""
        try:
            return self.sessions[session_id]
        except KeyError:
            raise KeyError(f"Session '{session_id}' not found") from None

    def list_sessions(self) -> list[dict[str, Any]]:
        """List all sessions as summary dicts."""
        return [
            {
                "id": s.id,
                "name": s.name,
                "status": s.status,
                "day": s.city.day,
                "max_days": s.config.max_days,
                "families": s.city.families,
                "budget": s.city.budget,
                "satisfaction": s.city.satisfaction,
            }
            for s in self.sessions.values()
        ]

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            if session_id not in self.sessions:
                raise KeyError(f"Session '{session_id}' not found")
            del self.sessions[session_id]
        logger.info("Deleted session %s", session_id)

    def reset_session(self, session_id: str) -> CitySession:
        """Refound the city from the session's config."""
        with self._lock:
            session = self.get_session(session_id)
            session.city = City.from_config(session.config)
            session.collector = MetricsCollector()
            session.status = "created"
            session.game_over = None
        return session

    # ------------------------------------------------------------------
    # Play
    # ------------------------------------------------------------------
    def step(self, session_id: str, n: int = 1) -> CitySession:
        """Advance a session by up to N days, stopping when the game ends."""
        with self._lock:
            session = self.get_session(session_id)
            self._ensure_active(session)
            session.status = "running"

            for _ in range(n):
                session.city.advance_day()
                session.collector.collect(session.city)
                if self._check_end(session):
                    break
        return session

    def build(
        self, session_id: str, kind: BuildingKind | str,
    ) -> tuple[CitySession, Building, int]:
        """
        Construct a building at the current construction cost.

        Raises UnknownBuildingKind, InsufficientBudget or SessionFinished.
        """
        with self._lock:
            session = self.get_session(session_id)
            self._ensure_active(session)
            kind = resolve_kind(kind)
            city = session.city
            cost = construction_cost(kind, city.families)
            if cost > city.budget:
                logger.warning(
                    "Session %s: rejected %s costing $%d with budget $%d",
                    session_id, kind.value, cost, city.budget,
                )
                raise InsufficientBudget(kind, cost, city.budget)
            building = city.add_building(kind, cost)
        return session, building, cost

    def set_taxes(
        self,
        session_id: str,
        tax_rate: float | None = None,
        vat_rate: float | None = None,
    ) -> CitySession:
        """Change the income tax and/or VAT rate; values are clamped."""
        with self._lock:
            session = self.get_session(session_id)
            self._ensure_active(session)
            if tax_rate is not None:
                session.city.set_tax_rate(tax_rate)
            if vat_rate is not None:
                session.city.set_vat_rate(vat_rate)
        return session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _ensure_active(session: CitySession) -> None:
        if session.is_finished:
            raise SessionFinished(
                f"Session '{session.id}' has ended ({session.game_over.value})"
            )

    @staticmethod
    def _check_end(session: CitySession) -> bool:
        """Update the session status; return True when the game has ended."""
        reason = game_over_reason(session.city, session.config)
        if reason is not None:
            session.status = "game_over"
        elif day_limit_reached(session.city, session.config):
            reason = GameOverReason.DAY_LIMIT
            session.status = "completed"
        else:
            return False

        session.game_over = reason
        logger.info(
            "Session %s ended on day %d: %s",
            session.id, session.city.day, reason.value,
        )
        return True
