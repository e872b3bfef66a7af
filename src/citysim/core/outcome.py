"""
Scoring and game-over policy. Reads the city through its accessors only.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from citysim.core.city import City
    from citysim.core.config import CityConfig


class GameOverReason(str, Enum):
    BANKRUPT = "bankrupt"
    ABANDONED = "abandoned"
    DAY_LIMIT = "day_limit"

    @property
    def message(self) -> str:
        return {
            GameOverReason.BANKRUPT: "The city went bankrupt.",
            GameOverReason.ABANDONED: "All families have left the city.",
            GameOverReason.DAY_LIMIT: "The day limit was reached.",
        }[self]


def calculate_score(city: City) -> int:
    """``families x 50 + budget // 20 + satisfaction x 2``."""
    return city.families * 50 + city.budget // 20 + city.satisfaction * 2


def game_over_reason(city: City, config: CityConfig | None = None) -> GameOverReason | None:
    """Why the game ended, or ``None`` while it goes on. Sandbox games never end."""
    config = config or city.config
    if config.sandbox_mode:
        return None
    if city.budget < 0:
        return GameOverReason.BANKRUPT
    if city.families <= 0:
        return GameOverReason.ABANDONED
    return None


def day_limit_reached(city: City, config: CityConfig | None = None) -> bool:
    config = config or city.config
    return not config.sandbox_mode and city.day >= config.max_days


_STATUS_LEVELS = (
    (1.0, "OPTIMAL"),
    (0.9, "GOOD"),
    (0.7, "ADEQUATE"),
    (0.5, "LOW"),
    (0.3, "CRITICAL"),
)


def capacity_status(ratio: float) -> str:
    """Label a coverage ratio."""
    for threshold, label in _STATUS_LEVELS:
        if ratio >= threshold:
            return label
    return "SEVERE SHORTAGE"
