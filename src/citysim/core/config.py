"""
Master configuration for a CitySim game.

Every setup parameter of a game lives here. Formula constants of the daily
engine live next to the code that uses them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

# Difficulty presets: name -> (income multiplier, expense multiplier)
DIFFICULTY_MULTIPLIERS: dict[str, tuple[float, float]] = {
    "easy": (1.2, 0.8),
    "normal": (1.0, 1.0),
    "hard": (0.8, 1.2),
}

SANDBOX_INITIAL_FAMILIES = 20
SANDBOX_INITIAL_BUDGET = 10000

_INT_FIELDS = ("initial_families", "initial_budget", "max_days")
_RATE_FIELDS = ("initial_tax_rate", "initial_vat_rate")


@dataclass
class CityConfig:
    """
    Game configuration.

    Use ``to_dict()`` / ``from_dict()`` for serialization and comparison.
    """

    # === Identity ===
    city_name: str = "default"
    random_seed: int | None = None

    # === Founding ===
    initial_families: int = 10
    initial_budget: int = 1000
    initial_tax_rate: float = 0.10
    initial_vat_rate: float = 0.05

    # === Game rules ===
    difficulty: str = "normal"  # 'easy', 'normal', 'hard'
    sandbox_mode: bool = False  # No game over, richer start
    max_days: int = 100

    def __post_init__(self) -> None:
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        for name in _RATE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
        if not isinstance(self.city_name, str):
            raise ValueError(f"city_name must be a string, got {self.city_name!r}")
        if not isinstance(self.sandbox_mode, bool):
            raise ValueError(f"sandbox_mode must be a boolean, got {self.sandbox_mode!r}")
        if self.random_seed is not None and (
            isinstance(self.random_seed, bool)
            or not isinstance(self.random_seed, int)
            or self.random_seed < 0
        ):
            raise ValueError(
                f"random_seed must be a non-negative integer or None, got {self.random_seed!r}"
            )
        if self.max_days < 1:
            raise ValueError(f"max_days must be at least 1, got {self.max_days}")
        if not isinstance(self.difficulty, str):
            raise ValueError(f"difficulty must be a string, got {self.difficulty!r}")

        self.difficulty = self.difficulty.lower()
        if self.difficulty not in DIFFICULTY_MULTIPLIERS:
            raise ValueError(
                f"Unknown difficulty '{self.difficulty}', "
                f"expected one of {sorted(DIFFICULTY_MULTIPLIERS)}"
            )

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------
    @property
    def income_multiplier(self) -> float:
        return DIFFICULTY_MULTIPLIERS[self.difficulty][0]

    @property
    def expense_multiplier(self) -> float:
        return DIFFICULTY_MULTIPLIERS[self.difficulty][1]

    @property
    def effective_initial_families(self) -> int:
        """Founding families, taking sandbox mode into account."""
        return SANDBOX_INITIAL_FAMILIES if self.sandbox_mode else self.initial_families

    @property
    def effective_initial_budget(self) -> int:
        """Founding budget, taking sandbox mode into account."""
        return SANDBOX_INITIAL_BUDGET if self.sandbox_mode else self.initial_budget

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CityConfig:
        """Deserialize from a dict."""
        return cls(**{k: v for k, v in d.items() if not k.startswith("_")})

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> CityConfig:
        return cls.from_dict(json.loads(s))

    def diff(self, other: CityConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs
