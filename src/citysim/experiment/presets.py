"""
Game presets: pre-configured city setups.

Each preset returns a CityConfig for a different starting situation or
policy, usable by the runner and the API.
"""

from __future__ import annotations

from typing import Callable

from citysim.core.config import CityConfig


def default() -> CityConfig:
    """Standard game: 10 families, $1000, normal difficulty."""
    return CityConfig(city_name="default")


def sandbox() -> CityConfig:
    """Richer start, no game over."""
    return CityConfig(city_name="sandbox", sandbox_mode=True)


def easy() -> CityConfig:
    """Income x1.2, expenses x0.8."""
    return CityConfig(city_name="easy", difficulty="easy")


def hard() -> CityConfig:
    """Income x0.8, expenses x1.2."""
    return CityConfig(city_name="hard", difficulty="hard")


def high_tax() -> CityConfig:
    """Heavy taxation: more revenue, unhappier citizens, fewer arrivals."""
    return CityConfig(
        city_name="high_tax",
        initial_tax_rate=0.25,
        initial_vat_rate=0.15,
    )


def low_tax() -> CityConfig:
    """Light taxation: thin revenue, happier citizens."""
    return CityConfig(
        city_name="low_tax",
        initial_tax_rate=0.05,
        initial_vat_rate=0.02,
    )


# Registry of all presets
PRESETS: dict[str, Callable[[], CityConfig]] = {
    "default": default,
    "sandbox": sandbox,
    "easy": easy,
    "hard": hard,
    "high_tax": high_tax,
    "low_tax": low_tax,
}


def get_preset(name: str) -> CityConfig:
    """Get a preset config by name."""
    if name not in PRESETS:
        raise KeyError(f"Unknown preset: '{name}'. Available: {list(PRESETS.keys())}")
    return PRESETS[name]()


def list_presets() -> list[str]:
    """Return list of available preset names."""
    return list(PRESETS.keys())
