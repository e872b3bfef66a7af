"""
Shared test configuration.

Every city in the tests gets a seeded generator so runs are reproducible.
"""

import numpy as np
import pytest

from citysim.core.city import City


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def make_city():
    """Factory for seeded cities: ``make_city(families, budget, seed=...)``."""
    def _make(initial_families=10, initial_budget=1000, seed=42, **kwargs):
        return City(
            initial_families,
            initial_budget,
            rng=np.random.default_rng(seed),
            **kwargs,
        )
    return _make


@pytest.fixture
def city(make_city):
    return make_city()
