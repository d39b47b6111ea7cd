"""Pytest configuration and shared fixtures."""

from typing import Iterable, List

import pytest

from montecarlo_sim.config import SimulationSettings
from montecarlo_sim.random_source import UnitIntervalRandom


class SequenceRandom:
    """Replays a fixed list of uniforms and records how many were consumed."""

    def __init__(self, values: Iterable[float]):
        self.values: List[float] = list(values)
        self.calls = 0

    def __call__(self) -> float:
        if self.calls >= len(self.values):
            raise AssertionError("SequenceRandom exhausted")
        value = self.values[self.calls]
        self.calls += 1
        return value


@pytest.fixture
def rng():
    """Seeded unit-interval random source."""
    return UnitIntervalRandom(12345)


@pytest.fixture
def make_rng():
    """Factory for seeded unit-interval random sources."""
    return UnitIntervalRandom


@pytest.fixture
def sequence_random():
    """Factory for random sources replaying given uniforms."""
    return SequenceRandom


@pytest.fixture
def small_settings():
    """Fast settings for engine and worker tests."""
    return SimulationSettings(iterations=500, years=5, seed=42)


@pytest.fixture
def sample_request():
    """Request mixing a stationary, a drifting and a path-dependent distribution."""
    return {
        "distributions": [
            {"id": "yield", "type": "Normal", "parameters": {"value": 100, "stdDev": 10}},
            {"id": "cost", "type": "Triangular",
             "parameters": {"min": 8, "mode": 10, "max": 15}},
            {"id": "price", "type": "GBM",
             "parameters": {"value": 50, "drift": 3, "volatility": 20}},
        ],
        "simulationSettings": {"iterations": 1000, "years": 5, "seed": 42},
    }
