"""Shared fixtures for the flocking tests."""

import pytest

from flock2d.config import SimulationConfig
from flock2d.neighbors import BruteForceNeighbors
from flock2d.walls import make_walls


@pytest.fixture
def config():
    """Default arena with wall softening and cohesion switched off."""
    return SimulationConfig(wall_force_scale=0.0, cohesion_gain=0.0)


@pytest.fixture
def walls(config):
    return make_walls(config)


@pytest.fixture
def neighbors():
    return BruteForceNeighbors()
