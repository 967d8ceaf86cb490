"""2D boid flocking simulation on JAX."""

from flock2d.boids import BoidState, initialize_boids, make_state
from flock2d.config import (
    BoundaryOrder,
    CollisionPolicy,
    ConfigError,
    SimulationConfig,
    SpeedPolicy,
    default_config,
)
from flock2d.neighbors import BruteForceNeighbors, NeighborSearch
from flock2d.simulation import Simulation, tick, tick_jit
from flock2d.walls import Contact, Walls, WallSide, make_walls

__all__ = [
    'BoidState',
    'BoundaryOrder',
    'BruteForceNeighbors',
    'CollisionPolicy',
    'ConfigError',
    'Contact',
    'NeighborSearch',
    'Simulation',
    'SimulationConfig',
    'SpeedPolicy',
    'WallSide',
    'Walls',
    'default_config',
    'initialize_boids',
    'make_state',
    'make_walls',
    'tick',
    'tick_jit',
]
