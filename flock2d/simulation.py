"""Per-tick update and a headless fixed-timestep driver."""

import logging
from typing import NamedTuple, Optional, Tuple

import jax
import jax.numpy as jnp
import numpy as np
from jax import random

from flock2d.boids import BoidState, initialize_boids, safe_normalize
from flock2d.config import BoundaryOrder, SimulationConfig
from flock2d.forces import compute_velocities
from flock2d.neighbors import BruteForceNeighbors, NeighborSearch
from flock2d.walls import Walls, make_walls, resolve_collisions

logger = logging.getLogger(__name__)


def integrate(positions: jnp.ndarray, velocities: jnp.ndarray, dt: float) -> jnp.ndarray:
    """Advance positions by one explicit Euler step."""
    return positions + velocities * dt


def tick(state: BoidState, walls: Walls, config: SimulationConfig,
         neighbors: NeighborSearch = BruteForceNeighbors()) -> Tuple[BoidState, jnp.ndarray]:
    """Update boid positions and velocities for one time step.

    All new velocities are computed from ``state`` before anything is
    written, so the result does not depend on boid order.

    Args:
        state: Current boid state
        walls: Arena walls
        config: Simulation configuration
        neighbors: Neighbor search capability

    Returns:
        Tuple of (next state, per-boid wall contact counts (N,) int32)
    """
    positions = state.positions
    velocities = compute_velocities(positions, state.velocities, walls.centers, config, neighbors)

    if config.boundary_order is BoundaryOrder.COLLIDE_FIRST:
        positions, velocities, contacts = resolve_collisions(positions, velocities, walls, config,
                                                          lookahead=config.tick_duration)
        positions = integrate(positions, velocities, config.tick_duration)
    else:
        positions = integrate(positions, velocities, config.tick_duration)
        positions, velocities, contacts = resolve_collisions(positions, velocities, walls, config)

    return BoidState(positions=positions, velocities=velocities), contacts


# JIT compile the tick function for performance
tick_jit = jax.jit(tick, static_argnames=['config', 'neighbors'])


class FlockSummary(NamedTuple):
    """Diagnostics for one moment of a run."""
    tick: int
    mean_speed: float
    polarization: float  # 1 = all boids share a heading, ~0 = disordered
    total_contacts: int


def flock_summary(state: BoidState) -> Tuple[float, float]:
    """Mean speed and polarization of a flock; (0, 0) when it is empty."""
    velocities = np.asarray(state.velocities)
    if len(velocities) == 0:
        return 0.0, 0.0
    speeds = np.linalg.norm(velocities, axis=1)
    headings = np.asarray(safe_normalize(state.velocities))
    polarization = np.linalg.norm(headings.mean(axis=0))
    return float(speeds.mean()), float(polarization)


class Simulation:
    """Headless driver that owns the flock and steps it at a fixed rate."""

    def __init__(self, config: SimulationConfig, seed: int = 0, state: Optional[BoidState] = None,
                 neighbors: NeighborSearch = BruteForceNeighbors()):
        self.config = config
        self.neighbors = neighbors
        self.walls = make_walls(config)
        self.state = state if state is not None else initialize_boids(random.PRNGKey(seed), config)
        self.tick_count = 0
        self.total_contacts = 0
        self._accumulator = 0.0

        logger.info("Simulation ready: %d boids, %s speed, %s collisions, %s",
                    self.state.num_boids, config.speed_policy.value,
                    config.collision_policy.value, config.boundary_order.value)

    def step(self) -> int:
        """Run one tick; return the number of wall contacts it produced."""
        self.state, contacts = tick_jit(self.state, self.walls, self.config, self.neighbors)
        self.tick_count += 1

        count = int(jnp.sum(contacts))
        if count:
            logger.debug("tick %d: %d wall contacts", self.tick_count, count)
        self.total_contacts += count
        return count

    def run(self, num_ticks: int) -> BoidState:
        for _ in range(num_ticks):
            self.step()
        return self.state

    def advance(self, elapsed: float) -> int:
        """Feed wall-clock time in; run as many whole ticks as fit.

        Leftover time is carried into the next call.

        Returns:
            Number of ticks run
        """
        if elapsed < 0:
            raise ValueError(f"elapsed time must be non-negative (got {elapsed})")
        self._accumulator += elapsed
        steps = int(self._accumulator // self.config.tick_duration)
        self._accumulator -= steps * self.config.tick_duration
        self.run(steps)
        return steps

    def summary(self) -> FlockSummary:
        mean_speed, polarization = flock_summary(self.state)
        return FlockSummary(
            tick=self.tick_count,
            mean_speed=mean_speed,
            polarization=polarization,
            total_contacts=self.total_contacts,
        )
