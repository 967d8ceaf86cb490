"""Boid state, initialization and shared vector helpers."""

from typing import NamedTuple

import jax.numpy as jnp
from jax import random

from flock2d.config import SimulationConfig


class BoidState(NamedTuple):
    """State of the boid simulation."""
    positions: jnp.ndarray  # (N, 2)
    velocities: jnp.ndarray  # (N, 2)

    @property
    def num_boids(self) -> int:
        return self.positions.shape[0]


def make_state(positions, velocities) -> BoidState:
    """Build a state from anything array-like, as float32 (N, 2) arrays."""
    positions = jnp.asarray(positions, dtype=jnp.float32).reshape(-1, 2)
    velocities = jnp.asarray(velocities, dtype=jnp.float32).reshape(-1, 2)
    if positions.shape != velocities.shape:
        raise ValueError(
            f"positions {positions.shape} and velocities {velocities.shape} must have the same shape"
        )
    return BoidState(positions=positions, velocities=velocities)


def initialize_boids(key: random.PRNGKey, config: SimulationConfig) -> BoidState:
    """Initialize boid positions and headings.

    Positions are uniform over the part of the arena a boid can occupy
    without touching a wall. Every boid starts at ``config.initial_speed``,
    either along ``config.initial_heading`` or along a random angle when the
    heading is ``None``.

    Args:
        key: JAX random key
        config: Simulation configuration

    Returns:
        Initial boid state
    """
    key_pos, key_vel = random.split(key)

    inset = config.wall_thickness / 2 + config.boid_size / 2
    lo = jnp.array([config.left + inset, config.bottom + inset])
    hi = jnp.array([config.right - inset, config.top - inset])
    # A very small arena still gets a valid (collapsed) placement range
    hi = jnp.maximum(hi, lo)

    positions = random.uniform(
        key_pos,
        shape=(config.num_boids, 2),
        minval=lo,
        maxval=hi,
    )

    if config.initial_heading is None:
        angles = random.uniform(key_vel, shape=(config.num_boids,), minval=0, maxval=2 * jnp.pi)
        headings = jnp.stack([jnp.cos(angles), jnp.sin(angles)], axis=1)
    else:
        heading = safe_normalize(jnp.array(config.initial_heading, dtype=jnp.float32))
        headings = jnp.tile(heading, (config.num_boids, 1))

    velocities = headings * config.initial_speed

    return BoidState(positions=positions, velocities=velocities)


def norm(vectors: jnp.ndarray) -> jnp.ndarray:
    """Euclidean length along the last axis, keeping that axis."""
    return jnp.sqrt(jnp.sum(vectors * vectors, axis=-1, keepdims=True))


def safe_normalize(vectors: jnp.ndarray) -> jnp.ndarray:
    """Scale vectors to unit length; zero-length vectors map to zero.

    Args:
        vectors: Input vectors (..., 2)

    Returns:
        Unit vectors (..., 2), exactly zero where the input was zero
    """
    magnitudes = norm(vectors)
    nonzero = magnitudes > 0
    return jnp.where(nonzero, vectors / jnp.where(nonzero, magnitudes, 1.0), 0.0)


def clamp_magnitude(vectors: jnp.ndarray, max_mag: float) -> jnp.ndarray:
    """Clamp vector lengths into [0, max_mag], preserving direction.

    Args:
        vectors: Input vectors (N, 2)
        max_mag: Maximum magnitude; non-positive values yield zero vectors

    Returns:
        Limited vectors (N, 2)
    """
    max_mag = max(float(max_mag), 0.0)
    speeds = jnp.minimum(norm(vectors), max_mag)
    return safe_normalize(vectors) * speeds


def set_magnitude(vectors: jnp.ndarray, mag: float) -> jnp.ndarray:
    """Rescale every non-zero vector to exactly ``mag`` (zero stays zero)."""
    return safe_normalize(vectors) * max(float(mag), 0.0)
