"""Flocking force model: alignment, separation, cohesion and wall softening.

Every function here reads one snapshot of the flock and returns fresh
arrays, so a boid's new velocity never depends on another boid's new
velocity from the same tick.
"""

import jax.numpy as jnp

from flock2d.boids import clamp_magnitude, safe_normalize, set_magnitude
from flock2d.config import SimulationConfig, SpeedPolicy
from flock2d.neighbors import BruteForceNeighbors, NeighborSearch

# Floor for the squared wall distance, keeps float32 from overflowing
MIN_WALL_DISTANCE_SQ = 1e-6

# Unit vector into the arena from each wall row (LEFT, RIGHT, BOTTOM, TOP)
_WALL_INWARD = jnp.array([
    [1.0, 0.0],
    [-1.0, 0.0],
    [0.0, 1.0],
    [0.0, -1.0],
])


def alignment_force(velocities: jnp.ndarray, mask: jnp.ndarray, config: SimulationConfig) -> jnp.ndarray:
    """Steer each heading toward its neighbors' headings.

    Sums ``k_align * (normalize(v_j) - normalize(v_i))`` over neighbors j.

    Args:
        velocities: Boid velocities (N, 2)
        mask: Neighbor mask (N, N)
        config: Simulation configuration

    Returns:
        Alignment terms (N, 2)
    """
    weights = mask.astype(velocities.dtype)
    headings = safe_normalize(velocities)
    counts = jnp.sum(weights, axis=1, keepdims=True)
    return config.alignment_gain * (weights @ headings - counts * headings)


def separation_force(positions: jnp.ndarray, mask: jnp.ndarray, config: SimulationConfig) -> jnp.ndarray:
    """Push each boid away from its neighbors, inverse-square in distance.

    Args:
        positions: Boid positions (N, 2)
        mask: Neighbor mask (N, N)
        config: Simulation configuration

    Returns:
        Separation terms (N, 2)
    """
    # Points from neighbor j to boid i
    diff = positions[:, None, :] - positions[None, :, :]  # (N, N, 2)
    dist_sq = jnp.sum(diff * diff, axis=-1)
    dist_sq_safe = jnp.where(mask, dist_sq, 1.0)

    repulsion = safe_normalize(diff) / dist_sq_safe[:, :, None]
    repulsion = jnp.where(mask[:, :, None], repulsion, 0.0)

    return config.separation_gain * jnp.sum(repulsion, axis=1)


def cohesion_force(positions: jnp.ndarray, mask: jnp.ndarray, config: SimulationConfig) -> jnp.ndarray:
    """Pull each boid toward the centroid of its neighbors.

    The pull grows with the squared distance to the centroid. Boids without
    neighbors get exactly zero.

    Args:
        positions: Boid positions (N, 2)
        mask: Neighbor mask (N, N)
        config: Simulation configuration

    Returns:
        Cohesion terms (N, 2)
    """
    weights = mask.astype(positions.dtype)
    counts = jnp.sum(weights, axis=1, keepdims=True)

    centroid = (weights @ positions) / jnp.maximum(counts, 1.0)
    to_centroid = centroid - positions
    spread = jnp.sum(to_centroid * to_centroid, axis=-1, keepdims=True)

    force = config.cohesion_gain * spread * safe_normalize(to_centroid)
    return jnp.where(counts > 0, force, 0.0)


def wall_force(positions: jnp.ndarray, wall_centers: jnp.ndarray, config: SimulationConfig) -> jnp.ndarray:
    """Inverse-square pull toward each wall's inner face.

    The caller subtracts this term, which turns it into a push into the
    arena. A boid on or beyond a face gets the strongest push, still
    pointing inward.

    Args:
        positions: Boid positions (N, 2)
        wall_centers: Wall centres (4, 2), rows in WallSide order
        config: Simulation configuration

    Returns:
        Wall terms (N, 2)
    """
    axes = jnp.abs(_WALL_INWARD)
    inward = jnp.sum(_WALL_INWARD, axis=1)  # (4,)
    faces = jnp.sum(wall_centers * axes, axis=1) + inward * config.wall_thickness / 2

    # How far each boid sits inside each face, negative once it is past it
    clearance = (positions @ axes.T - faces[None, :]) * inward[None, :]  # (N, 4)
    dist_sq = jnp.maximum(jnp.maximum(clearance, 0.0) ** 2, MIN_WALL_DISTANCE_SQ)

    strength = config.wall_force_scale / dist_sq
    return -(strength @ _WALL_INWARD)


def apply_speed_policy(velocities: jnp.ndarray, config: SimulationConfig) -> jnp.ndarray:
    """Bring candidate velocities under the configured speed rule."""
    if config.speed_policy is SpeedPolicy.CONSTANT:
        return set_magnitude(velocities, config.max_speed)
    return clamp_magnitude(velocities, config.max_speed)


def compute_velocities(positions: jnp.ndarray, velocities: jnp.ndarray, wall_centers: jnp.ndarray,
                       config: SimulationConfig,
                       neighbors: NeighborSearch = BruteForceNeighbors()) -> jnp.ndarray:
    """Compute every boid's next velocity from the current snapshot.

    Args:
        positions: Boid positions (N, 2)
        velocities: Boid velocities (N, 2)
        wall_centers: Wall centres (4, 2)
        config: Simulation configuration
        neighbors: Neighbor search capability

    Returns:
        New velocities (N, 2)
    """
    mask = neighbors.pairs(positions, config.vision_radius)

    candidate = (
        velocities
        + alignment_force(velocities, mask, config)
        + separation_force(positions, mask, config)
        + cohesion_force(positions, mask, config)
        - wall_force(positions, wall_centers, config)
    )

    return apply_speed_policy(candidate, config)
