"""Neighbor search for the flocking rules.

The force model only ever asks a ``NeighborSearch`` for the pairwise
visibility mask, so a grid or tree index can be dropped in later by
implementing the same two methods.
"""

from dataclasses import dataclass
from typing import Protocol

import jax.numpy as jnp
import numpy as np


class NeighborSearch(Protocol):
    """Capability: which boids lie within ``radius`` of a point."""

    def query(self, positions, point, radius: float) -> np.ndarray:
        """Indices of boids with 0 < distance(point) < radius."""
        ...

    def pairs(self, positions: jnp.ndarray, radius: float) -> jnp.ndarray:
        """(N, N) bool mask, True where boid j is a neighbor of boid i."""
        ...


def compute_pairwise_distances(positions: jnp.ndarray) -> jnp.ndarray:
    """Compute pairwise distances between all boids.

    Args:
        positions: Boid positions (N, 2)

    Returns:
        Distance matrix (N, N)
    """
    # (N, 1, 2) - (1, N, 2) = (N, N, 2)
    diff = positions[:, None, :] - positions[None, :, :]
    return jnp.sqrt(jnp.sum(diff * diff, axis=-1))


def in_range(distances, radius: float):
    # Zero distance (self, or a coincident boid) never counts as a neighbor
    return (distances > 0) & (distances < radius)


@dataclass(frozen=True)
class BruteForceNeighbors:
    """All-pairs scan, O(n^2) per tick. Fine up to a few hundred boids."""

    def query(self, positions, point, radius: float) -> np.ndarray:
        positions = np.asarray(positions, dtype=np.float32).reshape(-1, 2)
        point = np.asarray(point, dtype=np.float32).reshape(1, 2)
        diff = positions - point
        distances = np.sqrt(np.sum(diff * diff, axis=-1))
        return np.nonzero(in_range(distances, radius))[0]

    def pairs(self, positions: jnp.ndarray, radius: float) -> jnp.ndarray:
        return in_range(compute_pairwise_distances(positions), radius)
