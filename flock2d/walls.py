"""Arena walls and boid/wall collision handling."""

from enum import IntEnum
from typing import NamedTuple, Tuple

import jax.numpy as jnp
import numpy as np

from flock2d.config import CollisionPolicy, ConfigError, SimulationConfig


class WallSide(IntEnum):
    """Which side of the arena a wall sits on. Also the row order in ``Walls``."""
    LEFT = 0
    RIGHT = 1
    BOTTOM = 2
    TOP = 3


class Contact(IntEnum):
    """Which face of a wall a boid touched.

    LEFT means the boid hit the wall's left face, i.e. the boid is on the
    low-x side of the wall (so this is what the right wall reports).
    """
    NONE = 0
    LEFT = 1
    RIGHT = 2
    BOTTOM = 3
    TOP = 4
    INSIDE = 5


# Plain ints for use inside traced array code
_NONE, _LEFT, _RIGHT, _BOTTOM, _TOP, _INSIDE = (int(c) for c in Contact)


class Walls(NamedTuple):
    """Static wall geometry, one row per WallSide."""
    centers: jnp.ndarray  # (4, 2)
    sizes: jnp.ndarray  # (4, 2)


def wall_geometry(side: WallSide, config: SimulationConfig) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Centre and full size of one wall for the configured arena."""
    mid_x = (config.left + config.right) / 2
    mid_y = (config.bottom + config.top) / 2
    thickness = config.wall_thickness

    if side is WallSide.LEFT:
        return (config.left, mid_y), (thickness, config.arena_height + thickness)
    if side is WallSide.RIGHT:
        return (config.right, mid_y), (thickness, config.arena_height + thickness)
    if side is WallSide.BOTTOM:
        return (mid_x, config.bottom), (config.arena_width + thickness, thickness)
    return (mid_x, config.top), (config.arena_width + thickness, thickness)


def build_walls(centers, sizes) -> Walls:
    """Validate raw wall geometry and pack it into arrays.

    Raises:
        ConfigError: if the shapes are wrong or any wall has a non-positive size
    """
    centers = np.asarray(centers, dtype=np.float32)
    sizes = np.asarray(sizes, dtype=np.float32)
    if centers.shape != (len(WallSide), 2) or sizes.shape != (len(WallSide), 2):
        raise ConfigError(f"expected (4, 2) wall centres and sizes, got {centers.shape} and {sizes.shape}")
    if not np.all(np.isfinite(centers)) or not np.all(np.isfinite(sizes)):
        raise ConfigError("wall geometry must be finite")
    if np.any(sizes <= 0):
        bad = [WallSide(i).name for i in np.nonzero(np.any(sizes <= 0, axis=1))[0]]
        raise ConfigError(f"walls must have positive size: {', '.join(bad)}")
    return Walls(centers=jnp.asarray(centers), sizes=jnp.asarray(sizes))


def make_walls(config: SimulationConfig) -> Walls:
    """Build the four walls bounding the configured arena."""
    geometry = [wall_geometry(side, config) for side in WallSide]
    return build_walls([g[0] for g in geometry], [g[1] for g in geometry])


def classify_contacts(positions: jnp.ndarray, boid_size: float,
                      wall_center: jnp.ndarray, wall_size: jnp.ndarray) -> jnp.ndarray:
    """Axis-aligned box test of every boid against one wall.

    When the boxes overlap, the axis with the smaller penetration decides
    the contact face. A boid that straddles neither face on either axis is
    INSIDE.

    Args:
        positions: Boid centres (N, 2)
        boid_size: Edge length of the square boid box
        wall_center: Wall centre (2,)
        wall_size: Wall size (2,)

    Returns:
        Contact codes (N,) int32
    """
    a_min = positions - boid_size / 2
    a_max = positions + boid_size / 2
    b_min = wall_center - wall_size / 2
    b_max = wall_center + wall_size / 2

    overlap = jnp.all((a_min < b_max) & (a_max > b_min), axis=-1)

    # Per axis: boid pokes in from the low side or from the high side
    low = (a_min < b_min) & (a_max > b_min) & (a_max < b_max)
    high = (a_min > b_min) & (a_min < b_max) & (a_max > b_max)
    depth = jnp.where(low, b_min - a_max, jnp.where(high, a_min - b_max, -jnp.inf))

    x_contact = jnp.where(low[:, 0], _LEFT, jnp.where(high[:, 0], _RIGHT, _INSIDE))
    y_contact = jnp.where(low[:, 1], _BOTTOM, jnp.where(high[:, 1], _TOP, _INSIDE))

    contact = jnp.where(jnp.abs(depth[:, 1]) < jnp.abs(depth[:, 0]), y_contact, x_contact)
    return jnp.where(overlap, contact, _NONE).astype(jnp.int32)


def reflect_velocities(velocities: jnp.ndarray, contacts: jnp.ndarray) -> jnp.ndarray:
    """Flip the velocity component pointing into the touched face.

    A boid already moving away from the wall is left alone, so it does not
    jitter while its box is still overlapping.
    """
    vx, vy = velocities[:, 0], velocities[:, 1]

    reflect_x = ((contacts == _LEFT) & (vx > 0)) | ((contacts == _RIGHT) & (vx < 0))
    reflect_y = ((contacts == _TOP) & (vy < 0)) | ((contacts == _BOTTOM) & (vy > 0))

    vx = jnp.where(reflect_x, -vx, vx)
    vy = jnp.where(reflect_y, -vy, vy)
    return jnp.stack([vx, vy], axis=1)


# Axis each wall blocks and which way the arena interior lies from it
_WALL_AXIS = {WallSide.LEFT: 0, WallSide.RIGHT: 0, WallSide.BOTTOM: 1, WallSide.TOP: 1}
_INWARD = {WallSide.LEFT: 1.0, WallSide.RIGHT: -1.0, WallSide.BOTTOM: 1.0, WallSide.TOP: -1.0}


def clamp_limit(side: WallSide, wall_center: jnp.ndarray, wall_size: jnp.ndarray,
                config: SimulationConfig) -> jnp.ndarray:
    """Closest a boid centre may get to one wall along that wall's axis."""
    axis = _WALL_AXIS[side]
    offset = wall_size[axis] / 2 + config.boid_size / 2 + config.clamp_margin
    return wall_center[axis] + _INWARD[side] * offset


def clamp_positions(positions: jnp.ndarray, side: WallSide, wall_center: jnp.ndarray,
                    wall_size: jnp.ndarray, config: SimulationConfig):
    """Put boids that are in or beyond one wall back on the arena side of it.

    The correction always points into the arena, so a boid that got past
    the middle of the wall, or all the way through it, still comes back.

    Returns:
        Tuple of (positions, clamped mask (N,))
    """
    axis = _WALL_AXIS[side]
    limit = clamp_limit(side, wall_center, wall_size, config)
    coord = positions[:, axis]

    clamped = _INWARD[side] * (coord - limit) < 0
    return positions.at[:, axis].set(jnp.where(clamped, limit, coord)), clamped


def resolve_collisions(positions: jnp.ndarray, velocities: jnp.ndarray, walls: Walls,
                       config: SimulationConfig, lookahead: float = 0.0):
    """Check every boid against every wall and apply the collision policy.

    Walls are handled one after another in WallSide order, so a boid in a
    corner is corrected for both walls.

    Reflection tests the boids where they are. Clamping tests where they
    will be after ``lookahead`` seconds at their current velocity, and
    places a clamped boid so that it lands on the clamp line after that
    much movement. Pass the tick duration when integration comes next,
    0 when it already happened.

    Args:
        positions: Boid positions (N, 2)
        velocities: Boid velocities (N, 2)
        walls: Wall geometry
        config: Simulation configuration
        lookahead: Time until the positions are next integrated

    Returns:
        Tuple of (positions, velocities, contact counts (N,) int32)
    """
    counts = jnp.zeros(positions.shape[0], dtype=jnp.int32)

    for side in WallSide:
        center, size = walls.centers[int(side)], walls.sizes[int(side)]

        if config.collision_policy is CollisionPolicy.REFLECT:
            contacts = classify_contacts(positions, config.boid_size, center, size)
            counts = counts + (contacts != _NONE).astype(jnp.int32)
            velocities = reflect_velocities(velocities, contacts)
            continue

        projected = positions + velocities * lookahead
        contacts = classify_contacts(projected, config.boid_size, center, size)
        projected, clamped = clamp_positions(projected, side, center, size, config)
        counts = counts + ((contacts != _NONE) | clamped).astype(jnp.int32)

        axis = _WALL_AXIS[side]
        landing = projected[:, axis] - velocities[:, axis] * lookahead
        positions = positions.at[:, axis].set(jnp.where(clamped, landing, positions[:, axis]))

    return positions, velocities, counts
