"""Configuration parameters for the boid simulation."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ConfigError(ValueError):
    """Raised when a simulation configuration or wall geometry is malformed."""


class SpeedPolicy(str, Enum):
    """How the candidate velocity is brought back under the speed limit."""
    RANGE = 'range'        # clamp |v| into [0, max_speed]
    CONSTANT = 'constant'  # rescale |v| to exactly max_speed


class CollisionPolicy(str, Enum):
    """How a boid responds to touching a wall."""
    REFLECT = 'reflect'  # flip the velocity component pointing into the wall
    CLAMP = 'clamp'      # snap the position back inside the wall face


class BoundaryOrder(str, Enum):
    """Order of the boundary and integration steps within one tick."""
    COLLIDE_FIRST = 'collide-first'
    INTEGRATE_FIRST = 'integrate-first'


def _coerce(enum_cls, value, field_name):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ', '.join(member.value for member in enum_cls)
        raise ConfigError(f"{field_name} must be one of: {choices} (got {value!r})") from None


@dataclass(frozen=True)
class SimulationConfig:
    """Configuration for boid simulation parameters.

    Frozen so that it can be passed to ``jax.jit`` as a static argument and
    so that no tick can change it mid-run.
    """

    # Simulation parameters
    num_boids: int = 100
    tick_duration: float = 1.0 / 60.0

    # Arena bounds (wall centre lines)
    left: float = -600.0
    right: float = 600.0
    bottom: float = -300.0
    top: float = 300.0
    wall_thickness: float = 10.0

    # Boid geometry and speed
    boid_size: float = 10.0
    max_speed: float = 400.0
    initial_speed: float = 400.0
    initial_heading: Optional[Tuple[float, float]] = (0.5, -0.5)  # None = random

    # Perception
    vision_radius: float = 50.0

    # Behavior gains
    alignment_gain: float = 0.1
    separation_gain: float = 1.0
    cohesion_gain: float = 0.0005
    wall_force_scale: float = 0.0

    # Policies
    speed_policy: SpeedPolicy = SpeedPolicy.RANGE
    collision_policy: CollisionPolicy = CollisionPolicy.REFLECT
    boundary_order: BoundaryOrder = BoundaryOrder.COLLIDE_FIRST

    # Extra gap left between a clamped boid and the wall face
    clamp_margin: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'speed_policy',
                           _coerce(SpeedPolicy, self.speed_policy, 'speed_policy'))
        object.__setattr__(self, 'collision_policy',
                           _coerce(CollisionPolicy, self.collision_policy, 'collision_policy'))
        object.__setattr__(self, 'boundary_order',
                           _coerce(BoundaryOrder, self.boundary_order, 'boundary_order'))

        if self.num_boids < 0:
            raise ConfigError(f"num_boids must be >= 0 (got {self.num_boids})")
        if self.tick_duration <= 0:
            raise ConfigError(f"tick_duration must be positive (got {self.tick_duration})")
        if self.wall_thickness <= 0:
            raise ConfigError(f"wall_thickness must be positive (got {self.wall_thickness})")
        if self.boid_size <= 0:
            raise ConfigError(f"boid_size must be positive (got {self.boid_size})")
        if self.right <= self.left:
            raise ConfigError(f"arena right ({self.right}) must be greater than left ({self.left})")
        if self.top <= self.bottom:
            raise ConfigError(f"arena top ({self.top}) must be greater than bottom ({self.bottom})")

        if self.initial_heading is not None:
            heading = tuple(float(c) for c in self.initial_heading)
            if len(heading) != 2:
                raise ConfigError(f"initial_heading must have two components (got {heading})")
            if heading == (0.0, 0.0):
                raise ConfigError("initial_heading must be a non-zero vector")
            object.__setattr__(self, 'initial_heading', heading)

    @property
    def arena_width(self) -> float:
        return self.right - self.left

    @property
    def arena_height(self) -> float:
        return self.top - self.bottom


# Default configuration
default_config = SimulationConfig()
