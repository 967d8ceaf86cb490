"""Main entry point for the boid simulation."""

import argparse
import dataclasses
import logging

from flock2d.config import BoundaryOrder, CollisionPolicy, SimulationConfig, SpeedPolicy
from flock2d.simulation import Simulation


def build_parser():
    parser = argparse.ArgumentParser(description='Run a headless 2D boid simulation in JAX')
    parser.add_argument('--num-boids', type=int, default=100, help='Number of boids')
    parser.add_argument('--ticks', type=int, default=600, help='Number of ticks to simulate')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    parser.add_argument('--speed-policy', choices=[p.value for p in SpeedPolicy],
                        default=SpeedPolicy.RANGE.value, help='Speed rule after steering')
    parser.add_argument('--collision-policy', choices=[p.value for p in CollisionPolicy],
                        default=CollisionPolicy.REFLECT.value, help='Wall collision response')
    parser.add_argument('--boundary-order', choices=[o.value for o in BoundaryOrder],
                        default=BoundaryOrder.COLLIDE_FIRST.value,
                        help='Resolve walls before or after moving the boids')
    parser.add_argument('--wall-force', type=float, default=0.0, help='Wall softening scale (0 disables)')
    parser.add_argument('--random-heading', action='store_true', help='Start boids with random headings')
    parser.add_argument('--report-every', type=int, default=60, help='Print a summary every N ticks (0 = only at the end)')
    parser.add_argument('--log-level', type=str.upper, default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], help='Logging level')
    return parser


def main(argv=None):
    """Run the boid simulation."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=args.log_level,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    # Create configuration
    config = dataclasses.replace(
        SimulationConfig(),
        num_boids=args.num_boids,
        speed_policy=args.speed_policy,
        collision_policy=args.collision_policy,
        boundary_order=args.boundary_order,
        wall_force_scale=args.wall_force,
        initial_heading=None if args.random_heading else SimulationConfig.initial_heading,
    )

    print(f"Initializing simulation with {config.num_boids} boids...")
    print(f"Arena: x [{config.left}, {config.right}], y [{config.bottom}, {config.top}]")
    print(f"Vision radius: {config.vision_radius}")
    print(f"Speed policy: {config.speed_policy.value} (max {config.max_speed})")
    print(f"Collision policy: {config.collision_policy.value}, {config.boundary_order.value}")

    sim = Simulation(config, seed=args.seed)

    for _ in range(args.ticks):
        sim.step()
        if args.report_every and sim.tick_count % args.report_every == 0:
            report(sim)

    if not args.report_every or sim.tick_count % args.report_every or sim.tick_count == 0:
        report(sim)


def report(sim):
    summary = sim.summary()
    print(f"tick {summary.tick:6d}  mean speed {summary.mean_speed:8.2f}  "
          f"polarization {summary.polarization:5.3f}  contacts {summary.total_contacts}")


if __name__ == '__main__':
    main()
