"""Tests for wall geometry, contact classification and collision responses."""

import dataclasses

import jax.numpy as jnp
import numpy as np
import pytest

from flock2d.config import BoundaryOrder, CollisionPolicy, ConfigError
from flock2d.walls import (
    Contact,
    WallSide,
    build_walls,
    classify_contacts,
    clamp_positions,
    make_walls,
    reflect_velocities,
    resolve_collisions,
)


def codes(*contacts):
    return jnp.asarray(np.array(contacts, dtype=np.int32))


class TestMakeWalls:

    def test_geometry(self, walls):
        centers = np.asarray(walls.centers)
        sizes = np.asarray(walls.sizes)
        np.testing.assert_allclose(centers[WallSide.LEFT], [-600.0, 0.0])
        np.testing.assert_allclose(centers[WallSide.RIGHT], [600.0, 0.0])
        np.testing.assert_allclose(centers[WallSide.BOTTOM], [0.0, -300.0])
        np.testing.assert_allclose(centers[WallSide.TOP], [0.0, 300.0])
        np.testing.assert_allclose(sizes[WallSide.LEFT], [10.0, 610.0])
        np.testing.assert_allclose(sizes[WallSide.TOP], [1210.0, 10.0])

    def test_offset_arena(self, config):
        """Walls follow an arena that is not centred on the origin."""
        config = dataclasses.replace(config, left=0.0, right=100.0, bottom=0.0, top=50.0)
        centers = np.asarray(make_walls(config).centers)
        np.testing.assert_allclose(centers[WallSide.LEFT], [0.0, 25.0])
        np.testing.assert_allclose(centers[WallSide.BOTTOM], [50.0, 0.0])

    def test_non_positive_size_rejected(self):
        centers = [[-1, 0], [1, 0], [0, -1], [0, 1]]
        sizes = [[1, 3], [0, 3], [3, 1], [3, 1]]
        with pytest.raises(ConfigError, match="RIGHT"):
            build_walls(centers, sizes)

    def test_wrong_shape_rejected(self):
        with pytest.raises(ConfigError):
            build_walls([[0, 0]], [[1, 1]])


class TestClassifyContacts:

    wall_center = jnp.array([600.0, 0.0])
    wall_size = jnp.array([10.0, 610.0])

    def classify(self, positions):
        return np.asarray(classify_contacts(jnp.array(positions), 10.0, self.wall_center, self.wall_size))

    def test_no_overlap(self):
        assert self.classify([[0.0, 0.0], [589.0, 0.0]]).tolist() == [Contact.NONE, Contact.NONE]

    def test_touching_edge_is_not_overlap(self):
        assert self.classify([[590.0, 0.0]]).tolist() == [Contact.NONE]

    def test_left_face(self):
        assert self.classify([[595.0, 0.0]]).tolist() == [Contact.LEFT]

    def test_right_face(self):
        assert self.classify([[606.0, 0.0]]).tolist() == [Contact.RIGHT]

    def test_shallower_axis_wins(self):
        """Near a wall end, the axis with less penetration names the face."""
        # boid pokes 2 into the wall's top end but 7 into its left face
        assert self.classify([[597.0, 308.0]]).tolist() == [Contact.TOP]
        assert self.classify([[593.0, 301.0]]).tolist() == [Contact.LEFT]

    def test_contained_is_inside(self):
        out = classify_contacts(jnp.array([[0.0, 0.0]]), 2.0, jnp.array([0.0, 0.0]), jnp.array([10.0, 10.0]))
        assert np.asarray(out).tolist() == [Contact.INSIDE]


class TestReflect:

    def test_flips_only_when_moving_into_wall(self):
        contacts = codes(Contact.LEFT, Contact.LEFT, Contact.RIGHT, Contact.BOTTOM, Contact.TOP)
        velocities = jnp.array([
            [100.0, 30.0],   # into right wall
            [-100.0, 30.0],  # already leaving
            [-50.0, 0.0],    # into left wall
            [10.0, 20.0],    # into top wall
            [10.0, 20.0],    # leaving bottom wall
        ])
        out = np.asarray(reflect_velocities(velocities, contacts))
        np.testing.assert_array_equal(out, [
            [-100.0, 30.0],
            [-100.0, 30.0],
            [50.0, 0.0],
            [10.0, -20.0],
            [10.0, 20.0],
        ])

    def test_inside_and_none_untouched(self):
        velocities = jnp.array([[5.0, -5.0], [5.0, -5.0]])
        contacts = codes(Contact.NONE, Contact.INSIDE)
        np.testing.assert_array_equal(np.asarray(reflect_velocities(velocities, contacts)), np.asarray(velocities))


class TestClamp:

    def clamp(self, positions, side, walls, config):
        center, size = walls.centers[side], walls.sizes[side]
        out, clamped = clamp_positions(jnp.array(positions), side, center, size, config)
        return np.asarray(out), np.asarray(clamped)

    def test_left_wall(self, config, walls):
        out, clamped = self.clamp([[-597.0, 0.0]], WallSide.LEFT, walls, config)
        np.testing.assert_allclose(out, [[-590.0, 0.0]])
        assert clamped.tolist() == [True]

    def test_margin(self, config, walls):
        config = dataclasses.replace(config, clamp_margin=0.5)
        out, _ = self.clamp([[0.0, 298.0]], WallSide.TOP, walls, config)
        np.testing.assert_allclose(out, [[0.0, 289.5]])

    def test_past_wall_middle_comes_back_inside(self, config, walls):
        """A boid deeper than half the wall is still pushed into the arena."""
        out, _ = self.clamp([[603.0, 10.0]], WallSide.RIGHT, walls, config)
        np.testing.assert_allclose(out, [[590.0, 10.0]])

    def test_through_wall_comes_back_inside(self, config, walls):
        out, _ = self.clamp([[700.0, 10.0], [-10.0, -450.0]], WallSide.RIGHT, walls, config)
        np.testing.assert_allclose(out[0], [590.0, 10.0])
        out, _ = self.clamp([[-10.0, -450.0]], WallSide.BOTTOM, walls, config)
        np.testing.assert_allclose(out, [[-10.0, -290.0]])

    def test_clear_of_wall_untouched(self, config, walls):
        out, clamped = self.clamp([[590.0, 0.0], [0.0, 0.0]], WallSide.RIGHT, walls, config)
        np.testing.assert_array_equal(out, [[590.0, 0.0], [0.0, 0.0]])
        assert clamped.tolist() == [False, False]


class TestResolveCollisions:

    def test_reflect_leaves_position(self, config, walls):
        positions = jnp.array([[595.0, 0.0], [0.0, 0.0]])
        velocities = jnp.array([[100.0, 20.0], [100.0, 20.0]])
        new_pos, new_vel, counts = resolve_collisions(positions, velocities, walls, config)
        np.testing.assert_array_equal(np.asarray(new_pos), np.asarray(positions))
        np.testing.assert_array_equal(np.asarray(new_vel), [[-100.0, 20.0], [100.0, 20.0]])
        assert np.asarray(counts).tolist() == [1, 0]

    def test_clamp_leaves_velocity(self, config, walls):
        config = dataclasses.replace(config, collision_policy=CollisionPolicy.CLAMP)
        positions = jnp.array([[597.0, 0.0]])
        velocities = jnp.array([[100.0, 20.0]])
        new_pos, new_vel, counts = resolve_collisions(positions, velocities, walls, config)
        np.testing.assert_allclose(np.asarray(new_pos), [[590.0, 0.0]])
        np.testing.assert_array_equal(np.asarray(new_vel), np.asarray(velocities))
        assert np.asarray(counts).tolist() == [1]

    def test_clamp_corner(self, config, walls):
        """A boid in a corner is pushed back off both walls."""
        config = dataclasses.replace(config, collision_policy=CollisionPolicy.CLAMP)
        positions = jnp.array([[597.0, 297.0]])
        new_pos, _, counts = resolve_collisions(positions, jnp.array([[1.0, 1.0]]), walls, config)
        np.testing.assert_allclose(np.asarray(new_pos), [[590.0, 290.0]])
        assert np.asarray(counts).tolist() == [2]

    def test_reflect_corner(self, config, walls):
        positions = jnp.array([[-597.0, -297.0]])
        _, new_vel, counts = resolve_collisions(positions, jnp.array([[-3.0, -4.0]]), walls, config)
        np.testing.assert_array_equal(np.asarray(new_vel), [[3.0, 4.0]])
        assert np.asarray(counts).tolist() == [2]

    def test_boundary_order_does_not_affect_collision_step(self, config, walls):
        config = dataclasses.replace(config, boundary_order=BoundaryOrder.INTEGRATE_FIRST)
        _, new_vel, _ = resolve_collisions(jnp.array([[595.0, 0.0]]), jnp.array([[100.0, 0.0]]), walls, config)
        np.testing.assert_array_equal(np.asarray(new_vel), [[-100.0, 0.0]])

    def test_clamp_lookahead_lands_on_limit(self, config, walls):
        """With a lookahead the boid is placed so one move ends on the clamp line."""
        config = dataclasses.replace(config, collision_policy=CollisionPolicy.CLAMP)
        dt = config.tick_duration
        positions = jnp.array([[595.0, 0.0], [0.0, 0.0]])
        velocities = jnp.array([[100.0, 20.0], [100.0, 20.0]])
        new_pos, new_vel, counts = resolve_collisions(positions, velocities, walls, config, lookahead=dt)
        np.testing.assert_allclose(np.asarray(new_pos), [[590.0 - 100.0 * dt, 0.0], [0.0, 0.0]], rtol=1e-6)
        np.testing.assert_array_equal(np.asarray(new_vel), np.asarray(velocities))
        assert np.asarray(counts).tolist() == [1, 0]

    def test_clamp_counts_tunnelled_boid(self, config, walls):
        """A boid entirely beyond the wall is clamped and reported as a contact."""
        config = dataclasses.replace(config, collision_policy=CollisionPolicy.CLAMP)
        new_pos, _, counts = resolve_collisions(jnp.array([[640.0, 0.0]]), jnp.array([[900.0, 0.0]]),
                                                walls, config)
        np.testing.assert_allclose(np.asarray(new_pos), [[590.0, 0.0]])
        assert np.asarray(counts).tolist() == [1]
