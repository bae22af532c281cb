import math
import unittest

import numpy as np

from orbit_sandbox.core.config import CraftCfg
from orbit_sandbox.core.errors import ConfigurationError
from orbit_sandbox.core.model import Body, BodyRegistry, Craft, SimulationClock, normalize_angle


class TestBodyRegistry(unittest.TestCase):

    def test_rejects_non_positive_mass(self):
        registry = BodyRegistry()
        with self.assertRaises(ConfigurationError):
            registry.add(Body("Zero", 0.0, 1.0))
        with self.assertRaises(ValueError):
            registry.add(Body("Negative", -1.0, 1.0))
        self.assertEqual(len(registry), 0)

    def test_rejects_negative_radius_and_duplicates(self):
        registry = BodyRegistry([Body("Earth", 1.0, 1.0)])
        with self.assertRaises(ConfigurationError):
            registry.add(Body("Bad", 1.0, -1.0))
        with self.assertRaises(ConfigurationError):
            registry.add(Body("Earth", 2.0, 1.0))

    def test_keeps_insertion_order(self):
        registry = BodyRegistry([Body("B", 1.0, 1.0), Body("A", 1.0, 1.0)])
        self.assertEqual(registry.names, ["B", "A"])
        self.assertIn("A", registry)
        self.assertEqual(registry.get("A").name, "A")

    def test_copies_are_detached(self):
        registry = BodyRegistry([Body("A", 1.0, 1.0)])
        copy = registry.copies()[0]
        copy.position[0] = 99.0
        self.assertEqual(registry.get("A").position[0], 0.0)


class TestApplyEphemeris(unittest.TestCase):

    def setUp(self):
        self.registry = BodyRegistry([Body("Earth", 5.0, 1.0), Body("Moon", 1.0, 0.5)])

    def test_valid_entry_is_applied(self):
        updated = self.registry.apply_ephemeris(
            {"Moon": {"position": [10.0, 20.0], "velocity": {"x": 1.0, "y": 2.0}, "mass": 3.0, "radius": 0.7}}
        )
        moon = self.registry.get("Moon")
        self.assertEqual(updated, ["Moon"])
        np.testing.assert_array_equal(moon.position, [10.0, 20.0])
        np.testing.assert_array_equal(moon.velocity, [1.0, 2.0])
        self.assertEqual(moon.mass, 3.0)
        self.assertEqual(moon.radius, 0.7)

    def test_non_finite_entry_leaves_body_unchanged(self):
        updated = self.registry.apply_ephemeris(
            {"Moon": {"position": [float("nan"), 0.0], "velocity": [0.0, 0.0]}}
        )
        self.assertEqual(updated, [])
        np.testing.assert_array_equal(self.registry.get("Moon").position, [0.0, 0.0])

    def test_missing_velocity_leaves_body_unchanged(self):
        self.assertEqual(self.registry.apply_ephemeris({"Moon": {"position": [1.0, 1.0]}}), [])

    def test_unknown_bodies_are_ignored(self):
        self.assertEqual(self.registry.apply_ephemeris({"Pluto": {"position": [1, 1], "velocity": [0, 0]}}), [])
        self.assertNotIn("Pluto", self.registry)

    def test_invalid_mass_is_skipped(self):
        self.registry.apply_ephemeris({"Earth": {"position": [1, 1], "velocity": [0, 0], "mass": -5}})
        earth = self.registry.get("Earth")
        self.assertEqual(earth.mass, 5.0)
        np.testing.assert_array_equal(earth.position, [1.0, 1.0])


class TestCraft(unittest.TestCase):

    def make_craft(self, **kwargs):
        params = dict(orientation=math.pi / 2, fuel_consumption_rate=0.005, max_thrust=30_000.0)
        params.update(kwargs)
        return Craft(**params)

    def test_invalid_mass_is_rejected(self):
        with self.assertRaises(ConfigurationError):
            Craft(mass=0.0)

    def test_fuel_reaches_exactly_zero(self):
        craft = self.make_craft()
        craft.start_control("thrust")
        for _ in range(199):
            self.assertEqual(craft.burn(1.0), 30_000.0)
        self.assertGreater(craft.fuel_fraction, 0.0)
        self.assertAlmostEqual(craft.burn(1.0), 30_000.0, places=3)
        self.assertEqual(craft.fuel_fraction, 0.0)
        self.assertFalse(craft.thrusting)
        self.assertEqual(craft.burn(1.0), 0.0)

    def test_partial_step_scales_thrust(self):
        craft = self.make_craft(fuel_fraction=0.002)
        craft.start_control("thrust")
        self.assertAlmostEqual(craft.burn(1.0), 0.4 * 30_000.0)
        self.assertEqual(craft.fuel_fraction, 0.0)

    def test_no_burn_without_command(self):
        craft = self.make_craft()
        self.assertEqual(craft.burn(1.0), 0.0)
        self.assertEqual(craft.fuel_fraction, 1.0)

    def test_rotate_left_decreases_orientation(self):
        craft = self.make_craft()
        craft.start_control("rotate_left")
        self.assertTrue(craft.rotate(1.0))
        self.assertAlmostEqual(craft.orientation, math.pi / 4)

    def test_orientation_wraps(self):
        craft = self.make_craft(orientation=0.1)
        craft.start_control("rotate_left")
        craft.rotate(1.0)
        self.assertAlmostEqual(craft.orientation, 0.1 - math.pi / 4 + 2 * math.pi)
        self.assertAlmostEqual(normalize_angle(-2 * math.pi), 0.0)

    def test_opposite_rotations_cancel(self):
        craft = self.make_craft()
        craft.start_control("rotate_left")
        craft.start_control("rotate_right")
        self.assertFalse(craft.rotate(1.0))
        self.assertAlmostEqual(craft.orientation, math.pi / 2)

    def test_unknown_control_raises(self):
        with self.assertRaises(ValueError):
            self.make_craft().start_control("warp")

    def test_destroyed_craft_ignores_commands(self):
        craft = self.make_craft()
        craft.start_control("thrust")
        craft.destroy()
        self.assertFalse(craft.thrust_commanded)
        self.assertFalse(craft.start_control("rotate_right"))
        self.assertFalse(craft.rotate(1.0))
        craft.commit(np.ones(2), np.ones(2), np.ones(2))
        np.testing.assert_array_equal(craft.position, [0.0, 0.0])

    def test_reset_restores_initial_conditions(self):
        cfg = CraftCfg()
        craft = Craft.from_cfg(cfg)
        craft.start_control("thrust")
        craft.burn(10.0)
        craft.position = np.array([1.0, 2.0])
        craft.destroy()
        craft.reset(cfg)
        np.testing.assert_array_equal(craft.position, cfg.position)
        np.testing.assert_array_equal(craft.velocity, cfg.velocity)
        self.assertEqual(craft.fuel_fraction, 1.0)
        self.assertFalse(craft.destroyed)
        self.assertFalse(craft.thrust_commanded)

    def test_snapshot_is_detached(self):
        craft = self.make_craft()
        snapshot = craft.snapshot()
        snapshot.position[0] = 42.0
        self.assertEqual(craft.position[0], 0.0)


class TestSimulationClock(unittest.TestCase):

    def test_reset_keeps_time_scale(self):
        clock = SimulationClock(time_scale=50.0, running=True, paused=True, elapsed_sim_time=12.0)
        clock.reset()
        self.assertEqual(clock, SimulationClock(time_scale=50.0))


if __name__ == "__main__":
    unittest.main()
