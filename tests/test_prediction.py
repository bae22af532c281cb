import unittest

import numpy as np

from orbit_sandbox.core.config import EARTH_RADIUS, SIMULATION_CFG
from orbit_sandbox.core.model import BodyRegistry, Craft
from orbit_sandbox.core.prediction import predict_trajectory


class TestPredictTrajectory(unittest.TestCase):

    def setUp(self):
        self.bodies = BodyRegistry.from_specs(SIMULATION_CFG.bodies)
        self.craft = Craft.from_cfg(SIMULATION_CFG.craft)

    def test_live_state_is_not_mutated(self):
        self.craft.start_control("thrust")
        position = self.craft.position.copy()
        velocity = self.craft.velocity.copy()
        moon = self.bodies.get("Moon").position.copy()

        path = predict_trajectory(self.craft.snapshot(), self.bodies, 300, 10.0)

        self.assertTrue(path)
        np.testing.assert_array_equal(self.craft.position, position)
        np.testing.assert_array_equal(self.craft.velocity, velocity)
        np.testing.assert_array_equal(self.bodies.get("Moon").position, moon)
        self.assertEqual(self.craft.fuel_fraction, 1.0)

    def test_full_horizon_without_events(self):
        snapshot = self.craft.snapshot()
        path = predict_trajectory(snapshot, self.bodies, 300, 10.0)
        self.assertEqual(len(path), 300)
        self.assertNotEqual(path[0], (snapshot.position[0], snapshot.position[1]))

    def test_stops_at_collision(self):
        self.craft.position = np.array([7e6, 0.0])
        self.craft.velocity = np.array([-8000.0, 0.0])
        path = predict_trajectory(self.craft.snapshot(), self.bodies, 300, 10.0)
        self.assertLess(len(path), 300)
        self.assertLess(np.linalg.norm(path[-1]), EARTH_RADIUS + self.craft.radius)

    def test_stops_outside_boundary(self):
        self.craft.velocity = np.array([1e4, 0.0])
        path = predict_trajectory(self.craft.snapshot(), self.bodies, 300, 10.0, boundary_radius=6.6e6)
        self.assertEqual(len(path), 1)

    def test_thrust_changes_the_path(self):
        coast = predict_trajectory(self.craft.snapshot(), self.bodies, 50, 10.0)
        self.craft.start_control("thrust")
        burn = predict_trajectory(self.craft.snapshot(), self.bodies, 50, 10.0)
        self.assertGreater(np.linalg.norm(np.subtract(burn[-1], coast[-1])), 1.0)

    def test_empty_tank_predicts_coasting(self):
        coast = predict_trajectory(self.craft.snapshot(), self.bodies, 20, 10.0)
        self.craft.start_control("thrust")
        self.craft.fuel_fraction = 0.0
        self.assertEqual(predict_trajectory(self.craft.snapshot(), self.bodies, 20, 10.0), coast)


if __name__ == "__main__":
    unittest.main()
