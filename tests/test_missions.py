import unittest

import numpy as np

from orbit_sandbox.core.config import MOON_DISTANCE
from orbit_sandbox.core.missions import MissionTracker, approach, default_objectives, stable_orbit
from orbit_sandbox.core.simulation import Simulation


class TestObjectives(unittest.TestCase):

    def setUp(self):
        self.sim = Simulation()

    def test_default_start_is_a_stable_orbit(self):
        self.assertTrue(stable_orbit("Earth").completed(self.sim.snapshot()))

    def test_too_fast_is_not_stable(self):
        self.sim.craft.velocity = self.sim.craft.velocity * 1.1
        self.assertFalse(stable_orbit("Earth").completed(self.sim.snapshot()))

    def test_radial_motion_is_not_stable(self):
        speed = self.sim.craft.speed
        self.sim.craft.velocity = np.array([0.5, 0.866]) * speed
        self.assertFalse(stable_orbit("Earth").completed(self.sim.snapshot()))

    def test_low_altitude_is_not_stable(self):
        self.assertFalse(stable_orbit("Earth", min_altitude=300e3).completed(self.sim.snapshot()))

    def test_approach(self):
        objective = approach("Moon")
        self.assertFalse(objective.completed(self.sim.snapshot()))
        self.sim.craft.position = np.array([0.0, MOON_DISTANCE - 1e7])
        self.assertTrue(objective.completed(self.sim.snapshot()))

    def test_unknown_body_never_completes(self):
        self.assertFalse(approach("Pluto").completed(self.sim.snapshot()))
        self.assertFalse(stable_orbit("Pluto").completed(self.sim.snapshot()))

    def test_destroyed_craft_never_completes(self):
        self.sim.craft.destroy()
        self.assertFalse(stable_orbit("Earth").completed(self.sim.snapshot()))


class TestMissionTracker(unittest.TestCase):

    def test_polls_only_while_running(self):
        sim = Simulation()
        tracker = MissionTracker(default_objectives())
        self.assertFalse(tracker.update(sim.snapshot(), 2.0))

        sim.start()
        self.assertFalse(tracker.update(sim.snapshot(), 0.5))
        self.assertTrue(tracker.update(sim.snapshot(), 0.6))
        self.assertTrue(tracker.completed)
        self.assertFalse(tracker.update(sim.snapshot(), 2.0))

        sim.start()
        nxt = tracker.advance()
        self.assertEqual(nxt.name, "Moon Approach")
        self.assertFalse(tracker.update(sim.snapshot(), 2.0))

    def test_requires_objectives(self):
        with self.assertRaises(ValueError):
            MissionTracker([])


if __name__ == "__main__":
    unittest.main()
