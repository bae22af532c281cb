import unittest

import numpy as np

from orbit_sandbox.core.boundary import BoundaryEvent, BoundaryMonitor
from orbit_sandbox.core.collisions import check_collision
from orbit_sandbox.core.model import Body


def _probe(x, y=0.0, radius=10.0):
    return Body("probe", 1.0, radius, position=np.array([x, y], dtype=float))


class TestCollisionDetector(unittest.TestCase):

    def setUp(self):
        self.planet = Body("Planet", 1e20, 100.0)

    def test_touching_is_not_a_collision(self):
        self.assertIsNone(check_collision(_probe(110.0), [self.planet]))

    def test_overlap_is_a_collision(self):
        self.assertIs(check_collision(_probe(109.999), [self.planet]), self.planet)

    def test_first_body_in_order_wins(self):
        far = Body("Far", 1e20, 100.0, position=np.array([50.0, 0.0]))
        near = Body("Near", 1e20, 100.0, position=np.array([100.0, 0.0]))
        self.assertIs(check_collision(_probe(100.0), [far, near]), far)

    def test_point_is_not_checked_against_itself(self):
        probe = _probe(0.0)
        self.assertIsNone(check_collision(probe, [probe]))


class TestBoundaryMonitor(unittest.TestCase):

    def setUp(self):
        self.monitor = BoundaryMonitor(radius=100.0, grace_period=30.0)

    def test_inside_and_on_the_edge(self):
        self.assertIs(self.monitor.update(50.0, 1.0), BoundaryEvent.INSIDE)
        self.assertIs(self.monitor.update(100.0, 1.0), BoundaryEvent.INSIDE)
        self.assertFalse(self.monitor.out_of_bounds)

    def test_violation_exactly_at_grace_period(self):
        self.assertIs(self.monitor.update(150.0, 1.0), BoundaryEvent.ENTERED)
        self.assertEqual(self.monitor.time_out_of_bounds, 0.0)
        for _ in range(29):
            self.assertIs(self.monitor.update(150.0, 1.0), BoundaryEvent.OUTSIDE)
        self.assertEqual(self.monitor.time_out_of_bounds, 29.0)
        self.assertAlmostEqual(self.monitor.remaining, 1.0)
        self.assertIs(self.monitor.update(150.0, 1.0), BoundaryEvent.VIOLATION)

    def test_reentry_resets_the_timer(self):
        self.monitor.update(150.0, 1.0)
        for _ in range(10):
            self.monitor.update(150.0, 1.0)
        self.assertIs(self.monitor.update(50.0, 1.0), BoundaryEvent.CLEARED)
        self.assertFalse(self.monitor.out_of_bounds)
        self.assertEqual(self.monitor.time_out_of_bounds, 0.0)
        self.assertIs(self.monitor.update(150.0, 1.0), BoundaryEvent.ENTERED)
        self.assertEqual(self.monitor.time_out_of_bounds, 0.0)

    def test_zero_grace_fails_on_next_tick(self):
        monitor = BoundaryMonitor(radius=100.0, grace_period=0.0)
        self.assertIs(monitor.update(150.0, 1.0), BoundaryEvent.ENTERED)
        self.assertIs(monitor.update(150.0, 1.0), BoundaryEvent.VIOLATION)

    def test_reset(self):
        self.monitor.update(150.0, 1.0)
        self.monitor.reset()
        self.assertFalse(self.monitor.out_of_bounds)
        self.assertEqual(self.monitor.remaining, 30.0)


if __name__ == "__main__":
    unittest.main()
