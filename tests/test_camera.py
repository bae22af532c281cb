import unittest

import numpy as np

from orbit_sandbox.core.simulation import Simulation
from orbit_sandbox.render.camera import Camera, view_radius


class TestCamera(unittest.TestCase):

    def setUp(self):
        self.camera = Camera((800, 600), 1.0, min_ppm=1e-9, max_ppm=10.0)

    def test_fit_radius_fills_the_short_side(self):
        self.camera.fit_radius(1000.0, margin=1.0)
        self.assertAlmostEqual(self.camera.ppm, 0.3)
        self.assertAlmostEqual(self.camera.meters_to_pixels(1000.0), 300.0)

    def test_fit_radius_is_clamped_and_ignores_non_positive(self):
        self.camera.fit_radius(1e-3)
        self.assertEqual(self.camera.ppm, 10.0)
        self.camera.fit_radius(0.0)
        self.assertEqual(self.camera.ppm, 10.0)

    def test_world_screen_round_trip_flips_y(self):
        self.camera.set_center(np.array([10.0, 10.0]))
        self.assertEqual(self.camera.world_to_screen(10.0, 20.0), (400, 290))
        np.testing.assert_allclose(self.camera.screen_to_world(400, 290), (10.0, 20.0))


class TestViewRadius(unittest.TestCase):

    def test_frames_the_nearest_body(self):
        sim = Simulation()
        distance = np.linalg.norm(sim.craft.position - sim.bodies.get("Earth").position)
        self.assertAlmostEqual(view_radius(sim.craft.position, sim.bodies, margin=2.0), 2.0 * distance)

    def test_no_bodies(self):
        self.assertEqual(view_radius(np.zeros(2), []), 0.0)


if __name__ == "__main__":
    unittest.main()
