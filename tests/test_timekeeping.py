import unittest

from orbit_sandbox.core.timekeeping import FixedStepAccumulator, FrameTimer


class TestFrameTimer(unittest.TestCase):

    def test_first_tick_is_zero(self):
        ticks = iter([1.0, 1.25, 1.30, 1.20])
        timer = FrameTimer(clock=lambda: next(ticks))
        self.assertEqual(timer.tick(), 0.0)
        self.assertAlmostEqual(timer.tick(), 0.25)
        self.assertAlmostEqual(timer.tick(), 0.05)
        self.assertEqual(timer.tick(), 0.0)

    def test_reset(self):
        ticks = iter([1.0, 5.0])
        timer = FrameTimer(clock=lambda: next(ticks))
        timer.tick()
        timer.reset()
        self.assertEqual(timer.tick(), 0.0)


class TestFixedStepAccumulator(unittest.TestCase):

    def test_splits_into_equal_steps(self):
        acc = FixedStepAccumulator(step=1.0, max_substeps=64)
        acc.accrue(10.0)
        self.assertEqual(acc.consume(), (10, 1.0))
        acc.accrue(2.5)
        count, dt = acc.consume()
        self.assertEqual(count, 3)
        self.assertAlmostEqual(dt * count, 2.5)

    def test_caps_substeps(self):
        acc = FixedStepAccumulator(step=1.0, max_substeps=64)
        acc.accrue(1000.0)
        self.assertEqual(acc.consume(), (64, 1000.0 / 64))

    def test_ignores_non_positive_and_drains(self):
        acc = FixedStepAccumulator(step=1.0, max_substeps=4)
        acc.accrue(-1.0)
        self.assertEqual(acc.consume(), (0, 0.0))
        acc.accrue(2.0)
        self.assertEqual(list(acc.drain()), [1.0, 1.0])
        self.assertEqual(list(acc.drain()), [])

    def test_clear(self):
        acc = FixedStepAccumulator(step=1.0, max_substeps=4)
        acc.accrue(3.0)
        acc.clear()
        self.assertEqual(acc.value, 0.0)


if __name__ == "__main__":
    unittest.main()
