import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

import numpy as np

from orbit_sandbox.analysis import load_events, summarize_run
from orbit_sandbox.cli import build_ephemeris_source, main, run_headless
from orbit_sandbox.core.errors import RunDataError, SandboxError
from orbit_sandbox.core.simulation import Simulation
from orbit_sandbox.data.scenarios import (
    AU,
    LEO_RADIUS,
    SCENARIO_DISPLAY_ORDER,
    build_scenario,
)


class TestScenarios(unittest.TestCase):

    def test_every_scenario_builds(self):
        for key in SCENARIO_DISPLAY_ORDER:
            with self.subTest(key=key):
                cfg = build_scenario(key)
                self.assertEqual(len(set(cfg.body_names)), len(cfg.bodies))
                Simulation(cfg)

    def test_solar_system_craft_orbits_earth(self):
        cfg = build_scenario("solar_system")
        earth = next(spec for spec in cfg.bodies if spec.name == "Earth")
        self.assertEqual(earth.position, (AU, 0.0))
        self.assertAlmostEqual(np.linalg.norm(cfg.craft.position - np.array(earth.position)), LEO_RADIUS, delta=1.0)
        self.assertGreater(cfg.boundary.radius, 4.515e12)

    def test_unknown_scenario(self):
        with self.assertRaises(KeyError):
            build_scenario("warp")


class TestHeadlessRun(unittest.TestCase):

    def test_suborbital_run_hits_earth(self):
        sim = run_headless(Simulation(build_scenario("suborbital")), 5_000.0)
        self.assertIsNotNone(sim.outcome)
        self.assertEqual(sim.outcome.reason, "collision")
        self.assertEqual(sim.outcome.detail, "mission failed: collided with Earth")

    def test_scripted_burn_uses_fuel(self):
        sim = run_headless(Simulation(build_scenario("leo")), 100.0, burn=(0.0, 10.0))
        self.assertIsNone(sim.outcome)
        self.assertAlmostEqual(sim.clock.elapsed_sim_time, 100.0)
        self.assertAlmostEqual(sim.craft.fuel_fraction, 0.95)
        self.assertFalse(sim.craft.thrust_commanded)

    def test_horizons_option_needs_name_and_path(self):
        with self.assertRaises(SandboxError):
            build_ephemeris_source(None, ["Moon"])
        self.assertIsNone(build_ephemeris_source(None, []))


class TestCommandLine(unittest.TestCase):

    def _main(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_run_then_analyze(self):
        with tempfile.TemporaryDirectory() as tmp:
            code, out, _ = self._main("run", "--duration", "50", "--record-dir", tmp, "--run-id", "t1")
            self.assertEqual(code, 0)
            self.assertIn("t1", out)
            run_dir = Path(tmp) / "t1"
            meta = json.loads((run_dir / "meta.json").read_text())
            self.assertEqual(meta["scenario"], "leo")

            code, out, _ = self._main("analyze", "--runs-dir", tmp)
            self.assertEqual(code, 0)
            self.assertIn("Run: t1", out)
            summary = json.loads((run_dir / "summary.json").read_text())
            self.assertEqual(summary["events"], {"start": 1})
            self.assertIsNone(summary["outcome"])
            self.assertTrue((run_dir / "figs" / "trajectory_xy.png").exists())
            self.assertEqual(load_events(run_dir / "events.csv")[0]["type"], "start")

    def test_analyze_missing_run_fails_cleanly(self):
        with tempfile.TemporaryDirectory() as tmp:
            code, _, err = self._main("analyze", "nope", "--runs-dir", tmp)
        self.assertEqual(code, 1)
        self.assertIn("error", err)

    def test_empty_timeseries_is_an_error(self):
        with self.assertRaises(RunDataError):
            summarize_run({}, {"t": np.array([])}, [])


if __name__ == "__main__":
    unittest.main()
