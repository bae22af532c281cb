import csv
import json
import tempfile
import unittest
from pathlib import Path

from orbit_sandbox.core.logging_utils import RunLogger


class TestRunLogger(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_writes_run_files(self):
        with RunLogger(self.root, "run") as recorder:
            recorder.write_meta({"G": 6.6743e-11})
            recorder.log_ts([0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 0.5, 1.0, 0.0, 0.1])
            recorder.log_event(1.5, "collision", (1.0, 2.0), {"detail": "hit Earth, hard"})

        run_dir = self.root / "run"
        self.assertEqual((self.root / "last_run.txt").read_text(encoding="utf-8"), "run")
        self.assertEqual(json.loads((run_dir / "meta.json").read_text())["G"], 6.6743e-11)
        with (run_dir / "timeseries.csv").open(newline="") as fh:
            rows = list(csv.DictReader(fh))
        self.assertEqual(list(rows[0]), RunLogger.TIMESERIES_HEADER)
        self.assertEqual(float(rows[0]["speed"]), 5.0)
        with (run_dir / "events.csv").open(newline="") as fh:
            events = list(csv.DictReader(fh))
        self.assertEqual(events[0]["type"], "collision")
        self.assertEqual(json.loads(events[0]["details"]), {"detail": "hit Earth, hard"})

    def test_clashing_ids_get_a_suffix(self):
        first = RunLogger(self.root, "same")
        second = RunLogger(self.root, "same")
        self.assertEqual(second.run_id, "same_01")
        first.close()
        second.close()
        second.close()
        self.assertTrue(second.closed)

    def test_buffers_flush_at_threshold(self):
        recorder = RunLogger(self.root, "buf", timeseries_flush_threshold=2)
        recorder.log_ts([0.0] * 10)
        with recorder.timeseries_path.open(newline="") as fh:
            self.assertEqual(len(fh.readlines()), 1)
        recorder.log_ts([1.0] * 10)
        with recorder.timeseries_path.open(newline="") as fh:
            self.assertEqual(len(fh.readlines()), 3)
        recorder.close()


if __name__ == "__main__":
    unittest.main()
