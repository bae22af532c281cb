"""Buffered CSV recorder for simulation runs."""
from __future__ import annotations

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional, Sequence


class RunLogger:
    """Buffered recorder that stores one run as CSV files.

    Each run gets its own directory below ``root_dir`` holding
    ``timeseries.csv`` (craft state samples), ``events.csv`` (discrete
    simulation events with JSON details) and ``meta.json``. The id of the most
    recent run is written to ``last_run.txt`` for the analysis tools.

    Parameters
    ----------
    root_dir:
        Root directory where run folders should be created.
    run_id:
        Optional custom run identifier. If omitted a timestamp based
        identifier in the form ``YYYYmmdd_HHMMSS_run`` is used. Clashing ids
        get a numeric suffix.
    timeseries_flush_threshold:
        Number of buffered time series rows before an automatic flush.
    events_flush_threshold:
        Number of buffered event rows before an automatic flush.
    """

    TIMESERIES_HEADER = [
        "t",
        "x",
        "y",
        "vx",
        "vy",
        "speed",
        "orientation",
        "fuel",
        "thrust",
        "dt_eff",
    ]
    EVENTS_HEADER = ["t", "type", "x", "y", "details"]

    def __init__(
        self,
        root_dir: str | Path = "data/runs",
        run_id: Optional[str] = None,
        *,
        timeseries_flush_threshold: int = 200,
        events_flush_threshold: int = 20,
    ) -> None:
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

        base = run_id or f"{datetime.now().strftime('%Y%m%d_%H%M%S')}_run"
        candidate = base
        suffix = 1
        while (self.root_dir / candidate).exists():
            candidate = f"{base}_{suffix:02d}"
            suffix += 1

        self.run_id = candidate
        self.run_dir = self.root_dir / self.run_id
        self.run_dir.mkdir(parents=True, exist_ok=False)

        self.timeseries_path = self.run_dir / "timeseries.csv"
        self.events_path = self.run_dir / "events.csv"
        self.meta_path = self.run_dir / "meta.json"

        self._ts_file = self.timeseries_path.open("w", newline="", encoding="utf-8")
        self._ts_writer = csv.writer(self._ts_file)
        self._ts_writer.writerow(self.TIMESERIES_HEADER)
        self._ev_file = self.events_path.open("w", newline="", encoding="utf-8")
        self._ev_writer = csv.writer(self._ev_file)
        self._ev_writer.writerow(self.EVENTS_HEADER)
        self._ts_file.flush()
        self._ev_file.flush()

        self._ts_buffer: list[list[str]] = []
        self._ev_buffer: list[list[str]] = []
        self._ts_threshold = max(1, timeseries_flush_threshold)
        self._ev_threshold = max(1, events_flush_threshold)
        self.closed = False

        (self.root_dir / "last_run.txt").write_text(self.run_id, encoding="utf-8")

    # ------------------------------------------------------------------
    def write_meta(self, meta: Mapping[str, object]) -> None:
        with self.meta_path.open("w", encoding="utf-8") as fh:
            json.dump(dict(meta), fh, indent=2, sort_keys=True)

    # ------------------------------------------------------------------
    def log_ts(self, values: Sequence[float]) -> None:
        """Buffer one row of time series values."""

        self._ts_buffer.append([self._format_value(v) for v in values])
        if len(self._ts_buffer) >= self._ts_threshold:
            self._flush_timeseries()

    # ------------------------------------------------------------------
    def log_event(
        self,
        t: float,
        event_type: str,
        position: Sequence[float],
        details: Optional[Mapping[str, object]] = None,
    ) -> None:
        """Buffer one event row; ``details`` is stored as JSON."""

        row = [
            self._format_value(t),
            event_type,
            self._format_value(position[0]),
            self._format_value(position[1]),
            json.dumps(dict(details or {}), sort_keys=True, default=str),
        ]
        self._ev_buffer.append(row)
        if len(self._ev_buffer) >= self._ev_threshold:
            self._flush_events()

    # ------------------------------------------------------------------
    def close(self) -> None:
        """Flush pending buffers and close file handles. Safe to call twice."""

        if self.closed:
            return
        self._flush_timeseries()
        self._flush_events()
        self._ts_file.close()
        self._ev_file.close()
        self.closed = True

    # ------------------------------------------------------------------
    def _flush_timeseries(self) -> None:
        if self._ts_buffer:
            self._ts_writer.writerows(self._ts_buffer)
            self._ts_file.flush()
            self._ts_buffer.clear()

    # ------------------------------------------------------------------
    def _flush_events(self) -> None:
        if self._ev_buffer:
            self._ev_writer.writerows(self._ev_buffer)
            self._ev_file.flush()
            self._ev_buffer.clear()

    # ------------------------------------------------------------------
    @staticmethod
    def _format_value(value: float) -> str:
        return f"{float(value):.10g}"

    # ------------------------------------------------------------------
    def __enter__(self) -> "RunLogger":
        return self

    # ------------------------------------------------------------------
    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self.close()
        return None


__all__ = ["RunLogger"]
