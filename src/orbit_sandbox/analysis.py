"""Analyze a recorded sandbox run and generate diagnostic figures."""
from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from orbit_sandbox.core.errors import RunDataError

logger = logging.getLogger(__name__)

TIMESERIES_FILENAME = "timeseries.csv"
EVENTS_FILENAME = "events.csv"
META_FILENAME = "meta.json"
SUMMARY_FILENAME = "summary.json"
FIGS_SUBDIR = "figs"
TERMINAL_EVENTS = ("collision", "out_of_bounds", "halted")


def load_timeseries(path: Path) -> Dict[str, np.ndarray]:
    with path.open("r", newline="", encoding="utf-8") as fh:
        reader = csv.DictReader(fh)
        columns: Dict[str, List[float]] = {name: [] for name in reader.fieldnames or []}
        for row in reader:
            for key, value in row.items():
                if key is None:
                    continue
                columns.setdefault(key, []).append(float(value))
    return {key: np.asarray(values, dtype=float) for key, values in columns.items()}


def load_events(path: Path) -> List[dict]:
    events: List[dict] = []
    with path.open("r", newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            if not row:
                continue
            event = {
                "t": float(row["t"]),
                "type": row["type"],
                "x": float(row["x"]),
                "y": float(row["y"]),
                "details": {},
            }
            details_raw = row.get("details") or ""
            if details_raw:
                try:
                    event["details"] = json.loads(details_raw)
                except json.JSONDecodeError:
                    event["details"] = {"raw": details_raw}
            events.append(event)
    return events


def resolve_run_dir(root_dir: Path, run: Optional[str] = None) -> Path:
    """Find a run directory by path, by id below ``root_dir`` or via ``last_run.txt``."""

    if run:
        run_path = Path(run)
        if not run_path.is_dir():
            run_path = root_dir / run
    else:
        last_run_file = root_dir / "last_run.txt"
        if not last_run_file.exists():
            raise RunDataError(f"no run given and {last_run_file} does not exist")
        run_path = root_dir / last_run_file.read_text(encoding="utf-8").strip()
    if not run_path.is_dir():
        raise RunDataError(f"run directory not found: {run_path}")
    return run_path


def ensure_fig_dir(run_dir: Path) -> Path:
    fig_dir = run_dir / FIGS_SUBDIR
    fig_dir.mkdir(parents=True, exist_ok=True)
    return fig_dir


def summarize_events(events: List[dict]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for event in events:
        counts[event["type"]] = counts.get(event["type"], 0) + 1
    return counts


def find_outcome(events: List[dict]) -> Optional[dict]:
    for event in reversed(events):
        if event["type"] in TERMINAL_EVENTS:
            return {
                "reason": event["type"],
                "t": event["t"],
                "detail": event["details"].get("detail", ""),
            }
    return None


def summarize_run(meta: dict, ts: Dict[str, np.ndarray], events: List[dict]) -> dict:
    t = ts.get("t", np.array([]))
    if t.size == 0:
        raise RunDataError("timeseries is empty")
    distance = np.hypot(ts["x"], ts["y"])
    fuel = ts.get("fuel", np.ones_like(t))
    return {
        "samples": int(t.size),
        "duration": float(t[-1] - t[0]),
        "final_time": float(t[-1]),
        "max_speed": float(np.max(ts["speed"])),
        "min_distance": float(np.min(distance)),
        "max_distance": float(np.max(distance)),
        "fuel_used": float(fuel[0] - fuel[-1]),
        "fuel_remaining": float(fuel[-1]),
        "events": summarize_events(events),
        "outcome": find_outcome(events),
        "bodies": [body.get("name") for body in meta.get("bodies", [])],
    }


def plot_trajectory(fig_dir: Path, meta: dict, ts: Dict[str, np.ndarray], events: List[dict]) -> None:
    fig, ax = plt.subplots(figsize=(6, 6))
    ax.plot(ts["x"], ts["y"], color="#6bc5c0", lw=1.5, label="Craft")
    theta = np.linspace(0.0, 2.0 * np.pi, 256)
    for body in meta.get("bodies", []):
        bx, by = body.get("position", (0.0, 0.0))
        radius = float(body.get("radius", 0.0))
        ax.scatter([bx], [by], s=30, label=body.get("name"))
        if radius > 0.0:
            ax.plot(bx + radius * np.cos(theta), by + radius * np.sin(theta), alpha=0.3)
    for event in events:
        if event["type"] in TERMINAL_EVENTS:
            ax.scatter([event["x"]], [event["y"]], marker="x", color="#e03131", s=60, label=event["type"])
    ax.set_aspect("equal", "datalim")
    ax.set_xlabel("x [m]")
    ax.set_ylabel("y [m]")
    ax.set_title("Trajectory (x-y)")
    ax.legend(loc="best", fontsize="small")
    fig.tight_layout()
    fig.savefig(fig_dir / "trajectory_xy.png", dpi=150)
    plt.close(fig)


def plot_speed(fig_dir: Path, ts: Dict[str, np.ndarray], events: List[dict]) -> None:
    fig, ax = plt.subplots(figsize=(7, 4))
    ax.plot(ts["t"], ts["speed"], color="#4dabf7")
    for event in events:
        if event["type"] == "fuel_depleted":
            ax.axvline(event["t"], color="#d9480f", linestyle="--", alpha=0.6)
    ax.set_xlabel("t [s]")
    ax.set_ylabel("speed [m/s]")
    ax.set_title("Speed over time")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(fig_dir / "speed.png", dpi=150)
    plt.close(fig)


def plot_fuel(fig_dir: Path, ts: Dict[str, np.ndarray]) -> None:
    fig, ax = plt.subplots(figsize=(7, 4))
    ax.plot(ts["t"], ts["fuel"] * 100.0, color="#ffa94d")
    ax.set_xlabel("t [s]")
    ax.set_ylabel("fuel [%]")
    ax.set_ylim(-2.0, 102.0)
    ax.set_title("Fuel remaining")
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(fig_dir / "fuel.png", dpi=150)
    plt.close(fig)


def analyze_run(run_dir: Path) -> dict:
    """Write figures and ``summary.json`` for ``run_dir``; returns the summary."""

    meta_path = run_dir / META_FILENAME
    ts_path = run_dir / TIMESERIES_FILENAME
    ev_path = run_dir / EVENTS_FILENAME
    if not ts_path.exists() or not ev_path.exists():
        raise RunDataError(f"{run_dir} is missing {TIMESERIES_FILENAME} or {EVENTS_FILENAME}")

    meta: dict = {}
    if meta_path.exists():
        with meta_path.open("r", encoding="utf-8") as fh:
            meta = json.load(fh)
    else:
        logger.warning("%s has no %s; plotting without body data", run_dir, META_FILENAME)

    ts = load_timeseries(ts_path)
    events = load_events(ev_path)
    summary = summarize_run(meta, ts, events)

    fig_dir = ensure_fig_dir(run_dir)
    plot_trajectory(fig_dir, meta, ts, events)
    plot_speed(fig_dir, ts, events)
    plot_fuel(fig_dir, ts)

    with (run_dir / SUMMARY_FILENAME).open("w", encoding="utf-8") as fh:
        json.dump(summary, fh, indent=2)
    logger.info("Wrote figures to %s", fig_dir)
    return summary


def format_summary(run_dir: Path, summary: dict) -> str:
    lines = [
        f"Run: {run_dir.name}",
        f" Samples: {summary['samples']}  duration {summary['duration']:.1f} s",
        f" Max speed: {summary['max_speed']:.1f} m/s",
        f" Distance from origin: {summary['min_distance']:.4g} .. {summary['max_distance']:.4g} m",
        f" Fuel used: {summary['fuel_used'] * 100.0:.1f} %",
        " Events: " + ", ".join(f"{kind}: {count}" for kind, count in sorted(summary["events"].items())),
    ]
    outcome = summary["outcome"]
    if outcome is None:
        lines.append(" Outcome: none (run still in progress when recording stopped)")
    else:
        lines.append(f" Outcome: {outcome['reason']} at t={outcome['t']:.1f} s {outcome['detail']}".rstrip())
    return "\n".join(lines)


__all__ = [
    "analyze_run",
    "find_outcome",
    "format_summary",
    "load_events",
    "load_timeseries",
    "resolve_run_dir",
    "summarize_events",
    "summarize_run",
]
