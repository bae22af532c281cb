"""Command line entry point: ``orbit-sandbox play|run|analyze``."""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from orbit_sandbox.core.config import SimulationCfg
from orbit_sandbox.core.ephemeris import (
    TableEphemerisSource,
    load_ephemeris_table,
    parse_horizons_vectors,
)
from orbit_sandbox.core.errors import SandboxError
from orbit_sandbox.core.logging_utils import RunLogger
from orbit_sandbox.core.simulation import Simulation
from orbit_sandbox.data.scenarios import DEFAULT_SCENARIO_KEY, SCENARIO_DISPLAY_ORDER, build_scenario

logger = logging.getLogger(__name__)

DEFAULT_RUNS_DIR = Path("data") / "runs"


def build_ephemeris_source(
    table_path: Optional[Path], horizons: Sequence[str] = ()
) -> Optional[TableEphemerisSource]:
    """Table source from a JSON file and/or ``NAME=PATH`` Horizons vector files."""

    if table_path is None and not horizons:
        return None
    source = TableEphemerisSource(load_ephemeris_table(table_path) if table_path else None)
    for item in horizons:
        name, sep, path = item.partition("=")
        if not sep or not name or not path:
            raise SandboxError(f"expected NAME=PATH for --horizons, got {item!r}")
        text = Path(path).read_text(encoding="utf-8")
        source.update({name: parse_horizons_vectors(text)})
    return source


def run_headless(
    sim: Simulation,
    duration: float,
    *,
    frame_dt: Optional[float] = None,
    burn: Optional[tuple[float, float]] = None,
    source: Optional[TableEphemerisSource] = None,
) -> Simulation:
    """Drive ``sim`` with fixed frames until ``duration`` simulated seconds pass.

    ``burn`` is ``(start, length)`` in simulated seconds; thrust is held while
    the elapsed time is inside that window. Stops early on a terminal outcome.
    """

    if frame_dt is None:
        frame_dt = sim.cfg.physics.max_dt
    if not sim.running:
        sim.start()
    while sim.running and sim.clock.elapsed_sim_time < duration:
        if burn is not None:
            start, length = burn
            inside = start <= sim.clock.elapsed_sim_time < start + length
            if inside != sim.craft.thrust_commanded:
                if inside:
                    sim.start_control("thrust")
                else:
                    sim.stop_control("thrust")
        if source is not None:
            source.pump()
        sim.frame(frame_dt)
    return sim


def _scenario_cfg(args: argparse.Namespace) -> SimulationCfg:
    cfg = build_scenario(args.scenario)
    if args.time_scale is not None:
        cfg = replace(cfg, physics=replace(cfg.physics, time_scale=args.time_scale)).validate()
    return cfg


def _cmd_play(args: argparse.Namespace) -> int:
    from orbit_sandbox.app import run_app

    source = build_ephemeris_source(args.ephemeris, args.horizons)
    run_app(
        _scenario_cfg(args),
        ephemeris_source=source,
        record_dir=args.record_dir,
        title=f"Orbit Sandbox - {args.scenario}",
    )
    return 0


def _cmd_run(args: argparse.Namespace) -> int:
    source = build_ephemeris_source(args.ephemeris, args.horizons)
    with RunLogger(args.record_dir, args.run_id) as recorder:
        sim = Simulation(_scenario_cfg(args), ephemeris_source=source, recorder=recorder)
        meta = sim.describe()
        meta["scenario"] = args.scenario
        meta["burn"] = list(args.burn) if args.burn else None
        recorder.write_meta(meta)
        run_headless(sim, args.duration, burn=tuple(args.burn) if args.burn else None, source=source)
        print(f"Recorded run {recorder.run_id} in {recorder.run_dir}")
    if sim.outcome is not None:
        print(f"Outcome: {sim.outcome.detail} at t={sim.outcome.time:.1f} s")
    else:
        print(f"Completed {sim.clock.elapsed_sim_time:.1f} s, fuel {sim.craft.fuel_fraction * 100.0:.1f} %")
    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    from orbit_sandbox.analysis import analyze_run, format_summary, resolve_run_dir

    run_dir = resolve_run_dir(args.runs_dir, args.run)
    summary = analyze_run(run_dir)
    print(format_summary(run_dir, summary))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="orbit-sandbox", description="Interactive orbital mechanics sandbox.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostics log level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_sim_options(cmd: argparse.ArgumentParser) -> None:
        cmd.add_argument("--scenario", default=DEFAULT_SCENARIO_KEY, choices=SCENARIO_DISPLAY_ORDER)
        cmd.add_argument("--time-scale", type=float, default=None, help="Simulated seconds per wall second")
        cmd.add_argument("--ephemeris", type=Path, default=None, help="JSON ephemeris table")
        cmd.add_argument(
            "--horizons",
            action="append",
            default=[],
            metavar="NAME=PATH",
            help="JPL Horizons CSV vector table for body NAME (repeatable)",
        )

    play = sub.add_parser("play", help="Open the interactive pygame window")
    add_sim_options(play)
    play.add_argument("--record-dir", type=Path, default=None, help="Record runs below this directory")
    play.set_defaults(func=_cmd_play)

    run = sub.add_parser("run", help="Run headless and record the result")
    add_sim_options(run)
    run.add_argument("--duration", type=float, default=6_000.0, help="Simulated seconds to run")
    run.add_argument(
        "--burn",
        type=float,
        nargs=2,
        metavar=("START", "LENGTH"),
        default=None,
        help="Hold thrust from START for LENGTH simulated seconds",
    )
    run.add_argument("--record-dir", type=Path, default=DEFAULT_RUNS_DIR)
    run.add_argument("--run-id", default=None)
    run.set_defaults(func=_cmd_run)

    analyze = sub.add_parser("analyze", help="Plot and summarize a recorded run")
    analyze.add_argument("run", nargs="?", help="Run directory or run id (default: last run)")
    analyze.add_argument("--runs-dir", type=Path, default=DEFAULT_RUNS_DIR)
    analyze.set_defaults(func=_cmd_analyze)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        return args.func(args)
    except (SandboxError, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
