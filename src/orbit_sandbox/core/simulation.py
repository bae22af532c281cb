"""Simulation coordinator: clock, pause/resume and per-tick orchestration.

The host drives the simulation by calling :meth:`Simulation.frame` once per
rendered frame with the wall-clock delta. Everything happens on that one
thread; ephemeris updates arrive through a callback on a later frame and are
matched against the request generation before they touch the bodies.

Tick order while running and unpaused, for every fixed sub-step:

1. fuel/thrust, then gravity from every body, then the semi-implicit step,
   committed to the live craft;
2. collision check, terminal on the first hit;
3. boundary check, terminal once the grace period runs out;
4. simulated time advances.
"""
from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .boundary import BoundaryEvent, BoundaryMonitor
from .collisions import check_collision
from .config import SIMULATION_CFG, SimulationCfg
from .ephemeris import EphemerisRequest, EphemerisResult, EphemerisSource, RequestTracker
from .logging_utils import RunLogger
from .model import Body, BodyRegistry, Craft, SimulationClock
from .physics import clamp_dt, net_gravity, semi_implicit_euler_step, thrust_force
from .prediction import predict_trajectory
from .timekeeping import FixedStepAccumulator

logger = logging.getLogger(__name__)

COLLISION = "collision"
OUT_OF_BOUNDS = "out_of_bounds"
HALTED = "halted"


@dataclass(frozen=True)
class Outcome:
    """Terminal result of a run."""

    reason: str
    detail: str
    time: float


@dataclass(frozen=True)
class SimEvent:
    kind: str
    time: float
    detail: str = ""


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only view handed to the renderer and the mission tracker."""

    craft: Craft
    bodies: tuple[Body, ...]
    running: bool
    paused: bool
    predicted_path: tuple[tuple[float, float], ...]
    boundary_radius: float
    out_of_bounds: bool
    boundary_remaining: float
    elapsed_sim_time: float
    time_scale: float
    gravitational_constant: float
    outcome: Optional[Outcome]


class Simulation:
    """Owns the craft, the bodies and the clock of one sandbox run."""

    def __init__(
        self,
        cfg: SimulationCfg = SIMULATION_CFG,
        *,
        ephemeris_source: Optional[EphemerisSource] = None,
        recorder: Optional[RunLogger] = None,
    ) -> None:
        self.cfg = cfg.validate()
        self.bodies = BodyRegistry.from_specs(cfg.bodies)
        self.craft = Craft.from_cfg(cfg.craft)
        self.clock = SimulationClock(time_scale=cfg.physics.time_scale)
        self.boundary = BoundaryMonitor.from_cfg(cfg.boundary)
        self.ephemeris_source = ephemeris_source
        self.recorder = recorder
        self.outcome: Optional[Outcome] = None
        self.events: deque[SimEvent] = deque(maxlen=256)

        self._stepper = FixedStepAccumulator(cfg.physics.max_step, cfg.physics.max_substeps)
        self._requests = RequestTracker()
        self._predicted_path: list[tuple[float, float]] = []
        self._since_ephemeris = 0.0
        self._steps_since_sample = 0
        self._last_thrust = 0.0
        logger.info(
            "Simulation created with %d bodies, time scale %.3g, boundary %.3g m",
            len(self.bodies),
            self.clock.time_scale,
            self.boundary.radius,
        )

    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self.clock.running

    @property
    def paused(self) -> bool:
        return self.clock.paused

    @property
    def predicted_path(self) -> tuple[tuple[float, float], ...]:
        return tuple(self._predicted_path)

    @property
    def pending_request(self) -> Optional[EphemerisRequest]:
        return self._requests.outstanding

    # ------------------------------------------------------------------
    def start(self) -> bool:
        """Start the run, or toggle pause once it is running.

        Returns ``False`` when the previous run ended in a terminal outcome;
        :meth:`reset` must be called first.
        """

        if self.outcome is not None:
            logger.warning("Run already ended (%s); reset before starting again", self.outcome.reason)
            return False
        clock = self.clock
        if not clock.running:
            clock.running = True
            clock.paused = False
            self._stepper.clear()
            self._predicted_path = []
            self._emit("start")
            if self.ephemeris_source is not None:
                self.request_ephemeris()
            return True

        clock.paused = not clock.paused
        self._stepper.clear()
        if clock.paused:
            self.update_prediction()
            self._emit("pause")
        else:
            self._predicted_path = []
            self._emit("resume")
        return True

    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Return to the stopped state with the craft at its initial conditions."""

        self.clock.reset()
        self.craft.reset(self.cfg.craft)
        self.boundary.reset()
        self.outcome = None
        self._predicted_path = []
        self._requests.invalidate()
        self._stepper.clear()
        self._since_ephemeris = 0.0
        self._steps_since_sample = 0
        self._last_thrust = 0.0
        self._emit("reset")

    # ------------------------------------------------------------------
    def set_time_scale(self, scale: float) -> None:
        if not (math.isfinite(scale) and scale > 0.0):
            raise ValueError(f"time scale must be positive, got {scale!r}")
        self.clock.time_scale = float(scale)

    # ------------------------------------------------------------------
    def start_control(self, control: str) -> bool:
        changed = self.craft.start_control(control)
        if changed and self.clock.running and self.clock.paused:
            self.update_prediction()
        return changed

    # ------------------------------------------------------------------
    def stop_control(self, control: str) -> bool:
        changed = self.craft.stop_control(control)
        if changed and self.clock.running and self.clock.paused:
            self.update_prediction()
        return changed

    # ------------------------------------------------------------------
    def frame(self, frame_dt: float) -> Optional[Outcome]:
        """Per-frame host callback.

        ``frame_dt`` is the wall-clock time since the previous frame. Returns
        the terminal :class:`Outcome` if this frame ended the run. Never
        raises: unexpected errors stop the clock with a ``halted`` outcome.
        """

        if not self.clock.running:
            return None
        wall_dt = clamp_dt(frame_dt, self.cfg.physics.max_dt)
        try:
            if self.clock.paused:
                if self.craft.rotate(wall_dt):
                    self.update_prediction()
                return None

            self._since_ephemeris += wall_dt
            if (
                self.ephemeris_source is not None
                and self._since_ephemeris >= self.cfg.ephemeris_refresh_interval
            ):
                self.request_ephemeris()

            self.craft.rotate(wall_dt)
            self._stepper.accrue(wall_dt * self.clock.time_scale)
            for dt in self._stepper.drain():
                outcome = self.step(dt)
                if outcome is not None:
                    return outcome
            return None
        except Exception:
            logger.exception("Unexpected error during simulation tick")
            return self._halt()

    # ------------------------------------------------------------------
    def step(self, dt: float) -> Optional[Outcome]:
        """Advance the live craft by one fixed step of ``dt`` simulated seconds."""

        craft = self.craft
        physics = self.cfg.physics
        had_fuel = craft.fuel_fraction > 0.0
        thrust = craft.burn(dt)
        if had_fuel and craft.fuel_fraction == 0.0:
            self._emit("fuel_depleted", time=self.clock.elapsed_sim_time + dt)

        force = net_gravity(craft, self.bodies, physics.gravitational_constant, physics.softening)
        force = force + thrust_force(thrust, craft.orientation)
        position, velocity, acceleration = semi_implicit_euler_step(
            craft.position, craft.velocity, force, craft.mass, dt
        )
        craft.commit(position, velocity, acceleration)
        self._last_thrust = thrust
        t = self.clock.elapsed_sim_time + dt

        hit = check_collision(craft, self.bodies)
        if hit is not None:
            craft.destroy()
            return self._finish(COLLISION, f"mission failed: collided with {hit.name}", time=t)

        event = self.boundary.update(float(np.linalg.norm(craft.position)), dt)
        if event is BoundaryEvent.ENTERED:
            self._emit("boundary_entered", time=t, detail=f"{self.boundary.grace_period:g} s to return")
        elif event is BoundaryEvent.CLEARED:
            self._emit("boundary_cleared", time=t)
        elif event is BoundaryEvent.VIOLATION:
            return self._finish(OUT_OF_BOUNDS, "mission failed: out of bounds", time=t)

        self.clock.elapsed_sim_time = t
        self._sample(dt)
        return None

    # ------------------------------------------------------------------
    def update_prediction(self) -> tuple[tuple[float, float], ...]:
        """Recompute the preview path from the current craft state."""

        if self.craft.destroyed:
            self._predicted_path = []
        else:
            physics = self.cfg.physics
            self._predicted_path = predict_trajectory(
                self.craft.snapshot(),
                self.bodies,
                self.cfg.prediction.steps,
                self.cfg.prediction.step_dt,
                G=physics.gravitational_constant,
                softening=physics.softening,
                boundary_radius=self.boundary.radius,
            )
        return self.predicted_path

    # ------------------------------------------------------------------
    def request_ephemeris(self) -> Optional[EphemerisRequest]:
        """Ask the ephemeris source for fresh body states without waiting."""

        if self.ephemeris_source is None:
            return None
        request = self._requests.issue(self.bodies.names)
        self._since_ephemeris = 0.0

        def deliver(result: EphemerisResult) -> None:
            self._on_ephemeris(request, result)

        try:
            self.ephemeris_source.request(request.names, deliver)
        except Exception as exc:
            logger.warning("Ephemeris request %d could not be sent: %s", request.generation, exc)
            self._requests.invalidate()
            self._emit("ephemeris_failed", detail=str(exc))
            return None
        logger.debug("Ephemeris request %d sent for %s", request.generation, ", ".join(request.names))
        return request

    # ------------------------------------------------------------------
    def drain_events(self) -> list[SimEvent]:
        events = list(self.events)
        self.events.clear()
        return events

    # ------------------------------------------------------------------
    def snapshot(self) -> SimulationSnapshot:
        return SimulationSnapshot(
            craft=self.craft.copy(),
            bodies=self.bodies.copies(),
            running=self.clock.running,
            paused=self.clock.paused,
            predicted_path=self.predicted_path,
            boundary_radius=self.boundary.radius,
            out_of_bounds=self.boundary.out_of_bounds,
            boundary_remaining=self.boundary.remaining,
            elapsed_sim_time=self.clock.elapsed_sim_time,
            time_scale=self.clock.time_scale,
            gravitational_constant=self.cfg.physics.gravitational_constant,
            outcome=self.outcome,
        )

    # ------------------------------------------------------------------
    def describe(self) -> dict[str, object]:
        """Run metadata for :meth:`RunLogger.write_meta`."""

        cfg = self.cfg
        return {
            "G": cfg.physics.gravitational_constant,
            "softening": cfg.physics.softening,
            "integrator": "semi-implicit Euler",
            "max_dt": cfg.physics.max_dt,
            "max_step": cfg.physics.max_step,
            "time_scale": self.clock.time_scale,
            "boundary_radius": cfg.boundary.radius,
            "grace_period": cfg.boundary.grace_period,
            "craft": {
                "position": np.asarray(cfg.craft.position, dtype=float).tolist(),
                "velocity": np.asarray(cfg.craft.velocity, dtype=float).tolist(),
                "mass": cfg.craft.mass,
                "radius": cfg.craft.radius,
                "max_thrust": cfg.craft.max_thrust,
                "fuel_consumption_rate": cfg.craft.fuel_consumption_rate,
            },
            "bodies": [
                {
                    "name": body.name,
                    "mass": body.mass,
                    "radius": body.radius,
                    "position": body.position.tolist(),
                }
                for body in self.bodies
            ],
        }

    # ------------------------------------------------------------------
    def _on_ephemeris(self, request: EphemerisRequest, result: EphemerisResult) -> None:
        if not self._requests.accept(request):
            logger.info("Discarding stale ephemeris result from request %d", request.generation)
            return
        if not result.ok:
            logger.warning("Ephemeris update failed, keeping previous body states: %s", result.error)
            self._emit("ephemeris_failed", detail=str(result.error))
            return
        updated = self.bodies.apply_ephemeris(result.table)
        logger.info("Ephemeris applied to %d bodies", len(updated))
        self._emit("ephemeris_applied", detail=",".join(updated))
        if updated and self.clock.running and self.clock.paused:
            self.update_prediction()

    # ------------------------------------------------------------------
    def _finish(self, reason: str, detail: str, *, time: Optional[float] = None) -> Outcome:
        t = self.clock.elapsed_sim_time if time is None else time
        self.clock.running = False
        self.clock.paused = False
        self._stepper.clear()
        self._predicted_path = []
        self.outcome = Outcome(reason=reason, detail=detail, time=t)
        logger.warning("Run ended at t=%.1f s: %s", t, detail)
        self._emit(reason, time=t, detail=detail)
        return self.outcome

    # ------------------------------------------------------------------
    def _halt(self) -> Outcome:
        try:
            return self._finish(HALTED, "simulation halted")
        except Exception:
            # the recorder is the only collaborator _finish touches
            logger.exception("Could not record the halt, detaching the run recorder")
            self.recorder = None
            return self.outcome

    # ------------------------------------------------------------------
    def _emit(self, kind: str, *, time: Optional[float] = None, detail: str = "") -> None:
        t = self.clock.elapsed_sim_time if time is None else time
        self.events.append(SimEvent(kind=kind, time=t, detail=detail))
        if self.recorder is not None:
            self.recorder.log_event(t, kind, self.craft.position, {"detail": detail} if detail else None)
            self._record_state(0.0)

    # ------------------------------------------------------------------
    def _sample(self, dt: float) -> None:
        if self.recorder is None:
            return
        self._steps_since_sample += 1
        if self._steps_since_sample >= self.cfg.physics.log_every_steps:
            self._record_state(dt)

    # ------------------------------------------------------------------
    def _record_state(self, dt: float) -> None:
        craft = self.craft
        self._steps_since_sample = 0
        self.recorder.log_ts(
            [
                self.clock.elapsed_sim_time if self.outcome is None else self.outcome.time,
                craft.position[0],
                craft.position[1],
                craft.velocity[0],
                craft.velocity[1],
                craft.speed,
                craft.orientation,
                craft.fuel_fraction,
                self._last_thrust,
                dt,
            ]
        )


__all__ = [
    "COLLISION",
    "HALTED",
    "OUT_OF_BOUNDS",
    "Outcome",
    "SimEvent",
    "SimulationSnapshot",
    "Simulation",
]
