"""Mission objectives evaluated against read-only simulation snapshots."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from .model import Body
from .simulation import SimulationSnapshot

logger = logging.getLogger(__name__)

MIN_ORBIT_ALTITUDE = 100_000.0
ORBIT_SPEED_TOLERANCE = 0.05
MAX_RADIAL_FRACTION = 0.2
LUNAR_APPROACH_DISTANCE = 5.0e7


def _find_body(snapshot: SimulationSnapshot, name: str) -> Optional[Body]:
    for body in snapshot.bodies:
        if body.name == name:
            return body
    return None


@dataclass(frozen=True)
class Objective:
    name: str
    description: str
    check: Callable[[SimulationSnapshot], bool]

    def completed(self, snapshot: SimulationSnapshot) -> bool:
        if snapshot.craft.destroyed:
            return False
        return bool(self.check(snapshot))


def stable_orbit(
    body_name: str,
    *,
    min_altitude: float = MIN_ORBIT_ALTITUDE,
    speed_tolerance: float = ORBIT_SPEED_TOLERANCE,
    max_radial_fraction: float = MAX_RADIAL_FRACTION,
) -> Objective:
    """Near-circular orbit around ``body_name``.

    Relative speed within ``speed_tolerance`` of ``sqrt(GM/r)``, altitude above
    ``min_altitude`` and the radial velocity component under
    ``max_radial_fraction`` of the speed.
    """

    def check(snapshot: SimulationSnapshot) -> bool:
        body = _find_body(snapshot, body_name)
        if body is None:
            return False
        offset = snapshot.craft.position - body.position
        distance = float(np.linalg.norm(offset))
        if distance <= 0.0 or distance - body.radius <= min_altitude:
            return False
        velocity = snapshot.craft.velocity - body.velocity
        speed = float(np.linalg.norm(velocity))
        circular = math.sqrt(snapshot.gravitational_constant * body.mass / distance)
        radial = abs(float(np.dot(velocity, offset / distance)))
        return abs(speed - circular) / circular < speed_tolerance and radial < max_radial_fraction * speed

    return Objective(
        name="Achieve Stable Orbit",
        description=f"Reach a stable circular orbit around {body_name}.",
        check=check,
    )


def approach(body_name: str, distance: float = LUNAR_APPROACH_DISTANCE) -> Objective:
    """Centre distance to ``body_name`` below ``distance`` meters."""

    def check(snapshot: SimulationSnapshot) -> bool:
        body = _find_body(snapshot, body_name)
        if body is None:
            return False
        return float(np.linalg.norm(snapshot.craft.position - body.position)) < distance

    return Objective(
        name=f"{body_name} Approach",
        description=f"Get within {distance / 1_000.0:,.0f} km of {body_name}.",
        check=check,
    )


def default_objectives() -> list[Objective]:
    return [stable_orbit("Earth"), approach("Moon")]


class MissionTracker:
    """Cycles through objectives, polling at most once per ``poll_interval``.

    Polling is skipped while the simulation is stopped or paused. A completed
    objective stays completed until :meth:`advance` moves on to the next one.
    """

    def __init__(self, objectives: Sequence[Objective], poll_interval: float = 1.0) -> None:
        if not objectives:
            raise ValueError("at least one objective is required")
        self.objectives = list(objectives)
        self.poll_interval = poll_interval
        self.index = 0
        self.completed = False
        self._since_poll = 0.0

    @property
    def active(self) -> Objective:
        return self.objectives[self.index]

    def update(self, snapshot: SimulationSnapshot, frame_dt: float) -> bool:
        """Poll the active objective. Returns ``True`` on the completing poll."""

        if self.completed or not snapshot.running or snapshot.paused:
            return False
        self._since_poll += frame_dt
        if self._since_poll < self.poll_interval:
            return False
        self._since_poll = 0.0
        if self.active.completed(snapshot):
            self.completed = True
            logger.info("Mission complete: %s", self.active.name)
            return True
        return False

    def advance(self) -> Objective:
        self.index = (self.index + 1) % len(self.objectives)
        self.completed = False
        self._since_poll = 0.0
        return self.active


__all__ = [
    "MissionTracker",
    "Objective",
    "approach",
    "default_objectives",
    "stable_orbit",
]
