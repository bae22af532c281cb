"""Non-destructive trajectory preview for the paused simulation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from .collisions import check_collision
from .config import GRAVITATIONAL_CONSTANT
from .model import Body, CraftSnapshot
from .physics import DEFAULT_SOFTENING, net_gravity, semi_implicit_euler_step, thrust_force

logger = logging.getLogger(__name__)


@dataclass
class _Probe:
    position: np.ndarray
    velocity: np.ndarray
    mass: float
    radius: float


def predict_trajectory(
    snapshot: CraftSnapshot,
    bodies: Iterable[Body],
    steps: int,
    step_dt: float,
    *,
    G: float = GRAVITATIONAL_CONSTANT,
    softening: float = DEFAULT_SOFTENING,
    boundary_radius: float = float("inf"),
) -> list[tuple[float, float]]:
    """Integrate a private copy of ``snapshot`` for up to ``steps`` steps.

    Bodies are copied once and held stationary over the horizon. Thrust is
    applied at full magnitude along the snapshot's orientation whenever the
    snapshot is thrusting. Each integrated position is appended; the path
    stops early on the first collision or once the probe leaves
    ``boundary_radius``. Neither ``snapshot`` nor ``bodies`` is modified.
    """

    frozen_bodies = tuple(body.copy() for body in bodies)
    probe = _Probe(
        position=np.array(snapshot.position, dtype=float),
        velocity=np.array(snapshot.velocity, dtype=float),
        mass=snapshot.mass,
        radius=snapshot.radius,
    )
    thrust = (
        thrust_force(snapshot.max_thrust, snapshot.orientation)
        if snapshot.thrusting
        else np.zeros(2, dtype=float)
    )

    points: list[tuple[float, float]] = []
    for _ in range(max(0, int(steps))):
        force = net_gravity(probe, frozen_bodies, G, softening) + thrust
        probe.position, probe.velocity, _ = semi_implicit_euler_step(
            probe.position, probe.velocity, force, probe.mass, step_dt
        )
        points.append((float(probe.position[0]), float(probe.position[1])))
        hit = check_collision(probe, frozen_bodies)
        if hit is not None:
            logger.debug("Predicted path hits %s after %d steps", hit.name, len(points))
            break
        if float(np.linalg.norm(probe.position)) > boundary_radius:
            logger.debug("Predicted path leaves the boundary after %d steps", len(points))
            break
    return points


__all__ = ["predict_trajectory"]
