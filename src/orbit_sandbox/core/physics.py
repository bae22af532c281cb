"""Force model, integrator and orbital helpers for the sandbox."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .config import GRAVITATIONAL_CONSTANT
from .model import Body, PointMass

DEFAULT_SOFTENING = 1e-6


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp *value* between *lo* and *hi*."""

    return max(lo, min(hi, value))


def clamp_dt(frame_dt: float, max_dt: float) -> float:
    """Clamp a frame delta to ``[0, max_dt]`` so slow frames stay stable."""

    return clamp(frame_dt, 0.0, max_dt)


def gravity_from(
    body: Body,
    point: PointMass,
    G: float = GRAVITATIONAL_CONSTANT,
    softening: float = DEFAULT_SOFTENING,
) -> np.ndarray:
    """Force exerted by ``body`` on ``point``.

    The magnitude is ``G * M * m / max(d², softening)``. When the two centres
    coincide the direction is undefined and the zero vector is returned.
    """

    delta = np.asarray(body.position, dtype=float) - np.asarray(point.position, dtype=float)
    dist_sq = float(delta[0] * delta[0] + delta[1] * delta[1])
    if dist_sq == 0.0:
        return np.zeros(2, dtype=float)
    magnitude = G * body.mass * point.mass / max(dist_sq, softening)
    return delta * (magnitude / math.sqrt(dist_sq))


def net_gravity(
    point: PointMass,
    bodies: Iterable[Body],
    G: float = GRAVITATIONAL_CONSTANT,
    softening: float = DEFAULT_SOFTENING,
) -> np.ndarray:
    """Sum the gravitational force of every body on ``point``.

    A body that is the queried object itself is skipped (identity, not name).
    """

    total = np.zeros(2, dtype=float)
    for body in bodies:
        if body is point:
            continue
        total += gravity_from(body, point, G, softening)
    return total


def thrust_force(magnitude: float, orientation: float) -> np.ndarray:
    """Thrust vector of ``magnitude`` newtons along ``orientation`` radians."""

    return magnitude * np.array([math.cos(orientation), math.sin(orientation)], dtype=float)


def semi_implicit_euler_step(
    position: np.ndarray,
    velocity: np.ndarray,
    net_force: np.ndarray,
    mass: float,
    dt: float,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Advance one symplectic Euler step.

    The velocity is updated first and the *new* velocity moves the position.
    Returns ``(position, velocity, acceleration)`` as fresh arrays.
    """

    acceleration = np.asarray(net_force, dtype=float) / mass
    velocity_next = velocity + acceleration * dt
    position_next = position + velocity_next * dt
    return position_next, velocity_next, acceleration


def circular_velocity(mass: float, distance: float, G: float = GRAVITATIONAL_CONSTANT) -> float:
    """Speed of a circular orbit at ``distance`` from a body of ``mass``."""

    if distance <= 0.0:
        return 0.0
    return math.sqrt(G * mass / distance)


def escape_velocity(mass: float, distance: float, G: float = GRAVITATIONAL_CONSTANT) -> float:
    if distance <= 0.0:
        return 0.0
    return math.sqrt(2.0 * G * mass / distance)


def energy_specific(r: np.ndarray, v: np.ndarray, mu: float) -> float:
    """Specific orbital energy for relative position ``r`` and velocity ``v``."""

    rmag = float(np.linalg.norm(r))
    vmag2 = float(v[0] * v[0] + v[1] * v[1])
    return 0.5 * vmag2 - mu / rmag


def eccentricity(r: np.ndarray, v: np.ndarray, mu: float) -> float:
    """Return the orbital eccentricity for relative state ``(r, v)``."""

    r3 = np.array([r[0], r[1], 0.0])
    v3 = np.array([v[0], v[1], 0.0])
    h = np.cross(r3, v3)
    e_vec = np.cross(v3, h) / mu - r3 / np.linalg.norm(r3)
    return float(np.linalg.norm(e_vec[:2]))


def nearest_body(position: np.ndarray, bodies: Iterable[Body]) -> tuple[Optional[Body], float]:
    """Closest body to ``position`` (centre distance) and that distance."""

    closest: Optional[Body] = None
    best = math.inf
    for body in bodies:
        distance = float(np.linalg.norm(np.asarray(position) - body.position))
        if distance < best:
            closest = body
            best = distance
    return closest, best


@dataclass(frozen=True)
class OrbitalParameters:
    """Orbit of the craft relative to the nearest body, for display."""

    body_name: str
    distance: float
    altitude: float
    relative_speed: float
    gravitational_acceleration: float
    circular_speed: float
    escape_speed: float
    specific_energy: float
    eccentricity: float

    @property
    def bound(self) -> bool:
        return self.specific_energy < 0.0


def orbital_parameters(
    position: np.ndarray,
    velocity: np.ndarray,
    bodies: Iterable[Body],
    G: float = GRAVITATIONAL_CONSTANT,
) -> Optional[OrbitalParameters]:
    """Two-body orbital elements relative to the nearest body.

    Returns ``None`` when there are no bodies or the craft sits at a body's
    centre.
    """

    body, distance = nearest_body(position, bodies)
    if body is None or distance <= 0.0:
        return None
    mu = G * body.mass
    r = np.asarray(position, dtype=float) - body.position
    v = np.asarray(velocity, dtype=float) - body.velocity
    return OrbitalParameters(
        body_name=body.name,
        distance=distance,
        altitude=distance - body.radius,
        relative_speed=float(np.linalg.norm(v)),
        gravitational_acceleration=mu / (distance * distance),
        circular_speed=circular_velocity(body.mass, distance, G),
        escape_speed=escape_velocity(body.mass, distance, G),
        specific_energy=energy_specific(r, v, mu),
        eccentricity=eccentricity(r, v, mu),
    )


__all__ = [
    "DEFAULT_SOFTENING",
    "OrbitalParameters",
    "circular_velocity",
    "clamp",
    "clamp_dt",
    "eccentricity",
    "energy_specific",
    "escape_velocity",
    "gravity_from",
    "nearest_body",
    "net_gravity",
    "orbital_parameters",
    "semi_implicit_euler_step",
    "thrust_force",
]
