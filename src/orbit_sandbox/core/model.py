"""Data models for the sandbox state: bodies, the piloted craft and clocks."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Optional, Protocol

import numpy as np

from .config import BodySpec, CraftCfg
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi
FUEL_EPSILON = 1e-9
CONTROLS = ("thrust", "rotate_left", "rotate_right")


def vec2(x: float = 0.0, y: float = 0.0) -> np.ndarray:
    return np.array([x, y], dtype=float)


def normalize_angle(angle: float) -> float:
    """Wrap ``angle`` into ``[0, 2π)``."""

    wrapped = math.fmod(angle, TWO_PI)
    if wrapped < 0.0:
        wrapped += TWO_PI
    if wrapped >= TWO_PI:
        wrapped = 0.0
    return wrapped


def finite_vector(value: object) -> Optional[np.ndarray]:
    """Return ``value`` as a finite 2-vector, or ``None`` if it is not one.

    Accepts sequences, numpy arrays and ``{"x": ..., "y": ...}`` mappings.
    """

    if value is None:
        return None
    if isinstance(value, Mapping):
        value = (value.get("x"), value.get("y"))
    try:
        arr = np.array(value, dtype=float)
    except (TypeError, ValueError):
        return None
    if arr.shape != (2,) or not np.all(np.isfinite(arr)):
        return None
    return arr


class PointMass(Protocol):
    """Anything with a position and a mass can feel gravity."""

    @property
    def position(self) -> np.ndarray: ...

    @property
    def mass(self) -> float: ...


@dataclass
class Body:
    """Massive, externally driven celestial body."""

    name: str
    mass: float
    radius: float
    position: np.ndarray = field(default_factory=vec2)
    velocity: np.ndarray = field(default_factory=vec2)
    color: tuple[int, int, int] = (200, 200, 255)

    @classmethod
    def from_spec(cls, spec: BodySpec) -> "Body":
        return cls(
            name=spec.name,
            mass=float(spec.mass),
            radius=float(spec.radius),
            position=np.array(spec.position, dtype=float),
            velocity=np.array(spec.velocity, dtype=float),
            color=tuple(spec.color),
        )

    def copy(self) -> "Body":
        return Body(
            name=self.name,
            mass=self.mass,
            radius=self.radius,
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            color=self.color,
        )


@dataclass(frozen=True)
class CraftSnapshot:
    """Detached copy of the craft kinematics used for trajectory prediction."""

    position: np.ndarray
    velocity: np.ndarray
    mass: float
    radius: float
    orientation: float
    thrusting: bool
    max_thrust: float


@dataclass
class Craft:
    """Mutable state for the piloted craft."""

    position: np.ndarray = field(default_factory=vec2)
    velocity: np.ndarray = field(default_factory=vec2)
    mass: float = 1_000.0
    radius: float = 10.0
    orientation: float = 0.0
    max_thrust: float = 30_000.0
    fuel_consumption_rate: float = 0.005
    rotation_speed: float = math.pi / 4.0
    acceleration: np.ndarray = field(default_factory=vec2)
    fuel_fraction: float = 1.0
    thrust_commanded: bool = False
    rotating_left: bool = False
    rotating_right: bool = False
    destroyed: bool = False

    def __post_init__(self) -> None:
        if not (math.isfinite(self.mass) and self.mass > 0.0):
            raise ConfigurationError(f"craft mass must be positive, got {self.mass!r}")
        if not (math.isfinite(self.radius) and self.radius >= 0.0):
            raise ConfigurationError(f"craft radius must be non-negative, got {self.radius!r}")
        self.position = np.array(self.position, dtype=float)
        self.velocity = np.array(self.velocity, dtype=float)
        self.acceleration = np.array(self.acceleration, dtype=float)
        self.orientation = normalize_angle(self.orientation)

    @classmethod
    def from_cfg(cls, cfg: CraftCfg) -> "Craft":
        return cls(
            position=np.array(cfg.position, dtype=float),
            velocity=np.array(cfg.velocity, dtype=float),
            mass=cfg.mass,
            radius=cfg.radius,
            orientation=cfg.orientation,
            max_thrust=cfg.max_thrust,
            fuel_consumption_rate=cfg.fuel_consumption_rate,
            rotation_speed=cfg.rotation_speed,
        )

    # ------------------------------------------------------------------
    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    # ------------------------------------------------------------------
    @property
    def thrusting(self) -> bool:
        """``True`` while thrust is commanded and the tank is not empty."""

        return self.thrust_commanded and self.fuel_fraction > 0.0 and not self.destroyed

    # ------------------------------------------------------------------
    def start_control(self, control: str) -> bool:
        """Engage ``control``. Ignored (returns ``False``) once destroyed."""

        return self._set_control(control, True)

    # ------------------------------------------------------------------
    def stop_control(self, control: str) -> bool:
        return self._set_control(control, False)

    # ------------------------------------------------------------------
    def release_controls(self) -> None:
        self.thrust_commanded = False
        self.rotating_left = False
        self.rotating_right = False

    # ------------------------------------------------------------------
    def rotate(self, dt: float) -> bool:
        """Apply the rotation controls for ``dt`` seconds.

        Returns ``True`` if the orientation changed.
        """

        if self.destroyed or dt <= 0.0:
            return False
        direction = int(self.rotating_right) - int(self.rotating_left)
        if direction == 0 or self.rotation_speed == 0.0:
            return False
        self.orientation = normalize_angle(self.orientation + direction * self.rotation_speed * dt)
        return True

    # ------------------------------------------------------------------
    def burn(self, dt: float) -> float:
        """Consume fuel for ``dt`` seconds and return the mean thrust magnitude.

        When the tank runs dry part way through the step the thrust is scaled
        by the powered fraction of the step and the fuel is clamped to exactly
        zero.
        """

        if not self.thrusting or dt <= 0.0 or self.max_thrust <= 0.0:
            return 0.0
        if self.fuel_consumption_rate <= 0.0:
            return self.max_thrust
        needed = self.fuel_consumption_rate * dt
        if needed >= self.fuel_fraction - FUEL_EPSILON:
            powered = min(1.0, self.fuel_fraction / needed)
            self.fuel_fraction = 0.0
            logger.info("Craft fuel depleted")
            return self.max_thrust * powered
        self.fuel_fraction -= needed
        return self.max_thrust

    # ------------------------------------------------------------------
    def commit(self, position: np.ndarray, velocity: np.ndarray, acceleration: np.ndarray) -> None:
        """Store an integrated state. A destroyed craft stays frozen."""

        if self.destroyed:
            return
        self.position = position
        self.velocity = velocity
        self.acceleration = acceleration

    # ------------------------------------------------------------------
    def destroy(self) -> None:
        self.destroyed = True
        self.release_controls()
        self.acceleration = vec2()

    # ------------------------------------------------------------------
    def reset(self, cfg: CraftCfg) -> None:
        self.position = np.array(cfg.position, dtype=float)
        self.velocity = np.array(cfg.velocity, dtype=float)
        self.acceleration = vec2()
        self.orientation = normalize_angle(cfg.orientation)
        self.fuel_fraction = 1.0
        self.destroyed = False
        self.release_controls()

    # ------------------------------------------------------------------
    def snapshot(self) -> CraftSnapshot:
        return CraftSnapshot(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            mass=self.mass,
            radius=self.radius,
            orientation=self.orientation,
            thrusting=self.thrusting,
            max_thrust=self.max_thrust,
        )

    # ------------------------------------------------------------------
    def copy(self) -> "Craft":
        return Craft(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            mass=self.mass,
            radius=self.radius,
            orientation=self.orientation,
            max_thrust=self.max_thrust,
            fuel_consumption_rate=self.fuel_consumption_rate,
            rotation_speed=self.rotation_speed,
            acceleration=self.acceleration.copy(),
            fuel_fraction=self.fuel_fraction,
            thrust_commanded=self.thrust_commanded,
            rotating_left=self.rotating_left,
            rotating_right=self.rotating_right,
            destroyed=self.destroyed,
        )

    # ------------------------------------------------------------------
    def _set_control(self, control: str, engaged: bool) -> bool:
        if control not in CONTROLS:
            raise ValueError(f"unknown control {control!r}; expected one of {CONTROLS}")
        if self.destroyed:
            return False
        if control == "thrust":
            self.thrust_commanded = engaged
        elif control == "rotate_left":
            self.rotating_left = engaged
        else:
            self.rotating_right = engaged
        return True


class BodyRegistry:
    """Ordered collection of bodies with unique names.

    Iteration order is insertion order; collision checks rely on it.
    """

    def __init__(self, bodies: Iterable[Body] = ()) -> None:
        self._bodies: list[Body] = []
        self._by_name: dict[str, Body] = {}
        for body in bodies:
            self.add(body)

    @classmethod
    def from_specs(cls, specs: Iterable[BodySpec]) -> "BodyRegistry":
        return cls(Body.from_spec(spec) for spec in specs)

    def add(self, body: Body) -> Body:
        if not (math.isfinite(body.mass) and body.mass > 0.0):
            raise ConfigurationError(f"body {body.name!r}: mass must be positive, got {body.mass!r}")
        if not (math.isfinite(body.radius) and body.radius >= 0.0):
            raise ConfigurationError(
                f"body {body.name!r}: radius must be non-negative, got {body.radius!r}"
            )
        if body.name in self._by_name:
            raise ConfigurationError(f"duplicate body name {body.name!r}")
        self._bodies.append(body)
        self._by_name[body.name] = body
        return body

    def get(self, name: str) -> Body:
        return self._by_name[name]

    @property
    def names(self) -> list[str]:
        return [body.name for body in self._bodies]

    def __iter__(self) -> Iterator[Body]:
        return iter(self._bodies)

    def __len__(self) -> int:
        return len(self._bodies)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def copies(self) -> tuple[Body, ...]:
        return tuple(body.copy() for body in self._bodies)

    def apply_ephemeris(self, entries: Mapping[str, Mapping[str, object]]) -> list[str]:
        """Overwrite bodies from an ephemeris update.

        Entries are applied only when both position and velocity are finite
        2-vectors; optional mass and radius are applied when valid. Unknown
        bodies and invalid entries leave the registry unchanged. Returns the
        names of the bodies that were updated.
        """

        updated: list[str] = []
        for name, entry in entries.items():
            body = self._by_name.get(name)
            if body is None:
                logger.debug("Ignoring ephemeris for unknown body %r", name)
                continue
            if not isinstance(entry, Mapping):
                logger.warning("Ignoring malformed ephemeris entry for %s", name)
                continue
            position = finite_vector(entry.get("position"))
            velocity = finite_vector(entry.get("velocity"))
            if position is None or velocity is None:
                logger.warning("Ephemeris for %s has no finite position/velocity; keeping previous state", name)
                continue
            body.position = position
            body.velocity = velocity
            mass = _as_float(entry.get("mass"))
            if mass is not None and mass > 0.0:
                body.mass = mass
            radius = _as_float(entry.get("radius"))
            if radius is not None and radius >= 0.0:
                body.radius = radius
            updated.append(name)
        return updated


def _as_float(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


@dataclass
class BoundaryState:
    out_of_bounds: bool = False
    time_out_of_bounds: float = 0.0

    def reset(self) -> None:
        self.out_of_bounds = False
        self.time_out_of_bounds = 0.0


@dataclass
class SimulationClock:
    """Timing state for one running simulation."""

    time_scale: float = 1.0
    running: bool = False
    paused: bool = False
    elapsed_sim_time: float = 0.0

    def reset(self) -> None:
        self.running = False
        self.paused = False
        self.elapsed_sim_time = 0.0


__all__ = [
    "CONTROLS",
    "Body",
    "BodyRegistry",
    "BoundaryState",
    "Craft",
    "CraftSnapshot",
    "PointMass",
    "SimulationClock",
    "finite_vector",
    "normalize_angle",
    "vec2",
]
