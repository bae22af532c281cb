"""Configuration dataclasses for the orbit sandbox."""
from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from .errors import ConfigurationError

GRAVITATIONAL_CONSTANT = 6.67430e-11
EARTH_MASS = 5.972e24
EARTH_RADIUS = 6.371e6
MOON_MASS = 7.342e22
MOON_RADIUS = 1.7374e6
MOON_DISTANCE = 3.844e8
LEO_ALTITUDE = 200_000.0


def _leo_start_position() -> np.ndarray:
    return np.array([EARTH_RADIUS + LEO_ALTITUDE, 0.0], dtype=float)


def _leo_start_velocity() -> np.ndarray:
    r = EARTH_RADIUS + LEO_ALTITUDE
    return np.array([0.0, math.sqrt(GRAVITATIONAL_CONSTANT * EARTH_MASS / r)], dtype=float)


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


def _is_finite_vector(value: object) -> bool:
    try:
        arr = np.asarray(value, dtype=float)
    except (TypeError, ValueError):
        return False
    return arr.shape == (2,) and bool(np.all(np.isfinite(arr)))


@dataclass(frozen=True)
class BodySpec:
    """Initial state of one massive body."""

    name: str
    mass: float
    radius: float
    position: tuple[float, float] = (0.0, 0.0)
    velocity: tuple[float, float] = (0.0, 0.0)
    color: tuple[int, int, int] = (200, 200, 255)

    def validate(self) -> None:
        _require(bool(self.name), "body name must be a non-empty string")
        _require(
            math.isfinite(self.mass) and self.mass > 0.0,
            f"body {self.name!r}: mass must be positive, got {self.mass!r}",
        )
        _require(
            math.isfinite(self.radius) and self.radius >= 0.0,
            f"body {self.name!r}: radius must be non-negative, got {self.radius!r}",
        )
        _require(_is_finite_vector(self.position), f"body {self.name!r}: invalid position")
        _require(_is_finite_vector(self.velocity), f"body {self.name!r}: invalid velocity")


@dataclass(frozen=True)
class PhysicsCfg:
    gravitational_constant: float = GRAVITATIONAL_CONSTANT
    softening: float = 1e-6
    max_dt: float = 0.1
    time_scale: float = 100.0
    max_step: float = 1.0
    max_substeps: int = 64
    log_every_steps: int = 20

    def validate(self) -> None:
        _require(self.gravitational_constant > 0.0, "gravitational constant must be positive")
        _require(self.softening > 0.0, "softening must be positive")
        _require(self.max_dt > 0.0, "max_dt must be positive")
        _require(self.time_scale > 0.0, "time_scale must be positive")
        _require(self.max_step > 0.0, "max_step must be positive")
        _require(self.max_substeps >= 1, "max_substeps must be at least 1")
        _require(self.log_every_steps >= 1, "log_every_steps must be at least 1")


@dataclass(frozen=True)
class CraftCfg:
    position: np.ndarray = field(default_factory=_leo_start_position)
    velocity: np.ndarray = field(default_factory=_leo_start_velocity)
    orientation: float = math.pi / 2.0
    mass: float = 1_000.0
    radius: float = 10.0
    max_thrust: float = 30_000.0
    fuel_consumption_rate: float = 0.005
    rotation_speed: float = math.pi / 4.0

    def validate(self) -> None:
        _require(_is_finite_vector(self.position), "craft position must be a finite 2-vector")
        _require(_is_finite_vector(self.velocity), "craft velocity must be a finite 2-vector")
        _require(math.isfinite(self.orientation), "craft orientation must be finite")
        _require(
            math.isfinite(self.mass) and self.mass > 0.0,
            f"craft mass must be positive, got {self.mass!r}",
        )
        _require(
            math.isfinite(self.radius) and self.radius >= 0.0,
            f"craft radius must be non-negative, got {self.radius!r}",
        )
        _require(self.max_thrust >= 0.0, "max_thrust must be non-negative")
        _require(self.fuel_consumption_rate >= 0.0, "fuel_consumption_rate must be non-negative")
        _require(self.rotation_speed >= 0.0, "rotation_speed must be non-negative")


@dataclass(frozen=True)
class BoundaryCfg:
    radius: float = 5e11
    grace_period: float = 30.0

    def validate(self) -> None:
        _require(self.radius > 0.0, "boundary radius must be positive")
        _require(self.grace_period >= 0.0, "boundary grace period must be non-negative")


@dataclass(frozen=True)
class PredictionCfg:
    steps: int = 300
    step_dt: float = 10.0

    def validate(self) -> None:
        _require(self.steps >= 0, "prediction steps must be non-negative")
        _require(self.step_dt > 0.0, "prediction step_dt must be positive")


@dataclass(frozen=True)
class SimulationCfg:
    physics: PhysicsCfg = field(default_factory=PhysicsCfg)
    craft: CraftCfg = field(default_factory=CraftCfg)
    boundary: BoundaryCfg = field(default_factory=BoundaryCfg)
    prediction: PredictionCfg = field(default_factory=PredictionCfg)
    bodies: tuple[BodySpec, ...] = (
        BodySpec("Earth", EARTH_MASS, EARTH_RADIUS, color=(107, 147, 214)),
        BodySpec("Moon", MOON_MASS, MOON_RADIUS, position=(0.0, MOON_DISTANCE), color=(190, 190, 190)),
    )
    ephemeris_refresh_interval: float = 300.0

    def validate(self) -> "SimulationCfg":
        """Check every section and return ``self`` for chaining."""

        self.physics.validate()
        self.craft.validate()
        self.boundary.validate()
        self.prediction.validate()
        names: set[str] = set()
        for spec in self.bodies:
            spec.validate()
            _require(spec.name not in names, f"duplicate body name {spec.name!r}")
            names.add(spec.name)
        _require(self.ephemeris_refresh_interval > 0.0, "ephemeris_refresh_interval must be positive")
        return self

    @property
    def body_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.bodies)


@dataclass(frozen=True)
class RenderCfg:
    width: int = 1100
    height: int = 800
    fps: int = 60
    background_color: tuple[int, int, int] = (0, 14, 32)
    craft_color: tuple[int, int, int] = (255, 255, 255)
    craft_pixel_size: int = 9
    destroyed_color: tuple[int, int, int] = (255, 66, 66)
    flame_color: tuple[int, int, int] = (255, 170, 60)
    prediction_color: tuple[int, int, int] = (120, 200, 255)
    prediction_dash_pixels: int = 8
    boundary_color: tuple[int, int, int] = (255, 90, 90)
    boundary_line_width: int = 1
    min_body_pixel_radius: int = 3
    hud_text_color: tuple[int, int, int] = (234, 241, 255)
    hud_warning_color: tuple[int, int, int] = (255, 176, 120)
    overlay_color: tuple[int, int, int, int] = (12, 18, 30, int(255 * 0.75))
    overlay_title_color: tuple[int, int, int] = (255, 214, 130)
    fuel_bar_size: tuple[int, int] = (160, 10)
    fuel_bar_colors: tuple[tuple[int, int, int], ...] = ((76, 175, 80), (255, 152, 0), (244, 67, 54))
    zoom_step: float = 1.25
    min_pixels_per_meter: float = 1e-10
    max_pixels_per_meter: float = 1e-1
    initial_pixels_per_meter: float = 2.5e-5
    time_scale_step: float = 1.5
    max_time_scale: float = 100_000.0


SIMULATION_CFG = SimulationCfg()
RENDER_CFG = RenderCfg()


__all__ = [
    "EARTH_MASS",
    "EARTH_RADIUS",
    "GRAVITATIONAL_CONSTANT",
    "LEO_ALTITUDE",
    "MOON_DISTANCE",
    "MOON_MASS",
    "MOON_RADIUS",
    "RENDER_CFG",
    "SIMULATION_CFG",
    "BodySpec",
    "BoundaryCfg",
    "CraftCfg",
    "PhysicsCfg",
    "PredictionCfg",
    "RenderCfg",
    "SimulationCfg",
]
