"""Preset body systems and craft starts."""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Callable

import numpy as np

from orbit_sandbox.core.config import (
    EARTH_MASS,
    EARTH_RADIUS,
    GRAVITATIONAL_CONSTANT,
    LEO_ALTITUDE,
    SIMULATION_CFG,
    BodySpec,
    BoundaryCfg,
    CraftCfg,
    SimulationCfg,
)

AU = 1.496e11
LEO_RADIUS = EARTH_RADIUS + LEO_ALTITUDE
LEO_SPEED = math.sqrt(GRAVITATIONAL_CONSTANT * EARTH_MASS / LEO_RADIUS)

SOLAR_SYSTEM_BODIES: tuple[BodySpec, ...] = (
    BodySpec("Sun", 1.989e30, 6.9634e8, color=(255, 210, 90)),
    BodySpec("Mercury", 3.301e23, 2.4397e6, position=(5.79e10, 0.0), color=(170, 160, 150)),
    BodySpec("Venus", 4.867e24, 6.0518e6, position=(1.08e11, 0.0), color=(230, 200, 140)),
    BodySpec("Earth", EARTH_MASS, EARTH_RADIUS, position=(AU, 0.0), color=(107, 147, 214)),
    BodySpec("Mars", 6.417e23, 3.3895e6, position=(2.279e11, 0.0), color=(210, 110, 70)),
    BodySpec("Jupiter", 1.898e27, 6.9911e7, position=(7.786e11, 0.0), color=(215, 180, 140)),
    BodySpec("Saturn", 5.683e26, 5.8232e7, position=(1.432e12, 0.0), color=(225, 205, 150)),
    BodySpec("Uranus", 8.681e25, 2.5362e7, position=(2.867e12, 0.0), color=(160, 220, 230)),
    BodySpec("Neptune", 1.024e26, 2.4622e7, position=(4.515e12, 0.0), color=(90, 120, 230)),
)


def _earth_start(speed: float, *, centre: tuple[float, float] = (0.0, 0.0)) -> CraftCfg:
    """Craft on the +x side of Earth at LEO altitude, moving along +y."""

    return CraftCfg(
        position=np.array([centre[0] + LEO_RADIUS, centre[1]], dtype=float),
        velocity=np.array([0.0, speed], dtype=float),
    )


@dataclass(frozen=True)
class Scenario:
    key: str
    name: str
    description: str
    factory: Callable[[], SimulationCfg]

    def build(self) -> SimulationCfg:
        return self.factory().validate()


def _leo() -> SimulationCfg:
    return SIMULATION_CFG


def _with_speed(speed: float) -> Callable[[], SimulationCfg]:
    def factory() -> SimulationCfg:
        return replace(SIMULATION_CFG, craft=_earth_start(speed))

    return factory


def _earth_only() -> SimulationCfg:
    return replace(
        SIMULATION_CFG,
        bodies=(SIMULATION_CFG.bodies[0],),
        boundary=BoundaryCfg(radius=1.5e9),
    )


def _solar_system() -> SimulationCfg:
    return replace(
        SIMULATION_CFG,
        bodies=SOLAR_SYSTEM_BODIES,
        craft=_earth_start(LEO_SPEED, centre=(AU, 0.0)),
        boundary=BoundaryCfg(radius=5e12),
    )


SCENARIO_DEFINITIONS: tuple[Scenario, ...] = (
    Scenario(
        key="leo",
        name="LEO",
        description="Circular 200 km orbit around Earth with the Moon overhead.",
        factory=_leo,
    ),
    Scenario(
        key="suborbital",
        name="Suborbital",
        description="Too slow for orbit; the craft falls back to Earth (~6.0 km/s).",
        factory=_with_speed(6_000.0),
    ),
    Scenario(
        key="escape",
        name="Escape",
        description="Comfortably above escape speed (~11.5 km/s).",
        factory=_with_speed(11_500.0),
    ),
    Scenario(
        key="retrograde",
        name="Retrograde",
        description="LEO speed flipped for retrograde flight.",
        factory=_with_speed(-LEO_SPEED),
    ),
    Scenario(
        key="earth_only",
        name="Earth only",
        description="Earth alone with a tight 1.5 million km boundary.",
        factory=_earth_only,
    ),
    Scenario(
        key="solar_system",
        name="Solar system",
        description="Sun and planets lined up on the x axis; craft in LEO around Earth.",
        factory=_solar_system,
    ),
)

SCENARIOS: dict[str, Scenario] = {scenario.key: scenario for scenario in SCENARIO_DEFINITIONS}
SCENARIO_DISPLAY_ORDER: list[str] = [scenario.key for scenario in SCENARIO_DEFINITIONS]
DEFAULT_SCENARIO_KEY = SCENARIO_DISPLAY_ORDER[0]


def build_scenario(key: str) -> SimulationCfg:
    """Return the validated config for scenario ``key``."""

    try:
        scenario = SCENARIOS[key]
    except KeyError:
        raise KeyError(f"unknown scenario {key!r}; expected one of {SCENARIO_DISPLAY_ORDER}") from None
    return scenario.build()


__all__ = [
    "AU",
    "DEFAULT_SCENARIO_KEY",
    "LEO_SPEED",
    "SCENARIO_DEFINITIONS",
    "SCENARIO_DISPLAY_ORDER",
    "SCENARIOS",
    "SOLAR_SYSTEM_BODIES",
    "Scenario",
    "build_scenario",
]
