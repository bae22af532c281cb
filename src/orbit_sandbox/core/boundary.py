"""Out-of-bounds tracking with a grace-period countdown."""
from __future__ import annotations

import logging
from enum import Enum, auto

from .config import BoundaryCfg
from .model import BoundaryState

logger = logging.getLogger(__name__)


class BoundaryEvent(Enum):
    INSIDE = auto()
    ENTERED = auto()
    OUTSIDE = auto()
    CLEARED = auto()
    VIOLATION = auto()


class BoundaryMonitor:
    """Two-state (inside/outside) monitor for the craft's distance from the origin.

    Leaving the boundary starts a timer at zero and the leaving tick itself
    does not count; every later tick spent outside adds its simulated
    ``dt``, so a zero grace period still reports ``ENTERED`` first. Once the
    timer reaches the grace period :meth:`update` returns
    :attr:`BoundaryEvent.VIOLATION`, which is terminal for
    the run. Coming back inside resets the timer.
    """

    def __init__(self, radius: float, grace_period: float) -> None:
        self.radius = float(radius)
        self.grace_period = float(grace_period)
        self.state = BoundaryState()

    @classmethod
    def from_cfg(cls, cfg: BoundaryCfg) -> "BoundaryMonitor":
        return cls(cfg.radius, cfg.grace_period)

    @property
    def out_of_bounds(self) -> bool:
        return self.state.out_of_bounds

    @property
    def time_out_of_bounds(self) -> float:
        return self.state.time_out_of_bounds

    @property
    def remaining(self) -> float:
        """Seconds of grace left, or the full grace period while inside."""

        if not self.state.out_of_bounds:
            return self.grace_period
        return max(0.0, self.grace_period - self.state.time_out_of_bounds)

    def update(self, distance: float, dt: float) -> BoundaryEvent:
        state = self.state
        outside = distance > self.radius
        if not state.out_of_bounds:
            if not outside:
                return BoundaryEvent.INSIDE
            state.out_of_bounds = True
            state.time_out_of_bounds = 0.0
            logger.warning(
                "Craft left the boundary (%.3g m > %.3g m); %.0f s to return",
                distance,
                self.radius,
                self.grace_period,
            )
            return BoundaryEvent.ENTERED
        if not outside:
            state.reset()
            logger.info("Craft back inside the boundary")
            return BoundaryEvent.CLEARED
        state.time_out_of_bounds += dt
        if state.time_out_of_bounds >= self.grace_period:
            logger.error("Craft stayed outside the boundary for %.1f s", state.time_out_of_bounds)
            return BoundaryEvent.VIOLATION
        return BoundaryEvent.OUTSIDE

    def reset(self) -> None:
        self.state.reset()


__all__ = ["BoundaryEvent", "BoundaryMonitor"]
