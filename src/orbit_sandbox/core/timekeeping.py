"""Frame timing and fixed-step splitting for the simulation loop."""
from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional


@dataclass
class FrameTimer:
    """Wall-clock frame delta source; the first tick reports zero."""

    clock: Callable[[], float] = time.perf_counter
    last_time: Optional[float] = field(default=None)

    def tick(self) -> float:
        now = self.clock()
        dt = 0.0 if self.last_time is None else now - self.last_time
        self.last_time = now
        return max(0.0, dt)

    def reset(self) -> None:
        self.last_time = None


@dataclass
class FixedStepAccumulator:
    """Splits accrued simulated time into equal steps no larger than ``step``.

    At most ``max_substeps`` steps are produced per drain; beyond that the
    steps grow instead of the frame falling behind.
    """

    step: float
    max_substeps: int
    value: float = 0.0

    def accrue(self, delta: float) -> None:
        if delta > 0.0:
            self.value += delta

    def clear(self) -> None:
        self.value = 0.0

    def consume(self) -> tuple[int, float]:
        if self.value <= 0.0:
            return 0, 0.0
        count = min(max(1, math.ceil(self.value / self.step)), self.max_substeps)
        dt = self.value / count
        self.value = 0.0
        return count, dt

    def drain(self) -> Iterator[float]:
        count, dt = self.consume()
        for _ in range(count):
            yield dt


__all__ = ["FixedStepAccumulator", "FrameTimer"]
