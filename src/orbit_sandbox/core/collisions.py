"""Sphere-overlap collision test between the craft and the bodies."""
from __future__ import annotations

import math
from typing import Iterable, Optional, Protocol

import numpy as np

from .model import Body


class CollisionTarget(Protocol):
    @property
    def position(self) -> np.ndarray: ...

    @property
    def radius(self) -> float: ...


def check_collision(point: CollisionTarget, bodies: Iterable[Body]) -> Optional[Body]:
    """Return the first body (registry order) overlapping ``point``.

    Overlap is strict: centres exactly ``point.radius + body.radius`` apart do
    not collide. The first hit wins even if a later body is closer.
    """

    px = float(point.position[0])
    py = float(point.position[1])
    for body in bodies:
        if body is point:
            continue
        distance = math.hypot(float(body.position[0]) - px, float(body.position[1]) - py)
        if distance < point.radius + body.radius:
            return body
    return None


__all__ = ["CollisionTarget", "check_collision"]
