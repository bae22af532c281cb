from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))


@dataclass
class CameraState:
    center: np.ndarray
    ppm: float
    follow: bool = True


class Camera:
    """World-to-screen mapping with zoom, drag panning and craft following.

    World y grows upwards, screen y downwards.
    """

    def __init__(
        self,
        size: tuple[int, int],
        ppm: float,
        *,
        min_ppm: float,
        max_ppm: float,
    ) -> None:
        self._size = size
        self._min_ppm = min_ppm
        self._max_ppm = max_ppm
        self._state = CameraState(center=np.zeros(2, dtype=float), ppm=_clamp(ppm, min_ppm, max_ppm))
        self._pan_anchor: Optional[tuple[int, int]] = None

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    def update_size(self, size: tuple[int, int]) -> None:
        self._size = size

    @property
    def ppm(self) -> float:
        return self._state.ppm

    @property
    def center(self) -> np.ndarray:
        return self._state.center

    @property
    def following(self) -> bool:
        return self._state.follow

    def set_center(self, position: tuple[float, float] | np.ndarray) -> None:
        self._state.center[:] = position

    def track(self, position: np.ndarray) -> None:
        """Centre on ``position`` while follow mode is on."""

        if self._state.follow:
            self.set_center(position)

    def toggle_follow(self) -> bool:
        self._state.follow = not self._state.follow
        return self._state.follow

    def zoom_by_factor(self, factor: float) -> None:
        self._state.ppm = _clamp(self._state.ppm * factor, self._min_ppm, self._max_ppm)

    def fit_radius(self, radius: float, margin: float = 0.9) -> None:
        """Zoom so that a circle of ``radius`` meters fills the shorter screen side."""

        if radius <= 0.0:
            return
        half_side = min(self._size) / 2.0
        self._state.ppm = _clamp(half_side * margin / radius, self._min_ppm, self._max_ppm)

    def begin_pan(self, position: tuple[int, int]) -> None:
        self._pan_anchor = position
        self._state.follow = False

    def pan(self, position: tuple[int, int]) -> None:
        if self._pan_anchor is None:
            return
        dx = position[0] - self._pan_anchor[0]
        dy = position[1] - self._pan_anchor[1]
        if dx == 0 and dy == 0:
            return
        ppm = max(self.ppm, 1e-12)
        self._state.center[0] -= dx / ppm
        self._state.center[1] += dy / ppm
        self._pan_anchor = position

    def end_pan(self) -> None:
        self._pan_anchor = None

    def world_to_screen(self, x: float, y: float) -> tuple[int, int]:
        width, height = self._size
        cx, cy = self._state.center
        sx = width // 2 + int((x - cx) * self._state.ppm)
        sy = height // 2 - int((y - cy) * self._state.ppm)
        return sx, sy

    def screen_to_world(self, sx: float, sy: float) -> tuple[float, float]:
        width, height = self._size
        cx, cy = self._state.center
        ppm = max(self._state.ppm, 1e-12)
        return (sx - width / 2.0) / ppm + cx, (height / 2.0 - sy) / ppm + cy

    def meters_to_pixels(self, meters: float) -> float:
        return meters * self._state.ppm


def view_radius(position: np.ndarray, bodies: Iterable, margin: float = 1.6) -> float:
    """Radius that frames the craft around the nearest body, or 0 without bodies."""

    distances = [float(np.linalg.norm(np.asarray(position) - body.position)) for body in bodies]
    if not distances:
        return 0.0
    return min(distances) * margin


__all__ = ["Camera", "CameraState", "view_radius"]
