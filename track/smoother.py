"""Time-based exponential smoothing of displayed track boxes."""

from __future__ import annotations

import math
from typing import Iterable

from contracts import Box
from track.tracker import Track

DEFAULT_RATE_PER_SEC = 8.0
DEFAULT_MAX_DT = 0.1


class Smoother:
    """Move each track's display box toward its target box.

    ``k = 1 - exp(-rate * dt)`` is applied to x, y, w and h independently, so
    the display never overshoots and holds still once it reaches the target.
    """

    def __init__(self, rate_per_sec: float = DEFAULT_RATE_PER_SEC, max_dt: float = DEFAULT_MAX_DT) -> None:
        if rate_per_sec <= 0:
            raise ValueError(f"rate_per_sec must be positive, got {rate_per_sec}")
        if max_dt <= 0:
            raise ValueError(f"max_dt must be positive, got {max_dt}")
        self.rate_per_sec = rate_per_sec
        self.max_dt = max_dt

    def gain(self, dt: float) -> float:
        dt = min(max(dt, 0.0), self.max_dt)
        return 1.0 - math.exp(-self.rate_per_sec * dt)

    def step(self, display: Box, target: Box, dt: float) -> Box:
        k = self.gain(dt)
        if k == 0.0:
            return display
        return Box(
            x=display.x + (target.x - display.x) * k,
            y=display.y + (target.y - display.y) * k,
            w=display.w + (target.w - display.w) * k,
            h=display.h + (target.h - display.h) * k,
        )

    def advance(self, tracks: Iterable[Track], dt: float) -> None:
        for track in tracks:
            track.display = self.step(track.display, track.target, dt)


__all__ = ["DEFAULT_MAX_DT", "DEFAULT_RATE_PER_SEC", "Smoother"]
