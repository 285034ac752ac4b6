"""Core data contracts for capture, detection, tracking and rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class Box:
    """Axis-aligned box stored as top-left corner plus extent, in pixels."""

    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_corners(cls, x1: float, y1: float, x2: float, y2: float) -> "Box":
        return cls(x=float(x1), y=float(y1), w=float(x2) - float(x1), h=float(y2) - float(y1))

    @property
    def x2(self) -> float:
        return self.x + self.w

    @property
    def y2(self) -> float:
        return self.y + self.h

    @property
    def area(self) -> float:
        return self.w * self.h

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.w / 2.0, self.y + self.h / 2.0)

    @property
    def is_degenerate(self) -> bool:
        return self.w <= 0 or self.h <= 0

    def corners(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x2, self.y2)


@dataclass(frozen=True)
class Frame:
    source_id: str
    frame_index: int
    t_capture_monotonic_ns: int
    image: Any
    width: int
    height: int


@dataclass(frozen=True)
class Detection:
    """One single-frame observation in source-frame pixels."""

    class_id: int
    score: float
    box: Box
    class_name: Optional[str] = None


@dataclass(frozen=True)
class TrackView:
    """Read-only, point-in-time copy of a track handed to renderers."""

    track_id: int
    class_id: int
    class_name: Optional[str]
    score: float
    display: Box
    last_seen: float
