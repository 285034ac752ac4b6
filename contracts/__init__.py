"""Shared data contracts for detection overlay tracking."""

from .types import (
    Box,
    Detection,
    Frame,
    TrackView,
)

__all__ = [
    "Box",
    "Detection",
    "Frame",
    "TrackView",
]
