"""Frame source abstraction for live overlay capture."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from contracts import Frame


@dataclass(frozen=True)
class SourceStats:
    fps_avg: float
    fps_instant: float
    frames: int
    dropped_frames: int


class FrameSource(ABC):
    @abstractmethod
    def open(self, source: str) -> None:
        """Open a camera index, video file or stream URL."""

    @abstractmethod
    def read_frame(self) -> Frame:
        """Read the next frame or raise FrameReadError."""

    @abstractmethod
    def get_stats(self) -> SourceStats:
        """Return capture diagnostics."""

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call more than once."""

    def __enter__(self) -> "FrameSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
