"""Synthetic frame source for demos and tests."""

from __future__ import annotations

import math
import time
from typing import Optional

import numpy as np

from contracts import Box, Frame

from .camera_device import FrameSource, SourceStats


class SimulatedSource(FrameSource):
    """Dark frames with one bright square sliding along a circle.

    ``object_box`` reports where the square was drawn in the latest frame so a
    stub detector can answer with ground truth.
    """

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        fps: float = 30.0,
        square: int = 80,
        period_frames: int = 120,
        realtime: bool = False,
    ) -> None:
        self._width = width
        self._height = height
        self._fps = fps
        self._square = square
        self._period = max(1, period_frames)
        self._realtime = realtime
        self._source: Optional[str] = None
        self._frame_index = 0
        self._last_frame_time = time.monotonic()
        self.object_box: Optional[Box] = None

    def open(self, source: str) -> None:
        self._source = source
        self._frame_index = 0

    def read_frame(self) -> Frame:
        if self._realtime and self._fps > 0:
            target_delay = 1.0 / self._fps
            elapsed = time.monotonic() - self._last_frame_time
            if elapsed < target_delay:
                time.sleep(target_delay - elapsed)
        self._last_frame_time = time.monotonic()
        self._frame_index += 1

        image = np.zeros((self._height, self._width, 3), dtype=np.uint8)
        image[:, :, 0] = 40
        image[:, :, 1] = 30
        image[:, :, 2] = 20

        angle = 2.0 * math.pi * (self._frame_index % self._period) / self._period
        radius = min(self._width, self._height) / 4.0
        cx = self._width / 2.0 + radius * math.cos(angle)
        cy = self._height / 2.0 + radius * math.sin(angle)
        half = self._square / 2.0
        x1, y1 = int(cx - half), int(cy - half)
        image[y1:y1 + self._square, x1:x1 + self._square] = (230, 230, 230)
        self.object_box = Box(x=float(x1), y=float(y1), w=float(self._square), h=float(self._square))

        return Frame(
            source_id=self._source or "sim",
            frame_index=self._frame_index,
            t_capture_monotonic_ns=time.monotonic_ns(),
            image=image,
            width=self._width,
            height=self._height,
        )

    def get_stats(self) -> SourceStats:
        return SourceStats(
            fps_avg=float(self._fps),
            fps_instant=float(self._fps),
            frames=self._frame_index,
            dropped_frames=0,
        )

    def close(self) -> None:
        return None
