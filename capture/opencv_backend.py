"""OpenCV-based frame source for cameras, video files and streams."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import cv2

from contracts import Frame
from exceptions import FrameReadError, SourceOpenError

from .camera_device import FrameSource, SourceStats

logger = logging.getLogger(__name__)


@dataclass
class _Stats:
    last_frame_ns: int = 0
    frames: int = 0
    dropped: int = 0
    fps_avg: float = 0.0
    fps_instant: float = 0.0


class OpenCVSource(FrameSource):
    def __init__(self, width: Optional[int] = None, height: Optional[int] = None) -> None:
        self._source: Optional[str] = None
        self._capture: Optional[cv2.VideoCapture] = None
        self._stats = _Stats()
        self._requested_width = width
        self._requested_height = height

    def open(self, source: str) -> None:
        """Open a source.

        Args:
            source: Camera index as a string (e.g. "0") or a file path / URL

        Raises:
            SourceOpenError: If OpenCV cannot open the source
        """
        source = str(source)
        self._source = source
        target = int(source) if source.isdigit() else source
        logger.info(f"Opening video source {source}")

        capture = cv2.VideoCapture(target)
        if not capture.isOpened():
            capture.release()
            raise SourceOpenError(
                f"Failed to open video source {source} - device may be in use or path invalid",
                source_id=source,
            )

        if self._requested_width and self._requested_height:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self._requested_width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self._requested_height)
            actual_width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))
            actual_height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
            if (actual_width, actual_height) != (self._requested_width, self._requested_height):
                logger.warning(
                    f"Source {source}: Requested {self._requested_width}x{self._requested_height} "
                    f"but got {actual_width}x{actual_height}"
                )

        self._capture = capture
        self._stats = _Stats()

    def read_frame(self) -> Frame:
        if self._capture is None:
            raise FrameReadError("Source not opened.", source_id=self._source)
        ok, image = self._capture.read()
        if not ok or image is None:
            self._stats.dropped += 1
            raise FrameReadError(f"Failed to read frame from {self._source}", source_id=self._source)

        now_ns = time.monotonic_ns()
        if self._stats.last_frame_ns:
            delta_s = (now_ns - self._stats.last_frame_ns) / 1e9
            if delta_s > 0:
                self._stats.fps_instant = 1.0 / delta_s
                self._stats.fps_avg = (
                    (self._stats.fps_avg * self._stats.frames) + self._stats.fps_instant
                ) / (self._stats.frames + 1)
        self._stats.frames += 1
        self._stats.last_frame_ns = now_ns
        return Frame(
            source_id=self._source or "0",
            frame_index=self._stats.frames,
            t_capture_monotonic_ns=now_ns,
            image=image,
            width=image.shape[1],
            height=image.shape[0],
        )

    def get_stats(self) -> SourceStats:
        return SourceStats(
            fps_avg=self._stats.fps_avg,
            fps_instant=self._stats.fps_instant,
            frames=self._stats.frames,
            dropped_frames=self._stats.dropped,
        )

    def close(self) -> None:
        if self._capture is None:
            logger.debug(f"Source {self._source}: Already closed")
            return
        try:
            self._capture.release()
            logger.info(f"Source {self._source}: Closed")
        finally:
            self._capture = None
