"""Detector that reports a known box, for demos against the simulated source."""

from __future__ import annotations

import time
from typing import Callable, List, Optional

from contracts import Box, Detection, Frame
from detect.detector import Detector, DetectorHealth, _HealthCounters


class SimulatedDetector(Detector):
    def __init__(
        self,
        box_provider: Callable[[], Optional[Box]],
        class_id: int = 0,
        score: float = 0.9,
        class_name: Optional[str] = "square",
        latency_s: float = 0.0,
    ) -> None:
        self._box_provider = box_provider
        self.class_id = class_id
        self.score = score
        self.class_name = class_name
        self.latency_s = latency_s
        self._counters = _HealthCounters()

    def detect(self, frame: Frame) -> List[Detection]:
        self._counters.requests += 1
        start = time.perf_counter()
        if self.latency_s > 0:
            time.sleep(self.latency_s)
        box = self._box_provider()
        self._counters.last_latency_ms = (time.perf_counter() - start) * 1000.0
        self._counters.last_success_ns = time.monotonic_ns()
        if box is None:
            return []
        return [Detection(class_id=self.class_id, score=self.score, box=box, class_name=self.class_name)]

    def health(self) -> DetectorHealth:
        return self._counters.snapshot()


__all__ = ["SimulatedDetector"]
