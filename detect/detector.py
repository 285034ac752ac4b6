"""Detector interface consumed by the detection worker."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from contracts import Detection, Frame


@dataclass(frozen=True)
class DetectorHealth:
    requests: int
    failures: int
    last_latency_ms: float
    last_success_ns: int


class Detector(ABC):
    @abstractmethod
    def detect(self, frame: Frame) -> List[Detection]:
        """Return detections for a frame in source-frame pixels.

        Implementations raise a DetectionError subclass on failure; the
        caller decides how a failed cycle is reported.
        """

    @abstractmethod
    def health(self) -> DetectorHealth:
        """Return request counters for diagnostics."""


class _HealthCounters:
    """Bookkeeping shared by the concrete detectors."""

    def __init__(self) -> None:
        self.requests = 0
        self.failures = 0
        self.last_latency_ms = 0.0
        self.last_success_ns = 0

    def snapshot(self) -> DetectorHealth:
        return DetectorHealth(
            requests=self.requests,
            failures=self.failures,
            last_latency_ms=self.last_latency_ms,
            last_success_ns=self.last_success_ns,
        )


__all__ = ["Detector", "DetectorHealth"]
