from __future__ import annotations

import logging
import threading
from dataclasses import dataclass


LOGGER = logging.getLogger("telemetry")


@dataclass(frozen=True)
class TimingRecord:
    source: str
    detector: str
    elapsed_ms: float
    budget_ms: float


def log_timing(source: str, detector: str, elapsed_ms: float, budget_ms: float) -> None:
    record = TimingRecord(
        source=source, detector=detector, elapsed_ms=elapsed_ms, budget_ms=budget_ms
    )
    LOGGER.debug(
        "detect.timing source=%s detector=%s elapsed_ms=%.3f budget_ms=%.3f",
        record.source,
        record.detector,
        record.elapsed_ms,
        record.budget_ms,
    )
    if elapsed_ms > budget_ms:
        LOGGER.warning(
            "detect.timing_budget_exceeded source=%s detector=%s elapsed_ms=%.3f budget_ms=%.3f",
            record.source,
            record.detector,
            record.elapsed_ms,
            record.budget_ms,
        )


class RateMeter:
    """Events-per-second counter published once per window."""

    def __init__(self, window_s: float = 1.0) -> None:
        self.window_s = window_s
        self._count = 0
        self._window_start: float | None = None
        self._rate = 0.0
        self._lock = threading.Lock()

    def mark(self, now: float) -> None:
        with self._lock:
            if self._window_start is None:
                self._window_start = now
            self._count += 1
            self._roll(now)

    def rate(self, now: float | None = None) -> float:
        with self._lock:
            if now is not None:
                self._roll(now)
            return self._rate

    def reset(self) -> None:
        with self._lock:
            self._count = 0
            self._window_start = None
            self._rate = 0.0

    def _roll(self, now: float) -> None:
        if self._window_start is None:
            return
        elapsed = now - self._window_start
        if elapsed >= self.window_s:
            self._rate = self._count / elapsed
            self._count = 0
            self._window_start = now
