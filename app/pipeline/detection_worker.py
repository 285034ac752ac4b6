"""Background detection worker with a single request in flight.

The worker owns the round trip to the detector and nothing else. Results go
back to the owning loop through a queue as ``DetectionBatch`` messages tagged
with the generation they were requested under; the owner decides whether a
batch is still current before applying it.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from app.events import ErrorCategory, ErrorSeverity, publish_error
from contracts import Detection, Frame
from detect import telemetry
from detect.detector import Detector
from exceptions import DetectionError, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectionBatch:
    generation: int
    frame_index: int
    frame_width: int
    frame_height: int
    detections: List[Detection] = field(default_factory=list)
    latency_ms: float = 0.0
    failed: bool = False


@dataclass(frozen=True)
class _Request:
    generation: int
    frame: Frame


class DetectionWorker:
    """Runs ``detector.detect`` on a dedicated thread, one frame at a time.

    ``submit`` drops the frame instead of queueing it while a request is in
    flight, so the detector always works on the freshest frame it was offered.
    A failed request is reported and delivered as an empty batch.
    """

    def __init__(
        self,
        detector: Detector,
        max_consecutive_errors: int = 10,
        budget_ms: float = 200.0,
        result_queue_size: int = 4,
        name: str = "detector",
    ) -> None:
        self._detector = detector
        self._name = name
        self._budget_ms = budget_ms
        self._max_consecutive_errors = max_consecutive_errors
        self._result_queue_size = result_queue_size

        self._requests: queue.Queue[_Request] = queue.Queue(maxsize=1)
        self._results: queue.Queue[DetectionBatch] = queue.Queue(maxsize=result_queue_size)
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

        self._state_lock = threading.Lock()
        self._generation = 0
        self._running = False
        self._in_flight = False

        self._consecutive_errors = 0
        self._total_errors = 0
        self._frames_dropped = 0
        self._last_error_log_time = 0.0
        self._error_callback: Optional[Callable[[str, Exception], None]] = None

    @property
    def generation(self) -> int:
        with self._state_lock:
            return self._generation

    def set_error_callback(self, callback: Callable[[str, Exception], None]) -> None:
        """Set callback invoked once errors reach the consecutive-failure limit.

        Args:
            callback: Receives (worker name, exception)
        """
        self._error_callback = callback

    def start(self) -> int:
        """Start the worker thread.

        Returns:
            The generation that results of this run will carry
        """
        with self._state_lock:
            if self._running:
                return self._generation
            self._generation += 1
            self._running = True
            self._consecutive_errors = 0
            generation = self._generation
            requests: "queue.Queue[_Request]" = queue.Queue(maxsize=1)
            self._requests = requests
            self._results = queue.Queue(maxsize=self._result_queue_size)

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event, requests),
            name=f"{self._name}-worker",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Detection worker '{self._name}' started (generation {generation})")
        return generation

    def stop(self, timeout: float = 1.0) -> None:
        """Stop the worker. A request still in flight finishes on its own and
        its result carries a generation that is no longer current.

        The in-flight slot stays taken until that request returns, so a
        restarted worker never runs two detections at once.
        """
        with self._state_lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1

        if self._stop_event is not None:
            self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.debug(f"Detection worker '{self._name}' still finishing an in-flight request")
        self._thread = None
        self._stop_event = None
        logger.info(f"Detection worker '{self._name}' stopped")

    def is_running(self) -> bool:
        with self._state_lock:
            return self._running

    def is_busy(self) -> bool:
        with self._state_lock:
            return self._in_flight

    def submit(self, frame: Frame) -> bool:
        """Offer a frame for detection.

        Returns:
            True if accepted, False if dropped because the worker is stopped
            or a request is already in flight
        """
        with self._state_lock:
            if not self._running or self._in_flight:
                self._frames_dropped += 1
                return False
            try:
                self._requests.put_nowait(_Request(generation=self._generation, frame=frame))
            except queue.Full:
                self._frames_dropped += 1
                return False
            self._in_flight = True
        return True

    def poll(self) -> List[DetectionBatch]:
        """Drain every batch delivered since the last poll (owner thread only)."""
        batches: List[DetectionBatch] = []
        while True:
            try:
                batches.append(self._results.get_nowait())
            except queue.Empty:
                return batches

    def get_error_stats(self) -> dict:
        with self._state_lock:
            return {
                "consecutive": self._consecutive_errors,
                "total": self._total_errors,
                "frames_dropped": self._frames_dropped,
            }

    def _run(self, stop_event: threading.Event, requests: "queue.Queue[_Request]") -> None:
        while not stop_event.is_set():
            try:
                request = requests.get(timeout=0.2)
            except queue.Empty:
                continue

            batch = self._process(request)
            self._deliver(batch)

            with self._state_lock:
                self._in_flight = False

        # A request queued just before stop was never run; release its slot.
        try:
            requests.get_nowait()
        except queue.Empty:
            return
        with self._state_lock:
            self._in_flight = False

    def _process(self, request: _Request) -> DetectionBatch:
        frame = request.frame
        start = time.perf_counter()
        detections: List[Detection] = []
        failed = False
        try:
            detections = list(self._detector.detect(frame))
        except Exception as e:
            failed = True
            self._record_failure(e)
        else:
            self._record_success()
        latency_ms = (time.perf_counter() - start) * 1000.0
        if not failed:
            telemetry.log_timing(frame.source_id, self._name, latency_ms, self._budget_ms)
        return DetectionBatch(
            generation=request.generation,
            frame_index=frame.frame_index,
            frame_width=frame.width,
            frame_height=frame.height,
            detections=detections,
            latency_ms=latency_ms,
            failed=failed,
        )

    def _deliver(self, batch: DetectionBatch) -> None:
        target = self._results
        try:
            target.put_nowait(batch)
            return
        except queue.Full:
            pass
        # Owner is not draining; the oldest batch is the least useful one.
        try:
            target.get_nowait()
        except queue.Empty:
            pass
        try:
            target.put_nowait(batch)
        except queue.Full:
            logger.error(f"Detection worker '{self._name}' could not deliver batch {batch.frame_index}")

    def _record_success(self) -> None:
        with self._state_lock:
            recovered = self._consecutive_errors
            self._consecutive_errors = 0
        if recovered:
            logger.info(f"Detection recovered for '{self._name}' after {recovered} errors")

    def _record_failure(self, error: Exception) -> None:
        should_log = False
        should_escalate = False
        with self._state_lock:
            self._consecutive_errors += 1
            self._total_errors += 1
            error_count = self._consecutive_errors

            current_time = time.monotonic()
            if current_time - self._last_error_log_time > 5.0 or error_count == 1:
                should_log = True
                self._last_error_log_time = current_time
            if error_count == self._max_consecutive_errors:
                should_escalate = True

        if isinstance(error, TransportError):
            category = ErrorCategory.NETWORK
        else:
            category = ErrorCategory.DETECTION
        expected = isinstance(error, DetectionError)

        if should_log:
            logger.error(
                f"Detection failed for '{self._name}' (error #{error_count}): "
                f"{error.__class__.__name__}: {error}",
                exc_info=None if expected else error,
            )
            publish_error(
                category=category,
                severity=ErrorSeverity.ERROR,
                message=f"Detection failed for '{self._name}', treating cycle as empty",
                source=f"DetectionWorker.{self._name}",
                exception=error,
                error_count=error_count,
            )

        if should_escalate:
            logger.critical(
                f"Detection failing consistently for '{self._name}' "
                f"({error_count} consecutive errors). Tracks will expire."
            )
            publish_error(
                category=category,
                severity=ErrorSeverity.CRITICAL,
                message=f"Detection failing consistently ({error_count} consecutive errors)",
                source=f"DetectionWorker.{self._name}",
                exception=error,
                error_count=error_count,
            )
            if self._error_callback:
                try:
                    self._error_callback(self._name, error)
                except Exception as callback_error:
                    logger.error(f"Error callback failed: {callback_error}")


__all__ = ["DetectionBatch", "DetectionWorker"]
