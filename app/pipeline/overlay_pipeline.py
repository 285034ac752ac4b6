"""Detection-to-overlay pipeline driven by the render loop.

Two cadences meet here. Detection batches arrive from the worker thread
whenever the detector answers; ``tick`` runs once per display refresh on the
owning thread and is the only place the track store changes:

1. drain batches, discarding any whose generation is stale or that arrive
   while the pipeline is stopped
2. associate each current batch with the store
3. smooth display boxes by the measured tick interval and purge expired tracks
4. return a snapshot for the renderer
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from app.events import ErrorCategory, ErrorSeverity, publish_error
from app.pipeline.detection_worker import DetectionBatch, DetectionWorker
from configs.settings import AppConfig, TrackingConfig
from contracts import Frame, TrackView
from detect.detector import Detector
from detect.telemetry import RateMeter
from track.association import TrackAssociator
from track.smoother import Smoother
from track.store import TrackStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineStats:
    live: bool
    tracks: int
    detection_rate_hz: float
    batches_applied: int
    batches_stale: int
    batches_failed: int
    submissions_dropped: int
    errors_total: int


def build_track_store(tracking: TrackingConfig) -> TrackStore:
    return TrackStore(
        associator=TrackAssociator(match_iou=tracking.match_iou, score_weight=tracking.score_weight),
        smoother=Smoother(
            rate_per_sec=tracking.smoothing_rate_per_sec,
            max_dt=tracking.max_dt_ms / 1000.0,
        ),
        ttl_s=tracking.ttl_ms / 1000.0,
    )


class OverlayPipeline:
    def __init__(
        self,
        worker: DetectionWorker,
        store: Optional[TrackStore] = None,
        detect_interval_s: float = 0.08,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._worker = worker
        self._store = store or TrackStore()
        self._detect_interval_s = detect_interval_s
        self._clock = clock
        self._rate = RateMeter()

        self._live = False
        self._last_submit: Optional[float] = None
        self._last_snapshot: Tuple[TrackView, ...] = ()
        self._applied = 0
        self._stale = 0
        self._failed = 0
        self._dropped = 0

    @classmethod
    def from_config(cls, config: AppConfig, detector: Detector) -> "OverlayPipeline":
        worker = DetectionWorker(
            detector,
            max_consecutive_errors=config.detector.max_consecutive_errors,
            budget_ms=config.detector.budget_ms,
            name=config.detector.type,
        )
        return cls(
            worker=worker,
            store=build_track_store(config.tracking),
            detect_interval_s=config.detector.interval_ms / 1000.0,
        )

    @property
    def store(self) -> TrackStore:
        return self._store

    @property
    def worker(self) -> DetectionWorker:
        return self._worker

    def is_live(self) -> bool:
        return self._live

    def start(self) -> None:
        if self._live:
            return
        self._store.clear()
        self._rate.reset()
        self._last_submit = None
        self._last_snapshot = ()
        self._worker.start()
        self._live = True
        logger.info("Overlay pipeline started")

    def stop(self) -> None:
        """Halt both loops and forget every track.

        Results still in flight are discarded when they arrive.
        """
        if not self._live:
            return
        self._live = False
        self._worker.stop()
        self._store.clear()
        self._last_snapshot = ()
        logger.info("Overlay pipeline stopped, tracks cleared")

    def maybe_submit(self, frame: Frame, now: Optional[float] = None) -> bool:
        """Hand a frame to the detector if the interval elapsed and it is idle."""
        if not self._live:
            return False
        now = self._clock() if now is None else now
        if self._last_submit is not None and now - self._last_submit < self._detect_interval_s:
            return False
        if not self._worker.submit(frame):
            self._dropped += 1
            return False
        self._last_submit = now
        return True

    def tick(self, now: Optional[float] = None) -> Tuple[TrackView, ...]:
        """Run one render-cadence update and return the tracks to draw."""
        if not self._live:
            # Drain so nothing stale lingers for the next start.
            for batch in self._worker.poll():
                self._discard(batch)
            return ()

        now = self._clock() if now is None else now
        for batch in self._worker.poll():
            self._apply(batch, now)

        try:
            self._store.advance(now)
        except Exception as e:
            publish_error(
                category=ErrorCategory.TRACKING,
                severity=ErrorSeverity.ERROR,
                message="Track update failed, clearing tracks",
                source="OverlayPipeline.tick",
                exception=e,
            )
            self._store.clear()

        self._last_snapshot = self._store.snapshot(now)
        return self._last_snapshot

    def snapshot(self) -> Tuple[TrackView, ...]:
        """Tracks produced by the most recent tick."""
        return self._last_snapshot

    def stats(self, now: Optional[float] = None) -> PipelineStats:
        now = self._clock() if now is None else now
        errors = self._worker.get_error_stats()
        return PipelineStats(
            live=self._live,
            tracks=len(self._store),
            detection_rate_hz=self._rate.rate(now),
            batches_applied=self._applied,
            batches_stale=self._stale,
            batches_failed=self._failed,
            submissions_dropped=self._dropped,
            errors_total=errors["total"],
        )

    def _apply(self, batch: DetectionBatch, now: float) -> None:
        if not self._live or batch.generation != self._worker.generation:
            self._discard(batch)
            return
        if batch.failed:
            self._failed += 1
            return
        self._store.apply_detections(batch.detections, now)
        self._applied += 1
        self._rate.mark(now)

    def _discard(self, batch: DetectionBatch) -> None:
        self._stale += 1
        logger.debug(
            f"Discarded stale detection batch (frame {batch.frame_index}, generation {batch.generation})"
        )


__all__ = ["OverlayPipeline", "PipelineStats", "build_track_store"]
