"""Authoritative track collection with expiry."""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Tuple

from contracts import Detection, TrackView
from log_config.logger import get_logger
from track.association import AssociationResult, TrackAssociator
from track.smoother import Smoother
from track.tracker import Track, TrackIdSource

logger = get_logger(__name__)

DEFAULT_TTL_S = 0.4


class TrackStore:
    """Owns every live track.

    Not thread-safe: a single owner (the render loop) performs association,
    smoothing and expiry one after the other. Timestamps are seconds on a
    monotonic clock.
    """

    def __init__(
        self,
        associator: Optional[TrackAssociator] = None,
        smoother: Optional[Smoother] = None,
        ttl_s: float = DEFAULT_TTL_S,
    ) -> None:
        if ttl_s <= 0:
            raise ValueError(f"ttl_s must be positive, got {ttl_s}")
        self.associator = associator or TrackAssociator()
        self.smoother = smoother or Smoother()
        self.ttl_s = ttl_s
        self._tracks: Dict[int, Track] = {}
        self._ids = TrackIdSource()
        self._last_advance: Optional[float] = None

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._tracks

    def apply_detections(self, detections: Iterable[Detection], now: float) -> AssociationResult:
        result = self.associator.associate(list(self._tracks.values()), detections, now, self._ids)
        self._tracks = {track.track_id: track for track in result.tracks}
        if result.created_ids:
            logger.debug(f"Created tracks {result.created_ids}")
        return result

    def advance(self, now: float) -> list[int]:
        """Smooth display boxes by the elapsed time, then purge expired tracks.

        Returns:
            Ids purged during this call
        """
        dt = 0.0 if self._last_advance is None else now - self._last_advance
        self._last_advance = now
        self.smoother.advance(self._tracks.values(), dt)
        return self.purge_expired(now)

    def purge_expired(self, now: float) -> list[int]:
        expired = [tid for tid, track in self._tracks.items() if now - track.last_seen > self.ttl_s]
        for tid in expired:
            del self._tracks[tid]
        if expired:
            logger.debug(f"Expired tracks {expired}")
        return expired

    def snapshot(self, now: Optional[float] = None) -> Tuple[TrackView, ...]:
        """Immutable copy of the live tracks.

        Args:
            now: When given, tracks past their TTL are left out even if the
                purge for this tick has not run yet
        """
        return tuple(
            track.view()
            for track in self._tracks.values()
            if now is None or now - track.last_seen <= self.ttl_s
        )

    def clear(self) -> None:
        """Drop every track. Ids keep counting so none is reused."""
        if self._tracks:
            logger.debug(f"Clearing {len(self._tracks)} tracks")
        self._tracks.clear()
        self._last_advance = None


__all__ = ["DEFAULT_TTL_S", "TrackStore"]
