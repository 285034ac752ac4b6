"""Class-gated greedy IoU association of detections to tracks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from contracts import Box, Detection
from log_config.logger import get_logger
from track.tracker import Track, TrackIdSource

logger = get_logger(__name__)

DEFAULT_MATCH_IOU = 0.3
DEFAULT_SCORE_WEIGHT = 0.3


def iou(a: Box, b: Box) -> float:
    """Intersection-over-union of two axis-aligned boxes; 0 if the union is empty."""
    ix = max(0.0, min(a.x2, b.x2) - max(a.x, b.x))
    iy = max(0.0, min(a.y2, b.y2) - max(a.y, b.y))
    inter = ix * iy
    union = a.area + b.area - inter
    if union <= 0:
        return 0.0
    return inter / union


@dataclass
class AssociationResult:
    tracks: List[Track]
    matched_ids: List[int] = field(default_factory=list)
    created_ids: List[int] = field(default_factory=list)
    rejected: int = 0


class TrackAssociator:
    """Match a detection batch against known tracks.

    Detections are processed in input order. Each one takes the unmatched
    same-class track with the highest IoU; the first track encountered wins
    ties. A best IoU below ``match_iou`` spawns a new track. Tracks left
    unmatched are returned untouched, expiry is the store's job.
    """

    def __init__(
        self,
        match_iou: float = DEFAULT_MATCH_IOU,
        score_weight: float = DEFAULT_SCORE_WEIGHT,
    ) -> None:
        if not 0.0 <= score_weight <= 1.0:
            raise ValueError(f"score_weight must be within [0, 1], got {score_weight}")
        self.match_iou = match_iou
        self.score_weight = score_weight

    def associate(
        self,
        tracks: Sequence[Track],
        detections: Iterable[Detection],
        now: float,
        id_source: TrackIdSource,
    ) -> AssociationResult:
        result = AssociationResult(tracks=list(tracks))
        matched: set[int] = set()

        for det in detections:
            if det.box.is_degenerate:
                result.rejected += 1
                logger.debug(f"Rejected degenerate box {det.box} (class {det.class_id})")
                continue

            best: Track | None = None
            best_iou = 0.0
            for track in result.tracks:
                if track.track_id in matched or track.class_id != det.class_id:
                    continue
                value = iou(track.target, det.box)
                if value > best_iou:
                    best_iou = value
                    best = track

            if best is not None and best_iou >= self.match_iou:
                best.target = det.box
                best.score = best.score * (1.0 - self.score_weight) + det.score * self.score_weight
                best.last_seen = now
                matched.add(best.track_id)
                result.matched_ids.append(best.track_id)
                continue

            track = Track(
                track_id=id_source.next_id(),
                class_id=det.class_id,
                score=det.score,
                last_seen=now,
                target=det.box,
                display=det.box,
                class_name=det.class_name,
            )
            result.tracks.append(track)
            # A fresh track cannot absorb a second detection from the same batch.
            matched.add(track.track_id)
            result.created_ids.append(track.track_id)

        return result


__all__ = [
    "DEFAULT_MATCH_IOU",
    "DEFAULT_SCORE_WEIGHT",
    "AssociationResult",
    "TrackAssociator",
    "iou",
]
