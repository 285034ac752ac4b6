"""Track entity and id allocation."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import Optional

from contracts import Box, TrackView


@dataclass
class Track:
    track_id: int
    class_id: int
    score: float
    last_seen: float
    target: Box
    display: Box
    class_name: Optional[str] = None

    def view(self) -> TrackView:
        return TrackView(
            track_id=self.track_id,
            class_id=self.class_id,
            class_name=self.class_name,
            score=self.score,
            display=self.display,
            last_seen=self.last_seen,
        )


class TrackIdSource:
    """Monotonic id allocator; ids are never handed out twice."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)


__all__ = ["Track", "TrackIdSource"]
