"""Track association, smoothing and storage."""

from .association import AssociationResult, TrackAssociator, iou
from .smoother import Smoother
from .store import TrackStore
from .tracker import Track, TrackIdSource

__all__ = [
    "AssociationResult",
    "Smoother",
    "Track",
    "TrackAssociator",
    "TrackIdSource",
    "TrackStore",
    "iou",
]
