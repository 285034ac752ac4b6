"""Detection and overlay pipeline."""

from app.pipeline.detection_worker import DetectionBatch, DetectionWorker
from app.pipeline.overlay_pipeline import OverlayPipeline, PipelineStats, build_track_store

__all__ = [
    "DetectionBatch",
    "DetectionWorker",
    "OverlayPipeline",
    "PipelineStats",
    "build_track_store",
]
