"""Detection module."""

from .detector import Detector, DetectorHealth
from .ml_detector import MlDetector
from .parsing import ParseReport, parse_detection, parse_detections
from .remote_detector import RemoteDetector
from .simulated_detector import SimulatedDetector

__all__ = [
    "Detector",
    "DetectorHealth",
    "MlDetector",
    "ParseReport",
    "RemoteDetector",
    "SimulatedDetector",
    "parse_detection",
    "parse_detections",
]
