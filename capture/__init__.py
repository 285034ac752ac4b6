"""Capture module."""

from .camera_device import FrameSource, SourceStats
from .opencv_backend import OpenCVSource
from .simulated_camera import SimulatedSource

__all__ = ["FrameSource", "OpenCVSource", "SimulatedSource", "SourceStats"]
