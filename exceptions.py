"""Custom exception classes for the overlay tracker."""

from __future__ import annotations

from typing import Any, Optional


class OverlayTrackerError(Exception):
    """Base exception for all overlay tracker errors."""

    pass


class ConfigError(OverlayTrackerError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class DetectionError(OverlayTrackerError):
    """Base exception for detection-related errors."""

    pass


class TransportError(DetectionError):
    """Raised when a remote detector call fails, times out or returns garbage."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class ModelLoadError(DetectionError):
    """Raised when ML model fails to load."""

    pass


class ModelInferenceError(DetectionError):
    """Raised when ML model inference fails."""

    pass


class MalformedDetectionError(DetectionError):
    """Raised when a detection record is missing fields or holds invalid values."""

    def __init__(self, message: str, raw: Any = None):
        self.raw = raw
        super().__init__(message)


class DegenerateBoxError(DetectionError):
    """Raised when a detection box has non-positive width or height."""

    pass


class GeometryError(OverlayTrackerError):
    """Base exception for coordinate mapping errors."""

    pass


class InvalidExtentError(GeometryError):
    """Raised when a source or target extent is not strictly positive."""

    pass


class CaptureError(OverlayTrackerError):
    """Base exception for frame source errors."""

    def __init__(self, message: str, source_id: Optional[str] = None):
        self.source_id = source_id
        super().__init__(message)


class SourceOpenError(CaptureError):
    """Raised when a camera or video source cannot be opened."""

    pass


class FrameReadError(CaptureError):
    """Raised when a frame cannot be read from an open source."""

    pass
