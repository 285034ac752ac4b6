"""Coordinate mapping between source, model and display space."""

from .letterbox import (
    LetterboxTransform,
    compute_letterbox,
    integer_padding,
    model_to_source,
    source_to_display,
    source_to_model,
    to_source,
    to_target,
)

__all__ = [
    "LetterboxTransform",
    "compute_letterbox",
    "integer_padding",
    "model_to_source",
    "source_to_display",
    "source_to_model",
    "to_source",
    "to_target",
]
