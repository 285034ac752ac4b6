"""Letterbox transforms between source-frame, model and display space.

A letterbox scales a source extent uniformly into a target extent and
centres it with symmetric padding. The model input and the display canvas
each get their own transform derived from the same source extent, so boxes
always travel through source space: model -> source -> display.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple, Union

from contracts import Box
from exceptions import InvalidExtentError

Extent = Union[int, float, Tuple[float, float]]


@dataclass(frozen=True)
class LetterboxTransform:
    scale: float
    pad_x: float
    pad_y: float
    scaled_width: float
    scaled_height: float
    target_width: float
    target_height: float


def _target_size(target_extent: Extent) -> Tuple[float, float]:
    if isinstance(target_extent, (tuple, list)):
        width, height = target_extent
        return float(width), float(height)
    return float(target_extent), float(target_extent)


def compute_letterbox(
    source_width: float, source_height: float, target_extent: Extent
) -> LetterboxTransform:
    """Compute the letterbox that fits a source extent into a target extent.

    Args:
        source_width: Source frame width in pixels
        source_height: Source frame height in pixels
        target_extent: Square side (model input) or (width, height) pair
            (display canvas)

    Returns:
        LetterboxTransform with scale and fractional padding

    Raises:
        InvalidExtentError: If any extent is not strictly positive
    """
    target_width, target_height = _target_size(target_extent)
    for label, value in (
        ("source_width", source_width),
        ("source_height", source_height),
        ("target_width", target_width),
        ("target_height", target_height),
    ):
        if not math.isfinite(value) or value <= 0:
            raise InvalidExtentError(f"{label} must be positive, got {value}")

    scale = min(target_width / source_width, target_height / source_height)
    scaled_width = source_width * scale
    scaled_height = source_height * scale
    return LetterboxTransform(
        scale=scale,
        pad_x=(target_width - scaled_width) / 2.0,
        pad_y=(target_height - scaled_height) / 2.0,
        scaled_width=scaled_width,
        scaled_height=scaled_height,
        target_width=target_width,
        target_height=target_height,
    )


def integer_padding(transform: LetterboxTransform) -> Tuple[int, int, int, int]:
    """Split padding into whole pixels as (left, right, top, bottom).

    The scaled extent is rounded to whole pixels first; the leading edge takes
    the floor of the half padding and the trailing edge the ceil, so each
    axis sums exactly to the target extent.
    """
    scaled_w = int(round(transform.scaled_width))
    scaled_h = int(round(transform.scaled_height))
    half_x = (int(round(transform.target_width)) - scaled_w) / 2.0
    half_y = (int(round(transform.target_height)) - scaled_h) / 2.0
    return (
        int(math.floor(half_x)),
        int(math.ceil(half_x)),
        int(math.floor(half_y)),
        int(math.ceil(half_y)),
    )


def to_target(box: Box, transform: LetterboxTransform) -> Box:
    """Forward mapping: source coordinates into target coordinates."""
    return Box(
        x=box.x * transform.scale + transform.pad_x,
        y=box.y * transform.scale + transform.pad_y,
        w=box.w * transform.scale,
        h=box.h * transform.scale,
    )


def to_source(box: Box, transform: LetterboxTransform) -> Box:
    """Inverse mapping: target coordinates back into source coordinates."""
    return Box(
        x=(box.x - transform.pad_x) / transform.scale,
        y=(box.y - transform.pad_y) / transform.scale,
        w=box.w / transform.scale,
        h=box.h / transform.scale,
    )


def source_to_model(source_width: float, source_height: float, model_size: Extent, box: Box) -> Box:
    return to_target(box, compute_letterbox(source_width, source_height, model_size))


def model_to_source(source_width: float, source_height: float, model_size: Extent, box: Box) -> Box:
    return to_source(box, compute_letterbox(source_width, source_height, model_size))


def source_to_display(
    source_width: float, source_height: float, canvas_size: Extent, box: Box
) -> Box:
    return to_target(box, compute_letterbox(source_width, source_height, canvas_size))


__all__ = [
    "Extent",
    "LetterboxTransform",
    "compute_letterbox",
    "integer_padding",
    "to_target",
    "to_source",
    "source_to_model",
    "model_to_source",
    "source_to_display",
]
