"""Validation of raw detector records into Detection contracts."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Tuple

from contracts import Box, Detection
from exceptions import DegenerateBoxError, MalformedDetectionError
from log_config.logger import get_logger

logger = get_logger(__name__)

_CORNER_KEYS = ("x1", "y1", "x2", "y2")


@dataclass(frozen=True)
class ParseReport:
    accepted: int = 0
    malformed: int = 0
    degenerate: int = 0

    @property
    def dropped(self) -> int:
        return self.malformed + self.degenerate


def _number(raw: Mapping[str, Any], key: str, default: float | None = None) -> float:
    value = raw.get(key, default)
    if value is None:
        raise MalformedDetectionError(f"Detection missing '{key}'", raw=raw)
    if isinstance(value, bool):
        raise MalformedDetectionError(f"Detection field '{key}' is not numeric: {value!r}", raw=raw)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MalformedDetectionError(f"Detection field '{key}' is not numeric: {value!r}", raw=raw)
    if not math.isfinite(number):
        raise MalformedDetectionError(f"Detection field '{key}' is not finite: {value!r}", raw=raw)
    return number


def parse_detection(raw: Any) -> Detection:
    """Build a Detection from a detector record.

    The record holds ``x1, y1, x2, y2`` in source-frame pixels plus optional
    ``score`` (default 0), ``classId`` (rounded, default -1) and ``className``.

    Raises:
        MalformedDetectionError: If fields are missing or not finite numbers
        DegenerateBoxError: If the box has non-positive width or height
    """
    if not isinstance(raw, Mapping):
        raise MalformedDetectionError(f"Detection must be an object, got {type(raw).__name__}", raw=raw)

    x1, y1, x2, y2 = (_number(raw, key) for key in _CORNER_KEYS)
    score = min(1.0, max(0.0, _number(raw, "score", 0.0)))
    class_id = int(round(_number(raw, "classId", -1)))

    class_name = raw.get("className")
    if class_name is not None and not isinstance(class_name, str):
        class_name = str(class_name)

    box = Box.from_corners(x1, y1, x2, y2)
    if box.is_degenerate:
        raise DegenerateBoxError(f"Degenerate box w={box.w:.2f} h={box.h:.2f}")
    return Detection(class_id=class_id, score=score, box=box, class_name=class_name)


def parse_detections(payload: Any) -> Tuple[List[Detection], ParseReport]:
    """Parse a detector response, dropping bad records individually.

    Raises:
        MalformedDetectionError: If the payload is not a list at all
    """
    if not isinstance(payload, list):
        raise MalformedDetectionError(
            f"Detector response must be a list, got {type(payload).__name__}", raw=payload
        )

    detections: List[Detection] = []
    malformed = 0
    degenerate = 0
    for raw in payload:
        try:
            detections.append(parse_detection(raw))
        except DegenerateBoxError as e:
            degenerate += 1
            logger.debug(f"Dropped detection: {e}")
        except MalformedDetectionError as e:
            malformed += 1
            logger.debug(f"Dropped detection: {e}")

    if malformed or degenerate:
        logger.warning(
            f"Dropped {malformed + degenerate} of {len(payload)} detections "
            f"(malformed={malformed}, degenerate={degenerate})"
        )
    return detections, ParseReport(accepted=len(detections), malformed=malformed, degenerate=degenerate)


__all__ = ["ParseReport", "parse_detection", "parse_detections"]
