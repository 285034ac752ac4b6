"""OpenCV drawing of tracked boxes and labels onto a display canvas."""

from __future__ import annotations

import colorsys
from typing import Iterable, Optional, Sequence, Tuple

import cv2
import numpy as np

from contracts import Box, Detection, TrackView
from mapping.letterbox import LetterboxTransform, compute_letterbox, integer_padding, to_target

Color = Tuple[int, int, int]

FONT = cv2.FONT_HERSHEY_SIMPLEX
# Hershey simplex glyph height in pixels at fontScale 1.0
_FONT_BASE_PX = 22.0


def class_color(class_id: int) -> Color:
    """Stable BGR colour per class, spread around the hue wheel by the golden angle."""
    hue = (abs(class_id) * 137.508) % 360.0
    r, g, b = colorsys.hls_to_rgb(hue / 360.0, 0.55, 0.90)
    return (int(round(b * 255)), int(round(g * 255)), int(round(r * 255)))


def label_name(class_id: int, class_name: Optional[str], labels: Sequence[str] = ()) -> str:
    if class_name:
        return class_name
    if 0 <= class_id < len(labels):
        return labels[class_id]
    return f"cls {class_id}"


def format_label(view: TrackView, labels: Sequence[str] = ()) -> str:
    return f"{label_name(view.class_id, view.class_name, labels)} ({view.score:.2f})"


def letterbox_frame(image: np.ndarray, canvas_size: Tuple[int, int]) -> Tuple[np.ndarray, LetterboxTransform]:
    """Place a source frame centred on a black canvas of (width, height).

    Returns:
        (canvas, display transform for the frame)
    """
    canvas_w, canvas_h = canvas_size
    src_h, src_w = image.shape[:2]
    transform = compute_letterbox(src_w, src_h, (canvas_w, canvas_h))
    left, _, top, _ = integer_padding(transform)
    new_w = int(round(transform.scaled_width))
    new_h = int(round(transform.scaled_height))

    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    canvas = np.zeros((canvas_h, canvas_w, 3), dtype=np.uint8)
    canvas[top:top + new_h, left:left + new_w] = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_LINEAR)
    return canvas, transform


class OverlayRenderer:
    """Draws track snapshots onto a canvas that shows the source frame letterboxed.

    The renderer only reads ``TrackView`` records; box sizes are in source
    pixels and go through the display letterbox for the canvas in use.
    """

    def __init__(self, labels: Sequence[str] = (), font_scale: float = 4.0) -> None:
        self.labels = list(labels)
        self.font_scale = font_scale

    def _style(self, min_side: float) -> Tuple[int, int, int, int]:
        line_w = max(2, int(round(min_side / 110.0)))
        font_px = max(12, int(round(line_w * self.font_scale)))
        pad_x = max(6, int(round(line_w * 2.0)))
        pad_y = max(4, int(round(line_w * 1.2)))
        return line_w, font_px, pad_x, pad_y

    def draw(
        self,
        canvas: np.ndarray,
        views: Iterable[TrackView],
        source_size: Tuple[int, int],
    ) -> np.ndarray:
        """Draw tracks in place and return the canvas.

        Args:
            canvas: BGR image the frame was letterboxed onto
            views: Track snapshot from the pipeline
            source_size: (width, height) of the source frame
        """
        canvas_h, canvas_w = canvas.shape[:2]
        transform = compute_letterbox(source_size[0], source_size[1], (canvas_w, canvas_h))
        style = self._style(min(transform.scaled_width, transform.scaled_height))
        for view in views:
            box = to_target(view.display, transform)
            self._draw_box(canvas, box, class_color(view.class_id), format_label(view, self.labels), style, transform.pad_y)
        return canvas

    def draw_detections(
        self,
        image: np.ndarray,
        detections: Iterable[Detection],
        labels: Optional[Sequence[str]] = None,
    ) -> np.ndarray:
        """Draw raw detections directly in source pixels (single-image mode).

        ``labels`` overrides the renderer's own label list for this call.
        """
        labels = self.labels if labels is None else labels
        height, width = image.shape[:2]
        style = self._style(min(width, height))
        for det in detections:
            text = f"{label_name(det.class_id, det.class_name, labels)} ({det.score:.2f})"
            self._draw_box(image, det.box, class_color(det.class_id), text, style, 0.0)
        return image

    def _draw_box(
        self,
        canvas: np.ndarray,
        box: Box,
        color: Color,
        text: str,
        style: Tuple[int, int, int, int],
        top_limit: float,
    ) -> None:
        line_w, font_px, pad_x, pad_y = style
        x1, y1 = int(round(box.x)), int(round(box.y))
        x2, y2 = int(round(box.x2)), int(round(box.y2))
        cv2.rectangle(canvas, (x1, y1), (x2, y2), color, line_w, cv2.LINE_AA)

        scale = font_px / _FONT_BASE_PX
        thickness = max(1, line_w // 2)
        (text_w, text_h), baseline = cv2.getTextSize(text, FONT, scale, thickness)
        chip_h = text_h + baseline + pad_y

        lx = x1 - line_w // 2
        ly = y1 - chip_h - line_w
        # Keep the chip inside the picture area; fall back to inside the box.
        if ly < top_limit + line_w:
            ly = y1 + line_w
        cv2.rectangle(canvas, (lx, ly), (lx + text_w + pad_x, ly + chip_h), color, -1)
        cv2.putText(
            canvas,
            text,
            (lx + pad_x // 2, ly + pad_y // 2 + text_h),
            FONT,
            scale,
            (0, 0, 0),
            thickness,
            cv2.LINE_AA,
        )


def draw_status(canvas: np.ndarray, lines: Sequence[str]) -> np.ndarray:
    """Top-left status badge (detection rate, camera fps)."""
    y = 8
    for line in lines:
        (text_w, text_h), baseline = cv2.getTextSize(line, FONT, 0.5, 1)
        cv2.rectangle(canvas, (8, y), (8 + text_w + 8, y + text_h + baseline + 6), (0, 0, 0), -1)
        cv2.putText(canvas, line, (12, y + text_h + 3), FONT, 0.5, (255, 255, 255), 1, cv2.LINE_AA)
        y += text_h + baseline + 10
    return canvas


__all__ = [
    "OverlayRenderer",
    "class_color",
    "draw_status",
    "format_label",
    "label_name",
    "letterbox_frame",
]
