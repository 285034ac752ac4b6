"""Local ML detector using OpenCV DNN with an end-to-end YOLO export.

The network takes a letterboxed square RGB input normalised to [0, 1] and
returns rows of ``[x1, y1, x2, y2, confidence, class]`` in model space.
"""

from __future__ import annotations

import time
from typing import List, Optional, Sequence

import cv2
import numpy as np

from contracts import Box, Detection, Frame
from detect.detector import Detector, DetectorHealth, _HealthCounters
from exceptions import ModelInferenceError, ModelLoadError
from log_config.logger import get_logger, log_performance
from mapping.letterbox import LetterboxTransform, compute_letterbox, integer_padding, to_source

logger = get_logger(__name__)

PAD_VALUE = 114


def letterbox_image(image: np.ndarray, input_size: int) -> tuple[np.ndarray, LetterboxTransform]:
    """Resize and pad an image into a square model input.

    Returns:
        (padded image of shape input_size x input_size, transform used)
    """
    height, width = image.shape[:2]
    transform = compute_letterbox(width, height, input_size)
    new_w = int(round(transform.scaled_width))
    new_h = int(round(transform.scaled_height))
    resized = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_LINEAR)
    left, right, top, bottom = integer_padding(transform)
    padded = cv2.copyMakeBorder(
        resized,
        top,
        bottom,
        left,
        right,
        cv2.BORDER_CONSTANT,
        value=(PAD_VALUE, PAD_VALUE, PAD_VALUE),
    )
    return padded, transform


class MlDetector(Detector):
    def __init__(
        self,
        model_path: Optional[str] = None,
        input_size: int = 640,
        conf_threshold: float = 0.4,
        labels: Optional[Sequence[str]] = None,
    ) -> None:
        self.model_path = model_path
        self.input_size = input_size
        self.conf_threshold = conf_threshold
        self.labels = list(labels) if labels else []
        self._net: Optional[cv2.dnn.Net] = None
        self._counters = _HealthCounters()

    def _load_net(self) -> cv2.dnn.Net:
        if self._net is not None:
            return self._net
        if self.model_path is None:
            raise ModelLoadError("No model path configured for ML detector")
        try:
            self._net = cv2.dnn.readNetFromONNX(self.model_path)
        except cv2.error as e:
            raise ModelLoadError(f"Failed to load ONNX model {self.model_path}: {e}")
        logger.info(f"Loaded ONNX model {self.model_path} (input {self.input_size}px)")
        return self._net

    def detect(self, frame: Frame) -> List[Detection]:
        net = self._load_net()
        image = frame.image
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        padded, transform = letterbox_image(image, self.input_size)
        blob = cv2.dnn.blobFromImage(padded, scalefactor=1 / 255.0, swapRB=True, crop=False)

        self._counters.requests += 1
        start = time.perf_counter()
        try:
            net.setInput(blob)
            outputs = net.forward()
        except cv2.error as e:
            self._counters.failures += 1
            raise ModelInferenceError(f"Inference failed: {e}")
        self._counters.last_latency_ms = (time.perf_counter() - start) * 1000.0
        self._counters.last_success_ns = time.monotonic_ns()
        log_performance(f"ML inference ({self.input_size}px)", self._counters.last_latency_ms)

        return parse_outputs(outputs, transform, self.conf_threshold, self.labels)

    def health(self) -> DetectorHealth:
        return self._counters.snapshot()


def parse_outputs(
    outputs: np.ndarray,
    transform: LetterboxTransform,
    conf_threshold: float,
    labels: Sequence[str] = (),
) -> List[Detection]:
    """Convert model-space output rows into source-space detections.

    Rows below the confidence threshold and rows whose box collapses are
    skipped.
    """
    output = outputs
    if isinstance(outputs, (list, tuple)):
        output = next((o for o in outputs if o.shape[-1] == 6), outputs[0])
    output = np.asarray(output)
    if output.ndim == 3:
        output = output[0]
    if output.ndim != 2 or output.shape[-1] < 6:
        raise ModelInferenceError(f"Unexpected model output shape {output.shape}")

    detections: List[Detection] = []
    for row in output:
        x1, y1, x2, y2, conf, cls = (float(v) for v in row[:6])
        if conf < conf_threshold:
            continue
        model_box = Box.from_corners(x1, y1, x2, y2)
        if model_box.is_degenerate:
            continue
        class_id = int(round(cls))
        class_name = labels[class_id] if 0 <= class_id < len(labels) else None
        detections.append(
            Detection(
                class_id=class_id,
                score=conf,
                box=to_source(model_box, transform),
                class_name=class_name,
            )
        )
    return detections


__all__ = ["MlDetector", "PAD_VALUE", "letterbox_image", "parse_outputs"]
