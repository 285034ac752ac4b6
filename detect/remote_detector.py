"""HTTP client for a remote detection service.

The service accepts ``POST {api_base}/detect`` with a JSON body
``{"image": "data:image/jpeg;base64,..."}`` and answers with a JSON list of
``{x1, y1, x2, y2, score, classId, className?}`` records in the pixel space of
the submitted image.
"""

from __future__ import annotations

import base64
import json
import os
import socket
import time
from typing import List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import cv2
import numpy as np

from contracts import Detection, Frame
from detect.detector import Detector, DetectorHealth, _HealthCounters
from detect.parsing import parse_detections
from exceptions import DetectionError, MalformedDetectionError, TransportError
from log_config.logger import get_logger

logger = get_logger(__name__)

DEFAULT_API_BASE = "http://127.0.0.1:8000"
API_BASE_ENV = "OVERLAY_API_BASE"


def resolve_api_base(configured: Optional[str] = None) -> str:
    """Environment variable wins over config, config over the built-in default."""
    base = os.environ.get(API_BASE_ENV) or configured or DEFAULT_API_BASE
    return base.rstrip("/")


def encode_jpeg_data_url(image: np.ndarray, quality: int = 75) -> str:
    """Encode an image as a base64 JPEG data URL.

    Raises:
        DetectionError: If OpenCV cannot encode the image
    """
    ok, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise DetectionError("Failed to JPEG-encode frame")
    payload = base64.b64encode(buffer.tobytes()).decode("ascii")
    return f"data:image/jpeg;base64,{payload}"


class RemoteDetector(Detector):
    def __init__(
        self,
        api_base: Optional[str] = None,
        timeout_s: float = 2.0,
        jpeg_quality: int = 75,
    ) -> None:
        self.api_base = resolve_api_base(api_base)
        self.detect_url = f"{self.api_base}/detect"
        self.timeout_s = timeout_s
        self.jpeg_quality = jpeg_quality
        self._counters = _HealthCounters()

    def detect(self, frame: Frame) -> List[Detection]:
        """Send one frame to the service.

        Raises:
            TransportError: On HTTP errors, timeouts, network failures or a
                response that is not a JSON list
        """
        body = json.dumps({"image": encode_jpeg_data_url(frame.image, self.jpeg_quality)}).encode("utf-8")
        request = Request(
            self.detect_url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        self._counters.requests += 1
        start = time.perf_counter()
        try:
            with urlopen(request, timeout=self.timeout_s) as response:
                if response.status != 200:
                    raise TransportError(
                        f"Detector returned HTTP {response.status}", status=response.status
                    )
                payload = json.loads(response.read().decode("utf-8"))
            detections, _ = parse_detections(payload)
        except HTTPError as e:
            self._counters.failures += 1
            raise TransportError(f"Detector returned HTTP {e.code}", status=e.code)
        except (URLError, socket.timeout, TimeoutError, ConnectionError) as e:
            self._counters.failures += 1
            raise TransportError(f"Detector request to {self.detect_url} failed: {e}")
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self._counters.failures += 1
            raise TransportError(f"Detector returned invalid JSON: {e}")
        except MalformedDetectionError as e:
            self._counters.failures += 1
            raise TransportError(f"Detector returned unexpected payload: {e}")
        except TransportError:
            self._counters.failures += 1
            raise

        self._counters.last_latency_ms = (time.perf_counter() - start) * 1000.0
        self._counters.last_success_ns = time.monotonic_ns()
        logger.debug(
            f"Remote detection returned {len(detections)} boxes in {self._counters.last_latency_ms:.1f}ms"
        )
        return detections

    def health(self) -> DetectorHealth:
        return self._counters.snapshot()


__all__ = [
    "API_BASE_ENV",
    "DEFAULT_API_BASE",
    "RemoteDetector",
    "encode_jpeg_data_url",
    "resolve_api_base",
]
