"""Run the detector once on an image file and save an annotated copy."""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

import cv2

from configs.settings import DEFAULT_CONFIG_PATH, load_config, load_labels
from contracts import Detection, Frame
from detect import MlDetector, RemoteDetector
from exceptions import ConfigError, DetectionError
from ui import OverlayRenderer
from ui.overlay import label_name

logger = logging.getLogger(__name__)

SINGLE_IMAGE_JPEG_QUALITY = 90


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Detect objects in a single image.")
    parser.add_argument("image", type=Path)
    parser.add_argument("--output", type=Path, default=None, help="Annotated image path")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--detector", choices=["remote", "ml"], default=None)
    parser.add_argument("--api-base", default=None)
    parser.add_argument("--model", type=Path, default=None)
    parser.add_argument("--labels", type=Path, default=None)
    return parser.parse_args(argv)


def format_table(detections: Sequence[Detection], labels: Sequence[str] = ()) -> str:
    lines = [f"{'#':>3}  {'class':<20} {'score':>6}  {'x1':>7} {'y1':>7} {'x2':>7} {'y2':>7}"]
    for index, det in enumerate(detections, start=1):
        x1, y1, x2, y2 = det.box.corners()
        name = label_name(det.class_id, det.class_name, labels)
        lines.append(f"{index:>3}  {name:<20} {det.score:>6.2f}  {x1:>7.1f} {y1:>7.1f} {x2:>7.1f} {y2:>7.1f}")
    return "\n".join(lines)


def default_output_path(image_path: Path) -> Path:
    return image_path.with_name(f"{image_path.stem}_detections{image_path.suffix or '.jpg'}")


def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    labels_path = args.labels or (Path(config.detector.labels_path) if config.detector.labels_path else None)
    labels = load_labels(labels_path)

    image = cv2.imread(str(args.image), cv2.IMREAD_COLOR)
    if image is None:
        logger.error(f"Could not read image {args.image}")
        return 1

    kind = args.detector or config.detector.type
    if kind == "ml":
        model = args.model or (Path(config.detector.model_path) if config.detector.model_path else None)
        detector = MlDetector(
            model_path=str(model) if model else None,
            input_size=config.detector.model_input_size,
            conf_threshold=config.detector.conf_threshold,
            labels=labels,
        )
    else:
        detector = RemoteDetector(
            api_base=args.api_base or config.detector.api_base,
            timeout_s=config.detector.timeout_s,
            jpeg_quality=SINGLE_IMAGE_JPEG_QUALITY,
        )

    frame = Frame(
        source_id=str(args.image),
        frame_index=0,
        t_capture_monotonic_ns=time.monotonic_ns(),
        image=image,
        width=image.shape[1],
        height=image.shape[0],
    )
    try:
        detections: List[Detection] = detector.detect(frame)
    except DetectionError as e:
        logger.error(f"Detection failed: {e}")
        return 1

    renderer = OverlayRenderer(labels=labels, font_scale=config.render.font_scale)
    renderer.draw_detections(image, detections)
    output = args.output or default_output_path(args.image)
    if not cv2.imwrite(str(output), image):
        logger.error(f"Could not write {output}")
        return 1

    print(format_table(detections, labels))
    print(f"{len(detections)} detections in {detector.health().last_latency_ms:.0f}ms -> {output}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    try:
        return run(args)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
