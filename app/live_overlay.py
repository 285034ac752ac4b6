"""Live camera overlay: detect, track and draw boxes on a letterboxed preview."""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Optional, Sequence, Tuple

import cv2

from app.events import ErrorEvent, ErrorSeverity, get_error_bus
from app.pipeline import OverlayPipeline
from capture import FrameSource, OpenCVSource, SimulatedSource
from configs.settings import DEFAULT_CONFIG_PATH, AppConfig, load_config, load_labels
from detect import Detector, MlDetector, RemoteDetector, SimulatedDetector
from exceptions import CaptureError, ConfigError, FrameReadError
from log_config.logger import configure_file_logging, set_console_level
from ui import OverlayRenderer, draw_status, letterbox_frame

logger = logging.getLogger(__name__)

WINDOW_NAME = "Overlay Tracker"
_QUIT_KEYS = (ord("q"), 27)


def parse_canvas(value: str) -> Tuple[int, int]:
    try:
        width, height = (int(part) for part in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Canvas must look like 1280x720, got {value!r}")
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError(f"Canvas dimensions must be positive, got {value!r}")
    return width, height


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the live detection overlay.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--source", default="0", help="Camera index, video path, URL or 'sim'")
    parser.add_argument("--detector", choices=["remote", "ml", "sim"], default=None)
    parser.add_argument("--api-base", default=None, help="Remote detector base URL")
    parser.add_argument("--model", type=Path, default=None, help="ONNX model for the ml detector")
    parser.add_argument("--labels", type=Path, default=None, help="JSON class labels")
    parser.add_argument("--canvas", type=parse_canvas, default=None, help="Canvas size as WxH")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N frames (0 = run until quit)")
    parser.add_argument("--headless", action="store_true", help="Do not open a preview window")
    parser.add_argument("--log-dir", type=Path, default=Path("logs"))
    parser.add_argument("--verbose", action="store_true", help="Debug output on the console")
    return parser.parse_args(argv)


def build_source(source: str) -> FrameSource:
    if source == "sim":
        return SimulatedSource(realtime=True)
    return OpenCVSource()


def build_detector(
    kind: str,
    config: AppConfig,
    labels: Sequence[str],
    api_base: Optional[str] = None,
    model_path: Optional[Path] = None,
    source: Optional[FrameSource] = None,
) -> Detector:
    if kind == "ml":
        model = model_path or (Path(config.detector.model_path) if config.detector.model_path else None)
        return MlDetector(
            model_path=str(model) if model else None,
            input_size=config.detector.model_input_size,
            conf_threshold=config.detector.conf_threshold,
            labels=labels,
        )
    if kind == "sim":
        if not isinstance(source, SimulatedSource):
            raise ConfigError("The sim detector needs the sim source")
        return SimulatedDetector(lambda: source.object_box)
    return RemoteDetector(
        api_base=api_base or config.detector.api_base,
        timeout_s=config.detector.timeout_s,
        jpeg_quality=config.detector.jpeg_quality,
    )


def _log_error_event(event: ErrorEvent) -> None:
    if event.severity == ErrorSeverity.CRITICAL:
        logger.critical(str(event))


def _idle_after_read_failure(pipeline: OverlayPipeline, frame_interval: float) -> None:
    # Keep expiring tracks while the camera is not delivering frames.
    pipeline.tick(time.monotonic())
    time.sleep(frame_interval)


def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    labels_path = args.labels or (Path(config.detector.labels_path) if config.detector.labels_path else None)
    labels = load_labels(labels_path)
    canvas_size = args.canvas or (config.render.canvas_width, config.render.canvas_height)

    source = build_source(args.source)
    detector = build_detector(
        args.detector or config.detector.type,
        config,
        labels,
        api_base=args.api_base,
        model_path=args.model,
        source=source,
    )
    pipeline = OverlayPipeline.from_config(config, detector)
    renderer = OverlayRenderer(labels=labels, font_scale=config.render.font_scale)
    frame_interval = 1.0 / config.render.refresh_hz
    frames = 0
    source.open(args.source)
    unsubscribe = get_error_bus().subscribe(_log_error_event)
    pipeline.start()
    try:
        while True:
            loop_start = time.monotonic()
            try:
                frame = source.read_frame()
            except FrameReadError as e:
                logger.warning(f"Frame read failed: {e}")
                if isinstance(source, OpenCVSource) and not args.source.isdigit():
                    logger.info("End of video source")
                    break
                _idle_after_read_failure(pipeline, frame_interval)
                continue

            now = time.monotonic()
            pipeline.maybe_submit(frame, now)
            views = pipeline.tick(now)

            canvas, _ = letterbox_frame(frame.image, canvas_size)
            renderer.draw(canvas, views, (frame.width, frame.height))
            stats = pipeline.stats(now)
            draw_status(
                canvas,
                [
                    f"detect {stats.detection_rate_hz:.1f} Hz",
                    f"camera {source.get_stats().fps_instant:.1f} fps",
                    f"tracks {stats.tracks}",
                ],
            )

            frames += 1
            if args.max_frames and frames >= args.max_frames:
                break

            if not args.headless:
                cv2.imshow(WINDOW_NAME, canvas)
                key = cv2.waitKey(1) & 0xFF
                if key in _QUIT_KEYS:
                    break

            remaining = frame_interval - (time.monotonic() - loop_start)
            if remaining > 0:
                time.sleep(remaining)
    finally:
        pipeline.stop()
        source.close()
        unsubscribe()
        if not args.headless:
            cv2.destroyAllWindows()

    stats = pipeline.stats()
    logger.info(
        f"Rendered {frames} frames: {stats.batches_applied} batches applied, "
        f"{stats.batches_stale} stale, {stats.batches_failed} failed"
    )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    configure_file_logging(args.log_dir)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        set_console_level("DEBUG")
    try:
        return run(args)
    except (ConfigError, CaptureError) as e:
        logger.error(f"Live overlay failed to start: {e}")
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
