"""Tests for the command-line entry points."""

from __future__ import annotations

import argparse
from unittest.mock import Mock

import cv2
import numpy as np
import pytest

from app import detect_image, live_overlay
from capture import OpenCVSource, SimulatedSource
from configs.settings import default_config
from contracts import Box, Detection
from detect import MlDetector, RemoteDetector, SimulatedDetector
from exceptions import ConfigError, FrameReadError


class TestLiveOverlayArgs:
    def test_parse_canvas(self):
        assert live_overlay.parse_canvas("1920x1080") == (1920, 1080)

    @pytest.mark.parametrize("value", ["1920", "0x10", "axb"])
    def test_parse_canvas_rejects(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            live_overlay.parse_canvas(value)

    def test_defaults(self):
        args = live_overlay.parse_args([])

        assert args.source == "0"
        assert args.detector is None
        assert args.max_frames == 0
        assert not args.headless

    def test_build_source(self):
        assert isinstance(live_overlay.build_source("sim"), SimulatedSource)
        assert isinstance(live_overlay.build_source("0"), OpenCVSource)


class TestBuildDetector:
    def test_remote_uses_override(self, monkeypatch):
        monkeypatch.delenv("OVERLAY_API_BASE", raising=False)

        detector = live_overlay.build_detector("remote", default_config(), [], api_base="http://other:9000")

        assert isinstance(detector, RemoteDetector)
        assert detector.detect_url == "http://other:9000/detect"

    def test_ml_detector_settings(self, tmp_path):
        model = tmp_path / "model.onnx"

        detector = live_overlay.build_detector("ml", default_config(), ["a"], model_path=model)

        assert isinstance(detector, MlDetector)
        assert detector.model_path == str(model)
        assert detector.input_size == 640
        assert detector.labels == ["a"]

    def test_sim_detector_needs_sim_source(self):
        with pytest.raises(ConfigError):
            live_overlay.build_detector("sim", default_config(), [], source=OpenCVSource())

        detector = live_overlay.build_detector("sim", default_config(), [], source=SimulatedSource())
        assert isinstance(detector, SimulatedDetector)


def test_live_overlay_headless_run(tmp_path):
    args = live_overlay.parse_args(
        [
            "--source",
            "sim",
            "--detector",
            "sim",
            "--headless",
            "--max-frames",
            "5",
            "--log-dir",
            str(tmp_path / "logs"),
        ]
    )

    assert live_overlay.run(args) == 0


class FlakySimulatedSource(SimulatedSource):
    """Fails the first few reads the way an unplugged camera does."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures

    def read_frame(self):
        if self.failures > 0:
            self.failures -= 1
            raise FrameReadError("camera returned no frame")
        return super().read_frame()


def test_read_failure_ticks_pipeline_and_waits(monkeypatch):
    pipeline = Mock()
    sleeps = []
    monkeypatch.setattr(live_overlay.time, "sleep", sleeps.append)

    live_overlay._idle_after_read_failure(pipeline, 0.05)

    pipeline.tick.assert_called_once()
    assert sleeps == [0.05]


def test_camera_read_failures_do_not_spin(tmp_path, monkeypatch):
    source = FlakySimulatedSource(failures=3)
    monkeypatch.setattr(live_overlay, "build_source", lambda _: source)
    idle = Mock(wraps=live_overlay._idle_after_read_failure)
    monkeypatch.setattr(live_overlay, "_idle_after_read_failure", idle)
    args = live_overlay.parse_args(
        ["--source", "0", "--detector", "sim", "--headless", "--max-frames", "2", "--log-dir", str(tmp_path / "logs")]
    )

    assert live_overlay.run(args) == 0
    assert idle.call_count == 3
    assert source.failures == 0


def test_format_table_lists_detections():
    detections = [
        Detection(class_id=0, score=0.91, box=Box(1.0, 2.0, 10.0, 20.0), class_name="person"),
        Detection(class_id=5, score=0.5, box=Box(0.0, 0.0, 4.0, 4.0)),
    ]

    table = detect_image.format_table(detections, labels=["person"]).splitlines()

    assert len(table) == 3
    assert "person" in table[1] and "0.91" in table[1]
    assert "cls 5" in table[2]


def test_default_output_path(tmp_path):
    assert detect_image.default_output_path(tmp_path / "shot.png") == tmp_path / "shot_detections.png"


def test_detect_image_unreadable_input(tmp_path):
    args = detect_image.parse_args([str(tmp_path / "missing.jpg")])

    assert detect_image.run(args) == 1


def test_detect_image_remote_failure_returns_error(tmp_path, monkeypatch):
    image_path = tmp_path / "frame.jpg"
    cv2.imwrite(str(image_path), np.zeros((32, 32, 3), dtype=np.uint8))
    monkeypatch.setenv("OVERLAY_API_BASE", "http://127.0.0.1:9")

    args = detect_image.parse_args([str(image_path), "--detector", "remote"])

    assert detect_image.run(args) == 1
