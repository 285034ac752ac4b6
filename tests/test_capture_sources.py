"""Tests for frame sources."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from capture import OpenCVSource, SimulatedSource
from exceptions import FrameReadError, SourceOpenError


class TestSimulatedSource:
    def test_frames_are_indexed_and_sized(self):
        source = SimulatedSource(width=320, height=240)
        source.open("sim")

        first = source.read_frame()
        second = source.read_frame()

        assert first.image.shape == (240, 320, 3)
        assert (first.width, first.height) == (320, 240)
        assert second.frame_index == first.frame_index + 1
        assert second.t_capture_monotonic_ns >= first.t_capture_monotonic_ns

    def test_object_box_marks_bright_square(self):
        source = SimulatedSource(width=320, height=240, square=40)
        source.open("sim")

        frame = source.read_frame()
        box = source.object_box

        cx, cy = (int(v) for v in box.center)
        assert box.w == 40
        assert (frame.image[cy, cx] == 230).all()

    def test_square_moves_between_frames(self):
        source = SimulatedSource()
        source.open("sim")

        source.read_frame()
        first = source.object_box
        source.read_frame()

        assert source.object_box != first

    def test_context_manager_and_stats(self):
        with SimulatedSource() as source:
            source.open("sim")
            source.read_frame()
            assert source.get_stats().frames == 1


class TestOpenCVSource:
    @patch("capture.opencv_backend.cv2.VideoCapture")
    def test_open_failure_raises(self, mock_capture_cls):
        mock_capture_cls.return_value.isOpened.return_value = False

        with pytest.raises(SourceOpenError) as exc_info:
            OpenCVSource().open("3")

        mock_capture_cls.assert_called_once_with(3)
        assert exc_info.value.source_id == "3"

    @patch("capture.opencv_backend.cv2.VideoCapture")
    def test_path_is_passed_through(self, mock_capture_cls):
        mock_capture_cls.return_value.isOpened.return_value = True

        OpenCVSource().open("clip.mp4")

        mock_capture_cls.assert_called_once_with("clip.mp4")

    @patch("capture.opencv_backend.cv2.VideoCapture")
    def test_read_frame_and_failure(self, mock_capture_cls):
        capture = MagicMock()
        capture.isOpened.return_value = True
        image = np.zeros((48, 64, 3), dtype=np.uint8)
        capture.read.side_effect = [(True, image), (False, None)]
        mock_capture_cls.return_value = capture

        source = OpenCVSource()
        source.open("0")
        frame = source.read_frame()

        assert (frame.width, frame.height) == (64, 48)
        assert frame.frame_index == 1

        with pytest.raises(FrameReadError):
            source.read_frame()
        assert source.get_stats().dropped_frames == 1

    def test_read_before_open(self):
        with pytest.raises(FrameReadError):
            OpenCVSource().read_frame()

    @patch("capture.opencv_backend.cv2.VideoCapture")
    def test_close_is_idempotent(self, mock_capture_cls):
        capture = mock_capture_cls.return_value
        capture.isOpened.return_value = True

        source = OpenCVSource()
        source.open("0")
        source.close()
        source.close()

        capture.release.assert_called_once()
