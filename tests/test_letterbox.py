"""Tests for letterbox transforms between source, model and display space."""

from __future__ import annotations

import pytest

from contracts import Box
from exceptions import InvalidExtentError
from mapping.letterbox import (
    compute_letterbox,
    integer_padding,
    model_to_source,
    source_to_display,
    source_to_model,
    to_source,
    to_target,
)


def _assert_box_close(actual: Box, expected: Box, tol: float = 1e-6) -> None:
    assert actual.x == pytest.approx(expected.x, abs=tol)
    assert actual.y == pytest.approx(expected.y, abs=tol)
    assert actual.w == pytest.approx(expected.w, abs=tol)
    assert actual.h == pytest.approx(expected.h, abs=tol)


class TestComputeLetterbox:
    def test_landscape_into_square_pads_vertically(self):
        transform = compute_letterbox(1280, 720, 640)

        assert transform.scale == pytest.approx(0.5)
        assert transform.pad_x == pytest.approx(0.0)
        assert transform.pad_y == pytest.approx(140.0)
        assert transform.scaled_width == pytest.approx(640.0)
        assert transform.scaled_height == pytest.approx(360.0)

    def test_portrait_into_canvas_pads_horizontally(self):
        transform = compute_letterbox(720, 1280, (1280, 720))

        assert transform.scale == pytest.approx(720 / 1280)
        assert transform.pad_y == pytest.approx(0.0)
        assert transform.pad_x == pytest.approx((1280 - 720 * 720 / 1280) / 2.0)

    def test_scaled_extent_plus_padding_fills_target(self):
        transform = compute_letterbox(1000, 333, (777, 555))

        assert transform.scaled_width + 2 * transform.pad_x == pytest.approx(777.0)
        assert transform.scaled_height + 2 * transform.pad_y == pytest.approx(555.0)

    @pytest.mark.parametrize(
        "source_width,source_height,target",
        [
            (0, 480, 640),
            (640, -1, 640),
            (640, 480, 0),
            (640, 480, (640, 0)),
            (float("nan"), 480, 640),
        ],
    )
    def test_non_positive_extent_is_rejected(self, source_width, source_height, target):
        with pytest.raises(InvalidExtentError):
            compute_letterbox(source_width, source_height, target)


class TestIntegerPadding:
    @pytest.mark.parametrize(
        "source,target",
        [
            ((1280, 720), (640, 640)),
            ((1281, 721), (640, 640)),
            ((333, 1000), (641, 641)),
            ((1920, 1080), (1279, 719)),
        ],
    )
    def test_padding_sums_to_target(self, source, target):
        transform = compute_letterbox(source[0], source[1], target)
        left, right, top, bottom = integer_padding(transform)

        assert left + right + round(transform.scaled_width) == target[0]
        assert top + bottom + round(transform.scaled_height) == target[1]
        assert right - left in (0, 1)
        assert bottom - top in (0, 1)

    def test_odd_padding_puts_extra_pixel_on_trailing_edge(self):
        transform = compute_letterbox(100, 99, (100, 100))
        left, right, top, bottom = integer_padding(transform)

        assert (left, right) == (0, 0)
        assert (top, bottom) == (0, 1)


class TestMapping:
    @pytest.mark.parametrize("target", [320, 640, 641, 1280])
    @pytest.mark.parametrize(
        "source_width,source_height",
        [(1280, 720), (720, 1280), (641, 479), (3, 2), (1, 1000), (1000, 1)],
    )
    def test_forward_then_inverse_is_identity(self, source_width, source_height, target):
        transform = compute_letterbox(source_width, source_height, target)
        boxes = [
            Box(x=0.0, y=0.0, w=float(source_width), h=float(source_height)),
            Box(x=source_width * 0.25, y=source_height * 0.1, w=source_width * 0.5, h=source_height * 0.3),
            Box(x=source_width - 0.5, y=source_height - 0.5, w=0.5, h=0.5),
        ]

        for box in boxes:
            tol = 1e-9 * max(source_width, source_height, target)
            _assert_box_close(to_source(to_target(box, transform), transform), box, tol=tol)

    def test_model_box_maps_to_source_pixels(self):
        # Model-space box covering the whole picture area of a 1280x720 frame.
        model_box = Box(x=0.0, y=140.0, w=640.0, h=360.0)

        source_box = model_to_source(1280, 720, 640, model_box)

        _assert_box_close(source_box, Box(x=0.0, y=0.0, w=1280.0, h=720.0))

    def test_model_to_display_goes_through_source(self):
        source_box = Box(x=320.0, y=180.0, w=640.0, h=360.0)
        model_box = source_to_model(1280, 720, 640, source_box)

        display_box = source_to_display(1280, 720, (1920, 1080), model_to_source(1280, 720, 640, model_box))

        _assert_box_close(display_box, Box(x=480.0, y=270.0, w=960.0, h=540.0))
