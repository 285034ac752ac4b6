"""Tests for exponential display-box smoothing."""

import math

import pytest

from contracts import Box
from track.smoother import Smoother


def test_gain_matches_rate_and_dt():
    smoother = Smoother(rate_per_sec=8.0)

    assert smoother.gain(0.05) == pytest.approx(1.0 - math.exp(-0.4))


def test_gain_clamps_dt():
    smoother = Smoother(rate_per_sec=8.0, max_dt=0.1)

    assert smoother.gain(5.0) == pytest.approx(smoother.gain(0.1))
    assert smoother.gain(-1.0) == 0.0


def test_step_approaches_target_without_overshoot():
    smoother = Smoother()
    display = Box(x=0.0, y=0.0, w=10.0, h=10.0)
    target = Box(x=100.0, y=50.0, w=20.0, h=40.0)

    previous_gap = abs(target.x - display.x)
    for _ in range(60):
        display = smoother.step(display, target, 1.0 / 60.0)
        gap = abs(target.x - display.x)
        assert gap < previous_gap
        assert display.x <= target.x
        assert display.h <= target.h
        previous_gap = gap

    assert display.x == pytest.approx(target.x, abs=1.0)


def test_step_at_target_is_stationary():
    smoother = Smoother()
    box = Box(x=5.0, y=5.0, w=5.0, h=5.0)

    assert smoother.step(box, box, 0.016) == box


def test_zero_dt_is_identity():
    smoother = Smoother()
    display = Box(x=0.0, y=0.0, w=1.0, h=1.0)

    assert smoother.step(display, Box(x=9.0, y=9.0, w=9.0, h=9.0), 0.0) is display


@pytest.mark.parametrize("kwargs", [{"rate_per_sec": 0}, {"max_dt": -0.1}])
def test_invalid_parameters(kwargs):
    with pytest.raises(ValueError):
        Smoother(**kwargs)
