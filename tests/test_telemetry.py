import logging

import pytest

from detect.telemetry import RateMeter, log_timing


def test_rate_meter_reports_after_window() -> None:
    meter = RateMeter(window_s=1.0)
    for i in range(12):
        meter.mark(10.0 + i * 0.08)

    assert meter.rate(11.0) == pytest.approx(12 / 1.0)


def test_rate_meter_is_zero_before_first_window() -> None:
    meter = RateMeter()
    meter.mark(0.0)
    meter.mark(0.5)

    assert meter.rate(0.6) == 0.0


def test_rate_meter_reset() -> None:
    meter = RateMeter(window_s=0.5)
    meter.mark(0.0)
    meter.mark(0.6)
    assert meter.rate() > 0

    meter.reset()

    assert meter.rate(5.0) == 0.0


def test_log_timing_warns_over_budget(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="telemetry"):
        log_timing("cam0", "remote", elapsed_ms=250.0, budget_ms=200.0)

    assert any("timing_budget_exceeded" in record.message for record in caplog.records)


def test_log_timing_within_budget(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="telemetry"):
        log_timing("cam0", "remote", elapsed_ms=50.0, budget_ms=200.0)

    assert not any(record.levelno >= logging.WARNING for record in caplog.records)
