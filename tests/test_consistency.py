"""Tests for consistency module (Layer 3)."""

import pytest

from audiobook_annotator.consistency import ConsistencyMonitor


def test_first_value_accepted():
    assert ConsistencyMonitor().adjust_speed(1.3) == 1.3


def test_clamp_to_moving_average():
    """1.30 after 1.0 and 1.05 is held to 10% above their mean."""
    monitor = ConsistencyMonitor(window=3, max_deviation=0.10)
    assert monitor.adjust_speed(1.0) == 1.0
    assert monitor.adjust_speed(1.05) == pytest.approx(1.05)
    assert monitor.adjust_speed(1.30) == pytest.approx(1.1275)


def test_clamp_below():
    monitor = ConsistencyMonitor(max_deviation=0.08)
    monitor.adjust_speed(1.0)
    assert monitor.adjust_speed(0.5) == pytest.approx(0.92)


def test_window_evicts_old_values():
    monitor = ConsistencyMonitor(window=2, max_deviation=0.08)
    for value in (1.0, 1.0, 1.05):
        monitor.adjust_speed(value)
    assert monitor.adjust_speed(1.2) == pytest.approx(1.025 * 1.08)


def test_separate_histories():
    """Speed and pitch are smoothed independently."""
    monitor = ConsistencyMonitor(max_deviation=0.08)
    monitor.validate_and_adjust(1.0, 1.0)
    speed, pitch = monitor.validate_and_adjust(1.0, 1.5)
    assert speed == pytest.approx(1.0)
    assert pitch == pytest.approx(1.08)


def test_reset():
    monitor = ConsistencyMonitor()
    monitor.adjust_speed(1.0)
    monitor.reset()
    assert monitor.adjust_speed(1.5) == 1.5


def test_invalid_window():
    with pytest.raises(ValueError):
        ConsistencyMonitor(window=0)
