from __future__ import annotations

import numpy as np
import pytest

from audiolab.motion import DopplerMotionDetector, MotionState, PeakHistory

# 1 Hz per bin keeps bin index == frequency
SAMPLE_RATE = 1024
FFT_SIZE = 1024


def _peak_at(index: int) -> np.ndarray:
    spectrum = np.full(FFT_SIZE // 2, -100.0)
    spectrum[index] = -5.0
    return spectrum


def _detector(**kwargs) -> DopplerMotionDetector:
    kwargs.setdefault("history_length", 5)
    kwargs.setdefault("threshold_hz", 10.0)
    return DopplerMotionDetector(SAMPLE_RATE, FFT_SIZE, **kwargs)


def _feed(detector: DopplerMotionDetector, bins) -> list:
    return [detector.observe(_peak_at(b)) for b in bins]


def test_peak_history_is_fifo_and_bounded() -> None:
    history = PeakHistory(3)
    for freq in (1.0, 2.0, 3.0):
        history.append(freq)
    assert history.is_full
    history.append(4.0)

    assert len(history) == 3
    assert history.values() == [2.0, 3.0, 4.0]
    assert (history.first, history.last) == (2.0, 4.0)


def test_insufficient_until_history_is_full() -> None:
    states = _feed(_detector(), [100, 120, 140, 160])
    assert states == [MotionState.INSUFFICIENT] * 4


def test_rising_frequency_is_towards() -> None:
    states = _feed(_detector(), [100, 103, 106, 109, 112])
    assert states[-1] is MotionState.TOWARDS


def test_falling_frequency_is_away() -> None:
    states = _feed(_detector(), [112, 109, 106, 103, 100])
    assert states[-1] is MotionState.AWAY


def test_steady_frequency_is_none_not_insufficient() -> None:
    states = _feed(_detector(), [200] * 5)
    assert states[-1] is MotionState.NONE
    assert MotionState.NONE is not MotionState.INSUFFICIENT


def test_change_equal_to_threshold_is_not_motion() -> None:
    assert _feed(_detector(), [100, 102, 104, 107, 110])[-1] is MotionState.NONE
    assert _feed(_detector(), [110, 108, 106, 103, 100])[-1] is MotionState.NONE


def test_only_first_and_last_of_the_history_count() -> None:
    # Big swing in the middle, endpoints equal
    assert _feed(_detector(), [100, 200, 10, 300, 100])[-1] is MotionState.NONE


def test_history_slides_and_evicts_oldest() -> None:
    detector = _detector()
    _feed(detector, [100, 101, 102, 103, 104, 150])

    assert detector.history == [101.0, 102.0, 103.0, 104.0, 150.0]
    assert detector.peak_frequency == 150.0
    assert detector.state is MotionState.TOWARDS


def test_ties_resolve_to_the_lowest_bin() -> None:
    spectrum = np.full(FFT_SIZE // 2, -100.0)
    spectrum[80] = -5.0
    spectrum[50] = -5.0

    detector = _detector()
    detector.observe(spectrum)
    assert detector.peak_frequency == 50.0


def test_peak_frequency_uses_bin_formula() -> None:
    detector = DopplerMotionDetector(44100, 16384)
    spectrum = np.full(8192, -100.0)
    spectrum[6502] = 0.0
    detector.observe(spectrum)
    assert detector.peak_frequency == pytest.approx(6502 * 44100 / 16384)


def test_cooldown_holds_the_previous_classification() -> None:
    now = [0.0]
    detector = _detector(history_length=2, cooldown_sec=1.0, clock=lambda: now[0])

    assert detector.observe(_peak_at(100)) is MotionState.INSUFFICIENT
    assert detector.observe(_peak_at(120)) is MotionState.TOWARDS

    now[0] = 0.5
    assert detector.observe(_peak_at(90)) is MotionState.TOWARDS
    assert detector.history == [120.0, 90.0]

    now[0] = 1.0
    assert detector.observe(_peak_at(60)) is MotionState.AWAY


def test_reset_returns_to_insufficient() -> None:
    detector = _detector()
    _feed(detector, [100, 103, 106, 109, 112])
    detector.reset()

    assert detector.state is MotionState.INSUFFICIENT
    assert detector.history == []
    assert detector.peak_frequency is None
    assert detector.observe(_peak_at(100)) is MotionState.INSUFFICIENT


@pytest.mark.parametrize("delta, expected", [
    (10.5, MotionState.TOWARDS),
    (-10.5, MotionState.AWAY),
    (0.0, MotionState.NONE),
    (-10.0, MotionState.NONE),
])
def test_classify(delta: float, expected: MotionState) -> None:
    assert _detector().classify(delta) is expected
