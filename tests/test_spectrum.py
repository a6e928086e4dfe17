from __future__ import annotations

from math import pi

import numpy as np
import pytest

from audiolab.config import ConfigurationError
from audiolab.spectrum import SpectralTransform, bin_to_frequency, frequency_to_bin


def _sine(freq: float, n: int, sample_rate: float, amplitude: float = 1.0) -> np.ndarray:
    t = np.arange(n, dtype=np.float64) / sample_rate
    return (amplitude * np.sin(2.0 * pi * freq * t)).astype(np.float32)


@pytest.mark.parametrize("size", [0, 3, 1000, 1536])
def test_non_power_of_two_size_is_a_configuration_error(size: int) -> None:
    with pytest.raises(ConfigurationError):
        SpectralTransform(size, 44100)


def test_non_positive_sample_rate_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        SpectralTransform(1024, 0)


def test_spectrum_is_half_the_window_length() -> None:
    transform = SpectralTransform(1024, 44100)
    spectrum = transform.transform(np.zeros(1024, dtype=np.float32))
    assert spectrum.shape == (512,)
    assert transform.spectrum_size == 512


def test_full_scale_bin_centred_sine_reads_zero_db() -> None:
    n, sample_rate, k = 1024, 44100, 40
    transform = SpectralTransform(n, sample_rate)
    spectrum = transform.transform(_sine(k * sample_rate / n, n, sample_rate))

    assert int(np.argmax(spectrum)) == k
    assert spectrum[k] == pytest.approx(0.0, abs=0.1)
    # Half amplitude is 6 dB down
    half = transform.transform(_sine(k * sample_rate / n, n, sample_rate, 0.5))
    assert half[k] == pytest.approx(-6.02, abs=0.1)


def test_silence_is_clamped_to_the_floor() -> None:
    transform = SpectralTransform(256, 8000, floor_db=-90.0)
    spectrum = transform.transform(np.zeros(256, dtype=np.float32))
    assert np.all(spectrum == -90.0)


def test_transform_is_deterministic_and_fills_out_buffer() -> None:
    transform = SpectralTransform(512, 44100)
    window = np.random.default_rng(1).standard_normal(512).astype(np.float32)

    out = np.empty(256, dtype=np.float64)
    returned = transform.transform(window, out=out)
    assert returned is out
    np.testing.assert_array_equal(out, transform.transform(window))


def test_injected_magnitude_transform_is_used() -> None:
    calls = []

    def magnitude_fn(window: np.ndarray) -> np.ndarray:
        calls.append(len(window))
        return np.full(len(window) // 2 + 1, 10.0)

    transform = SpectralTransform(64, 1000, magnitude_fn=magnitude_fn)
    spectrum = transform.transform(np.zeros(64, dtype=np.float32))

    assert calls == [64]
    assert spectrum.shape == (32,)
    np.testing.assert_allclose(spectrum, 20.0)


def test_short_magnitude_transform_output_is_rejected() -> None:
    transform = SpectralTransform(64, 1000, magnitude_fn=lambda w: np.ones(10))
    with pytest.raises(ValueError):
        transform.transform(np.zeros(64, dtype=np.float32))


def test_wrong_window_length_is_rejected() -> None:
    transform = SpectralTransform(64, 1000)
    with pytest.raises(ValueError):
        transform.transform(np.zeros(63, dtype=np.float32))


@pytest.mark.parametrize("sample_rate, n", [(44100, 1024), (44100, 16384), (48000, 2048)])
def test_bin_frequency_round_trip(sample_rate: int, n: int) -> None:
    for index in range(n // 2):
        freq = bin_to_frequency(index, sample_rate, n)
        assert frequency_to_bin(freq, sample_rate, n) == index


def test_frequency_axis_matches_bin_formula() -> None:
    transform = SpectralTransform(1024, 44100)
    freqs = transform.frequencies
    assert freqs.shape == (512,)
    assert freqs[0] == 0.0
    assert freqs[23] == pytest.approx(23 * 44100 / 1024)
    assert transform.bin_to_frequency(46) == pytest.approx(1981.0546875)
    assert transform.frequency_to_bin(2000.0) == 46
