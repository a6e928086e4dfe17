"""
Spectral transform module for AudioLab.

Turns a fixed-size time window into a dB magnitude spectrum of N/2 bins.
"""

from typing import Callable, Optional

import numpy as np
from scipy import signal
from scipy.fft import rfft

from .config import ConfigurationError, is_power_of_two

MagnitudeFn = Callable[[np.ndarray], np.ndarray]

# Keeps log10 finite on silent input
_EPS = 1e-12


def bin_to_frequency(index, sample_rate: float, fft_size: int):
    """Centre frequency of bin ``index`` in Hz."""
    return index * sample_rate / fft_size


def frequency_to_bin(freq, sample_rate: float, fft_size: int) -> int:
    """Nearest bin to ``freq`` Hz."""
    return int(round(freq * fft_size / sample_rate))


class SpectralTransform:
    """
    Forward magnitude transform adapter.

    By default the window is tapered with a scipy window and transformed with
    ``scipy.fft.rfft``; magnitudes are scaled so a full-scale sine reads about
    0 dB. Any other forward magnitude transform can be injected as
    ``magnitude_fn`` (N samples in, at least N/2 linear magnitudes out).
    """

    def __init__(self, fft_size: int, sample_rate: float,
                 window_type: str = "hann", floor_db: float = -120.0,
                 magnitude_fn: Optional[MagnitudeFn] = None):
        if not is_power_of_two(fft_size) or fft_size < 4:
            raise ConfigurationError(
                f"FFT size must be a power of two >= 4, got {fft_size}")
        if sample_rate <= 0:
            raise ConfigurationError(
                f"sample_rate must be positive, got {sample_rate}")

        self.fft_size = fft_size
        self.sample_rate = sample_rate
        self.floor_db = floor_db
        self._half = fft_size // 2

        # Pre-compute window function and amplitude normalisation
        self._window = signal.windows.get_window(window_type, fft_size)
        self._scale = 2.0 / np.sum(self._window)

        # Work buffers, reused every call
        self._windowed = np.zeros(fft_size, dtype=np.float64)
        self._mag = np.zeros(self._half, dtype=np.float64)

        self._magnitude_fn = magnitude_fn or self._rfft_magnitude

    def _rfft_magnitude(self, window: np.ndarray) -> np.ndarray:
        np.multiply(window, self._window, out=self._windowed)
        spectrum = rfft(self._windowed)
        np.abs(spectrum[:self._half], out=self._mag)
        self._mag *= self._scale
        return self._mag

    def transform(self, window: np.ndarray,
                  out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Compute the dB magnitude spectrum of ``window``.

        Args:
            window: Exactly ``fft_size`` time-domain samples
            out: Optional preallocated array of ``fft_size // 2`` to fill

        Returns:
            dB spectrum, bin ``i`` at ``i * sample_rate / fft_size`` Hz
        """
        if len(window) != self.fft_size:
            raise ValueError(
                f"expected {self.fft_size} samples, got {len(window)}")
        if out is None:
            out = np.empty(self._half, dtype=np.float64)

        mags = np.asarray(self._magnitude_fn(window))[:self._half]
        if mags.shape[0] != self._half:
            raise ValueError(
                f"magnitude transform returned {mags.shape[0]} bins, "
                f"expected {self._half}")

        np.maximum(mags, _EPS, out=out)
        np.log10(out, out=out)
        out *= 20.0
        np.maximum(out, self.floor_db, out=out)
        return out

    def bin_to_frequency(self, index):
        return bin_to_frequency(index, self.sample_rate, self.fft_size)

    def frequency_to_bin(self, freq) -> int:
        return frequency_to_bin(freq, self.sample_rate, self.fft_size)

    @property
    def spectrum_size(self) -> int:
        return self._half

    @property
    def frequencies(self) -> np.ndarray:
        """Frequency of every spectrum bin."""
        return np.arange(self._half) * self.sample_rate / self.fft_size
