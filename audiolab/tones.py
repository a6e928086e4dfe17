"""
Dual-tone detection module for AudioLab.

Picks the two loudest, sufficiently separated tones out of a spectrum.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Tuple

import numpy as np

from .spectrum import bin_to_frequency


@dataclass
class TonePeak:
    """A single spectral peak."""
    bin_index: int
    magnitude: float
    frequency_hz: float


class DualToneResult(NamedTuple):
    """Loudest tone first."""
    freq1: float
    freq2: float


class Vowel(Enum):
    """Vowel guessed from the two dominant tones."""
    OOOO = "ooooo"
    AHHH = "ahhhh"


def classify_vowel(result: DualToneResult) -> Vowel:
    """Both tones low -> "ooooo", anything else -> "ahhhh"."""
    if result.freq1 < 400 and result.freq2 < 900:
        return Vowel.OOOO
    return Vowel.AHHH


class DualToneDetector:
    """
    Finds the two strongest tones in a spectrum.

    Scans bins 1..N/2-1 once, keeping a best and second-best candidate:
    - bins below ``min_threshold`` are ignored
    - a new maximum always pushes the old maximum down to second place
    - otherwise a bin replaces the second place only if it is louder and at
      least ``min_separation_hz`` away from the maximum

    A result needs both places filled. One strong tone alone is not a result.

    ``cache_ticks`` > 0 turns on a last-known-good cache: after a miss the
    previous pair is returned for up to that many consecutive misses.
    """

    def __init__(self, sample_rate: float, fft_size: int,
                 min_threshold: float = -30.0,
                 min_separation_hz: float = 50.0,
                 cache_ticks: int = 0):
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.min_threshold = min_threshold
        self.min_separation_hz = min_separation_hz
        self.cache_ticks = cache_ticks

        self._last_result: Optional[DualToneResult] = None
        self._misses = 0

    def _separation_hz(self, i: int, j: int) -> float:
        return abs(i - j) * self.sample_rate / self.fft_size

    def find_peaks(self, spectrum: np.ndarray
                   ) -> Tuple[Optional[TonePeak], Optional[TonePeak]]:
        """
        Run the peak scan.

        Returns:
            (peak1, peak2), either may be None
        """
        peak1: Optional[Tuple[int, float]] = None
        peak2: Optional[Tuple[int, float]] = None

        for i in range(1, len(spectrum)):
            magnitude = float(spectrum[i])
            if magnitude < self.min_threshold:
                continue

            if peak1 is None:
                peak1 = (i, magnitude)
            elif magnitude > peak1[1]:
                peak2 = peak1
                peak1 = (i, magnitude)
            elif peak2 is None or magnitude > peak2[1]:
                if self._separation_hz(i, peak1[0]) >= self.min_separation_hz:
                    peak2 = (i, magnitude)

        return self._to_peak(peak1), self._to_peak(peak2)

    def _to_peak(self, peak) -> Optional[TonePeak]:
        if peak is None:
            return None
        index, magnitude = peak
        return TonePeak(
            bin_index=index,
            magnitude=magnitude,
            frequency_hz=bin_to_frequency(index, self.sample_rate, self.fft_size),
        )

    def detect(self, spectrum: np.ndarray) -> Optional[DualToneResult]:
        """
        Detect the two dominant tones.

        Returns:
            DualToneResult, or None when fewer than two valid peaks exist
            (and no fresh cached pair is available)
        """
        peak1, peak2 = self.find_peaks(spectrum)

        if peak1 is not None and peak2 is not None:
            result = DualToneResult(peak1.frequency_hz, peak2.frequency_hz)
            self._last_result = result
            self._misses = 0
            return result

        if self.cache_ticks > 0 and self._last_result is not None:
            self._misses += 1
            if self._misses <= self.cache_ticks:
                return self._last_result
            self._last_result = None
        return None

    @property
    def last_result(self) -> Optional[DualToneResult]:
        """Most recent detected pair, cleared once the cache goes stale."""
        return self._last_result

    def reset(self):
        """Forget the cached pair."""
        self._last_result = None
        self._misses = 0
