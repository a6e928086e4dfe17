"""
Doppler motion module for AudioLab.

Tracks the dominant spectral peak over a short history while a probe tone
plays. A reflector moving towards the microphone raises the observed
frequency, moving away lowers it.
"""

import time
from collections import deque
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from .spectrum import bin_to_frequency


class MotionState(Enum):
    """Motion classification labels."""
    INSUFFICIENT = "insufficient"   # History not full yet
    NONE = "none"
    TOWARDS = "towards"
    AWAY = "away"


class PeakHistory:
    """Most recent K peak frequencies, oldest dropped first."""

    def __init__(self, length: int):
        if length < 1:
            raise ValueError("history length must be positive")
        self._values = deque(maxlen=length)

    def append(self, freq: float):
        self._values.append(freq)

    @property
    def length(self) -> int:
        """Capacity K."""
        return self._values.maxlen

    @property
    def is_full(self) -> bool:
        return len(self._values) == self._values.maxlen

    @property
    def first(self) -> float:
        return self._values[0]

    @property
    def last(self) -> float:
        return self._values[-1]

    def values(self) -> List[float]:
        return list(self._values)

    def clear(self):
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)


class DopplerMotionDetector:
    """
    Classifies motion from the trend of the dominant peak frequency.

    Every observation appends the frequency of the loudest bin to the
    history. Once the history holds K values, ``last - first`` above
    ``threshold_hz`` means TOWARDS, below ``-threshold_hz`` means AWAY,
    anything in between NONE. Until then the state is INSUFFICIENT.

    Any dominant tone is tracked, not only the probe.
    """

    def __init__(self, sample_rate: float, fft_size: int,
                 history_length: int = 5, threshold_hz: float = 10.0,
                 cooldown_sec: float = 0.0,
                 clock: Callable[[], float] = time.monotonic):
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.threshold_hz = threshold_hz
        self.cooldown_sec = cooldown_sec
        self._clock = clock

        self._history = PeakHistory(history_length)
        self._state = MotionState.INSUFFICIENT
        self._peak_frequency: Optional[float] = None
        self._last_check: Optional[float] = None

    def observe(self, spectrum: np.ndarray) -> MotionState:
        """
        Process one spectrum and return the current motion state.

        Args:
            spectrum: dB spectrum for this tick

        Returns:
            MotionState
        """
        # argmax resolves ties to the lowest bin
        peak_bin = int(np.argmax(spectrum))
        peak_freq = bin_to_frequency(peak_bin, self.sample_rate, self.fft_size)
        self._peak_frequency = peak_freq
        self._history.append(peak_freq)

        if not self._history.is_full:
            self._state = MotionState.INSUFFICIENT
            return self._state

        # Rate limit
        if self.cooldown_sec > 0:
            now = self._clock()
            if (self._last_check is not None
                    and now - self._last_check < self.cooldown_sec):
                return self._state
            self._last_check = now

        self._state = self.classify(self._history.last - self._history.first)
        return self._state

    def classify(self, delta_hz: float) -> MotionState:
        """Map a frequency change over the history to a motion state."""
        if delta_hz > self.threshold_hz:
            return MotionState.TOWARDS
        if delta_hz < -self.threshold_hz:
            return MotionState.AWAY
        return MotionState.NONE

    @property
    def state(self) -> MotionState:
        return self._state

    @property
    def history(self) -> List[float]:
        """Recent peak frequencies, oldest first."""
        return self._history.values()

    @property
    def peak_frequency(self) -> Optional[float]:
        """Dominant frequency of the last observed spectrum."""
        return self._peak_frequency

    def reset(self):
        """Reset detector to the no-data state."""
        self._history.clear()
        self._state = MotionState.INSUFFICIENT
        self._peak_frequency = None
        self._last_check = None
