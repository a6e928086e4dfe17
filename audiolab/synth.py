"""
Sine synthesizer module - generates the probe tone.

Phase is kept as a fraction of a cycle and carried across output callbacks,
so consecutive blocks join without clicks.
"""

import math
import threading

import numpy as np


def _check_frequency(freq) -> float:
    freq = float(freq)
    if freq < 0:
        raise ValueError(f"frequency must be >= 0, got {freq}")
    return freq


class SineSynthesizer:
    """
    Phase-accumulating sine generator.

    Each sample is ``amplitude * sin(2*pi*phase)``; the phase then advances by
    ``frequency / sample_rate`` and drops by one whole cycle once it reaches 1.
    Frequency changes apply from the next sample on, with no ramp. Negative
    frequencies are rejected so the phase stays in [0, 1).
    """

    def __init__(self, sample_rate: float, frequency: float = 440.0,
                 amplitude: float = 1.0):
        if sample_rate <= 0:
            raise ValueError("sample_rate must be positive")
        self.sample_rate = sample_rate
        self._frequency = _check_frequency(frequency)
        self._amplitude = float(np.clip(amplitude, 0.0, 1.0))
        self._phase = 0.0
        self._lock = threading.Lock()

    @property
    def frequency(self) -> float:
        """Current tone frequency."""
        return self._frequency

    @frequency.setter
    def frequency(self, freq: float):
        """Update tone frequency (thread-safe)."""
        with self._lock:
            self._frequency = _check_frequency(freq)

    def set_frequency(self, freq: float):
        self.frequency = freq

    @property
    def amplitude(self) -> float:
        """Current tone amplitude."""
        return self._amplitude

    @amplitude.setter
    def amplitude(self, amp: float):
        """Update amplitude (thread-safe)."""
        with self._lock:
            self._amplitude = float(np.clip(amp, 0.0, 1.0))

    @property
    def phase(self) -> float:
        """Phase of the next sample, in cycles [0, 1)."""
        return self._phase

    def next_sample(self) -> float:
        """Produce one sample and advance the phase."""
        sample = self._amplitude * math.sin(2.0 * math.pi * self._phase)
        self._phase += self._frequency / self.sample_rate
        if self._phase >= 1.0:
            self._phase -= 1.0
        return sample

    def render(self, out: np.ndarray, frame_count: int = None,
               channel_count: int = 1):
        """
        Fill an interleaved output buffer in place.

        The same value goes to every channel of a frame.

        Args:
            out: Buffer of at least frame_count * channel_count samples,
                 flat or shaped (frames, channels)
            frame_count: Frames to write (all of ``out`` if None)
            channel_count: Channels per frame
        """
        flat = out.reshape(-1)
        if frame_count is None:
            frame_count = flat.shape[0] // channel_count

        with self._lock:
            freq = self._frequency
            amp = self._amplitude
        increment = freq / self.sample_rate
        phase = self._phase
        two_pi = 2.0 * math.pi

        for i in range(frame_count):
            sample = amp * math.sin(two_pi * phase)
            phase += increment
            if phase >= 1.0:
                phase -= 1.0
            base = i * channel_count
            for j in range(channel_count):
                flat[base + j] = sample

        self._phase = phase

    def reset(self):
        """Restart from phase zero."""
        self._phase = 0.0
