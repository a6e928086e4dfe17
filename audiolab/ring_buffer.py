"""
Sample ring buffer - absorbs microphone blocks of any size.

The audio callback writes whatever block size the hardware delivers; the
analysis tick reads fixed-size windows of the newest samples.
"""

import threading

import numpy as np


class SampleRingBuffer:
    """
    Preallocated circular buffer of mono float32 samples.

    Single writer (audio callback) / single reader (analysis tick). The lock
    only ever guards one or two bounded array copies, so the audio thread is
    never held up for longer than a memcpy.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._data = np.zeros(capacity, dtype=np.float32)
        self._write_idx = 0
        self._count = 0
        self._lock = threading.Lock()

    def add_samples(self, block, channel_count: int = 1,
                    frame_count: int = None):
        """
        Append an interleaved block, keeping channel 0 only.

        Args:
            block: Interleaved samples, flat or shaped (frames, channels)
            channel_count: Channels per frame in ``block``
            frame_count: Frames to take from ``block`` (all if None)
        """
        flat = np.asarray(block, dtype=np.float32).reshape(-1)
        if frame_count is None:
            frame_count = flat.shape[0] // channel_count
        # Strided view, no copy
        samples = flat[:frame_count * channel_count:channel_count]

        n = samples.shape[0]
        if n == 0:
            return
        cap = self._capacity
        if n > cap:
            samples = samples[-cap:]
            n = cap

        with self._lock:
            start = self._write_idx
            end = start + n
            if end <= cap:
                self._data[start:end] = samples
            else:
                first = cap - start
                self._data[start:] = samples[:first]
                self._data[:n - first] = samples[first:]
            self._write_idx = end % cap
            self._count = min(self._count + n, cap)

    def fetch_window(self, out: np.ndarray) -> bool:
        """
        Copy the newest ``len(out)`` samples into ``out``, oldest first.

        Returns:
            True on success, False on underrun (``out`` is left untouched)
        """
        n = out.shape[0]
        if n > self._capacity:
            raise ValueError(
                f"window of {n} samples exceeds ring capacity {self._capacity}")

        with self._lock:
            if self._count < n:
                return False
            start = (self._write_idx - n) % self._capacity
            end = start + n
            if end <= self._capacity:
                out[:] = self._data[start:end]
            else:
                first = self._capacity - start
                out[:first] = self._data[start:]
                out[first:] = self._data[:n - first]
        return True

    def clear(self):
        """Drop all buffered samples."""
        with self._lock:
            self._write_idx = 0
            self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def available(self) -> int:
        """Samples currently buffered."""
        with self._lock:
            return self._count

    @property
    def fill_level(self) -> float:
        """Current buffer fill level (0-1)."""
        return self.available / self._capacity
