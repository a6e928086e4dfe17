"""
Audio backend interface.

The engine talks to sound hardware only through this contract: the backend
calls ``input_callback`` with each microphone block and ``output_callback``
for each speaker block it needs filled.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

# (buffer, frame_count, channel_count) -> None
SampleCallback = Callable[[np.ndarray, int, int], None]


class AudioUnavailableError(RuntimeError):
    """Raised when no usable audio device or backend is available."""


class AudioBackend(ABC):
    """
    Abstract base class for audio I/O.

    Buffers passed to the callbacks are interleaved float32, shaped
    (frames, channels). Callbacks run on the audio thread and must copy
    what they need before returning.
    """

    def __init__(self, sample_rate: int, input_channels: int = 1,
                 output_channels: int = 1):
        self.sample_rate = sample_rate
        self.input_channels = input_channels
        self.output_channels = output_channels
        self.input_callback: Optional[SampleCallback] = None
        self.output_callback: Optional[SampleCallback] = None

    @abstractmethod
    def start(self):
        """Open the device and begin delivering callbacks."""
        pass

    @abstractmethod
    def stop(self):
        """
        Stop delivering callbacks.

        Must not return while a callback is still running.
        """
        pass

    @property
    @abstractmethod
    def is_running(self) -> bool:
        pass

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()
