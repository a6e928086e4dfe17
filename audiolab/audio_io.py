"""
Sound card I/O via sounddevice.

Full-duplex when both callbacks are set, otherwise input-only or output-only.
"""

import logging
from typing import List

import numpy as np

try:
    import sounddevice as sd
except ImportError:
    raise ImportError("sounddevice required: pip install sounddevice")

from .backend import AudioBackend, AudioUnavailableError
from .config import Config

logger = logging.getLogger(__name__)


class SoundDeviceAudio(AudioBackend):
    """
    sounddevice stream wrapper.

    Forwards each block to ``input_callback`` / ``output_callback``. The
    output buffer is zeroed first so a missing or failing generator plays
    silence.
    """

    def __init__(self, config: Config, blocksize: int = 0,
                 latency: str = "low", device=None):
        super().__init__(config.sample_rate, config.input_channels,
                         config.output_channels)
        self._blocksize = blocksize
        self._latency = latency
        self._device = device
        self._stream = None
        self._running: bool = False

    def _input_callback(self, indata: np.ndarray, frames: int,
                        time_info, status):
        if status:
            logger.warning("[RX] Input status: %s", status)
        callback = self.input_callback
        if callback is not None:
            callback(indata, frames, indata.shape[1])

    def _output_callback(self, outdata: np.ndarray, frames: int,
                         time_info, status):
        if status:
            logger.warning("[TX] Output status: %s", status)
        outdata.fill(0.0)
        callback = self.output_callback
        if callback is not None:
            callback(outdata, frames, outdata.shape[1])

    def _duplex_callback(self, indata: np.ndarray, outdata: np.ndarray,
                         frames: int, time_info, status):
        # Only log occasional overflow warnings, not every single one
        if status and "overflow" not in str(status):
            logger.warning("[DUPLEX] Status: %s", status)
        self._input_callback(indata, frames, time_info, None)
        self._output_callback(outdata, frames, time_info, None)

    def _open_stream(self):
        common = dict(
            samplerate=self.sample_rate,
            dtype=np.float32,
            blocksize=self._blocksize,
            latency=self._latency,
            device=self._device,
        )
        if self.input_callback is not None and self.output_callback is not None:
            return sd.Stream(
                channels=(self.input_channels, self.output_channels),
                callback=self._duplex_callback, **common)
        if self.input_callback is not None:
            return sd.InputStream(
                channels=self.input_channels,
                callback=self._input_callback, **common)
        if self.output_callback is not None:
            return sd.OutputStream(
                channels=self.output_channels,
                callback=self._output_callback, **common)
        raise AudioUnavailableError("no input or output callback registered")

    def start(self):
        """Open and start the stream."""
        if self._running:
            return

        logger.info("[AUDIO] Starting at %d Hz (in=%s, out=%s)",
                    self.sample_rate,
                    self.input_callback is not None,
                    self.output_callback is not None)
        try:
            self._stream = self._open_stream()
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            self._stream = None
            raise AudioUnavailableError(f"cannot open audio stream: {e}") from e

        self._running = True
        logger.info("[AUDIO] Stream started")

    def stop(self):
        """Stop the stream; returns after the last callback has finished."""
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        self._running = False
        logger.info("[AUDIO] Stream stopped")

    @property
    def is_running(self) -> bool:
        return self._running


def list_devices() -> List[str]:
    """Describe every audio device, marking the defaults."""
    try:
        devices = sd.query_devices()
    except sd.PortAudioError as e:
        raise AudioUnavailableError(f"cannot query audio devices: {e}") from e

    default_in, default_out = sd.default.device
    lines = []
    for i, d in enumerate(devices):
        marker = ""
        if i == default_in:
            marker += " [DEFAULT INPUT]"
        if i == default_out:
            marker += " [DEFAULT OUTPUT]"
        channels = f"in={d['max_input_channels']}, out={d['max_output_channels']}"
        lines.append(f"[{i}] {d['name'][:40]:<40} ({channels}){marker}")
    return lines
