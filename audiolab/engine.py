"""
Analysis engine - wires buffer, transform and detectors together.

Audio callbacks feed the ring buffer; each tick fetches the newest window,
transforms it and runs the detectors, then publishes the results for the
presentation layer to poll.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .backend import AudioBackend, AudioUnavailableError
from .config import Config, ConfigurationError
from .motion import DopplerMotionDetector, MotionState
from .ring_buffer import SampleRingBuffer
from .scheduler import TickLoop
from .spectrum import SpectralTransform
from .synth import SineSynthesizer
from .tones import DualToneDetector, DualToneResult

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """
    Outcome of one tick.

    ``spectrum`` is the engine's work buffer and is overwritten by the next
    tick; copy it to keep it.
    """
    underrun: bool
    spectrum: Optional[np.ndarray] = None
    tones: Optional[DualToneResult] = None
    motion: Optional[MotionState] = None


class AnalysisEngine:
    """
    Periodic fetch -> transform -> detect pipeline.

    All collaborators are passed in ready-made. Audio I/O is optional for
    offline use (feed ``on_input_samples`` and call ``tick`` directly) but
    required by ``start``.
    """

    def __init__(self, config: Config,
                 ring_buffer: SampleRingBuffer,
                 transform: SpectralTransform,
                 tone_detector: Optional[DualToneDetector] = None,
                 motion_detector: Optional[DopplerMotionDetector] = None,
                 synthesizer: Optional[SineSynthesizer] = None,
                 audio: Optional[AudioBackend] = None,
                 on_result: Optional[Callable[[TickResult], None]] = None):
        self.config = config.validate()

        if ring_buffer is None or transform is None:
            raise ConfigurationError("ring_buffer and transform are required")
        if tone_detector is None and motion_detector is None:
            raise ConfigurationError("at least one detector is required")
        if transform.fft_size != config.buffer_size:
            raise ConfigurationError(
                f"transform size {transform.fft_size} does not match "
                f"buffer_size {config.buffer_size}")
        if ring_buffer.capacity < config.buffer_size:
            raise ConfigurationError(
                f"ring buffer holds {ring_buffer.capacity} samples, "
                f"need at least {config.buffer_size}")
        if audio is not None and audio.sample_rate != config.sample_rate:
            raise ConfigurationError(
                f"audio runs at {audio.sample_rate} Hz, "
                f"config expects {config.sample_rate} Hz")

        self._ring = ring_buffer
        self._transform = transform
        self._tone_detector = tone_detector
        self._motion_detector = motion_detector
        self._synth = synthesizer
        self._audio = audio
        self._on_result = on_result

        # Buffers, allocated once
        self._window = np.zeros(config.buffer_size, dtype=np.float32)
        self._work = np.zeros(config.spectrum_size, dtype=np.float64)
        self._spectrum = np.zeros(config.spectrum_size, dtype=np.float64)

        # Published results
        self._lock = threading.Lock()
        self._has_spectrum = False
        self._tones: Optional[DualToneResult] = None
        self._motion: Optional[MotionState] = (
            MotionState.INSUFFICIENT if motion_detector is not None else None)

        # Input path gate; held only around one ring-buffer write
        self._io_lock = threading.Lock()
        self._accepting = True

        self._ticker: Optional[TickLoop] = None
        self.tick_count = 0
        self.underrun_count = 0

    # ==========================================================================
    # Audio callbacks (audio thread)
    # ==========================================================================
    def on_input_samples(self, buffer, frame_count: int, channel_count: int):
        """Copy a microphone block into the ring buffer."""
        with self._io_lock:
            if not self._accepting:
                return
            self._ring.add_samples(buffer, channel_count, frame_count)

    def on_request_output_samples(self, buffer: np.ndarray, frame_count: int,
                                  channel_count: int):
        """Fill a speaker block with the probe tone, or silence."""
        if self._synth is None or not self._accepting:
            buffer.fill(0.0)
            return
        self._synth.render(buffer, frame_count, channel_count)

    # ==========================================================================
    # Tick (timer thread)
    # ==========================================================================
    def tick(self) -> TickResult:
        """
        Run one fetch -> transform -> detect cycle.

        On underrun nothing is recomputed and the published results keep
        their previous values.
        """
        self.tick_count += 1
        if not self._ring.fetch_window(self._window):
            self.underrun_count += 1
            logger.debug("[ENGINE] Underrun (%d/%d samples)",
                         self._ring.available, self.config.buffer_size)
            return TickResult(underrun=True)

        self._transform.transform(self._window, out=self._work)

        tones = None
        if self._tone_detector is not None:
            tones = self._tone_detector.detect(self._work)

        motion = None
        if self._motion_detector is not None:
            motion = self._motion_detector.observe(self._work)

        with self._lock:
            np.copyto(self._spectrum, self._work)
            self._has_spectrum = True
            self._tones = tones
            if motion is not None:
                self._motion = motion

        result = TickResult(underrun=False, spectrum=self._work,
                            tones=tones, motion=motion)
        if self._on_result is not None:
            self._on_result(result)
        return result

    # ==========================================================================
    # Lifecycle
    # ==========================================================================
    def start(self, run_ticker: bool = True):
        """
        Start audio I/O and, unless ``run_ticker`` is False, the tick thread.

        Does nothing if the engine is already running.

        Raises:
            AudioUnavailableError: no audio backend, or it failed to open
        """
        if self._ticker is not None or self.is_running:
            return
        if self._audio is None:
            with self._io_lock:
                self._accepting = False
            raise AudioUnavailableError("no audio backend configured")

        self._audio.input_callback = self.on_input_samples
        if self._synth is not None:
            self._audio.output_callback = self.on_request_output_samples

        with self._io_lock:
            self._accepting = True
        try:
            self._audio.start()
        except AudioUnavailableError:
            with self._io_lock:
                self._accepting = False
            raise

        if run_ticker:
            self._ticker = TickLoop(self.tick, self.config.tick_rate)
            self._ticker.start()
        logger.info("[ENGINE] Started: N=%d, %.1f ticks/s, detectors=%s",
                    self.config.buffer_size, self.config.tick_rate,
                    self._detector_names())

    def stop(self):
        """
        Stop audio and ticking. Safe to call from any thread, more than once.

        After this returns nothing writes to the ring buffer.
        """
        with self._io_lock:
            self._accepting = False
        if self._audio is not None and self._audio.is_running:
            self._audio.stop()
        if self._ticker is not None:
            self._ticker.stop(join=True)
            self._ticker = None
        logger.info("[ENGINE] Stopped after %d ticks (%d underruns)",
                    self.tick_count, self.underrun_count)

    def _detector_names(self) -> str:
        names = []
        if self._tone_detector is not None:
            names.append("tones")
        if self._motion_detector is not None:
            names.append("motion")
        return "+".join(names)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()

    # ==========================================================================
    # Published results
    # ==========================================================================
    @property
    def latest_spectrum(self) -> Optional[np.ndarray]:
        """Copy of the last computed spectrum, None before the first one."""
        with self._lock:
            if not self._has_spectrum:
                return None
            return self._spectrum.copy()

    @property
    def latest_tones(self) -> Optional[DualToneResult]:
        with self._lock:
            return self._tones

    @property
    def latest_motion(self) -> Optional[MotionState]:
        with self._lock:
            return self._motion

    @property
    def frequencies(self) -> np.ndarray:
        """Frequency axis for ``latest_spectrum``."""
        return self._transform.frequencies

    @property
    def probe_frequency(self) -> Optional[float]:
        return self._synth.frequency if self._synth is not None else None

    def set_probe_frequency(self, freq: float):
        """Retune the probe tone; takes effect on the next output sample."""
        if self._synth is None:
            raise ConfigurationError("engine has no synthesizer")
        self._synth.set_frequency(freq)
        logger.debug("[ENGINE] Probe frequency -> %.1f Hz", freq)

    @property
    def is_running(self) -> bool:
        return self._accepting and self._audio is not None and self._audio.is_running


def build_tone_engine(config: Optional[Config] = None,
                      audio: Optional[AudioBackend] = None,
                      **kwargs) -> AnalysisEngine:
    """Microphone-only engine that reports the two dominant tones."""
    config = (config or Config(buffer_size=1024)).validate()
    return AnalysisEngine(
        config,
        ring_buffer=SampleRingBuffer(config.ring_size),
        transform=SpectralTransform(config.buffer_size, config.sample_rate,
                                    config.window_type, config.floor_db),
        tone_detector=DualToneDetector(
            config.sample_rate, config.buffer_size,
            min_threshold=config.tone_threshold_db,
            min_separation_hz=config.min_separation_hz,
            cache_ticks=config.tone_cache_ticks,
        ),
        audio=audio,
        **kwargs,
    )


def build_motion_engine(config: Optional[Config] = None,
                        audio: Optional[AudioBackend] = None,
                        **kwargs) -> AnalysisEngine:
    """Engine that plays the probe tone and reports Doppler motion."""
    config = (config or Config(buffer_size=16384)).validate()
    return AnalysisEngine(
        config,
        ring_buffer=SampleRingBuffer(config.ring_size),
        transform=SpectralTransform(config.buffer_size, config.sample_rate,
                                    config.window_type, config.floor_db),
        motion_detector=DopplerMotionDetector(
            config.sample_rate, config.buffer_size,
            history_length=config.history_length,
            threshold_hz=config.motion_threshold_hz,
            cooldown_sec=config.motion_cooldown_sec,
        ),
        synthesizer=SineSynthesizer(config.sample_rate, config.probe_freq,
                                    config.tone_amplitude),
        audio=audio,
        **kwargs,
    )
