"""
Configuration module for AudioLab.

All tunable parameters in one place for easy experimentation.
"""

from dataclasses import dataclass


class ConfigurationError(ValueError):
    """Raised when the configuration cannot drive an analysis engine."""


def is_power_of_two(n: int) -> bool:
    """True for 1, 2, 4, 8, ..."""
    return isinstance(n, int) and n > 0 and (n & (n - 1)) == 0


@dataclass
class Config:
    """AudioLab configuration parameters."""

    # ==========================================================================
    # Audio Settings
    # ==========================================================================
    sample_rate: int = 44100              # Hz
    input_channels: int = 1               # Microphone channels (channel 0 is analysed)
    output_channels: int = 1              # Speaker channels (probe duplicated on each)

    # ==========================================================================
    # Spectrum Settings
    # ==========================================================================
    buffer_size: int = 1024               # N - analysis window, must be a power of two
    ring_capacity: int = 0                # Samples kept by the ring buffer (0 = N)
    window_type: str = "hann"             # Window function applied before the FFT
    floor_db: float = -120.0              # Spectrum clamp, dB full scale
    tick_rate: float = 20.0               # Hz - fetch/transform/detect cadence

    # Derived: freq resolution = 44100 / 1024 ≈ 43 Hz -> enough to split formants
    # Derived: at N = 16384 ≈ 2.7 Hz -> small Doppler shifts of the probe are visible

    # ==========================================================================
    # Dual-Tone Detection
    # ==========================================================================
    tone_threshold_db: float = -30.0      # Bins below this are noise
    min_separation_hz: float = 50.0       # Second tone must be at least this far away
    tone_cache_ticks: int = 0             # Reuse last pair for M empty ticks (0 = off)

    # ==========================================================================
    # Doppler Motion Detection
    # ==========================================================================
    probe_freq: float = 17500.0           # Hz - probe tone played during motion sensing
    tone_amplitude: float = 1.0           # 0-1, probe / synth amplitude
    history_length: int = 5               # K - peak frequencies per trend
    motion_threshold_hz: float = 10.0     # |last - first| above this is motion
    motion_cooldown_sec: float = 0.0      # Minimum time between classifications

    # ==========================================================================
    # Derived Properties
    # ==========================================================================
    @property
    def freq_resolution(self) -> float:
        """Frequency resolution (bin width) in Hz."""
        return self.sample_rate / self.buffer_size

    @property
    def spectrum_size(self) -> int:
        """Number of bins in a spectrum (N/2)."""
        return self.buffer_size // 2

    @property
    def tick_interval(self) -> float:
        """Seconds between ticks."""
        return 1.0 / self.tick_rate

    @property
    def ring_size(self) -> int:
        """Effective ring buffer capacity in samples."""
        return self.ring_capacity or self.buffer_size

    def validate(self) -> "Config":
        """
        Check the configuration, raising ConfigurationError on the first problem.

        Returns self so it can be chained: ``Config(...).validate()``.
        """
        if not is_power_of_two(self.buffer_size) or self.buffer_size < 4:
            raise ConfigurationError(
                f"buffer_size must be a power of two >= 4, got {self.buffer_size}")
        if self.sample_rate <= 0:
            raise ConfigurationError(
                f"sample_rate must be positive, got {self.sample_rate}")
        if self.tick_rate <= 0:
            raise ConfigurationError(
                f"tick_rate must be positive, got {self.tick_rate}")
        if self.ring_capacity and self.ring_capacity < self.buffer_size:
            raise ConfigurationError(
                f"ring_capacity ({self.ring_capacity}) is smaller than "
                f"buffer_size ({self.buffer_size})")
        if self.input_channels < 1 or self.output_channels < 1:
            raise ConfigurationError("channel counts must be at least 1")
        if self.history_length < 2:
            raise ConfigurationError(
                f"history_length must be at least 2, got {self.history_length}")
        if self.min_separation_hz < 0 or self.motion_threshold_hz < 0:
            raise ConfigurationError("separation and motion thresholds must be >= 0")
        if self.tone_cache_ticks < 0 or self.motion_cooldown_sec < 0:
            raise ConfigurationError("cache ticks and cooldown must be >= 0")
        if self.probe_freq < 0:
            raise ConfigurationError(
                f"probe_freq must be >= 0, got {self.probe_freq}")
        return self
