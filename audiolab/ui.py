"""
User interface module for AudioLab.

Console read-out of detection results and a live matplotlib FFT view.
"""

from typing import Optional

import numpy as np

from .engine import AnalysisEngine, TickResult
from .motion import MotionState
from .tones import DualToneResult, classify_vowel

MOTION_LABELS = {
    MotionState.TOWARDS: "Moving Towards",
    MotionState.AWAY: "Moving Away",
    MotionState.NONE: "No Movement",
    MotionState.INSUFFICIENT: "Listening...",
}


def format_tones(tones: Optional[DualToneResult]) -> str:
    """One status line for a dual-tone result."""
    if tones is None:
        return "   --    |    --     Noise Detected"
    vowel = classify_vowel(tones)
    return f"{tones.freq1:8.2f} Hz | {tones.freq2:8.2f} Hz  {vowel.value}"


def format_motion(motion: Optional[MotionState],
                  probe_freq: Optional[float] = None) -> str:
    """One status line for a motion state."""
    label = MOTION_LABELS.get(motion, "--")
    if probe_freq is None:
        return label
    return f"{probe_freq:.0f} Hz  {label}"


class ConsoleUI:
    """
    Simple console-based UI for terminal display.

    Rewrites a single status line per update and prints a separate line
    whenever the motion state changes.
    """

    def __init__(self, show_changes: bool = True):
        self._show_changes = show_changes
        self._last_motion: Optional[MotionState] = None

    def update(self, result: TickResult, probe_freq: Optional[float] = None):
        """Update console display from a tick."""
        if result.underrun:
            return

        parts = []
        if result.spectrum is not None:
            peak_db = float(np.max(result.spectrum))
            activity = min(max((peak_db + 60.0) / 60.0, 0.0), 1.0)
            bar_len = int(activity * 20)
            parts.append("[" + "█" * bar_len + "░" * (20 - bar_len) + "]")
        if result.tones is not None or result.motion is None:
            parts.append(format_tones(result.tones))
        if result.motion is not None:
            parts.append(format_motion(result.motion, probe_freq))

            if (self._show_changes and result.motion != self._last_motion
                    and result.motion in (MotionState.TOWARDS, MotionState.AWAY)):
                arrow = "→ ←" if result.motion == MotionState.TOWARDS else "← →"
                print(f"\n✨ {arrow} {MOTION_LABELS[result.motion]}")
            self._last_motion = result.motion

        print("\r" + "  ".join(parts) + " " * 10, end="", flush=True)


def retune_probe(engine: AnalysisEngine, lines):
    """
    Retune the probe from typed frequencies, one per line.

    Blank lines are skipped; anything that is not a non-negative number is
    reported and ignored. Pass ``sys.stdin`` to read until EOF.
    """
    for line in lines:
        text = line.strip()
        if not text:
            continue
        try:
            engine.set_probe_frequency(float(text))
        except ValueError:
            print(f"\nInvalid frequency: {text!r}")
            continue
        print(f"\nProbe -> {engine.probe_frequency:,.0f} Hz")


class SpectrumPlot:
    """
    Live FFT graph of an engine's latest spectrum.

    Polls the engine from a matplotlib animation; ticking happens elsewhere.
    """

    def __init__(self, engine: AnalysisEngine, interval_ms: int = 50,
                 freq_range: Optional[tuple] = None):
        self.engine = engine
        self.interval_ms = interval_ms
        self.freq_range = freq_range
        self._fig = None
        self._line = None
        self._title = None

    def start(self):
        """Open the window; blocks until it is closed."""
        import matplotlib.pyplot as plt
        from matplotlib.animation import FuncAnimation

        plt.style.use('dark_background')
        self._fig, ax = plt.subplots(figsize=(12, 5))
        freqs = self.engine.frequencies
        floor = self.engine.config.floor_db
        self._line, = ax.plot(freqs, np.full_like(freqs, floor),
                              color='#00ffff', linewidth=1)
        ax.set_ylim(max(floor, -120.0), 10.0)
        if self.freq_range is not None:
            ax.set_xlim(*self.freq_range)
        ax.set_xlabel('Frequency (Hz)', color='#aaa')
        ax.set_ylabel('Magnitude (dB)', color='#aaa')
        self._title = ax.set_title('AudioLab - FFT', color='#00ff88')

        self._anim = FuncAnimation(
            self._fig, self._update_plot,
            interval=self.interval_ms,
            blit=False, cache_frame_data=False
        )
        plt.show()

    def _update_plot(self, frame):
        spectrum = self.engine.latest_spectrum
        if spectrum is None:
            return
        self._line.set_ydata(spectrum)

        motion = self.engine.latest_motion
        probe = self.engine.probe_frequency
        if motion is not None:
            self._title.set_text(f"AudioLab - {format_motion(motion, probe)}")
        else:
            self._title.set_text(
                f"AudioLab - {format_tones(self.engine.latest_tones).strip()}")
