#!/usr/bin/env python3
"""
AudioLab - Real-time tone and Doppler motion sensing

Listens to the microphone and reports either the two dominant tones, or
whether something is moving towards or away from the laptop while a probe
tone plays.

Usage:
    python main.py tones            # Two loudest tones + vowel guess
    python main.py motion           # Doppler motion with a 17.5 kHz probe
    python main.py tone --freq 440  # Just play a sine wave
    python main.py devices          # List audio devices

License: MIT
"""

import argparse
import logging
import sys
import threading
import time

from audiolab import AudioUnavailableError, Config, ConfigurationError
from audiolab.engine import build_motion_engine, build_tone_engine
from audiolab.synth import SineSynthesizer
from audiolab.ui import ConsoleUI, SpectrumPlot, retune_probe

logger = logging.getLogger("audiolab")


def cmd_tones(args):
    """Dual-tone detection mode."""
    from audiolab.audio_io import SoundDeviceAudio

    config = Config(
        sample_rate=args.rate,
        buffer_size=args.buffer_size or 1024,
        tick_rate=args.fps,
        tone_threshold_db=args.threshold,
        min_separation_hz=args.separation,
        tone_cache_ticks=args.cache_ticks,
    ).validate()

    print("\n" + "=" * 60)
    print("  AudioLab - Dual Tone Detection")
    print("=" * 60)
    print(f"\nWindow: {config.buffer_size} samples "
          f"({config.freq_resolution:.1f} Hz per bin)")
    print(f"Threshold: {config.tone_threshold_db:.1f} dB, "
          f"separation: {config.min_separation_hz:.0f} Hz")
    print("\nHum or sing a vowel. Press Ctrl+C to exit.\n")

    ui = ConsoleUI()
    engine = build_tone_engine(config, SoundDeviceAudio(config),
                               on_result=ui.update)
    _run(engine, args.plot)


def cmd_motion(args):
    """Doppler motion detection mode."""
    from audiolab.audio_io import SoundDeviceAudio

    config = Config(
        sample_rate=args.rate,
        buffer_size=args.buffer_size or 16384,
        tick_rate=args.fps,
        probe_freq=args.freq,
        tone_amplitude=args.amplitude,
        history_length=args.history,
        motion_threshold_hz=args.threshold,
        motion_cooldown_sec=args.cooldown,
    ).validate()

    print("\n" + "=" * 60)
    print("  AudioLab - Doppler Motion")
    print("=" * 60)
    print(f"\nProbe: {config.probe_freq:,.0f} Hz, "
          f"resolution {config.freq_resolution:.2f} Hz per bin")
    print(f"Trend over {config.history_length} ticks, "
          f"threshold {config.motion_threshold_hz:.1f} Hz")
    print("\nMove your hand towards or away from the laptop. "
          "Type a frequency and Enter to retune. Press Ctrl+C to exit.\n")

    ui = ConsoleUI()
    engine = None

    def on_result(result):
        ui.update(result, probe_freq=engine.probe_frequency)

    engine = build_motion_engine(config, SoundDeviceAudio(config),
                                 on_result=on_result)
    threading.Thread(target=retune_probe, args=(engine, sys.stdin),
                     name="audiolab-retune", daemon=True).start()
    freq_range = (config.probe_freq - 500, config.probe_freq + 500)
    _run(engine, args.plot, freq_range)


def cmd_tone(args):
    """Standalone sine playback."""
    from audiolab.audio_io import SoundDeviceAudio

    config = Config(sample_rate=args.rate, output_channels=args.channels)
    synth = SineSynthesizer(config.sample_rate, args.freq, args.amplitude)

    audio = SoundDeviceAudio(config)
    audio.output_callback = synth.render

    print(f"\nPlaying {synth.frequency:,.1f} Hz at amplitude "
          f"{synth.amplitude:.2f}. Press Ctrl+C to stop.\n")
    with audio:
        try:
            while True:
                time.sleep(0.1)
        except KeyboardInterrupt:
            print("\nStopping...")


def cmd_devices(args):
    """List audio devices."""
    from audiolab.audio_io import list_devices

    print("\nAudio devices:")
    for line in list_devices():
        print(f"  {line}")


def _run(engine, plot: bool = False, freq_range=None):
    """Run an engine until Ctrl+C (or until the plot window closes)."""
    engine.start()
    try:
        if plot:
            SpectrumPlot(engine, freq_range=freq_range).start()
        else:
            while True:
                time.sleep(0.1)
    except KeyboardInterrupt:
        print("\n\nStopping...")
    finally:
        engine.stop()


def main():
    parser = argparse.ArgumentParser(
        description="AudioLab - Real-time tone and Doppler motion sensing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py tones                     # Two dominant tones
    python main.py tones --threshold -40     # More sensitive
    python main.py motion                    # Doppler motion, 17.5 kHz probe
    python main.py motion --freq 19000 --plot
    python main.py tone --freq 1000          # Play a 1 kHz sine
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Command')

    # Common arguments
    def add_common_args(p):
        p.add_argument('--rate', type=int, default=44100,
                       help='Sample rate in Hz (default: 44100)')
        p.add_argument('--buffer-size', type=int, default=None,
                       help='FFT window, power of two')
        p.add_argument('--fps', type=float, default=20.0,
                       help='Analysis ticks per second (default: 20)')
        p.add_argument('--plot', action='store_true',
                       help='Show live FFT graph')

    # Tones command
    p_tones = subparsers.add_parser('tones', help='Dual tone detection')
    add_common_args(p_tones)
    p_tones.add_argument('--threshold', type=float, default=-30.0,
                         help='Magnitude threshold in dB (default: -30)')
    p_tones.add_argument('--separation', type=float, default=50.0,
                         help='Minimum tone separation in Hz (default: 50)')
    p_tones.add_argument('--cache-ticks', type=int, default=0,
                         help='Hold the last pair for N empty ticks (default: 0)')

    # Motion command
    p_motion = subparsers.add_parser('motion', help='Doppler motion detection')
    add_common_args(p_motion)
    p_motion.add_argument('--freq', type=float, default=17500.0,
                          help='Probe frequency in Hz (default: 17500)')
    p_motion.add_argument('--amplitude', type=float, default=1.0,
                          help='Probe amplitude 0-1 (default: 1.0)')
    p_motion.add_argument('--history', type=int, default=5,
                          help='Ticks per trend (default: 5)')
    p_motion.add_argument('--threshold', type=float, default=10.0,
                          help='Frequency change for motion in Hz (default: 10)')
    p_motion.add_argument('--cooldown', type=float, default=0.0,
                          help='Seconds between classifications (default: 0)')

    # Tone command
    p_tone = subparsers.add_parser('tone', help='Play a sine wave')
    p_tone.add_argument('--rate', type=int, default=44100,
                        help='Sample rate in Hz (default: 44100)')
    p_tone.add_argument('--freq', type=float, default=440.0,
                        help='Frequency in Hz (default: 440)')
    p_tone.add_argument('--amplitude', type=float, default=0.5,
                        help='Amplitude 0-1 (default: 0.5)')
    p_tone.add_argument('--channels', type=int, default=1,
                        help='Output channels (default: 1)')

    # Devices command
    subparsers.add_parser('devices', help='List audio devices')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    # Dispatch
    commands = {
        'tones': cmd_tones,
        'motion': cmd_motion,
        'tone': cmd_tone,
        'devices': cmd_devices,
    }

    try:
        commands[args.command](args)
    except (ConfigurationError, AudioUnavailableError) as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
