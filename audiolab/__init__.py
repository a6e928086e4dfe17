"""
AudioLab - Real-time tone and Doppler motion sensing

Streams microphone audio into a ring buffer, takes a spectrum at a fixed
tick rate and derives two signals from it: the two strongest tones in the
frame, and the direction of motion from the Doppler shift of a probe tone
played through the speaker.
"""

__version__ = "0.1.0"
__author__ = "AudioLab Project"

from .config import Config, ConfigurationError
from .backend import AudioBackend, AudioUnavailableError
from .engine import AnalysisEngine, TickResult, build_motion_engine, build_tone_engine
from .motion import DopplerMotionDetector, MotionState, PeakHistory
from .ring_buffer import SampleRingBuffer
from .spectrum import SpectralTransform
from .synth import SineSynthesizer
from .tones import DualToneDetector, DualToneResult, TonePeak
