"""Audio input subsystem - captures audio, extracts features and segments utterances."""

from __future__ import annotations

from .features import FeatureSample, dominant_frequency, energy, extract
from .recording import RecordingListener
from .sampler import AudioWindow, WindowSampler
from .source import AudioSource, CaptureState, QueueAudioSource
from .types import AudioFormat, VadConfig, WindowConfig
from .vad import (
    EnergyFrequencyClassifier,
    SpeechClassifier,
    ThresholdClassifier,
    Utterance,
    VadState,
    VoiceActivityDetector,
)

__all__ = [
    "AudioFormat",
    "AudioSource",
    "AudioWindow",
    "CaptureState",
    "EnergyFrequencyClassifier",
    "FeatureSample",
    "QueueAudioSource",
    "RecordingListener",
    "SpeechClassifier",
    "ThresholdClassifier",
    "Utterance",
    "VadConfig",
    "VadState",
    "VoiceActivityDetector",
    "WindowConfig",
    "WindowSampler",
    "dominant_frequency",
    "energy",
    "extract",
]
