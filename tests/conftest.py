import os

import numpy as np
import pytest

from duplex_speech.audio.input.sampler import AudioWindow
from duplex_speech.audio.input.source import QueueAudioSource
from duplex_speech.audio.input.types import AudioFormat


def sine_pcm(frequency, n_samples, sample_rate=16000, amplitude=8000):
    """Signed 16-bit little-endian PCM of a pure tone."""
    t = np.arange(n_samples) / sample_rate
    samples = np.round(amplitude * np.sin(2 * np.pi * frequency * t)).astype("<i2")
    return samples.tobytes()


def silence_pcm(n_samples, sample_width=2):
    return b"\x00" * (n_samples * sample_width)


@pytest.fixture
def setup_test_env():
    """Setup test environment variables"""
    original_env = os.environ.copy()

    os.environ["SPEECH_API_KEY"] = "test_key_12345"
    os.environ["SPEECH_LANGUAGE"] = "en-US"

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def audio_format():
    """16 kHz mono 16-bit, the default capture format."""
    return AudioFormat()


@pytest.fixture
def loud_window(audio_format):
    """One 16 ms window of a 250 Hz tone."""
    return AudioWindow(sine_pcm(250, 256), audio_format)


@pytest.fixture
def silent_window(audio_format):
    """One 16 ms window of digital silence."""
    return AudioWindow(silence_pcm(256), audio_format)


@pytest.fixture
def queue_source(audio_format):
    """A started queue-fed source, closed after the test."""
    source = QueueAudioSource(audio_format)
    source.open()
    source.start()
    yield source
    source.close()
