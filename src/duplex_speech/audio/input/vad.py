"""Voice activity detection: pluggable speech classifiers driven by a shared state machine."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional, Protocol

from ...core.shutdown import GracefulShutdown
from ...errors import DuplexSpeechError
from .features import energy, extract
from .sampler import AudioWindow, WindowSampler
from .source import AudioSource
from .types import AudioFormat, VadConfig

logger = logging.getLogger(__name__)


class VadState(Enum):
    """Voice activity detection status."""
    LISTENING = auto()                      # waiting for a speech run
    DETECTED_SPEECH = auto()                # speech run long enough, accumulating
    DETECTED_SILENCE_AFTER_SPEECH = auto()  # speech ended too early to be worth sending
    CLOSED = auto()                         # terminal


@dataclass(frozen=True)
class Utterance:
    """One contiguous span of detected speech, copied out of the VAD buffer."""
    pcm: bytes
    audio_format: AudioFormat
    frame_count: int

    @property
    def duration_s(self) -> float:
        return self.frame_count / self.audio_format.sample_rate


UtteranceListener = Callable[[Utterance], None]


class SpeechClassifier(Protocol):
    """Per-window speech/silence decision."""

    def classify(self, window: AudioWindow) -> bool: ...


class ThresholdClassifier:
    """
    Speech when a window is `threshold` louder than the ambient volume; stays
    speaking until the level drops `threshold` below the peak seen while speaking.

    If no ambient volume is given, the first `calibration_ms` of windows are
    assumed silent and their combined RMS level becomes the ambient volume.
    """

    def __init__(self, threshold: int = 10, ambient_volume: Optional[int] = None, calibration_ms: int = 100):
        self.threshold = threshold
        self.ambient_volume = ambient_volume
        self._calibration_ms = calibration_ms
        self._calibration = bytearray()
        self._speaking_volume = -2
        self._speaking = False

    def classify(self, window: AudioWindow) -> bool:
        if self.ambient_volume is None:
            self._calibrate(window)
            return False

        volume = energy(window.data)
        if volume > self.ambient_volume + self.threshold:
            self._speaking_volume = volume
            self._speaking = True
        if self._speaking and volume + self.threshold < self._speaking_volume:
            self._speaking = False
        return self._speaking

    def _calibrate(self, window: AudioWindow) -> None:
        self._calibration.extend(window.data)
        if len(self._calibration) >= window.audio_format.bytes_for(self._calibration_ms / 1000):
            self.ambient_volume = energy(bytes(self._calibration))
            self._calibration.clear()
            logger.info("Ambient volume calibrated at %d", self.ambient_volume)


class EnergyFrequencyClassifier:
    """
    Two-feature detector after Moattar & Homayounpour: a window scores a point for
    energy above the running minimum by ``energy_threshold * ln(min_energy)`` and a
    point for dominant frequency above the minimum by ``frequency_threshold``.
    Frequencies at or above `max_frequency` score nothing. Speech iff both score.
    """

    def __init__(self, energy_threshold: int = 40, frequency_threshold: int = 185, max_frequency: int = 400):
        self.energy_threshold = energy_threshold
        self.frequency_threshold = frequency_threshold
        self.max_frequency = max_frequency
        self.min_energy: Optional[int] = None
        self.min_frequency: Optional[int] = None
        self._silence_count = 0

    def classify(self, window: AudioWindow) -> bool:
        features = extract(window)
        logger.debug("energy: %d\tfrequency: %d", features.energy, features.frequency)

        score = 0
        if features.frequency < self.max_frequency:
            # early windows are assumed silent, so the minima settle on the noise floor
            self.min_energy = features.energy if self.min_energy is None else min(self.min_energy, features.energy)
            self.min_frequency = (
                features.frequency if self.min_frequency is None else min(self.min_frequency, features.frequency)
            )
            if features.energy - self.min_energy >= self._energy_threshold():
                score += 1
            if features.frequency - self.min_frequency >= self.frequency_threshold:
                score += 1

        if score > 1:
            self._silence_count = 0
            return True

        if self.min_energy is not None:
            self.min_energy = (self._silence_count * self.min_energy + features.energy) // (self._silence_count + 1)
        self._silence_count += 1
        return False

    def _energy_threshold(self) -> float:
        if self.min_energy <= 0:
            return -math.inf
        return self.energy_threshold * math.log(self.min_energy)


class VoiceActivityDetector(threading.Thread):
    """
    Reads windows from an audio source, classifies each one and segments the
    stream into utterances.

    Speech runs shorter than `ignore_speech_windows` and silence runs shorter than
    `ignore_silence_windows` do not change state. Completed utterances are copied
    out of the buffer and handed to the utterance listener on this thread.

    State, counters and the buffer belong to this thread; other threads may only
    read `state` or call `terminate()`.
    """

    def __init__(
        self,
        source: AudioSource,
        classifier: SpeechClassifier,
        cfg: VadConfig = VadConfig(),
        on_utterance: Optional[UtteranceListener] = None,
        stop_signal: Optional[GracefulShutdown] = None,
    ):
        super().__init__(name="VADThread", daemon=True)
        self._source = source
        self._classifier = classifier
        self._cfg = cfg
        self._on_utterance = on_utterance
        self._stop_signal = stop_signal or GracefulShutdown()

        self._sampler = WindowSampler(source, cfg.window)
        self.buffer_size = cfg.max_speech_ms * source.bytes_for(0.001)
        self._buffer = bytearray()
        self.speech_count = 0
        self.silence_count = 0
        self.state = VadState.LISTENING
        self.error: Optional[Exception] = None

    @property
    def offset(self) -> int:
        return len(self._buffer)

    def set_utterance_listener(self, listener: UtteranceListener) -> None:
        self._on_utterance = listener

    def run(self) -> None:
        logger.info(
            "VAD started (window=%d bytes, buffer=%d bytes)", self._sampler.window_bytes, self.buffer_size
        )
        try:
            while self.state != VadState.CLOSED and not self._stop_signal.is_set():
                window = self._sampler.read()
                self.process(window)
        except DuplexSpeechError as e:
            if self.state != VadState.CLOSED:
                logger.error("VAD session failed, closing: %s", e, exc_info=True)
                self.error = e
        finally:
            self.state = VadState.CLOSED
            logger.info("VAD stopped")

    def terminate(self) -> None:
        """Close the session and unblock a pending read. The session cannot be restarted."""
        self.state = VadState.CLOSED
        self._stop_signal.stop()
        self._source.stop()

    def process(self, window: AudioWindow) -> VadState:
        """
        Run one step of the state machine for `window`.

        Returns:
            The state after the window was accounted for.
        """
        if self.state == VadState.CLOSED:
            return self.state
        speech = self._classifier.classify(window)
        if speech:
            self._on_speech(window.data)
        else:
            self._on_silence()
        return self.state

    def _on_speech(self, data: bytes) -> None:
        cfg = self._cfg
        self.speech_count += 1
        self.silence_count = 0
        if self.state != VadState.DETECTED_SPEECH and self.speech_count >= cfg.ignore_speech_windows:
            self.state = VadState.DETECTED_SPEECH

        if self.offset + len(data) < self.buffer_size:
            self._buffer.extend(data)
            if self.speech_count >= cfg.max_speech_windows:
                logger.info("Maximum speech duration reached")
                self._emit()
        else:
            logger.info("Utterance buffer full, sending what was captured so far")
            self._buffer.extend(data[: self.buffer_size - self.offset])
            self._emit()

    def _on_silence(self) -> None:
        cfg = self._cfg
        self.silence_count += 1
        if self.state != VadState.DETECTED_SPEECH:
            # an unconfirmed speech run is broken by any silent window
            self.speech_count = 0
            self._buffer.clear()
            return
        if self.silence_count < cfg.ignore_silence_windows:
            return

        if self.silence_count >= cfg.max_silence_windows:
            if self.speech_count >= cfg.min_speech_windows:
                logger.info("Silence after %d speech windows", self.speech_count)
                self._emit()
                return
            self.state = VadState.DETECTED_SILENCE_AFTER_SPEECH
            self.speech_count = 0

    def _emit(self) -> None:
        fmt = self._source.audio_format
        utterance = Utterance(
            pcm=bytes(self._buffer),
            audio_format=fmt,
            frame_count=fmt.frames_in(len(self._buffer)),
        )
        self._buffer.clear()
        self.speech_count = 0
        self.silence_count = 0
        self.state = VadState.LISTENING

        logger.info("Utterance emitted: %.2fs", utterance.duration_s)
        if self._on_utterance is not None:
            self._on_utterance(utterance)
