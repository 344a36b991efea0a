"""Microphone audio capture."""

from __future__ import annotations

import logging
from typing import Optional

import sounddevice as sd

from ...errors import CaptureError
from .features import energy
from .source import CaptureState
from .types import AudioFormat

logger = logging.getLogger(__name__)

_DTYPES = {1: "int8", 2: "int16", 4: "int32"}


class Microphone:
    """
    Blocking PCM capture from an input device.

    Unlike a callback stream, reads are pulled by the consumer so the window
    sampler controls the cadence. Re-opening a closed microphone is allowed.
    """

    def __init__(self, audio_format: AudioFormat = AudioFormat(), device: Optional[int] = None):
        if audio_format.sample_width not in _DTYPES:
            raise ValueError(f"unsupported sample width: {audio_format.sample_width}")
        self.audio_format = audio_format
        self._device = device
        self._stream: Optional[sd.RawInputStream] = None
        self._state = CaptureState.CLOSED

    @property
    def state(self) -> CaptureState:
        return self._state

    def open(self) -> None:
        if self._stream is not None:
            return
        try:
            self._stream = sd.RawInputStream(
                samplerate=self.audio_format.sample_rate,
                channels=self.audio_format.channels,
                dtype=_DTYPES[self.audio_format.sample_width],
                device=self._device,
            )
        except sd.PortAudioError as e:
            raise CaptureError(f"cannot open input device {self._device}: {e}") from e
        self._state = CaptureState.STARTING_CAPTURE
        logger.info("Microphone opened (%d Hz, %d ch)", self.audio_format.sample_rate, self.audio_format.channels)

    def start(self) -> None:
        self.open()
        self._stream.start()
        self._state = CaptureState.PROCESSING_AUDIO

    def read(self, num_bytes: int) -> bytes:
        stream = self._stream
        if stream is None or self._state != CaptureState.PROCESSING_AUDIO:
            raise CaptureError("microphone is not capturing")
        try:
            data, overflowed = stream.read(self.audio_format.frames_in(num_bytes))
        except sd.PortAudioError as e:
            raise CaptureError(f"microphone read failed: {e}") from e
        if overflowed:
            logger.warning("Input overflow, audio was dropped")
        return bytes(data)

    def audio_volume(self, interval_ms: int = 100) -> int:
        """RMS level of the next `interval_ms` of input; used to measure ambient noise."""
        return energy(self.read(self.bytes_for(interval_ms / 1000)))

    def stop(self) -> None:
        if self._stream is not None and self._state == CaptureState.PROCESSING_AUDIO:
            self._stream.stop()
            self._state = CaptureState.STARTING_CAPTURE

    def close(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.close()
        finally:
            self._stream = None
            self._state = CaptureState.CLOSED
            logger.info("Microphone capture stopped")

    def bytes_for(self, seconds: float) -> int:
        return self.audio_format.bytes_for(seconds)
