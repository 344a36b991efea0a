"""Audio source contract and a queue-fed implementation for virtual/remote input."""

from __future__ import annotations

import logging
import threading
from enum import Enum, auto
from typing import Protocol

from ...errors import CaptureError
from .types import AudioFormat

logger = logging.getLogger("QueueSource")


class CaptureState(Enum):
    """Lifecycle of an audio line."""
    CLOSED = auto()
    STARTING_CAPTURE = auto()
    PROCESSING_AUDIO = auto()


class AudioSource(Protocol):
    """
    Anything the window sampler can pull PCM from.

    `read(n)` blocks until exactly `n` bytes are available and raises CaptureError
    when the line fails or has been stopped.
    """

    audio_format: AudioFormat

    @property
    def state(self) -> CaptureState: ...

    def open(self) -> None: ...

    def start(self) -> None: ...

    def read(self, num_bytes: int) -> bytes: ...

    def stop(self) -> None: ...

    def close(self) -> None: ...

    def bytes_for(self, seconds: float) -> int: ...


class QueueAudioSource:
    """
    An AudioSource fed by `push()` from another thread.
    Useful for audio received over the network, decoded files, or tests.
    """

    def __init__(self, audio_format: AudioFormat = AudioFormat(), max_buffered_bytes: int = 0):
        self.audio_format = audio_format
        self._max_buffered_bytes = max_buffered_bytes
        self._buffer = bytearray()
        self._cond = threading.Condition()
        self._state = CaptureState.CLOSED
        self._stopped = False

    @property
    def state(self) -> CaptureState:
        return self._state

    def open(self) -> None:
        with self._cond:
            self._stopped = False
            self._state = CaptureState.STARTING_CAPTURE

    def start(self) -> None:
        with self._cond:
            if self._state == CaptureState.CLOSED:
                self._stopped = False
            self._state = CaptureState.PROCESSING_AUDIO
        logger.info("QueueAudioSource started")

    def push(self, data: bytes) -> None:
        """External API to push PCM bytes into this source."""
        with self._cond:
            if self._max_buffered_bytes and len(self._buffer) + len(data) > self._max_buffered_bytes:
                logger.warning("QueueAudioSource: buffer full, dropping %d bytes", len(data))
                return
            self._buffer.extend(data)
            self._cond.notify_all()

    def read(self, num_bytes: int) -> bytes:
        with self._cond:
            while len(self._buffer) < num_bytes:
                if self._stopped:
                    raise CaptureError(
                        f"audio source stopped with {len(self._buffer)} of {num_bytes} bytes buffered"
                    )
                self._cond.wait()
            data = bytes(self._buffer[:num_bytes])
            del self._buffer[:num_bytes]
            return data

    def stop(self) -> None:
        """Stop the source; pending and future reads fail once the buffer runs dry."""
        with self._cond:
            self._stopped = True
            self._cond.notify_all()

    def close(self) -> None:
        self.stop()
        with self._cond:
            self._buffer.clear()
            self._state = CaptureState.CLOSED
        logger.info("QueueAudioSource closed")

    def bytes_for(self, seconds: float) -> int:
        return self.audio_format.bytes_for(seconds)
