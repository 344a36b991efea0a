"""Fixed-duration window sampling from an audio source."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from .source import AudioSource
from .types import AudioFormat, WindowConfig


@dataclass(frozen=True)
class AudioWindow:
    """One sampling tick of PCM audio. Never mutated after creation."""
    data: bytes
    audio_format: AudioFormat

    def __len__(self) -> int:
        return len(self.data)


class WindowSampler:
    """
    Pulls `window_ms` windows from a source at the source's own pace.

    The read blocks until a full window is available, so the cadence is the
    capture rate of the line. CaptureError from the source propagates.
    """

    def __init__(self, source: AudioSource, cfg: WindowConfig = WindowConfig()):
        self._source = source
        self._cfg = cfg
        self.window_bytes = source.bytes_for(cfg.window_seconds)

    @property
    def audio_format(self) -> AudioFormat:
        return self._source.audio_format

    def read(self) -> AudioWindow:
        return AudioWindow(
            data=self._source.read(self.window_bytes),
            audio_format=self._source.audio_format,
        )

    def __iter__(self) -> Iterator[AudioWindow]:
        while True:
            yield self.read()
