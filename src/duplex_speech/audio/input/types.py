"""Audio input subsystem data types and configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AudioFormat:
    """Signed little-endian PCM format of an audio source."""
    sample_rate: int = 16000
    channels: int = 1
    sample_width: int = 2  # bytes per sample

    @property
    def frame_size(self) -> int:
        return self.channels * self.sample_width

    def bytes_for(self, seconds: float) -> int:
        """Number of bytes the source produces over `seconds`, rounded half up to whole frames."""
        return int(seconds * self.sample_rate + 0.5) * self.frame_size

    def frames_in(self, num_bytes: int) -> int:
        return num_bytes // self.frame_size


@dataclass(frozen=True)
class WindowConfig:
    """Sampling cadence for the window sampler."""
    window_ms: int = 16

    @property
    def window_seconds(self) -> float:
        return self.window_ms / 1000


@dataclass(frozen=True)
class VadConfig:
    """Utterance segmentation (hysteresis + duration ceilings) configuration."""
    window_ms: int = 16
    ignore_speech_windows: int = 5
    ignore_silence_windows: int = 10
    max_silence_ms: int = 160
    min_speech_ms: int = 200
    max_speech_ms: int = 10_000

    @property
    def max_silence_windows(self) -> int:
        return self.max_silence_ms // self.window_ms

    @property
    def min_speech_windows(self) -> int:
        return self.min_speech_ms // self.window_ms

    @property
    def max_speech_windows(self) -> int:
        return self.max_speech_ms // self.window_ms

    @property
    def window(self) -> WindowConfig:
        return WindowConfig(window_ms=self.window_ms)
