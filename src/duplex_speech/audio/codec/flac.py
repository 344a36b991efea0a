"""FLAC encoding of captured PCM, delegated to libsndfile through soundfile."""

from __future__ import annotations

import io

import numpy as np
import soundfile as sf

from ..input.types import AudioFormat

_SUBTYPES = {1: "PCM_S8", 2: "PCM_16"}


class FlacEncoder:
    """Encodes signed little-endian PCM bytes into a complete FLAC stream."""

    content_type = "audio/x-flac"

    def encode(self, pcm: bytes, audio_format: AudioFormat) -> bytes:
        width = audio_format.sample_width
        if width not in _SUBTYPES:
            raise ValueError(f"FLAC encoding supports 8 or 16 bit samples, got {8 * width}")

        usable = len(pcm) - len(pcm) % audio_format.frame_size
        if width == 1:
            # soundfile writes int16 at minimum; libsndfile narrows to PCM_S8
            samples = np.frombuffer(pcm[:usable], dtype=np.int8).astype(np.int16) << 8
        else:
            samples = np.frombuffer(pcm[:usable], dtype="<i2")
        samples = samples.reshape(-1, audio_format.channels)

        out = io.BytesIO()
        sf.write(out, samples, audio_format.sample_rate, format="FLAC", subtype=_SUBTYPES[width])
        return out.getvalue()

    def __call__(self, pcm: bytes, audio_format: AudioFormat) -> bytes:
        return self.encode(pcm, audio_format)
