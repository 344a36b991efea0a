"""Utterance listener that keeps a WAV copy of everything the VAD emits."""

from __future__ import annotations

import logging
import wave
from datetime import datetime
from pathlib import Path
from typing import Optional

import numpy as np

from .vad import Utterance, UtteranceListener

logger = logging.getLogger(__name__)


class RecordingListener:
    """Saves each utterance as a timestamped WAV file, then forwards it to `next_listener`."""

    def __init__(self, directory: Path, next_listener: Optional[UtteranceListener] = None):
        self.directory = Path(directory)
        self.next_listener = next_listener

    def with_next_listener(self, next_listener: UtteranceListener) -> "RecordingListener":
        self.next_listener = next_listener
        return self

    def __call__(self, utterance: Utterance) -> None:
        path = self.save(utterance)
        logger.info("Saved recording to %s", path)
        if self.next_listener is not None:
            self.next_listener(utterance)

    def save(self, utterance: Utterance) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / f"utterance-{datetime.now():%Y%m%d-%H%M%S-%f}.wav"
        fmt = utterance.audio_format
        with wave.open(str(path), "wb") as wf:
            wf.setnchannels(fmt.channels)
            wf.setsampwidth(fmt.sample_width)
            wf.setframerate(fmt.sample_rate)
            pcm = utterance.pcm
            if fmt.sample_width == 1:
                # WAV stores 8-bit samples unsigned
                pcm = (np.frombuffer(pcm, dtype=np.int8).astype(np.int16) + 128).astype(np.uint8).tobytes()
            wf.writeframes(pcm)
        return path
