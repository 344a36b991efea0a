"""Microphone capture, voice activity detection and full-duplex streaming recognition."""

from .errors import (
    CaptureError,
    DuplexSpeechError,
    InvalidInputError,
    MalformedResponseError,
    ProtocolLimitError,
    TransportError,
)
from .pipeline import SpeechPipeline, UtteranceUploader
from .recognizer import DuplexUploader, Language, RecognitionResult, ResponseDispatcher

__all__ = [
    "CaptureError",
    "DuplexSpeechError",
    "DuplexUploader",
    "InvalidInputError",
    "Language",
    "MalformedResponseError",
    "ProtocolLimitError",
    "RecognitionResult",
    "ResponseDispatcher",
    "SpeechPipeline",
    "TransportError",
    "UtteranceUploader",
]
