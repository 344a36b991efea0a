"""Duplex streaming client and recognition result plumbing."""

from .dispatcher import ResponseDispatcher, ResponseListener
from .duplex import DownstreamReader, DuplexCall, DuplexUploader, UpstreamWriter
from .languages import Language
from .protocol import DuplexSession, chunk_audio, new_pair_id
from .response import RecognitionResult, parse_response

__all__ = [
    "DownstreamReader",
    "DuplexCall",
    "DuplexSession",
    "DuplexUploader",
    "Language",
    "RecognitionResult",
    "ResponseDispatcher",
    "ResponseListener",
    "UpstreamWriter",
    "chunk_audio",
    "new_pair_id",
    "parse_response",
]
