"""Wire-level constants and helpers of the full-duplex streaming protocol."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Union
from urllib.parse import urlencode

from .languages import Language

DEFAULT_BASE_URL = "https://www.google.com/speech-api/full-duplex/v1/"

MIN_PAIR_ID = 10_000_000
MAX_PAIR_ID = 900_000_009_999_999

# Largest payload the service accepts in one piece
MAX_CHUNK_SIZE = 1_048_576
SPLIT_CHUNK_SIZE = MAX_CHUNK_SIZE // 2

# Zero-length chunk terminating a chunked transfer
FINAL_CHUNK = b"0\r\n\r\n"


def new_pair_id() -> int:
    """Random session correlation id; not a secret, only needs to avoid collisions."""
    return random.randint(MIN_PAIR_ID, MAX_PAIR_ID)


@dataclass(frozen=True)
class DuplexSession:
    """The pair id and the two URLs shared by one downstream/upstream pair."""
    pair_id: int
    downstream_url: str
    upstream_url: str
    continuous: bool = False

    @classmethod
    def create(
        cls,
        api_key: str,
        language: Union[str, Language] = Language.AUTO_DETECT,
        base_url: str = DEFAULT_BASE_URL,
        continuous: bool = False,
        pair_id: int | None = None,
    ) -> "DuplexSession":
        pair = new_pair_id() if pair_id is None else pair_id
        base = base_url if base_url.endswith("/") else base_url + "/"

        down_query = urlencode({"maxresults": 1, "pair": pair})
        up_params = {"lang": str(language), "lm": "dictation", "pair": pair, "key": api_key}
        if continuous:
            up_params.update(continuous="true", interim="true")

        return cls(
            pair_id=pair,
            downstream_url=f"{base}down?{down_query}",
            upstream_url=f"{base}up?{urlencode(up_params)}",
            continuous=continuous,
        )


def chunk_audio(data: bytes) -> list[bytes]:
    """
    Split a payload for sequential upload.

    Payloads of MAX_CHUNK_SIZE bytes or more become SPLIT_CHUNK_SIZE pieces (the
    last one shorter); anything smaller is sent as a single chunk.
    """
    if len(data) < MAX_CHUNK_SIZE:
        return [bytes(data)]
    return [bytes(data[i:i + SPLIT_CHUNK_SIZE]) for i in range(0, len(data), SPLIT_CHUNK_SIZE)]


def content_type(sample_rate: int) -> str:
    return f"audio/x-flac; rate={sample_rate}"
