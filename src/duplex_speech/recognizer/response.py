"""Recognition results and the line-oriented parser for downstream responses."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Optional

from ..errors import MalformedResponseError

EMPTY_RESULT = '{"result":[]}'
DEFAULT_CONFIDENCE = "1.0"

_TRANSCRIPT_RE = re.compile(r'"transcript":"((?:[^"\\]|\\.)*)"')
_CONFIDENCE_KEY = '"confidence":'


@dataclass(frozen=True)
class RecognitionResult:
    """One parsed downstream line. Immutable, so every listener can keep it."""
    transcript: Optional[str]
    confidence: Optional[str]
    alternatives: tuple[str, ...] = field(default_factory=tuple)
    is_final: bool = True

    @property
    def all_transcripts(self) -> list[str]:
        """Primary transcript followed by the alternatives."""
        head = [self.transcript] if self.transcript is not None else []
        return head + list(self.alternatives)


def _unescape(raw: str) -> str:
    try:
        return json.loads(f'"{raw}"')
    except ValueError:
        return raw


def parse_response(line: str) -> Optional[RecognitionResult]:
    """
    Parse one downstream line.

    The service speaks a loose JSON dialect, so fields are located by substring
    rather than decoded as a document.

    Returns:
        The result, or None for the empty-result sentinel.

    Raises:
        MalformedResponseError: the line carries no ``"result"`` key.
    """
    line = line.strip()
    if '"result"' not in line:
        raise MalformedResponseError(f"no result in response line: {line[:80]!r}")
    if line == EMPTY_RESULT:
        return None

    confidence = DEFAULT_CONFIDENCE
    start = line.find(_CONFIDENCE_KEY)
    if start >= 0:
        start += len(_CONFIDENCE_KEY)
        end = line.find("}", start)
        confidence = (line[start:end] if end >= 0 else line[start:]).strip()

    transcripts = [_unescape(m) for m in _TRANSCRIPT_RE.findall(line)]

    return RecognitionResult(
        transcript=transcripts[0] if transcripts else None,
        confidence=confidence,
        alternatives=tuple(transcripts[1:]),
        is_final='"final":false' not in line,
    )
