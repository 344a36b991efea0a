"""Tests for downstream response parsing."""

import pytest

from duplex_speech.errors import MalformedResponseError
from duplex_speech.recognizer.response import RecognitionResult, parse_response


class TestParseResponse:
    """Test the line-oriented parser."""

    def test_transcript_confidence_and_alternatives(self):
        line = (
            '{"result":[{"alternative":[{"transcript":"hello world","confidence":0.9},'
            '{"transcript":"hello gold"}]}]}'
        )

        result = parse_response(line)

        assert result.transcript == "hello world"
        assert result.confidence == "0.9"
        assert result.alternatives == ("hello gold",)
        assert result.all_transcripts == ["hello world", "hello gold"]
        assert result.is_final

    def test_empty_result_yields_nothing(self):
        assert parse_response('{"result":[]}') is None

    def test_empty_result_with_whitespace(self):
        assert parse_response('{"result":[]}\n') is None

    def test_missing_result_key(self):
        with pytest.raises(MalformedResponseError):
            parse_response('{"status":0,"id":"abc"}')

    def test_default_confidence(self):
        result = parse_response('{"result":[{"alternative":[{"transcript":"hi there"}]}],"result_index":0}')
        assert result.transcript == "hi there"
        assert result.confidence == "1.0"
        assert result.alternatives == ()

    def test_interim_result(self):
        line = '{"result":[{"alternative":[{"transcript":"hel"}],"final":false}],"result_index":0}'
        result = parse_response(line)
        assert not result.is_final

    def test_explicit_final(self):
        line = '{"result":[{"alternative":[{"transcript":"hello","confidence":0.8}],"final":true}]}'
        result = parse_response(line)
        assert result.is_final
        assert result.confidence == "0.8"

    def test_escaped_characters(self):
        line = '{"result":[{"alternative":[{"transcript":"say \\"cheese\\" caf\\u00e9"}]}]}'
        result = parse_response(line)
        assert result.transcript == 'say "cheese" café'

    def test_result_without_transcript(self):
        result = parse_response('{"result":[{"alternative":[]}]}')
        assert result.transcript is None
        assert result.all_transcripts == []


class TestRecognitionResult:
    def test_is_immutable(self):
        result = RecognitionResult(transcript="a", confidence="1.0")
        with pytest.raises(AttributeError):
            result.transcript = "b"
