"""Tests for the capture -> VAD -> upload pipeline wiring."""

import queue
import threading
import time

import pytest
from unittest.mock import Mock

from duplex_speech.audio.input.recording import RecordingListener
from duplex_speech.audio.input.source import QueueAudioSource
from duplex_speech.audio.input.types import AudioFormat
from duplex_speech.audio.input.vad import EnergyFrequencyClassifier, ThresholdClassifier, Utterance, VadState
from duplex_speech.config.settings import DuplexSpeechConfig
from duplex_speech.core.shutdown import GracefulShutdown
from duplex_speech.pipeline import SpeechPipeline, UtteranceUploader, create_classifier
from duplex_speech.recognizer.duplex import DuplexUploader

from .conftest import silence_pcm, sine_pcm
from .test_duplex import FakeHttp, ok_response


def finished_call(errors=()):
    call = Mock()
    call.is_alive.return_value = False
    call.errors = list(errors)
    call.session.pair_id = 12345678
    return call


def wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.fixture
def config():
    return DuplexSpeechConfig(api_key="test_key")


@pytest.fixture
def uploader():
    uploader = Mock(spec=DuplexUploader)
    uploader.recognize_utterance.return_value = finished_call()
    return uploader


def make_utterance():
    return Utterance(pcm=b"\x00\x01" * 16, audio_format=AudioFormat(), frame_count=16)


def hanging_response():
    """Downstream response whose lines never arrive until it is closed."""
    closed = threading.Event()
    response = ok_response()
    response.close.side_effect = closed.set

    def lines():
        closed.wait(10)
        yield from ()

    response.iter_lines.side_effect = lines
    return response


def blocking_call():
    """A call that only finishes once it is cancelled."""
    cancelled = threading.Event()
    call = finished_call()
    call.join.side_effect = lambda timeout=None: cancelled.wait(10)
    call.cancel.side_effect = lambda timeout=None: cancelled.set()
    return call


class TestCreateClassifier:
    def test_threshold(self, config):
        clf = create_classifier(config)
        assert isinstance(clf, ThresholdClassifier)
        assert clf.threshold == 10

    def test_energy_frequency(self):
        config = DuplexSpeechConfig(api_key="k", vad_strategy="energy_frequency")
        assert isinstance(create_classifier(config), EnergyFrequencyClassifier)


class TestUtteranceUploader:
    """Test the serialized upload worker."""

    def test_uploads_each_utterance(self, uploader):
        stop = GracefulShutdown()
        utterances = queue.Queue()
        encoder = Mock()
        worker = UtteranceUploader(stop, utterances, uploader, encoder=encoder)
        first, second = make_utterance(), make_utterance()

        worker.start()
        utterances.put(first)
        utterances.put(second)
        utterances.join()
        stop.stop()
        worker.join(timeout=2)

        assert [c.args for c in uploader.recognize_utterance.call_args_list] == [
            (first, encoder),
            (second, encoder),
        ]
        assert worker.uploaded == 2

    def test_cancels_call_that_outlives_timeout(self, uploader):
        call = finished_call()
        call.is_alive.return_value = True
        uploader.recognize_utterance.return_value = call
        stop = GracefulShutdown()
        utterances = queue.Queue()
        worker = UtteranceUploader(stop, utterances, uploader, encoder=Mock(), call_timeout_s=0.01)

        worker.start()
        utterances.put(make_utterance())
        utterances.join()
        stop.stop()
        worker.join(timeout=2)

        call.join.assert_called_once_with(0.01)
        call.cancel.assert_called_once_with(0.01)

    def test_failed_upload_does_not_stop_worker(self, uploader):
        uploader.recognize_utterance.side_effect = [
            finished_call(errors=[RuntimeError("refused")]),
            finished_call(),
        ]
        stop = GracefulShutdown()
        utterances = queue.Queue()
        worker = UtteranceUploader(stop, utterances, uploader, encoder=Mock())

        worker.start()
        utterances.put(make_utterance())
        utterances.put(make_utterance())
        utterances.join()
        stop.stop()
        worker.join(timeout=2)

        assert worker.uploaded == 2

    def test_cancel_interrupts_call_in_flight(self, uploader):
        call = blocking_call()
        uploader.recognize_utterance.return_value = call
        utterances = queue.Queue()
        stop = GracefulShutdown()
        worker = UtteranceUploader(stop, utterances, uploader, encoder=Mock())

        worker.start()
        utterances.put(make_utterance())
        assert wait_for(lambda: call.join.called)
        worker.cancel()
        utterances.join()
        stop.stop()
        worker.join(timeout=2)

        call.cancel.assert_called_once_with(None)
        assert worker.uploaded == 1

    def test_cancel_without_upload_is_a_no_op(self, uploader):
        worker = UtteranceUploader(GracefulShutdown(), queue.Queue(), uploader, encoder=Mock())
        worker.cancel()
        uploader.recognize_utterance.assert_not_called()

    def test_stop_closes_hanging_downstream(self):
        http = FakeHttp(get_response=hanging_response())
        stop = GracefulShutdown()
        utterances = queue.Queue()
        uploader = DuplexUploader(api_key="test-key", http=http, pacing_s=0)
        worker = UtteranceUploader(stop, utterances, uploader, encoder=Mock(return_value=b"flac"))

        worker.start()
        utterances.put(make_utterance())
        assert wait_for(lambda: http.get.called)
        stop.stop()
        worker.cancel()
        worker.join(timeout=3)

        assert not worker.is_alive()
        assert worker.uploaded == 1
        http.get_response.close.assert_called()


class TestSpeechPipeline:
    """Test the pipeline facade end to end with a queue-fed source."""

    def test_registers_listener(self, config, uploader):
        listener = Mock()
        SpeechPipeline(config, listener=listener, source=QueueAudioSource(), uploader=uploader)
        uploader.add_response_listener.assert_called_once_with(listener)

    def test_speech_is_uploaded(self, config, uploader):
        source = QueueAudioSource(AudioFormat())
        pipeline = SpeechPipeline(config, source=source, uploader=uploader)

        pipeline.start()
        # 100 ms of calibration, 20 speech windows, then a closing silence
        source.push(silence_pcm(256) * 7)
        source.push(sine_pcm(250, 256) * 20)
        source.push(silence_pcm(256) * 12)

        assert wait_for(lambda: uploader.recognize_utterance.called)
        pipeline.stop()

        utterance = uploader.recognize_utterance.call_args.args[0]
        assert len(utterance.pcm) == 20 * 512
        assert pipeline.vad.state == VadState.CLOSED
        assert pipeline.vad.error is None

    def test_recordings_dir_keeps_wav_copies(self, uploader, tmp_path):
        config = DuplexSpeechConfig(api_key="k", recordings_dir=tmp_path)
        source = QueueAudioSource(AudioFormat())
        pipeline = SpeechPipeline(config, source=source, uploader=uploader)

        pipeline.start()
        source.push(silence_pcm(256) * 7 + sine_pcm(250, 256) * 20 + silence_pcm(256) * 12)

        assert wait_for(lambda: uploader.recognize_utterance.called)
        pipeline.stop()

        assert isinstance(pipeline.vad._on_utterance, RecordingListener)
        assert len(list(tmp_path.glob("*.wav"))) == 1

    def test_full_queue_drops_oldest(self, config, uploader):
        pipeline = SpeechPipeline(config, source=QueueAudioSource(), uploader=uploader, max_pending_utterances=1)
        first, second = make_utterance(), Utterance(pcm=b"", audio_format=AudioFormat(), frame_count=0)

        pipeline._enqueue(first)
        pipeline._enqueue(second)

        assert pipeline._utterance_queue.get_nowait() is second

    def test_stop_does_not_wait_for_upload_in_flight(self, config, uploader):
        call = blocking_call()
        uploader.recognize_utterance.return_value = call
        pipeline = SpeechPipeline(config, source=QueueAudioSource(AudioFormat()), uploader=uploader)

        pipeline.start()
        pipeline._enqueue(make_utterance())
        assert wait_for(lambda: call.join.called)
        started = time.monotonic()
        pipeline.stop()

        assert time.monotonic() - started < 5
        call.cancel.assert_called()
        assert not pipeline._upload_worker.is_alive()

    def test_stop_closes_source(self, config, uploader):
        source = QueueAudioSource(AudioFormat())
        pipeline = SpeechPipeline(config, source=source, uploader=uploader)

        pipeline.start()
        pipeline.stop()

        assert not pipeline.vad.is_alive()
        assert source.state.name == "CLOSED"
