"""Microphone -> VAD -> duplex upload wiring."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from .audio.codec.flac import FlacEncoder
from .audio.input.recording import RecordingListener
from .audio.input.source import AudioSource
from .audio.input.vad import (
    EnergyFrequencyClassifier,
    SpeechClassifier,
    ThresholdClassifier,
    Utterance,
    VoiceActivityDetector,
)
from .config.settings import DuplexSpeechConfig
from .core.shutdown import GracefulShutdown, StopSignal
from .core.worker import QueueWorker
from .recognizer.dispatcher import ResponseListener
from .recognizer.duplex import DuplexCall, DuplexUploader, Encoder

logger = logging.getLogger("Pipeline")


def create_classifier(config: DuplexSpeechConfig) -> SpeechClassifier:
    if config.vad_strategy == "energy_frequency":
        return EnergyFrequencyClassifier()
    return ThresholdClassifier(threshold=config.vad_threshold)


class UtteranceUploader(QueueWorker[Utterance]):
    """
    Encodes and uploads utterances one at a time.

    Each upload is joined before the next one starts, so responses arrive in the
    order the utterances were emitted.
    """

    def __init__(
        self,
        stop_signal: StopSignal,
        utterance_queue: "queue.Queue[Utterance]",
        uploader: DuplexUploader,
        encoder: Optional[Encoder] = None,
        call_timeout_s: Optional[float] = None,
    ):
        super().__init__(
            name="UtteranceUploaderThread",
            stop_signal=stop_signal,
            input_queue=utterance_queue,
            poll_interval_s=0.1,
        )
        self._uploader = uploader
        self._encoder = encoder or FlacEncoder()
        self._call_timeout_s = call_timeout_s
        self._lock = threading.Lock()
        self._current: Optional[DuplexCall] = None
        self.uploaded = 0

    def handle(self, item: Utterance) -> None:
        call = self._uploader.recognize_utterance(item, self._encoder)
        with self._lock:
            self._current = call
        try:
            if self._stop_signal.is_set():
                call.cancel(self._call_timeout_s)
            else:
                call.join(self._call_timeout_s)
            if call.is_alive():
                logger.warning("Duplex session %d still running, cancelling", call.session.pair_id)
                call.cancel(self._call_timeout_s)
        finally:
            with self._lock:
                self._current = None
        for error in call.errors:
            logger.warning("Upload of %.2fs utterance failed: %s", item.duration_s, error)
        self.uploaded += 1

    def cancel(self) -> None:
        """Cancel the upload in flight, if any, so a stopping worker is not held up by it."""
        with self._lock:
            call = self._current
        if call is not None:
            logger.info("Cancelling duplex session %d", call.session.pair_id)
            call.cancel(self._call_timeout_s)


class SpeechPipeline:
    """
    Speech capture and recognition facade.

    Responsibilities:
    - Microphone capture and voice activity detection (VAD thread)
    - Serialized upload of each utterance over a fresh duplex session (uploader thread)
    - Fan-out of recognition results to the listener passed in
    """

    def __init__(
        self,
        config: DuplexSpeechConfig,
        listener: Optional[ResponseListener] = None,
        source: Optional[AudioSource] = None,
        uploader: Optional[DuplexUploader] = None,
        max_pending_utterances: int = 20,
    ):
        self._config = config
        self._shutdown = GracefulShutdown()
        if source is None:
            from .audio.input.mic import Microphone
            source = Microphone(config.to_audio_format(), device=config.input_device)
        self._source = source
        self._uploader = uploader or DuplexUploader(
            api_key=config.api_key,
            language=config.language,
            base_url=config.base_url,
            pacing_s=config.chunk_pacing_s,
            min_response_length=config.min_response_length,
            connect_timeout_s=config.request_timeout_s,
        )
        if listener is not None:
            self._uploader.add_response_listener(listener)

        self._utterance_queue: queue.Queue[Utterance] = queue.Queue(maxsize=max_pending_utterances)

        on_utterance = self._enqueue
        if config.recordings_dir is not None:
            on_utterance = RecordingListener(config.recordings_dir, next_listener=self._enqueue)

        self._vad = VoiceActivityDetector(
            source=self._source,
            classifier=create_classifier(config),
            cfg=config.to_vad_config(),
            on_utterance=on_utterance,
        )
        self._upload_worker = UtteranceUploader(
            stop_signal=self._shutdown,
            utterance_queue=self._utterance_queue,
            uploader=self._uploader,
        )

    @property
    def uploader(self) -> DuplexUploader:
        return self._uploader

    @property
    def vad(self) -> VoiceActivityDetector:
        return self._vad

    def start(self) -> None:
        """Open the audio line and start the VAD and upload threads."""
        self._source.open()
        self._source.start()
        self._vad.start()
        self._upload_worker.start()

    def stop(self) -> None:
        """Terminate the VAD session, stop uploading and release the audio line."""
        self._vad.terminate()
        self._shutdown.stop()
        self._upload_worker.cancel()
        self.join()
        self._source.close()

    def join(self, timeout: Optional[float] = None) -> None:
        self._vad.join(timeout)
        self._upload_worker.join(timeout)

    def _enqueue(self, utterance: Utterance) -> None:
        # drop the oldest pending utterance rather than stall the VAD thread
        try:
            self._utterance_queue.put_nowait(utterance)
        except queue.Full:
            logger.warning("Utterance queue is full, dropping the oldest utterance")
            try:
                self._utterance_queue.get_nowait()
                self._utterance_queue.task_done()
            except queue.Empty:
                pass
            self._utterance_queue.put_nowait(utterance)
