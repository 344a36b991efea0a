"""
Full-duplex streaming client.

A duplex session opens two HTTPS connections that share a pair id: a downstream
GET that yields newline-delimited results and an upstream chunked POST that carries
the audio. Each runs on its own thread; results are parsed on the downstream
thread and fanned out through a ResponseDispatcher.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Union
from urllib.parse import urlparse

import requests

from ..audio.codec.flac import FlacEncoder
from ..audio.input.sampler import WindowSampler
from ..audio.input.source import AudioSource, CaptureState
from ..audio.input.types import AudioFormat, WindowConfig
from ..audio.input.vad import Utterance
from ..core.shutdown import GracefulShutdown
from ..errors import CaptureError, MalformedResponseError, ProtocolLimitError, TransportError
from .dispatcher import ResponseDispatcher, ResponseListener
from .languages import Language
from .protocol import (
    DEFAULT_BASE_URL,
    FINAL_CHUNK,
    MAX_CHUNK_SIZE,
    DuplexSession,
    chunk_audio,
    content_type,
)
from .response import parse_response

logger = logging.getLogger(__name__)

Encoder = Callable[[bytes, AudioFormat], bytes]


def require_secure(url: str) -> None:
    if urlparse(url).scheme != "https":
        raise TransportError(f"URL is not an https URL: {url}")


def paced_body(chunks: Iterable[bytes], pacing_s: float, stop_signal: GracefulShutdown) -> Iterator[bytes]:
    """
    Yield pre-chunked audio with a pause between chunks so the service sees
    a microphone-like bitrate, then the final-chunk marker.
    """
    for i, chunk in enumerate(chunks):
        if i and stop_signal.wait(pacing_s):
            logger.info("Upstream cancelled after %d chunks", i)
            return
        yield chunk
    yield FINAL_CHUNK


def live_body(sampler: WindowSampler, encoder: Encoder, stop_signal: GracefulShutdown) -> Iterator[bytes]:
    """Yield encoded blocks pulled from a live line until stopped or the line fails."""
    while not stop_signal.is_set():
        try:
            window = sampler.read()
        except CaptureError as e:
            if not stop_signal.is_set():
                logger.error("Audio line failed, ending upstream: %s", e, exc_info=True)
            return
        yield encoder(window.data, window.audio_format)


class DownstreamReader(threading.Thread):
    """Reads result lines from the downstream URL and dispatches them."""

    def __init__(
        self,
        url: str,
        http: requests.Session,
        dispatcher: ResponseDispatcher,
        min_response_length: int = 17,
        connect_timeout_s: float = 10.0,
    ):
        super().__init__(name="DownstreamThread", daemon=True)
        self.url = url
        self._http = http
        self._dispatcher = dispatcher
        self._min_response_length = min_response_length
        self._connect_timeout_s = connect_timeout_s
        self._stop_signal = GracefulShutdown()
        self._response: Optional[requests.Response] = None
        self.error: Optional[Exception] = None
        self.dispatched = 0

    def run(self) -> None:
        try:
            self._read()
        except (TransportError, requests.RequestException) as e:
            if self._stop_signal.is_set():
                logger.debug("Downstream closed during cancel: %s", e)
            else:
                logger.error("Downstream failed: %s", e, exc_info=True)
                self.error = e
        finally:
            logger.info("Finished reading downstream (%d results)", self.dispatched)

    def _read(self) -> None:
        require_secure(self.url)
        response = self._http.get(self.url, stream=True, timeout=(self._connect_timeout_s, None))
        self._response = response
        try:
            if self._stop_signal.is_set():
                return
            if not response.ok:
                raise TransportError(f"downstream returned HTTP {response.status_code}")
            for raw in response.iter_lines():
                if self._stop_signal.is_set():
                    break
                line = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
                # short lines are keep-alives and blank results
                if len(line) <= self._min_response_length:
                    continue
                self._handle_line(line)
        finally:
            response.close()

    def _handle_line(self, line: str) -> None:
        try:
            result = parse_response(line)
        except MalformedResponseError as e:
            logger.debug("Skipping response line: %s", e)
            return
        if result is None:
            return
        self.dispatched += 1
        self._dispatcher.dispatch(result)

    def cancel(self) -> None:
        self._stop_signal.stop()
        if self._response is not None:
            self._response.close()


class UpstreamWriter(threading.Thread):
    """POSTs a chunked audio body to the upstream URL. No result is read back."""

    def __init__(
        self,
        url: str,
        http: requests.Session,
        sample_rate: int,
        body: Callable[[GracefulShutdown], Iterable[bytes]],
        connect_timeout_s: float = 10.0,
    ):
        super().__init__(name="UpstreamThread", daemon=True)
        self.url = url
        self._http = http
        self._sample_rate = sample_rate
        self._body = body
        self._connect_timeout_s = connect_timeout_s
        self._stop_signal = GracefulShutdown()
        self.error: Optional[Exception] = None
        self.status_code: Optional[int] = None

    def run(self) -> None:
        try:
            self._write()
        except (TransportError, requests.RequestException) as e:
            if self._stop_signal.is_set():
                logger.debug("Upstream closed during cancel: %s", e)
            else:
                logger.error("Upstream failed: %s", e, exc_info=True)
                self.error = e
        finally:
            logger.info("Upstream closed")

    def _write(self) -> None:
        require_secure(self.url)
        headers = {
            "Content-Type": content_type(self._sample_rate),
            "Transfer-Encoding": "chunked",
        }
        logger.info("Starting to write upstream")
        response = self._http.post(
            self.url,
            data=self._body(self._stop_signal),
            headers=headers,
            timeout=(self._connect_timeout_s, None),
        )
        try:
            self.status_code = response.status_code
            if not response.ok:
                raise TransportError(f"upstream returned HTTP {response.status_code}")
        finally:
            response.close()

    def cancel(self) -> None:
        self._stop_signal.stop()


class DuplexCall:
    """
    Handle on one running duplex session.

    In continuous mode the upstream never ends on its own, so `join()` waits for
    the downstream to finish and then cancels the upstream. `interrupt` runs right
    after the upstream is cancelled to unblock a pending audio read; `release` runs
    once, after both threads have been joined.
    """

    def __init__(
        self,
        session: DuplexSession,
        downstream: DownstreamReader,
        upstream: UpstreamWriter,
        interrupt: Optional[Callable[[], None]] = None,
        release: Optional[Callable[[], None]] = None,
    ):
        self.session = session
        self.downstream = downstream
        self.upstream = upstream
        self._interrupt = interrupt
        self._release = release
        self._release_lock = threading.Lock()

    def start(self) -> "DuplexCall":
        self.downstream.start()
        self.upstream.start()
        return self

    def join(self, timeout: Optional[float] = None) -> None:
        if self.session.continuous:
            self.downstream.join(timeout)
            self._cancel_upstream()
            self.upstream.join(timeout)
        else:
            self.upstream.join(timeout)
            self.downstream.join(timeout)
        self._finish()

    def cancel(self, timeout: Optional[float] = None) -> None:
        """Interrupt both channels and wait for them before releasing the audio line."""
        self._cancel_upstream()
        self.downstream.cancel()
        self.downstream.join(timeout)
        self.upstream.join(timeout)
        self._finish()

    def is_alive(self) -> bool:
        return self.downstream.is_alive() or self.upstream.is_alive()

    @property
    def errors(self) -> list[Exception]:
        return [e for e in (self.downstream.error, self.upstream.error) if e is not None]

    def _cancel_upstream(self) -> None:
        self.upstream.cancel()
        if self._interrupt is not None:
            self._interrupt()

    def _finish(self) -> None:
        if self.is_alive():
            return
        with self._release_lock:
            release, self._release = self._release, None
        if release is not None:
            release()


class DuplexUploader:
    """
    Client for the full-duplex recognition service.

    Every call to a `recognize*` method starts a fresh session (new pair id and a
    new downstream/upstream pair) and returns immediately with a DuplexCall.
    Results arrive on listeners registered with `add_response_listener`.
    """

    def __init__(
        self,
        api_key: str,
        language: Union[str, Language] = Language.AUTO_DETECT,
        base_url: str = DEFAULT_BASE_URL,
        dispatcher: Optional[ResponseDispatcher] = None,
        http: Optional[requests.Session] = None,
        pacing_s: float = 1.0,
        min_response_length: int = 17,
        connect_timeout_s: float = 10.0,
    ):
        self.api_key = api_key
        self.language = language
        self.base_url = base_url
        self.dispatcher = dispatcher or ResponseDispatcher()
        self._http = http or requests.Session()
        self.pacing_s = pacing_s
        self.min_response_length = min_response_length
        self.connect_timeout_s = connect_timeout_s

    def add_response_listener(self, listener: ResponseListener) -> None:
        self.dispatcher.add_listener(listener)

    def remove_response_listener(self, listener: ResponseListener) -> None:
        self.dispatcher.remove_listener(listener)

    def new_session(self, continuous: bool = False) -> DuplexSession:
        return DuplexSession.create(
            api_key=self.api_key,
            language=self.language,
            base_url=self.base_url,
            continuous=continuous,
        )

    def recognize(self, data: bytes, sample_rate: int) -> DuplexCall:
        """Upload an encoded payload, splitting it when it reaches the chunk ceiling."""
        return self.send_chunks(chunk_audio(data), sample_rate)

    def recognize_file(self, path: Union[str, Path], sample_rate: int) -> DuplexCall:
        return self.recognize(Path(path).read_bytes(), sample_rate)

    def recognize_utterance(self, utterance: Utterance, encoder: Optional[Encoder] = None) -> DuplexCall:
        encode = encoder or FlacEncoder()
        fmt = utterance.audio_format
        return self.recognize(encode(utterance.pcm, fmt), fmt.sample_rate)

    def send_chunks(self, chunks: list[bytes], sample_rate: int) -> DuplexCall:
        """
        Upload already-split chunks, pausing `pacing_s` between them.

        Raises:
            ProtocolLimitError: a chunk is larger than the service accepts.
        """
        for chunk in chunks:
            if len(chunk) > MAX_CHUNK_SIZE:
                raise ProtocolLimitError(f"chunk of {len(chunk)} bytes exceeds {MAX_CHUNK_SIZE}")

        session = self.new_session()
        logger.info("Duplex session %d: %d chunk(s), %d bytes", session.pair_id, len(chunks), sum(map(len, chunks)))
        upstream = UpstreamWriter(
            session.upstream_url,
            self._http,
            sample_rate,
            body=lambda stop: paced_body(chunks, self.pacing_s, stop),
            connect_timeout_s=self.connect_timeout_s,
        )
        return DuplexCall(session, self._downstream(session), upstream).start()

    def recognize_stream(
        self,
        source: AudioSource,
        encoder: Optional[Encoder] = None,
        block_ms: int = 250,
    ) -> DuplexCall:
        """
        Stream a live line continuously with interim results enabled.

        The line is opened and started if needed; if so, it is stopped when the
        upstream is cancelled and closed once both channels have been joined.
        """
        opened_here = source.state != CaptureState.PROCESSING_AUDIO
        if opened_here:
            source.open()
            source.start()

        encode = encoder or FlacEncoder()
        sampler = WindowSampler(source, WindowConfig(window_ms=block_ms))
        session = self.new_session(continuous=True)
        logger.info("Continuous duplex session %d started", session.pair_id)

        upstream = UpstreamWriter(
            session.upstream_url,
            self._http,
            source.audio_format.sample_rate,
            body=lambda stop: live_body(sampler, encode, stop),
            connect_timeout_s=self.connect_timeout_s,
        )

        call = DuplexCall(
            session,
            self._downstream(session),
            upstream,
            interrupt=source.stop if opened_here else None,
            release=source.close if opened_here else None,
        )
        return call.start()

    def _downstream(self, session: DuplexSession) -> DownstreamReader:
        return DownstreamReader(
            session.downstream_url,
            self._http,
            self.dispatcher,
            min_response_length=self.min_response_length,
            connect_timeout_s=self.connect_timeout_s,
        )
