"""Fan-out of recognition results to registered listeners."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from .response import RecognitionResult

logger = logging.getLogger(__name__)

ResponseListener = Callable[[RecognitionResult], None]


class ResponseDispatcher:
    """
    Ordered listener list shared between the caller and downstream readers.

    Listeners run synchronously on the dispatching thread in registration order,
    over a snapshot of the list, so a listener may add or remove listeners
    without affecting the current dispatch. A listener that blocks stalls the
    downstream read loop that called it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: list[ResponseListener] = []

    def add_listener(self, listener: ResponseListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: ResponseListener) -> None:
        """Remove the first registration of `listener`; unknown listeners are ignored."""
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    @property
    def listeners(self) -> list[ResponseListener]:
        with self._lock:
            return list(self._listeners)

    def dispatch(self, result: RecognitionResult) -> None:
        for listener in self.listeners:
            try:
                listener(result)
            except Exception:
                logger.exception("Response listener %r failed", listener)
