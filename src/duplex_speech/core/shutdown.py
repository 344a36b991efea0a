import threading
from typing import Protocol


class StopSignal(Protocol):
    def is_set(self) -> bool: ...

    def wait(self, timeout: float | None = None) -> bool: ...


class GracefulShutdown:
    def __init__(self):
        self.stop_event = threading.Event()

    def stop(self):
        self.stop_event.set()

    def is_set(self):
        return self.stop_event.is_set()

    def wait(self, timeout=None):
        """Sleep up to `timeout` seconds; returns True early if stop was requested."""
        return self.stop_event.wait(timeout)
