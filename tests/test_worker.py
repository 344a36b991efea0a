"""Tests for the queue worker base thread and shutdown signal."""

import queue

from duplex_speech.core.shutdown import GracefulShutdown
from duplex_speech.core.worker import QueueWorker


class RecordingWorker(QueueWorker[int]):
    def __init__(self, stop_signal, input_queue):
        super().__init__(name="RecordingWorker", stop_signal=stop_signal, input_queue=input_queue, poll_interval_s=0.01)
        self.items = []

    def handle(self, item):
        self.items.append(item)


class TestGracefulShutdown:
    def test_wait_returns_early_when_stopped(self):
        shutdown = GracefulShutdown()
        assert not shutdown.wait(0)
        shutdown.stop()
        assert shutdown.is_set()
        assert shutdown.wait(10)


class TestQueueWorker:
    def test_handles_items_in_order(self):
        stop = GracefulShutdown()
        items = queue.Queue()
        worker = RecordingWorker(stop, items)

        worker.start()
        for i in range(5):
            items.put(i)
        items.join()
        stop.stop()
        worker.join(timeout=2)

        assert worker.items == [0, 1, 2, 3, 4]
        assert worker.daemon
        assert worker.name == "RecordingWorker"

    def test_exits_when_stopped_while_idle(self):
        stop = GracefulShutdown()
        worker = RecordingWorker(stop, queue.Queue())

        worker.start()
        stop.stop()
        worker.join(timeout=2)

        assert not worker.is_alive()
        assert worker.items == []
