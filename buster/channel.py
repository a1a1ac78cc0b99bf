"""
One-way message channels between workers and the coordinator.

Every channel of a run shares a doorbell semaphore which is released once per
message sent. Holding a permit therefore means at least one channel has a
message waiting, so the coordinator can block on all channels at once.
"""
import queue
import threading
from typing import Optional, Tuple

from .types import ThreadResponse


class Sender:
    def __init__(self, q: queue.SimpleQueue, doorbell: threading.Semaphore):
        self._queue = q
        self._doorbell = doorbell

    def send(self, msg: ThreadResponse):
        # enqueue before ringing; the coordinator relies on that order
        self._queue.put(msg)
        self._doorbell.release()


class Receiver:
    def __init__(self, q: queue.SimpleQueue):
        self._queue = q

    def try_recv(self) -> Optional[ThreadResponse]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None


def open_channel(doorbell: threading.Semaphore) -> Tuple[Sender, Receiver]:
    q = queue.SimpleQueue()
    return Sender(q, doorbell), Receiver(q)
