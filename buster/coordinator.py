"""
Coordinator: partitions the wordlist, starts one worker thread per partition
and collects their messages until every worker reports done.
"""
import threading
from typing import Callable, Dict, List, Optional

import requests
from tqdm import tqdm

from . import console
from .channel import Receiver, open_channel
from .progress import ProgressTracker
from .sink import ResultSink
from .types import BustInterrupted, BustSummary, ThreadResponse
from .wordlist import partition
from .worker import bust

RUNNING = "running"
FINISHED = "finished"

# how often a waiting coordinator wakes up to look at the cancel token
POLL_INTERVAL = 0.25


class Coordinator:
    def __init__(
        self,
        target: str,
        words: List[str],
        workers: int,
        sink: ResultSink,
        tracker: Optional[ProgressTracker] = None,
        cancel: Optional[threading.Event] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
        timeout: Optional[float] = None,
        headers: Optional[Dict] = None,
        show_bar: bool = False,
        verbose: bool = False,
    ):
        self.target = target
        self.words = words
        self.workers = workers
        self.sink = sink
        self.tracker = tracker if tracker is not None else ProgressTracker()
        self.cancel = cancel if cancel is not None else threading.Event()
        self.session_factory = session_factory
        self.timeout = timeout
        self.headers = headers
        self.show_bar = show_bar
        self.verbose = verbose
        self.state = None
        self.completed = 0
        self.skipped = 0
        self.threads: List[threading.Thread] = []
        self._bar = None

    def spawn(self, partitions: List[List[str]], doorbell: threading.Semaphore) -> List[Receiver]:
        receivers = []
        for i, words in enumerate(partitions):
            sender, receiver = open_channel(doorbell)
            t = threading.Thread(
                target=bust,
                args=(self.target, words, sender),
                kwargs={
                    "cancel": self.cancel,
                    "session_factory": self.session_factory,
                    "timeout": self.timeout,
                    "headers": self.headers,
                    "name": f"Worker-{i}",
                },
                name=f"buster-worker-{i}",
                daemon=True,
            )
            receivers.append(receiver)
            self.threads.append(t)
        for t in self.threads:
            t.start()
        return receivers

    def run(self) -> BustSummary:
        """Probe every word and return the run summary. Closes the sink."""
        partitions = partition(self.words, self.workers)
        total = len(self.words)
        doorbell = threading.Semaphore(0)
        try:
            with tqdm(total=total, desc="buster", unit="word", disable=not self.show_bar) as bar:
                self._bar = bar
                receivers = self.spawn(partitions, doorbell)
                if self.verbose:
                    console.log("Coordinator", f"Started {len(receivers)} workers for {total} words")
                self.collect(receivers, doorbell, total)
        finally:
            self._bar = None
            self.sink.close()
        for t in self.threads:
            t.join()
        return self.summary(total)

    def collect(self, receivers: List[Receiver], doorbell: threading.Semaphore, total: int):
        """
        Take messages from `receivers` until each has delivered done=True.

        Each doorbell permit stands for one queued message, so after a
        successful acquire the round-robin scan always finds one.
        """
        self.state = RUNNING
        done = [False] * len(receivers)
        nxt = 0
        while not all(done):
            if self.cancel.is_set():
                raise BustInterrupted("run cancelled")
            if not doorbell.acquire(timeout=POLL_INTERVAL):
                if self.cancel.is_set():
                    raise BustInterrupted("run cancelled")
                continue
            for offset in range(len(receivers)):
                i = (nxt + offset) % len(receivers)
                msg = receivers[i].try_recv()
                if msg is not None:
                    break
            else:
                # unreachable while senders ring only after enqueueing
                raise RuntimeError("doorbell rang with no message queued")
            nxt = (i + 1) % len(receivers)
            self.handle(msg, total)
            done[i] = done[i] or msg.done
        self.state = FINISHED

    def handle(self, msg: ThreadResponse, total: int):
        if msg.word is None:
            if msg.error:
                console.log("Coordinator", f"Worker ended early: {msg.error}")
            return
        self.completed += 1
        self.tracker.report(self.completed, total)
        if msg.status_code is None:
            self.skipped += 1
            if self.verbose:
                console.log("Coordinator", f"Skipped {self.target}{msg.word}: {msg.error}")
        else:
            rec = self.sink.record(msg.status_code, msg.word)
            if rec is not None and self.verbose:
                console.log("Coordinator", f"Found {rec}")
        if self._bar is not None:
            self._bar.update(1)

    def summary(self, total: int) -> BustSummary:
        return BustSummary(total=total, completed=self.completed, matched=self.sink.matched, skipped=self.skipped)
