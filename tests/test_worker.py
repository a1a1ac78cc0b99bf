import threading

import pytest
import requests

from buster.channel import open_channel
from buster.types import ThreadResponse, TransportError
from buster.worker import REQUEST_HEADERS, bust, probe
from conftest import FakeSession

TARGET = "http://example.com/"


def drain(receiver):
    out = []
    while True:
        msg = receiver.try_recv()
        if msg is None:
            return out
        out.append(msg)


def run_worker(words, routes, **kwargs):
    doorbell = threading.Semaphore(0)
    sender, receiver = open_channel(doorbell)
    sessions = []

    def factory():
        s = FakeSession(routes)
        sessions.append(s)
        return s

    bust(TARGET, words, sender, session_factory=factory, **kwargs)
    return drain(receiver), sessions


def test_probe_returns_status_and_sends_defaults():
    s = FakeSession({TARGET + "admin": 301})
    assert probe(s, TARGET + "admin") == 301
    _, kwargs = s.calls[0]
    assert kwargs["allow_redirects"] is False
    assert kwargs["headers"] == REQUEST_HEADERS
    assert kwargs["timeout"] is None


@pytest.mark.parametrize("outcome", [
    requests.ConnectionError("refused"),
    requests.Timeout("slow"),
    ValueError("no status line"),
])
def test_probe_wraps_failures(outcome):
    with pytest.raises(TransportError):
        probe(FakeSession({TARGET + "x": outcome}), TARGET + "x")


def test_probe_rejects_unparsable_status():
    with pytest.raises(TransportError):
        probe(FakeSession({TARGET + "x": None}), TARGET + "x")
    with pytest.raises(TransportError):
        probe(FakeSession({TARGET + "x": 999}), TARGET + "x")


def test_one_message_per_word_done_on_last():
    msgs, sessions = run_worker(["a", "b", "c"], {TARGET + "a": 200, TARGET + "c": 403})
    assert [(m.status_code, m.word, m.done) for m in msgs] == [
        (200, "a", False),
        (404, "b", False),
        (403, "c", True),
    ]
    assert sessions[0].closed


def test_failed_request_does_not_abort_partition():
    msgs, _ = run_worker(["one", "two", "three"], {TARGET + "two": requests.ConnectionError("reset")})
    classified = [m for m in msgs if m.status_code is not None]
    assert [m.word for m in classified] == ["one", "three"]
    assert classified[-1].done
    skipped = [m for m in msgs if m.status_code is None]
    assert [m.word for m in skipped] == ["two"]
    assert not skipped[0].done
    assert "ConnectionError" in skipped[0].error
    assert sum(m.done for m in msgs) == 1


def test_all_failures_still_signal_done():
    err = requests.ConnectionError("down")
    msgs, _ = run_worker(["a", "b"], {TARGET + "a": err, TARGET + "b": err})
    assert [m.status_code for m in msgs] == [None, None]
    assert msgs[-1].done


def test_empty_partition_sends_terminal_message():
    msgs, _ = run_worker([], {})
    assert msgs == [ThreadResponse(None, None, True)]


def test_cancel_stops_between_words():
    cancel = threading.Event()
    cancel.set()
    msgs, sessions = run_worker(["a", "b"], {}, cancel=cancel)
    assert msgs == []
    assert sessions[0].closed


def test_unexpected_error_on_one_word_does_not_abort_partition(capsys):
    doorbell = threading.Semaphore(0)
    sender, receiver = open_channel(doorbell)

    class Flaky(FakeSession):
        def get(self, url, **kwargs):
            if url.endswith("/b"):
                raise RuntimeError("boom")
            return super().get(url, **kwargs)

    bust(TARGET, ["a", "b", "c"], sender, session_factory=lambda: Flaky({TARGET + "c": 200}), name="Worker-1")
    msgs = drain(receiver)
    assert [(m.status_code, m.word, m.done) for m in msgs] == [
        (404, "a", False),
        (None, "b", False),
        (200, "c", True),
    ]
    assert "boom" in msgs[1].error
    assert "[Worker-1]" in capsys.readouterr().err


def test_failing_session_factory_still_sends_done(capsys):
    doorbell = threading.Semaphore(0)
    sender, receiver = open_channel(doorbell)

    def broken():
        raise OSError("too many open files")

    with pytest.raises(OSError):
        bust(TARGET, ["a", "b"], sender, session_factory=broken, name="Worker-0")
    msgs = drain(receiver)
    assert len(msgs) == 1
    assert msgs[0].word is None and msgs[0].done
    assert "too many open files" in msgs[0].error
    assert "[Worker-0] Stopped" in capsys.readouterr().err


def test_probes_reuse_one_connection(keepalive_server):
    url, handler = keepalive_server
    with requests.Session() as session:
        codes = [probe(session, f"{url}/{w}", timeout=5) for w in ["index.html"] + [f"x{i}" for i in range(9)]]
    assert codes == [200] + [404] * 9
    assert handler.connections == 1
