"""
Worker: probes one partition of the wordlist and reports every word back to
the coordinator over its own channel.
"""
import threading
from typing import Callable, Dict, List, Optional

import requests

from . import console
from .channel import Sender
from .types import ThreadResponse, TransportError

REQUEST_HEADERS = {"User-Agent": "buster/1.0"}


def probe(session: requests.Session, url: str, timeout: Optional[float] = None, headers: Optional[Dict] = None) -> int:
    """
    GET `url` and return its status code.

    Redirects are not followed. The body is read so the connection goes back
    to the session's pool. Raises TransportError when the request fails or the
    status is not a valid HTTP code.
    """
    try:
        r = session.get(url, headers=headers or REQUEST_HEADERS, timeout=timeout, allow_redirects=False)
    except (requests.RequestException, ValueError) as e:
        raise TransportError(f"{type(e).__name__}: {e}") from e
    code = r.status_code
    if not isinstance(code, int) or not 100 <= code <= 599:
        raise TransportError(f"unparsable status {code!r}")
    return code


def bust(
    target: str,
    words: List[str],
    sender: Sender,
    cancel: Optional[threading.Event] = None,
    session_factory: Callable[[], requests.Session] = requests.Session,
    timeout: Optional[float] = None,
    headers: Optional[Dict] = None,
    name: str = "Worker",
):
    """
    Probe `target + word` for every word in order, sending one ThreadResponse
    per word. Only the message for the last word has done=True.

    A failed request, or any other error while probing one word, is reported
    as a skipped word (status_code None) and the worker moves on. If no
    per-word message can carry the done flag (empty partition, crash outside
    the word loop) a terminal message with word=None is sent.
    """
    last = len(words) - 1
    finished = False
    session = None
    try:
        session = session_factory()
        for i, word in enumerate(words):
            if cancel is not None and cancel.is_set():
                return
            done = i == last
            try:
                code = probe(session, target + word, timeout=timeout, headers=headers)
            except TransportError as e:
                sender.send(ThreadResponse(None, word, done, str(e)))
            except Exception as e:
                console.log(name, f"Error probing {target}{word}: {type(e).__name__}: {e}")
                sender.send(ThreadResponse(None, word, done, f"{type(e).__name__}: {e}"))
            else:
                sender.send(ThreadResponse(code, word, done))
            finished = done
        if not words:
            sender.send(ThreadResponse(None, None, True))
            finished = True
    except Exception as e:
        console.log(name, f"Stopped: {type(e).__name__}: {e}")
        if not finished:
            sender.send(ThreadResponse(None, None, True, f"worker stopped: {e}"))
            finished = True
        raise
    finally:
        if session is not None:
            session.close()
