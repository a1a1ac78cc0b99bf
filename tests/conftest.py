import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

ROUTES = {
    "/index.html": 200,
    "/admin": 301,
    "/secret": 403,
    "/teapot": 418,
}


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code
        self.closed = False

    def close(self):
        self.closed = True


class FakeSession:
    """Stands in for requests.Session; routes map url -> status or exception."""

    def __init__(self, routes, default=404):
        self.routes = routes
        self.default = default
        self.calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        outcome = self.routes.get(url, self.default)
        if isinstance(outcome, BaseException):
            raise outcome
        return FakeResponse(outcome)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_sessions():
    """Factory of FakeSessions sharing one route table; keeps every session it made."""
    made = []

    def factory(routes, default=404):
        def make():
            s = FakeSession(routes, default)
            made.append(s)
            return s
        return make

    factory.made = made
    return factory


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        code = ROUTES.get(self.path, 404)
        self.send_response(code)
        if code == 301:
            self.send_header("Location", self.path + "/")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        pass


@pytest.fixture
def http_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")


class _KeepAliveHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"
    connections = 0

    def setup(self):
        type(self).connections += 1
        super().setup()

    def do_GET(self):
        body = b"not here" if self.path != "/index.html" else b"hello"
        self.send_response(200 if self.path == "/index.html" else 404)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def keepalive_server():
    """HTTP/1.1 server counting accepted TCP connections on the handler class."""
    handler = type("Handler", (_KeepAliveHandler,), {"connections": 0})
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    yield f"http://127.0.0.1:{server.server_address[1]}", handler
    server.shutdown()
    server.server_close()
