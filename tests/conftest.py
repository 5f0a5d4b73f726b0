"""
Shared fixtures for ZeroGate client tests.
"""

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import Mock
from urllib.parse import unquote, urlsplit

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from zerogate import Client
from zerogate.options import base_url, http_client, transport

TEST_API_KEY = "key_5fbea6690113a5b9560bc9def29c91e2"
TEST_API_SECRET = "1f4f6db557e4fdce6eb1dbbcc9f5d544f99252e8c2b5158a566e1c4667a48717"


def make_response(status_code=200, body=b'{"success":true}', headers=None, reason="OK"):
    """Build a fully read requests.Response for transport doubles."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response._content = body
    response._content_consumed = True
    response.headers = CaseInsensitiveDict(headers or {"Content-Type": "application/json"})
    return response


class _Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _handle(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        parts = urlsplit(self.path)
        recorded = {
            "method": self.command,
            "path": unquote(parts.path),
            "query": parts.query,
            "headers": dict(self.headers.items()),
            "body": body,
        }
        self.server.received.append(recorded)

        route = self.server.routes.get((self.command, parts.path))
        if route is None:
            status, payload = 404, {"success": False, "error_code": 404, "error_message": "not found"}
        else:
            status, payload = route(recorded)

        data = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        try:
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(data)))
            self.end_headers()
            self.wfile.write(data)
        except (BrokenPipeError, ConnectionResetError):
            pass

    do_GET = do_POST = do_PUT = do_DELETE = _handle

    def log_message(self, format, *args):
        pass


class LocalServer:
    """Threaded HTTP server answering from a per-test route table."""

    def __init__(self):
        self.httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
        self.httpd.daemon_threads = True
        self.httpd.routes = {}
        self.httpd.received = []
        self.thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)

    @property
    def url(self):
        host, port = self.httpd.server_address[:2]
        return f"http://{host}:{port}"

    @property
    def received(self):
        return self.httpd.received

    def route(self, method, path, handler):
        self.httpd.routes[(method, path)] = handler

    def start(self):
        self.thread.start()

    def stop(self):
        self.httpd.shutdown()
        self.httpd.server_close()


@pytest.fixture
def server():
    """Start a local HTTP server for one test."""
    srv = LocalServer()
    srv.start()
    yield srv
    srv.stop()


def local_options(server):
    """Options pointing a client at the local server, bypassing any proxy settings."""
    session = requests.Session()
    session.trust_env = False
    return base_url(server.url), http_client(session)


@pytest.fixture
def live_client(server):
    """Client pointed at the local server."""
    with Client(TEST_API_KEY, TEST_API_SECRET, *local_options(server)) as client:
        yield client


@pytest.fixture
def fake_transport():
    """Transport double answering every call with an empty success envelope."""
    fake = Mock(spec=["perform", "close"])
    fake.perform.return_value = make_response()
    return fake


@pytest.fixture
def client(fake_transport):
    """Client using the transport double."""
    return Client(TEST_API_KEY, TEST_API_SECRET, base_url("http://localhost:8080"),
                  transport(fake_transport))
