"""
Integration tests for the ZeroGate client against a local HTTP server.

The server recomputes every signature from the raw request, the same way the
ZeroGate API verifies incoming calls.
"""

import hashlib
import hmac
import logging
import threading
import time

import pytest
import requests

from zerogate import APIError, Client, Context, DeadlineExceeded, TransportError, signer
from zerogate.constants import DEFAULT_USER_AGENT
from zerogate.options import base_url, debug, http_client

from .conftest import TEST_API_KEY, TEST_API_SECRET, local_options


def assert_signed(recorded):
    """Recompute HMAC-SHA512 over the received request and compare."""
    parts = recorded["headers"]["Authorization"].split(", ")
    assert len(parts) == 3
    assert parts[0] == f"APIKey={TEST_API_KEY}"
    assert parts[1].startswith("Signature=")
    assert parts[2].startswith("Nonce=")
    signature = parts[1][len("Signature="):]
    nonce = int(parts[2][len("Nonce="):])

    message = f"{recorded['method']}{recorded['path']}{nonce}".encode()
    if recorded["method"] in ("POST", "PUT"):
        message += recorded["body"]
    expected = hmac.new(TEST_API_SECRET.encode(), message, hashlib.sha512).hexdigest()
    assert signature == expected, f"signature mismatch expected {expected} got {signature}"


def ok(recorded):
    return 200, "ok"


class TestIntegration:
    """End-to-end calls through the default requests transport."""

    @pytest.mark.parametrize("method,path", [
        ("GET", "/get"),
        ("POST", "/post"),
        ("PUT", "/put"),
        ("DELETE", "/delete"),
    ])
    def test_headers_and_signature(self, server, live_client, method, path):
        """Test every verb is signed and defaults to JSON."""
        server.route(method, path, ok)

        result = live_client.do_request(Context.background(), method, path)

        assert result.status_code == 200
        recorded = server.received[-1]
        assert recorded["method"] == method
        assert recorded["headers"]["Content-Type"] == "application/json"
        assert_signed(recorded)

    def test_get_signature(self, server, live_client):
        """Test GET /get without body verifies on the server."""
        server.route("GET", "/get", ok)

        live_client.get(Context.background(), "/get")

        recorded = server.received[-1]
        assert recorded["body"] == b""
        assert_signed(recorded)

    def test_post_signature_with_body(self, server, live_client):
        """Test POST body bytes are part of the verified signature."""
        server.route("POST", "/post", ok)

        live_client.post(Context.background(), "/post", body={"name": "Test"})

        recorded = server.received[-1]
        assert recorded["body"] == b'{"name":"Test"}'
        assert_signed(recorded)

    def test_wrong_secret_detected(self, server):
        """Test the server-side check fails for a different secret."""
        server.route("GET", "/get", ok)
        other = Client(TEST_API_KEY, "wrong-secret-key", *local_options(server))

        other.get(None, "/get")

        with pytest.raises(AssertionError):
            assert_signed(server.received[-1])

    def test_query_string(self, server, live_client):
        """Test repeated query keys reach the server."""
        server.route("GET", "/search", ok)

        live_client.get(None, "/search", query={"tag": ["a", "b"], "q": "x y"})

        recorded = server.received[-1]
        assert recorded["query"] == "q=x+y&tag=a&tag=b"
        assert_signed(recorded)

    def test_session_state_is_sent(self, server):
        """Test headers, cookies and params set on a custom session reach the server."""
        server.route("POST", "/post", ok)
        session = requests.Session()
        session.trust_env = False
        session.headers["X-Session"] = "yes"
        session.cookies.set("sid", "abc")
        session.params = {"tenant": "t1"}

        with Client(TEST_API_KEY, TEST_API_SECRET,
                    base_url(server.url), http_client(session)) as client:
            client.post(None, "/post", body={"name": "Test"})

        recorded = server.received[-1]
        assert recorded["headers"]["X-Session"] == "yes"
        assert "sid=abc" in recorded["headers"]["Cookie"]
        assert recorded["query"] == "tenant=t1"
        assert recorded["headers"]["User-Agent"] == DEFAULT_USER_AGENT
        assert_signed(recorded)

    def test_not_found_error(self, server, live_client):
        """Test a 404 error envelope becomes APIError."""
        server.route("GET", "/missing", lambda r: (
            404, {"success": False, "error_code": 404, "error_message": "not found"}
        ))

        with pytest.raises(APIError) as exc:
            live_client.get(None, "/missing")

        assert str(exc.value) == "not found (404)"
        assert exc.value.status_code == 404
        assert exc.value.error_code == 404

    def test_paging_envelope(self, server, live_client):
        """Test a list envelope with total is returned intact."""
        server.route("GET", "/tenants", lambda r: (
            200, {"success": True, "data": [{"id": "ten_1", "name": "Test"}], "total": 1}
        ))

        result = live_client.get(None, "/tenants")

        payload = result.json()
        assert len(payload["data"]) == 1
        assert payload["total"] == 1

    def test_context_timeout(self, server, live_client):
        """Test an expiring context returns well before the slow response."""
        release = threading.Event()

        def slow(recorded):
            release.wait(3)
            return 200, "ok"

        server.route("GET", "/timeout", slow)
        ctx, cancel = Context.with_timeout(Context.background(), 1)

        start = time.monotonic()
        try:
            with pytest.raises(DeadlineExceeded):
                live_client.do_request(ctx, "GET", "/timeout")
        finally:
            cancel()
            release.set()
        assert time.monotonic() - start < 2

    def test_connection_refused(self, server):
        """Test a dead endpoint raises TransportError."""
        options = local_options(server)
        server.stop()
        client = Client(TEST_API_KEY, TEST_API_SECRET, *options)
        server.stop = lambda: None

        with pytest.raises(TransportError):
            client.get(None, "/get")

    def test_debug_dumps_never_leak_credentials(self, server, caplog):
        """Test request and response dumps are redacted against a real exchange."""
        server.route("POST", "/echo", lambda r: (200, {"success": True, "data": r["headers"]["Authorization"]}))
        caplog.set_level(logging.DEBUG, logger="zerogate")
        client = Client(TEST_API_KEY, TEST_API_SECRET, *local_options(server), debug(True))

        client.post(None, "/echo", body={"secret": TEST_API_SECRET})

        dumps = [r.getMessage() for r in caplog.records if r.name == "zerogate.client"]
        assert len(dumps) == 2
        for dump in dumps:
            assert TEST_API_KEY not in dump
            assert TEST_API_SECRET not in dump
        assert "[**************]" in dumps[1]

    def test_concurrent_requests(self, server, live_client):
        """Test concurrent authenticated requests."""
        server.route("POST", "/data", ok)
        results = []

        def make_request(i):
            response = live_client.post(None, "/data", body={"message": f"Concurrent request {i}"})
            results.append(response.status_code == 200)

        threads = [threading.Thread(target=make_request, args=(i,)) for i in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results == [True] * 5
        for recorded in server.received:
            assert_signed(recorded)

    def test_same_second_nonce_reuse(self, server, live_client):
        """Test identical calls in one second carry identical headers."""
        server.route("GET", "/get", ok)

        # Retry until both calls land in the same second
        for _ in range(5):
            live_client.get(None, "/get")
            live_client.get(None, "/get")
            first, second = server.received[-2:]
            if signer.parse_authorization(first["headers"]["Authorization"]).nonce == \
                    signer.parse_authorization(second["headers"]["Authorization"]).nonce:
                break
        assert first["headers"]["Authorization"] == second["headers"]["Authorization"]
