"""
Transport boundary between the client and the network.

Anything with a ``perform(request, timeout)`` method can be plugged into the
client, which makes it easy to swap in a test double or a session configured
with custom adapters, proxies or pooling. A transport may also provide
``prepare(request)`` to turn the outgoing requests.Request into the
PreparedRequest that gets signed; without it the request is prepared as is.
"""

from typing import Optional, Protocol

import requests


class Transport(Protocol):
    """Performs one prepared HTTP request and returns the full response."""

    def perform(self, request: requests.PreparedRequest,
                timeout: Optional[float] = None) -> requests.Response:
        ...


def prepare_request(transport: Transport, request: requests.Request) -> requests.PreparedRequest:
    """Prepare ``request`` through the transport's prepare hook when it has one."""
    prepare = getattr(transport, 'prepare', None)
    if callable(prepare):
        return prepare(request)
    return request.prepare()


class SessionTransport:
    """
    Default transport backed by a requests.Session.

    The session is shared by every in-flight call; requests sessions are safe
    to use from several threads for plain request/response exchanges.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session if session is not None else requests.Session()

    def prepare(self, request: requests.Request) -> requests.PreparedRequest:
        """Merge the session's headers, cookies, auth and params into the request."""
        return self.session.prepare_request(request)

    def perform(self, request: requests.PreparedRequest,
                timeout: Optional[float] = None) -> requests.Response:
        # Honour proxy/verify settings from the environment like Session.request does
        settings = self.session.merge_environment_settings(
            request.url, {}, None, None, None
        )
        return self.session.send(request, timeout=timeout, allow_redirects=True, **settings)

    def close(self):
        """Close HTTP session."""
        if self.session:
            self.session.close()
