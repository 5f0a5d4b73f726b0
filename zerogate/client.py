"""
ZeroGate API client.

This module builds, signs and sends requests to the ZeroGate API. Every
request carries an Authorization header of the form

    APIKey=<key>, Signature=<hex>, Nonce=<unix seconds>

where the signature is an HMAC-SHA512 over method, path, nonce and (for POST
and PUT) the body bytes exactly as transmitted.
"""

import dataclasses
import json
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import unquote, urlencode, urlsplit

import requests
from requests.structures import CaseInsensitiveDict

from . import signer
from .constants import (
    CONTENT_TYPE_JSON,
    DEFAULT_CONFIG,
    EMPTY_JSON_BODY,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    HEADER_USER_AGENT,
    REDACTED,
    SIGNED_BODY_METHODS,
    SUPPORTED_METHODS,
)
from .context import Context
from .exceptions import (
    ConfigurationError,
    DeadlineExceeded,
    SerializationError,
    TransportError,
)
from .models import APIResponse
from .options import Option, apply_options, normalize_headers
from .response import classify_response
from .tenant import TenantService
from .transport import SessionTransport, Transport, prepare_request

logger = logging.getLogger(__name__)

ERR_EMPTY_CREDENTIALS = "API key & secret must not be empty"

# urllib3 rejects a zero timeout
MIN_TIMEOUT = 0.001

Query = Mapping[str, Union[str, Sequence[str]]]


@dataclass(frozen=True)
class ClientConfig:
    """
    Snapshot of the network configuration of a client.

    Snapshots are never mutated; reconfiguring a client swaps in a new one.
    """
    base_url: str
    user_agent: str
    debug: bool
    timeout: float
    headers: Mapping[str, Tuple[str, ...]]
    transport: Transport
    logger: logging.Logger

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'ClientConfig':
        return cls(
            base_url=config['base_url'].rstrip('/'),
            user_agent=config.get('user_agent') or "",
            debug=bool(config.get('debug')),
            timeout=config['timeout'],
            headers=MappingProxyType(dict(config.get('headers') or {})),
            transport=config.get('transport') or SessionTransport(),
            logger=config.get('logger') or logger,
        )

    def to_dict(self) -> Dict[str, Any]:
        config = {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}
        config['headers'] = dict(self.headers)
        return config


class Client:
    """
    Client for the ZeroGate API.

    A client can be shared between threads. Its configuration is read once at
    the start of each call, so reconfiguring it never affects a call that is
    already in flight.

        client = Client("key_...", "secret", base_url("http://localhost:8080"))
        tenants, total = client.tenant.list(Context.background())
    """

    def __init__(self, key: str, secret: str, *options: Option):
        """
        Initialize the client.

        Args:
            key: API key identifying the caller
            secret: API secret used to sign requests
            *options: Configuration options from zerogate.options

        Raises:
            ConfigurationError: If the credentials are empty or an option is invalid
        """
        if not key or not secret:
            raise ConfigurationError(ERR_EMPTY_CREDENTIALS)

        self._key = key
        self._secret = secret
        self._lock = threading.Lock()

        try:
            draft = apply_options(DEFAULT_CONFIG, options)
        except ConfigurationError as e:
            raise ConfigurationError(f"options parsing failed: {e}") from e

        self._config = ClientConfig.from_dict(draft)
        # Only a transport created here is closed when configure() replaces it
        self._owned_transport = self._config.transport if draft.get('transport') is None else None

        self.tenant = TenantService(self)

    @property
    def api_key(self) -> str:
        return self._key

    @property
    def config(self) -> ClientConfig:
        """Return the current configuration snapshot."""
        with self._lock:
            return self._config

    def configure(self, *options: Option):
        """
        Apply options to a live client.

        The options are applied to a copy of the current configuration; if one
        of them fails the client keeps its previous configuration. A default
        transport created by the client is closed once another one replaces it.
        """
        with self._lock:
            previous = self._config.transport
            self._config = ClientConfig.from_dict(apply_options(self._config.to_dict(), options))
            replaced = previous is self._owned_transport and previous is not self._config.transport
            if replaced:
                self._owned_transport = None
        if replaced:
            previous.close()

    def get_transport(self) -> Transport:
        """Return the transport used for the next call."""
        with self._lock:
            return self._config.transport

    def do_request(self, ctx: Optional[Context], method: str, path: str,
                   query: Optional[Query] = None, body: Any = None,
                   headers: Optional[Mapping[str, Any]] = None) -> APIResponse:
        """
        Make a signed HTTP request.

        Args:
            ctx: Cancellation context; None behaves like Context.background()
            method: GET, POST, PUT or DELETE
            path: URL path appended to the base URL
            query: Query parameters, a value may be a list for repeated keys
            body: bytes, a readable stream or any JSON-serializable value
                  (POST/PUT only, ignored otherwise)
            headers: Extra headers, overriding the client defaults

        Returns:
            APIResponse for status codes below 400

        Raises:
            APIError: If the server returned an error envelope
            SerializationError: If the body or an error response cannot be (de)serialized
            TransportError: If the request fails at the network level
            CancellationError: If ctx is cancelled or its deadline passes first
        """
        ctx = ctx if ctx is not None else Context.background()
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"unsupported HTTP method: {method}")

        config = self.config

        body_bytes = prepare_body(method, body)
        nonce = signer.new_nonce()

        url = config.base_url + path
        query_string = encode_query(query)
        if query_string:
            url += '?' + query_string

        request_headers = merge_headers(config.headers, normalize_headers(headers))
        # Takes precedence over a session's library default User-Agent
        if config.user_agent and HEADER_USER_AGENT not in request_headers:
            request_headers[HEADER_USER_AGENT] = config.user_agent
        try:
            prepared = prepare_request(
                config.transport,
                requests.Request(method, url, headers=request_headers, data=body_bytes),
            )
        except (requests.RequestException, ValueError) as e:
            raise TransportError(f"ZeroGate request creation failed: {e}") from e

        url_path = unquote(urlsplit(prepared.url).path)
        signature = signer.sign(self._secret, method, url_path, nonce, body_bytes)
        prepared.headers[HEADER_AUTHORIZATION] = signer.format_authorization(
            self._key, signature, nonce
        )
        if not prepared.headers.get(HEADER_CONTENT_TYPE):
            prepared.headers[HEADER_CONTENT_TYPE] = CONTENT_TYPE_JSON

        if config.debug:
            config.logger.debug("\n%s", self._redact(dump_request(prepared)))

        response = self._perform(ctx, config, prepared)
        try:
            try:
                content = response.content
            except (requests.RequestException, OSError) as e:
                raise TransportError(f"response read failed: {e}") from e
        finally:
            response.close()

        if config.debug:
            config.logger.debug("\n%s", self._redact(dump_response(response, content)))

        return classify_response(
            response.status_code,
            content,
            status=f"{response.status_code} {response.reason or ''}".rstrip(),
            headers=response.headers,
        )

    def get(self, ctx: Optional[Context], path: str, query: Optional[Query] = None,
            headers: Optional[Mapping[str, Any]] = None) -> APIResponse:
        """Make authenticated GET request."""
        return self.do_request(ctx, 'GET', path, query=query, headers=headers)

    def post(self, ctx: Optional[Context], path: str, body: Any = None,
             query: Optional[Query] = None, headers: Optional[Mapping[str, Any]] = None) -> APIResponse:
        """Make authenticated POST request."""
        return self.do_request(ctx, 'POST', path, query=query, body=body, headers=headers)

    def put(self, ctx: Optional[Context], path: str, body: Any = None,
            query: Optional[Query] = None, headers: Optional[Mapping[str, Any]] = None) -> APIResponse:
        """Make authenticated PUT request."""
        return self.do_request(ctx, 'PUT', path, query=query, body=body, headers=headers)

    def delete(self, ctx: Optional[Context], path: str, query: Optional[Query] = None,
               headers: Optional[Mapping[str, Any]] = None) -> APIResponse:
        """Make authenticated DELETE request."""
        return self.do_request(ctx, 'DELETE', path, query=query, headers=headers)

    def _perform(self, ctx: Context, config: ClientConfig,
                 prepared: requests.PreparedRequest) -> requests.Response:
        err = ctx.err()
        if err is not None:
            raise err

        timeout = config.timeout
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = max(min(timeout, remaining), MIN_TIMEOUT)

        transport = config.transport
        if not ctx.cancellable:
            return self._send(ctx, transport, prepared, timeout)

        # Run the exchange on a worker so the caller can return as soon as
        # the context is done.
        future = Future()
        finished = threading.Event()
        future.add_done_callback(lambda _: finished.set())
        unregister = ctx.on_done(finished.set)

        def run():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self._send(ctx, transport, prepared, timeout))
            except BaseException as e:
                future.set_exception(e)

        threading.Thread(target=run, name="zerogate-request", daemon=True).start()
        try:
            while not finished.wait(ctx.remaining()):
                if ctx.done():
                    break
        finally:
            unregister()

        if future.done():
            return future.result()

        future.add_done_callback(_close_abandoned)
        raise ctx.err() or DeadlineExceeded()

    @staticmethod
    def _send(ctx: Context, transport: Transport, prepared: requests.PreparedRequest,
              timeout: Optional[float]) -> requests.Response:
        try:
            return transport.perform(prepared, timeout)
        except requests.Timeout as e:
            err = ctx.err()
            if err is not None:
                raise err from e
            raise TransportError(f"ZeroGate request failed: {e}") from e
        except (requests.RequestException, OSError) as e:
            raise TransportError(f"ZeroGate request failed: {e}") from e

    def _redact(self, dump: str) -> str:
        return redact(dump, (self._key, self._secret))

    def close(self):
        """Close the transport if it holds resources."""
        close = getattr(self.get_transport(), 'close', None)
        if callable(close):
            close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def _close_abandoned(future: Future):
    if future.exception() is None:
        future.result().close()


def prepare_body(method: str, body: Any) -> Optional[bytes]:
    """
    Materialize a request body into the bytes that get signed and sent.

    Only POST and PUT carry a body. A missing body becomes ``{}``, bytes pass
    through unchanged, a stream is read to the end and closed, and anything
    else is encoded as JSON.
    """
    if method.upper() not in SIGNED_BODY_METHODS:
        return None
    if body is None:
        return EMPTY_JSON_BODY
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if callable(getattr(body, 'read', None)):
        try:
            data = body.read()
        except (OSError, ValueError) as e:
            raise SerializationError(f"error reading body: {e}") from e
        finally:
            close = getattr(body, 'close', None)
            if callable(close):
                close()
        return data.encode('utf-8') if isinstance(data, str) else bytes(data)
    if dataclasses.is_dataclass(body) and not isinstance(body, type):
        body = dataclasses.asdict(body)
    try:
        return json.dumps(body, separators=(',', ':')).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise SerializationError(f"error marshalling body to JSON: {e}") from e


def encode_query(query: Optional[Query]) -> str:
    """URL-encode query parameters sorted by key; list values repeat the key."""
    if not query:
        return ""
    pairs = []
    for key in sorted(query):
        values = query[key]
        if isinstance(values, str):
            values = (values,)
        for value in values:
            pairs.append((key, value))
    return urlencode(pairs)


def merge_headers(defaults: Mapping[str, Sequence[str]],
                  overrides: Mapping[str, Sequence[str]]) -> CaseInsensitiveDict:
    """Overlay call headers on the client defaults, matching names case-insensitively."""
    merged = CaseInsensitiveDict()
    for source in (defaults, overrides):
        for name, values in source.items():
            merged[name] = ", ".join(values)
    return merged


def redact(text: str, secrets: Sequence[str]) -> str:
    """Replace every occurrence of each secret with the redaction marker."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def _decode_body(body: Union[bytes, str, None]) -> str:
    if body is None:
        return ""
    if isinstance(body, bytes):
        return body.decode('utf-8', errors='replace')
    return body


def _format_headers(headers: Mapping[str, str]) -> str:
    return "".join(f"{name}: {value}\r\n" for name, value in headers.items())


def dump_request(prepared: requests.PreparedRequest) -> str:
    """Render a prepared request as HTTP/1.1 wire text."""
    parts = urlsplit(prepared.url)
    target = parts.path or '/'
    if parts.query:
        target += '?' + parts.query
    return (
        f"{prepared.method} {target} HTTP/1.1\r\n"
        f"Host: {parts.netloc}\r\n"
        f"{_format_headers(prepared.headers)}\r\n"
        f"{_decode_body(prepared.body)}"
    )


def dump_response(response: requests.Response, content: bytes) -> str:
    """Render a response as HTTP/1.1 wire text."""
    return (
        f"HTTP/1.1 {response.status_code} {response.reason or ''}".rstrip() + "\r\n"
        f"{_format_headers(response.headers)}\r\n"
        f"{_decode_body(content)}"
    )
