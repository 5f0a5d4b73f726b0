"""
Request signing for the ZeroGate API.

A request is authenticated with an HMAC-SHA512 signature over the canonical
message ``method + path + nonce`` followed, for POST and PUT only, by the exact
body bytes sent on the wire. The signature travels in the Authorization header
together with the API key and the nonce.
"""

import hashlib
import hmac
import re
import time
from typing import NamedTuple, Optional

from .constants import AUTHORIZATION_FORMAT, SIGNED_BODY_METHODS
from .exceptions import InvalidAuthorizationError

_AUTHORIZATION_RE = re.compile(
    r"^APIKey=(?P<key>[^,\s]+), Signature=(?P<signature>[0-9a-f]+), Nonce=(?P<nonce>\d+)$"
)


class Authorization(NamedTuple):
    """Fields carried by the Authorization header."""
    api_key: str
    signature: str
    nonce: int


def new_nonce() -> int:
    """Return the current Unix time in whole seconds."""
    return int(time.time())


def canonical_message(method: str, path: str, nonce: int, body: Optional[bytes] = None) -> bytes:
    """
    Build the message that gets signed.

    The body is only part of the message for POST and PUT requests; it is
    ignored for every other method.
    """
    method = method.upper()
    message = f"{method}{path}{nonce}".encode('utf-8')
    if method in SIGNED_BODY_METHODS and body:
        message += body
    return message


def sign(secret: str, method: str, path: str, nonce: int, body: Optional[bytes] = None) -> str:
    """
    Generate the request signature.

    Args:
        secret: API secret shared with the server
        method: HTTP method
        path: URL path of the request (without query string)
        nonce: Seconds since the Unix epoch
        body: Body bytes as transmitted (POST/PUT only)

    Returns:
        Lowercase hex-encoded HMAC-SHA512 digest
    """
    mac = hmac.new(
        secret.encode('utf-8'),
        canonical_message(method, path, nonce, body),
        hashlib.sha512
    )
    return mac.hexdigest()


def verify(secret: str, method: str, path: str, nonce: int, signature: str,
           body: Optional[bytes] = None) -> bool:
    """Check a signature using a constant-time comparison."""
    expected = sign(secret, method, path, nonce, body)
    return hmac.compare_digest(expected, signature)


def format_authorization(api_key: str, signature: str, nonce: int) -> str:
    return AUTHORIZATION_FORMAT.format(key=api_key, signature=signature, nonce=nonce)


def parse_authorization(value: str) -> Authorization:
    """
    Parse an Authorization header value produced by format_authorization.

    Raises:
        InvalidAuthorizationError: If the value does not follow the layout
    """
    match = _AUTHORIZATION_RE.match(value or "")
    if match is None:
        raise InvalidAuthorizationError(f"invalid Authorization header: {value!r}")
    return Authorization(match.group('key'), match.group('signature'), int(match.group('nonce')))
