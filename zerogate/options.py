"""
Configuration options for the ZeroGate client.

Each option returns a callable that updates a draft configuration dict. The
client applies options in order, so a later option wins over an earlier one
for the same setting. An option raises ConfigurationError to reject a value.

    client = Client(key, secret, base_url("http://localhost:8080"), debug(True))
"""

import logging
from collections import abc
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union
from urllib.parse import urlsplit

import requests

from .exceptions import ConfigurationError
from .transport import SessionTransport

Option = Callable[[Dict[str, Any]], None]

HeaderValues = Union[str, Iterable[str]]


def transport(value) -> Option:
    """Use a custom transport (any object with a ``perform`` method)."""
    def apply(config):
        if not callable(getattr(value, 'perform', None)):
            raise ConfigurationError("transport must provide a perform(request, timeout) method")
        config['transport'] = value
    return apply


def http_client(session: requests.Session) -> Option:
    """Use a custom requests.Session for making API calls."""
    def apply(config):
        if not isinstance(session, requests.Session):
            raise ConfigurationError("http_client expects a requests.Session")
        config['transport'] = SessionTransport(session)
    return apply


def base_url(url: str) -> Option:
    """Override the default base URL used for API calls."""
    def apply(config):
        parts = urlsplit(url or "")
        if parts.scheme not in ('http', 'https') or not parts.netloc:
            raise ConfigurationError(f"invalid base URL: {url!r}")
        config['base_url'] = url.rstrip('/')
    return apply


def debug(enabled: bool) -> Option:
    """Enable request/response dumps on the client logger."""
    def apply(config):
        config['debug'] = bool(enabled)
    return apply


def user_agent(value: str) -> Option:
    """Set the User-Agent sent with every request; empty disables it."""
    def apply(config):
        config['user_agent'] = value or ""
    return apply


def timeout(seconds: float) -> Option:
    """Upper bound, in seconds, for a single network exchange."""
    def apply(config):
        if seconds is None or seconds <= 0:
            raise ConfigurationError("timeout must be positive")
        config['timeout'] = seconds
    return apply


def headers(values: Mapping[str, HeaderValues]) -> Option:
    """Default headers added to every request; call headers take precedence."""
    def apply(config):
        merged = dict(config.get('headers') or {})
        merged.update(normalize_headers(values))
        config['headers'] = merged
    return apply


def logger(value: Optional[logging.Logger]) -> Option:
    """Logger receiving the debug dumps."""
    def apply(config):
        if value is not None and not isinstance(value, logging.Logger):
            raise ConfigurationError("logger must be a logging.Logger")
        config['logger'] = value
    return apply


def normalize_headers(values: Optional[Mapping[str, HeaderValues]]) -> Dict[str, tuple]:
    """Copy a header mapping into ``{name: (value, ...)}`` form."""
    out = {}
    for name, value in (values or {}).items():
        if isinstance(value, str):
            out[str(name)] = (value,)
        elif isinstance(value, abc.Iterable) and not isinstance(value, (bytes, abc.Mapping)):
            items = tuple(value)
            if not all(isinstance(item, str) for item in items):
                raise ConfigurationError(f"header {name!r} values must be strings")
            out[str(name)] = items
        else:
            raise ConfigurationError(f"header {name!r} must be a string or a sequence of strings")
    return out


def apply_options(config: Dict[str, Any], options: Iterable[Option]) -> Dict[str, Any]:
    """Apply options in order to a copy of ``config`` and return the copy."""
    draft = dict(config)
    for option in options:
        option(draft)
    return draft
