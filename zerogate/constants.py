"""
Constants for the ZeroGate API client.
"""

from . import __version__

# HTTP Headers
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_USER_AGENT = "User-Agent"

CONTENT_TYPE_JSON = "application/json"

# Authorization header layout parsed by the server
AUTHORIZATION_FORMAT = "APIKey={key}, Signature={signature}, Nonce={nonce}"

# Methods whose body is part of the signed message
SIGNED_BODY_METHODS = frozenset(("POST", "PUT"))
SUPPORTED_METHODS = frozenset(("GET", "POST", "PUT", "DELETE"))

# Body sent with POST/PUT when the caller supplies none
EMPTY_JSON_BODY = b"{}"

# Replaces the API key and secret in debug dumps
REDACTED = "[**************]"

DEFAULT_BASE_URL = "https://api.zerogate.io/public/v1"
DEFAULT_USER_AGENT = f"zerogate-python/{__version__}"

# Default configuration values
DEFAULT_CONFIG = {
    'base_url': DEFAULT_BASE_URL,
    'user_agent': DEFAULT_USER_AGENT,
    'debug': False,
    'timeout': 30,              # HTTP timeout in seconds
}
