"""
ZeroGate API client.

A Python client that signs every request to the ZeroGate API with the
account's API key and secret (HMAC-SHA512).

Example usage:
    from zerogate import Client, Context
    from zerogate.options import base_url

    client = Client("key_...", "secret", base_url("http://localhost:8080"))
    tenants, total = client.tenant.list(Context.background())
"""

__version__ = "1.0.0"

from .client import Client, ClientConfig
from .context import Context
from .exceptions import (
    ZeroGateError,
    ConfigurationError,
    InvalidAuthorizationError,
    SerializationError,
    TransportError,
    CancellationError,
    Canceled,
    DeadlineExceeded,
    APIError
)
from .models import (
    APIResponse,
    ErrorResponse,
    SuccessResponse,
    SuccessPagingResponse
)
from .signer import sign, verify
from .tenant import (
    Tenant,
    TenantCreateRequest,
    TenantUpdateRequest,
    TenantService
)
from .transport import SessionTransport, Transport

__author__ = "ZeroGate"
__all__ = [
    "Client",
    "ClientConfig",
    "Context",
    "ZeroGateError",
    "ConfigurationError",
    "InvalidAuthorizationError",
    "SerializationError",
    "TransportError",
    "CancellationError",
    "Canceled",
    "DeadlineExceeded",
    "APIError",
    "APIResponse",
    "ErrorResponse",
    "SuccessResponse",
    "SuccessPagingResponse",
    "sign",
    "verify",
    "Tenant",
    "TenantCreateRequest",
    "TenantUpdateRequest",
    "TenantService",
    "SessionTransport",
    "Transport"
]
