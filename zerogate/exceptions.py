"""
Custom exceptions for the ZeroGate API client.
"""


class ZeroGateError(Exception):
    """Base exception for ZeroGate client errors."""
    pass


class ConfigurationError(ZeroGateError):
    """Raised when client credentials or options are invalid."""
    pass


class InvalidAuthorizationError(ZeroGateError):
    """Raised when an Authorization header cannot be parsed."""
    pass


class SerializationError(ZeroGateError):
    """Raised when a body cannot be encoded or a response cannot be decoded."""
    pass


class TransportError(ZeroGateError):
    """Raised when the HTTP request fails at the network level."""
    pass


class CancellationError(ZeroGateError):
    """Raised when the call's context is done before the response arrives."""
    pass


class Canceled(CancellationError):
    """Raised when the context was explicitly cancelled."""

    def __init__(self, message="context canceled"):
        super().__init__(message)


class DeadlineExceeded(CancellationError):
    """Raised when the context deadline elapsed."""

    def __init__(self, message="context deadline exceeded"):
        super().__init__(message)


class APIError(ZeroGateError):
    """
    Raised when the server answers with a status code of 400 or above.

    Attributes:
        status_code: HTTP status code of the response
        response: Decoded error envelope (models.ErrorResponse)
    """

    def __init__(self, status_code, response):
        self.status_code = status_code
        self.response = response
        super().__init__(self._render())

    @property
    def error_code(self):
        return self.response.error_code

    @property
    def error_message(self):
        return self.response.error_message

    def _render(self):
        if self.response.error_message and self.status_code > 0:
            return f"{self.response.error_message} ({self.status_code})"
        return f"unknown error ({self.status_code})"

    def __str__(self):
        return self._render()
