"""
Classification of HTTP responses into results or errors.
"""

from typing import Mapping, Optional

from requests.structures import CaseInsensitiveDict

from .exceptions import APIError
from .models import APIResponse, decode_error_response

# Responses at or above this status are errors
ERROR_STATUS_THRESHOLD = 400


def classify_response(status_code: int, body: bytes, status: str = "",
                      headers: Optional[Mapping[str, str]] = None) -> APIResponse:
    """
    Turn a raw response into an APIResponse, or raise the server's error.

    Decoding the payload of a successful response is left to the caller.

    Raises:
        APIError: If status_code >= 400 and the body is a valid error envelope
        SerializationError: If status_code >= 400 and the body cannot be decoded
    """
    if status_code >= ERROR_STATUS_THRESHOLD:
        raise APIError(status_code, decode_error_response(body))

    return APIResponse(
        body=body,
        status=status,
        status_code=status_code,
        headers=CaseInsensitiveDict(headers or {}),
    )
