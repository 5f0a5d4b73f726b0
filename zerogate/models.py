"""
Data models shared by the client and the resource services.
"""

import json
from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from requests.structures import CaseInsensitiveDict

from .exceptions import SerializationError

T = TypeVar('T')


@dataclass(frozen=True)
class APIResponse:
    """Raw result of a successful (status < 400) call."""
    body: bytes
    status: str
    status_code: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)

    def json(self) -> Any:
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise SerializationError(f"failed to unmarshal response body: {e}") from e


@dataclass(frozen=True)
class ErrorResponse:
    """Error envelope returned by the server."""
    error_code: int = 0
    error_message: str = ""
    success: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ErrorResponse':
        return cls(
            error_code=int(data.get('error_code') or 0),
            error_message=str(data.get('error_message') or ""),
            success=bool(data.get('success', False)),
        )


def _load_object(body: bytes) -> Dict[str, Any]:
    data = json.loads(body)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def decode_error_response(body: bytes) -> ErrorResponse:
    """
    Decode an error envelope.

    Raises:
        SerializationError: If the body is not a JSON object of the expected shape
    """
    try:
        return ErrorResponse.from_dict(_load_object(body))
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to unmarshal response body: {e}") from e


@dataclass
class SuccessResponse(Generic[T]):
    """Success envelope wrapping a single resource."""
    data: Optional[T] = None
    success: bool = True

    @classmethod
    def decode(cls, body: bytes, factory: Callable[[Dict[str, Any]], T]) -> 'SuccessResponse[T]':
        data = _load_object(body)
        item = data.get('data')
        return cls(
            data=factory(item) if item is not None else None,
            success=bool(data.get('success', False)),
        )


@dataclass
class SuccessPagingResponse(Generic[T]):
    """Success envelope wrapping a page of resources and the overall total."""
    data: List[T] = field(default_factory=list)
    total: int = 0
    success: bool = True

    @classmethod
    def decode(cls, body: bytes, factory: Callable[[Dict[str, Any]], T]) -> 'SuccessPagingResponse[T]':
        data = _load_object(body)
        items = data.get('data') or []
        if not isinstance(items, list):
            raise ValueError("expected 'data' to be a JSON array")
        return cls(
            data=[factory(item) for item in items],
            total=int(data.get('total') or 0),
            success=bool(data.get('success', False)),
        )


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class Base:
    """Fields common to every stored entity."""
    id: str = ""
    created: int = 0
    updated: int = 0
    deleted_at: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls(**_known_fields(cls, data))


@dataclass
class TenantBase(Base):
    tenant: str = ""


@dataclass
class AuditBase:
    created_by: str = ""
    modified_by: str = ""
