"""
Tenant endpoints of the ZeroGate API.
"""

from dataclasses import dataclass
from typing import List, Tuple

from .exceptions import SerializationError
from .models import AuditBase, Base, SuccessPagingResponse, SuccessResponse


@dataclass
class Tenant(Base, AuditBase):
    """ZeroGate tenant."""
    name: str = ""
    description: str = ""
    organization: str = ""


@dataclass
class TenantCreateRequest:
    name: str
    description: str = ""


@dataclass
class TenantUpdateRequest:
    id: str
    name: str
    description: str = ""


class TenantService:
    """Create, list and update tenants."""

    def __init__(self, client):
        self.client = client

    def create(self, ctx, request: TenantCreateRequest) -> Tenant:
        """Create a new tenant."""
        res = self.client.post(ctx, "/tenants", body=request)
        return self._decode(SuccessResponse, res.body).data

    def list(self, ctx) -> Tuple[List[Tenant], int]:
        """Return all tenants and their total count."""
        res = self.client.get(ctx, "/tenants")
        page = self._decode(SuccessPagingResponse, res.body)
        return page.data, page.total

    def update(self, ctx, tenant_id: str, request: TenantUpdateRequest) -> Tenant:
        """Update the tenant."""
        res = self.client.put(ctx, f"/tenants/{tenant_id}", body=request)
        return self._decode(SuccessResponse, res.body).data

    @staticmethod
    def _decode(envelope, body: bytes):
        try:
            return envelope.decode(body, Tenant.from_dict)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"failed to unmarshal tenant JSON data: {e}") from e
