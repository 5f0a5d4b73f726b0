#!/usr/bin/env python3
"""
Basic usage examples for the ZeroGate Python client.

This script demonstrates how to make signed requests to the ZeroGate API and
how the client reports errors.

Set ZEROGATE_API_KEY, ZEROGATE_API_SECRET and optionally ZEROGATE_BASE_URL
before running it.
"""

import logging
import os
import sys

from zerogate import (
    APIError,
    CancellationError,
    Client,
    Context,
    TenantCreateRequest,
    TenantUpdateRequest,
    ZeroGateError,
    sign,
)
from zerogate.options import base_url, debug


def main():
    """Run basic usage examples."""

    api_key = os.environ.get("ZEROGATE_API_KEY", "")
    api_secret = os.environ.get("ZEROGATE_API_SECRET", "")
    server_url = os.environ.get("ZEROGATE_BASE_URL", "http://localhost:8080/public/v1")

    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    print("=== ZeroGate Python Client Basic Usage Examples ===\n")

    # Create client
    print("1. Creating client...")
    try:
        client = Client(api_key, api_secret, base_url(server_url), debug(True))
    except ZeroGateError as e:
        print(f"   ✗ Client creation failed: {e}")
        return 1
    print(f"   Client created for: {client.config.base_url}")
    print(f"   API key: {api_key[:8]}...\n")

    with client:
        # Example 1: Signing without sending
        print("2. Computing a signature locally...")
        signature = sign(api_secret, "POST", "/public/v1/tenants", 1700000000, b'{"name":"Test"}')
        print(f"   Signature: {signature[:32]}...")
        print()

        # Example 2: Create a tenant
        print("3. Creating a tenant...")
        ctx, cancel = Context.with_timeout(Context.background(), 10)
        try:
            tenant = client.tenant.create(ctx, TenantCreateRequest(name="Example", description="example tenant"))
            print(f"   ✓ Created tenant {tenant.id} ({tenant.name})")
        except APIError as e:
            print(f"   ✗ API error: {e}")
            tenant = None
        except CancellationError as e:
            print(f"   ✗ Gave up: {e}")
            tenant = None
        finally:
            cancel()
        print()

        # Example 3: List tenants
        print("4. Listing tenants...")
        try:
            tenants, total = client.tenant.list(Context.background())
            print(f"   ✓ {total} tenant(s)")
            for item in tenants:
                print(f"   - {item.id}: {item.name}")
        except ZeroGateError as e:
            print(f"   ✗ List failed: {e}")
        print()

        # Example 4: Update the tenant
        if tenant is not None:
            print("5. Updating the tenant...")
            try:
                request = TenantUpdateRequest(id=tenant.id, name="Example (renamed)",
                                              description=tenant.description)
                updated = client.tenant.update(Context.background(), tenant.id, request)
                print(f"   ✓ Renamed to {updated.name}")
            except ZeroGateError as e:
                print(f"   ✗ Update failed: {e}")
            print()

        # Example 5: Error handling
        print("6. Demonstrating error handling...")
        try:
            client.get(Context.background(), "/does-not-exist")
        except APIError as e:
            print(f"   ✓ Server error decoded: {e} (code {e.error_code})")
        except ZeroGateError as e:
            print(f"   ✗ Request failed: {e}")

    print("\n=== Examples completed ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
