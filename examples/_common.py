"""
Shared helpers for AgriScience examples.

Handles the health check and authentication (register) so each example
can focus on its specific workflow.
"""

import sys
import uuid

import httpx

ROOT = "http://localhost:8000"
BASE = f"{ROOT}/api"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{ROOT}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {ROOT}")
        print("Start it with:  agriscience serve --reload")
        sys.exit(1)

    health = resp.json()
    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}: {health.get('error')}")
        sys.exit(1)

    print("Backend health:")
    print(f"  Storage: {health['checks']['storage']}")
    print(f"  Redis:   {health['checks']['redis']}")


def authenticate(role: str = "farmer") -> str:
    """Register a fresh user and return its bearer token.

    Uses a unique email per run so examples are idempotent.
    """
    run_id = uuid.uuid4().hex[:8]
    password = "demo-password-123"

    resp = httpx.post(
        f"{BASE}/auth/register",
        json={
            "username": f"demo-{run_id}",
            "email": f"demo-{run_id}@example.com",
            "password": password,
            "confirmPassword": password,
            "firstName": "Demo",
            "lastName": run_id,
            "role": role,
        },
        timeout=10,
    )
    if resp.status_code != 201:
        print(f"ERROR: Registration failed: {resp.status_code} {resp.text}")
        sys.exit(1)

    return resp.json()["token"]


def create_client() -> httpx.Client:
    """Check backend, authenticate, and return an httpx Client with auth headers."""
    check_backend()
    token = authenticate()
    print("  Auth:    ✓ (JWT)")
    return httpx.Client(
        base_url=BASE,
        timeout=15,
        headers={"Authorization": f"Bearer {token}"},
    )
