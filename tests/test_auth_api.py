"""Auth tests.

Learn: Tests cover:
1. User registration, duplicate prevention, input validation
2. Login → JWT token + user
3. Protected /me endpoint (missing token → 401, bad token → 403)
4. Profile update
"""

import uuid

import pytest

from agriscience.auth.jwt import create_access_token


def _register_body(email, password="password_123", **overrides):
    body = {
        "username": "grower",
        "email": email,
        "password": password,
        "confirmPassword": password,
        "firstName": "Ana",
        "lastName": "Souza",
        "role": "farmer",
    }
    body.update(overrides)
    return body


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(client):
    """Register returns a token and the public user (no password hash)."""
    email = f"test-{uuid.uuid4().hex[:8]}@example.com"
    r = await client.post("/api/auth/register", json=_register_body(email))
    assert r.status_code == 201
    body = r.json()
    assert body["token"]
    user = body["user"]
    assert user["email"] == email
    assert user["firstName"] == "Ana"
    assert user["role"] == "farmer"
    assert user["isPremium"] is False
    assert "passwordHash" not in user
    assert "password_hash" not in user


@pytest.mark.asyncio
async def test_register_duplicate_email(client):
    """Can't register with the same email twice."""
    email = f"dup-{uuid.uuid4().hex[:8]}@example.com"

    r1 = await client.post("/api/auth/register", json=_register_body(email))
    assert r1.status_code == 201

    r2 = await client.post("/api/auth/register", json=_register_body(email.upper()))
    assert r2.status_code == 409
    assert r2.json()["message"] == "Email already registered"


@pytest.mark.asyncio
async def test_register_short_password(client):
    """Password must be at least 6 characters."""
    r = await client.post(
        "/api/auth/register",
        json=_register_body(f"short-{uuid.uuid4().hex[:8]}@example.com", password="abc"),
    )
    assert r.status_code == 400
    body = r.json()
    assert "password" in body["message"]
    assert ["body", "password"] in [e["loc"] for e in body["errors"]]


@pytest.mark.asyncio
async def test_register_password_mismatch(client):
    r = await client.post(
        "/api/auth/register",
        json=_register_body("mismatch@example.com", confirmPassword="different_123"),
    )
    assert r.status_code == 400
    assert "match" in r.json()["message"]


@pytest.mark.asyncio
async def test_register_unknown_role(client):
    r = await client.post(
        "/api/auth/register",
        json=_register_body("role@example.com", role="admin"),
    )
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client):
    """Login with valid credentials returns a token and the user."""
    email = f"login-{uuid.uuid4().hex[:8]}@example.com"
    await client.post("/api/auth/register", json=_register_body(email, "my_password_123"))

    r = await client.post(
        "/api/auth/login",
        json={"email": email, "password": "my_password_123"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["token"]
    assert body["user"]["email"] == email


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    """Login with wrong password returns 401."""
    email = f"wrong-{uuid.uuid4().hex[:8]}@example.com"
    await client.post("/api/auth/register", json=_register_body(email, "correct_password"))

    r = await client.post(
        "/api/auth/login",
        json={"email": email, "password": "wrong_password"},
    )
    assert r.status_code == 401
    assert r.json() == {"message": "Invalid credentials"}


@pytest.mark.asyncio
async def test_login_nonexistent_user(client):
    """Login with nonexistent email returns 401."""
    r = await client.post(
        "/api/auth/login",
        json={"email": "nobody@example.com", "password": "whatever"},
    )
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Protected Endpoint (/me)
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_token(client, make_user):
    """register → use JWT → /me returns user info."""
    user, headers = await make_user()

    r = await client.get("/api/auth/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["id"] == user["id"]
    assert r.json()["email"] == user["email"]


@pytest.mark.asyncio
async def test_me_without_token(client):
    """No Authorization header → 401."""
    r = await client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"message": "Access token required"}
    assert r.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_with_invalid_token(client):
    """Garbage bearer token → 403."""
    r = await client.get(
        "/api/auth/me",
        headers={"Authorization": "Bearer invalid.token.here"},
    )
    assert r.status_code == 403
    assert r.json() == {"message": "Invalid token"}


@pytest.mark.asyncio
async def test_me_with_expired_token(client, make_user):
    user, _ = await make_user()
    token = create_access_token(user["id"], expires_minutes=-5)

    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_me_for_vanished_user(client):
    """Valid token for a user the store doesn't know → 404."""
    token = create_access_token(str(uuid.uuid4()))
    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# Profile update
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_profile(client, make_user):
    _, headers = await make_user()

    r = await client.put("/api/auth/me", json={"firstName": "Beatriz"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["firstName"] == "Beatriz"
    assert r.json()["lastName"] == "User"
