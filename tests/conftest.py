"""Test fixtures — a fresh in-memory app per test.

Learn: Testing pattern for the app factory:

1. Each test gets its own MemoryStorage, so there is nothing to roll back.
   Tests marked BOTH_BACKENDS also run against SqlStorage on in-memory SQLite.
2. create_app() takes the store and the IBGE client as arguments, so tests
   wire in their own instances instead of overriding dependencies.
3. The IBGE client runs over httpx.MockTransport. By default IBGE is "down"
   (503) and productivity falls back to the default yield; a test can swap
   in another handler by parametrizing `ibge_handler` directly.

Environment is set before anything from agriscience is imported: the
settings singleton is built at import time.
"""

import os

os.environ["AGRISCIENCE_REDIS_URL"] = ""
os.environ["AGRISCIENCE_BCRYPT_ROUNDS"] = "4"
os.environ["AGRISCIENCE_STORAGE_BACKEND"] = "memory"
os.environ["AGRISCIENCE_ENVIRONMENT"] = "development"

import uuid  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from agriscience.main import create_app  # noqa: E402
from agriscience.services.ibge import IbgeClient  # noqa: E402
from agriscience.storage.memory import MemoryStorage  # noqa: E402
from agriscience.storage.sql import SqlStorage  # noqa: E402

SIDRA_URL = "https://sidra.test"
LOCALITIES_URL = "https://localidades.test/api/v1/localidades"

MUNICIPALITIES_SP = [
    {"id": 3550308, "nome": "São Paulo"},
    {"id": 3509502, "nome": "Campinas"},
    {"id": 3543402, "nome": "Ribeirão Preto"},
]

SIDRA_ROWS = [
    {"NC": "Nível Territorial", "D1N": "Município", "D2N": "Ano", "D3N": "Variável", "D4N": "Produto", "V": "Valor"},
    {"NC": "6", "D1N": "Campinas (SP)", "D2N": "2023", "D3N": "Quantidade produzida", "D4N": "Soja (em grão)", "V": "12000"},
    {"NC": "6", "D1N": "Campinas (SP)", "D2N": "2023", "D3N": "Rendimento médio da produção", "D4N": "Soja (em grão)", "V": "3500"},
    {"NC": "6", "D1N": "Campinas (SP)", "D2N": "2023", "D3N": "Área colhida", "D4N": "Soja (em grão)", "V": "..."},
]


def ibge_down(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"message": "unavailable"})


def ibge_ok(request: httpx.Request) -> httpx.Response:
    """Answers like the real localities and SIDRA APIs for SP municipalities."""
    if request.url.host == "localidades.test":
        if request.url.path.endswith("/estados/SP/municipios"):
            return httpx.Response(200, json=MUNICIPALITIES_SP)
        return httpx.Response(200, json=[])
    if request.url.host == "sidra.test" and "/n6/3509502/" in request.url.path:
        return httpx.Response(200, json=SIDRA_ROWS)
    return httpx.Response(200, json=[SIDRA_ROWS[0]])


# Runs a test once per storage backend (SQL over in-memory SQLite)
BOTH_BACKENDS = pytest.mark.parametrize("storage", ["memory", "sql"], indirect=True)


@pytest.fixture()
def ibge_handler():
    return ibge_down


@pytest.fixture()
def storage(request):
    """MemoryStorage unless a test parametrizes it with BOTH_BACKENDS."""
    if getattr(request, "param", "memory") == "sql":
        return SqlStorage("sqlite+aiosqlite:///:memory:")
    return MemoryStorage()


@pytest.fixture()
def ibge_client(ibge_handler):
    return IbgeClient(
        sidra_url=SIDRA_URL,
        localities_url=LOCALITIES_URL,
        transport=httpx.MockTransport(ibge_handler),
    )


@pytest.fixture()
def app(storage, ibge_client):
    return create_app(storage=storage, ibge_client=ibge_client)


@pytest_asyncio.fixture()
async def client(app, storage):
    """HTTP client talking to the app in-process (no lifespan, no Redis).

    The store is started here since ASGITransport skips the lifespan.
    """
    await storage.startup()
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        await storage.shutdown()


@pytest.fixture()
def make_user(client):
    """Factory: register a user over the API → (user json, auth headers)."""

    async def _make(email=None, password="secret123", role="farmer", **extra):
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        r = await client.post(
            "/api/auth/register",
            json={
                "username": email.split("@")[0],
                "email": email,
                "password": password,
                "confirmPassword": password,
                "firstName": "Test",
                "lastName": "User",
                "role": role,
                **extra,
            },
        )
        assert r.status_code == 201, r.text
        body = r.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _make


@pytest_asyncio.fixture()
async def auth_headers(make_user):
    _, headers = await make_user()
    return headers
