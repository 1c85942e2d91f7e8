"""FastAPI dependencies for the app-scoped components.

Learn: The store, connection registry and IBGE client are built once by
create_app() and kept on app.state. Routes reach them through these
dependencies, so tests can build an app around their own instances.
"""

from fastapi import Request
from starlette.requests import HTTPConnection

from agriscience.realtime.registry import ConnectionRegistry
from agriscience.services.ibge import IbgeClient
from agriscience.storage.base import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_registry(connection: HTTPConnection) -> ConnectionRegistry:
    # HTTPConnection so the same dependency resolves for WebSocket routes
    return connection.app.state.registry


def get_ibge_client(request: Request) -> IbgeClient:
    return request.app.state.ibge
