"""WebSocket endpoint — authenticated push channel for monitoring data and alerts.

Learn: Clients connect to /ws and authenticate *in-band* by sending
{"type": "auth", "token": "<JWT>"}. The handler:
1. Accepts the socket (unauthenticated: it gets no targeted pushes)
2. Starts a keepalive task for this connection
3. Reads messages in arrival order; a valid auth message binds the
   connection to the token's user in the registry
4. On an invalid token: unregisters, reports the error, closes the socket
5. On disconnect: stops the keepalive and unregisters

Messages that aren't JSON are logged and ignored; JSON that isn't an auth
message is ignored silently. Neither gets a reply.
"""

import asyncio
import json
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from agriscience.auth.jwt import TokenError, verify_token
from agriscience.config import settings
from agriscience.dependencies import get_registry
from agriscience.events.types import WS_AUTH
from agriscience.realtime.registry import Connection, ConnectionRegistry

logger = structlog.get_logger()
router = APIRouter()


def _auth_token(message: Any) -> Optional[str]:
    """Return the token if `message` is a well-formed auth message."""
    if not isinstance(message, dict) or message.get("type") != WS_AUTH:
        return None
    token = message.get("token")
    if not isinstance(token, str) or not token:
        return None
    return token


async def _authenticate(
    connection: Connection, registry: ConnectionRegistry, token: str
) -> bool:
    """Run the auth handshake. Returns False if the connection must close."""
    try:
        payload = verify_token(token)
    except TokenError as e:
        previous = registry.unregister(connection)
        logger.info(
            "ws.auth_failed",
            connection_id=connection.id,
            previous_user_id=previous,
            reason=str(e),
        )
        await connection.send_json(
            {"type": WS_AUTH, "status": "error", "message": "Invalid token"}
        )
        return False

    user_id = payload["sub"]
    registry.bind(connection, user_id)
    await connection.send_json({"type": WS_AUTH, "status": "success"})
    logger.info("ws.authenticated", connection_id=connection.id, user_id=user_id)
    return True


@router.websocket("/ws")
async def realtime_websocket(
    websocket: WebSocket,
    registry: ConnectionRegistry = Depends(get_registry),
):
    """WebSocket endpoint for real-time monitoring data and alerts."""
    await websocket.accept()
    connection = Connection(websocket, send_timeout=settings.ws_send_timeout_seconds)
    logger.info("ws.connected", connection_id=connection.id)

    keepalive = asyncio.create_task(
        connection.keepalive(settings.ws_ping_interval_seconds)
    )

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None and message.get("bytes") is not None:
                raw = message["bytes"].decode("utf-8", errors="replace")
            if raw is None:
                continue

            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning(
                    "ws.malformed_message",
                    connection_id=connection.id,
                    error=str(e),
                    preview=raw[:80],
                )
                continue

            token = _auth_token(data)
            if token is None:
                continue

            if not await _authenticate(connection, registry, token):
                await websocket.close(code=1008)
                break
    except WebSocketDisconnect as e:
        logger.debug("ws.client_gone", connection_id=connection.id, code=e.code)
    finally:
        keepalive.cancel()
        user_id = registry.unregister(connection)
        logger.info("ws.disconnected", connection_id=connection.id, user_id=user_id)
