"""Connection registry — which live WebSocket belongs to which user.

Learn: Push delivery is fire-and-forget. If the user has no authenticated
connection, or the socket died, the message is dropped; clients catch up
through the REST API.

Two maps are kept in step:
- forward:  user_id → Connection   (at most one per user, last auth wins)
- reverse:  connection id → user_id (so closing a socket is O(1) and only
  ever removes the entry that still points at *that* socket)

Only this class mutates the maps. Everything runs on the event loop and no
method awaits between reading and writing a map, so no locks are needed.
"""

import asyncio
import json
import uuid
from typing import Any, Optional

import structlog
from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

logger = structlog.get_logger()


class Connection:
    """One accepted WebSocket, authenticated or not."""

    def __init__(self, websocket: WebSocket, send_timeout: Optional[float] = None):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.user_id: Optional[str] = None
        self.send_timeout = send_timeout

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, user_id={self.user_id!r})"

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_json(self, payload: dict[str, Any]) -> bool:
        """Serialize and send. Returns False instead of raising if the socket is gone.

        A client that stops reading cannot stall the sender for longer than
        `send_timeout` seconds; the message is dropped instead.
        """
        if not self.is_open:
            return False
        try:
            await asyncio.wait_for(
                self.websocket.send_text(json.dumps(payload, default=str)),
                timeout=self.send_timeout,
            )
            return True
        except asyncio.TimeoutError:
            logger.warning("ws.send_timeout", connection_id=self.id, timeout=self.send_timeout)
            return False
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.info("ws.send_failed", connection_id=self.id, error=str(e))
            return False

    async def keepalive(self, interval: float) -> None:
        """Check the socket every `interval` seconds until it is no longer open.

        The ping frames themselves come from the server (uvicorn's
        ws_ping_interval); this loop only notices a dead transport. Once the
        socket is found closed the loop ends for good.
        """
        while True:
            await asyncio.sleep(interval)
            if not self.is_open:
                logger.debug("ws.keepalive_stopped", connection_id=self.id)
                return


class ConnectionRegistry:
    """Maps authenticated user ids to their single live connection."""

    def __init__(self) -> None:
        self._by_user: dict[str, Connection] = {}
        self._user_by_connection: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._by_user)

    def get(self, user_id: str) -> Optional[Connection]:
        return self._by_user.get(user_id)

    def user_for(self, connection: Connection) -> Optional[str]:
        return self._user_by_connection.get(connection.id)

    # ─── Mutations ───────────────────────────────────────

    def bind(self, connection: Connection, user_id: str) -> None:
        """Register `connection` for `user_id`, superseding any earlier one.

        A connection that re-authenticates as a different user is first
        detached from its previous identity.
        """
        self.unregister(connection)

        previous = self._by_user.get(user_id)
        if previous is not None:
            self._user_by_connection.pop(previous.id, None)
            previous.user_id = None
            logger.info(
                "ws.superseded",
                user_id=user_id,
                old_connection_id=previous.id,
                new_connection_id=connection.id,
            )

        self._by_user[user_id] = connection
        self._user_by_connection[connection.id] = user_id
        connection.user_id = user_id

    def unregister(self, connection: Connection) -> Optional[str]:
        """Drop `connection` if registered. Unknown connections are a no-op.

        Returns the user id it was registered under, if any.
        """
        user_id = self._user_by_connection.pop(connection.id, None)
        if user_id is None:
            return None
        if self._by_user.get(user_id) is connection:
            del self._by_user[user_id]
        connection.user_id = None
        return user_id

    # ─── Delivery ────────────────────────────────────────

    async def send_to_user(self, user_id: str, payload: dict[str, Any]) -> bool:
        """Deliver to the user's connection if one is registered and open."""
        connection = self._by_user.get(user_id)
        if connection is None or not connection.is_open:
            return False
        return await connection.send_json(payload)

    async def broadcast(self, payload: dict[str, Any]) -> int:
        """Deliver to every open registered connection. Returns how many got it."""
        delivered = 0
        for connection in list(self._by_user.values()):
            if connection.is_open and await connection.send_json(payload):
                delivered += 1
        return delivered

    async def close_all(self) -> None:
        """Close every registered connection (app shutdown)."""
        connections = list(self._by_user.values())
        self._by_user.clear()
        self._user_by_connection.clear()
        for connection in connections:
            connection.user_id = None
            if connection.is_open:
                try:
                    await connection.websocket.close(code=1001)
                except (RuntimeError, OSError) as e:
                    logger.debug("ws.close_failed", connection_id=connection.id, error=str(e))
        if connections:
            logger.info("ws.closed_all", count=len(connections))
