"""Write-triggered notifier — pushes new readings and alerts to their owners.

Learn: The notifier never touches the write path directly. At construction
it registers two post-commit listeners on the store. A listener only
schedules the delivery as a task and returns, so a slow or stalled socket
can never hold up the write (or the HTTP response) that triggered it.
Delivery is best-effort: no queue, no retry, no acknowledgement.

- reading created → field → field owner → {"type": "monitoring_data", "data": ...}
- alert created   → alert.user_id       → {"type": "new_alert", "alert": ...}

In-flight deliveries are tracked so they can be awaited (drain) or
cancelled at shutdown (aclose).
"""

import asyncio
from typing import Any, Coroutine

import structlog

from agriscience.events.types import (
    ALERT_CREATED,
    MONITORING_DATA_CREATED,
    WS_MONITORING_DATA,
    WS_NEW_ALERT,
)
from agriscience.realtime.registry import ConnectionRegistry
from agriscience.schemas.monitoring import Alert, MonitoringReading
from agriscience.storage.base import Storage

logger = structlog.get_logger()


class WriteNotifier:
    def __init__(self, storage: Storage, registry: ConnectionRegistry):
        self.storage = storage
        self.registry = registry
        self._pending: set[asyncio.Task] = set()
        storage.add_listener(MONITORING_DATA_CREATED, self.on_monitoring_data)
        storage.add_listener(ALERT_CREATED, self.on_alert)

    @property
    def pending(self) -> int:
        return len(self._pending)

    # ─── Listeners (called by the store after commit) ────

    async def on_monitoring_data(self, reading: MonitoringReading) -> None:
        self._spawn(self._push_reading(reading))

    async def on_alert(self, alert: Alert) -> None:
        self._spawn(self._push_alert(alert))

    # ─── Delivery ────────────────────────────────────────

    async def _push_reading(self, reading: MonitoringReading) -> None:
        field = await self.storage.get_crop_field(reading.field_id)
        if field is None:
            logger.debug("notify.field_unknown", field_id=reading.field_id, reading_id=reading.id)
            return

        delivered = await self.registry.send_to_user(
            field.user_id,
            {"type": WS_MONITORING_DATA, "data": reading.to_json()},
        )
        logger.debug(
            "notify.monitoring_data",
            user_id=field.user_id,
            reading_id=reading.id,
            delivered=delivered,
        )

    async def _push_alert(self, alert: Alert) -> None:
        delivered = await self.registry.send_to_user(
            alert.user_id,
            {"type": WS_NEW_ALERT, "alert": alert.to_json()},
        )
        logger.debug("notify.new_alert", user_id=alert.user_id, alert_id=alert.id, delivered=delivered)

    # ─── Task bookkeeping ────────────────────────────────

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "notify.delivery_failed",
                error=str(error),
                exc_info=(type(error), error, error.__traceback__),
            )

    async def drain(self) -> None:
        """Wait until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel deliveries still in flight (app shutdown)."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("notify.cancelled_pending", count=len(tasks))
