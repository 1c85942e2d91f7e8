"""Alerts API — alerts and alert subscriptions.

Learn: Alerts only change through two idempotent flag flips:
- PUT /monitoring/alerts/{id}/read → isRead = true
- PUT /monitoring/alerts/{id}/resolve → isResolved = true, resolvedAt stamped once

Creating an alert pushes {"type": "new_alert"} to its owner through the
store's post-commit listener.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response

from agriscience.auth.dependencies import CurrentIdentity, get_current_user
from agriscience.dependencies import get_storage
from agriscience.schemas.monitoring import (
    Alert,
    AlertAction,
    AlertCreate,
    AlertSubscription,
    AlertSubscriptionCreate,
    AlertSubscriptionUpdate,
)
from agriscience.storage.base import Storage

logger = structlog.get_logger()

router = APIRouter(prefix="/monitoring")


async def _owned_alert(alert_id: str, identity: CurrentIdentity, storage: Storage) -> Alert:
    alert = await storage.get_alert(alert_id)
    if not alert or alert.user_id != identity.user_id:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


async def _owned_subscription(
    sub_id: str, identity: CurrentIdentity, storage: Storage
) -> AlertSubscription:
    sub = await storage.get_subscription(sub_id)
    if not sub or sub.user_id != identity.user_id:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return sub


# ─── Alerts ──────────────────────────────────────────────


@router.get("/alerts", response_model=list[Alert])
async def list_alerts(
    unread: bool = Query(False),
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.list_alerts_by_user(identity.user_id, unread_only=unread)


@router.post("/alerts", response_model=Alert, status_code=201)
async def create_alert(
    body: AlertCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    alert = await storage.create_alert(identity.user_id, body)
    logger.info("alert.created", alert_id=alert.id, severity=alert.severity, type=alert.type)
    return alert


@router.put("/alerts/{alert_id}/read", response_model=AlertAction)
async def mark_read(
    alert_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_alert(alert_id, identity, storage)
    alert = await storage.mark_alert_read(alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return AlertAction(message="Alert marked as read", alert=alert)


@router.put("/alerts/{alert_id}/resolve", response_model=AlertAction)
async def mark_resolved(
    alert_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_alert(alert_id, identity, storage)
    alert = await storage.mark_alert_resolved(alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    return AlertAction(message="Alert marked as resolved", alert=alert)


# ─── Subscriptions ───────────────────────────────────────


@router.get("/subscriptions", response_model=list[AlertSubscription])
async def list_subscriptions(
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.list_subscriptions_by_user(identity.user_id)


@router.post("/subscriptions", response_model=AlertSubscription, status_code=201)
async def create_subscription(
    body: AlertSubscriptionCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.create_subscription(identity.user_id, body)


@router.put("/subscriptions/{sub_id}", response_model=AlertSubscription)
async def update_subscription(
    sub_id: str,
    body: AlertSubscriptionUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_subscription(sub_id, identity, storage)
    updated = await storage.update_subscription(sub_id, body.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=404, detail="Subscription not found")
    return updated


@router.delete("/subscriptions/{sub_id}", status_code=204)
async def delete_subscription(
    sub_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_subscription(sub_id, identity, storage)
    await storage.delete_subscription(sub_id)
    return Response(status_code=204)
