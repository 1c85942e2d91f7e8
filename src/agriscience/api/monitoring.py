"""Field monitoring API — crop fields and sensor readings.

Learn: Ingesting a reading is a plain store write. The push to the field
owner's socket is not done here: the store fires its post-commit listener
and the realtime notifier takes it from there. This route stays ignorant
of WebSockets entirely.

Readings can be posted for any field id (sensor gateways post on behalf of
a field, not of a user). Reading them back requires owning the field.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from agriscience.auth.dependencies import CurrentIdentity, get_current_user
from agriscience.dependencies import get_storage
from agriscience.schemas.monitoring import (
    SENSOR_TYPE_PATTERN,
    CropField,
    CropFieldCreate,
    CropFieldUpdate,
    MonitoringReading,
    MonitoringReadingCreate,
)
from agriscience.storage.base import Storage

router = APIRouter(prefix="/monitoring")


async def _owned_field(field_id: str, identity: CurrentIdentity, storage: Storage) -> CropField:
    field = await storage.get_crop_field(field_id)
    if not field or field.user_id != identity.user_id:
        raise HTTPException(status_code=404, detail="Field not found")
    return field


# ─── Fields ──────────────────────────────────────────────


@router.get("/fields", response_model=list[CropField])
async def list_fields(
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.list_crop_fields_by_user(identity.user_id)


@router.post("/fields", response_model=CropField, status_code=201)
async def create_field(
    body: CropFieldCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.create_crop_field(identity.user_id, body)


@router.put("/fields/{field_id}", response_model=CropField)
async def update_field(
    field_id: str,
    body: CropFieldUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_field(field_id, identity, storage)
    updated = await storage.update_crop_field(field_id, body.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=404, detail="Field not found")
    return updated


@router.delete("/fields/{field_id}", status_code=204)
async def delete_field(
    field_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await _owned_field(field_id, identity, storage)
    await storage.delete_crop_field(field_id)
    return Response(status_code=204)


# ─── Readings ────────────────────────────────────────────


@router.post("/data", response_model=MonitoringReading, status_code=201)
async def ingest_reading(
    body: MonitoringReadingCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Store a sensor reading. The field owner gets it pushed over /ws."""
    return await storage.create_monitoring_data(body)


@router.get("/data/{field_id}", response_model=list[MonitoringReading])
async def list_readings(
    field_id: str,
    sensor_type: Optional[str] = Query(None, alias="sensorType", pattern=SENSOR_TYPE_PATTERN),
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """All readings newest-first, or the latest 10 of one sensor type."""
    await _owned_field(field_id, identity, storage)
    if sensor_type:
        return await storage.get_latest_monitoring_data(field_id, sensor_type)
    return await storage.list_monitoring_data_by_field(field_id)
