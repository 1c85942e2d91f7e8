"""Pydantic schemas for field monitoring: fields, readings, alerts, subscriptions.

Learn: Readings are immutable once ingested (no update schema). Alerts are
created once and afterwards only their read/resolved flags flip, through
dedicated endpoints, so there is no AlertUpdate either.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from agriscience.schemas.base import ApiModel, reject_null

SENSOR_TYPES = (
    "soil_moisture",
    "soil_temperature",
    "air_temperature",
    "humidity",
    "ph",
    "nutrients",
    "weather",
)
ALERT_TYPES = ("weather", "pest", "disease", "soil", "irrigation", "harvest")
SEVERITIES = ("low", "medium", "high", "critical")
NOTIFICATION_METHODS = ("app", "email", "sms")

SENSOR_TYPE_PATTERN = rf"^({'|'.join(SENSOR_TYPES)})$"
ALERT_TYPE_PATTERN = rf"^({'|'.join(ALERT_TYPES)})$"
SEVERITY_PATTERN = rf"^({'|'.join(SEVERITIES)})$"
NOTIFICATION_METHOD_PATTERN = rf"^({'|'.join(NOTIFICATION_METHODS)})$"
GROWTH_STAGE_PATTERN = (
    r"^(planted|germination|vegetative|flowering|fruiting|maturation|harvest)$"
)
FIELD_STATUS_PATTERN = r"^(active|inactive|harvested)$"


# ─── Fields ──────────────────────────────────────────────


class CropFieldCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    crop_id: str
    area: float = Field(..., gt=0, description="Hectares")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    planting_date: Optional[datetime] = None
    expected_harvest_date: Optional[datetime] = None
    growth_stage: str = Field(default="planted", pattern=GROWTH_STAGE_PATTERN)
    status: str = Field(default="active", pattern=FIELD_STATUS_PATTERN)


class CropFieldUpdate(ApiModel):
    """Partial update: only fields present in the body are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    crop_id: Optional[str] = None
    area: Optional[float] = Field(None, gt=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    planting_date: Optional[datetime] = None
    expected_harvest_date: Optional[datetime] = None
    growth_stage: Optional[str] = Field(None, pattern=GROWTH_STAGE_PATTERN)
    status: Optional[str] = Field(None, pattern=FIELD_STATUS_PATTERN)

    @field_validator("name", "crop_id", "area", "growth_stage", "status")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class CropField(CropFieldCreate):
    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime


# ─── Monitoring readings ─────────────────────────────────


class MonitoringReadingCreate(ApiModel):
    field_id: str = Field(..., min_length=1)
    sensor_type: str = Field(..., pattern=SENSOR_TYPE_PATTERN)
    value: float
    unit: str = Field(..., min_length=1, max_length=50)


class MonitoringReading(MonitoringReadingCreate):
    id: str
    timestamp: datetime
    created_at: datetime


# ─── Alerts ──────────────────────────────────────────────


class AlertCreate(ApiModel):
    field_id: Optional[str] = None
    type: str = Field(..., pattern=ALERT_TYPE_PATTERN)
    severity: str = Field(..., pattern=SEVERITY_PATTERN)
    title: str = Field(..., min_length=1, max_length=500)
    message: str = Field(..., min_length=1)
    action_required: Optional[str] = None
    trigger_value: Optional[float] = None
    threshold_value: Optional[float] = None


class Alert(AlertCreate):
    id: str
    user_id: str
    is_read: bool = False
    is_resolved: bool = False
    created_at: datetime
    resolved_at: Optional[datetime] = None


class AlertAction(ApiModel):
    message: str
    alert: Alert


# ─── Subscriptions ───────────────────────────────────────


class AlertSubscriptionCreate(ApiModel):
    alert_type: str = Field(..., pattern=ALERT_TYPE_PATTERN)
    field_id: Optional[str] = None
    is_enabled: bool = True
    notification_method: str = Field(default="app", pattern=NOTIFICATION_METHOD_PATTERN)
    threshold_settings: Optional[dict[str, Any]] = None


class AlertSubscriptionUpdate(ApiModel):
    alert_type: Optional[str] = Field(None, pattern=ALERT_TYPE_PATTERN)
    field_id: Optional[str] = None
    is_enabled: Optional[bool] = None
    notification_method: Optional[str] = Field(None, pattern=NOTIFICATION_METHOD_PATTERN)
    threshold_settings: Optional[dict[str, Any]] = None

    @field_validator("alert_type", "is_enabled", "notification_method")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class AlertSubscription(AlertSubscriptionCreate):
    id: str
    user_id: str
    created_at: datetime
