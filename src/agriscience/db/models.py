"""SQLAlchemy ORM models — the relational schema behind SqlStorage.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] +
mapped_column). Each class = one table. Column names match the snake_case
field names of the pydantic records, so a row converts to its record by
reading its columns.

Key concepts:
- String UUID primary keys generated by the store (portable across
  PostgreSQL and SQLite)
- generic JSON columns for free-form objects (analysis results, thresholds)
- no server defaults for timestamps: the store stamps them, so both
  backends agree on when a write happened
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


ID = String(36)


# ══════════════════════════════════════════════════════════════
# Accounts & catalog
# ══════════════════════════════════════════════════════════════


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    linked_agronomist_id: Mapped[Optional[str]] = mapped_column(ID)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Crop(Base):
    __tablename__ = "crops"

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    scientific_name: Mapped[Optional[str]] = mapped_column(String(200))
    category: Mapped[Optional[str]] = mapped_column(String(100))
    ibge_code: Mapped[Optional[str]] = mapped_column(String(20))
    emoji: Mapped[Optional[str]] = mapped_column(String(16))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ManagementProtocol(Base):
    __tablename__ = "management_protocols"

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ══════════════════════════════════════════════════════════════
# Planning: recommendations, productivity, geospatial
# ══════════════════════════════════════════════════════════════


class Recommendation(Base):
    __tablename__ = "recommendations"
    __table_args__ = (Index("ix_recommendations_user", "user_id"),)

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(ID, nullable=False)
    crop_id: Mapped[str] = mapped_column(ID, nullable=False)
    protocol_id: Mapped[str] = mapped_column(ID, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(40), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    scheduled_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ProductivityCalculation(Base):
    __tablename__ = "productivity_calculations"
    __table_args__ = (Index("ix_calculations_user", "user_id"),)

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(ID, nullable=False)
    crop_id: Mapped[str] = mapped_column(ID, nullable=False)
    municipality: Mapped[str] = mapped_column(String(200), nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    area: Mapped[float] = mapped_column(Float, nullable=False)
    ibge_yield: Mapped[Optional[float]] = mapped_column(Float)
    estimated_production: Mapped[Optional[float]] = mapped_column(Float)
    estimated_value: Mapped[Optional[float]] = mapped_column(Float)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class GeospatialAnalysis(Base):
    __tablename__ = "geospatial_analysis"
    __table_args__ = (Index("ix_geospatial_user", "user_id"),)

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(ID, nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    file_name: Mapped[Optional[str]] = mapped_column(String(255))
    file_type: Mapped[Optional[str]] = mapped_column(String(50))
    file_content: Mapped[Optional[str]] = mapped_column(Text)
    analysis_results: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ══════════════════════════════════════════════════════════════
# Monitoring: fields, readings, alerts, subscriptions
# ══════════════════════════════════════════════════════════════


class CropField(Base):
    __tablename__ = "crop_fields"
    __table_args__ = (Index("ix_crop_fields_user", "user_id"),)

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(ID, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    crop_id: Mapped[str] = mapped_column(ID, nullable=False)
    area: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    planting_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    expected_harvest_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    growth_stage: Mapped[str] = mapped_column(String(20), nullable=False, default="planted")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class MonitoringReading(Base):
    """One sensor reading. Append-only."""

    __tablename__ = "monitoring_data"
    __table_args__ = (
        Index("ix_monitoring_data_field_ts", "field_id", "timestamp"),
    )

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    field_id: Mapped[str] = mapped_column(ID, nullable=False)
    sensor_type: Mapped[str] = mapped_column(String(30), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Alert(Base):
    __tablename__ = "alerts"
    __table_args__ = (Index("ix_alerts_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(ID, nullable=False)
    field_id: Mapped[Optional[str]] = mapped_column(ID)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    action_required: Mapped[Optional[str]] = mapped_column(Text)
    trigger_value: Mapped[Optional[float]] = mapped_column(Float)
    threshold_value: Mapped[Optional[float]] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class AlertSubscription(Base):
    __tablename__ = "alert_subscriptions"
    __table_args__ = (Index("ix_alert_subscriptions_user", "user_id"),)

    id: Mapped[str] = mapped_column(ID, primary_key=True)
    user_id: Mapped[str] = mapped_column(ID, nullable=False)
    alert_type: Mapped[str] = mapped_column(String(20), nullable=False)
    field_id: Mapped[Optional[str]] = mapped_column(ID)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notification_method: Mapped[str] = mapped_column(String(10), nullable=False, default="app")
    threshold_settings: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
