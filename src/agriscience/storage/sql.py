"""SQL storage — SQLAlchemy 2.0 async ORM behind the Storage interface.

Learn: Each operation opens its own AsyncSession and commits before
returning, so post-commit listeners only ever see rows that are durable.
Records are built (id, timestamps) in Python first and then written, which
keeps stamping identical to MemoryStorage.

Works with PostgreSQL (asyncpg) in production and SQLite (aiosqlite) in
tests. The schema is created with metadata.create_all on startup.
"""

from datetime import datetime, timezone
from typing import Optional, Type, TypeVar

import structlog
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from agriscience.db import models as orm
from agriscience.db.engine import build_engine, build_session_factory
from agriscience.events.types import ALERT_CREATED, MONITORING_DATA_CREATED
from agriscience.schemas.base import ApiModel, new_id, utcnow
from agriscience.schemas.catalog import (
    Crop,
    CropCreate,
    ManagementProtocol,
    ProtocolCreate,
)
from agriscience.schemas.monitoring import (
    Alert,
    AlertCreate,
    AlertSubscription,
    AlertSubscriptionCreate,
    CropField,
    CropFieldCreate,
    MonitoringReading,
    MonitoringReadingCreate,
)
from agriscience.schemas.productivity import (
    CalculationCreate,
    GeospatialAnalysis,
    GeospatialCreate,
    ProductivityCalculation,
)
from agriscience.schemas.recommendation import Recommendation, RecommendationCreate
from agriscience.schemas.user import User, UserCreate
from agriscience.storage import seed
from agriscience.storage.base import LATEST_READINGS_LIMIT, Storage, StorageUnavailableError

logger = structlog.get_logger()

M = TypeVar("M", bound=ApiModel)


def _as_utc(value):
    # SQLite hands timestamps back without tzinfo; they were written as UTC
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_record(row: orm.Base, schema: Type[M]) -> M:
    return schema.model_validate(
        {column.key: _as_utc(getattr(row, column.key)) for column in row.__table__.columns}
    )


class SqlStorage(Storage):
    """Relational store. One session per operation."""

    def __init__(self, database_url: str, echo: bool = False, seed_catalog: bool = True) -> None:
        super().__init__()
        self.engine = build_engine(database_url, echo=echo)
        self.session_factory = build_session_factory(self.engine)
        self.seed_catalog = seed_catalog

    # ─── Lifecycle ───────────────────────────────────────

    async def startup(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(orm.Base.metadata.create_all)

        if self.seed_catalog:
            async with self.session_factory() as session:
                crop_count = await session.scalar(select(func.count()).select_from(orm.Crop))
            if not crop_count:
                for crop in seed.CROPS:
                    await self.create_crop(crop)
                for protocol in seed.PROTOCOLS:
                    await self.create_protocol(protocol)
                logger.info("storage.catalog_seeded", crops=len(seed.CROPS))

    async def shutdown(self) -> None:
        await self.engine.dispose()

    async def ping(self) -> None:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise StorageUnavailableError(f"Database connection failed: {e}") from e

    # ─── Helpers ─────────────────────────────────────────

    async def _insert(self, orm_cls: Type[orm.Base], record: M) -> M:
        async with self.session_factory() as session:
            session.add(orm_cls(**record.model_dump()))
            await session.commit()
        return record

    async def _get(self, orm_cls: Type[orm.Base], schema: Type[M], record_id: str) -> Optional[M]:
        async with self.session_factory() as session:
            row = await session.get(orm_cls, record_id)
            return _to_record(row, schema) if row is not None else None

    async def _select(self, schema: Type[M], stmt) -> list[M]:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [_to_record(row, schema) for row in result.scalars().all()]

    async def _update(
        self,
        orm_cls: Type[orm.Base],
        schema: Type[M],
        record_id: str,
        changes: dict,
        touch: bool,
    ) -> Optional[M]:
        async with self.session_factory() as session:
            row = await session.get(orm_cls, record_id)
            if row is None:
                return None
            for key, value in changes.items():
                setattr(row, key, value)
            if touch:
                row.updated_at = utcnow()
            await session.commit()
            return _to_record(row, schema)

    async def _delete(self, orm_cls: Type[orm.Base], record_id: str) -> bool:
        async with self.session_factory() as session:
            row = await session.get(orm_cls, record_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    # ─── Users ───────────────────────────────────────────

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self._get(orm.User, User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        users = await self._select(
            User, select(orm.User).where(func.lower(orm.User.email) == email.lower())
        )
        return users[0] if users else None

    async def create_user(self, data: UserCreate) -> User:
        now = utcnow()
        user = User(id=new_id(), created_at=now, updated_at=now, **data.model_dump())
        return await self._insert(orm.User, user)

    async def update_user(self, user_id: str, changes: dict) -> Optional[User]:
        return await self._update(orm.User, User, user_id, changes, touch=True)

    # ─── Catalog ─────────────────────────────────────────

    async def list_crops(self) -> list[Crop]:
        return await self._select(Crop, select(orm.Crop).order_by(orm.Crop.created_at))

    async def get_crop(self, crop_id: str) -> Optional[Crop]:
        return await self._get(orm.Crop, Crop, crop_id)

    async def create_crop(self, data: CropCreate) -> Crop:
        crop = Crop(id=new_id(), created_at=utcnow(), **data.model_dump())
        return await self._insert(orm.Crop, crop)

    async def list_protocols(self) -> list[ManagementProtocol]:
        return await self._select(
            ManagementProtocol,
            select(orm.ManagementProtocol).order_by(orm.ManagementProtocol.created_at),
        )

    async def get_protocol(self, protocol_id: str) -> Optional[ManagementProtocol]:
        return await self._get(orm.ManagementProtocol, ManagementProtocol, protocol_id)

    async def create_protocol(self, data: ProtocolCreate) -> ManagementProtocol:
        protocol = ManagementProtocol(id=new_id(), created_at=utcnow(), **data.model_dump())
        return await self._insert(orm.ManagementProtocol, protocol)

    # ─── Recommendations ─────────────────────────────────

    async def list_recommendations_by_user(self, user_id: str) -> list[Recommendation]:
        return await self._select(
            Recommendation,
            select(orm.Recommendation)
            .where(orm.Recommendation.user_id == user_id)
            .order_by(orm.Recommendation.created_at),
        )

    async def get_recommendation(self, rec_id: str) -> Optional[Recommendation]:
        return await self._get(orm.Recommendation, Recommendation, rec_id)

    async def create_recommendation(
        self, user_id: str, data: RecommendationCreate
    ) -> Recommendation:
        now = utcnow()
        rec = Recommendation(
            id=new_id(), user_id=user_id, created_at=now, updated_at=now, **data.model_dump()
        )
        return await self._insert(orm.Recommendation, rec)

    async def update_recommendation(self, rec_id: str, changes: dict) -> Optional[Recommendation]:
        return await self._update(orm.Recommendation, Recommendation, rec_id, changes, touch=True)

    async def delete_recommendation(self, rec_id: str) -> bool:
        return await self._delete(orm.Recommendation, rec_id)

    # ─── Productivity & geospatial ───────────────────────

    async def list_calculations_by_user(self, user_id: str) -> list[ProductivityCalculation]:
        return await self._select(
            ProductivityCalculation,
            select(orm.ProductivityCalculation)
            .where(orm.ProductivityCalculation.user_id == user_id)
            .order_by(orm.ProductivityCalculation.created_at),
        )

    async def create_calculation(
        self, user_id: str, data: CalculationCreate
    ) -> ProductivityCalculation:
        calc = ProductivityCalculation(
            id=new_id(), user_id=user_id, created_at=utcnow(), **data.model_dump()
        )
        return await self._insert(orm.ProductivityCalculation, calc)

    async def list_geospatial_by_user(self, user_id: str) -> list[GeospatialAnalysis]:
        return await self._select(
            GeospatialAnalysis,
            select(orm.GeospatialAnalysis)
            .where(orm.GeospatialAnalysis.user_id == user_id)
            .order_by(orm.GeospatialAnalysis.created_at),
        )

    async def create_geospatial(
        self,
        user_id: str,
        data: GeospatialCreate,
        analysis_results: Optional[dict] = None,
    ) -> GeospatialAnalysis:
        analysis = GeospatialAnalysis(
            id=new_id(),
            user_id=user_id,
            analysis_results=analysis_results,
            is_premium=True,
            created_at=utcnow(),
            **data.model_dump(),
        )
        return await self._insert(orm.GeospatialAnalysis, analysis)

    # ─── Fields ──────────────────────────────────────────

    async def list_crop_fields_by_user(self, user_id: str) -> list[CropField]:
        return await self._select(
            CropField,
            select(orm.CropField)
            .where(orm.CropField.user_id == user_id)
            .order_by(orm.CropField.created_at),
        )

    async def get_crop_field(self, field_id: str) -> Optional[CropField]:
        return await self._get(orm.CropField, CropField, field_id)

    async def create_crop_field(self, user_id: str, data: CropFieldCreate) -> CropField:
        now = utcnow()
        field = CropField(
            id=new_id(), user_id=user_id, created_at=now, updated_at=now, **data.model_dump()
        )
        return await self._insert(orm.CropField, field)

    async def update_crop_field(self, field_id: str, changes: dict) -> Optional[CropField]:
        return await self._update(orm.CropField, CropField, field_id, changes, touch=True)

    async def delete_crop_field(self, field_id: str) -> bool:
        return await self._delete(orm.CropField, field_id)

    # ─── Monitoring readings ─────────────────────────────

    async def list_monitoring_data_by_field(self, field_id: str) -> list[MonitoringReading]:
        return await self._select(
            MonitoringReading,
            select(orm.MonitoringReading)
            .where(orm.MonitoringReading.field_id == field_id)
            .order_by(orm.MonitoringReading.timestamp.desc(), orm.MonitoringReading.created_at.desc()),
        )

    async def get_latest_monitoring_data(
        self, field_id: str, sensor_type: Optional[str] = None
    ) -> list[MonitoringReading]:
        stmt = select(orm.MonitoringReading).where(orm.MonitoringReading.field_id == field_id)
        if sensor_type is not None:
            stmt = stmt.where(orm.MonitoringReading.sensor_type == sensor_type)
        stmt = stmt.order_by(
            orm.MonitoringReading.timestamp.desc(), orm.MonitoringReading.created_at.desc()
        ).limit(LATEST_READINGS_LIMIT)
        return await self._select(MonitoringReading, stmt)

    async def create_monitoring_data(self, data: MonitoringReadingCreate) -> MonitoringReading:
        now = utcnow()
        reading = MonitoringReading(id=new_id(), timestamp=now, created_at=now, **data.model_dump())
        await self._insert(orm.MonitoringReading, reading)
        await self._emit(MONITORING_DATA_CREATED, reading)
        return reading

    # ─── Alerts ──────────────────────────────────────────

    async def list_alerts_by_user(self, user_id: str, unread_only: bool = False) -> list[Alert]:
        stmt = select(orm.Alert).where(orm.Alert.user_id == user_id)
        if unread_only:
            stmt = stmt.where(orm.Alert.is_read.is_(False))
        return await self._select(Alert, stmt.order_by(orm.Alert.created_at.desc()))

    async def get_alert(self, alert_id: str) -> Optional[Alert]:
        return await self._get(orm.Alert, Alert, alert_id)

    async def create_alert(self, user_id: str, data: AlertCreate) -> Alert:
        alert = Alert(id=new_id(), user_id=user_id, created_at=utcnow(), **data.model_dump())
        await self._insert(orm.Alert, alert)
        await self._emit(ALERT_CREATED, alert)
        return alert

    async def mark_alert_read(self, alert_id: str) -> Optional[Alert]:
        return await self._update(orm.Alert, Alert, alert_id, {"is_read": True}, touch=False)

    async def mark_alert_resolved(self, alert_id: str) -> Optional[Alert]:
        async with self.session_factory() as session:
            row = await session.get(orm.Alert, alert_id)
            if row is None:
                return None
            if not (row.is_resolved and row.resolved_at is not None):
                row.is_resolved = True
                row.resolved_at = utcnow()
                await session.commit()
            return _to_record(row, Alert)

    # ─── Alert subscriptions ─────────────────────────────

    async def list_subscriptions_by_user(self, user_id: str) -> list[AlertSubscription]:
        return await self._select(
            AlertSubscription,
            select(orm.AlertSubscription)
            .where(orm.AlertSubscription.user_id == user_id)
            .order_by(orm.AlertSubscription.created_at),
        )

    async def get_subscription(self, sub_id: str) -> Optional[AlertSubscription]:
        return await self._get(orm.AlertSubscription, AlertSubscription, sub_id)

    async def create_subscription(
        self, user_id: str, data: AlertSubscriptionCreate
    ) -> AlertSubscription:
        sub = AlertSubscription(id=new_id(), user_id=user_id, created_at=utcnow(), **data.model_dump())
        return await self._insert(orm.AlertSubscription, sub)

    async def update_subscription(self, sub_id: str, changes: dict) -> Optional[AlertSubscription]:
        return await self._update(
            orm.AlertSubscription, AlertSubscription, sub_id, changes, touch=False
        )

    async def delete_subscription(self, sub_id: str) -> bool:
        return await self._delete(orm.AlertSubscription, sub_id)
