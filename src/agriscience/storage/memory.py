"""In-memory storage — plain dicts keyed by generated id.

Learn: Every method is async to honour the Storage contract, but none of
them awaits before the mutation is done. On a single event loop that makes
each write atomic with respect to other requests, so no locks are needed.
Post-commit listeners run after the dict has been updated.

Records are immutable pydantic models; updates replace them with a copy.
"""

from typing import Callable, Iterable, Optional, TypeVar

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
from agriscience.storage.base import LATEST_READINGS_LIMIT, Storage

M = TypeVar("M", bound=ApiModel)


def _newest_first(records: Iterable[M], key: Callable[[M], object]) -> list[M]:
    # dicts keep insertion order; reversing first makes the stable sort put
    # the later insert first when timestamps tie.
    return sorted(reversed(list(records)), key=key, reverse=True)


class MemoryStorage(Storage):
    """Dict-backed store. Data lives as long as the process."""

    def __init__(self, seed_catalog: bool = True) -> None:
        super().__init__()
        self.users: dict[str, User] = {}
        self.crops: dict[str, Crop] = {}
        self.protocols: dict[str, ManagementProtocol] = {}
        self.recommendations: dict[str, Recommendation] = {}
        self.calculations: dict[str, ProductivityCalculation] = {}
        self.geospatial: dict[str, GeospatialAnalysis] = {}
        self.crop_fields: dict[str, CropField] = {}
        self.monitoring_data: dict[str, MonitoringReading] = {}
        self.alerts: dict[str, Alert] = {}
        self.alert_subscriptions: dict[str, AlertSubscription] = {}

        if seed_catalog:
            for crop in seed.CROPS:
                self._insert_crop(crop)
            for protocol in seed.PROTOCOLS:
                self._insert_protocol(protocol)

    async def ping(self) -> None:
        """Always reachable, the data lives in this process."""

    # ─── Helpers ─────────────────────────────────────────

    @staticmethod
    def _patch(table: dict[str, M], record_id: str, changes: dict, touch: bool) -> Optional[M]:
        record = table.get(record_id)
        if record is None:
            return None
        if touch:
            changes = {**changes, "updated_at": utcnow()}
        updated = record.model_copy(update=changes)
        table[record_id] = updated
        return updated

    def _insert_crop(self, data: CropCreate) -> Crop:
        crop = Crop(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.crops[crop.id] = crop
        return crop

    def _insert_protocol(self, data: ProtocolCreate) -> ManagementProtocol:
        protocol = ManagementProtocol(id=new_id(), created_at=utcnow(), **data.model_dump())
        self.protocols[protocol.id] = protocol
        return protocol

    # ─── Users ───────────────────────────────────────────

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.lower()
        return next((u for u in self.users.values() if u.email.lower() == email), None)

    async def create_user(self, data: UserCreate) -> User:
        now = utcnow()
        user = User(id=new_id(), created_at=now, updated_at=now, **data.model_dump())
        self.users[user.id] = user
        return user

    async def update_user(self, user_id: str, changes: dict) -> Optional[User]:
        return self._patch(self.users, user_id, changes, touch=True)

    # ─── Catalog ─────────────────────────────────────────

    async def list_crops(self) -> list[Crop]:
        return list(self.crops.values())

    async def get_crop(self, crop_id: str) -> Optional[Crop]:
        return self.crops.get(crop_id)

    async def create_crop(self, data: CropCreate) -> Crop:
        return self._insert_crop(data)

    async def list_protocols(self) -> list[ManagementProtocol]:
        return list(self.protocols.values())

    async def get_protocol(self, protocol_id: str) -> Optional[ManagementProtocol]:
        return self.protocols.get(protocol_id)

    async def create_protocol(self, data: ProtocolCreate) -> ManagementProtocol:
        return self._insert_protocol(data)

    # ─── Recommendations ─────────────────────────────────

    async def list_recommendations_by_user(self, user_id: str) -> list[Recommendation]:
        return [r for r in self.recommendations.values() if r.user_id == user_id]

    async def get_recommendation(self, rec_id: str) -> Optional[Recommendation]:
        return self.recommendations.get(rec_id)

    async def create_recommendation(
        self, user_id: str, data: RecommendationCreate
    ) -> Recommendation:
        now = utcnow()
        rec = Recommendation(
            id=new_id(), user_id=user_id, created_at=now, updated_at=now, **data.model_dump()
        )
        self.recommendations[rec.id] = rec
        return rec

    async def update_recommendation(self, rec_id: str, changes: dict) -> Optional[Recommendation]:
        return self._patch(self.recommendations, rec_id, changes, touch=True)

    async def delete_recommendation(self, rec_id: str) -> bool:
        return self.recommendations.pop(rec_id, None) is not None

    # ─── Productivity & geospatial ───────────────────────

    async def list_calculations_by_user(self, user_id: str) -> list[ProductivityCalculation]:
        return [c for c in self.calculations.values() if c.user_id == user_id]

    async def create_calculation(
        self, user_id: str, data: CalculationCreate
    ) -> ProductivityCalculation:
        calc = ProductivityCalculation(
            id=new_id(), user_id=user_id, created_at=utcnow(), **data.model_dump()
        )
        self.calculations[calc.id] = calc
        return calc

    async def list_geospatial_by_user(self, user_id: str) -> list[GeospatialAnalysis]:
        return [g for g in self.geospatial.values() if g.user_id == user_id]

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
        self.geospatial[analysis.id] = analysis
        return analysis

    # ─── Fields ──────────────────────────────────────────

    async def list_crop_fields_by_user(self, user_id: str) -> list[CropField]:
        return [f for f in self.crop_fields.values() if f.user_id == user_id]

    async def get_crop_field(self, field_id: str) -> Optional[CropField]:
        return self.crop_fields.get(field_id)

    async def create_crop_field(self, user_id: str, data: CropFieldCreate) -> CropField:
        now = utcnow()
        field = CropField(
            id=new_id(), user_id=user_id, created_at=now, updated_at=now, **data.model_dump()
        )
        self.crop_fields[field.id] = field
        return field

    async def update_crop_field(self, field_id: str, changes: dict) -> Optional[CropField]:
        return self._patch(self.crop_fields, field_id, changes, touch=True)

    async def delete_crop_field(self, field_id: str) -> bool:
        return self.crop_fields.pop(field_id, None) is not None

    # ─── Monitoring readings ─────────────────────────────

    async def list_monitoring_data_by_field(self, field_id: str) -> list[MonitoringReading]:
        return _newest_first(
            (d for d in self.monitoring_data.values() if d.field_id == field_id),
            key=lambda d: d.timestamp,
        )

    async def get_latest_monitoring_data(
        self, field_id: str, sensor_type: Optional[str] = None
    ) -> list[MonitoringReading]:
        readings = (
            d
            for d in self.monitoring_data.values()
            if d.field_id == field_id and (sensor_type is None or d.sensor_type == sensor_type)
        )
        return _newest_first(readings, key=lambda d: d.timestamp)[:LATEST_READINGS_LIMIT]

    async def create_monitoring_data(self, data: MonitoringReadingCreate) -> MonitoringReading:
        now = utcnow()
        reading = MonitoringReading(id=new_id(), timestamp=now, created_at=now, **data.model_dump())
        self.monitoring_data[reading.id] = reading
        await self._emit(MONITORING_DATA_CREATED, reading)
        return reading

    # ─── Alerts ──────────────────────────────────────────

    async def list_alerts_by_user(self, user_id: str, unread_only: bool = False) -> list[Alert]:
        return _newest_first(
            (
                a
                for a in self.alerts.values()
                if a.user_id == user_id and not (unread_only and a.is_read)
            ),
            key=lambda a: a.created_at,
        )

    async def get_alert(self, alert_id: str) -> Optional[Alert]:
        return self.alerts.get(alert_id)

    async def create_alert(self, user_id: str, data: AlertCreate) -> Alert:
        alert = Alert(id=new_id(), user_id=user_id, created_at=utcnow(), **data.model_dump())
        self.alerts[alert.id] = alert
        await self._emit(ALERT_CREATED, alert)
        return alert

    async def mark_alert_read(self, alert_id: str) -> Optional[Alert]:
        return self._patch(self.alerts, alert_id, {"is_read": True}, touch=False)

    async def mark_alert_resolved(self, alert_id: str) -> Optional[Alert]:
        alert = self.alerts.get(alert_id)
        if alert is None:
            return None
        if alert.is_resolved and alert.resolved_at is not None:
            return alert
        return self._patch(
            self.alerts, alert_id, {"is_resolved": True, "resolved_at": utcnow()}, touch=False
        )

    # ─── Alert subscriptions ─────────────────────────────

    async def list_subscriptions_by_user(self, user_id: str) -> list[AlertSubscription]:
        return [s for s in self.alert_subscriptions.values() if s.user_id == user_id]

    async def get_subscription(self, sub_id: str) -> Optional[AlertSubscription]:
        return self.alert_subscriptions.get(sub_id)

    async def create_subscription(
        self, user_id: str, data: AlertSubscriptionCreate
    ) -> AlertSubscription:
        sub = AlertSubscription(id=new_id(), user_id=user_id, created_at=utcnow(), **data.model_dump())
        self.alert_subscriptions[sub.id] = sub
        return sub

    async def update_subscription(self, sub_id: str, changes: dict) -> Optional[AlertSubscription]:
        return self._patch(self.alert_subscriptions, sub_id, changes, touch=False)

    async def delete_subscription(self, sub_id: str) -> bool:
        return self.alert_subscriptions.pop(sub_id, None) is not None
