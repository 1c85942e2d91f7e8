"""Storage interface — the repository every route and service talks to.

Learn: Two implementations share this contract:
- MemoryStorage: dicts in process memory (default, zero setup)
- SqlStorage: SQLAlchemy async ORM (PostgreSQL in production)

Contract shared by both:
- ids are generated here, timestamps are stamped here (never by callers)
- update/mark operations on a missing id return None, never raise
- delete returns True iff a record existed
- readings and alerts list newest-first

Post-commit listeners: a component (the realtime notifier) registers an
async callback for an event type from agriscience.events.types. The store
awaits every listener after the write has committed. A failing listener is
logged and dropped; it must never fail the write that triggered it.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Awaitable, Callable, Optional

import structlog

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

logger = structlog.get_logger()

Listener = Callable[[Any], Awaitable[None]]

LATEST_READINGS_LIMIT = 10


class StorageUnavailableError(Exception):
    """Raised by ping() when the backend cannot be reached."""


class Storage(ABC):
    """Async repository of typed records."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    # ─── Post-commit listeners ───────────────────────────

    def add_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners[event_type].append(listener)

    async def _emit(self, event_type: str, record: Any) -> None:
        for listener in self._listeners.get(event_type, ()):
            try:
                await listener(record)
            except Exception:
                logger.exception(
                    "storage.listener_failed",
                    event_type=event_type,
                    record_id=getattr(record, "id", None),
                )

    # ─── Lifecycle ───────────────────────────────────────

    async def startup(self) -> None:
        """Prepare the backend (schema, seed data). Called once by the app lifespan."""

    async def shutdown(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def ping(self) -> None:
        """Raise StorageUnavailableError if the backend is unreachable."""

    # ─── Users ───────────────────────────────────────────

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User: ...

    @abstractmethod
    async def update_user(self, user_id: str, changes: dict) -> Optional[User]: ...

    # ─── Catalog ─────────────────────────────────────────

    @abstractmethod
    async def list_crops(self) -> list[Crop]: ...

    @abstractmethod
    async def get_crop(self, crop_id: str) -> Optional[Crop]: ...

    @abstractmethod
    async def create_crop(self, data: CropCreate) -> Crop: ...

    @abstractmethod
    async def list_protocols(self) -> list[ManagementProtocol]: ...

    @abstractmethod
    async def get_protocol(self, protocol_id: str) -> Optional[ManagementProtocol]: ...

    @abstractmethod
    async def create_protocol(self, data: ProtocolCreate) -> ManagementProtocol: ...

    # ─── Recommendations ─────────────────────────────────

    @abstractmethod
    async def list_recommendations_by_user(self, user_id: str) -> list[Recommendation]: ...

    @abstractmethod
    async def get_recommendation(self, rec_id: str) -> Optional[Recommendation]: ...

    @abstractmethod
    async def create_recommendation(
        self, user_id: str, data: RecommendationCreate
    ) -> Recommendation: ...

    @abstractmethod
    async def update_recommendation(
        self, rec_id: str, changes: dict
    ) -> Optional[Recommendation]: ...

    @abstractmethod
    async def delete_recommendation(self, rec_id: str) -> bool: ...

    # ─── Productivity & geospatial ───────────────────────

    @abstractmethod
    async def list_calculations_by_user(
        self, user_id: str
    ) -> list[ProductivityCalculation]: ...

    @abstractmethod
    async def create_calculation(
        self, user_id: str, data: CalculationCreate
    ) -> ProductivityCalculation: ...

    @abstractmethod
    async def list_geospatial_by_user(self, user_id: str) -> list[GeospatialAnalysis]: ...

    @abstractmethod
    async def create_geospatial(
        self,
        user_id: str,
        data: GeospatialCreate,
        analysis_results: Optional[dict] = None,
    ) -> GeospatialAnalysis: ...

    # ─── Fields ──────────────────────────────────────────

    @abstractmethod
    async def list_crop_fields_by_user(self, user_id: str) -> list[CropField]: ...

    @abstractmethod
    async def get_crop_field(self, field_id: str) -> Optional[CropField]: ...

    @abstractmethod
    async def create_crop_field(self, user_id: str, data: CropFieldCreate) -> CropField: ...

    @abstractmethod
    async def update_crop_field(self, field_id: str, changes: dict) -> Optional[CropField]: ...

    @abstractmethod
    async def delete_crop_field(self, field_id: str) -> bool: ...

    # ─── Monitoring readings ─────────────────────────────

    @abstractmethod
    async def list_monitoring_data_by_field(self, field_id: str) -> list[MonitoringReading]: ...

    @abstractmethod
    async def get_latest_monitoring_data(
        self, field_id: str, sensor_type: Optional[str] = None
    ) -> list[MonitoringReading]:
        """At most LATEST_READINGS_LIMIT readings, newest-first."""

    @abstractmethod
    async def create_monitoring_data(
        self, data: MonitoringReadingCreate
    ) -> MonitoringReading:
        """Persist a reading, then fire MONITORING_DATA_CREATED."""

    # ─── Alerts ──────────────────────────────────────────

    @abstractmethod
    async def list_alerts_by_user(
        self, user_id: str, unread_only: bool = False
    ) -> list[Alert]: ...

    @abstractmethod
    async def get_alert(self, alert_id: str) -> Optional[Alert]: ...

    @abstractmethod
    async def create_alert(self, user_id: str, data: AlertCreate) -> Alert:
        """Persist an alert, then fire ALERT_CREATED."""

    @abstractmethod
    async def mark_alert_read(self, alert_id: str) -> Optional[Alert]: ...

    @abstractmethod
    async def mark_alert_resolved(self, alert_id: str) -> Optional[Alert]:
        """Set is_resolved. resolved_at is stamped on the first call only."""

    # ─── Alert subscriptions ─────────────────────────────

    @abstractmethod
    async def list_subscriptions_by_user(self, user_id: str) -> list[AlertSubscription]: ...

    @abstractmethod
    async def get_subscription(self, sub_id: str) -> Optional[AlertSubscription]: ...

    @abstractmethod
    async def create_subscription(
        self, user_id: str, data: AlertSubscriptionCreate
    ) -> AlertSubscription: ...

    @abstractmethod
    async def update_subscription(
        self, sub_id: str, changes: dict
    ) -> Optional[AlertSubscription]: ...

    @abstractmethod
    async def delete_subscription(self, sub_id: str) -> bool: ...
