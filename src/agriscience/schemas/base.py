"""Shared pydantic base for API schemas and stored records.

Learn: The API speaks camelCase JSON (fieldId, isRead, sensorType) while
Python code uses snake_case. alias_generator maps between the two;
populate_by_name lets code construct models with snake_case keywords, and
from_attributes lets SqlStorage validate ORM rows directly.
"""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        """JSON-ready dict with camelCase keys (what clients receive)."""
        return self.model_dump(mode="json", by_alias=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def reject_null(value):
    """Field validator body for partial updates: omitted is fine, null is not."""
    if value is None:
        raise ValueError("Field may not be null")
    return value
