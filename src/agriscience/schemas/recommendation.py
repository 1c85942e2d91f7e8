"""Pydantic schemas for recommendations.

Learn: Same split as everywhere else in the API:
- RecommendationCreate: what you POST
- RecommendationUpdate: what you PUT (all optional, only set fields apply;
  an explicit null is rejected for columns that cannot be empty)
- Recommendation: the stored record, returned by every endpoint
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from agriscience.schemas.base import ApiModel, reject_null

CATEGORY_PATTERN = r"^(soil_management|crop_management|pest_management)$"
STATUS_PATTERN = r"^(active|pending|completed|scheduled)$"
PRIORITY_PATTERN = r"^(low|medium|high)$"


class RecommendationCreate(ApiModel):
    crop_id: str
    protocol_id: str
    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    category: str = Field(..., pattern=CATEGORY_PATTERN)
    status: str = Field(default="pending", pattern=STATUS_PATTERN)
    priority: str = Field(default="medium", pattern=PRIORITY_PATTERN)
    scheduled_date: Optional[datetime] = None


class RecommendationUpdate(ApiModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    category: Optional[str] = Field(None, pattern=CATEGORY_PATTERN)
    status: Optional[str] = Field(None, pattern=STATUS_PATTERN)
    priority: Optional[str] = Field(None, pattern=PRIORITY_PATTERN)
    scheduled_date: Optional[datetime] = None

    @field_validator("title", "description", "category", "status", "priority")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class GenerateRequest(ApiModel):
    crop_id: str = Field(..., min_length=1)
    protocol_id: str = Field(..., min_length=1)


class Recommendation(RecommendationCreate):
    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime
