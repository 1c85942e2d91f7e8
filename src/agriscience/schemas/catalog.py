"""Pydantic schemas for the crop and management-protocol catalogs."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from agriscience.schemas.base import ApiModel


class CropCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    scientific_name: Optional[str] = None
    category: Optional[str] = None
    ibge_code: Optional[str] = None
    emoji: Optional[str] = None


class Crop(CropCreate):
    id: str
    created_at: datetime


class ProtocolCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    type: str = Field(
        ..., pattern=r"^(conventional|organic|biological|conventional_biological)$"
    )


class ManagementProtocol(ProtocolCreate):
    id: str
    created_at: datetime
