"""Pydantic schemas for productivity calculations and geospatial analyses."""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from agriscience.schemas.base import ApiModel


# ─── Productivity ────────────────────────────────────────


class CalculateRequest(ApiModel):
    municipality: str = Field(..., min_length=1)
    state: str = Field(..., min_length=2, max_length=2, description="UF, e.g. 'SP'")
    area: float = Field(..., gt=0, description="Hectares")
    crop_id: str = Field(..., min_length=1)
    year: Optional[int] = Field(None, ge=1974, le=2100)


class CalculationCreate(ApiModel):
    crop_id: str
    municipality: str
    state: str
    area: float
    ibge_yield: Optional[float] = None
    estimated_production: Optional[float] = None
    estimated_value: Optional[float] = None
    year: int


class ProductivityCalculation(CalculationCreate):
    id: str
    user_id: str
    created_at: datetime


class CalculationFigures(ApiModel):
    yield_: float = Field(..., alias="yield")
    total_production: float
    market_value: float
    source: str


class CalculationResult(ApiModel):
    calculation: ProductivityCalculation
    data: CalculationFigures


# ─── Geospatial ──────────────────────────────────────────


class GeospatialCreate(ApiModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_content: Optional[str] = None


class GeospatialAnalysis(GeospatialCreate):
    id: str
    user_id: str
    analysis_results: Optional[dict[str, Any]] = None
    is_premium: bool = True
    created_at: datetime


class AnalysisResult(ApiModel):
    analysis: GeospatialAnalysis
    results: dict[str, Any]


class DashboardStats(ApiModel):
    crops_analyzed: int
    avg_productivity: float
    active_recommendations: int
    total_area: float
