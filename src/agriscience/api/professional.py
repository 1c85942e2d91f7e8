"""Professional API — premium geospatial analysis and the dashboard summary."""

from fastapi import APIRouter, Depends

from agriscience.auth.dependencies import CurrentIdentity, get_current_user, get_current_user_record
from agriscience.dependencies import get_storage
from agriscience.schemas.productivity import (
    AnalysisResult,
    DashboardStats,
    GeospatialAnalysis,
    GeospatialCreate,
)
from agriscience.schemas.user import User
from agriscience.services.analysis_service import AnalysisService
from agriscience.storage.base import Storage

router = APIRouter()


def _svc(storage: Storage = Depends(get_storage)) -> AnalysisService:
    return AnalysisService(storage)


# ─── Geospatial analysis ─────────────────────────────────


@router.post("/professional/analyze", response_model=AnalysisResult)
async def analyze(
    body: GeospatialCreate,
    user: User = Depends(get_current_user_record),
    svc: AnalysisService = Depends(_svc),
):
    """Run a geospatial analysis. Premium users only (403 otherwise)."""
    return await svc.analyze(user, body)


@router.get("/professional/analyses", response_model=list[GeospatialAnalysis])
async def list_analyses(
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.list_geospatial_by_user(identity.user_id)


# ─── Dashboard ───────────────────────────────────────────


@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: AnalysisService = Depends(_svc),
):
    return await svc.dashboard_stats(identity.user_id)
