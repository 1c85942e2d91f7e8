"""Productivity API — yield/production/value estimates per municipality."""

from fastapi import APIRouter, Depends

from agriscience.auth.dependencies import CurrentIdentity, get_current_user
from agriscience.config import settings
from agriscience.dependencies import get_ibge_client, get_storage
from agriscience.schemas.productivity import CalculateRequest, CalculationResult, ProductivityCalculation
from agriscience.services.ibge import IbgeClient
from agriscience.services.productivity_service import ProductivityService
from agriscience.storage.base import Storage

router = APIRouter(prefix="/productivity")


def _svc(
    storage: Storage = Depends(get_storage),
    ibge: IbgeClient = Depends(get_ibge_client),
) -> ProductivityService:
    return ProductivityService(
        storage,
        ibge,
        default_yield=settings.default_yield_kg_per_ha,
        price_per_ton=settings.price_per_ton,
        default_year=settings.default_calculation_year,
    )


@router.post("/calculate", response_model=CalculationResult)
async def calculate(
    body: CalculateRequest,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProductivityService = Depends(_svc),
):
    """Estimate production and market value; IBGE yield when available."""
    return await svc.calculate(identity.user_id, body)


@router.get("/calculations", response_model=list[ProductivityCalculation])
async def list_calculations(
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.list_calculations_by_user(identity.user_id)
