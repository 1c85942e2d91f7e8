"""Catalog API — crops and management protocols (public)."""

from fastapi import APIRouter, Depends, HTTPException

from agriscience.dependencies import get_storage
from agriscience.schemas.catalog import Crop, CropCreate, ManagementProtocol
from agriscience.storage.base import Storage

router = APIRouter()


# ─── Crops ───────────────────────────────────────────────


@router.get("/crops", response_model=list[Crop])
async def list_crops(storage: Storage = Depends(get_storage)):
    return await storage.list_crops()


@router.get("/crops/{crop_id}", response_model=Crop)
async def get_crop(crop_id: str, storage: Storage = Depends(get_storage)):
    crop = await storage.get_crop(crop_id)
    if not crop:
        raise HTTPException(status_code=404, detail="Crop not found")
    return crop


@router.post("/crops", response_model=Crop, status_code=201)
async def create_crop(body: CropCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_crop(body)


# ─── Protocols ───────────────────────────────────────────


@router.get("/protocols", response_model=list[ManagementProtocol])
async def list_protocols(storage: Storage = Depends(get_storage)):
    return await storage.list_protocols()
