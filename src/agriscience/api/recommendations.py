"""Recommendation API routes.

Learn: Recommendations are per-user. A record owned by someone else is
reported exactly like a missing one (404), so ids can't be probed.
"""

from fastapi import APIRouter, Depends, HTTPException, Response

from agriscience.auth.dependencies import CurrentIdentity, get_current_user
from agriscience.dependencies import get_storage
from agriscience.schemas.recommendation import (
    GenerateRequest,
    Recommendation,
    RecommendationCreate,
    RecommendationUpdate,
)
from agriscience.services.recommendation_service import RecommendationService
from agriscience.storage.base import Storage

router = APIRouter(prefix="/recommendations")


async def _owned(rec_id: str, identity: CurrentIdentity, storage: Storage) -> Recommendation:
    rec = await storage.get_recommendation(rec_id)
    if not rec or rec.user_id != identity.user_id:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    return rec


@router.get("", response_model=list[Recommendation])
async def list_recommendations(
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.list_recommendations_by_user(identity.user_id)


@router.post("", response_model=Recommendation, status_code=201)
async def create_recommendation(
    body: RecommendationCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await storage.create_recommendation(identity.user_id, body)


@router.post("/generate", response_model=list[Recommendation], status_code=201)
async def generate_recommendations(
    body: GenerateRequest,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Create the baseline soil / pest / nutrition plan for a crop and protocol."""
    return await RecommendationService(storage).generate(
        identity.user_id, body.crop_id, body.protocol_id
    )


@router.get("/{rec_id}", response_model=Recommendation)
async def get_recommendation(
    rec_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return await _owned(rec_id, identity, storage)


@router.put("/{rec_id}", response_model=Recommendation)
async def update_recommendation(
    rec_id: str,
    body: RecommendationUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await _owned(rec_id, identity, storage)
    updated = await storage.update_recommendation(rec_id, body.model_dump(exclude_unset=True))
    if not updated:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    return updated


@router.delete("/{rec_id}", status_code=204)
async def delete_recommendation(
    rec_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    await _owned(rec_id, identity, storage)
    await storage.delete_recommendation(rec_id)
    return Response(status_code=204)
