"""Recommendation service — generates a starter plan for a crop + protocol."""

from agriscience.errors import NotFoundError
from agriscience.schemas.recommendation import Recommendation, RecommendationCreate
from agriscience.storage.base import Storage


class RecommendationService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def generate(self, user_id: str, crop_id: str, protocol_id: str) -> list[Recommendation]:
        """Create the three baseline recommendations (soil, pests, nutrition)."""
        crop = await self.storage.get_crop(crop_id)
        protocol = await self.storage.get_protocol(protocol_id)
        if not crop or not protocol:
            raise NotFoundError("Crop or protocol not found")

        templates = [
            RecommendationCreate(
                crop_id=crop.id,
                protocol_id=protocol.id,
                title=f"Soil management - {crop.name}",
                description=(
                    f"Soil analysis and correction for growing {crop.name} "
                    f"under the {protocol.name} protocol"
                ),
                category="soil_management",
                status="active",
                priority="high",
            ),
            RecommendationCreate(
                crop_id=crop.id,
                protocol_id=protocol.id,
                title=f"Pest control - {crop.name}",
                description=f"Integrated pest monitoring and control for {crop.name}",
                category="pest_management",
                status="pending",
                priority="medium",
            ),
            RecommendationCreate(
                crop_id=crop.id,
                protocol_id=protocol.id,
                title=f"Foliar nutrition - {crop.name}",
                description=f"Micronutrient application for {crop.name}",
                category="crop_management",
                status="scheduled",
                priority="medium",
            ),
        ]

        return [await self.storage.create_recommendation(user_id, t) for t in templates]
