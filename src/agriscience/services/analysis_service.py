"""Professional analysis service — premium geospatial analysis and dashboard stats.

Learn: The geospatial analysis is a fixed soil/terrain profile for now;
what matters here is the entitlement check. Only premium users may run
it, everyone else gets ForbiddenError (403).
"""

from agriscience.errors import ForbiddenError
from agriscience.schemas.productivity import (
    AnalysisResult,
    DashboardStats,
    GeospatialCreate,
)
from agriscience.schemas.user import User
from agriscience.storage.base import Storage

BASELINE_ANALYSIS = {
    "soilType": "Latossolo Vermelho",
    "elevation": "550m",
    "slope": "2-5%",
    "drainageClass": "Well drained",
    "recommendations": [
        "Suitable for annual crops",
        "Consider terracing on sloped areas",
        "Erosion monitoring required",
    ],
}


class AnalysisService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def analyze(self, user: User, data: GeospatialCreate) -> AnalysisResult:
        if not user.is_premium:
            raise ForbiddenError("Premium subscription required")

        results = {**BASELINE_ANALYSIS, "recommendations": list(BASELINE_ANALYSIS["recommendations"])}
        analysis = await self.storage.create_geospatial(user.id, data, analysis_results=results)
        return AnalysisResult(analysis=analysis, results=results)

    async def dashboard_stats(self, user_id: str) -> DashboardStats:
        recommendations = await self.storage.list_recommendations_by_user(user_id)
        calculations = await self.storage.list_calculations_by_user(user_id)

        yields = [c.ibge_yield or 0.0 for c in calculations]
        return DashboardStats(
            crops_analyzed=len(calculations),
            avg_productivity=sum(yields) / len(yields) if yields else 0.0,
            active_recommendations=sum(1 for r in recommendations if r.status == "active"),
            total_area=sum(c.area for c in calculations),
        )
