"""API route aggregation.

All routers registered here get mounted under /api in main.py. Health
lives at the root (/health) and the WebSocket at /ws, so neither is here.

Learn: Auth is not applied at the include_router level. Most handlers need
the caller's id anyway, so they take CurrentIdentity as a parameter; the
auth and catalog routers stay open.
"""

from fastapi import APIRouter

from agriscience.api.alerts import router as alerts_router
from agriscience.api.auth import router as auth_router
from agriscience.api.catalog import router as catalog_router
from agriscience.api.monitoring import router as monitoring_router
from agriscience.api.productivity import router as productivity_router
from agriscience.api.professional import router as professional_router
from agriscience.api.recommendations import router as recommendations_router

api_router = APIRouter(prefix="/api")

# Open routes: no auth required
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(catalog_router, tags=["crops", "protocols"])

# Protected routes: handlers depend on get_current_user
api_router.include_router(recommendations_router, tags=["recommendations"])
api_router.include_router(productivity_router, tags=["productivity"])
api_router.include_router(professional_router, tags=["professional", "dashboard"])
api_router.include_router(monitoring_router, tags=["monitoring"])
api_router.include_router(alerts_router, tags=["alerts"])
