"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and the
store is reachable. Redis is reported too, but only the store decides
healthy vs unhealthy: without Redis the API still works (no rate limit).
"""

import time

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from agriscience import __version__
from agriscience.dependencies import get_storage
from agriscience.redis_pool import get_redis
from agriscience.schemas.base import utcnow
from agriscience.storage.base import Storage, StorageUnavailableError

logger = structlog.get_logger()

router = APIRouter()


async def _redis_status() -> str:
    try:
        redis = get_redis()
    except RuntimeError:
        return "disabled"
    try:
        await redis.ping()
        return "ok"
    except RedisError as e:
        return f"error: {e}"


@router.get("/health")
async def health_check(request: Request, storage: Storage = Depends(get_storage)):
    """Check server health and dependency connectivity."""
    timestamp = utcnow().isoformat()

    try:
        await storage.ping()
    except StorageUnavailableError as e:
        logger.warning("health.storage_unavailable", error=str(e))
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "timestamp": timestamp, "error": str(e)},
        )

    checks = {"storage": "ok", "redis": await _redis_status()}
    return {
        "status": "healthy",
        "timestamp": timestamp,
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "version": __version__,
        "checks": checks,
    }
