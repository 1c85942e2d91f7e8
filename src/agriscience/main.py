"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The app-scoped components are built here and kept on app.state:

    storage  ── post-commit listeners ──▶ WriteNotifier ──▶ ConnectionRegistry
    ibge     (httpx client for productivity estimates)

Lifespan starts them (schema + seed, Redis) and tears them down (cancel
pending pushes, close sockets, close the HTTP client, dispose the store).
Tests pass their own storage / IBGE client into create_app().
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from agriscience import __version__
from agriscience.api import api_router
from agriscience.api.health import router as health_router
from agriscience.config import settings
from agriscience.errors import register_exception_handlers
from agriscience.middleware.rate_limit import RateLimitMiddleware
from agriscience.middleware.request_id import RequestIdMiddleware
from agriscience.middleware.security import SecurityHeadersMiddleware
from agriscience.realtime.notifier import WriteNotifier
from agriscience.realtime.registry import ConnectionRegistry
from agriscience.realtime.websocket import router as ws_router
from agriscience.redis_pool import close_redis, init_redis
from agriscience.services.ibge import IbgeClient
from agriscience.storage import build_storage
from agriscience.storage.base import Storage

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "agriscience.starting",
        version=__version__,
        environment=settings.environment,
        storage=type(app.state.storage).__name__,
        port=settings.port,
    )
    app.state.started_at = time.monotonic()

    await app.state.storage.startup()

    if settings.redis_url:
        try:
            await init_redis()
            logger.info("agriscience.redis_connected", url=settings.redis_url)
        except (RedisError, OSError) as e:
            # Redis is optional: without it requests are not rate limited
            logger.warning("agriscience.redis_unavailable", error=str(e))

    yield

    logger.info("agriscience.shutdown")
    await app.state.notifier.aclose()
    await app.state.registry.close_all()
    await app.state.ibge.aclose()
    await close_redis()
    await app.state.storage.shutdown()


def create_app(
    storage: Optional[Storage] = None,
    ibge_client: Optional[IbgeClient] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="AgriScience Platform",
        description="Crop management, productivity estimates and real-time field monitoring",
        version=__version__,
        lifespan=lifespan,
    )

    if storage is None:
        storage = build_storage(settings)
    registry = ConnectionRegistry()
    app.state.storage = storage
    app.state.registry = registry
    app.state.notifier = WriteNotifier(storage, registry)
    app.state.ibge = ibge_client or IbgeClient(
        sidra_url=settings.ibge_sidra_url,
        localities_url=settings.ibge_localities_url,
        table_id=settings.ibge_table_id,
        timeout=settings.ibge_timeout_seconds,
    )
    app.state.started_at = time.monotonic()

    register_exception_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router)
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: agriscience.main:app)
app = create_app()
