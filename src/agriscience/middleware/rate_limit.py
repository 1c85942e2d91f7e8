"""Rate limiting middleware — Redis fixed-window counter per IP.

Learn: One counter per client IP, bucket and minute, stored in Redis under
"agriscience:rl:{ip}:{bucket}:{minute}". Login and registration share a
stricter bucket to slow down credential stuffing.

When Redis is not initialized (disabled, down, or in tests) requests pass
through unthrottled. A Redis error mid-request does the same: the limiter
must never be the reason an API call fails.
"""

import time

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from agriscience.redis_pool import get_redis

logger = structlog.get_logger()

AUTH_PATHS = ("/api/auth/login", "/api/auth/register")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.auth_rpm = auth_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        if not request.url.path.startswith("/api"):
            return await call_next(request)

        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        is_auth = request.url.path.startswith(AUTH_PATHS)
        rpm = self.auth_rpm if is_auth else self.default_rpm
        bucket = "auth" if is_auth else "api"
        key = f"agriscience:rl:{client_ip}:{bucket}:{int(time.time() // 60)}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except RedisError as e:
            logger.warning("ratelimit.redis_error", error=str(e))
            return await call_next(request)

        if count > rpm:
            return JSONResponse(
                status_code=429,
                content={"message": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
