"""Rate limiting middleware.

Fixed-window counters in Redis, keyed by client IP and path.
"""

import logging
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from arena.utils.redis_client import get_redis_optional

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting middleware.

    Rate limits are defined per endpoint path as
    (max_requests, window_seconds).
    """

    RATE_LIMITS: dict[str, tuple[int, int]] = {
        "/api/v1/auth/login": (5, 60),
        "/api/v1/auth/register": (3, 60),
        "/api/v1/auth/refresh": (10, 60),
        # Money movement
        "/api/v1/wallet/request-withdrawal": (5, 3600),
        "/api/v1/wallet/mobile-load": (5, 3600),
        "/api/v1/rewards/redeem": (10, 60),
        "/api/v1/games": (60, 60),
        "/api/v1/content": (10, 60),
    }

    DEFAULT_LIMIT: tuple[int, int] = (100, 60)

    # Server-to-server callbacks and probes
    EXEMPT_PREFIXES = ("/health", "/docs", "/redoc", "/openapi.json", "/api/v1/offers/cpa-postback")

    def __init__(self, app: Callable, redis_client: Redis | None = None):
        """Initialize rate limiter.

        Args:
            app: ASGI application
            redis_client: Redis client; when omitted the application's shared
                client is used once it has been initialized
        """
        super().__init__(app)
        self._redis = redis_client

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        redis = self._redis or get_redis_optional()
        if redis is None:
            return await call_next(request)

        path = request.url.path
        if path.startswith(self.EXEMPT_PREFIXES):
            return await call_next(request)

        client_ip = self._get_client_ip(request)
        limit, window = self._get_limit_for_path(path)
        key = f"ratelimit:{client_ip}:{path}"

        try:
            current = await redis.incr(key)
            if current == 1:
                await redis.expire(key, window)
        except RedisError as e:
            # Fail open
            logger.error(f"Rate limit check failed: {e}")
            return await call_next(request)

        if current > limit:
            logger.warning(
                f"Rate limit exceeded: {client_ip} on {path} ({current}/{limit} in {window}s)"
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": {
                        "code": "RATE_LIMIT_EXCEEDED",
                        "message": "Too many requests. Please try again later.",
                        "details": {"limit": limit, "window": window, "retryAfter": window},
                    },
                    "traceId": getattr(request.state, "request_id", None),
                },
                headers={"Retry-After": str(window)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - current))
        response.headers["X-RateLimit-Reset"] = str(window)
        return response

    def _get_client_ip(self, request: Request) -> str:
        """Client IP, honouring the first X-Forwarded-For hop behind a proxy."""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _get_limit_for_path(self, path: str) -> tuple[int, int]:
        if path in self.RATE_LIMITS:
            return self.RATE_LIMITS[path]
        for pattern, limit in self.RATE_LIMITS.items():
            if path.startswith(pattern):
                return limit
        return self.DEFAULT_LIMIT
