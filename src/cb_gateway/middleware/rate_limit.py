"""Rate limiting middleware for auth endpoints.

Fixed one-minute window per client IP, counted in Redis:

    key   = "ratelimit:{ip}:auth:{minute}"
    count = INCR key; EXPIRE key 60 on first hit

Over the limit the request is answered with the 9001 envelope and a
Retry-After header. If Redis is unreachable the request is let through and
the failure is logged; login must not depend on the limiter being up.
"""

import logging
import time
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from config.settings import settings
from src.cb_common.errors import RateLimitError
from src.cb_common.redis_client import get_redis
from src.cb_common.response import error_response

logger = logging.getLogger("cb.ratelimit")

_WINDOW_SECONDS = 60
_AUTH_PREFIX = "/api/v1/auth/"


def client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy, else the peer address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limit: int | None = None,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
    ) -> None:
        super().__init__(app)
        self._limit = limit if limit is not None else settings.RATE_LIMIT_AUTH_PER_MINUTE
        self._redis_factory = redis_factory

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not settings.RATE_LIMIT_ENABLED or not request.url.path.startswith(_AUTH_PREFIX):
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:{client_ip(request)}:auth:{window}"
        try:
            redis = await self._redis_factory()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except (RedisError, OSError) as exc:
            logger.warning("Rate limiter unavailable, allowing request: %s", exc)
            return await call_next(request)

        if count > self._limit:
            err = RateLimitError()
            logger.info("Rate limit hit for %s (%d/%d)", key, count, self._limit)
            return JSONResponse(
                status_code=err.http_status,
                content=error_response(err.code, err.message).model_dump(),
                headers={"Retry-After": str(_WINDOW_SECONDS)},
            )
        return await call_next(request)
