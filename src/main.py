"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.cb_account.api.router import router as account_router
from src.cb_admin.api.router import router as admin_router
from src.cb_common.database import async_session_factory, engine
from src.cb_common.errors import AppError
from src.cb_common.redis_client import close_redis, get_redis
from src.cb_common.response import error_response
from src.cb_gateway.api.router import router as auth_router
from src.cb_gateway.middleware.rate_limit import RateLimitMiddleware
from src.cb_gateway.middleware.request_log import RequestLogMiddleware
from src.cb_notification.api.router import router as notification_router
from src.cb_pricing.api.router import router as pricing_router
from src.cb_pricing.application.provider import rate_provider
from src.cb_referral.api.router import router as referral_router
from src.cb_sales.api.router import router as sales_router
from src.cb_transfer.api.router import router as transfer_router
from src.cb_withdrawal.api.router import admin_router as admin_withdrawal_router
from src.cb_withdrawal.api.router import router as withdrawal_router

logging.getLogger("cb").setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
logger = logging.getLogger("cb.app")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, load rate configuration. Shutdown: dispose."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    # Fails startup after one retry; requests never run on unvalidated rates
    await rate_provider.load(async_session_factory)
    logger.info("%s %s started", settings.APP_NAME, VERSION)
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=VERSION,
    lifespan=lifespan,
)

# Starlette runs the last-added middleware first: request ids exist before rate limiting
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    if exc.http_status >= 500:
        logger.error("AppError %d: %s", exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(pricing_router, prefix="/api/v1")
app.include_router(sales_router, prefix="/api/v1")
app.include_router(withdrawal_router, prefix="/api/v1")
app.include_router(admin_withdrawal_router, prefix="/api/v1")
app.include_router(transfer_router, prefix="/api/v1")
app.include_router(referral_router, prefix="/api/v1")
app.include_router(notification_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": VERSION}
