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

from config.settings import settings
from src.mp_admin.api.router import router as admin_router
from src.mp_admin.api.vendor_router import router as vendor_router
from src.mp_common.database import check_database, engine
from src.mp_common.errors import AppError
from src.mp_common.redis_client import close_redis
from src.mp_common.response import error_response
from src.mp_gateway.middleware.request_log import RequestLogMiddleware, get_request_id
from src.mp_order.api.router import router as order_router
from src.mp_payment.api.router import router as payment_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the DB connection. Shutdown: dispose pools.

    Redis is connected lazily; the status feed degrades to a warning when it
    is down, so it is not a startup requirement.
    """
    await check_database()
    logger.info(
        "%s started (gateway=%s, currency=%s, default commission=%s%%)",
        settings.APP_NAME, settings.PAYMENT_GATEWAY, settings.CURRENCY,
        settings.DEFAULT_COMMISSION_RATE,
    )
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.data)
    resp.request_id = get_request_id(request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(order_router, prefix="/api/v1")
app.include_router(payment_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(vendor_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
