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
from src.bootstrap import build_services, seed_demo_accounts
from src.cl_common.errors import AppError
from src.cl_common.response import error_response
from src.cl_gateway.middleware.request_log import RequestLogMiddleware
from src.cl_ledger.api.admin_router import router as admin_credits_router
from src.cl_ledger.api.router import router as credits_router
from src.cl_notification.api.router import router as notifications_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis (postgres backend) or seed demo accounts (memory)."""
    if settings.LEDGER_BACKEND == "postgres":
        from src.cl_common.database import check_database, engine
        from src.cl_common.redis_client import check_redis, close_redis

        await check_database()
        await check_redis()
        yield
        await engine.dispose()
        await close_redis()
    else:
        if settings.SEED_DEMO_ACCOUNTS:
            created = await seed_demo_accounts(app.state.services.store)
            logger.info("Seeded %d demo accounts", created)
        yield


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)
app.state.services = build_services(settings)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump())


app.include_router(credits_router, prefix="/api/v1")
app.include_router(admin_credits_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0", "backend": settings.LEDGER_BACKEND}
