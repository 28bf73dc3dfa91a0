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
from src.fs_auction.api.bids_router import router as bids_router
from src.fs_auction.api.router import router as auction_router
from src.fs_clearing.api.router import router as clearing_router
from src.fs_common.database import engine
from src.fs_common.errors import AppError
from src.fs_common.redis_client import close_redis, get_redis
from src.fs_common.response import error_response
from src.fs_gateway.middleware.request_log import RequestLogMiddleware
from src.fs_settlement.api.router import router as settlement_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    yield
    # Shutdown
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
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


# clearing first: its static /auctions/process-expired must win over /auctions/{id} paths
app.include_router(clearing_router, prefix="/api/v1")
app.include_router(auction_router, prefix="/api/v1")
app.include_router(bids_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
