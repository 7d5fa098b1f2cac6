"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.pf_common.database import dispose_engine
from src.pf_common.errors import AppError, ValidationFailedError
from src.pf_common.redis_client import close_redis
from src.pf_common.response import error_response
from src.pf_gateway.container import build_stores
from src.pf_gateway.middleware.request_log import RequestLogMiddleware
from src.pf_identity.api.router import auth_router, profiles_router
from src.pf_listing.api.router import router as listing_router
from src.pf_profile.api.router import router as profile_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: build stores and reconcile them with the sync backend. Shutdown: close."""
    stores = build_stores(settings)
    app.state.stores = stores
    await stores.initialize()
    yield
    await stores.close()
    if settings.SYNC_BACKEND == "postgres":
        await dispose_engine()
        await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=VERSION,
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    data: dict[str, Any] | None = None
    if isinstance(exc, ValidationFailedError):
        data = {"field_errors": exc.field_errors, "step": exc.step}
    resp = error_response(
        exc.code, exc.message, data, request_id=getattr(request.state, "request_id", None)
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(profiles_router, prefix="/api/v1")
app.include_router(listing_router, prefix="/api/v1")
app.include_router(profile_router, prefix="/api/v1")


@app.get("/health")
async def health(request: Request) -> dict[str, Any]:
    stores = request.app.state.stores
    return {
        "status": "ok",
        "version": VERSION,
        "sync": {
            stores.identity.doc_id: stores.identity.is_initialized,
            stores.listings.doc_id: stores.listings.is_initialized,
        },
        "ui_loading_timeout_ms": settings.UI_LOADING_TIMEOUT_MS,
    }
