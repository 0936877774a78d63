# src/rankshare/main.py
"""Main entry point for the Rankshare application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from rankshare.api.v1 import (
    feed_router,
    likes_router,
    posts_router,
    rankings_router,
    suggestions_router,
    trends_router,
)
from rankshare.core.errors import (
    AuthError,
    InvalidCursorError,
    NotFoundOrForbidden,
    TransientStoreError,
    ValidationError,
)
from rankshare.core.settings import settings
from rankshare.db.session import SessionLocal
from rankshare.services.trend_aggregator import TrendAggregator
from rankshare.services.trend_scheduler import TrendScheduler

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Rankshare API",
    description="Ranked lists, feeds and trends",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(feed_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(rankings_router, prefix="/api/v1")
app.include_router(likes_router, prefix="/api/v1")
app.include_router(trends_router, prefix="/api/v1")
app.include_router(suggestions_router, prefix="/api/v1")


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(InvalidCursorError)
async def invalid_cursor_handler(request: Request, exc: InvalidCursorError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "code": "invalid_cursor"},
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc)},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(NotFoundOrForbidden)
async def not_found_handler(request: Request, exc: NotFoundOrForbidden) -> JSONResponse:
    # One message for both cases so callers cannot tell them apart.
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "Not found or forbidden"},
    )


@app.exception_handler(TransientStoreError)
async def transient_error_handler(request: Request, exc: TransientStoreError) -> JSONResponse:
    logger.warning("Transient failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "retryable": True},
    )


@app.on_event("startup")
async def on_startup() -> None:
    if settings.trends_scheduler_enabled:
        scheduler = TrendScheduler(TrendAggregator(SessionLocal))
        await scheduler.start()
        app.state.trend_scheduler = scheduler
    else:
        app.state.trend_scheduler = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    scheduler: TrendScheduler | None = getattr(app.state, "trend_scheduler", None)
    if scheduler:
        await scheduler.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rankshare.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
