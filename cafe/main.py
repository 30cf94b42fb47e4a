"""Café backend FastAPI application.

Main entry point for the API server: delivery pricing, cart and session
endpoints over a shared cache.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from cafe.api import router
from cafe.api.routes import (
    bearer_token,
    get_cache_service,
    get_menu_catalog,
    get_session_registry,
)
from cafe.config import get_settings
from cafe.models import CafeError, ErrorCode
from cafe.services import HttpMenuCatalog, RedisCacheService, SessionCleanupWorker

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    worker: SessionCleanupWorker | None = None
    if settings.session_cleanup_interval_seconds > 0:
        worker = SessionCleanupWorker(
            get_session_registry(), settings.session_cleanup_interval_seconds
        )
        worker.start()
    yield
    # Shutdown
    if worker is not None:
        await worker.stop()
    cache = get_cache_service()
    if isinstance(cache, RedisCacheService):
        await cache.disconnect()
    catalog = get_menu_catalog()
    if isinstance(catalog, HttpMenuCatalog):
        await catalog.close()


app = FastAPI(
    title=settings.app_name,
    description="Café ordering backend: delivery pricing, cart and sessions",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def track_user_activity(request: Request, call_next):
    """Slide the session expiry for every request carrying a bearer token."""
    token = bearer_token(request.headers.get("authorization"))
    if token:
        try:
            await get_session_registry().update_activity(token)
        except Exception as e:
            logger.warning(f"[SESSION] Could not record activity: {e}")
    return await call_next(request)


# Global exception handlers
@app.exception_handler(CafeError)
async def cafe_exception_handler(request: Request, exc: CafeError):
    """Map service errors to their HTTP status codes."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.to_app_error().model_dump(mode="json"),
        },
    )


@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": {
                "code": ErrorCode.VALIDATION_ERROR.value,
                "message": str(exc),
                "user_message": "Invalid request format. Please check your input.",
            },
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": ErrorCode.API_ERROR.value,
                "message": str(exc),
                "user_message": "Something went wrong. Please try again.",
            },
        },
    )


# Include API routes
app.include_router(router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
