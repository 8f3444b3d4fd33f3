"""
FastAPI Application Entry Point.

This is the main application file for the LoadMate backend.
"""

import logging
from pathlib import Path
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loadmate.app.core.config import settings
from loadmate.app.api.v1.router import router as api_v1_router
from loadmate.app.core.observability import ObservabilityMiddleware
from loadmate.app.core.redis_client import ping_redis
from loadmate.app.db.session import engine, Base
from loadmate.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from loadmate.app.models.user import User
from loadmate.app.models.vehicle import Vehicle
from loadmate.app.models.booking import Booking
from loadmate.app.models.audit_log import AuditLog

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)
logger = logging.getLogger("loadmate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Makes sure the local upload directory exists.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    logger.info("%s started (%s)", settings.app_name, settings.environment)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Cargo transport booking marketplace API",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Includes whether Redis (logout revocation) is reachable.
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "ok" if await ping_redis() else "unavailable",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/api/{settings.api_version}")

# Locally stored vehicle images
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to LoadMate API",
        "docs": "/docs",
        "health": "/health",
    }
