"""FastAPI application for MediBook."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from medibook import __version__
from medibook.api.middleware import APIKeyMiddleware, RequestLoggingMiddleware
from medibook.api.routes import appointments, doctors, health, patients
from medibook.config import get_settings
from medibook.core.database import Database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting MediBook API")

    owns_database = getattr(app.state, "database", None) is None
    if owns_database:
        app.state.database = Database.from_settings(get_settings())

    logger.info("MediBook API started successfully")

    yield

    logger.info("Shutting down MediBook API")
    if owns_database:
        await app.state.database.dispose()


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        database: Connection handle to use. When omitted, the lifespan
            builds one from settings and disposes it on shutdown.
    """
    settings = get_settings()

    app = FastAPI(
        title="MediBook API",
        description="Appointment booking with doctor availability validation",
        version=__version__,
        lifespan=lifespan,
    )
    if database is not None:
        app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(RequestLoggingMiddleware)

    if settings.api_key:
        app.add_middleware(
            APIKeyMiddleware,
            api_key=settings.api_key,
            open_paths=settings.auth_open_paths,
        )

    app.include_router(health.router, tags=["health"])
    app.include_router(patients.router, prefix="/api/v1")
    app.include_router(doctors.router, prefix="/api/v1")
    app.include_router(appointments.router, prefix="/api/v1")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.debug_mode else None,
            },
        )

    return app
