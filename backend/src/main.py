"""
FastAPI application entry point for the lightchurch backend.

This module initializes the FastAPI application with:
- Organizer, admin and public event routers
- CORS middleware for the web and mobile front ends
- slowapi rate limiting for the public surface
- Exception handlers for consistent error responses
- Startup checks and logging configuration

Environment Variables:
    LIGHTCHURCH_DB_URL: Database URL
    JWT_SECRET_KEY: Secret used to sign access tokens (required for
        authenticated routes)
    LIGHTCHURCH_ENV: Environment (production/development, default: development)
    LIGHTCHURCH_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
"""

from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from backend.src.config.settings import get_settings
from backend.src.db.database import dispose_engine
from backend.src.utils.logging_config import init_logging, get_logger
from backend.src.utils.rate_limit import limiter


APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: Report missing security and push configuration
    - Shutdown: Dispose of the database engine

    Args:
        app: FastAPI application instance

    Yields:
        Control to the application
    """
    logger = get_logger("api")
    logger.info("Starting lightchurch backend application")

    settings = get_settings()
    if not settings.jwt_configured:
        logger.warning(
            "JWT_SECRET_KEY is not set: organizer and admin routes will reject every request"
        )
    if not settings.vapid_configured:
        logger.info("VAPID keys not set: web push targets will not be notified")

    yield

    logger.info("Shutting down lightchurch backend application")
    dispose_engine()


# Initialize logging before creating app
init_logging()

app = FastAPI(
    title="LightChurch API",
    description="Backend API for the LightChurch church finder. "
                "Event publication and lifecycle for pastors, moderation for "
                "administrators, event discovery and interest for the public apps.",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Shared rate limiter (public endpoints)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers


@app.exception_handler(ValidationError)
async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors raised while building responses or
    validating data inside handlers.
    """
    logger = get_logger("api")
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(include_url=False, include_context=False),
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Handle SQLAlchemy errors that escaped the service layer."""
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                      "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


# Health check endpoint


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "service": "lightchurch-backend",
        "version": APP_VERSION,
    }


# API routers
from backend.src.api import events, public
from backend.src.api.admin import events_router as admin_events_router

app.include_router(events.router, prefix="/api")
app.include_router(admin_events_router, prefix="/api/admin")
app.include_router(public.router, prefix="/api")


@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    """
    Root endpoint with API information.

    Returns:
        API metadata and documentation links
    """
    return {
        "message": "LightChurch API",
        "version": APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "openapi": "/openapi.json",
    }
