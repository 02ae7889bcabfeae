"""FastAPI main application module."""

from contextlib import asynccontextmanager
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ...domain.errors import (
    ConflictError,
    NotFoundError,
    SchedulingError,
    StaleStateError,
    ValidationError,
)
from ...infrastructure.logging import setup_logging_from_env
from ...infrastructure.services import initialize_services, shutdown_services
from .config import get_settings
from .middleware.logging import RequestResponseLoggingMiddleware
from .routes import availability, health, slots


logger = logging.getLogger(__name__)

# Most specific classes first; the first match wins
ERROR_STATUS_CODES = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (StaleStateError, 409),
    (ConflictError, 409),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    setup_logging_from_env()
    logger.info("Starting Appointment Scheduling API")
    await initialize_services()

    yield

    logger.info("Shutting down Appointment Scheduling API")
    await shutdown_services()


def status_code_for(exc: SchedulingError) -> int:
    """Map a scheduling error to its HTTP status code."""
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 400


def add_exception_handlers(app: FastAPI) -> None:
    """Add custom exception handlers to the FastAPI application."""

    @app.exception_handler(SchedulingError)
    async def scheduling_error_handler(request: Request, exc: SchedulingError):
        """Handle errors raised by the scheduling core."""
        status_code = status_code_for(exc)
        logger.warning(
            f"Scheduling error on {request.url.path}: {exc}",
            extra={"error_type": exc.error_type, "response_status": status_code}
        )
        content = {"detail": str(exc), "type": exc.error_type}
        if isinstance(exc, ValidationError):
            content["detail"] = exc.message
            content["field"] = exc.field
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        """Handle storage and other unexpected failures."""
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error occurred",
                "type": "internal_error"
            }
        )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Appointment Scheduling",
        description="Operator availability slots, booking state machine and availability listing",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    add_exception_handlers(app)

    app.add_middleware(RequestResponseLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    app.include_router(health.router, tags=["health"])
    app.include_router(
        slots.router,
        prefix=f"{settings.api_prefix}/schedule",
        tags=["schedule"]
    )
    app.include_router(
        availability.router,
        prefix=f"{settings.api_prefix}/schedule",
        tags=["availability"]
    )

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "appointment_scheduling.presentation.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
