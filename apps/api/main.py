"""FastAPI application entrypoint for the SlotBook booking core."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.errors import BadRequestError, BookingError, InternalError
from core.logging import setup_logging
from core.settings import settings
from db.session import close_db, init_db
from domain.models import ErrorResponse
from apps.api.routers import availability, customers, reservations, resources


logger = logging.getLogger(__name__)

# Documented failure bodies for every versioned route
ERROR_RESPONSES = {
    status: {"model": ErrorResponse}
    for status in (400, 401, 403, 404, 409, 500)
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    setup_logging()
    logger.info(f"Starting {settings.app_name}...")

    if settings.is_development:
        # Migrations own the schema elsewhere
        init_db()
        logger.info("Database tables ensured")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    close_db()


def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render typed errors; only infrastructure failures are logged as errors."""
    if exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.message}",
            extra={"error_code": exc.error_code.value},
        )
    else:
        logger.info(
            f"{request.method} {request.url.path} rejected",
            extra={"error_code": exc.error_code.value},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input uses the same error shape as every other failure."""
    error = BadRequestError(
        "Invalid request",
        details={"errors": [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()
        ]},
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: never leak internals."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    error = InternalError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Slot availability, customer admission and reservation commits",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(availability.router, prefix=settings.api_prefix, responses=ERROR_RESPONSES)
    app.include_router(customers.router, prefix=settings.api_prefix, responses=ERROR_RESPONSES)
    app.include_router(reservations.router, prefix=settings.api_prefix, responses=ERROR_RESPONSES)
    app.include_router(resources.router, prefix=settings.api_prefix, responses=ERROR_RESPONSES)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"app": settings.app_name, "status": "healthy", "version": "1.0.0"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "apps.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
