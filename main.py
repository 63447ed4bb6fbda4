"""
Main application file for the SkyCart supplier backend.
Serves the product draft API: form state, sequential image upload and submission.
"""

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

# Core imports
from core.config import get_settings, validate_required_settings
from core.logging import setup_logging, get_logger
from core.database import db_manager
from core.middleware import (
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    SecurityHeadersMiddleware,
    error_body
)
from core.exceptions import SkyCartException
from services.draft_registry import DraftSessionRegistry

# API routes
from api.drafts_router import router as drafts_router

# Initialize logger
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""

    # Startup
    logger.info("Starting SkyCart supplier backend...")

    try:
        settings = get_settings()
        validate_required_settings(settings)
        logger.info(
            f"Configuration validated - Environment: {settings.environment.value}, "
            f"object store: {settings.object_store_backend.value}"
        )

        if db_manager.test_connection():
            logger.info("Database connection established successfully")
        else:
            logger.warning("Database connection test failed")

        if getattr(app.state, "draft_registry", None) is None:
            app.state.draft_registry = DraftSessionRegistry()
        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down SkyCart supplier backend...")
    try:
        # Open drafts release their previews even with uploads still running
        await app.state.draft_registry.close_all()
        db_manager.close()
        logger.info("Application shutdown completed successfully")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Supplier product drafts with sequential image upload",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
        debug=settings.debug
    )

    # Add middleware (order matters!)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(drafts_router)

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with basic application information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment.value,
            "status": "healthy"
        }

    @app.get("/health", tags=["health"])
    async def health_check(request: Request):
        """Health check endpoint for monitoring."""
        try:
            db_health = db_manager.health_check()
            registry = getattr(request.app.state, "draft_registry", None)

            return {
                "status": "healthy" if db_health["connected"] else "degraded",
                "version": settings.app_version,
                "environment": settings.environment.value,
                "database": db_health,
                "open_drafts": len(registry) if registry is not None else 0
            }
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "error": str(e),
                    "version": settings.app_version,
                    "environment": settings.environment.value
                }
            )

    @app.exception_handler(SkyCartException)
    async def skycart_exception_handler(request: Request, exc: SkyCartException):
        """Handler for domain exceptions not mapped by a route."""
        request_id = getattr(request.state, 'request_id', 'unknown')

        logger.error(
            f"[{request_id}] SkyCart Exception: {exc.error_code} - {exc.message}",
            extra={"details": exc.details}
        )
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, request_id))

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
        access_log=True
    )
