"""
FastAPI main application for the Books API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import APIConfig
from api.config import config as api_config
from api.database import BookService, InMemoryBookService, MongoBookService
from api.errors import BackendFailure, BookAPIError
from api.middleware import setup_middleware
from api.models import ErrorResponse, HealthResponse
from api.negotiation import negotiate, render, render_error
from api.resource import BookResource, build_router

# Setup logging
logger = structlog.get_logger(__name__)


def build_service(config: APIConfig) -> BookService:
    """Create the book service selected by ``storage_backend``."""
    if config.storage_backend == "mongodb":
        client = AsyncIOMotorClient(config.mongodb_url, tz_aware=True)
        collection = client[config.mongodb_database][config.mongodb_collection]
        return MongoBookService(collection, client=client)
    return InMemoryBookService()


def create_app(
    config: Optional[APIConfig] = None,
    service: Optional[BookService] = None
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings to use; environment settings by default
        service: Book service to use; built from ``config`` by default

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = api_config
    if service is None:
        service = build_service(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        # Startup
        logger.info("Starting Books API", storage_backend=config.storage_backend)

        health_info = await service.health_check()
        if health_info.get("status") != "healthy":
            logger.error("Storage backend unavailable", **health_info)
            raise BackendFailure("Storage backend unavailable")
        logger.info("Storage backend ready", backend=health_info.get("backend"))

        yield

        # Shutdown
        logger.info("Shutting down Books API")
        await service.close()

    app = FastAPI(
        title=config.api_title,
        description=config.api_description,
        version=config.api_version,
        lifespan=lifespan
    )
    app.state.config = config
    app.state.book_service = service

    resource = BookResource(
        service,
        report_missing_on_delete=config.report_missing_on_delete,
        debug=config.debug
    )
    app.include_router(build_router(resource))
    setup_middleware(app, config)

    # Exception handlers
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions raised by routing."""
        return render(
            ErrorResponse(error=str(exc.detail), status_code=exc.status_code),
            negotiate(request),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        return render(
            ErrorResponse(
                error="Internal server error",
                detail=str(exc) if config.debug else None,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            ),
            negotiate(request),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    @app.get("/health", tags=["Health"], summary="Health check")
    async def health_check(request: Request):
        """Health check endpoint."""
        try:
            health_info = await service.health_check()
        except BookAPIError as e:
            return render_error(e, negotiate(request))
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            error = BackendFailure(
                "Internal server error",
                detail=str(e) if config.debug else None
            )
            return render_error(error, negotiate(request))

        db_status = health_info.get("status", "unknown")

        return render(
            HealthResponse(
                status="healthy" if db_status == "healthy" else "degraded",
                timestamp=datetime.utcnow(),
                version=config.api_version,
                database_status=db_status
            ),
            negotiate(request)
        )

    return app


# Create FastAPI application
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level="info"
    )
