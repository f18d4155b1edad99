"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meal_analyzer.api.routes import analyze, providers
from meal_analyzer.core.config import Settings, get_settings
from meal_analyzer.core.exceptions import APIError
from meal_analyzer.core.messages import user_message
from meal_analyzer.services.analysis import AnalysisService

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Request lines carry vendor URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the provider registry and probes every provider on startup,
    closes provider HTTP clients on shutdown.
    """
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} v{settings.api_version}")

    service: AnalysisService | None = app.state.analysis_service
    if service is None:
        service = AnalysisService.from_config(settings.build_ai_config())
        app.state.analysis_service = service

    await service.initialize()
    logger.info("Analysis service ready")

    yield

    logger.info("Shutting down...")
    await service.close()


def create_app(analysis_service: AnalysisService | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        analysis_service: Prebuilt service; built from settings at startup if omitted

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.api_version,
        description="Meal nutrition analysis across multiple AI providers",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.analysis_service = analysis_service

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        """Handle custom API errors with a localized user message."""
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code}: {exc.message}")
        else:
            logger.info(f"{exc.error_code}: {exc.message}")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": user_message(exc, settings.locale),
                "error_code": exc.error_code,
                "details": exc.details if settings.debug else None,
            },
        )

    # Health check endpoint
    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        service: AnalysisService | None = request.app.state.analysis_service
        return {
            "status": "healthy" if service is not None and service.providers else "degraded",
            "service": settings.app_name,
            "version": settings.api_version,
            "providers": dict(service.health_status) if service is not None else {},
        }

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": settings.app_name,
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    # Include routers
    app.include_router(analyze.router, prefix="/analyze", tags=["Analysis"])
    app.include_router(providers.router, prefix="/providers", tags=["Providers"])

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "meal_analyzer.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )
