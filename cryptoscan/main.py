"""
CryptoScan Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cryptoscan.core.config import Settings, settings as default_settings
from cryptoscan.api.v1 import router as api_v1_router
from cryptoscan.services.base import ExternalAPIError, ServiceError, ValidationError
from cryptoscan.services.container import ServiceContainer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(settings: Settings) -> None:
    """Configure the root logger once from settings."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=settings.log_level.upper(),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def create_app(
    container: Optional[ServiceContainer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application.

    A prebuilt container (tests) is used as-is and left open on shutdown;
    otherwise one is created from settings in the lifespan.
    """
    settings = settings or (container.settings if container else default_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        setup_logging(settings)
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")

        owned = container is None
        app.state.container = container or await ServiceContainer.create(settings)
        if app.state.container.redis_client is not None:
            logger.info("Redis cache connected")

        yield

        # Shutdown
        logger.info("Shutting down...")
        if owned:
            await app.state.container.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
    CryptoScan Technical Scanner API

    ## Pipeline
    - **Market Data**: Binance candles (synthetic fallback for scans)
    - **Indicator Engine**: 20 indicators (pure Python/NumPy)
    - **Signal Classifier**: bullish / bearish / neutral per indicator
    - **Composite Scorer**: tier-weighted total -> strong_buy ... strong_sell
    - **Result Cache**: 90 s TTL per (symbol, timeframe)
    """,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware
    cors_origins = [settings.frontend_url]
    cors_origins.extend([o for o in settings.allowed_origins if o not in cors_origins])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def bad_params_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "bad_params", "message": exc.message, "details": exc.details},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "bad_params", "message": "Invalid request parameters",
                     "details": {"errors": jsonable_encoder(exc.errors())}},
        )

    @app.exception_handler(ExternalAPIError)
    async def upstream_handler(request: Request, exc: ExternalAPIError):
        logger.error(f"Upstream failure on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=502,
            content={"error": "upstream", "message": exc.message},
        )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        logger.error(f"Service error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "internal", "message": exc.message},
        )

    # Include API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint. `exchange` is false when Binance is unreachable."""
        exchange_ok = await request.app.state.container.market_data.health_check()
        return {
            "status": "healthy",
            "exchange": exchange_ok,
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "CryptoScan Backend API",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()
