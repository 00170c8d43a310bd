"""
OEE Floor Dashboard - Main FastAPI Application

This is the main entry point for the OEE Floor Dashboard backend API. It
serves the aggregated dashboard (OEE, quality, downtime, maintenance and
benchmarking views) over a record store that is seeded with demo data when
configured to.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.responses import Response
import structlog

from oee_dashboard.api.v1 import dashboard, maintenance, production
from oee_dashboard.config import settings
from oee_dashboard.monitoring.application_metrics import render_latest
from oee_dashboard.services.dashboard_service import DashboardService
from oee_dashboard.services.record_store import RecordStore
from oee_dashboard.services.seed_data import build_demo_store
from oee_dashboard.utils.exceptions import DashboardError

# Configure structured logging
logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Starting OEE Floor Dashboard API", environment=settings.ENVIRONMENT)

    if settings.SEED_DEMO_DATA:
        store = build_demo_store(settings.SEED_END_DATE, settings.SEED_DAYS)
        logger.info(
            "Record store seeded with demo data",
            end_date=str(settings.SEED_END_DATE),
            days=settings.SEED_DAYS
        )
    else:
        store = RecordStore()
        logger.info("Record store started empty")

    app.state.dashboard_service = DashboardService(store, settings)

    yield

    # Shutdown
    logger.info("Shutting down OEE Floor Dashboard API")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    Aggregation and derived-metrics API for the OEE Floor Dashboard.

    This API provides:
    - Per-record availability, performance, quality and OEE
    - Filtered dashboard views by area, shift, machine status and date range
    - Defect, downtime and root cause Pareto tables
    - Trends, boxplots and the line by shift OEE heatmap
    - Maintenance reliability (MTBF / MTTR), PM schedule and spare parts
    - Audited defect quantity corrections
    """,
    version=settings.VERSION,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handlers
@app.exception_handler(DashboardError)
async def dashboard_exception_handler(request: Request, exc: DashboardError) -> JSONResponse:
    """Handle domain exceptions."""
    logger.error(
        "Dashboard exception occurred",
        exception_type=type(exc).__name__,
        message=exc.message,
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""
    logger.warning(
        "Validation error occurred",
        errors=exc.errors(),
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_errors(exc)
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "Unexpected error occurred",
        exception_type=type(exc).__name__,
        message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "INTERNAL_SERVER_ERROR",
            "message": "An unexpected error occurred",
            "details": None if settings.ENVIRONMENT == "production" else str(exc)
        }
    )


def jsonable_errors(exc: RequestValidationError):
    """Validation errors with their non-JSON context stripped."""
    return [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg", "input")}
        for error in exc.errors()
    ]


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }


# Metrics endpoint for Prometheus
@app.get("/metrics", tags=["Monitoring"])
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        render_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Include API routers
app.include_router(dashboard.router, prefix="/api/v1", tags=["Dashboard"])
app.include_router(production.router, prefix="/api/v1", tags=["Production Records"])
app.include_router(maintenance.router, prefix="/api/v1", tags=["Maintenance"])


# Root endpoint
@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    """Root endpoint with API information."""
    return {
        "message": settings.APP_NAME,
        "version": settings.VERSION,
        "docs": "/docs" if settings.ENVIRONMENT != "production" else "Documentation not available in production",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "oee_dashboard.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True
    )
