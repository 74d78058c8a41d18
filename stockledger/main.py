"""
FastAPI application for the stock ledger service.

To run: uvicorn stockledger.main:app --reload
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from stockledger.core.config import settings
from stockledger.core.database import init_db, close_db, check_db_connection
from stockledger.api.v1 import api_router
from stockledger.error_handlers import register_exception_handlers
from stockledger.logging_config import setup_logging, get_logger
from stockledger.middleware import RequestLoggingMiddleware, limiter, rate_limit_exceeded_handler
from stockledger.schemas.dashboard import HealthCheck
from stockledger.services.events import EventBus

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {'Development' if settings.debug else 'Production'}")

    # Use Alembic migrations in production
    if settings.auto_create_tables:
        logger.info("Creating database tables...")
        await init_db()

    app.state.event_bus = EventBus()
    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.event_bus.clear()
    await close_db()
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Inventory and point-of-sale stock ledger",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
register_exception_handlers(app)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(api_router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs" if settings.debug else "disabled",
        "api_v1": "/api/v1"
    }


# Health check endpoint (public)
@app.get("/health", response_model=HealthCheck)
async def health_check():
    """Health check including database connectivity."""
    db_healthy = await check_db_connection()

    return HealthCheck(
        status="healthy" if db_healthy else "unhealthy",
        version=settings.app_version,
        database="connected" if db_healthy else "unavailable"
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "stockledger.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
