"""
Tournament Accommodation API

Takes tournament team members from an approved team request to a
checked-out hotel stay. Every workflow step is a guarded state transition,
room counts move through atomic conditional updates, and dashboard views
are cached in Redis and dropped whenever a transition commits.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.middleware import RequestLoggingMiddleware
from app.api.router import api_router
from app.core.config import get_settings
from app.core.logging import get_logger, setup_logging
from app.core.metrics import metrics_endpoint
from app.db.session import engine
from app.services.cache_service import close_redis, get_cache_stats, get_redis

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        assignment_strategy=settings.ASSIGNMENT_STRATEGY,
    )

    if await get_redis():
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Dashboard views will be computed on every request")

    yield

    await close_redis()
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Hotel accommodation workflow for tournament teams",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)
app.include_router(api_router)


async def _database_status() -> dict:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("health_database_unreachable", error=str(exc))
        return {"status": "unreachable"}
    return {"status": "ok"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness plus database and cache status for load balancers."""
    database = await _database_status()
    return {
        "status": "healthy" if database["status"] == "ok" else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": database,
        "cache": await get_cache_stats(),
        "assignment_strategy": settings.ASSIGNMENT_STRATEGY,
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()
