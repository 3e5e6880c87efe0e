"""
Iskolar API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Local file storage root
- CORS middleware
- API routing
- Health check endpoints
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from iskolar.api import api_router
from iskolar.core.config import settings
from iskolar.core.database import async_session_maker, close_db, init_db
from iskolar.core.redis import close_redis, get_redis, init_redis


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Redis only carries status-change events, so a missing Redis is tolerated
    outside production.
    """
    # Startup
    print(f"Starting Iskolar API in {settings.python_env} mode...")

    try:
        await init_redis()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        Path(settings.storage_root).mkdir(parents=True, exist_ok=True)
        print(f"[OK] File storage ready at {settings.storage_root}")
    except OSError as e:
        print(f"[FAIL] File storage unavailable: {e}")
        raise

    yield  # Application runs here

    # Shutdown
    print("Shutting down Iskolar API...")

    await close_redis()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title="Iskolar API",
    description="Scholarship lifecycle management API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Iskolar API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check():
    """Readiness check: database reachable; Redis reported but not required."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "database": f"error: {e}"},
        )

    redis = get_redis()
    redis_state = "connected"
    if redis is None:
        redis_state = "not initialized"
    else:
        try:
            await redis.ping()
        except Exception as e:
            redis_state = f"error: {e}"

    return {"status": "ready", "database": "connected", "redis": redis_state}
