"""FastAPI application entry point for the housekeeping scheduler."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import housekeeping
from .config import Settings, get_settings
from .core.orchestrator import HousekeepingEngine
from .logging_config import setup_logging
from .store import StaffStore

logger = structlog.get_logger(__name__)


def build_engine(settings: Settings) -> HousekeepingEngine:
    """Engine with a fresh set of stores, seeded with the demo roster if enabled."""
    staff_store = StaffStore()
    if settings.seed_default_staff:
        staff_store.seed_defaults()
        logger.info("staff_seeded", count=len(staff_store))
    return HousekeepingEngine(staff_store=staff_store, settings=settings)


def create_app(
    engine: Optional[HousekeepingEngine] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the application around one engine instance."""
    settings = settings or get_settings()
    engine = engine or build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator:
        """Start the backlog re-scan loop for the app's lifetime."""
        logger.info("app_starting", app_name=settings.app_name)
        rescan_task = asyncio.create_task(engine.run())

        yield

        logger.info("app_stopping")
        await engine.stop()
        rescan_task.cancel()
        try:
            await rescan_task
        except asyncio.CancelledError:
            pass

    app = FastAPI(
        title=settings.app_name,
        description="Housekeeping task scheduling and staff assignment",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(housekeeping.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": "1.0.0",
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "housekeeping.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().debug,
    )
