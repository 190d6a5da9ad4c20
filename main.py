import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import AsyncSessionLocal, Base, engine
from app.exception_handlers import register_exception_handlers
from app.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from app.routes import analytics, cases
from app.scheduler import start_background_jobs, stop_background_jobs
from app.services.dedup_cache import DedupCache
from app.services.view_recorder import PageViewStore, ViewRecorder

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Tasks to run at application startup and shutdown."""
    logger.info("Starting up the application...")
    if settings.debug:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created (if not existing).")

    start_background_jobs(app.state.dedup_cache)

    yield

    logger.info("Shutting down the application...")
    stop_background_jobs(app.state.dedup_cache)
    await app.state.view_recorder.drain()


def create_app(session_factory: Optional[Callable] = None) -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Public archive backend: case lookup and visitor analytics",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(StructuredLoggingMiddleware)
    register_exception_handlers(app)

    dedup_cache = DedupCache(
        window_seconds=settings.dedup_window_seconds,
        sweep_interval_seconds=settings.dedup_sweep_interval_seconds,
    )
    app.state.dedup_cache = dedup_cache
    app.state.view_recorder = ViewRecorder(dedup_cache, PageViewStore(session_factory or AsyncSessionLocal))

    app.include_router(cases.router, prefix="/api/cases")
    app.include_router(analytics.router, prefix="/api/analytics")

    @app.get("/api/health", tags=["Health"])
    async def health_check():
        return {"status": "OK", "message": "Server is running"}

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    return app


setup_structured_logging(log_level=settings.log_level, json_format=settings.log_json)

app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
