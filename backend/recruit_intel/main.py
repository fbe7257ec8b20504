"""
Recruitment Intelligence API - Main Application Entry Point

This module initializes the FastAPI application with:
- Logging configuration
- Database connection, schema initialization and snapshot hydration
- Service container (storage, LMS client, AI gateway, batch queue, pipeline)
- Optional background scheduler for periodic course sync
- CORS middleware for the dashboard
- Prometheus metrics
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (startup/shutdown)
    ├── CORS Middleware
    ├── Prometheus Middleware + /metrics
    └── API Router (/api)
        ├── /status     - LMS reachability and AI configuration
        ├── /sync       - Course sync jobs
        ├── /courses    - Courses, candidates, assignments, analysis jobs
        ├── /candidates - Candidate detail
        └── /jobs       - Processing job polling
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recruit_intel.api import api_router
from recruit_intel.config import get_settings
from recruit_intel.database import create_engine, create_session_factory, ensure_sqlite_directory, init_db
from recruit_intel.dependencies import build_services
from recruit_intel.middleware.metrics import setup_metrics
from recruit_intel.scheduler import start_scheduler, stop_scheduler
from recruit_intel.services.snapshot import load_snapshot

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Configure logging
        2. Create the database schema and hydrate from the JSON snapshot
        3. Build the service container on app.state
        4. Start the periodic sync scheduler (if enabled)

    Shutdown:
        1. Stop the scheduler
        2. Dispose of the database engine
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    ensure_sqlite_directory(settings.database_url)
    engine = create_engine(settings.database_url)
    await init_db(engine)

    services = build_services(settings, create_session_factory(engine))
    await load_snapshot(services.storage, settings.snapshot_path)
    app.state.services = services

    if not services.lms.is_configured:
        logger.warning("CANVAS_API_KEY not set: course sync is disabled")
    if not services.ai.is_configured:
        logger.warning("OPENAI_API_KEY not set: submission analysis is disabled")

    scheduler = start_scheduler(services.pipeline, settings.sync_interval_hours)
    yield
    stop_scheduler(scheduler)
    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Recruitment Intelligence API",
        description="LMS sync and AI-assisted candidate assessment",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_metrics(app)
    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
