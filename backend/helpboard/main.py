"""HelpBoard API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map HelpBoardError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Request logging as middleware: observability stays out of route handlers
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import helpboard.infrastructure.database as database
from helpboard.infrastructure.observability import log_requests, setup_logging
from helpboard.config import get_settings
from helpboard.api.error_handlers import register_error_handlers
from helpboard.api.routes import health, help_posts

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("HelpBoard API started")
    yield
    logger.info("HelpBoard API shutting down")
    if database.db_manager:
        await database.db_manager.dispose()


app = FastAPI(
    title="HelpBoard API", version="1.0.0", lifespan=lifespan,
)

# CORS: configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)

# Routes: explicit registration
app.include_router(health.router)
app.include_router(help_posts.router)

register_error_handlers(app)
