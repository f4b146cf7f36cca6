"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - a lifespan handler that disposes the DB engine on shutdown
  - CORS middleware
  - global exception handlers (``FormError`` to its status code)
  - all API routes mounted under ``/api/v1``
  - a ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``survey-flow-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from survey_flow.errors import FormError
from survey_flow_db.engine import dispose_engine, get_engine

from survey_flow_server.config import ServerSettings, load_settings
from survey_flow_server.errors import form_error_handler, generic_error_handler
from survey_flow_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """The engine is created lazily on first request; dispose it on shutdown."""
    settings: ServerSettings = app.state.settings
    logger.info("Survey flow server starting (CORS origins: %s)", settings.cors_origins)

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Survey Flow API Server",
        description="Form authoring and submission validation for branching surveys",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(FormError, form_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe; pings the database unless disabled."""
        if not settings.health_check_db:
            return {"status": "ok"}
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": "database unavailable"}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn survey_flow_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``survey-flow-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "survey_flow_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
