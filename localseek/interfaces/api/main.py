"""
FastAPI Main Application - HTTP entry point.

Run with: uvicorn localseek.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from localseek import __version__
from localseek.config import get_settings

from .deps import cleanup_services, init_services
from .middleware import (
    ErrorHandlerMiddleware,
    LatencyMiddleware,
    RequestIDMiddleware,
)
from .routes import containers, health, indexing, search

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting LocalSeek API...")
    logger.info("  Data dir: %s", settings.data_dir)
    logger.info("  Database: %s", settings.db_path)

    # Config and storage now, models in the background
    await init_services(app)
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down LocalSeek API...")
    await cleanup_services(app)


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="LocalSeek API",
        description="Local hybrid semantic and lexical document search",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters - first added = innermost)
    # 1. Error handling (catch exceptions from routes)
    app.add_middleware(ErrorHandlerMiddleware)

    # 2. Latency tracking
    app.add_middleware(LatencyMiddleware)

    # 3. Request ID (outermost custom - runs first)
    app.add_middleware(RequestIDMiddleware)

    # 4. CORS (framework middleware)
    allowed_origins = [
        "http://localhost:3000",
        f"http://localhost:{settings.api_port}",
        "http://127.0.0.1:3000",
        f"http://127.0.0.1:{settings.api_port}",
    ]
    if settings.api_debug:
        allowed_origins.append("http://localhost:5173")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(containers.router, prefix="/api/containers", tags=["Containers"])
    app.include_router(search.router, prefix="/api/search", tags=["Search"])
    app.include_router(indexing.router, prefix="/api/index", tags=["Indexing"])

    return app


app = create_app()
