"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from articleforge.api.v1.router import api_router
from articleforge.config import settings
from articleforge.core.database import close_db, init_db
from articleforge.core.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    setup_logging(logging.DEBUG if settings.debug else settings.log_level)

    logger.info(
        "Starting ArticleForge",
        extra={
            "environment": settings.environment,
            "version": settings.app_version,
            "serp_enabled": settings.serp_enabled,
            "image_generation_enabled": settings.image_generation_enabled,
        },
    )

    if settings.database_auto_create_tables:
        await init_db()
        logger.info("Database tables initialized")

    yield

    logger.info("Shutting down ArticleForge")
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Article generation pipeline: keyword in, SEO-scored article out.",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        cast(Any, CORSMiddleware),
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get(
        "/health",
        summary="Health check",
        description="Return service health status and version information.",
    )
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()
