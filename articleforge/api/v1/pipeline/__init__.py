"""Article pipeline API endpoints."""

from articleforge.api.v1.pipeline.routes import router

__all__ = ["router"]
