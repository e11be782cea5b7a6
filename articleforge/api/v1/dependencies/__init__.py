"""Reusable API dependencies shared across v1 routes."""

from typing import Annotated

from fastapi import Header, HTTPException, status

from articleforge.config import settings
from articleforge.dependencies import DbSession
from articleforge.integrations.dataforseo import DataForSEOSerpProvider
from articleforge.integrations.image_generation import OpenAIImageGenerator
from articleforge.repositories.article_repository import SqlAlchemyArticleRepository
from articleforge.services.pipeline.types import StageServices
from articleforge.services.pipeline_orchestrator import PipelineOrchestrator

MISSING_USER_DETAIL = "Missing X-User-Id header"


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> str:
    """Return the caller id supplied by the upstream auth layer."""
    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=MISSING_USER_DETAIL,
        )
    return x_user_id.strip()


async def get_pipeline_orchestrator(session: DbSession) -> PipelineOrchestrator:
    """Orchestrator wired to the request session and configured providers."""
    services = StageServices(
        article_store=SqlAlchemyArticleRepository(session),
        serp_provider=DataForSEOSerpProvider() if settings.serp_enabled else None,
        image_generator=OpenAIImageGenerator() if settings.image_generation_enabled else None,
    )
    return PipelineOrchestrator(services)


__all__ = ["get_current_user_id", "get_pipeline_orchestrator"]
