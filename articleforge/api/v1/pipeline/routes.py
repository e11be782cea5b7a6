"""Article pipeline API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import ValidationError

from articleforge.api.v1.dependencies import get_current_user_id, get_pipeline_orchestrator
from articleforge.api.v1.pipeline.constants import PIPELINE_DESCRIPTION, PIPELINE_NAME
from articleforge.config import settings
from articleforge.schemas.pipeline import (
    PipelineDescriptionResponse,
    PipelineOptions,
    PipelineRunRequest,
    PipelineRunResponse,
    PipelineStageInfo,
    PipelineStartRequest,
    RunResult,
    describe_options_error,
    resolve_pipeline_options,
)
from articleforge.services.pipeline.registry import DEFAULT_STAGE_REGISTRY
from articleforge.services.pipeline_orchestrator import PipelineOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


def _duration_ms(result: RunResult) -> int:
    if result.completed_at is None:
        return 0
    return max(0, int((result.completed_at - result.started_at).total_seconds() * 1000))


@router.post(
    "",
    response_model=PipelineRunResponse,
    summary="Run article pipeline",
    description=(
        "Run every pipeline stage for one keyword and return the execution report. "
        "Responds with 500 when the run itself failed; individual stage failures "
        "are reported per stage. Invalid options are rejected with 422 before "
        "any stage runs."
    ),
)
async def run_pipeline(
    request: PipelineStartRequest,
    response: Response,
    user_id: Annotated[str, Depends(get_current_user_id)],
    orchestrator: Annotated[PipelineOrchestrator, Depends(get_pipeline_orchestrator)],
) -> PipelineRunResponse:
    """Run the article pipeline synchronously."""
    logger.info(
        "Pipeline run requested",
        extra={
            "organization_id": request.organization_id,
            "product_id": request.product_id,
            "keyword": request.keyword,
            "has_content": request.content is not None,
        },
    )

    try:
        resolve_pipeline_options(request.options)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=describe_options_error(e),
        ) from e

    run_request = PipelineRunRequest(**request.model_dump(), user_id=user_id)
    result = await orchestrator.run(run_request)

    if result.status == "failed":
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return PipelineRunResponse(
        **result.model_dump(),
        success=result.status == "completed",
        duration_ms=_duration_ms(result),
    )


@router.get(
    "",
    response_model=PipelineDescriptionResponse,
    summary="Describe article pipeline",
    description="List pipeline stages with their dependencies and the default options.",
)
async def describe_pipeline() -> PipelineDescriptionResponse:
    """Describe the registered stages and option defaults."""
    return PipelineDescriptionResponse(
        name=PIPELINE_NAME,
        version=settings.app_version,
        description=PIPELINE_DESCRIPTION,
        stages=[
            PipelineStageInfo(
                id=stage.id,
                name=stage.name,
                description=stage.description,
                depends_on=list(stage.depends_on),
                optional=stage.optional,
            )
            for stage in DEFAULT_STAGE_REGISTRY.list_stages()
        ],
        options=PipelineOptions().model_dump(),
    )
