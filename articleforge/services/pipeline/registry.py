"""Stage registry for the article generation pipeline."""

from __future__ import annotations

from collections.abc import Iterable

from articleforge.core.exceptions import PipelineConfigurationError
from articleforge.schemas.pipeline import PipelineData
from articleforge.services.pipeline.types import ExecutionContext, StageDescriptor
from articleforge.services.stages import (
    draft_generation,
    external_linking,
    finalization,
    image_generation,
    internal_linking,
    outline_generation,
    seo_scoring,
    serp_analysis,
)


class StageRegistry:
    """Immutable, ordered collection of stage descriptors.

    Declaration order is the execution order. Dependencies are not validated
    here; the orchestrator records unmet ones as skipped at run time.
    """

    def __init__(self, stages: Iterable[StageDescriptor]) -> None:
        ordered = tuple(stages)
        seen: set[str] = set()
        for stage in ordered:
            if stage.id in seen:
                raise PipelineConfigurationError(
                    f"Duplicate stage id: {stage.id}",
                    {"stage": stage.id},
                )
            seen.add(stage.id)
        self._stages = ordered
        self._by_id = {stage.id: stage for stage in ordered}

    def list_stages(self) -> tuple[StageDescriptor, ...]:
        return self._stages

    def get_stage(self, stage_id: str) -> StageDescriptor | None:
        return self._by_id.get(stage_id)

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self):
        return iter(self._stages)


def _no_product_scope(context: ExecutionContext, data: PipelineData) -> bool:
    return not context.product_id or context.options.skip_internal_linking


def _external_linking_disabled(context: ExecutionContext, data: PipelineData) -> bool:
    return context.options.skip_external_linking


def _image_generation_disabled(context: ExecutionContext, data: PipelineData) -> bool:
    return context.options.skip_image_generation or context.services.image_generator is None


ARTICLE_PIPELINE_STAGES: tuple[StageDescriptor, ...] = (
    StageDescriptor(
        id="serp_analysis",
        name="SERP Analysis",
        description="Analyze search engine results for the target keyword",
        execute=serp_analysis.execute,
        optional=True,
    ),
    StageDescriptor(
        id="outline_generation",
        name="Outline Generation",
        description="Generate article structure based on keyword and SERP analysis",
        execute=outline_generation.execute,
        depends_on=("serp_analysis",),
    ),
    StageDescriptor(
        id="draft_generation",
        name="Draft Generation",
        description="Generate full article draft based on outline",
        execute=draft_generation.execute,
        depends_on=("outline_generation",),
    ),
    StageDescriptor(
        id="internal_linking",
        name="Internal Linking",
        description="Generate internal link suggestions to related articles",
        execute=internal_linking.execute,
        depends_on=("draft_generation",),
        skip_if=_no_product_scope,
        optional=True,
    ),
    StageDescriptor(
        id="external_linking",
        name="External Linking",
        description="Generate external link opportunities to authoritative sources",
        execute=external_linking.execute,
        depends_on=("draft_generation",),
        skip_if=_external_linking_disabled,
        optional=True,
    ),
    StageDescriptor(
        id="image_generation",
        name="Image Generation",
        description="Generate featured and inline images using AI",
        execute=image_generation.execute,
        depends_on=("draft_generation",),
        skip_if=_image_generation_disabled,
        optional=True,
    ),
    StageDescriptor(
        id="seo_scoring",
        name="SEO Scoring",
        description="Analyze content for SEO quality and provide recommendations",
        execute=seo_scoring.execute,
        depends_on=("draft_generation",),
    ),
    StageDescriptor(
        id="finalization",
        name="Finalization",
        description="Save the article to the database with all metadata",
        execute=finalization.execute,
        depends_on=("draft_generation", "seo_scoring"),
    ),
)

DEFAULT_STAGE_REGISTRY = StageRegistry(ARTICLE_PIPELINE_STAGES)
