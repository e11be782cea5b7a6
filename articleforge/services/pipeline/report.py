"""Execution report building for pipeline runs."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from articleforge.schemas.pipeline import (
    ArticleSnapshot,
    PipelineData,
    PipelineOutput,
    RunResult,
    RunStatus,
    StageResult,
)


@dataclass(frozen=True, slots=True)
class RunMeta:
    """Identity of the run a report is built for."""

    run_id: str
    started_at: datetime
    total_stages: int


def calculate_progress(stage_results: Sequence[StageResult], total_stages: int) -> int:
    """Percentage of registry stages that completed.

    Skipped and failed stages count toward the total only.
    """
    if total_stages <= 0:
        return 0
    completed = sum(1 for result in stage_results if result.status == "completed")
    return round(100 * completed / total_stages)


def project_output(data: PipelineData) -> PipelineOutput:
    """Project accumulated stage data onto the consolidated output payload."""
    article = None
    if data.article_id:
        featured = data.featured_image
        article = ArticleSnapshot(
            id=data.article_id,
            title=data.title or "",
            slug=data.slug or "",
            content=data.content or "",
            excerpt=data.excerpt,
            featured_image_url=featured.url if featured else None,
            seo_score=data.seo_analysis.overall_score if data.seo_analysis else None,
            meta_title=data.meta_title,
            meta_description=data.meta_description,
            meta_keywords=data.meta_keywords,
        )

    return PipelineOutput(
        article_id=data.article_id,
        article=article,
        serp_analysis=data.serp_analysis,
        outline=data.outline,
        internal_links=data.internal_link_suggestions,
        external_links=data.external_link_opportunities,
        generated_images=data.generated_images,
        seo_analysis=data.seo_analysis,
    )


def build_run_result(
    meta: RunMeta,
    data: PipelineData,
    stage_results: Sequence[StageResult],
    status: RunStatus,
    *,
    completed_at: datetime,
    error: str | None = None,
    current_stage: str | None = None,
) -> RunResult:
    """Assemble the final run report.

    Pure: identical inputs always produce an identical report. The output
    projection is included for failed runs too so callers keep partial work.
    """
    return RunResult(
        run_id=meta.run_id,
        status=status,
        current_stage=current_stage if status == "failed" else None,
        progress=calculate_progress(stage_results, meta.total_stages),
        started_at=meta.started_at,
        completed_at=completed_at,
        stages=list(stage_results),
        result=project_output(data),
        error=error,
    )
