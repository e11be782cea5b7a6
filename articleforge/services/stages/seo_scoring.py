"""SEO scoring stage: analyze the draft and optionally apply simple fixes."""

from __future__ import annotations

import logging

from articleforge.schemas.pipeline import PipelineData, SeoAnalysis
from articleforge.services.article_text import (
    META_DESCRIPTION_MAX_LENGTH,
    META_TITLE_MAX_LENGTH,
    truncate,
)
from articleforge.services.pipeline.types import ExecutionContext
from articleforge.services.seo_analysis import SeoAnalysisOptions, SeoArticleInput, analyze_seo

logger = logging.getLogger(__name__)


def fallback_meta_description(keyword: str, title: str) -> str:
    return truncate(
        f"Discover comprehensive strategies and expert insights on {keyword.lower()}. "
        f"Learn proven techniques in this detailed guide: {title}.",
        META_DESCRIPTION_MAX_LENGTH,
    )


def optimize(data: PipelineData, keyword: str) -> dict[str, object]:
    """Ensure a single leading H1 and meta fields within search-result limits."""
    title = data.title or ""
    content = data.content or ""
    updates: dict[str, object] = {}

    if not content.lstrip().startswith("# "):
        updates["content"] = f"# {title}\n\n{content}"

    if len(title) > META_TITLE_MAX_LENGTH:
        updates["meta_title"] = truncate(title, META_TITLE_MAX_LENGTH)
    elif not data.meta_title:
        updates["meta_title"] = title

    if not data.meta_description:
        updates["meta_description"] = fallback_meta_description(keyword, title)
    elif len(data.meta_description) > META_DESCRIPTION_MAX_LENGTH:
        updates["meta_description"] = truncate(data.meta_description, META_DESCRIPTION_MAX_LENGTH)

    return updates


async def execute(context: ExecutionContext, data: PipelineData) -> PipelineData:
    options = context.options
    log_context = {"run_id": context.run_id, "keyword": context.keyword}

    if options.skip_seo_scoring:
        logger.info("Skipping SEO scoring", extra=log_context)
        return data
    if not data.title or not data.content:
        logger.info("Insufficient content for SEO analysis", extra=log_context)
        return data

    updates: dict[str, object] = {}
    current = data
    if options.auto_optimize_seo:
        updates = optimize(data, context.keyword)
        current = data.model_copy(update=updates)

    report = analyze_seo(
        SeoArticleInput(
            title=current.title or "",
            content=current.content or "",
            slug=current.slug or "",
            meta_title=current.meta_title,
            meta_description=current.meta_description,
            meta_keywords=current.meta_keywords,
        ),
        SeoAnalysisOptions(target_keyword=context.keyword),
    )
    analysis = SeoAnalysis(
        overall_score=report.overall_score,
        grade=report.grade,
        keyword_density=report.keyword_density,
        readability_score=report.metrics["readability"].score,
        heading_structure_score=report.metrics["heading_structure"].score,
        meta_tags_score=report.metrics["meta_tags"].score,
        link_score=report.metrics["links"].score,
        recommendations=report.recommendations,
    )

    logger.info(
        "SEO scoring finished",
        extra={
            **log_context,
            "score": analysis.overall_score,
            "grade": analysis.grade,
            "optimized_fields": sorted(updates),
        },
    )
    return current.model_copy(update={"seo_analysis": analysis})
