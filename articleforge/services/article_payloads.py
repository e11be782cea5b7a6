"""Build article store payloads from accumulated pipeline data."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from articleforge.schemas.article import ArticleCreateDTO, ArticlePatchDTO
from articleforge.schemas.pipeline import PipelineData
from articleforge.services.article_text import count_words, reading_time_minutes
from articleforge.services.pipeline.types import ExecutionContext

UNTITLED_TITLE = "Untitled Article"
UNTITLED_SLUG = "untitled-article"


def build_draft_article(context: ExecutionContext, data: PipelineData) -> ArticleCreateDTO:
    """Draft row inserted as soon as the article has a slug and content."""
    content = data.content or ""
    words = count_words(content)
    return ArticleCreateDTO(
        organization_id=context.organization_id,
        author_id=context.user_id,
        product_id=context.product_id,
        keyword_id=context.keyword_id,
        title=data.title or context.keyword,
        slug=data.slug or UNTITLED_SLUG,
        content=content,
        excerpt=data.excerpt,
        meta_title=data.meta_title,
        meta_description=data.meta_description,
        meta_keywords=list(data.meta_keywords or []),
        status="draft",
        word_count=words,
        reading_time_minutes=reading_time_minutes(words),
    )


def stage_contributions(data: PipelineData) -> dict[str, bool]:
    """Which pipeline sections produced output, keyed by stage id."""
    return {
        "serp_analysis": data.serp_analysis is not None,
        "outline_generation": bool(data.outline),
        "draft_generation": bool(data.content),
        "internal_linking": bool(data.internal_link_suggestions),
        "external_linking": bool(data.external_link_opportunities),
        "image_generation": bool(data.generated_images),
        "seo_scoring": data.seo_analysis is not None,
    }


def build_pipeline_metadata(
    context: ExecutionContext,
    data: PipelineData,
    *,
    completed_at: datetime | None = None,
) -> dict[str, Any]:
    """JSON metadata describing the run that produced the article."""
    finished = completed_at or datetime.now(timezone.utc)
    return {
        "pipeline": {
            "run_id": context.run_id,
            "completed_at": finished.isoformat(),
            "stages": stage_contributions(data),
            "generated_images": [
                {"url": image.url, "style": image.style, "is_featured": image.is_featured}
                for image in data.generated_images or []
            ],
            "internal_links": [link.model_dump() for link in data.internal_link_suggestions or []],
            "external_links": [link.model_dump() for link in data.external_link_opportunities or []],
        },
        "seo_analysis": data.seo_analysis.model_dump() if data.seo_analysis else None,
        "serp_analysis": data.serp_analysis.model_dump() if data.serp_analysis else None,
    }


def build_final_article(context: ExecutionContext, data: PipelineData) -> ArticleCreateDTO:
    """Complete article row for runs where no draft was materialized."""
    content = data.content or ""
    words = count_words(content)
    featured = data.featured_image
    return ArticleCreateDTO(
        organization_id=context.organization_id,
        author_id=context.user_id,
        product_id=context.product_id,
        keyword_id=context.keyword_id,
        title=data.title or UNTITLED_TITLE,
        slug=data.slug or UNTITLED_SLUG,
        content=content,
        excerpt=data.excerpt,
        featured_image_url=featured.url if featured else None,
        meta_title=data.meta_title,
        meta_description=data.meta_description,
        meta_keywords=list(data.meta_keywords or []),
        tags=[context.keyword],
        status="draft",
        seo_score=data.seo_analysis.overall_score if data.seo_analysis else None,
        word_count=words,
        reading_time_minutes=reading_time_minutes(words),
        metadata=build_pipeline_metadata(context, data) if context.options.save_intermediate_results else {},
    )


def build_final_patch(context: ExecutionContext, data: PipelineData) -> ArticlePatchDTO:
    """Update applied to a materialized draft once every stage has run."""
    content = data.content or ""
    words = count_words(content)
    featured = data.featured_image
    values: dict[str, Any] = {
        "content": content,
        "excerpt": data.excerpt,
        "featured_image_url": featured.url if featured else None,
        "word_count": words,
        "reading_time_minutes": reading_time_minutes(words),
        "meta_title": data.meta_title,
        "meta_description": data.meta_description,
        "seo_score": data.seo_analysis.overall_score if data.seo_analysis else None,
    }
    if context.options.save_intermediate_results:
        values["metadata"] = build_pipeline_metadata(context, data)
    # Absent sections must not clear columns written by the draft insert.
    return ArticlePatchDTO.from_partial({key: value for key, value in values.items() if value is not None})
