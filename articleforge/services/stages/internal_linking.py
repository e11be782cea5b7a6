"""Internal linking stage: suggest links to related articles in the same product."""

from __future__ import annotations

import logging

from articleforge.schemas.pipeline import PipelineData
from articleforge.services.internal_link_matcher import match_internal_links
from articleforge.services.link_placement import LinkPlacement, apply_markdown_links
from articleforge.services.pipeline.types import ExecutionContext

logger = logging.getLogger(__name__)


def internal_article_path(slug: str) -> str:
    return f"/{slug}"


async def execute(context: ExecutionContext, data: PipelineData) -> PipelineData:
    options = context.options
    log_context = {"run_id": context.run_id, "product_id": context.product_id}

    if not data.content:
        logger.info("No draft content to link from", extra=log_context)
        return data.model_copy(update={"internal_link_suggestions": []})

    candidates = await context.services.article_store.list_linkable_articles(
        context.organization_id,
        context.product_id,
        exclude_article_id=data.article_id,
    )
    suggestions = match_internal_links(
        keyword=context.keyword,
        title=data.title or context.keyword,
        content=data.content,
        candidates=candidates,
        max_links=options.max_internal_links,
    )

    update: dict[str, object] = {"internal_link_suggestions": suggestions}
    if options.auto_apply_internal_links and suggestions:
        content, applied = apply_markdown_links(
            data.content,
            [
                LinkPlacement(
                    anchor_text=suggestion.suggested_anchor_text,
                    url=internal_article_path(suggestion.target_article_slug),
                )
                for suggestion in suggestions
            ],
        )
        update["content"] = content
        logger.info("Applied internal links", extra={**log_context, "applied": applied})

    logger.info(
        "Internal linking finished",
        extra={**log_context, "candidates": len(candidates), "suggestions": len(suggestions)},
    )
    return data.model_copy(update=update)
