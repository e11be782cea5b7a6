"""External linking stage: link opportunities to authoritative sources."""

from __future__ import annotations

import logging

from articleforge.core.exceptions import ExternalAPIError
from articleforge.schemas.pipeline import PipelineData
from articleforge.services.external_link_sources import match_external_links
from articleforge.services.link_placement import LinkPlacement, apply_markdown_links, find_phrase
from articleforge.services.pipeline.types import ExecutionContext

logger = logging.getLogger(__name__)


async def execute(context: ExecutionContext, data: PipelineData) -> PipelineData:
    options = context.options
    log_context = {"run_id": context.run_id, "keyword": context.keyword}

    if not data.content:
        return data.model_copy(update={"external_link_opportunities": []})

    serp_results = data.serp_analysis.results if data.serp_analysis else []
    try:
        opportunities = match_external_links(
            keyword=context.keyword,
            content=data.content,
            serp_results=serp_results,
            authority_sources=context.services.authority_sources,
            include_authority_sources=options.include_authority_sources,
            max_links=options.max_external_links,
        )
    except (ExternalAPIError, ValueError) as e:
        logger.warning("External link matching failed, continuing without links", extra={**log_context, "error": str(e)})
        return data.model_copy(update={"external_link_opportunities": []})

    update: dict[str, object] = {"external_link_opportunities": opportunities}
    if options.auto_apply_external_links and opportunities:
        placements = [
            LinkPlacement(anchor_text=item.anchor_text, url=item.url)
            for item in opportunities
            if find_phrase(data.content, item.anchor_text) is not None
        ]
        content, applied = apply_markdown_links(data.content, placements)
        update["content"] = content
        logger.info("Applied external links", extra={**log_context, "applied": applied})

    logger.info(
        "External linking finished",
        extra={**log_context, "serp_results": len(serp_results), "opportunities": len(opportunities)},
    )
    return data.model_copy(update=update)
