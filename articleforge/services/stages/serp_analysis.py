"""SERP analysis stage: competitive findings for the target keyword."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence

from articleforge.core.exceptions import ExternalAPIError
from articleforge.schemas.pipeline import PipelineData, SerpAnalysis, SerpCompetitor, SerpResult
from articleforge.services.link_placement import tokenize
from articleforge.services.pipeline.types import ExecutionContext

logger = logging.getLogger(__name__)

MAX_COMPETITORS = 5
MAX_CONTENT_GAPS = 8


def find_content_gaps(keyword: str, results: Sequence[SerpResult]) -> list[str]:
    """Terms recurring across competitor results that the keyword does not cover."""
    keyword_terms = set(tokenize(keyword))
    document_frequency: Counter[str] = Counter()
    for result in results:
        document_frequency.update(set(tokenize(f"{result.title} {result.snippet}")))
    gaps = [
        term
        for term, count in document_frequency.most_common()
        if count >= 2 and term not in keyword_terms
    ]
    return gaps[:MAX_CONTENT_GAPS]


def build_recommendations(keyword: str, results: Sequence[SerpResult], gaps: Sequence[str]) -> list[str]:
    recommendations: list[str] = []
    if not results:
        return [f'No organic results found for "{keyword}"; treat the topic as low competition.']

    keyword_lower = keyword.lower()
    titled = sum(1 for result in results if keyword_lower in result.title.lower())
    if titled >= len(results) / 2:
        recommendations.append(f'Most top results use "{keyword}" in the title; include it near the start of yours.')
    if gaps:
        recommendations.append(f"Cover subtopics competitors emphasize: {', '.join(gaps[:5])}.")
    domains = {result.domain for result in results if result.domain}
    if len(domains) < len(results):
        recommendations.append("Some domains rank multiple times; aim for depth that beats the dominant site.")
    recommendations.append(f"Aim to outperform the top {min(len(results), MAX_COMPETITORS)} results in depth and clarity.")
    return recommendations


async def execute(context: ExecutionContext, data: PipelineData) -> PipelineData:
    options = context.options
    provider = context.services.serp_provider
    log_context = {"run_id": context.run_id, "keyword": context.keyword}

    if options.skip_serp_analysis:
        logger.info("Skipping SERP analysis", extra=log_context)
        return data
    if provider is None:
        logger.info("No SERP provider configured, skipping SERP analysis", extra=log_context)
        return data

    try:
        results = await provider.fetch_serp(
            context.keyword,
            location=options.serp_location,
            device=options.serp_device,
            depth=options.serp_depth,
        )
    except ExternalAPIError as e:
        logger.warning("SERP lookup failed, continuing without analysis", extra={**log_context, "error": str(e)})
        return data

    ranked = sorted(results, key=lambda result: result.position)[: options.serp_depth]
    gaps = find_content_gaps(context.keyword, ranked)
    analysis = SerpAnalysis(
        query=context.keyword,
        results=ranked,
        competitors=[
            SerpCompetitor(title=result.title, url=result.url)
            for result in ranked[:MAX_COMPETITORS]
        ],
        content_gaps=gaps,
        recommendations=build_recommendations(context.keyword, ranked, gaps),
    )
    logger.info("SERP analysis finished", extra={**log_context, "results": len(ranked), "content_gaps": len(gaps)})
    return data.model_copy(update={"serp_analysis": analysis})
