"""Outline generation stage: article structure from the keyword and SERP findings."""

from __future__ import annotations

import logging
from typing import Literal

from articleforge.schemas.pipeline import OutlineSection, PipelineData, SerpAnalysis
from articleforge.services.article_text import title_case
from articleforge.services.pipeline.types import ExecutionContext

logger = logging.getLogger(__name__)

ArticleType = Literal["how_to", "comparison", "list", "guide"]


def detect_article_type(keyword: str) -> ArticleType:
    lowered = keyword.lower().strip()
    if lowered.startswith("how "):
        return "how_to"
    if " vs " in lowered or " versus " in lowered:
        return "comparison"
    if "best " in lowered or lowered.startswith("top ") or " tips" in lowered or " mistakes" in lowered:
        return "list"
    return "guide"


def _body_sections(article_type: ArticleType, keyword: str) -> list[OutlineSection]:
    name = title_case(keyword)
    lowered = keyword.lower()

    if article_type == "how_to":
        return [
            OutlineSection(
                id="prerequisites",
                title="Understanding the Basics",
                points=[f"Key concepts related to {lowered}", "What you need to know before starting", "Common misconceptions"],
                word_count=200,
            ),
            OutlineSection(
                id="steps",
                title="Step-by-Step Process",
                points=[
                    f"Initial preparation for {lowered}",
                    "Core steps to follow",
                    "Best practices for execution",
                    "Tips for better results",
                ],
                word_count=400,
            ),
            OutlineSection(
                id="troubleshooting",
                title="Common Challenges and Solutions",
                points=["Typical obstacles you might encounter", "How to overcome common issues", "When to seek additional help"],
                word_count=200,
            ),
        ]

    if article_type == "comparison":
        return [
            OutlineSection(
                id="overview",
                title="Key Differences at a Glance",
                points=["Main comparison points", "Quick reference table", "Understanding the core distinctions"],
                word_count=200,
            ),
            OutlineSection(
                id="detailed-comparison",
                title="Detailed Feature Comparison",
                points=["In-depth analysis of each aspect", "Pros and cons breakdown", "Use case scenarios"],
                word_count=350,
            ),
            OutlineSection(
                id="verdict",
                title="Which Should You Choose?",
                points=["Recommendations based on needs", "Decision-making framework", "Final considerations"],
                word_count=200,
            ),
        ]

    if article_type == "list":
        return [
            OutlineSection(
                id="main-list",
                title=f"Essential {name} Strategies",
                points=[
                    "Strategy 1 with implementation tips",
                    "Strategy 2 with examples",
                    "Strategy 3 for immediate results",
                    "Strategy 4 for long-term success",
                    "Strategy 5 for advanced users",
                ],
                word_count=400,
            ),
            OutlineSection(
                id="implementation",
                title="Implementation Tips",
                points=["How to apply these strategies", "Common pitfalls to avoid", "Measuring success"],
                word_count=200,
            ),
        ]

    return [
        OutlineSection(
            id="what-is",
            title=f"What is {name}?",
            points=[f"Definition and overview of {lowered}", "Core components and elements", "Why it matters"],
            word_count=200,
        ),
        OutlineSection(
            id="benefits",
            title=f"Key Benefits of {name}",
            points=["Primary advantages", "Secondary benefits", "Return on investment"],
            word_count=200,
        ),
        OutlineSection(
            id="implementation",
            title="How to Get Started",
            points=["Initial steps to take", "Resources and tools needed", "Building a foundation"],
            word_count=250,
        ),
        OutlineSection(
            id="best-practices",
            title="Best Practices and Tips",
            points=["Expert recommendations", "Common mistakes to avoid", "Optimization strategies"],
            word_count=200,
        ),
    ]


def build_outline(
    keyword: str,
    article_type: ArticleType,
    section_count: int,
    serp_analysis: SerpAnalysis | None = None,
) -> list[OutlineSection]:
    """Introduction, type-specific body and conclusion, cut to ``section_count``.

    When the template is shorter than ``section_count`` and the SERP analysis
    found content gaps, a section covering them is added before the conclusion.
    """
    name = title_case(keyword)
    lowered = keyword.lower()

    outline = [
        OutlineSection(
            id="intro",
            title=f"Introduction to {name}",
            points=[
                f"Understanding the importance of {lowered}",
                "What readers will learn from this article",
                f"Why {lowered} matters in today's context",
            ],
            word_count=150,
        ),
        *_body_sections(article_type, keyword),
    ]

    gaps = serp_analysis.content_gaps if serp_analysis else []
    if gaps and len(outline) + 2 <= section_count:
        outline.append(
            OutlineSection(
                id="related-topics",
                title="Related Topics to Consider",
                points=[f"How {gap} relates to {lowered}" for gap in gaps[:4]],
                word_count=200,
            )
        )

    outline.append(
        OutlineSection(
            id="conclusion",
            title="Conclusion and Next Steps",
            points=[
                f"Key takeaways about {lowered}",
                "Action items for immediate implementation",
                "Resources for further learning",
            ],
            word_count=150,
        )
    )
    return outline[:section_count]


async def execute(context: ExecutionContext, data: PipelineData) -> PipelineData:
    log_context = {"run_id": context.run_id, "keyword": context.keyword}

    if context.options.skip_outline_generation:
        logger.info("Skipping outline generation", extra=log_context)
        return data

    if context.provided_outline:
        logger.info("Using provided outline", extra={**log_context, "sections": len(context.provided_outline)})
        return data.model_copy(update={"outline": list(context.provided_outline)})

    article_type = detect_article_type(context.keyword)
    outline = build_outline(
        context.keyword,
        article_type,
        context.options.outline_sections,
        data.serp_analysis,
    )
    logger.info(
        "Outline generated",
        extra={**log_context, "article_type": article_type, "sections": len(outline)},
    )
    return data.model_copy(update={"outline": outline})
