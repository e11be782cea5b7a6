"""Draft generation stage: title, slug, markdown body and meta fields."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from articleforge.schemas.pipeline import OutlineSection, PipelineData
from articleforge.services.article_text import (
    build_excerpt,
    count_words,
    meta_title_for,
    slugify,
    title_case,
)
from articleforge.services.pipeline.types import ExecutionContext

logger = logging.getLogger(__name__)

BASELINE_WORD_COUNT = 1500

TITLE_TEMPLATES: tuple[str, ...] = (
    "The Ultimate Guide to {keyword}",
    "How to Master {keyword}: A Complete Guide",
    "{keyword}: Everything You Need to Know",
    "The Complete {keyword} Handbook for Beginners",
    "Proven Strategies for {keyword}",
    "Understanding {keyword}: A Comprehensive Overview",
    "Your Step-by-Step Guide to {keyword}",
    "{keyword} Explained: Expert Tips and Insights",
)

META_DESCRIPTIONS: dict[str, str] = {
    "professional": (
        "Discover comprehensive strategies and expert insights on {keyword}. "
        "Learn proven techniques to achieve optimal results in this detailed guide."
    ),
    "casual": (
        "Want to learn about {keyword}? We break it down in a way that's actually useful. "
        "No fluff, just good info you can use."
    ),
    "friendly": (
        "Explore our friendly guide to {keyword}! "
        "We share helpful tips and insights to make learning easy and enjoyable."
    ),
    "authoritative": (
        "Evidence-based guide to {keyword} featuring industry research, expert analysis, "
        "and proven methodologies for optimal outcomes."
    ),
    "minimalist": "{keyword}: Essential guide covering key concepts and practical applications.",
    "playful": (
        "Dive into the world of {keyword}! "
        "We make learning fun with examples and tips you'll actually remember."
    ),
}

SECTION_INTROS: dict[str, str] = {
    "professional": "In this section, we examine {section} in detail, providing expert insights and actionable strategies.",
    "casual": "Ready to dive into {section}? Let's break it down in a way that actually makes sense.",
    "friendly": "Let's explore {section} together in a friendly, easy-to-understand way.",
    "authoritative": "Based on industry research and best practices, {section} represents a critical component of success.",
    "minimalist": "{section} explained simply.",
    "playful": "Alright folks, let's tackle {section}. Don't worry, it's actually pretty fun!",
}

ARTICLE_INTROS: dict[str, str] = {
    "professional": "In this comprehensive guide to {keyword}, we'll explore everything you need to know to achieve success.",
    "casual": "Ready to learn about {keyword}? Let's dive in and break it down in a way that actually makes sense.",
    "friendly": "Welcome! We're excited to help you understand {keyword} in this friendly, easy-to-follow guide.",
    "authoritative": "Based on extensive research and industry best practices, this guide examines {keyword} in detail.",
    "minimalist": "{keyword}: essential guide below.",
    "playful": "Hey there! Ready to become an expert on {keyword}? Let's make this fun!",
}

POINT_SENTENCES: tuple[str, ...] = (
    "This aspect of {point} is particularly important when considering {keyword}.",
    "By focusing on this area, you can achieve better results and avoid common pitfalls.",
    "Many experts agree that this is a key factor in success.",
    "Start with a small, measurable change and review the outcome before expanding it.",
    "Document what works so the approach can be repeated consistently.",
    "Revisit this area regularly, since expectations around {keyword} continue to evolve.",
)


def generate_title(keyword: str) -> str:
    """Pick a title template deterministically from the keyword."""
    index = sum(ord(char) for char in keyword) % len(TITLE_TEMPLATES)
    return TITLE_TEMPLATES[index].format(keyword=title_case(keyword))


def generate_meta_description(keyword: str, tone: str) -> str:
    template = META_DESCRIPTIONS.get(tone, META_DESCRIPTIONS["professional"])
    return template.format(keyword=keyword)


def generate_meta_keywords(keyword: str) -> list[str]:
    base = keyword.lower().strip()
    candidates = [
        base,
        base.replace("-", " "),
        f"{base} guide",
        f"{base} tips",
        f"{base} strategies",
        f"how to {base}" if not base.startswith("how ") else f"{base} tutorial",
        f"{base} tutorial",
    ]
    return list(dict.fromkeys(candidates))


def _sentences_per_point(section: OutlineSection, target_word_count: int) -> int:
    scale = target_word_count / BASELINE_WORD_COUNT
    points = max(len(section.points), 1)
    wanted = round(section.word_count * scale / points / 15) if section.word_count else 3
    return max(3, min(len(POINT_SENTENCES), wanted))


def render_section(section: OutlineSection, tone: str, keyword: str, target_word_count: int) -> str:
    lowered = keyword.lower()
    intro = SECTION_INTROS.get(tone, SECTION_INTROS["professional"])
    lines = [f"## {section.title}", "", intro.format(section=section.title.lower()), ""]
    sentence_count = _sentences_per_point(section, target_word_count)
    for point in section.points:
        body = " ".join(
            sentence.format(point=point.lower(), keyword=lowered)
            for sentence in POINT_SENTENCES[:sentence_count]
        )
        lines.extend([f"### {point}", "", body, ""])
    return "\n".join(lines).rstrip() + "\n"


def render_outline(outline: Sequence[OutlineSection], tone: str, keyword: str, target_word_count: int) -> str:
    return "\n".join(render_section(section, tone, keyword, target_word_count) for section in outline)


def render_default_content(keyword: str, tone: str) -> str:
    """Fixed article structure used when no outline is available."""
    name = title_case(keyword)
    lowered = keyword.lower()
    intro = ARTICLE_INTROS.get(tone, ARTICLE_INTROS["professional"]).format(keyword=lowered)
    return "\n".join(
        [
            f"# {name}",
            "",
            intro,
            "",
            f"## What is {name}?",
            "",
            f"{name} refers to a critical concept that has gained significant attention in recent years. "
            "At its core, it involves understanding the fundamental principles and applying them "
            "effectively in real-world scenarios.",
            "",
            "## Key Benefits",
            "",
            f"When implemented correctly, {lowered} offers numerous advantages:",
            "",
            "- **Improved Efficiency**: Streamlined processes and optimized workflows",
            "- **Better Results**: Higher quality outcomes with less wasted effort",
            "- **Cost Savings**: Reduced expenses through smarter resource allocation",
            "- **Competitive Advantage**: Stay ahead of others in your field",
            "",
            "## How to Get Started",
            "",
            f"Ready to implement {lowered}? Follow these steps:",
            "",
            "1. **Assess Your Current Situation**: Understand where you are and where you want to be",
            "2. **Set Clear Goals**: Define specific, measurable objectives",
            "3. **Create an Action Plan**: Break down your goals into manageable tasks",
            "4. **Execute and Monitor**: Implement your plan and track progress",
            "",
            "## Common Mistakes to Avoid",
            "",
            "- Rushing into implementation without proper planning",
            "- Neglecting to measure and track results",
            "- Trying to do too much at once instead of iterating gradually",
            "",
            "## Conclusion",
            "",
            f"Mastering {lowered} takes time and practice. Start with the fundamentals, be patient "
            "with your progress, and refine your approach based on results.",
            "",
        ]
    )


def append_custom_instructions(content: str, instructions: str) -> str:
    cleaned = instructions.strip()
    if not cleaned:
        return content
    return f"{content.rstrip()}\n\n## Editor's Note\n\n{cleaned}\n"


async def _unique_slug(context: ExecutionContext, title: str) -> str:
    base = slugify(title) or slugify(context.keyword) or "article"
    return await context.services.article_store.generate_unique_slug(context.organization_id, base)


async def execute(context: ExecutionContext, data: PipelineData) -> PipelineData:
    options = context.options
    log_context = {"run_id": context.run_id, "keyword": context.keyword}

    if options.skip_draft_generation:
        logger.info("Skipping draft generation", extra=log_context)
        return data

    if context.provided_title and context.provided_content:
        logger.info("Using provided title and content", extra=log_context)
        title = context.provided_title
        content = context.provided_content
        return data.model_copy(
            update={
                "title": title,
                "slug": await _unique_slug(context, title),
                "content": content,
                "excerpt": build_excerpt(content),
                "meta_title": meta_title_for(title),
                "meta_description": generate_meta_description(context.keyword, options.tone),
                "meta_keywords": generate_meta_keywords(context.keyword),
            }
        )

    title = context.provided_title or generate_title(context.keyword)
    slug = await _unique_slug(context, title)

    if data.outline:
        content = render_outline(data.outline, options.tone, context.keyword, options.target_word_count)
    else:
        content = render_default_content(context.keyword, options.tone)
    content = append_custom_instructions(content, options.custom_instructions)

    logger.info(
        "Draft generated",
        extra={
            **log_context,
            "tone": options.tone,
            "slug": slug,
            "words": count_words(content),
            "target_word_count": options.target_word_count,
        },
    )
    return data.model_copy(
        update={
            "title": title,
            "slug": slug,
            "content": content,
            "excerpt": build_excerpt(content),
            "meta_title": meta_title_for(title),
            "meta_description": generate_meta_description(context.keyword, options.tone),
            "meta_keywords": generate_meta_keywords(context.keyword),
        }
    )
