"""Image generation stage: featured and inline images for the article."""

from __future__ import annotations

import logging

from articleforge.core.exceptions import StageExecutionError
from articleforge.schemas.pipeline import GeneratedImage, PipelineData
from articleforge.services.pipeline.ports import ImageRequest
from articleforge.services.pipeline.types import ExecutionContext

logger = logging.getLogger(__name__)

INLINE_IMAGE_SIZE = "1024x1024"
INLINE_IMAGE_QUALITY = "standard"

FEATURED_PROMPTS: dict[str, str] = {
    "realistic": (
        'A professional, photorealistic image representing "{subject}" for a business article. '
        "Clean, modern composition with professional lighting."
    ),
    "watercolor": (
        'A beautiful watercolor illustration representing "{subject}" for an article. '
        "Soft, artistic style with gentle colors."
    ),
    "illustration": (
        'A modern, clean illustration depicting "{subject}" for a professional article. '
        "Flat design style with a cohesive color palette."
    ),
    "sketch": (
        'A detailed pencil sketch representing "{subject}" for an article. '
        "Professional line art with subtle shading."
    ),
    "brand_text_overlay": (
        'A minimalist graphic design for an article about "{subject}". '
        "Clean background with space for text overlay."
    ),
}


def build_image_prompt(subject: str, style: str, *, featured: bool) -> str:
    if featured:
        template = FEATURED_PROMPTS.get(style, FEATURED_PROMPTS["realistic"])
        return template.format(subject=subject)
    return (
        f'An illustrative image related to "{subject.lower()}" that fits naturally within '
        f"article content. {style} style, professional quality."
    )


async def execute(context: ExecutionContext, data: PipelineData) -> PipelineData:
    options = context.options
    generator = context.services.image_generator
    log_context = {"run_id": context.run_id, "keyword": context.keyword, "style": options.image_style}

    if generator is None:
        logger.info("No image generator configured", extra=log_context)
        return data

    jobs: list[tuple[ImageRequest, str, bool]] = []
    if options.generate_featured_image:
        jobs.append(
            (
                ImageRequest(
                    prompt=build_image_prompt(context.keyword, options.image_style, featured=True),
                    style=options.image_style,
                    size=options.image_size,
                    quality=options.image_quality,
                    apply_brand_colors=options.apply_brand_colors,
                    organization_id=context.organization_id,
                    user_id=context.user_id,
                ),
                f"Featured image for article about {context.keyword}",
                True,
            )
        )

    outline = data.outline or []
    if options.generate_inline_images and len(outline) > 2:
        middle_sections = outline[1:-1][: options.inline_image_count]
        for section in middle_sections:
            jobs.append(
                (
                    ImageRequest(
                        prompt=build_image_prompt(section.title, options.image_style, featured=False),
                        style=options.image_style,
                        size=INLINE_IMAGE_SIZE,
                        quality=INLINE_IMAGE_QUALITY,
                        apply_brand_colors=options.apply_brand_colors,
                        organization_id=context.organization_id,
                        user_id=context.user_id,
                    ),
                    f"Illustration for section: {section.title}",
                    False,
                )
            )

    images: list[GeneratedImage] = []
    failures: list[str] = []
    for request, alt_text, featured in jobs:
        try:
            result = await generator.generate_image(request)
        except Exception as e:
            failures.append(str(e))
            logger.warning(
                "Image generation failed",
                extra={**log_context, "featured": featured, "alt_text": alt_text, "error": str(e)},
            )
            continue
        images.append(
            GeneratedImage(
                url=result.url,
                prompt=request.prompt,
                style=request.style,
                size=request.size,
                alt_text=alt_text,
                is_featured=featured,
            )
        )

    if jobs and not images:
        raise StageExecutionError(
            "image_generation",
            f"all {len(jobs)} requested images failed: {failures[-1]}",
        )

    logger.info(
        "Image generation finished",
        extra={**log_context, "requested": len(jobs), "generated": len(images), "failed": len(failures)},
    )
    return data.model_copy(update={"generated_images": images})
