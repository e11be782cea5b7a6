"""Unit tests for the image generation stage."""

from __future__ import annotations

import pytest

from articleforge.core.exceptions import ExternalAPIError, StageExecutionError
from articleforge.schemas.pipeline import OutlineSection, PipelineData
from articleforge.services.pipeline.ports import ImageRequest, ImageResult
from articleforge.services.pipeline.types import StageServices
from articleforge.services.stages import image_generation


class _Generator:
    def __init__(self, fail_prompts_containing: str | None = None, fail_all: bool = False) -> None:
        self.fail_prompts_containing = fail_prompts_containing
        self.fail_all = fail_all
        self.requests: list[ImageRequest] = []

    async def generate_image(self, request: ImageRequest) -> ImageResult:
        self.requests.append(request)
        if self.fail_all or (self.fail_prompts_containing and self.fail_prompts_containing in request.prompt):
            raise ExternalAPIError("OpenAI Images", "rejected")
        return ImageResult(url=f"https://img.example/{len(self.requests)}.png")


def _outline() -> list[OutlineSection]:
    return [
        OutlineSection(id="intro", title="Introduction"),
        OutlineSection(id="basics", title="Understanding the Basics"),
        OutlineSection(id="setup", title="Setting Up Campaigns"),
        OutlineSection(id="metrics", title="Measuring Results"),
        OutlineSection(id="conclusion", title="Conclusion"),
    ]


def _context(make_context, article_store, generator, **options):
    return make_context(
        services=StageServices(article_store=article_store, image_generator=generator),
        options=options,
    )


@pytest.mark.asyncio
async def test_generates_featured_image_with_options(make_context, article_store) -> None:
    generator = _Generator()
    context = _context(make_context, article_store, generator, image_style="watercolor", image_quality="hd")

    data = await image_generation.execute(context, PipelineData(outline=_outline()))

    assert len(generator.requests) == 1
    request = generator.requests[0]
    assert request.style == "watercolor"
    assert request.size == "1792x1024"
    assert request.quality == "hd"
    assert request.apply_brand_colors is True
    assert request.organization_id == "org-1"
    assert request.user_id == "user-1"
    assert "watercolor illustration" in request.prompt
    assert data.generated_images is not None
    assert data.generated_images[0].is_featured is True
    assert data.featured_image is not None
    assert data.featured_image.url == "https://img.example/1.png"


@pytest.mark.asyncio
async def test_inline_images_use_middle_sections(make_context, article_store) -> None:
    generator = _Generator()
    context = _context(
        make_context,
        article_store,
        generator,
        generate_featured_image=False,
        generate_inline_images=True,
        inline_image_count=2,
    )

    data = await image_generation.execute(context, PipelineData(outline=_outline()))

    assert [request.size for request in generator.requests] == ["1024x1024", "1024x1024"]
    assert [request.quality for request in generator.requests] == ["standard", "standard"]
    assert "understanding the basics" in generator.requests[0].prompt
    assert "setting up campaigns" in generator.requests[1].prompt
    assert data.generated_images is not None
    assert [image.alt_text for image in data.generated_images] == [
        "Illustration for section: Understanding the Basics",
        "Illustration for section: Setting Up Campaigns",
    ]
    assert data.featured_image is None


@pytest.mark.asyncio
async def test_inline_images_need_more_than_two_sections(make_context, article_store) -> None:
    generator = _Generator()
    context = _context(make_context, article_store, generator, generate_featured_image=False, generate_inline_images=True)

    data = await image_generation.execute(context, PipelineData(outline=_outline()[:2]))

    assert generator.requests == []
    assert data.generated_images == []


@pytest.mark.asyncio
async def test_partial_failures_keep_successful_images(make_context, article_store) -> None:
    generator = _Generator(fail_prompts_containing="measuring results")
    context = _context(make_context, article_store, generator, generate_inline_images=True)

    data = await image_generation.execute(context, PipelineData(outline=_outline()))

    assert len(generator.requests) == 4
    assert data.generated_images is not None
    assert len(data.generated_images) == 3


@pytest.mark.asyncio
async def test_all_images_failing_fails_the_stage(make_context, article_store) -> None:
    context = _context(make_context, article_store, _Generator(fail_all=True))

    with pytest.raises(StageExecutionError, match="all 1 requested images failed"):
        await image_generation.execute(context, PipelineData(outline=_outline()))


@pytest.mark.asyncio
async def test_without_generator_passes_through(make_context) -> None:
    data = PipelineData(title="kept")

    assert await image_generation.execute(make_context(), data) is data


def test_build_image_prompt_falls_back_to_realistic() -> None:
    prompt = image_generation.build_image_prompt("Email Marketing", "unknown", featured=True)

    assert prompt.startswith('A professional, photorealistic image representing "Email Marketing"')
