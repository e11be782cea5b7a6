"""Shared in-memory collaborators for pipeline tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from articleforge.core.exceptions import ArticleNotFoundError, ExternalAPIError
from articleforge.schemas.article import ArticleCreateDTO, ArticlePatchDTO
from articleforge.schemas.pipeline import OutlineSection, SerpResult, resolve_pipeline_options
from articleforge.services.pipeline.ports import ImageRequest, ImageResult, LinkableArticle
from articleforge.services.pipeline.types import ExecutionContext, StageServices


class InMemoryArticleStore:
    def __init__(self, linkable: list[LinkableArticle] | None = None) -> None:
        self.articles: dict[str, dict[str, Any]] = {}
        self.created: list[ArticleCreateDTO] = []
        self.patches: list[tuple[str, dict[str, Any]]] = []
        self.linkable = list(linkable or [])
        self.taken_slugs: set[tuple[str, str]] = set()
        self.linkable_calls: list[dict[str, Any]] = []

    async def generate_unique_slug(self, organization_id: str, base_slug: str) -> str:
        slug = base_slug
        suffix = 2
        while (organization_id, slug) in self.taken_slugs:
            slug = f"{base_slug}-{suffix}"
            suffix += 1
        return slug

    async def create_article(self, article: ArticleCreateDTO) -> str:
        article_id = f"article-{len(self.created) + 1}"
        self.created.append(article)
        self.articles[article_id] = article.model_dump()
        self.taken_slugs.add((article.organization_id, article.slug))
        return article_id

    async def update_article(self, article_id: str, patch: ArticlePatchDTO) -> None:
        if article_id not in self.articles:
            raise ArticleNotFoundError(article_id)
        changes = patch.to_patch_dict()
        self.patches.append((article_id, changes))
        self.articles[article_id].update(changes)

    async def list_linkable_articles(
        self,
        organization_id: str,
        product_id: str | None,
        *,
        exclude_article_id: str | None = None,
    ) -> list[LinkableArticle]:
        self.linkable_calls.append(
            {
                "organization_id": organization_id,
                "product_id": product_id,
                "exclude_article_id": exclude_article_id,
            }
        )
        return [article for article in self.linkable if article.id != exclude_article_id]


class FakeSerpProvider:
    def __init__(self, results: list[SerpResult] | None = None) -> None:
        self.results = results or []
        self.calls: list[dict[str, Any]] = []

    async def fetch_serp(self, keyword: str, *, location: str, device: str, depth: int) -> list[SerpResult]:
        self.calls.append({"keyword": keyword, "location": location, "device": device, "depth": depth})
        return list(self.results)


class FakeImageGenerator:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.requests: list[ImageRequest] = []

    async def generate_image(self, request: ImageRequest) -> ImageResult:
        self.requests.append(request)
        if self.fail:
            raise ExternalAPIError("OpenAI Images", "content policy violation")
        return ImageResult(url=f"https://images.example.com/{len(self.requests)}.png")


def sample_serp_results() -> list[SerpResult]:
    return [
        SerpResult(
            title="Email Marketing Strategy: The Complete Guide",
            url="https://www.hubspot.com/email-marketing",
            snippet="Build an email marketing strategy with segmentation, automation and newsletters.",
            position=1,
            domain="www.hubspot.com",
        ),
        SerpResult(
            title="Email Marketing Tips for Small Business",
            url="https://mailchimp.com/resources/email-marketing-tips",
            snippet="Segmentation and automation tips that improve open rates for newsletters.",
            position=2,
            domain="mailchimp.com",
        ),
        SerpResult(
            title="What Is Email Marketing?",
            url="https://en.wikipedia.org/wiki/Email_marketing",
            snippet="Email marketing is the act of sending commercial messages to subscribers.",
            position=3,
            domain="en.wikipedia.org",
        ),
    ]


@pytest.fixture
def article_store() -> InMemoryArticleStore:
    return InMemoryArticleStore()


@pytest.fixture
def serp_provider() -> FakeSerpProvider:
    return FakeSerpProvider(sample_serp_results())


@pytest.fixture
def image_generator() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def make_context(article_store: InMemoryArticleStore) -> Callable[..., ExecutionContext]:
    """Factory for execution contexts with sensible test defaults."""

    def _make(
        *,
        keyword: str = "email marketing",
        options: dict[str, Any] | None = None,
        services: StageServices | None = None,
        product_id: str | None = "product-1",
        outline: list[OutlineSection] | None = None,
        title: str | None = None,
        content: str | None = None,
    ) -> ExecutionContext:
        return ExecutionContext(
            run_id="pipeline_test",
            started_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            user_id="user-1",
            organization_id="org-1",
            keyword=keyword,
            options=resolve_pipeline_options(options),
            services=services or StageServices(article_store=article_store),
            product_id=product_id,
            provided_outline=tuple(outline) if outline else None,
            provided_title=title,
            provided_content=content,
        )

    return _make
