"""Collaborator interfaces consumed by pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from articleforge.schemas.article import ArticleCreateDTO, ArticlePatchDTO
from articleforge.schemas.pipeline import SerpResult

if TYPE_CHECKING:
    from articleforge.schemas.pipeline import RunResult, StageResult


@dataclass(frozen=True, slots=True)
class LinkableArticle:
    """Existing article that may receive an internal link."""

    id: str
    title: str
    slug: str
    excerpt: str | None = None
    meta_keywords: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ImageRequest:
    prompt: str
    style: str
    size: str
    quality: str
    apply_brand_colors: bool
    organization_id: str
    user_id: str


@dataclass(frozen=True, slots=True)
class ImageResult:
    url: str
    revised_prompt: str | None = None


class ArticleStore(Protocol):
    """Persistence port for article rows."""

    async def generate_unique_slug(self, organization_id: str, base_slug: str) -> str: ...

    async def create_article(self, article: ArticleCreateDTO) -> str: ...

    async def update_article(self, article_id: str, patch: ArticlePatchDTO) -> None: ...

    async def list_linkable_articles(
        self,
        organization_id: str,
        product_id: str | None,
        *,
        exclude_article_id: str | None = None,
    ) -> list[LinkableArticle]: ...


class SerpProvider(Protocol):
    """Source of organic search results for a keyword."""

    async def fetch_serp(
        self,
        keyword: str,
        *,
        location: str,
        device: str,
        depth: int,
    ) -> list[SerpResult]: ...


class ImageGenerator(Protocol):
    async def generate_image(self, request: ImageRequest) -> ImageResult: ...


class PipelineObserver(Protocol):
    """Receives best-effort lifecycle notifications for a run."""

    async def on_progress(self, run_id: str, stage_result: StageResult, progress: int) -> None: ...

    async def on_error(self, run_id: str, stage: str, error: str) -> None: ...

    async def on_complete(self, run_result: RunResult) -> None: ...
