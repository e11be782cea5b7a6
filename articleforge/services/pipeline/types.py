"""Core pipeline types: stage ids, descriptors, and the per-run context."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime

from articleforge.schemas.pipeline import OutlineSection, PipelineData, PipelineOptions
from articleforge.services.external_link_sources import DEFAULT_AUTHORITY_SOURCES, AuthoritySource
from articleforge.services.pipeline.ports import ArticleStore, ImageGenerator, SerpProvider

STAGE_IDS: tuple[str, ...] = (
    "serp_analysis",
    "outline_generation",
    "draft_generation",
    "internal_linking",
    "external_linking",
    "image_generation",
    "seo_scoring",
    "finalization",
)


@dataclass(frozen=True, slots=True)
class StageServices:
    """External collaborators available to stages during a run."""

    article_store: ArticleStore
    serp_provider: SerpProvider | None = None
    image_generator: ImageGenerator | None = None
    authority_sources: tuple[AuthoritySource, ...] = DEFAULT_AUTHORITY_SOURCES


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Read-only inputs for one pipeline run."""

    run_id: str
    started_at: datetime
    user_id: str
    organization_id: str
    keyword: str
    options: PipelineOptions
    services: StageServices
    product_id: str | None = None
    keyword_id: str | None = None
    provided_outline: tuple[OutlineSection, ...] | None = None
    provided_title: str | None = None
    provided_content: str | None = None


StageExecutor = Callable[[ExecutionContext, PipelineData], Awaitable[PipelineData]]
SkipPredicate = Callable[[ExecutionContext, PipelineData], bool]


@dataclass(frozen=True, slots=True)
class StageDescriptor:
    """Static description of one pipeline stage."""

    id: str
    name: str
    description: str
    execute: StageExecutor
    depends_on: tuple[str, ...] = field(default_factory=tuple)
    skip_if: SkipPredicate | None = None
    optional: bool = False
