"""Pipeline schemas: options, accumulated stage data, and run reports."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

StageStatus = Literal["completed", "failed", "skipped"]
RunStatus = Literal["completed", "failed"]
Tone = Literal["professional", "casual", "friendly", "authoritative", "minimalist", "playful"]
SerpDevice = Literal["desktop", "mobile"]
ImageStyle = Literal["realistic", "watercolor", "illustration", "sketch", "brand_text_overlay"]
ImageSize = Literal["1024x1024", "1792x1024", "1024x1792"]
ImageQuality = Literal["standard", "hd"]


class PipelineOptions(BaseModel):
    """Fully defaulted pipeline configuration.

    Every option consumed by a stage is declared here with a concrete default,
    so stages never need to handle a missing option.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    # SERP analysis
    skip_serp_analysis: bool = False
    serp_location: str = "United States"
    serp_device: SerpDevice = "desktop"
    serp_depth: int = Field(default=10, ge=5, le=20)

    # Outline generation
    skip_outline_generation: bool = False
    outline_sections: int = Field(default=6, ge=3, le=15)

    # Draft generation
    skip_draft_generation: bool = False
    tone: Tone = "professional"
    target_word_count: int = Field(default=1500, ge=500, le=5000)
    custom_instructions: str = ""

    # Internal linking
    skip_internal_linking: bool = False
    max_internal_links: int = Field(default=5, ge=0, le=20)
    auto_apply_internal_links: bool = False

    # External linking
    skip_external_linking: bool = False
    max_external_links: int = Field(default=5, ge=0, le=20)
    auto_apply_external_links: bool = False
    include_authority_sources: bool = True

    # Image generation
    skip_image_generation: bool = False
    generate_featured_image: bool = True
    generate_inline_images: bool = False
    inline_image_count: int = Field(default=3, ge=0, le=10)
    image_style: ImageStyle = "realistic"
    image_size: ImageSize = "1792x1024"
    image_quality: ImageQuality = "standard"
    apply_brand_colors: bool = True

    # SEO scoring
    skip_seo_scoring: bool = False
    auto_optimize_seo: bool = False

    # General
    save_intermediate_results: bool = True


def resolve_pipeline_options(
    overrides: Mapping[str, Any] | PipelineOptions | None = None,
) -> PipelineOptions:
    """Merge caller-supplied partial options over the documented defaults.

    ``None`` values and unknown keys are treated as omitted. Invalid values
    raise ``pydantic.ValidationError``.
    """
    if isinstance(overrides, PipelineOptions):
        return overrides
    known = PipelineOptions.model_fields
    provided = {
        key: value
        for key, value in (overrides or {}).items()
        if key in known and value is not None
    }
    return PipelineOptions.model_validate(provided)


def describe_options_error(error: ValidationError) -> str:
    """One-line summary of option validation errors, e.g. for run reports."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return "Invalid pipeline options: " + "; ".join(parts)


class OutlineSection(BaseModel):
    """One section of an article outline."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    points: list[str] = Field(default_factory=list)
    word_count: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("word_count", "wordCount"),
    )


class SerpResult(BaseModel):
    """Single organic search result."""

    title: str
    url: str
    snippet: str = ""
    position: int
    domain: str | None = None


class SerpCompetitor(BaseModel):
    title: str
    url: str
    word_count: int | None = None
    structure: list[str] = Field(default_factory=list)


class SerpAnalysis(BaseModel):
    """Competitive findings for the subject keyword."""

    query: str
    results: list[SerpResult] = Field(default_factory=list)
    competitors: list[SerpCompetitor] = Field(default_factory=list)
    content_gaps: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    keyword_difficulty: float | None = None


class InternalLinkSuggestion(BaseModel):
    target_article_id: str
    target_article_title: str
    target_article_slug: str
    suggested_anchor_text: str
    context_snippet: str
    relevance_score: int
    position_in_content: int | None = None


class ExternalLinkOpportunity(BaseModel):
    url: str
    anchor_text: str
    context_snippet: str
    relevance_score: int
    authority: int | None = None
    source: str


class GeneratedImage(BaseModel):
    url: str
    prompt: str
    style: str
    size: str
    alt_text: str | None = None
    is_featured: bool = False


class SeoAnalysis(BaseModel):
    overall_score: int
    grade: str
    keyword_density: float = 0.0
    readability_score: int = 0
    heading_structure_score: int = 0
    meta_tags_score: int = 0
    link_score: int = 0
    recommendations: list[str] = Field(default_factory=list)


class PipelineData(BaseModel):
    """Accumulating result threaded through every stage.

    Frozen: stages return ``data.model_copy(update=...)`` instead of editing
    the value they were given.
    """

    model_config = ConfigDict(frozen=True)

    serp_analysis: SerpAnalysis | None = None
    outline: list[OutlineSection] | None = None

    title: str | None = None
    slug: str | None = None
    content: str | None = None
    excerpt: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] | None = None

    article_id: str | None = None

    internal_link_suggestions: list[InternalLinkSuggestion] | None = None
    external_link_opportunities: list[ExternalLinkOpportunity] | None = None
    generated_images: list[GeneratedImage] | None = None
    seo_analysis: SeoAnalysis | None = None

    @property
    def featured_image(self) -> GeneratedImage | None:
        for image in self.generated_images or []:
            if image.is_featured:
                return image
        return None


class StageResult(BaseModel):
    """Execution record for one registry entry."""

    model_config = ConfigDict(frozen=True)

    stage: str
    status: StageStatus
    started_at: datetime
    completed_at: datetime | None = None
    duration_ms: int | None = None
    error: str | None = None
    skip_reason: str | None = None


class ArticleSnapshot(BaseModel):
    id: str
    title: str
    slug: str
    content: str
    excerpt: str | None = None
    featured_image_url: str | None = None
    seo_score: int | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] | None = None


class PipelineOutput(BaseModel):
    """Consolidated payload projected from the final pipeline data."""

    article_id: str | None = None
    article: ArticleSnapshot | None = None
    serp_analysis: SerpAnalysis | None = None
    outline: list[OutlineSection] | None = None
    internal_links: list[InternalLinkSuggestion] | None = None
    external_links: list[ExternalLinkOpportunity] | None = None
    generated_images: list[GeneratedImage] | None = None
    seo_analysis: SeoAnalysis | None = None


class RunResult(BaseModel):
    """Final report of one pipeline run."""

    run_id: str
    status: RunStatus
    current_stage: str | None = None
    progress: int = Field(ge=0, le=100)
    started_at: datetime
    completed_at: datetime | None = None
    stages: list[StageResult] = Field(default_factory=list)
    result: PipelineOutput | None = None
    error: str | None = None


class PipelineRunRequest(BaseModel):
    """Everything needed to build an execution context for one run."""

    keyword: str = Field(min_length=1)
    organization_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    keyword_id: str | None = None
    product_id: str | None = None
    outline: list[OutlineSection] | None = None
    title: str | None = None
    content: str | None = None
    options: dict[str, Any] | None = None

    @field_validator("keyword")
    @classmethod
    def _keyword_not_blank(cls, value: str) -> str:
        cleaned = " ".join(value.split())
        if not cleaned:
            raise ValueError("keyword must not be blank")
        return cleaned


class PipelineStartRequest(BaseModel):
    """HTTP body for starting an article pipeline run."""

    keyword: str = Field(min_length=1, description="Target keyword or topic.")
    organization_id: str = Field(min_length=1)
    keyword_id: str | None = None
    product_id: str | None = Field(
        default=None,
        description="Product scope; internal linking is skipped without it.",
    )
    outline: list[OutlineSection] | None = None
    title: str | None = None
    content: str | None = None
    options: dict[str, Any] | None = Field(
        default=None,
        description="Partial pipeline options; omitted fields use defaults.",
    )

    @field_validator("keyword")
    @classmethod
    def _keyword_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("keyword must not be blank")
        return value


class PipelineRunResponse(RunResult):
    """HTTP response for a pipeline run."""

    success: bool
    duration_ms: int


class PipelineStageInfo(BaseModel):
    id: str
    name: str
    description: str
    depends_on: list[str]
    optional: bool


class PipelineDescriptionResponse(BaseModel):
    name: str
    version: str
    description: str
    stages: list[PipelineStageInfo]
    options: dict[str, Any]
