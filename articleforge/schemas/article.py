"""Write DTOs for the article store."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ArticleCreateDTO(BaseModel):
    """Fields required to insert a new article row."""

    model_config = ConfigDict(frozen=True)

    organization_id: str
    author_id: str
    title: str
    slug: str
    content: str = ""
    product_id: str | None = None
    keyword_id: str | None = None
    excerpt: str | None = None
    featured_image_url: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    status: str = "draft"
    seo_score: int | None = None
    word_count: int = 0
    reading_time_minutes: int = 1
    metadata: dict[str, Any] = Field(default_factory=dict)


class ArticlePatchDTO(BaseModel):
    """Partial update for an existing article.

    Only explicitly set fields are written; use ``from_partial`` to build one
    from a plain mapping.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    content: str | None = None
    excerpt: str | None = None
    featured_image_url: str | None = None
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] | None = None
    seo_score: int | None = None
    word_count: int | None = None
    reading_time_minutes: int | None = None
    metadata: dict[str, Any] | None = None

    @classmethod
    def from_partial(cls, values: dict[str, Any]) -> "ArticlePatchDTO":
        known = {key: value for key, value in values.items() if key in cls.model_fields}
        return cls.model_validate(known)

    def to_patch_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
