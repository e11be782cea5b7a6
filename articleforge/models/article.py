"""Article model persisted by the generation pipeline."""

from __future__ import annotations

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from articleforge.models.base import Base, StringUUID, TimestampMixin, UUIDMixin


class Article(Base, UUIDMixin, TimestampMixin):
    """Generated article owned by an organization."""

    __tablename__ = "articles"
    __table_args__ = (
        Index("ix_articles_organization_slug", "organization_id", "slug", unique=True),
    )

    organization_id: Mapped[str] = mapped_column(StringUUID(), nullable=False, index=True)
    product_id: Mapped[str | None] = mapped_column(StringUUID(), nullable=True, index=True)
    keyword_id: Mapped[str | None] = mapped_column(StringUUID(), nullable=True)
    author_id: Mapped[str] = mapped_column(String(255), nullable=False)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    featured_image_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    meta_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta_keywords: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
    tags: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    status: Mapped[str] = mapped_column(String(30), default="draft", nullable=False, index=True)
    seo_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    word_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reading_time_minutes: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # `metadata` is reserved on declarative models.
    pipeline_metadata: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)
