"""Repository for Article reads and writes used by the pipeline."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from articleforge.core.exceptions import ArticleNotFoundError, ArticlePersistenceError
from articleforge.models.article import Article
from articleforge.schemas.article import ArticleCreateDTO, ArticlePatchDTO
from articleforge.services.pipeline.ports import LinkableArticle

logger = logging.getLogger(__name__)

LINKABLE_STATUSES = ("draft", "published")
LINKABLE_LIMIT = 200


class SqlAlchemyArticleRepository:
    """Article store backed by an async SQLAlchemy session.

    The caller owns the session and its transaction. Each write runs in a
    savepoint and is flushed, so generated ids are available immediately and
    a failed write rolls back only itself.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def generate_unique_slug(self, organization_id: str, base_slug: str) -> str:
        """Return ``base_slug`` or the first free ``base_slug-N`` (N >= 2)."""
        stmt = select(Article.slug).where(
            Article.organization_id == organization_id,
            Article.slug.like(f"{base_slug}%"),
        )
        result = await self.session.execute(stmt)
        taken = set(result.scalars().all())
        if base_slug not in taken:
            return base_slug

        suffix = 2
        while f"{base_slug}-{suffix}" in taken:
            suffix += 1
        return f"{base_slug}-{suffix}"

    async def create_article(self, article: ArticleCreateDTO) -> str:
        values = article.model_dump(exclude={"metadata"})
        row = Article(**values, pipeline_metadata=dict(article.metadata))
        try:
            # Savepoint: a failed insert must leave the request session usable.
            async with self.session.begin_nested():
                self.session.add(row)
                await self.session.flush()
        except SQLAlchemyError as e:
            logger.warning(
                "Article insert failed",
                extra={"organization_id": article.organization_id, "slug": article.slug, "error": str(e)},
            )
            raise ArticlePersistenceError(
                f"Failed to create article: {article.slug}",
                {"organization_id": article.organization_id},
            ) from e
        return row.id

    async def update_article(self, article_id: str, patch: ArticlePatchDTO) -> None:
        row = await self.session.get(Article, article_id)
        if row is None:
            raise ArticleNotFoundError(article_id)

        try:
            async with self.session.begin_nested():
                for key, value in patch.to_patch_dict().items():
                    if key == "metadata":
                        row.pipeline_metadata = value
                    else:
                        setattr(row, key, value)
                await self.session.flush()
        except SQLAlchemyError as e:
            logger.warning("Article update failed", extra={"article_id": article_id, "error": str(e)})
            raise ArticlePersistenceError(f"Failed to update article: {article_id}") from e

    async def list_linkable_articles(
        self,
        organization_id: str,
        product_id: str | None,
        *,
        exclude_article_id: str | None = None,
    ) -> list[LinkableArticle]:
        stmt = (
            select(Article)
            .where(
                Article.organization_id == organization_id,
                Article.status.in_(LINKABLE_STATUSES),
            )
            .order_by(Article.created_at.desc())
            .limit(LINKABLE_LIMIT)
        )
        if product_id is not None:
            stmt = stmt.where(Article.product_id == product_id)
        if exclude_article_id is not None:
            stmt = stmt.where(Article.id != exclude_article_id)

        result = await self.session.execute(stmt)
        return [
            LinkableArticle(
                id=row.id,
                title=row.title,
                slug=row.slug,
                excerpt=row.excerpt,
                meta_keywords=tuple(row.meta_keywords or ()),
            )
            for row in result.scalars().all()
        ]
