"""Finalization stage: persist the finished article."""

from __future__ import annotations

import logging

from articleforge.core.exceptions import ArticlePersistenceError, StageExecutionError
from articleforge.schemas.pipeline import PipelineData
from articleforge.services.article_payloads import build_final_article, build_final_patch
from articleforge.services.pipeline.types import ExecutionContext

logger = logging.getLogger(__name__)


async def execute(context: ExecutionContext, data: PipelineData) -> PipelineData:
    store = context.services.article_store
    log_context = {"run_id": context.run_id, "organization_id": context.organization_id}

    try:
        if data.article_id:
            patch = build_final_patch(context, data)
            await store.update_article(data.article_id, patch)
            logger.info(
                "Updated materialized article",
                extra={**log_context, "article_id": data.article_id, "fields": sorted(patch.to_patch_dict())},
            )
            return data

        article_id = await store.create_article(build_final_article(context, data))
    except ArticlePersistenceError:
        raise
    except Exception as e:
        raise StageExecutionError("finalization", f"could not save article: {e}") from e

    logger.info("Created article", extra={**log_context, "article_id": article_id})
    return data.model_copy(update={"article_id": article_id})
