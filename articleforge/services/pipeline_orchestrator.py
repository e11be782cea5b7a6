"""Sequential orchestrator for the article generation pipeline."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone

from pydantic import ValidationError as PydanticValidationError

from articleforge.config import settings
from articleforge.core.exceptions import StageTimeoutError
from articleforge.core.ids import generate_run_id
from articleforge.schemas.pipeline import (
    PipelineData,
    PipelineRunRequest,
    RunResult,
    RunStatus,
    StageResult,
    describe_options_error,
    resolve_pipeline_options,
)
from articleforge.services.article_payloads import build_draft_article
from articleforge.services.pipeline.ports import PipelineObserver
from articleforge.services.pipeline.registry import DEFAULT_STAGE_REGISTRY, StageRegistry
from articleforge.services.pipeline.report import RunMeta, build_run_result, calculate_progress
from articleforge.services.pipeline.types import ExecutionContext, StageDescriptor, StageServices

logger = logging.getLogger(__name__)

SKIP_CONDITION_MET = "skip condition met"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class PipelineOrchestrator:
    """Runs registry stages in order, threading ``PipelineData`` through them.

    Stage failures, including a raising skip predicate, are recorded and
    never abort the run; stages whose dependencies did not complete are
    recorded as skipped. Only errors while building the execution context or
    inside the control loop mark the run as failed. The orchestrator holds no
    per-run state, so concurrent runs on one instance are isolated.
    """

    def __init__(
        self,
        services: StageServices,
        registry: StageRegistry | None = None,
        observer: PipelineObserver | None = None,
        stage_timeout_seconds: float | None = settings.pipeline_stage_timeout_seconds,
    ) -> None:
        self.services = services
        self.registry = registry or DEFAULT_STAGE_REGISTRY
        self.observer = observer
        self.stage_timeout_seconds = stage_timeout_seconds

    async def run(self, request: PipelineRunRequest) -> RunResult:
        """Execute every registered stage for one request and report the outcome."""
        run_id = generate_run_id()
        started_at = _utcnow()
        stages = self.registry.list_stages()
        meta = RunMeta(run_id=run_id, started_at=started_at, total_stages=len(stages))
        log_context = {
            "run_id": run_id,
            "keyword": request.keyword,
            "organization_id": request.organization_id,
        }

        logger.info("Pipeline run started", extra={**log_context, "total_stages": len(stages)})

        data = PipelineData()
        stage_results: list[StageResult] = []
        current_stage: str | None = None

        try:
            context = self._build_context(request, run_id=run_id, started_at=started_at)
        except PydanticValidationError as e:
            message = describe_options_error(e)
            logger.warning("Pipeline context construction failed", extra={**log_context, "error": message})
            return await self._finish(meta, data, stage_results, "failed", error=message)
        except Exception as e:
            logger.warning("Pipeline context construction failed", extra={**log_context, "error": str(e)})
            return await self._finish(meta, data, stage_results, "failed", error=str(e))

        materialize_attempted = False
        try:
            for index, stage in enumerate(stages):
                current_stage = stage.id
                result, data = await self._process_stage(
                    stage,
                    context,
                    data,
                    stage_results,
                    position=index + 1,
                    total=len(stages),
                )
                stage_results.append(result)
                await self._notify_progress(run_id, result, calculate_progress(stage_results, len(stages)))

                if result.status != "completed" or materialize_attempted:
                    continue
                if data.slug and data.content and not data.article_id:
                    materialize_attempted = True
                    data = await self._materialize(context, data, stage.id)
        except Exception as e:
            logger.warning(
                "Pipeline run aborted",
                extra={**log_context, "stage": current_stage, "error": str(e)},
            )
            return await self._finish(
                meta,
                data,
                stage_results,
                "failed",
                error=str(e),
                current_stage=current_stage,
            )

        return await self._finish(meta, data, stage_results, "completed")

    def _build_context(
        self,
        request: PipelineRunRequest,
        *,
        run_id: str,
        started_at: datetime,
    ) -> ExecutionContext:
        options = resolve_pipeline_options(request.options)
        return ExecutionContext(
            run_id=run_id,
            started_at=started_at,
            user_id=request.user_id,
            organization_id=request.organization_id,
            keyword=request.keyword,
            options=options,
            services=self.services,
            product_id=request.product_id or None,
            keyword_id=request.keyword_id or None,
            provided_outline=tuple(request.outline) if request.outline else None,
            provided_title=request.title or None,
            provided_content=request.content or None,
        )

    async def _process_stage(
        self,
        stage: StageDescriptor,
        context: ExecutionContext,
        data: PipelineData,
        previous: list[StageResult],
        *,
        position: int,
        total: int,
    ) -> tuple[StageResult, PipelineData]:
        stage_info = {
            "run_id": context.run_id,
            "stage": stage.id,
            "stage_name": stage.name,
            "position": position,
            "total": total,
        }

        if stage.skip_if is not None:
            try:
                should_skip = stage.skip_if(context, data)
            except Exception as e:
                error = f"skip condition raised: {str(e) or type(e).__name__}"
                logger.warning("Stage skip condition failed", extra={**stage_info, "error": error})
                await self._notify_error(context.run_id, stage.id, error)
                now = _utcnow()
                return (
                    StageResult(
                        stage=stage.id,
                        status="failed",
                        started_at=now,
                        completed_at=now,
                        duration_ms=0,
                        error=error,
                    ),
                    data,
                )
            if should_skip:
                logger.info("Stage skipped", extra={**stage_info, "reason": SKIP_CONDITION_MET})
                return self._skipped(stage.id, SKIP_CONDITION_MET), data

        completed = {result.stage for result in previous if result.status == "completed"}
        unmet = [dep for dep in stage.depends_on if dep not in completed]
        if unmet:
            reason = f"dependencies not met: {', '.join(unmet)}"
            logger.info("Stage skipped", extra={**stage_info, "reason": reason})
            return self._skipped(stage.id, reason), data

        logger.info("Stage started", extra=stage_info)
        started_at = _utcnow()
        started = time.perf_counter()
        error: str | None = None
        outcome: object = None

        try:
            outcome = await self._invoke(stage, context, data)
        except Exception as e:
            error = str(e) or type(e).__name__

        if error is None:
            if isinstance(outcome, Exception):
                error = str(outcome) or type(outcome).__name__
            elif not isinstance(outcome, PipelineData):
                error = f"Stage returned {type(outcome).__name__} instead of PipelineData"

        duration_ms = _elapsed_ms(started)
        completed_at = _utcnow()

        if error is not None:
            logger.warning(
                "Stage failed",
                extra={**stage_info, "duration_ms": duration_ms, "error": error},
            )
            await self._notify_error(context.run_id, stage.id, error)
            return (
                StageResult(
                    stage=stage.id,
                    status="failed",
                    started_at=started_at,
                    completed_at=completed_at,
                    duration_ms=duration_ms,
                    error=error,
                ),
                data,
            )

        logger.info("Stage completed", extra={**stage_info, "duration_ms": duration_ms})
        return (
            StageResult(
                stage=stage.id,
                status="completed",
                started_at=started_at,
                completed_at=completed_at,
                duration_ms=duration_ms,
            ),
            outcome,  # type: ignore[return-value]
        )

    async def _invoke(
        self,
        stage: StageDescriptor,
        context: ExecutionContext,
        data: PipelineData,
    ) -> object:
        if self.stage_timeout_seconds is None:
            return await stage.execute(context, data)
        try:
            return await asyncio.wait_for(stage.execute(context, data), timeout=self.stage_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise StageTimeoutError(stage.id, self.stage_timeout_seconds) from e

    async def _materialize(
        self,
        context: ExecutionContext,
        data: PipelineData,
        stage_id: str,
    ) -> PipelineData:
        """Persist the draft once so later stages can reference a durable id."""
        try:
            article_id = await context.services.article_store.create_article(
                build_draft_article(context, data)
            )
        except Exception as e:
            logger.warning(
                "Draft materialization failed, continuing without article id",
                extra={"run_id": context.run_id, "stage": stage_id, "error": str(e)},
            )
            return data

        logger.info(
            "Draft materialized",
            extra={"run_id": context.run_id, "stage": stage_id, "article_id": article_id},
        )
        return data.model_copy(update={"article_id": article_id})

    @staticmethod
    def _skipped(stage_id: str, reason: str) -> StageResult:
        return StageResult(
            stage=stage_id,
            status="skipped",
            started_at=_utcnow(),
            skip_reason=reason,
        )

    async def _finish(
        self,
        meta: RunMeta,
        data: PipelineData,
        stage_results: list[StageResult],
        status: RunStatus,
        *,
        error: str | None = None,
        current_stage: str | None = None,
    ) -> RunResult:
        run_result = build_run_result(
            meta,
            data,
            stage_results,
            status,
            completed_at=_utcnow(),
            error=error,
            current_stage=current_stage,
        )
        logger.info(
            "Pipeline run finished",
            extra={
                "run_id": meta.run_id,
                "status": status,
                "progress": run_result.progress,
                "article_id": data.article_id,
            },
        )
        await self._notify_complete(run_result)
        return run_result

    async def _notify_progress(self, run_id: str, result: StageResult, progress: int) -> None:
        if self.observer is None:
            return
        try:
            await self.observer.on_progress(run_id, result, progress)
        except Exception:
            logger.warning("Pipeline observer progress hook failed", extra={"run_id": run_id, "stage": result.stage})

    async def _notify_error(self, run_id: str, stage: str, error: str) -> None:
        if self.observer is None:
            return
        try:
            await self.observer.on_error(run_id, stage, error)
        except Exception:
            logger.warning("Pipeline observer error hook failed", extra={"run_id": run_id, "stage": stage})

    async def _notify_complete(self, run_result: RunResult) -> None:
        if self.observer is None:
            return
        try:
            await self.observer.on_complete(run_result)
        except Exception:
            logger.warning("Pipeline observer completion hook failed", extra={"run_id": run_result.run_id})
