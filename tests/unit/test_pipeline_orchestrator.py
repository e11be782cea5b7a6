"""Unit tests for the article pipeline orchestrator."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from articleforge.core.exceptions import ArticlePersistenceError
from articleforge.schemas.article import ArticleCreateDTO
from articleforge.schemas.pipeline import PipelineData, PipelineRunRequest, RunResult, StageResult
from articleforge.services.pipeline.registry import StageRegistry
from articleforge.services.pipeline.types import ExecutionContext, StageDescriptor, StageServices
from articleforge.services.pipeline_orchestrator import PipelineOrchestrator

PROVIDED_CONTENT = (
    "# Email Marketing for Bakeries\n\n"
    "Email marketing helps local bakeries keep regulars coming back every week.\n\n"
    "## Building a List\n\n"
    "Collect addresses at the counter and reward sign-ups with a free pastry.\n"
)


def _request(**overrides: Any) -> PipelineRunRequest:
    values: dict[str, Any] = {
        "keyword": "email marketing",
        "organization_id": "org-1",
        "user_id": "user-1",
        "product_id": "product-1",
    }
    values.update(overrides)
    return PipelineRunRequest(**values)


def _stage(stage_id: str, execute: Any, *, depends_on: tuple[str, ...] = (), skip_if: Any = None) -> StageDescriptor:
    return StageDescriptor(
        id=stage_id,
        name=stage_id.title(),
        description=f"{stage_id} stage",
        execute=execute,
        depends_on=depends_on,
        skip_if=skip_if,
    )


def _statuses(result: RunResult) -> dict[str, str]:
    return {stage.stage: stage.status for stage in result.stages}


class _RaisingObserver:
    def __init__(self) -> None:
        self.calls = 0

    async def on_progress(self, run_id: str, stage_result: StageResult, progress: int) -> None:
        self.calls += 1
        raise RuntimeError("progress sink down")

    async def on_error(self, run_id: str, stage: str, error: str) -> None:
        self.calls += 1
        raise RuntimeError("error sink down")

    async def on_complete(self, run_result: RunResult) -> None:
        self.calls += 1
        raise RuntimeError("completion sink down")


class _RecordingObserver:
    def __init__(self) -> None:
        self.progress: list[tuple[str, int]] = []
        self.errors: list[tuple[str, str]] = []
        self.completed: list[RunResult] = []

    async def on_progress(self, run_id: str, stage_result: StageResult, progress: int) -> None:
        self.progress.append((stage_result.stage, progress))

    async def on_error(self, run_id: str, stage: str, error: str) -> None:
        self.errors.append((stage, error))

    async def on_complete(self, run_result: RunResult) -> None:
        self.completed.append(run_result)


@pytest.mark.asyncio
async def test_full_run_completes_and_materializes_once(article_store, serp_provider, image_generator) -> None:
    services = StageServices(
        article_store=article_store,
        serp_provider=serp_provider,
        image_generator=image_generator,
    )
    orchestrator = PipelineOrchestrator(services, stage_timeout_seconds=None)

    result = await orchestrator.run(_request())

    assert result.status == "completed"
    assert result.progress == 100
    assert result.error is None
    assert result.current_stage is None
    assert result.run_id.startswith("pipeline_")
    assert [stage.stage for stage in result.stages] == [
        "serp_analysis",
        "outline_generation",
        "draft_generation",
        "internal_linking",
        "external_linking",
        "image_generation",
        "seo_scoring",
        "finalization",
    ]
    assert set(_statuses(result).values()) == {"completed"}

    assert len(article_store.created) == 1
    assert result.result is not None
    assert result.result.article_id == "article-1"
    assert result.result.article is not None
    assert result.result.article.featured_image_url == "https://images.example.com/1.png"
    assert result.result.seo_analysis is not None
    assert article_store.patches[0][0] == "article-1"
    assert article_store.articles["article-1"]["seo_score"] == result.result.seo_analysis.overall_score
    assert article_store.linkable_calls[0]["exclude_article_id"] == "article-1"


@pytest.mark.asyncio
async def test_provided_title_and_content_are_used_verbatim(article_store) -> None:
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), stage_timeout_seconds=None)

    result = await orchestrator.run(
        _request(title="Email Marketing for Bakeries", content=PROVIDED_CONTENT)
    )

    assert result.status == "completed"
    assert result.result is not None
    assert result.result.article is not None
    assert result.result.article.title == "Email Marketing for Bakeries"
    assert result.result.article.content == PROVIDED_CONTENT
    assert result.result.article.slug == "email-marketing-for-bakeries"
    assert result.result.seo_analysis is not None
    assert 0 <= result.result.seo_analysis.overall_score <= 100


@pytest.mark.asyncio
async def test_image_failure_does_not_abort_later_stages(article_store, image_generator) -> None:
    image_generator.fail = True
    services = StageServices(article_store=article_store, image_generator=image_generator)
    orchestrator = PipelineOrchestrator(services, stage_timeout_seconds=None)

    result = await orchestrator.run(_request())

    statuses = _statuses(result)
    assert statuses["image_generation"] == "failed"
    assert statuses["seo_scoring"] == "completed"
    assert statuses["finalization"] == "completed"
    assert result.status == "completed"
    assert result.progress == 88
    image_stage = next(stage for stage in result.stages if stage.stage == "image_generation")
    assert image_stage.error is not None
    assert "content policy violation" in image_stage.error


@pytest.mark.asyncio
async def test_internal_linking_skipped_without_product(article_store, image_generator) -> None:
    services = StageServices(article_store=article_store, image_generator=image_generator)
    orchestrator = PipelineOrchestrator(services, stage_timeout_seconds=None)

    result = await orchestrator.run(_request(product_id=None))

    internal = next(stage for stage in result.stages if stage.stage == "internal_linking")
    assert internal.status == "skipped"
    assert internal.skip_reason == "skip condition met"
    assert result.status == "completed"
    assert article_store.linkable_calls == []


@pytest.mark.asyncio
async def test_image_generation_skipped_without_generator(article_store) -> None:
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), stage_timeout_seconds=None)

    result = await orchestrator.run(_request())

    assert _statuses(result)["image_generation"] == "skipped"
    assert result.progress == 88


@pytest.mark.asyncio
async def test_stages_run_in_registry_order(article_store) -> None:
    calls: list[str] = []

    def _recorder(name: str) -> Any:
        async def _execute(context: ExecutionContext, data: PipelineData) -> PipelineData:
            calls.append(name)
            return data

        return _execute

    registry = StageRegistry(
        [_stage("first", _recorder("first")), _stage("second", _recorder("second")), _stage("third", _recorder("third"))]
    )
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), registry=registry)

    result = await orchestrator.run(_request())

    assert calls == ["first", "second", "third"]
    assert [stage.stage for stage in result.stages] == ["first", "second", "third"]
    assert result.progress == 100


@pytest.mark.asyncio
async def test_unmet_dependencies_propagate_as_skips(article_store) -> None:
    executed: list[str] = []

    async def _fail(context: ExecutionContext, data: PipelineData) -> PipelineData:
        raise RuntimeError("boom")

    async def _ok(context: ExecutionContext, data: PipelineData) -> PipelineData:
        executed.append("ok")
        return data

    registry = StageRegistry(
        [
            _stage("a", _fail),
            _stage("b", _ok, depends_on=("a",)),
            _stage("c", _ok, depends_on=("b",)),
            _stage("d", _ok),
        ]
    )
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), registry=registry)

    result = await orchestrator.run(_request())

    by_id = {stage.stage: stage for stage in result.stages}
    assert by_id["a"].status == "failed"
    assert by_id["a"].error == "boom"
    assert by_id["b"].status == "skipped"
    assert by_id["b"].skip_reason == "dependencies not met: a"
    assert by_id["c"].status == "skipped"
    assert by_id["c"].skip_reason == "dependencies not met: b"
    assert by_id["d"].status == "completed"
    assert executed == ["ok"]
    assert result.status == "completed"
    assert result.progress == 25


@pytest.mark.asyncio
async def test_skip_condition_checked_before_dependencies(article_store) -> None:
    async def _fail(context: ExecutionContext, data: PipelineData) -> PipelineData:
        raise RuntimeError("boom")

    async def _ok(context: ExecutionContext, data: PipelineData) -> PipelineData:
        return data

    registry = StageRegistry(
        [_stage("a", _fail), _stage("b", _ok, depends_on=("a",), skip_if=lambda context, data: True)]
    )
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), registry=registry)

    result = await orchestrator.run(_request())

    assert result.stages[1].skip_reason == "skip condition met"


@pytest.mark.asyncio
async def test_returned_exception_and_wrong_type_count_as_failures(article_store) -> None:
    async def _returns_exception(context: ExecutionContext, data: PipelineData) -> Any:
        return ValueError("bad payload")

    async def _returns_dict(context: ExecutionContext, data: PipelineData) -> Any:
        return {"title": "nope"}

    registry = StageRegistry([_stage("exc", _returns_exception), _stage("dict", _returns_dict)])
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), registry=registry)

    result = await orchestrator.run(_request())

    assert result.stages[0].status == "failed"
    assert result.stages[0].error == "bad payload"
    assert result.stages[1].status == "failed"
    assert result.stages[1].error == "Stage returned dict instead of PipelineData"
    assert result.status == "completed"
    assert result.progress == 0


@pytest.mark.asyncio
async def test_stage_timeout_is_recorded_as_failure(article_store) -> None:
    async def _slow(context: ExecutionContext, data: PipelineData) -> PipelineData:
        await asyncio.sleep(1)
        return data

    async def _ok(context: ExecutionContext, data: PipelineData) -> PipelineData:
        return data

    registry = StageRegistry([_stage("slow", _slow), _stage("after", _ok)])
    orchestrator = PipelineOrchestrator(
        StageServices(article_store=article_store),
        registry=registry,
        stage_timeout_seconds=0.01,
    )

    result = await orchestrator.run(_request())

    assert result.stages[0].status == "failed"
    assert result.stages[0].error == "Stage slow timed out after 0.01s"
    assert result.stages[1].status == "completed"
    assert result.status == "completed"


@pytest.mark.asyncio
async def test_invalid_options_fail_run_before_any_stage(article_store) -> None:
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), stage_timeout_seconds=None)

    result = await orchestrator.run(_request(options={"serp_depth": 50}))

    assert result.status == "failed"
    assert result.stages == []
    assert result.progress == 0
    assert result.error is not None
    assert result.error.startswith("Invalid pipeline options")
    assert "serp_depth" in result.error
    assert article_store.created == []


@pytest.mark.asyncio
async def test_raising_skip_condition_fails_only_that_stage(article_store) -> None:
    async def _ok(context: ExecutionContext, data: PipelineData) -> PipelineData:
        return data

    def _broken_predicate(context: ExecutionContext, data: PipelineData) -> bool:
        raise RuntimeError("predicate exploded")

    registry = StageRegistry(
        [
            _stage("a", _ok),
            _stage("b", _ok, skip_if=_broken_predicate),
            _stage("c", _ok, depends_on=("b",)),
            _stage("d", _ok, depends_on=("a",)),
        ]
    )
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), registry=registry)

    result = await orchestrator.run(_request())

    assert result.status == "completed"
    assert [stage.stage for stage in result.stages] == ["a", "b", "c", "d"]
    assert _statuses(result) == {"a": "completed", "b": "failed", "c": "skipped", "d": "completed"}
    assert result.stages[1].error == "skip condition raised: predicate exploded"
    assert result.stages[2].skip_reason == "dependencies not met: b"
    assert result.progress == 50


@pytest.mark.asyncio
async def test_control_loop_error_fails_run_with_current_stage(article_store, monkeypatch) -> None:
    async def _ok(context: ExecutionContext, data: PipelineData) -> PipelineData:
        return data

    registry = StageRegistry([_stage("a", _ok), _stage("b", _ok), _stage("c", _ok)])
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), registry=registry)
    process_stage = orchestrator._process_stage

    async def _process_or_break(stage: StageDescriptor, *args: Any, **kwargs: Any) -> Any:
        if stage.id == "b":
            raise RuntimeError("loop exploded")
        return await process_stage(stage, *args, **kwargs)

    monkeypatch.setattr(orchestrator, "_process_stage", _process_or_break)

    result = await orchestrator.run(_request())

    assert result.status == "failed"
    assert result.current_stage == "b"
    assert result.error == "loop exploded"
    assert [stage.stage for stage in result.stages] == ["a"]
    assert result.progress == 33


@pytest.mark.asyncio
async def test_materialization_happens_once_after_slug_and_content(article_store) -> None:
    async def _draft(context: ExecutionContext, data: PipelineData) -> PipelineData:
        return data.model_copy(update={"title": "Draft", "slug": "draft", "content": "Body text."})

    async def _revise(context: ExecutionContext, data: PipelineData) -> PipelineData:
        assert data.article_id == "article-1"
        return data.model_copy(update={"slug": "draft-2", "content": "Revised body text."})

    registry = StageRegistry([_stage("draft", _draft), _stage("revise", _revise), _stage("again", _revise)])
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), registry=registry)

    result = await orchestrator.run(_request())

    assert result.status == "completed"
    assert len(article_store.created) == 1
    assert article_store.created[0].slug == "draft"
    assert article_store.created[0].status == "draft"
    assert result.result is not None
    assert result.result.article_id == "article-1"


class _FirstCreateFailsStore:
    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.attempts = 0

    async def generate_unique_slug(self, organization_id: str, base_slug: str) -> str:
        return await self.inner.generate_unique_slug(organization_id, base_slug)

    async def create_article(self, article: ArticleCreateDTO) -> str:
        self.attempts += 1
        if self.attempts == 1:
            raise ArticlePersistenceError("connection reset")
        return await self.inner.create_article(article)

    async def update_article(self, article_id: str, patch: Any) -> None:
        await self.inner.update_article(article_id, patch)

    async def list_linkable_articles(self, organization_id: str, product_id: str | None, *, exclude_article_id: str | None = None) -> list:
        return await self.inner.list_linkable_articles(
            organization_id, product_id, exclude_article_id=exclude_article_id
        )


@pytest.mark.asyncio
async def test_failed_materialization_lets_finalization_create(article_store) -> None:
    store = _FirstCreateFailsStore(article_store)
    orchestrator = PipelineOrchestrator(StageServices(article_store=store), stage_timeout_seconds=None)

    result = await orchestrator.run(_request())

    assert result.status == "completed"
    assert store.attempts == 2
    assert article_store.patches == []
    assert len(article_store.created) == 1
    assert article_store.created[0].tags == ["email marketing"]
    assert result.result is not None
    assert result.result.article_id == "article-1"
    assert _statuses(result)["finalization"] == "completed"


@pytest.mark.asyncio
async def test_observer_failures_never_change_outcome(article_store) -> None:
    async def _fail(context: ExecutionContext, data: PipelineData) -> PipelineData:
        raise RuntimeError("boom")

    async def _ok(context: ExecutionContext, data: PipelineData) -> PipelineData:
        return data

    observer = _RaisingObserver()
    registry = StageRegistry([_stage("a", _ok), _stage("b", _fail)])
    orchestrator = PipelineOrchestrator(
        StageServices(article_store=article_store),
        registry=registry,
        observer=observer,
    )

    result = await orchestrator.run(_request())

    assert result.status == "completed"
    assert observer.calls == 4


@pytest.mark.asyncio
async def test_observer_receives_progress_errors_and_completion(article_store) -> None:
    async def _fail(context: ExecutionContext, data: PipelineData) -> PipelineData:
        raise RuntimeError("boom")

    async def _ok(context: ExecutionContext, data: PipelineData) -> PipelineData:
        return data

    observer = _RecordingObserver()
    registry = StageRegistry([_stage("a", _ok), _stage("b", _fail)])
    orchestrator = PipelineOrchestrator(
        StageServices(article_store=article_store),
        registry=registry,
        observer=observer,
    )

    result = await orchestrator.run(_request())

    assert observer.progress == [("a", 50), ("b", 50)]
    assert observer.errors == [("b", "boom")]
    assert observer.completed == [result]


@pytest.mark.asyncio
async def test_concurrent_runs_are_isolated(article_store) -> None:
    async def _echo(context: ExecutionContext, data: PipelineData) -> PipelineData:
        await asyncio.sleep(0)
        return data.model_copy(update={"title": context.keyword})

    registry = StageRegistry([_stage("echo", _echo)])
    orchestrator = PipelineOrchestrator(StageServices(article_store=article_store), registry=registry)

    first, second = await asyncio.gather(
        orchestrator.run(_request(keyword="first topic")),
        orchestrator.run(_request(keyword="second topic")),
    )

    assert first.run_id != second.run_id
    assert first.status == second.status == "completed"
