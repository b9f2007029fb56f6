"""Query generation service: orchestrates one generation batch end to end.

Stage sequence per request:
    INITIALIZING -> EXPANSION -> [AI_ENHANCEMENT] -> SCORING -> FILTERING
    -> DIVERSITY_SELECTION -> PERSISTENCE -> COMPLETED

Only template store failures are fatal (raised as ``TemplateStoreError``).
AI failures and single-record write failures are recorded in the result's
``errors`` and the batch still completes.
"""

import asyncio
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from mediascout.core.exceptions import (
    EnhancementError,
    PersistenceWriteError,
    TemplateStoreError,
)
from mediascout.core.logging import LogContext, get_logger
from mediascout.observability.metrics import (
    observe_generation,
    record_ai_enhancement,
    record_generation_stage,
    record_query_candidates,
)
from mediascout.utils.exceptions import ConfigurationError
from mediascout.utils.retry import NO_RETRY, RetryPolicy

from .config import QueryGenerationConfig
from .diversity import batch_diversity, deduplicate, select_diverse
from .expander import QueryTemplateExpander, validate_query
from .protocols import (
    AIEnhancer,
    GeneratedQueryRepository,
    PerformanceLogRepository,
    TemplateRepository,
)
from .scoring import QueryScorer
from .template_store import TemplateStore
from .types import (
    GeneratedQuery,
    GenerationMetrics,
    GenerationStage,
    GenerationStatus,
    QueryCandidate,
    QueryCriteria,
    QueryGenerationRequest,
    QueryGenerationResult,
    QueryPerformanceLog,
    QueryTemplate,
    QueryType,
)

logger = get_logger(__name__)


def stage_error(stage: GenerationStage, message: str) -> str:
    """Format an ``errors[]`` entry."""
    return f"{stage.value}: {message}"


class QueryGenerationService:
    """Generates bounded, deduplicated, diverse search queries.

    Collaborators are injected so tests can substitute in-memory fakes.

    Example:
        ```python
        service = QueryGenerationService(
            template_repository=SqlTemplateRepository(session),
            generated_query_repository=SqlGeneratedQueryRepository(session),
            performance_log_repository=SqlPerformanceLogRepository(session),
            enhancer=LLMQueryEnhancer(get_variant_model()),
        )
        result = await service.generate_queries(request)
        if result.is_degraded:
            logger.warning("Degraded batch", errors=result.errors)
        ```
    """

    def __init__(
        self,
        template_repository: TemplateRepository,
        generated_query_repository: GeneratedQueryRepository,
        performance_log_repository: PerformanceLogRepository,
        enhancer: AIEnhancer | None = None,
        config: QueryGenerationConfig | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.template_repository = template_repository
        self.generated_query_repository = generated_query_repository
        self.performance_log_repository = performance_log_repository
        self.enhancer = enhancer
        self.retry_policy = retry_policy or NO_RETRY
        self._config = config or QueryGenerationConfig.from_settings()
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._build_components()

    def _build_components(self) -> None:
        templates = self._config.templates
        self.template_store = TemplateStore(
            self.template_repository,
            ema_alpha=templates.ema_alpha,
            cache_ttl_seconds=templates.cache_ttl_seconds,
            max_templates=templates.max_templates,
            retry_policy=self.retry_policy,
        )
        self.expander = QueryTemplateExpander(cap=templates.expansion_cap)
        self.scorer = QueryScorer(self._config.scoring)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> dict[str, Any]:
        """Get a copy of the effective configuration."""
        return self._config.model_dump()

    def update_config(self, partial: dict[str, Any]) -> dict[str, Any]:
        """Deep-merge a partial config into the effective config.

        Raises:
            ConfigurationError: If the result is invalid. The previous
                config stays in effect.
        """
        if not isinstance(partial, dict):
            raise ConfigurationError("Config update must be a mapping")
        self._config = self._config.merged(partial)
        self._build_components()
        logger.info("Query generation config updated", keys=sorted(partial))
        return self.get_config()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Seed default templates if the store is empty.

        Concurrent first requests share one seeding pass.

        Raises:
            TemplateStoreError: If the store is unreachable.
        """
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            seeded = await self.template_store.seed_defaults()
            self._initialized = True
        logger.info("Query generation service initialized", seeded_templates=seeded)

    async def get_stats(self) -> dict[str, Any]:
        """Report template store statistics and the AI and scoring setup.

        Raises:
            TemplateStoreError: If the template store cannot be read.
        """
        template_stats = await self.template_store.get_template_stats()
        return {
            "template_stats": template_stats.to_dict(),
            "ai": {
                "enabled": self._config.ai.enabled,
                "enhancer_configured": self.enhancer is not None,
                "timeout_ms": self._config.ai.timeout_ms,
            },
            "scoring": self._config.scoring.model_dump(),
        }

    async def generate_queries(
        self, request: QueryGenerationRequest | dict[str, Any]
    ) -> QueryGenerationResult:
        """Run one generation batch.

        Args:
            request: Validated request, or a raw payload to validate

        Returns:
            Completed result, possibly degraded (see ``errors``).

        Raises:
            ConfigurationError: If the request payload is invalid.
            TemplateStoreError: If templates cannot be loaded or their
                counters cannot be written.
        """
        if not isinstance(request, QueryGenerationRequest):
            request = QueryGenerationRequest.parse(request)

        with LogContext(search_id=request.search_id, batch_id=request.batch_id):
            with observe_generation() as observation:
                start = time.perf_counter()
                try:
                    result = await self._run(request, start)
                except TemplateStoreError as e:
                    logger.error("Query generation failed", stage=e.stage, error=str(e))
                    await self._write_performance_log(
                        request,
                        GenerationStatus.FAILED,
                        GenerationMetrics(processing_time_ms=self._elapsed_ms(start)),
                        [stage_error(GenerationStage(e.stage or "initializing"), e.args[0])],
                    )
                    raise
                observation["degraded"] = result.is_degraded
                return result

    async def _run(self, request: QueryGenerationRequest, start: float) -> QueryGenerationResult:
        options = request.options
        criteria = request.criteria
        errors: list[str] = []
        metrics = GenerationMetrics()

        logger.info(
            "Query generation started",
            max_queries=options.max_queries,
            dimensions=criteria.requested_dimensions(),
        )

        with self._stage(GenerationStage.INITIALIZING):
            await self.initialize()
            templates = await self.template_store.get_active_templates(
                criteria, use_cache=options.cache_enabled
            )

        ai_task = self._start_enhancement(request, errors)
        try:
            with self._stage(GenerationStage.EXPANSION):
                candidates = self._expand(templates, request)

            ai_queries: list[str] = []
            if ai_task is not None:
                with self._stage(GenerationStage.AI_ENHANCEMENT):
                    try:
                        ai_queries = await ai_task
                        record_ai_enhancement("success")
                    except EnhancementError as e:
                        record_ai_enhancement("failure")
                        logger.warning("AI enhancement failed, using templates only", error=str(e))
                        errors.append(stage_error(GenerationStage.AI_ENHANCEMENT, e.args[0]))
        finally:
            if ai_task is not None and not ai_task.done():
                ai_task.cancel()

        candidates.extend(self._ai_candidates(ai_queries, start_index=len(candidates)))
        metrics.candidates_considered = len(candidates)
        record_query_candidates("generated", len(candidates))

        with self._stage(GenerationStage.SCORING):
            unique, metrics.duplicates_removed = deduplicate(candidates)
            for candidate in unique:
                candidate.scores = self.scorer.score(
                    candidate.query_text,
                    criteria,
                    candidate.source_template,
                    request.original_query,
                )

        with self._stage(GenerationStage.FILTERING):
            eligible = [c for c in unique if c.scores.overall >= options.min_relevance_score]
            metrics.below_min_score = len(unique) - len(eligible)
            record_query_candidates("below_min_score", metrics.below_min_score)

        with self._stage(GenerationStage.DIVERSITY_SELECTION):
            accepted, metrics.rejected_for_similarity = select_diverse(
                eligible, options.max_queries, options.diversity_threshold
            )
            record_query_candidates("too_similar", metrics.rejected_for_similarity)
            record_query_candidates("accepted", len(accepted))

        queries = [self._to_generated_query(request, c) for c in accepted]
        self._summarize(metrics, queries, criteria)
        if not queries:
            logger.warning("No queries met the selection criteria")

        with self._stage(GenerationStage.PERSISTENCE):
            outcomes = self.template_store.begin_outcomes(templates)
            accepted_ids = {id(c) for c in accepted}
            for candidate in unique:
                if candidate.source_template is not None:
                    outcomes.record_outcome(
                        candidate.source_template.template_id,
                        id(candidate) in accepted_ids,
                        candidate.scores.overall,
                    )
            await self.template_store.flush_outcomes(outcomes)

            for query in queries:
                try:
                    await self._write_query(query)
                except PersistenceWriteError as e:
                    logger.warning("Generated query not persisted", error=str(e))
                    errors.append(stage_error(GenerationStage.PERSISTENCE, e.args[0]))

            metrics.processing_time_ms = self._elapsed_ms(start)
            await self._write_performance_log(
                request, GenerationStatus.COMPLETED, metrics, errors
            )

        logger.info(
            "Query generation completed",
            total_generated=metrics.total_generated,
            average_score=round(metrics.average_score, 4),
            processing_time_ms=round(metrics.processing_time_ms, 2),
            degraded=bool(errors),
        )

        return QueryGenerationResult(
            search_id=request.search_id,
            batch_id=request.batch_id,
            original_query=request.original_query,
            queries=queries,
            metrics=metrics,
            status=GenerationStatus.COMPLETED,
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _start_enhancement(
        self, request: QueryGenerationRequest, errors: list[str]
    ) -> asyncio.Task[list[str]] | None:
        if not (request.options.enable_ai_enhancement and self._config.ai.enabled):
            record_ai_enhancement("skipped")
            return None
        if self.enhancer is None:
            record_ai_enhancement("skipped")
            errors.append(
                stage_error(GenerationStage.AI_ENHANCEMENT, "no AI enhancer configured")
            )
            return None
        return asyncio.create_task(
            self._enhance(
                self.enhancer,
                request.original_query,
                request.criteria,
                self._config.ai.timeout_ms,
            )
        )

    async def _enhance(
        self, enhancer: AIEnhancer, query: str, criteria: QueryCriteria, timeout_ms: int
    ) -> list[str]:
        """Call the enhancer under the configured timeout.

        Raises:
            EnhancementError: On any failure; no partial result is kept.
        """
        try:
            return await asyncio.wait_for(
                enhancer.enhance_query(query, criteria, timeout_ms),
                timeout=timeout_ms / 1000,
            )
        except TimeoutError as e:
            raise EnhancementError(f"AI enhancement timed out after {timeout_ms}ms") from e
        except EnhancementError:
            raise
        except Exception as e:
            raise EnhancementError(f"AI enhancement failed: {e}") from e

    def _expand(
        self, templates: list[QueryTemplate], request: QueryGenerationRequest
    ) -> list[QueryCandidate]:
        candidates: list[QueryCandidate] = []
        for template in templates:
            for text in self.expander.expand(template, request.criteria, request.original_query):
                candidates.append(
                    QueryCandidate(
                        query_text=text,
                        query_type=QueryType.TEMPLATE,
                        insertion_index=len(candidates),
                        source_priority=template.priority,
                        source_template=template,
                    )
                )
        logger.debug("Templates expanded", templates=len(templates), candidates=len(candidates))
        return candidates

    def _ai_candidates(self, queries: list[str], start_index: int) -> list[QueryCandidate]:
        candidates: list[QueryCandidate] = []
        for text in queries:
            valid = validate_query(text)
            if valid is None:
                continue
            candidates.append(
                QueryCandidate(
                    query_text=valid,
                    query_type=QueryType.AI_ENHANCED,
                    insertion_index=start_index + len(candidates),
                    source_priority=self._config.ai.source_priority,
                    ai_enhanced=True,
                )
            )
        return candidates

    def _to_generated_query(
        self, request: QueryGenerationRequest, candidate: QueryCandidate
    ) -> GeneratedQuery:
        metadata: dict[str, Any] = {"ai_enhanced": candidate.ai_enhanced}
        if candidate.source_template is not None:
            metadata["template_name"] = candidate.source_template.name
        return GeneratedQuery(
            search_id=request.search_id,
            batch_id=request.batch_id,
            query_text=candidate.query_text,
            query_type=candidate.query_type,
            scores=candidate.scores,
            source_template_id=candidate.source_template_id,
            metadata=metadata,
        )

    def _summarize(
        self,
        metrics: GenerationMetrics,
        queries: list[GeneratedQuery],
        criteria: QueryCriteria,
    ) -> None:
        metrics.total_generated = len(queries)
        metrics.low_coverage = not queries
        if queries:
            metrics.average_score = sum(q.scores.overall for q in queries) / len(queries)
            metrics.diversity_score = batch_diversity([q.query_text for q in queries])

        texts = [q.query_text.lower() for q in queries]
        for dimension in criteria.requested_dimensions():
            values = criteria.values_for(dimension)
            covered = sum(
                1
                for value in values
                if any(self.scorer.dimension_reflected(t, dimension, [value]) for t in texts)
            )
            metrics.coverage_by_criteria[dimension] = covered / len(values)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _write_query(self, query: GeneratedQuery) -> None:
        try:
            await self.retry_policy.run(
                lambda: self.generated_query_repository.create(query),
                name="generated_query_create",
            )
        except Exception as e:
            raise PersistenceWriteError(
                f"failed to persist query {query.query_text!r}: {e}",
                record_type="generated_query",
            ) from e

    async def _write_performance_log(
        self,
        request: QueryGenerationRequest,
        status: GenerationStatus,
        metrics: GenerationMetrics,
        errors: list[str],
    ) -> None:
        record = QueryPerformanceLog(
            search_id=request.search_id,
            batch_id=request.batch_id,
            status=status,
            metrics=metrics,
            errors=list(errors),
        )
        try:
            await self.retry_policy.run(
                lambda: self.performance_log_repository.create(record),
                name="performance_log_create",
            )
        except Exception as e:
            logger.warning("Performance log not persisted", status=status.value, error=str(e))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _stage(self, stage: GenerationStage) -> Iterator[None]:
        logger.debug("Stage started", stage=stage.value)
        start = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start
            record_generation_stage(stage.value, duration)
            logger.debug("Stage finished", stage=stage.value, duration_ms=round(duration * 1000, 2))

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.perf_counter() - start) * 1000


def create_query_generation_service(
    template_repository: TemplateRepository,
    generated_query_repository: GeneratedQueryRepository,
    performance_log_repository: PerformanceLogRepository,
    enhancer: AIEnhancer | None = None,
    config: QueryGenerationConfig | None = None,
    retry_policy: RetryPolicy | None = None,
) -> QueryGenerationService:
    """Factory function to create a QueryGenerationService."""
    return QueryGenerationService(
        template_repository=template_repository,
        generated_query_repository=generated_query_repository,
        performance_log_repository=performance_log_repository,
        enhancer=enhancer,
        config=config,
        retry_policy=retry_policy,
    )
