"""
Pipeline Orchestrator: top-level entry point.

    direct       -> no-context responder
    retrieve     -> intent -> rewrite -> (db filter) -> retrieve -> rerank -> answer
    deep_search  -> same, with the evaluate/refine loop around retrieve + rerank

Every model call goes through ``call_stage`` (per-stage timeout plus
bounded retry).  Malformed model output is recovered locally; config
and transport failures propagate to the caller.  The run is only
mutated after a stage returns, so cancelling the turn between stages
leaves no partial state behind.
"""

from __future__ import annotations

from assistant.core.config import Settings, get_settings
from assistant.core.errors import MalformedOutputError
from assistant.pipeline.database_filter import plan_database_filters, unfiltered
from assistant.pipeline.deep_search import DeepSearchController, evaluate_and_refine
from assistant.pipeline.intent import classify_intent
from assistant.pipeline.query_rewrite import fallback_query, rewrite_query
from assistant.pipeline.reranker import apply_rankings, fallback_rankings, rerank_documents
from assistant.pipeline.response_generator import (
    condense_documents,
    generate_no_context_answer,
    synthesize_answer,
    synthesize_uncited_answer,
)
from assistant.schemas.llm import (
    CandidateDatabase,
    CitedAnswer,
    DatabaseFilterResult,
    EvaluateAndRefineResult,
    RankedDocument,
    RewrittenQuery,
)
from assistant.schemas.pipeline import AnswerContext, Intent, PipelineMode, PipelineRun
from assistant.services.retrieval import HybridWeights, Retriever
from assistant.utils.logging import get_logger
from assistant.utils.retry import call_stage
from assistant.utils.text import format_documents
from assistant.utils.timing import Timer

logger = get_logger("assistant.pipeline.orchestrator")


async def answer(
    question: str,
    history: str = "",
    mode: PipelineMode = PipelineMode.RETRIEVE,
    databases: list[CandidateDatabase] | None = None,
    *,
    retriever: Retriever,
    context: AnswerContext | None = None,
    settings: Settings | None = None,
) -> CitedAnswer | str:
    """
    Answer one user turn.

    Returns a CitedAnswer on the retrieval paths and a plain string
    when retrieval was skipped.
    """
    run = await run_pipeline(
        question, history, mode, databases,
        retriever=retriever, context=context, settings=settings,
    )
    if run.answer is not None:
        return run.answer
    return run.direct_answer or ""


async def run_pipeline(
    question: str,
    history: str = "",
    mode: PipelineMode = PipelineMode.RETRIEVE,
    databases: list[CandidateDatabase] | None = None,
    *,
    retriever: Retriever,
    context: AnswerContext | None = None,
    settings: Settings | None = None,
) -> PipelineRun:
    settings = settings or get_settings()
    mode = PipelineMode(mode)
    if mode is PipelineMode.DEEP_SEARCH and not settings.deep_search_enabled:
        logger.info("[PIPELINE] Deep search disabled, using standard retrieval")
        mode = PipelineMode.RETRIEVE

    run = PipelineRun(
        question=question,
        history=history,
        mode=mode,
        databases=databases or [],
        context=context or AnswerContext(),
    )
    logger.info("[PIPELINE] Started | mode=%s | question: %s", mode.value, question[:80])

    if mode is PipelineMode.DIRECT:
        return await _answer_without_context(run, settings)

    with Timer("intent", run.stage_timings):
        run.intent = await call_stage(
            "intent", lambda: classify_intent(question, history, settings=settings), settings,
        )
    if run.intent is Intent.NO_CONTEXT:
        logger.info("[PIPELINE] Short-circuit: no retrieval needed")
        return await _answer_without_context(run, settings)

    with Timer("query_understanding", run.stage_timings):
        run.queries.append(await _rewrite(run, settings))
        if run.databases:
            run.database_filter = await _plan_filters(run, settings)

    async def retrieve_pass(query: RewrittenQuery) -> list[RankedDocument]:
        return await _retrieve_and_rerank(run, query, retriever, settings)

    with Timer("retrieval", run.stage_timings) as t:
        if mode is PipelineMode.DEEP_SEARCH:
            controller = DeepSearchController(
                run,
                retrieve_pass=retrieve_pass,
                evaluate=lambda r: _evaluate(r, settings),
                max_iterations=settings.deep_search_max_iterations,
            )
            await controller.execute()
        else:
            run.add_documents(await retrieve_pass(run.active_query))
    logger.info(
        "[PIPELINE] Retrieval done (%.2fs) | documents=%d iterations=%d",
        t.elapsed_s, len(run.documents), max(run.iteration, 1),
    )

    with Timer("synthesis", run.stage_timings):
        run.answer = await _synthesize(run, settings)
    logger.info("[PIPELINE] Finished in %.2fs", run.elapsed_seconds)
    return run


# ── Stage runners ───────────────────────────────────────────────────

async def _answer_without_context(run: PipelineRun, settings: Settings) -> PipelineRun:
    with Timer("no_context", run.stage_timings):
        run.direct_answer = await call_stage(
            "no_context",
            lambda: generate_no_context_answer(run.question, run.history, settings=settings),
            settings,
        )
    return run


async def _rewrite(run: PipelineRun, settings: Settings) -> RewrittenQuery:
    try:
        return await call_stage(
            "query_rewrite",
            lambda: rewrite_query(run.question, run.history, settings=settings),
            settings,
        )
    except MalformedOutputError as e:
        logger.warning("Query rewrite unusable (%s). Using the raw question.", e)
        return fallback_query(run.question)


async def _plan_filters(run: PipelineRun, settings: Settings) -> DatabaseFilterResult:
    try:
        return await call_stage(
            "database_filter",
            lambda: plan_database_filters(
                run.active_query.semantic_query, run.databases, settings=settings,
            ),
            settings,
        )
    except MalformedOutputError as e:
        logger.warning("Database filter unusable (%s). Searching all databases.", e)
        return unfiltered(run.databases)


async def _retrieve_and_rerank(
    run: PipelineRun,
    query: RewrittenQuery,
    retriever: Retriever,
    settings: Settings,
) -> list[RankedDocument]:
    weights = HybridWeights.from_settings(settings)
    candidates = await call_stage(
        "retrieve",
        lambda: retriever.search(
            query.semantic_query,
            query.keyword_query,
            weights,
            settings.retrieval_candidate_limit,
            run.database_filter,
        ),
        settings,
    )
    with Timer("rerank", run.stage_timings):
        try:
            rankings = await call_stage(
                "rerank",
                lambda: rerank_documents(candidates, query, run.mode, settings=settings),
                settings,
            )
        except MalformedOutputError as e:
            logger.warning("Rerank unusable (%s). Keeping retrieval order.", e)
            rankings = fallback_rankings(candidates, weights.max_results)
    return apply_rankings(rankings, candidates)


async def _evaluate(run: PipelineRun, settings: Settings) -> EvaluateAndRefineResult | None:
    try:
        return await call_stage(
            "evaluate_and_refine",
            lambda: evaluate_and_refine(
                run.question, format_documents(run.documents), run.history, settings=settings,
            ),
            settings,
        )
    except MalformedOutputError as e:
        logger.warning("Deep-search evaluation unusable (%s).", e)
        return None


async def _synthesize(run: PipelineRun, settings: Settings) -> CitedAnswer:
    query = run.active_query.semantic_query if run.active_query else run.question
    documents = await call_stage(
        "condense",
        lambda: condense_documents(run.documents, query, settings=settings),
        settings,
    )
    try:
        return await call_stage(
            "response",
            lambda: synthesize_answer(
                run.question, documents, run.history, run.context, settings=settings,
            ),
            settings,
        )
    except MalformedOutputError as e:
        logger.warning("Cited answer unusable (%s). Answering without citations.", e)
        return await call_stage(
            "response_uncited",
            lambda: synthesize_uncited_answer(
                run.question, documents, run.history, run.context, settings=settings,
            ),
            settings,
        )
