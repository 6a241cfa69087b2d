"""
Deep search: iterative evaluate-and-refine retrieval loop.

    RETRIEVE -> EVALUATE -> (DONE | REFINE -> RETRIEVE)

The loop always terminates: it stops when the planner reports the
evidence sufficient, when ``max_iterations`` retrieval passes have run,
or when the planner returns no usable refinement (fail-safe stop).
Running out of iterations is a normal ending, flagged on the run as
``budget_exhausted``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from assistant.core.config import AiTask, Settings
from assistant.pipeline.model_selector import resolve_model
from assistant.prompts.deep_search import build_evaluate_and_refine_prompt
from assistant.schemas.llm import EvaluateAndRefineResult, RankedDocument, RewrittenQuery
from assistant.schemas.pipeline import DeepSearchState, PipelineRun
from assistant.services.llm import generate_structured
from assistant.utils.logging import get_logger

logger = get_logger("assistant.pipeline.deep_search")

RetrievePass = Callable[[RewrittenQuery], Awaitable[list[RankedDocument]]]
Evaluate = Callable[[PipelineRun], Awaitable[EvaluateAndRefineResult | None]]


async def evaluate_and_refine(
    query: str,
    sources: str,
    history: str = "",
    *,
    settings: Settings | None = None,
) -> EvaluateAndRefineResult:
    """
    Judge accumulated sources against *query* and propose a refinement.

    Raises:
        MalformedOutputError: the planner's output failed validation.
    """
    handle = resolve_model(AiTask.DEEP_PLANNER, reasoning=True, settings=settings)
    system_prompt, user_prompt = build_evaluate_and_refine_prompt(query, sources, history)
    return await generate_structured(handle, system_prompt, user_prompt, EvaluateAndRefineResult)


class DeepSearchController:
    """
    Drives one PipelineRun through the deep-search state machine.

    ``retrieve_pass`` runs retrieval + rerank for a query and returns the
    ranked batch.  ``evaluate`` returns the planner's verdict, or None
    when the verdict was unusable.
    """

    def __init__(
        self,
        run: PipelineRun,
        retrieve_pass: RetrievePass,
        evaluate: Evaluate,
        max_iterations: int,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self.run = run
        self.retrieve_pass = retrieve_pass
        self.evaluate = evaluate
        self.max_iterations = max_iterations
        self.state = DeepSearchState.RETRIEVE
        self.retrieval_passes = 0
        self._pending: RewrittenQuery | None = None

    def next_state(self, result: EvaluateAndRefineResult | None) -> DeepSearchState:
        """Transition out of EVALUATE."""
        if result is None:
            logger.warning("[DEEP] Unusable evaluation, stopping")
            return DeepSearchState.DONE
        self.run.identified_gaps = list(result.identified_gaps)
        if result.sufficient:
            return DeepSearchState.DONE
        if self.run.iteration >= self.max_iterations:
            self.run.budget_exhausted = True
            logger.info("[DEEP] Iteration budget reached (%d)", self.max_iterations)
            return DeepSearchState.DONE
        if result.refined_query is None:
            logger.warning("[DEEP] Insufficient but no refined query, stopping")
            return DeepSearchState.DONE
        self._pending = result.refined_query
        return DeepSearchState.REFINE

    async def execute(self) -> PipelineRun:
        if self.run.active_query is None:
            raise ValueError("Deep search needs an initial query")
        self.run.iteration = 1

        while self.state is not DeepSearchState.DONE:
            if self.state is DeepSearchState.RETRIEVE:
                batch = await self.retrieve_pass(self.run.active_query)
                self.retrieval_passes += 1
                self.run.add_documents(batch)
                logger.info(
                    "[DEEP] Pass %d: +%d documents (%d total)",
                    self.run.iteration, len(batch), len(self.run.documents),
                )
                self.state = DeepSearchState.EVALUATE

            elif self.state is DeepSearchState.EVALUATE:
                result = await self.evaluate(self.run)
                self.state = self.next_state(result)

            elif self.state is DeepSearchState.REFINE:
                self.run.queries.append(self._pending)
                self._pending = None
                self.run.iteration += 1
                self.state = DeepSearchState.RETRIEVE

        logger.info(
            "[DEEP] Done after %d pass(es), %d documents, gaps=%d",
            self.retrieval_passes, len(self.run.documents), len(self.run.identified_gaps),
        )
        return self.run
