"""
Answer synthesis.

1. Optionally condense long sources (summarization task)
2. Generate a cited answer from the assembled context (response task)
3. Drop citations that point at sources not in the context

Also hosts the no-context responder used when retrieval is skipped.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from assistant.core.config import AiTask, Settings, get_settings
from assistant.pipeline.model_selector import resolve_model
from assistant.prompts.answer import build_answer_prompt, build_no_context_prompt
from assistant.prompts.enrichment import build_summarization_prompt
from assistant.schemas.llm import CandidateDocument, CitedAnswer
from assistant.schemas.pipeline import AnswerContext
from assistant.services.llm import generate_structured, generate_text
from assistant.utils.logging import get_logger
from assistant.utils.text import format_documents

logger = get_logger("assistant.pipeline.response_generator")


def filter_citations(answer: CitedAnswer, documents: list[CandidateDocument]) -> CitedAnswer:
    """Keep only citations whose source id is among *documents*."""
    known = {doc.source_id for doc in documents}
    kept = [c for c in answer.citations if c.source_id in known]
    dropped = len(answer.citations) - len(kept)
    if dropped:
        logger.warning("Dropped %d citation(s) referencing unknown sources", dropped)
    return CitedAnswer(answer=answer.answer, citations=kept)


async def summarize_document(
    document: CandidateDocument,
    query: str,
    *,
    settings: Settings | None = None,
) -> str:
    handle = resolve_model(AiTask.SUMMARIZATION, settings=settings)
    system_prompt, user_prompt = build_summarization_prompt(document.content, query)
    return await generate_text(handle, system_prompt, user_prompt)


async def condense_documents(
    documents: list[CandidateDocument],
    query: str,
    *,
    settings: Settings | None = None,
) -> list[CandidateDocument]:
    """Replace sources longer than the configured threshold by a query-focused summary."""
    settings = settings or get_settings()
    threshold = settings.answer_summarize_threshold_chars
    if not threshold:
        return documents

    long_idx = [i for i, d in enumerate(documents) if len(d.content) > threshold]
    if not long_idx:
        return documents

    summaries = await asyncio.gather(*[
        summarize_document(documents[i], query, settings=settings) for i in long_idx
    ])
    condensed = list(documents)
    for i, summary in zip(long_idx, summaries):
        if summary.strip():
            condensed[i] = documents[i].model_copy(update={"content": summary.strip()})
    logger.info("Condensed %d long source(s)", len(long_idx))
    return condensed


def _answer_prompts(
    question: str,
    documents: list[CandidateDocument],
    history: str,
    context: AnswerContext,
    *,
    cited: bool,
) -> tuple[str, str]:
    return build_answer_prompt(
        question=question,
        formatted_documents=format_documents(documents),
        formatted_chat_history=history,
        formatted_messages=context.formatted_messages,
        current_timestamp=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        workspace_name=context.workspace_name,
        user_name=context.user_name,
        user_email=context.user_email,
        cited=cited,
    )


async def synthesize_answer(
    question: str,
    documents: list[CandidateDocument],
    history: str = "",
    context: AnswerContext | None = None,
    *,
    settings: Settings | None = None,
) -> CitedAnswer:
    """
    Generate a cited answer from *documents*.

    Raises:
        MalformedOutputError: the model's output is not a CitedAnswer.
    """
    handle = resolve_model(AiTask.RESPONSE, settings=settings)
    system_prompt, user_prompt = _answer_prompts(
        question, documents, history, context or AnswerContext(), cited=True,
    )
    answer = await generate_structured(handle, system_prompt, user_prompt, CitedAnswer)
    answer = filter_citations(answer, documents)
    logger.info(
        "Answer generated: %d chars, %d citation(s), model=%s",
        len(answer.answer), len(answer.citations), handle.model_name,
    )
    return answer


async def synthesize_uncited_answer(
    question: str,
    documents: list[CandidateDocument],
    history: str = "",
    context: AnswerContext | None = None,
    *,
    settings: Settings | None = None,
) -> CitedAnswer:
    """Degraded path: plain-text answer on the response task, no citations."""
    handle = resolve_model(AiTask.RESPONSE, settings=settings)
    system_prompt, user_prompt = _answer_prompts(
        question, documents, history, context or AnswerContext(), cited=False,
    )
    text = (await generate_text(handle, system_prompt, user_prompt)).strip()
    if not text:
        text = (
            "I couldn't generate a full answer from the retrieved context. "
            "Try rephrasing or asking about a specific page or record."
        )
    return CitedAnswer(answer=text, citations=[])


async def generate_no_context_answer(
    question: str,
    history: str = "",
    *,
    settings: Settings | None = None,
) -> str:
    handle = resolve_model(AiTask.NO_CONTEXT, settings=settings)
    system_prompt, user_prompt = build_no_context_prompt(question, history)
    answer = (await generate_text(handle, system_prompt, user_prompt)).strip()
    logger.info("No-context answer generated: %d chars", len(answer))
    return answer
