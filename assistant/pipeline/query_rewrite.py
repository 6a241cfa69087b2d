"""
Query rewriting: raw question + history -> semantic and keyword forms.
"""

from __future__ import annotations

from assistant.core.config import AiTask, Settings
from assistant.pipeline.model_selector import resolve_model
from assistant.prompts.query import build_query_rewrite_prompt
from assistant.schemas.llm import RewrittenQuery
from assistant.services.llm import generate_structured
from assistant.utils.logging import get_logger

logger = get_logger("assistant.pipeline.query_rewrite")


async def rewrite_query(
    query: str,
    history: str = "",
    *,
    settings: Settings | None = None,
) -> RewrittenQuery:
    """
    Rewrite *query* for retrieval.

    Raises:
        MalformedOutputError: the model's output is not a RewrittenQuery.
    """
    handle = resolve_model(AiTask.QUERY_REWRITE, settings=settings)
    system_prompt, user_prompt = build_query_rewrite_prompt(query, history)
    rewritten = await generate_structured(handle, system_prompt, user_prompt, RewrittenQuery)
    logger.info(
        "Rewrite complete: semantic=%r keyword=%r",
        rewritten.semantic_query[:80], rewritten.keyword_query[:80],
    )
    return rewritten


def fallback_query(query: str) -> RewrittenQuery:
    """Use the raw question for both forms when rewriting fails."""
    return RewrittenQuery(semantic_query=query, keyword_query=query)
