"""
Intent recognition: does the question need workspace retrieval?

Fail-open policy: only the exact no-context token (after trimming and
case-folding) routes to the no-context responder; any other reply,
including an empty one, routes to retrieval.
"""

from __future__ import annotations

from assistant.core.config import AiTask, Settings
from assistant.pipeline.model_selector import resolve_model
from assistant.prompts.query import NO_CONTEXT_TOKEN, build_intent_prompt
from assistant.schemas.pipeline import Intent
from assistant.services.llm import generate_text
from assistant.utils.logging import get_logger

logger = get_logger("assistant.pipeline.intent")


def interpret_intent(raw: str) -> Intent:
    """Map a raw model reply onto an Intent, failing open to RETRIEVE."""
    if raw.strip().lower() == NO_CONTEXT_TOKEN:
        return Intent.NO_CONTEXT
    return Intent.RETRIEVE


async def classify_intent(
    question: str,
    history: str = "",
    *,
    settings: Settings | None = None,
) -> Intent:
    handle = resolve_model(AiTask.INTENT_RECOGNITION, settings=settings)
    system_prompt, user_prompt = build_intent_prompt(question, history)
    raw = await generate_text(handle, system_prompt, user_prompt)
    intent = interpret_intent(raw)
    logger.info("[INTENT] reply=%r -> %s", raw.strip()[:40], intent.value)
    return intent
