"""
Ingestion-time chunk enrichment.

Prefixes a chunk with a short description of where it sits in its
source document before the external indexer embeds it.  Not part of
the live question path.  A failed enrichment never blocks indexing:
the raw chunk is used instead and the failure is logged so the chunk
can be reprocessed later.
"""

from __future__ import annotations

import asyncio

from assistant.core.config import AiTask, Settings, get_settings
from assistant.pipeline.model_selector import resolve_model
from assistant.prompts.enrichment import build_chunk_enrichment_prompt
from assistant.services.llm import generate_text
from assistant.utils.logging import get_logger
from assistant.utils.retry import call_stage
from assistant.utils.timing import timed

logger = get_logger("assistant.pipeline.chunk_enricher")


async def enrich_chunk(
    chunk: str,
    full_text: str = "",
    node_type: str = "page",
    *,
    settings: Settings | None = None,
) -> str:
    """Return ``<context>\\n\\n<chunk>``, or the bare chunk when no context came back."""
    handle = resolve_model(AiTask.CONTEXT_ENHANCER, settings=settings)
    system_prompt, user_prompt = build_chunk_enrichment_prompt(chunk, full_text, node_type)
    context = (await generate_text(handle, system_prompt, user_prompt)).strip()
    if not context:
        return chunk
    return f"{context}\n\n{chunk}"


@timed("enrich_chunks")
async def enrich_chunks(
    chunks: list[str],
    full_text: str = "",
    node_type: str = "page",
    *,
    settings: Settings | None = None,
) -> list[str]:
    """
    Return one indexable text per chunk, in input order.

    Every returned text contains its raw chunk.  Chunks whose enrichment
    fails are returned unchanged.  At most
    ``chunk_enrichment_concurrency`` provider calls are in flight at
    once.  When context enhancement is switched off, all chunks are
    returned unchanged without any model call.
    """
    settings = settings or get_settings()
    if not settings.chunk_enhance_with_context or not chunks:
        return list(chunks)

    semaphore = asyncio.Semaphore(settings.chunk_enrichment_concurrency)

    async def _enrich_one(chunk: str) -> str:
        async with semaphore:
            return await call_stage(
                "enrich_chunk",
                lambda: enrich_chunk(chunk, full_text, node_type, settings=settings),
                settings,
            )

    results = await asyncio.gather(*[_enrich_one(c) for c in chunks], return_exceptions=True)

    enriched: list[str] = []
    failures = 0
    for idx, (chunk, result) in enumerate(zip(chunks, results)):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, Exception):
            failures += 1
            logger.warning(
                "[ENRICH] Chunk %d of %s left unenriched for reprocessing: %s",
                idx, node_type, result,
            )
            enriched.append(chunk)
        else:
            enriched.append(result)

    logger.info("[ENRICH] %d/%d chunk(s) enriched", len(chunks) - failures, len(chunks))
    return enriched
