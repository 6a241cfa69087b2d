"""
Hybrid reranking of retrieved candidates.

The model proposes a ranking over a numbered listing of candidates.
Every proposal is checked against that listing: out-of-range indices,
repeated indices and non-finite scores are dropped, provenance is taken
from the candidate the index points at, and the result is truncated to
the configured maximum.  Scores are only a relative ordering signal.
"""

from __future__ import annotations

import asyncio
import math

from assistant.core.config import AiTask, Settings, get_settings
from assistant.pipeline.model_selector import ModelHandle, resolve_model
from assistant.prompts.ranking import build_rerank_prompt
from assistant.schemas.llm import (
    CandidateDocument,
    ProposedRanking,
    RankedDocument,
    RankingEntry,
    RerankOutput,
    RewrittenQuery,
)
from assistant.schemas.pipeline import PipelineMode
from assistant.services.llm import generate_structured
from assistant.services.retrieval import HybridWeights
from assistant.utils.logging import get_logger

logger = get_logger("assistant.pipeline.reranker")


def format_candidates(candidates: list[CandidateDocument]) -> str:
    return "\n".join(
        f"{idx}. Type: {doc.source_type.value}, Content: {doc.content}, ID: {doc.source_id}\n"
        for idx, doc in enumerate(candidates)
    )


def validate_rankings(
    proposed: list[ProposedRanking],
    candidates: list[CandidateDocument],
    offset: int = 0,
) -> list[RankingEntry]:
    """
    Keep proposals with a finite score whose index points into *candidates*.

    Indices are re-based by *offset* so that entries from a sub-batch
    point into the full candidate list.
    """
    entries = []
    for ranking in proposed:
        if not 0 <= ranking.index < len(candidates):
            logger.warning("Rerank proposed out-of-range index %d (batch of %d)", ranking.index, len(candidates))
            continue
        if not math.isfinite(ranking.score):
            logger.warning("Rerank proposed non-finite score for index %d", ranking.index)
            continue
        doc = candidates[ranking.index]
        entries.append(
            RankingEntry(
                index=ranking.index + offset,
                score=ranking.score,
                source_type=doc.source_type,
                source_id=doc.source_id,
            )
        )
    return entries


def finalize_rankings(entries: list[RankingEntry], max_results: int) -> list[RankingEntry]:
    """Order by descending score (stable), keep one entry per index, truncate."""
    ordered = sorted(entries, key=lambda e: -e.score)
    seen: set[int] = set()
    unique = []
    for entry in ordered:
        if entry.index in seen:
            continue
        seen.add(entry.index)
        unique.append(entry)
    return unique[:max_results]


def fallback_rankings(candidates: list[CandidateDocument], max_results: int) -> list[RankingEntry]:
    """Raw retrieval order, used when the model's ranking is unusable."""
    return [
        RankingEntry(index=i, score=0.0, source_type=doc.source_type, source_id=doc.source_id)
        for i, doc in enumerate(candidates[:max_results])
    ]


def apply_rankings(
    rankings: list[RankingEntry],
    candidates: list[CandidateDocument],
) -> list[RankedDocument]:
    return [
        RankedDocument(**candidates[entry.index].model_dump(), score=entry.score)
        for entry in rankings
        if 0 <= entry.index < len(candidates)
    ]


async def _rerank_batch(
    handle: ModelHandle,
    batch: list[CandidateDocument],
    offset: int,
    query: str,
    weights: HybridWeights,
) -> list[RankingEntry]:
    system_prompt, user_prompt = build_rerank_prompt(
        query, format_candidates(batch), weights.describe(),
    )
    output = await generate_structured(handle, system_prompt, user_prompt, RerankOutput)
    return validate_rankings(output.rankings, batch, offset)


async def rerank_documents(
    candidates: list[CandidateDocument],
    query: RewrittenQuery,
    mode: PipelineMode,
    *,
    settings: Settings | None = None,
) -> list[RankingEntry]:
    """
    Rank *candidates* for *query*, returning at most ``max_results`` entries.

    Deep-search mode uses the ``deepRerank`` task in reasoning mode.
    With ``rerank_batch_size`` set, sub-batches are ranked concurrently
    and reassembled in batch order before the global sort.

    Raises:
        MalformedOutputError: a batch's output failed validation.
    """
    if not candidates:
        return []

    settings = settings or get_settings()
    deep = mode is PipelineMode.DEEP_SEARCH
    task = AiTask.DEEP_RERANK if deep else AiTask.RERANK
    handle = resolve_model(task, reasoning=deep, settings=settings)
    weights = HybridWeights.from_settings(settings)

    size = settings.rerank_batch_size or len(candidates)
    offsets = range(0, len(candidates), size)
    batches = await asyncio.gather(*[
        _rerank_batch(handle, candidates[o:o + size], o, query.semantic_query, weights)
        for o in offsets
    ])

    entries = [entry for batch in batches for entry in batch]
    rankings = finalize_rankings(entries, weights.max_results)
    logger.info(
        "Reranked %d candidates in %d batch(es) -> %d kept (task=%s)",
        len(candidates), len(offsets), len(rankings), task.value,
    )
    return rankings
