"""
Retrieval collaborator contract.

The storage engine that actually executes semantic and keyword search
lives outside this package.  It plugs in through the ``Retriever``
protocol and is expected to blend its two result lists the way
``blend_hybrid_results`` does.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from assistant.core.config import Settings
from assistant.schemas.llm import CandidateDocument, DatabaseFilterResult
from assistant.utils.logging import get_logger

logger = get_logger("assistant.services.retrieval")


@dataclass(frozen=True)
class HybridWeights:
    semantic_weight: float
    keyword_weight: float
    max_results: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "HybridWeights":
        return cls(
            semantic_weight=settings.retrieval_hybrid_search_semantic_weight,
            keyword_weight=settings.retrieval_hybrid_search_keyword_weight,
            max_results=settings.retrieval_hybrid_search_max_results,
        )

    def describe(self) -> str:
        return (
            f"semantic similarity weighted {self.semantic_weight:.2f}, "
            f"keyword match weighted {self.keyword_weight:.2f}"
        )


@dataclass(frozen=True)
class ScoredHit:
    """One hit from a single search side, with that side's raw score."""
    document: CandidateDocument
    score: float


class Retriever(Protocol):
    async def search(
        self,
        semantic_query: str,
        keyword_query: str,
        weights: HybridWeights,
        limit: int,
        database_filter: DatabaseFilterResult | None = None,
    ) -> list[CandidateDocument]:
        ...


def _normalize(hits: list[ScoredHit]) -> dict[CandidateDocument, float]:
    """Min-max normalize scores per document (best score per document wins)."""
    if not hits:
        return {}
    lo = min(h.score for h in hits)
    hi = max(h.score for h in hits)
    span = hi - lo
    normalized: dict[CandidateDocument, float] = {}
    for hit in hits:
        value = 1.0 if span == 0 else (hit.score - lo) / span
        normalized[hit.document] = max(value, normalized.get(hit.document, 0.0))
    return normalized


def blend_hybrid_results(
    semantic_hits: list[ScoredHit],
    keyword_hits: list[ScoredHit],
    weights: HybridWeights,
    limit: int | None = None,
) -> list[CandidateDocument]:
    """
    Merge semantic and keyword hits into one candidate ordering.

    Each side is min-max normalized, then blended as
    ``semantic_weight * s + keyword_weight * k`` per document (a side
    that missed the document contributes 0).  Documents are equal when
    content and provenance match, so several chunks of one source stay
    separate candidates.  Ordered by descending blended score, ties
    broken by first appearance, truncated to ``limit`` (defaults to
    ``weights.max_results``).
    """
    semantic = _normalize(semantic_hits)
    keyword = _normalize(keyword_hits)

    # dict keys keep first-appearance order
    documents = list(dict.fromkeys(hit.document for hit in [*semantic_hits, *keyword_hits]))
    blended = [
        (
            weights.semantic_weight * semantic.get(doc, 0.0)
            + weights.keyword_weight * keyword.get(doc, 0.0),
            position,
            doc,
        )
        for position, doc in enumerate(documents)
    ]
    blended.sort(key=lambda item: (-item[0], item[1]))
    cap = limit if limit is not None else weights.max_results
    return [doc for _, _, doc in blended[:cap]]


class StaticRetriever:
    """
    In-memory retriever over a fixed document list.

    Scores each document by term overlap with the semantic and keyword
    queries and blends the two sides with ``blend_hybrid_results``.
    Records in ``record`` sources are restricted to the databases a
    filter selects, keyed by a ``<database_id>:`` source-id prefix.
    """

    def __init__(self, documents: list[CandidateDocument]):
        self.documents = list(documents)

    async def search(
        self,
        semantic_query: str,
        keyword_query: str,
        weights: HybridWeights,
        limit: int,
        database_filter: DatabaseFilterResult | None = None,
    ) -> list[CandidateDocument]:
        pool = [d for d in self.documents if self._passes_filter(d, database_filter)]
        semantic_hits = self._score(pool, semantic_query)
        keyword_hits = self._score(pool, keyword_query or semantic_query)
        results = blend_hybrid_results(semantic_hits, keyword_hits, weights, limit)
        logger.info("[RETRIEVAL] Static search returned %d of %d documents", len(results), len(pool))
        return results

    @staticmethod
    def _score(pool: list[CandidateDocument], query: str) -> list[ScoredHit]:
        terms = {t for t in query.lower().split() if len(t) > 2}
        hits = []
        for doc in pool:
            text = doc.content.lower()
            score = sum(1 for t in terms if t in text)
            if score:
                hits.append(ScoredHit(document=doc, score=float(score)))
        return hits

    @staticmethod
    def _passes_filter(
        doc: CandidateDocument,
        database_filter: DatabaseFilterResult | None,
    ) -> bool:
        if database_filter is None or doc.source_type.value != "record":
            return True
        database_id = doc.source_id.split(":", 1)[0]
        return database_id in database_filter.relevant_database_ids
