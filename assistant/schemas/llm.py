"""
Data contracts exchanged with the generation stages.

Models suffixed ``Output`` describe what a model is asked to return;
they are validated first and then converted into the pipeline types,
which carry the integrity guarantees (valid indices, known sources).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SourceType(str, Enum):
    PAGE = "page"
    DOCUMENT = "document"
    MESSAGE = "message"
    RECORD = "record"
    FILE = "file"


# ── Query rewriting ─────────────────────────────────────────────────
class RewrittenQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    semantic_query: str = Field(min_length=1)
    keyword_query: str = ""


# ── Retrieval + rerank ──────────────────────────────────────────────
class CandidateDocument(BaseModel):
    """One retrieved unit of text with its provenance."""
    model_config = ConfigDict(frozen=True)

    content: str
    source_type: SourceType
    source_id: str


class RankedDocument(CandidateDocument):
    score: float = 0.0


class ProposedRanking(BaseModel):
    index: int
    score: float
    type: str = ""
    source_id: str = ""


class RerankOutput(BaseModel):
    rankings: list[ProposedRanking] = Field(default_factory=list)


class RankingEntry(BaseModel):
    """A validated ranking: ``index`` always points into the reranked candidates."""
    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    score: float = Field(allow_inf_nan=False)
    source_type: SourceType
    source_id: str


# ── Database filtering ──────────────────────────────────────────────
class DatabaseField(BaseModel):
    name: str
    type: str


class CandidateDatabase(BaseModel):
    id: str
    name: str
    fields: dict[str, DatabaseField] = Field(default_factory=dict)
    sample_records: list[dict[str, Any]] = Field(default_factory=list)


class FieldFilter(BaseModel):
    field_id: str
    operator: str = "eq"
    value: Any = None


class DatabaseFilterProposal(BaseModel):
    database_id: str
    filters: list[FieldFilter] = Field(default_factory=list)


class DatabaseFilterOutput(BaseModel):
    should_filter: bool = True
    databases: list[DatabaseFilterProposal] = Field(default_factory=list)


class DatabaseFilterResult(BaseModel):
    relevant_database_ids: set[str] = Field(default_factory=set)
    field_filters: dict[str, list[FieldFilter]] = Field(default_factory=dict)


# ── Deep search ─────────────────────────────────────────────────────
class EvaluateAndRefineResult(BaseModel):
    sufficient: bool
    refined_query: RewrittenQuery | None = None
    identified_gaps: list[str] = Field(default_factory=list)


# ── Answer ──────────────────────────────────────────────────────────
class Citation(BaseModel):
    source_id: str
    quote: str = ""


class CitedAnswer(BaseModel):
    answer: str
    citations: list[Citation] = Field(default_factory=list)
