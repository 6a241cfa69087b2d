"""
Pydantic schemas for every pipeline boundary.
"""

from assistant.schemas.llm import (
    CandidateDatabase,
    CandidateDocument,
    Citation,
    CitedAnswer,
    DatabaseField,
    DatabaseFilterResult,
    EvaluateAndRefineResult,
    FieldFilter,
    RankedDocument,
    RankingEntry,
    RewrittenQuery,
    SourceType,
)
from assistant.schemas.pipeline import (
    AnswerContext,
    DeepSearchState,
    Intent,
    PipelineMode,
    PipelineRun,
)
from assistant.schemas.response import AskRequest, AskResponse

__all__ = [
    # Generation contracts
    "CandidateDatabase",
    "CandidateDocument",
    "Citation",
    "CitedAnswer",
    "DatabaseField",
    "DatabaseFilterResult",
    "EvaluateAndRefineResult",
    "FieldFilter",
    "RankedDocument",
    "RankingEntry",
    "RewrittenQuery",
    "SourceType",
    # Pipeline
    "AnswerContext",
    "DeepSearchState",
    "Intent",
    "PipelineMode",
    "PipelineRun",
    # API
    "AskRequest",
    "AskResponse",
]
