"""
PipelineRun carries the state of one user turn.

Created at turn start, mutated only by the orchestrator driving that
turn, and discarded once the answer is returned.
"""

from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, Field

from assistant.schemas.llm import (
    CandidateDatabase,
    CitedAnswer,
    DatabaseFilterResult,
    RankedDocument,
    RewrittenQuery,
)


class PipelineMode(str, Enum):
    DIRECT = "direct"
    RETRIEVE = "retrieve"
    DEEP_SEARCH = "deep_search"


class Intent(str, Enum):
    RETRIEVE = "retrieve"
    NO_CONTEXT = "no_context"


class DeepSearchState(str, Enum):
    RETRIEVE = "RETRIEVE"
    EVALUATE = "EVALUATE"
    REFINE = "REFINE"
    DONE = "DONE"


class AnswerContext(BaseModel):
    """Caller-supplied details rendered into the answer prompt."""
    workspace_name: str = ""
    user_name: str = ""
    user_email: str = ""
    formatted_messages: str = ""


class PipelineRun(BaseModel):
    # ── Inputs ──────────────────────────────────────────────────────
    question: str
    history: str = ""
    mode: PipelineMode = PipelineMode.RETRIEVE
    databases: list[CandidateDatabase] = Field(default_factory=list)
    context: AnswerContext = Field(default_factory=AnswerContext)

    # ── Stage outputs (populated progressively) ─────────────────────
    intent: Intent | None = None
    queries: list[RewrittenQuery] = Field(default_factory=list)
    database_filter: DatabaseFilterResult | None = None
    documents: list[RankedDocument] = Field(default_factory=list)
    iteration: int = 0
    identified_gaps: list[str] = Field(default_factory=list)
    budget_exhausted: bool = False
    answer: CitedAnswer | None = None
    direct_answer: str | None = None

    # ── Timing ──────────────────────────────────────────────────────
    start_time: float = Field(default_factory=time.time)
    stage_timings: dict[str, float] = Field(default_factory=dict)

    @property
    def active_query(self) -> RewrittenQuery | None:
        return self.queries[-1] if self.queries else None

    @property
    def elapsed_seconds(self) -> float:
        return time.time() - self.start_time

    def add_documents(self, batch: list[RankedDocument]) -> None:
        # Append only; duplicate source ids across iterations are kept.
        self.documents.extend(batch)
