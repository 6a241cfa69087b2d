"""
External API schemas for the /ask endpoint.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from assistant.schemas.llm import CandidateDatabase, Citation
from assistant.schemas.pipeline import PipelineMode


class AskRequest(BaseModel):
    question: str = Field(min_length=1)
    history: str = ""
    mode: PipelineMode = PipelineMode.RETRIEVE
    databases: list[CandidateDatabase] | None = None
    workspace_name: str = ""
    user_name: str = ""
    user_email: str = ""


class AskResponse(BaseModel):
    answer: str
    citations: list[Citation] = Field(default_factory=list)
    mode: PipelineMode
