"""Shared test fixtures for the assistant pipeline."""

from __future__ import annotations

import importlib
from collections import defaultdict
from typing import Any

import pytest

from assistant.core.config import AiTask, Settings
from assistant.schemas.llm import CandidateDocument, SourceType

# Modules that bind generate_text / generate_structured at import time.
_LLM_CONSUMERS = (
    "assistant.pipeline.intent",
    "assistant.pipeline.query_rewrite",
    "assistant.pipeline.database_filter",
    "assistant.pipeline.reranker",
    "assistant.pipeline.deep_search",
    "assistant.pipeline.response_generator",
    "assistant.pipeline.chunk_enricher",
)


def make_settings(**overrides: Any) -> Settings:
    """Settings with AI and both providers enabled, fast retries, no .env file."""
    values: dict[str, Any] = {
        "ai_enabled": True,
        "openai_enabled": True,
        "openai_api_key": "sk-test-not-real",
        "google_enabled": True,
        "google_api_key": "google-test-not-real",
        "retry_base_delay": 0.001,
        "retry_max_delay": 0.001,
        "stage_timeout_seconds": 5.0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeLLM:
    """
    Scripted stand-in for the generation layer.

    Responses are queued per task and consumed in order.  A queued
    exception is raised, a queued dict is validated into the requested
    schema, anything else is returned as-is.
    """

    def __init__(self) -> None:
        self.responses: dict[AiTask, list[Any]] = defaultdict(list)
        self.calls: list[dict[str, Any]] = []

    def queue(self, task: AiTask, *responses: Any) -> None:
        self.responses[task].extend(responses)

    def calls_for(self, task: AiTask) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["task"] is task]

    def _next(self, task: AiTask) -> Any:
        if not self.responses[task]:
            raise AssertionError(f"Unexpected model call for task {task.value}")
        item = self.responses[task].pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def generate_text(self, handle, system_prompt: str, user_prompt: str) -> str:
        self.calls.append({
            "task": handle.task, "handle": handle,
            "system": system_prompt, "user": user_prompt, "schema": None,
        })
        return self._next(handle.task)

    async def generate_structured(self, handle, system_prompt: str, user_prompt: str, schema):
        self.calls.append({
            "task": handle.task, "handle": handle,
            "system": system_prompt, "user": user_prompt, "schema": schema,
        })
        item = self._next(handle.task)
        if isinstance(item, dict):
            return schema.model_validate(item)
        return item


@pytest.fixture(autouse=True)
def _reset_settings_singleton():
    """Never let one test's settings leak into another."""
    import assistant.core.config as cfg_mod

    cfg_mod._settings = None
    yield
    cfg_mod._settings = None


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def fake_llm(monkeypatch) -> FakeLLM:
    """Patch every pipeline module's generation calls with a FakeLLM."""
    fake = FakeLLM()
    for name in _LLM_CONSUMERS:
        module = importlib.import_module(name)
        if hasattr(module, "generate_text"):
            monkeypatch.setattr(module, "generate_text", fake.generate_text)
        if hasattr(module, "generate_structured"):
            monkeypatch.setattr(module, "generate_structured", fake.generate_structured)
    return fake


@pytest.fixture()
def refund_documents() -> list[CandidateDocument]:
    return [
        CandidateDocument(
            content="Refund policy: customers may request a full refund within 30 days of purchase.",
            source_type=SourceType.PAGE,
            source_id="page-refunds",
        ),
        CandidateDocument(
            content="Office hours are 9am to 5pm, Monday to Friday.",
            source_type=SourceType.PAGE,
            source_id="page-office",
        ),
        CandidateDocument(
            content="Refunds for annual plans are prorated after the first 30 days.",
            source_type=SourceType.MESSAGE,
            source_id="msg-annual",
        ),
    ]
