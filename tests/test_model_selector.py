"""Tests for task -> model resolution."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from assistant.core.config import AiProvider, AiTask
from assistant.core.errors import (
    AiDisabledError,
    ConfigurationError,
    ProviderDisabledError,
    UnsupportedProviderError,
)
from assistant.pipeline.model_selector import resolve_model
from tests.conftest import make_settings


class TestResolveModel:
    def test_resolves_configured_binding(self, settings):
        handle = resolve_model(AiTask.RERANK, settings=settings)
        assert handle.provider is AiProvider.OPENAI
        assert handle.model_name == "gpt-4o-mini"
        assert handle.temperature == 0.1
        assert handle.api_key == "sk-test-not-real"
        assert handle.sends_temperature is True

    def test_google_binding(self, settings):
        handle = resolve_model(AiTask.DEEP_RERANK, settings=settings)
        assert handle.provider is AiProvider.GOOGLE
        assert handle.api_key == "google-test-not-real"

    def test_reasoning_mode_omits_temperature(self, settings):
        handle = resolve_model(AiTask.DEEP_PLANNER, reasoning=True, settings=settings)
        assert handle.temperature is None
        assert handle.reasoning is True
        assert handle.sends_temperature is False

    def test_falls_back_to_process_settings(self, monkeypatch):
        monkeypatch.setenv("AI_ENABLED", "true")
        monkeypatch.setenv("OPENAI_ENABLED", "true")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.chdir("/")
        assert resolve_model(AiTask.RESPONSE).api_key == "sk-env"


class TestResolutionFailures:
    @pytest.mark.parametrize("task", list(AiTask))
    def test_ai_disabled_fails_for_every_task(self, task):
        settings = make_settings(ai_enabled=False)
        with pytest.raises(AiDisabledError):
            resolve_model(task, settings=settings)

    def test_ai_disabled_is_a_configuration_error(self):
        with pytest.raises(ConfigurationError, match="AI is disabled"):
            resolve_model(AiTask.RESPONSE, settings=make_settings(ai_enabled=False))

    def test_disabled_provider_never_touches_the_network(self):
        settings = make_settings(openai_enabled=False)
        with (
            patch("assistant.services.llm.OpenAIClientPool.get") as openai_get,
            patch("assistant.services.llm.GeminiClientPool.get") as gemini_get,
        ):
            with pytest.raises(ProviderDisabledError, match="openai provider is disabled"):
                resolve_model(AiTask.QUERY_REWRITE, settings=settings)
        openai_get.assert_not_called()
        gemini_get.assert_not_called()

    def test_disabled_google_provider(self):
        settings = make_settings(google_enabled=False)
        with pytest.raises(ProviderDisabledError):
            resolve_model(AiTask.DEEP_RERANK, settings=settings)

    def test_unknown_provider(self):
        settings = make_settings(response_provider="anthropic")
        with pytest.raises(UnsupportedProviderError, match="anthropic"):
            resolve_model(AiTask.RESPONSE, settings=settings)
