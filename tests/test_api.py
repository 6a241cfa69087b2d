"""HTTP surface tests; the pipeline itself is mocked out."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from assistant.core.errors import AiDisabledError, ProviderTransportError, StageTimeoutError
from assistant.main import app
from assistant.schemas.llm import Citation, CitedAnswer
from assistant.schemas.pipeline import PipelineMode


@pytest.fixture()
def client():
    return TestClient(app)


class TestAsk:
    def test_cited_answer(self, client):
        result = CitedAnswer(answer="30 days.", citations=[Citation(source_id="page-refunds", quote="30 days")])
        with patch("assistant.api.ask.answer", new=AsyncMock(return_value=result)) as mock_answer:
            response = client.post("/api/v1/ask", json={
                "question": "What is the refund policy?",
                "workspace_name": "Acme",
            })

        assert response.status_code == 200
        body = response.json()
        assert body["answer"] == "30 days."
        assert body["citations"] == [{"source_id": "page-refunds", "quote": "30 days"}]
        assert body["mode"] == "retrieve"
        kwargs = mock_answer.await_args.kwargs
        assert kwargs["context"].workspace_name == "Acme"
        assert kwargs["retriever"] is app.state.retriever

    def test_plain_answer(self, client):
        with patch("assistant.api.ask.answer", new=AsyncMock(return_value="Hello!")):
            response = client.post("/api/v1/ask", json={"question": "hi", "mode": "direct"})

        assert response.status_code == 200
        assert response.json() == {"answer": "Hello!", "citations": [], "mode": "direct"}

    def test_mode_is_forwarded(self, client):
        with patch("assistant.api.ask.answer", new=AsyncMock(return_value="ok")) as mock_answer:
            client.post("/api/v1/ask", json={"question": "q", "mode": "deep_search"})
        assert mock_answer.await_args.args[2] is PipelineMode.DEEP_SEARCH

    def test_empty_question_rejected(self, client):
        assert client.post("/api/v1/ask", json={"question": ""}).status_code == 422

    def test_unknown_mode_rejected(self, client):
        assert client.post("/api/v1/ask", json={"question": "q", "mode": "fast"}).status_code == 422

    def test_configuration_error_is_503(self, client):
        with patch("assistant.api.ask.answer", new=AsyncMock(side_effect=AiDisabledError())):
            response = client.post("/api/v1/ask", json={"question": "q"})

        assert response.status_code == 503
        assert "AI is disabled" in response.json()["detail"]

    @pytest.mark.parametrize("error", [
        ProviderTransportError("openai", "503", retryable=True),
        StageTimeoutError("rerank", 60.0),
    ])
    def test_transport_failures_are_503(self, client, error):
        with patch("assistant.api.ask.answer", new=AsyncMock(side_effect=error)):
            response = client.post("/api/v1/ask", json={"question": "q"})
        assert response.status_code == 503

    def test_unexpected_error_is_500(self, client):
        with patch("assistant.api.ask.answer", new=AsyncMock(side_effect=RuntimeError("boom"))):
            response = client.post("/api/v1/ask", json={"question": "q"})
        assert response.status_code == 500


class TestHealth:
    def test_health(self, client, monkeypatch):
        monkeypatch.setenv("AI_ENABLED", "true")
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["ai_enabled"] is True
