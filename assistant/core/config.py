"""
Process-wide settings for the assistant pipeline.

Loaded once from the environment (and an optional ``.env`` file) and
frozen afterwards; every stage reads it, none mutates it.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AiProvider(str, Enum):
    OPENAI = "openai"
    GOOGLE = "google"


class AiTask(str, Enum):
    """Logical generation tasks, each bound to one model in settings."""
    QUERY_REWRITE = "queryRewrite"
    RESPONSE = "response"
    RERANK = "rerank"
    SUMMARIZATION = "summarization"
    CONTEXT_ENHANCER = "contextEnhancer"
    NO_CONTEXT = "noContext"
    INTENT_RECOGNITION = "intentRecognition"
    DATABASE_FILTER = "databaseFilter"
    REASONING = "reasoning"
    DEEP_PLANNER = "deepPlanner"
    DEEP_CRITIC = "deepCritic"
    DEEP_RERANK = "deepRerank"


# Task -> settings field prefix (matches the env var names, lowercased)
TASK_SETTINGS_PREFIX: dict[AiTask, str] = {
    AiTask.QUERY_REWRITE: "query_rewrite",
    AiTask.RESPONSE: "response",
    AiTask.RERANK: "rerank",
    AiTask.SUMMARIZATION: "summarization",
    AiTask.CONTEXT_ENHANCER: "chunk_context",
    AiTask.NO_CONTEXT: "no_context",
    AiTask.INTENT_RECOGNITION: "intent_recognition",
    AiTask.DATABASE_FILTER: "database_filter",
    AiTask.REASONING: "reasoning",
    AiTask.DEEP_PLANNER: "deep_planner",
    AiTask.DEEP_CRITIC: "deep_critic",
    AiTask.DEEP_RERANK: "deep_rerank",
}


class ModelBinding(BaseModel):
    """Provider + model + temperature configured for one task."""
    provider: str
    model_name: str
    temperature: float


class ProviderSettings(BaseModel):
    api_key: str = ""
    enabled: bool = False


class Settings(BaseSettings):
    app_name: str = "Workspace Assistant"
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    # ── Global AI switch + providers ────────────────────────────────
    ai_enabled: bool = False
    openai_api_key: str = ""
    openai_enabled: bool = False
    google_api_key: str = ""
    google_enabled: bool = False

    # ── Per-task model bindings ─────────────────────────────────────
    query_rewrite_provider: str = "openai"
    query_rewrite_model: str = "gpt-4o-mini"
    query_rewrite_temperature: float = 0.3

    response_provider: str = "openai"
    response_model: str = "gpt-4o-mini"
    response_temperature: float = 0.3

    rerank_provider: str = "openai"
    rerank_model: str = "gpt-4o-mini"
    rerank_temperature: float = 0.1

    summarization_provider: str = "openai"
    summarization_model: str = "gpt-4o-mini"
    summarization_temperature: float = 0.2

    chunk_context_provider: str = "openai"
    chunk_context_model: str = "gpt-4o-mini"
    chunk_context_temperature: float = 0.2

    no_context_provider: str = "openai"
    no_context_model: str = "gpt-4o-mini"
    no_context_temperature: float = 0.5

    intent_recognition_provider: str = "openai"
    intent_recognition_model: str = "gpt-4o-mini"
    intent_recognition_temperature: float = 0.0

    database_filter_provider: str = "openai"
    database_filter_model: str = "gpt-4o-mini"
    database_filter_temperature: float = 0.0

    reasoning_provider: str = "openai"
    reasoning_model: str = "gpt-4o"
    reasoning_temperature: float = 0.3

    deep_planner_provider: str = "openai"
    deep_planner_model: str = "o3"
    deep_planner_temperature: float = 0.3

    deep_critic_provider: str = "openai"
    deep_critic_model: str = "o3"
    deep_critic_temperature: float = 0.0

    deep_rerank_provider: str = "google"
    deep_rerank_model: str = "gemini-2.5-pro"
    deep_rerank_temperature: float = 0.2

    # ── Embedding (consumed by the external indexer) ────────────────
    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-large"
    embedding_dimensions: int = 2000
    embedding_api_key: str = ""
    embedding_batch_size: int = 50

    # ── Chunking ────────────────────────────────────────────────────
    chunk_default_chunk_size: int = 1000
    chunk_default_overlap: int = 200
    chunk_enhance_with_context: bool = False
    chunk_enrichment_concurrency: int = 5

    # ── Hybrid retrieval ────────────────────────────────────────────
    retrieval_hybrid_search_semantic_weight: float = 0.7
    retrieval_hybrid_search_keyword_weight: float = 0.3
    retrieval_hybrid_search_max_results: int = 20
    retrieval_candidate_limit: int = 50  # candidates fetched per pass, before rerank

    # ── Deep search ─────────────────────────────────────────────────
    deep_search_enabled: bool = False
    deep_search_max_iterations: int = 3

    # ── Stage execution ─────────────────────────────────────────────
    stage_timeout_seconds: float = 60.0
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0
    rerank_batch_size: int = 0  # 0 = rerank all candidates in one call
    database_sample_records: int = 5
    answer_summarize_threshold_chars: int = 0  # 0 = never summarize sources

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @field_validator(
        "retrieval_hybrid_search_semantic_weight",
        "retrieval_hybrid_search_keyword_weight",
    )
    @classmethod
    def validate_weights(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Hybrid search weights must be >= 0")
        return value

    @field_validator(
        "retrieval_hybrid_search_max_results",
        "retrieval_candidate_limit",
        "deep_search_max_iterations",
        "retry_max_attempts",
        "chunk_enrichment_concurrency",
    )
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("rerank_batch_size", "database_sample_records", "answer_summarize_threshold_chars")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Configuration values must be >= 0")
        return value

    @field_validator("stage_timeout_seconds", "retry_base_delay", "retry_max_delay")
    @classmethod
    def validate_durations(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Durations must be > 0")
        return value

    def model_binding(self, task: AiTask) -> ModelBinding:
        """Return the configured model binding for *task*."""
        prefix = TASK_SETTINGS_PREFIX[task]
        return ModelBinding(
            provider=getattr(self, f"{prefix}_provider").strip().lower(),
            model_name=getattr(self, f"{prefix}_model"),
            temperature=getattr(self, f"{prefix}_temperature"),
        )

    def provider_settings(self, provider: AiProvider) -> ProviderSettings:
        if provider is AiProvider.OPENAI:
            return ProviderSettings(api_key=self.openai_api_key, enabled=self.openai_enabled)
        return ProviderSettings(api_key=self.google_api_key, enabled=self.google_enabled)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first access."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
