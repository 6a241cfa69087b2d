"""
Error taxonomy for the assistant pipeline.

ConfigurationError      fatal for the call, never retried
MalformedOutputError    recovered locally by the stage's caller
ProviderTransportError  retried by the wrapping layer when retryable
StageTimeoutError       retried by the wrapping layer
"""

from __future__ import annotations


class AssistantError(Exception):
    """Base class for every error raised by the assistant core."""


# ── Configuration ───────────────────────────────────────────────────
class ConfigurationError(AssistantError):
    pass


class AiDisabledError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("AI is disabled.")


class ProviderDisabledError(ConfigurationError):
    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"{provider} provider is disabled.")


class UnsupportedProviderError(ConfigurationError):
    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Unsupported AI provider: {provider}")


# ── Model output ────────────────────────────────────────────────────
class MalformedOutputError(AssistantError):
    """A structured response failed validation or referenced unknown data."""

    def __init__(self, task: str, message: str) -> None:
        self.task = task
        super().__init__(f"[{task}] {message}")


# ── Transport ───────────────────────────────────────────────────────
class ProviderTransportError(AssistantError):
    def __init__(self, provider: str, message: str, *, retryable: bool = False) -> None:
        self.provider = provider
        self.retryable = retryable
        super().__init__(f"{provider}: {message}")


class StageTimeoutError(AssistantError, TimeoutError):
    def __init__(self, stage: str, seconds: float) -> None:
        self.stage = stage
        self.seconds = seconds
        super().__init__(f"Stage '{stage}' timed out after {seconds:.1f}s")
