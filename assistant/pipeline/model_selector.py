"""
Task -> model resolution.

Maps a logical task to the configured provider, model and temperature.
Pure lookup against settings: no network I/O, no retries.
"""

from __future__ import annotations

from dataclasses import dataclass

from assistant.core.config import AiProvider, AiTask, Settings, get_settings
from assistant.core.errors import (
    AiDisabledError,
    ProviderDisabledError,
    UnsupportedProviderError,
)
from assistant.utils.logging import get_logger

logger = get_logger("assistant.pipeline.model_selector")


@dataclass(frozen=True)
class ModelHandle:
    """Concrete model a stage should call."""

    task: AiTask
    provider: AiProvider
    model_name: str
    api_key: str
    temperature: float | None = None
    reasoning: bool = False

    @property
    def sends_temperature(self) -> bool:
        return self.temperature is not None


def resolve_model(
    task: AiTask,
    *,
    reasoning: bool = False,
    settings: Settings | None = None,
) -> ModelHandle:
    """
    Resolve *task* to a ModelHandle.

    With ``reasoning=True`` the handle carries no temperature, since
    reasoning-oriented models reject that parameter.

    Raises:
        AiDisabledError: the global AI switch is off.
        UnsupportedProviderError: the task names an unknown provider.
        ProviderDisabledError: the task's provider is switched off.
    """
    settings = settings or get_settings()
    if not settings.ai_enabled:
        raise AiDisabledError()

    binding = settings.model_binding(task)
    try:
        provider = AiProvider(binding.provider)
    except ValueError:
        raise UnsupportedProviderError(binding.provider) from None

    provider_settings = settings.provider_settings(provider)
    if not provider_settings.enabled:
        raise ProviderDisabledError(provider.value)

    handle = ModelHandle(
        task=task,
        provider=provider,
        model_name=binding.model_name,
        api_key=provider_settings.api_key,
        temperature=None if reasoning else binding.temperature,
        reasoning=reasoning,
    )
    logger.debug(
        "Resolved %s -> %s/%s (temperature=%s)",
        task.value, provider.value, handle.model_name, handle.temperature,
    )
    return handle
