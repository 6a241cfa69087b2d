"""
Model-provider clients and the two generation primitives every stage uses.

  generate_text        free-text completion
  generate_structured  JSON completion validated against a pydantic model

Dispatch is an explicit branch on the handle's provider tag.  SDK
failures surface as ProviderTransportError; output that does not fit
the requested schema surfaces as MalformedOutputError.
"""

from __future__ import annotations

import json
import threading
from typing import TypeVar

import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from assistant.core.config import AiProvider
from assistant.core.errors import MalformedOutputError, ProviderTransportError
from assistant.pipeline.model_selector import ModelHandle
from assistant.utils.logging import get_logger

logger = get_logger("assistant.services.llm")

SchemaT = TypeVar("SchemaT", bound=BaseModel)


# ── Client pools (one client per API key) ───────────────────────────
class OpenAIClientPool:
    _clients: dict[str, AsyncOpenAI] = {}
    _lock = threading.Lock()

    @classmethod
    def get(cls, api_key: str) -> AsyncOpenAI:
        with cls._lock:
            if api_key not in cls._clients:
                cls._clients[api_key] = AsyncOpenAI(api_key=api_key)
                logger.info("OpenAI client initialized (key …%s)", api_key[-4:])
            return cls._clients[api_key]

    @classmethod
    async def close_all(cls) -> int:
        with cls._lock:
            clients = list(cls._clients.values())
            cls._clients.clear()
        for client in clients:
            await client.close()
        return len(clients)


class GeminiClientPool:
    _clients: dict[str, genai.Client] = {}
    _lock = threading.Lock()

    @classmethod
    def get(cls, api_key: str) -> genai.Client:
        with cls._lock:
            if api_key not in cls._clients:
                cls._clients[api_key] = genai.Client(api_key=api_key)
                logger.info("Gemini client initialized (key …%s)", api_key[-4:])
            return cls._clients[api_key]

    @classmethod
    async def close_all(cls) -> int:
        with cls._lock:
            clients = list(cls._clients.values())
            cls._clients.clear()
        for client in clients:
            await client.aio.aclose()
        return len(clients)


async def close_clients() -> None:
    closed = await OpenAIClientPool.close_all() + await GeminiClientPool.close_all()
    logger.info("Closed %d provider client(s)", closed)


# ── Error translation ───────────────────────────────────────────────
def _openai_error(exc: openai.OpenAIError) -> ProviderTransportError:
    retryable = isinstance(
        exc, (openai.RateLimitError, openai.APIConnectionError, openai.APITimeoutError)
    ) or (isinstance(exc, openai.APIStatusError) and exc.status_code >= 500)
    return ProviderTransportError(AiProvider.OPENAI.value, str(exc), retryable=retryable)


def _gemini_error(exc: genai_errors.APIError) -> ProviderTransportError:
    code = getattr(exc, "code", None) or 0
    retryable = code == 429 or code >= 500
    return ProviderTransportError(AiProvider.GOOGLE.value, str(exc), retryable=retryable)


# ── Provider calls ──────────────────────────────────────────────────
async def _openai_complete(
    handle: ModelHandle,
    system_prompt: str,
    user_prompt: str,
    *,
    json_output: bool,
) -> str:
    kwargs: dict = {
        "model": handle.model_name,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    }
    if handle.sends_temperature:
        kwargs["temperature"] = handle.temperature
    if json_output:
        kwargs["response_format"] = {"type": "json_object"}

    client = OpenAIClientPool.get(handle.api_key)
    try:
        response = await client.chat.completions.create(**kwargs)
    except openai.OpenAIError as exc:
        raise _openai_error(exc) from exc

    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


async def _gemini_complete(
    handle: ModelHandle,
    system_prompt: str,
    user_prompt: str,
    *,
    response_schema: dict | None,
) -> str:
    config = genai_types.GenerateContentConfig(system_instruction=system_prompt)
    if handle.sends_temperature:
        config.temperature = handle.temperature
    if response_schema is not None:
        config.response_mime_type = "application/json"
        config.response_json_schema = response_schema

    client = GeminiClientPool.get(handle.api_key)
    try:
        response = await client.aio.models.generate_content(
            model=handle.model_name,
            contents=user_prompt,
            config=config,
        )
    except genai_errors.APIError as exc:
        raise _gemini_error(exc) from exc

    candidate = response.candidates[0] if response.candidates else None
    content = candidate.content if candidate is not None else None
    if content is None:
        # Safety blocks and early stops leave the candidate without content
        logger.warning(
            "%s returned no content (finish_reason=%s)",
            handle.model_name, getattr(candidate, "finish_reason", None),
        )
        return ""

    # Strip thinking parts, only user-visible text is returned
    text_parts = [p.text for p in content.parts or [] if p.text and not getattr(p, "thought", False)]
    return "\n".join(text_parts) if text_parts else (response.text or "")


async def generate_text(handle: ModelHandle, system_prompt: str, user_prompt: str) -> str:
    """Free-text completion on the handle's provider."""
    if handle.provider is AiProvider.OPENAI:
        return await _openai_complete(handle, system_prompt, user_prompt, json_output=False)
    elif handle.provider is AiProvider.GOOGLE:
        return await _gemini_complete(handle, system_prompt, user_prompt, response_schema=None)
    raise ProviderTransportError(str(handle.provider), "no client for provider")


async def generate_structured(
    handle: ModelHandle,
    system_prompt: str,
    user_prompt: str,
    schema: type[SchemaT],
) -> SchemaT:
    """
    JSON completion validated against *schema*.

    Raises:
        MalformedOutputError: empty output or output that fails validation.
    """
    json_schema = schema.model_json_schema()
    if handle.provider is AiProvider.OPENAI:
        system_prompt = (
            f"{system_prompt}\n\n"
            f"Respond ONLY with a JSON object matching this JSON schema:\n"
            f"{json.dumps(json_schema)}"
        )
        raw = await _openai_complete(handle, system_prompt, user_prompt, json_output=True)
    elif handle.provider is AiProvider.GOOGLE:
        raw = await _gemini_complete(handle, system_prompt, user_prompt, response_schema=json_schema)
    else:
        raise ProviderTransportError(str(handle.provider), "no client for provider")

    if not raw or not raw.strip():
        raise MalformedOutputError(handle.task.value, "model returned empty content")

    try:
        return schema.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning(
            "%s returned output that does not match %s: %s",
            handle.task.value, schema.__name__, exc.errors()[:3],
        )
        raise MalformedOutputError(
            handle.task.value, f"output does not match {schema.__name__}"
        ) from exc
