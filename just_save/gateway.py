"""Reasoning gateway: the single seam between the pipeline and the LLM.

A gateway is constructed explicitly (credential checked at construction) and
injected into :class:`just_save.api.StatementPipeline`. There is no
process-wide client.

Backends
--------
- :class:`AnthropicGateway`: Anthropic Messages API (default).
- :class:`OpenAIGateway`: OpenAI Responses API.

Both disable SDK-level retries; a failed call is reported once, as
``ReasoningTimeout`` or ``ReasoningUnavailable``, and the caller decides
whether to try again.
"""

from __future__ import annotations

import os
import time
from typing import Any, Protocol

import anthropic
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from .config import Settings
from .errors import ConfigurationError, ReasoningTimeout, ReasoningUnavailable
from .logging_setup import get_logger

_logger = get_logger("just_save.gateway")


class ReasoningGateway(Protocol):
    async def complete(self, prompt: str, *, max_tokens: int) -> str:
        """Send one single-turn prompt and return the raw response text."""
        ...


def _resolve_api_key(settings: Settings, api_key: str | None) -> str:
    key = api_key or os.getenv(settings.credential_env_var)
    if not key:
        var = settings.credential_env_var
        raise ConfigurationError(
            f"{var} is not set",
            user_message=f"API key not configured. Add {var} to .env",
        )
    return key


def _extract_anthropic_text(message: Any) -> str:
    parts: list[str] = []
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) == "text":
            text = getattr(block, "text", None)
            if isinstance(text, str):
                parts.append(text)
    return "".join(parts)


def _extract_openai_text(resp: Any) -> str:
    """Prefer ``resp.output_text``; fall back to ``resp.output[0].content[0].text``."""

    text: Any = getattr(resp, "output_text", None)
    if isinstance(text, str) and text:
        return text
    output = getattr(resp, "output", None)
    if not output:
        return ""
    content = getattr(output[0], "content", None)
    if not content:
        return ""
    txt_obj = getattr(content[0], "text", None)
    if isinstance(txt_obj, str):
        return txt_obj
    # Some SDK versions expose text as an object with a ``value`` string.
    maybe_val = getattr(txt_obj, "value", None)
    return maybe_val if isinstance(maybe_val, str) else ""


class AnthropicGateway:
    """Gateway backed by ``anthropic.AsyncAnthropic``."""

    def __init__(self, settings: Settings, *, api_key: str | None = None) -> None:
        self.settings = settings
        self.model = settings.model
        self.client = AsyncAnthropic(
            api_key=_resolve_api_key(settings, api_key),
            timeout=settings.request_timeout_s,
            max_retries=0,
        )

    async def complete(self, prompt: str, *, max_tokens: int) -> str:
        t0 = time.perf_counter()
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError as e:
            _logger.warning("gateway:timeout provider=anthropic model=%s", self.model)
            raise ReasoningTimeout(f"Anthropic request timed out: {e}") from e
        except anthropic.APIError as e:
            _logger.warning(
                "gateway:error provider=anthropic model=%s error=%s", self.model, type(e).__name__
            )
            raise ReasoningUnavailable(f"Anthropic request failed: {e}") from e
        text = _extract_anthropic_text(message)
        _logger.info(
            "gateway:done provider=anthropic model=%s max_tokens=%d chars=%d latency_ms=%.2f",
            self.model,
            max_tokens,
            len(text),
            (time.perf_counter() - t0) * 1000.0,
        )
        return text


class OpenAIGateway:
    """Gateway backed by ``openai.AsyncOpenAI`` (Responses API)."""

    def __init__(self, settings: Settings, *, api_key: str | None = None) -> None:
        self.settings = settings
        self.model = settings.model
        self.client = AsyncOpenAI(
            api_key=_resolve_api_key(settings, api_key),
            timeout=settings.request_timeout_s,
            max_retries=0,
        )

    async def complete(self, prompt: str, *, max_tokens: int) -> str:
        t0 = time.perf_counter()
        try:
            resp = await self.client.responses.create(
                model=self.model,
                input=prompt,
                max_output_tokens=max_tokens,
            )
        except openai.APITimeoutError as e:
            _logger.warning("gateway:timeout provider=openai model=%s", self.model)
            raise ReasoningTimeout(f"OpenAI request timed out: {e}") from e
        except openai.APIError as e:
            _logger.warning(
                "gateway:error provider=openai model=%s error=%s", self.model, type(e).__name__
            )
            raise ReasoningUnavailable(f"OpenAI request failed: {e}") from e
        text = _extract_openai_text(resp)
        _logger.info(
            "gateway:done provider=openai model=%s max_tokens=%d chars=%d latency_ms=%.2f",
            self.model,
            max_tokens,
            len(text),
            (time.perf_counter() - t0) * 1000.0,
        )
        return text


def create_gateway(settings: Settings, *, api_key: str | None = None) -> ReasoningGateway:
    """Construct the gateway for ``settings.provider``."""

    if settings.provider == "openai":
        return OpenAIGateway(settings, api_key=api_key)
    return AnthropicGateway(settings, api_key=api_key)


__all__ = ["AnthropicGateway", "OpenAIGateway", "ReasoningGateway", "create_gateway"]
