"""Runtime settings for the pipeline.

Settings are read from environment variables once, by the entrypoint, and
passed explicitly to the components that need them. Library modules never
read the environment on their own (the gateway's credential lookup is the
single exception, and it happens at construction time).

Variables
---------
``JUST_SAVE_PROVIDER``            ``anthropic`` (default) or ``openai``
``JUST_SAVE_MODEL``               model identifier; defaults per provider
``JUST_SAVE_MAX_TOKENS``          output budget for extraction/analysis (8192)
``JUST_SAVE_INSIGHT_MAX_TOKENS``  output budget for short insight text (1024)
``JUST_SAVE_TIMEOUT_S``           deadline for one reasoning call (90)
``JUST_SAVE_MAX_CSV_BYTES``       CSV upload ceiling (5 MiB)
``JUST_SAVE_MAX_PDF_BYTES``       PDF upload ceiling (10 MiB)
``JUST_SAVE_MAX_TEXT_CHARS``      prompt text budget before truncation (100000)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import ConfigurationError

PROVIDERS: tuple[str, ...] = ("anthropic", "openai")

DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-5",
}

CREDENTIAL_ENV_VARS: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}

_MIB = 1024 * 1024


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    """Fixed model configuration and input limits for one process."""

    provider: str = "anthropic"
    model: str = field(default="")
    max_tokens: int = 8192
    insight_max_tokens: int = 1024
    request_timeout_s: float = 90.0
    max_csv_bytes: int = 5 * _MIB
    max_pdf_bytes: int = 10 * _MIB
    max_text_chars: int = 100_000

    def __post_init__(self) -> None:
        if self.provider not in PROVIDERS:
            raise ConfigurationError(
                f"Unsupported provider {self.provider!r}; expected one of {', '.join(PROVIDERS)}"
            )
        if not self.model:
            # Frozen dataclass: bypass __setattr__ to fill the per-provider default.
            object.__setattr__(self, "model", DEFAULT_MODELS[self.provider])

    @property
    def credential_env_var(self) -> str:
        return CREDENTIAL_ENV_VARS[self.provider]

    def max_bytes_for(self, source_kind: str) -> int:
        return self.max_pdf_bytes if str(source_kind) == "pdf" else self.max_csv_bytes

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``env`` (defaults to ``os.environ``)."""

        env = os.environ if env is None else env
        provider = (env.get("JUST_SAVE_PROVIDER") or "anthropic").strip().lower()
        return cls(
            provider=provider,
            model=(env.get("JUST_SAVE_MODEL") or "").strip(),
            max_tokens=_env_int(env, "JUST_SAVE_MAX_TOKENS", 8192),
            insight_max_tokens=_env_int(env, "JUST_SAVE_INSIGHT_MAX_TOKENS", 1024),
            request_timeout_s=_env_float(env, "JUST_SAVE_TIMEOUT_S", 90.0),
            max_csv_bytes=_env_int(env, "JUST_SAVE_MAX_CSV_BYTES", 5 * _MIB),
            max_pdf_bytes=_env_int(env, "JUST_SAVE_MAX_PDF_BYTES", 10 * _MIB),
            max_text_chars=_env_int(env, "JUST_SAVE_MAX_TEXT_CHARS", 100_000),
        )


__all__ = ["CREDENTIAL_ENV_VARS", "DEFAULT_MODELS", "PROVIDERS", "Settings"]
