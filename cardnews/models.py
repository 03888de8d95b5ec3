from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

DEFAULT_MAX_OUTPUT_TOKENS = 8192


@dataclass(frozen=True)
class ModelEntry:
    alias: str
    provider: str
    model_id: str
    max_output_tokens: int
    description: str


@dataclass(frozen=True)
class ResolvedModel:
    alias: str
    provider: str
    model_id: str
    max_output_tokens: int
    from_registry: bool


_REGISTRY_ROWS = [
    ("claude-sonnet-4.5", "anthropic", "claude-sonnet-4-5-20250929", 8192, "Claude Sonnet 4.5"),
    ("claude-sonnet-4", "anthropic", "claude-sonnet-4-20250514", 8192, "Claude Sonnet 4"),
    ("claude-haiku-3.5", "anthropic", "claude-3-5-haiku-20241022", 8192, "Claude Haiku 3.5"),
    ("gpt-4o", "openai", "gpt-4o", 16384, "GPT-4o"),
    ("gpt-4o-mini", "openai", "gpt-4o-mini", 16384, "GPT-4o Mini"),
    ("gpt-4.1", "openai", "gpt-4.1", 32768, "GPT-4.1"),
    ("gpt-4.1-mini", "openai", "gpt-4.1-mini", 32768, "GPT-4.1 Mini"),
    ("gpt-5-mini", "openai", "gpt-5-mini", 128000, "GPT-5 Mini"),
    ("o4-mini", "openai", "o4-mini", 100000, "o4-mini reasoning model"),
    ("gemini-2.5-pro", "google", "gemini-2.5-pro", 65536, "Gemini 2.5 Pro"),
    ("gemini-2.5-flash", "google", "gemini-2.5-flash", 65536, "Gemini 2.5 Flash"),
    ("gemini-2.0-flash", "google", "gemini-2.0-flash", 8192, "Gemini 2.0 Flash"),
]

MODEL_REGISTRY: Dict[str, ModelEntry] = {row[0]: ModelEntry(*row) for row in _REGISTRY_ROWS}

# First match wins.
_PROVIDER_PREFIXES: List[Tuple[str, str]] = [
    (r"^claude-", "anthropic"),
    (r"^gpt-", "openai"),
    (r"^o[1-9]", "openai"),
    (r"^gemini-", "google"),
    (r"^anthropic/", "anthropic"),
    (r"^openai/", "openai"),
    (r"^google/", "google"),
    (r"^vertex_ai/", "google"),
]


def resolve_model(alias_or_id: str, provider_override: Optional[str] = None) -> ResolvedModel:
    entry = MODEL_REGISTRY.get(alias_or_id)
    if entry is None:
        entry = next(
            (item for item in MODEL_REGISTRY.values() if item.model_id == alias_or_id),
            None,
        )
    if entry is not None:
        return ResolvedModel(
            alias=entry.alias,
            provider=provider_override or entry.provider,
            model_id=entry.model_id,
            max_output_tokens=entry.max_output_tokens,
            from_registry=True,
        )

    provider = "openai-compatible"
    model_id = alias_or_id
    for pattern, candidate in _PROVIDER_PREFIXES:
        if re.match(pattern, alias_or_id, flags=re.IGNORECASE):
            provider = candidate
            if "/" in alias_or_id:
                model_id = alias_or_id.split("/", 1)[1]
            break

    return ResolvedModel(
        alias=alias_or_id,
        provider=provider_override or provider,
        model_id=model_id,
        max_output_tokens=DEFAULT_MAX_OUTPUT_TOKENS,
        from_registry=False,
    )


def list_models() -> List[ModelEntry]:
    return list(MODEL_REGISTRY.values())
