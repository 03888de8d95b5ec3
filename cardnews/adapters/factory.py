from __future__ import annotations

from typing import Dict

from cardnews.config import PipelineConfig
from cardnews.models import ResolvedModel

from .anthropic_adapter import AnthropicAdapter
from .gemini_adapter import GeminiAdapter
from .llm_base import LLMAdapter
from .openai_adapter import OpenAIAdapter


def build_adapter(resolved: ResolvedModel, config: PipelineConfig) -> LLMAdapter:
    provider = resolved.provider
    api_key = config.api_key_for(provider)
    if provider == "anthropic":
        return AnthropicAdapter(api_key)
    if provider == "google":
        return GeminiAdapter(api_key)
    base_url = config.llm_base_url if provider == "openai-compatible" else None
    return OpenAIAdapter(api_key, base_url=base_url)


class AdapterPool:
    """Builds one adapter per provider and reuses it across stages."""

    def __init__(self, config: PipelineConfig) -> None:
        self.config = config
        self._adapters: Dict[str, LLMAdapter] = {}

    def get(self, resolved: ResolvedModel) -> LLMAdapter:
        adapter = self._adapters.get(resolved.provider)
        if adapter is None:
            adapter = build_adapter(resolved, self.config)
            self._adapters[resolved.provider] = adapter
        return adapter
