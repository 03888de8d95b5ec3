from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Protocol


@dataclass
class LLMRequest:
    stage: str
    model: str
    system: str
    user: str
    max_output_tokens: int


@dataclass
class LLMResponse:
    raw_text: str
    usage: Optional[Dict[str, int]] = None


class LLMAdapter(Protocol):
    def complete(self, request: LLMRequest) -> LLMResponse:
        raise NotImplementedError


def usage_payload(prompt_tokens: Optional[int], completion_tokens: Optional[int]) -> Dict[str, int]:
    prompt = prompt_tokens or 0
    completion = completion_tokens or 0
    return {
        "prompt_tokens": prompt,
        "completion_tokens": completion,
        "total_tokens": prompt + completion,
    }
