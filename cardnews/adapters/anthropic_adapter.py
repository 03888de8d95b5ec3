from __future__ import annotations

import time

from anthropic import Anthropic
from anthropic import APIConnectionError, APITimeoutError, InternalServerError, RateLimitError

from .llm_base import LLMAdapter, LLMRequest, LLMResponse, usage_payload

MAX_ATTEMPTS = 4


class AnthropicAdapter(LLMAdapter):
    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise RuntimeError("ANTHROPIC_API_KEY is not set.")
        self.client = Anthropic(api_key=api_key)

    def complete(self, request: LLMRequest) -> LLMResponse:
        attempt = 0
        backoff = 1.0
        while True:
            attempt += 1
            try:
                response = self.client.messages.create(
                    model=request.model,
                    system=request.system,
                    messages=[{"role": "user", "content": request.user}],
                    max_tokens=request.max_output_tokens,
                )
                text = "".join(
                    block.text for block in response.content if getattr(block, "type", "") == "text"
                )
                if not text:
                    raise RuntimeError("Anthropic returned empty content.")
                usage = usage_payload(
                    getattr(response.usage, "input_tokens", None),
                    getattr(response.usage, "output_tokens", None),
                )
                print(
                    f"[anthropic] model={request.model} "
                    f"prompt_tokens={usage['prompt_tokens']} "
                    f"completion_tokens={usage['completion_tokens']}"
                )
                return LLMResponse(raw_text=text, usage=usage)
            except (RateLimitError, APITimeoutError, APIConnectionError, InternalServerError):
                if attempt >= MAX_ATTEMPTS:
                    raise
            time.sleep(backoff)
            backoff *= 2
