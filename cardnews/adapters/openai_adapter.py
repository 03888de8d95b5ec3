from __future__ import annotations

import time
from typing import Optional

from openai import OpenAI
from openai import APIConnectionError, APITimeoutError, RateLimitError, InternalServerError

from .llm_base import LLMAdapter, LLMRequest, LLMResponse, usage_payload

MAX_ATTEMPTS = 4
REQUEST_TIMEOUT_SECONDS = 600.0


class OpenAIAdapter(LLMAdapter):
    def __init__(self, api_key: str, base_url: Optional[str] = None) -> None:
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is not set.")
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=REQUEST_TIMEOUT_SECONDS)

    def complete(self, request: LLMRequest) -> LLMResponse:
        attempt = 0
        backoff = 1.0
        while True:
            attempt += 1
            try:
                response = self.client.chat.completions.create(
                    model=request.model,
                    messages=[
                        {"role": "system", "content": request.system},
                        {"role": "user", "content": request.user},
                    ],
                    max_completion_tokens=request.max_output_tokens,
                    response_format={"type": "json_object"},
                )
                content = response.choices[0].message.content
                if content is None:
                    raise RuntimeError("OpenAI returned empty content.")
                usage = getattr(response, "usage", None)
                if usage:
                    payload = usage_payload(
                        getattr(usage, "prompt_tokens", None),
                        getattr(usage, "completion_tokens", None),
                    )
                    print(
                        f"[openai] model={request.model} "
                        f"prompt_tokens={payload['prompt_tokens']} "
                        f"completion_tokens={payload['completion_tokens']} "
                        f"total_tokens={payload['total_tokens']}"
                    )
                else:
                    payload = None
                    print("[openai] usage not provided by SDK")
                return LLMResponse(raw_text=content, usage=payload)
            except RateLimitError as exc:
                error = getattr(exc, "error", None)
                code = getattr(error, "code", None)
                if code == "insufficient_quota":
                    raise RuntimeError(
                        "OpenAI API quota exceeded. Please enable billing in your OpenAI account."
                    ) from exc
                if attempt >= MAX_ATTEMPTS:
                    raise
            except (APITimeoutError, APIConnectionError, InternalServerError):
                if attempt >= MAX_ATTEMPTS:
                    raise
            time.sleep(backoff)
            backoff *= 2
