from __future__ import annotations

import os
import random
import time

from google import genai
from google.genai import types

from .llm_base import LLMAdapter, LLMRequest, LLMResponse, usage_payload

REQUEST_TIMEOUT_MS = 600_000

TRANSIENT_MARKERS = ("503", "unavailable", "429", "too many", "timeout", "temporarily")


def is_transient(err: Exception) -> bool:
    message = str(err).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


def backoff_delay(base_delay: float, attempt: int) -> float:
    return base_delay * (2 ** (attempt - 1)) + random.random() * 0.5


class GeminiAdapter(LLMAdapter):
    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY is not set.")
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=REQUEST_TIMEOUT_MS),
        )
        self.max_attempts = int(os.getenv("GEMINI_MAX_ATTEMPTS", "5"))
        self.base_delay = float(os.getenv("GEMINI_BASE_DELAY_SECONDS", "1.0"))

    def _generate(self, request: LLMRequest) -> LLMResponse:
        response = self.client.models.generate_content(
            model=request.model,
            contents=request.user,
            config=types.GenerateContentConfig(
                system_instruction=request.system,
                max_output_tokens=request.max_output_tokens,
            ),
        )
        text = getattr(response, "text", None)
        if not text:
            raise RuntimeError("Gemini returned empty content.")
        metadata = getattr(response, "usage_metadata", None)
        if metadata is None:
            return LLMResponse(raw_text=text)
        usage = usage_payload(
            getattr(metadata, "prompt_token_count", None),
            getattr(metadata, "candidates_token_count", None),
        )
        print(f"[gemini] model={request.model} total_tokens={usage['total_tokens']}")
        return LLMResponse(raw_text=text, usage=usage)

    def complete(self, request: LLMRequest) -> LLMResponse:
        last_err: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            print(f"[gemini] stage={request.stage} attempt={attempt}/{self.max_attempts}")
            try:
                return self._generate(request)
            except Exception as e:
                last_err = e
                if not is_transient(e) or attempt == self.max_attempts:
                    break
                delay = backoff_delay(self.base_delay, attempt)
                print(f"[gemini] transient error: {e} -> sleeping {delay:.2f}s")
                time.sleep(delay)

        raise RuntimeError(
            f"Gemini generate_content failed for model {request.model}. Last error: {last_err}"
        ) from last_err
