from __future__ import annotations

import json

import pytest

from cardnews.adapters import factory, gemini_adapter
from cardnews.adapters.llm_base import LLMRequest, usage_payload
from cardnews.adapters.mock_adapter import MockAdapter
from cardnews.config import load_config
from cardnews.errors import ConfigError
from cardnews.gates.parsers import extract_json
from cardnews.models import resolve_model


def _request(stage: str, payload: dict) -> LLMRequest:
    user = f"Do it.\n\nINPUT:\n{json.dumps(payload)}\n"
    return LLMRequest(stage=stage, model="mock", system="sys", user=user, max_output_tokens=100)


def test_usage_payload_sums_tokens() -> None:
    assert usage_payload(3, None) == {"prompt_tokens": 3, "completion_tokens": 0, "total_tokens": 3}


def test_mock_plan_follows_requested_slide_count() -> None:
    response = MockAdapter().complete(_request("plan", {"topic": "AI", "slideCount": 4}))
    plan = json.loads(response.raw_text)
    assert plan["totalSlides"] == 4
    assert [slide["role"] for slide in plan["slides"]] == ["cover", "body", "body", "cta"]
    assert response.usage["total_tokens"] >= 0


def test_mock_build_output_is_fenced() -> None:
    slides = [{"slideNumber": 1, "heading": "H", "bodyText": "B"}]
    response = MockAdapter().complete(_request("build", {"series": "weekly", "slides": slides}))
    assert response.raw_text.startswith("```json")
    payload = extract_json(response.raw_text)
    assert "@weekly" in payload["slides"][0]["content"]


def test_mock_needs_revision_only_on_the_first_review() -> None:
    adapter = MockAdapter(scenario="needs_revision")
    first = json.loads(adapter.complete(_request("review", {})).raw_text)
    second = json.loads(adapter.complete(_request("review", {})).raw_text)
    assert first["overallVerdict"] == "needs_revision"
    assert first["issues"][0]["severity"] == "medium"
    assert second["issues"] == []
    assert adapter.calls == ["review", "review"]


def test_mock_rejects_unknown_stage() -> None:
    with pytest.raises(ValueError):
        MockAdapter().complete(_request("render", {}))


def test_factory_requires_the_provider_key() -> None:
    with pytest.raises(ConfigError):
        factory.build_adapter(resolve_model("claude-sonnet-4"), load_config({}))


def test_pool_reuses_one_adapter_per_provider(monkeypatch) -> None:
    built = []

    def fake_build(resolved, config):
        built.append(resolved.provider)
        return MockAdapter()

    monkeypatch.setattr(factory, "build_adapter", fake_build)
    pool = factory.AdapterPool(load_config({}))
    first = pool.get(resolve_model("gpt-4o"))
    second = pool.get(resolve_model("gpt-4.1"))
    third = pool.get(resolve_model("gemini-2.5-flash"))
    assert first is second
    assert third is not first
    assert built == ["openai", "google"]


def test_gemini_client_gets_a_request_timeout(monkeypatch) -> None:
    captured = {}

    def fake_client(**kwargs):
        captured.update(kwargs)
        return object()

    monkeypatch.setattr(gemini_adapter.genai, "Client", fake_client)
    gemini_adapter.GeminiAdapter("g-key")
    assert captured["api_key"] == "g-key"
    assert captured["http_options"].timeout == gemini_adapter.REQUEST_TIMEOUT_MS
