from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from cardnews.errors import ConfigError
from cardnews.schema import Stage

DEFAULT_MODEL = "gpt-5-mini"
DEFAULT_MAX_QA_LOOPS = 3
DEFAULT_SLIDES = 10
MIN_SLIDES = 3
MAX_SLIDES = 20

STAGE_MODEL_ENV: Dict[Stage, str] = {
    Stage.RESEARCH: "RESEARCHER_MODEL",
    Stage.PLAN: "PLANNER_MODEL",
    Stage.COPY: "COPY_MODEL",
    Stage.DESIGN: "DESIGNER_MODEL",
    Stage.BUILD: "DEVELOPER_MODEL",
    Stage.REVIEW: "QA_MODEL",
}


@dataclass(frozen=True)
class PipelineConfig:
    openai_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    llm_model: str = DEFAULT_MODEL
    llm_base_url: Optional[str] = None
    stage_models: Dict[Stage, str] = field(default_factory=dict)
    chrome_path: Optional[str] = None
    max_qa_loops: int = DEFAULT_MAX_QA_LOOPS
    default_slides: int = DEFAULT_SLIDES
    debug: bool = False

    def model_for(self, stage: Stage, pipeline_model: Optional[str] = None) -> str:
        override = self.stage_models.get(stage)
        if override:
            return override
        if pipeline_model:
            return pipeline_model
        return self.llm_model

    def api_key_for(self, provider: str) -> str:
        if provider == "anthropic":
            key, name = self.anthropic_api_key, "ANTHROPIC_API_KEY"
        elif provider == "google":
            key, name = self.google_api_key, "GEMINI_API_KEY"
        elif provider in ("openai", "openai-compatible"):
            key, name = self.openai_api_key, "OPENAI_API_KEY"
        else:
            raise ConfigError([f"Unknown provider: {provider}"])
        if not key:
            raise ConfigError(
                [f"{name} is required for {provider} models. Set it in your .env file or environment."]
            )
        return key

    def with_overrides(self, **changes) -> "PipelineConfig":
        values = {name: getattr(self, name) for name in self.__dataclass_fields__}
        values.update({key: value for key, value in changes.items() if value is not None})
        return PipelineConfig(**values)


def _get(env: Mapping[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value:
            return value
    return None


def _int_setting(
    env: Mapping[str, str],
    key: str,
    default: int,
    minimum: int,
    maximum: Optional[int],
    issues: List[str],
) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        issues.append(f"{key}: expected an integer, got {raw!r}")
        return default
    if value < minimum or (maximum is not None and value > maximum):
        bound = f"between {minimum} and {maximum}" if maximum is not None else f">= {minimum}"
        issues.append(f"{key}: must be {bound}, got {value}")
    return value


def validate_max_qa_loops(value: int) -> int:
    if value <= 0:
        raise ConfigError([f"max revision loops must be a positive integer, got {value}"])
    return value


def load_config(environ: Optional[Mapping[str, str]] = None) -> PipelineConfig:
    env = os.environ if environ is None else environ
    issues: List[str] = []

    base_url = _get(env, "LLM_BASE_URL")
    if base_url and not base_url.startswith(("http://", "https://")):
        issues.append(f"LLM_BASE_URL: not a valid URL: {base_url}")

    stage_models: Dict[Stage, str] = {}
    for stage, key in STAGE_MODEL_ENV.items():
        value = _get(env, key)
        if value:
            stage_models[stage] = value

    config = PipelineConfig(
        openai_api_key=_get(env, "OPENAI_API_KEY"),
        google_api_key=_get(env, "GEMINI_API_KEY", "GOOGLE_API_KEY"),
        anthropic_api_key=_get(env, "ANTHROPIC_API_KEY"),
        llm_model=_get(env, "LLM_MODEL", "CLAUDE_MODEL") or DEFAULT_MODEL,
        llm_base_url=base_url,
        stage_models=stage_models,
        chrome_path=_get(env, "CHROME_PATH"),
        max_qa_loops=_int_setting(env, "MAX_QA_LOOPS", DEFAULT_MAX_QA_LOOPS, 1, None, issues),
        default_slides=_int_setting(env, "DEFAULT_SLIDES", DEFAULT_SLIDES, MIN_SLIDES, MAX_SLIDES, issues),
        debug=_get(env, "CARDNEWS_DEBUG") == "1",
    )
    if issues:
        raise ConfigError(issues)
    return config
