from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List

from .llm_base import LLMAdapter, LLMRequest, LLMResponse, usage_payload

INPUT_MARKER = "INPUT:\n"

MOCK_LAYOUTS = ["intro-cover", "info-stats", "proc-steps", "info-list", "emph-big-text", "intro-cta"]

MOCK_SLIDE_HTML = """<div class="card">
  <div class="card-content">
    <h1 class="heading">{heading}</h1>
    <p class="body-text">{body}</p>
  </div>
  <div class="bottom-bar">@{series}</div>
</div>"""


def _input_payload(user: str) -> Dict:
    index = user.rfind(INPUT_MARKER)
    if index == -1:
        return {}
    try:
        payload = json.loads(user[index + len(INPUT_MARKER):])
    except json.JSONDecodeError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _role(slide_number: int, total: int) -> str:
    if slide_number == 1:
        return "cover"
    if slide_number == total:
        return "cta"
    return "body"


@dataclass
class MockAdapter(LLMAdapter):
    scenario: str = "default"
    calls: List[str] = field(default_factory=list)

    def complete(self, request: LLMRequest) -> LLMResponse:
        self.calls.append(request.stage)
        payload = self._build_payload(request.stage, _input_payload(request.user))
        text = json.dumps(payload, ensure_ascii=False)
        if request.stage == "build":
            text = f"```json\n{text}\n```"
        return LLMResponse(
            raw_text=text,
            usage=usage_payload(len(request.user) // 4, len(text) // 4),
        )

    def _build_payload(self, stage: str, data: Dict) -> Dict:
        topic = data.get("topic") or "Mock topic"
        total = int(data.get("slideCount") or 0) or len(data.get("slides") or []) or 5

        if stage == "research":
            return {
                "topic": topic,
                "summary": f"{topic} overview for a mock run.",
                "keyFacts": [{"fact": "Mock fact one", "source": "mock"}, {"fact": "Mock fact two"}],
                "statistics": [{"value": "42%", "description": "Share of mock readers", "source": "mock"}],
                "quotes": [{"text": "Deterministic outputs make pipelines testable.", "author": "mock"}],
                "targetAudience": "Developers",
                "keywords": ["mock", "pipeline"],
            }
        if stage == "plan":
            temperatures = [3, 2, 4, 3, 5]
            phases = ["empathy", "transition", "evidence", "evidence", "action"]
            return {
                "title": topic,
                "totalSlides": total,
                "narrative": "Hook, evidence, action.",
                "slides": [
                    {
                        "slideNumber": n,
                        "role": _role(n, total),
                        "emotionPhase": phases[min(n - 1, len(phases) - 1)] if n < total else "action",
                        "emotionTemperature": temperatures[(n - 1) % len(temperatures)],
                        "purpose": f"Slide {n} purpose",
                        "direction": f"Slide {n} direction",
                    }
                    for n in range(1, total + 1)
                ],
            }
        if stage == "copy":
            return {
                "title": topic,
                "slides": [
                    {
                        "slideNumber": slide["slideNumber"],
                        "role": slide.get("role", "body"),
                        "heading": f"Heading {slide['slideNumber']}",
                        "bodyText": f"Body text for slide {slide['slideNumber']}",
                    }
                    for slide in data.get("slides", [])
                ],
            }
        if stage == "design":
            return {
                "seriesTheme": data.get("series") or "default",
                "colorPalette": {
                    "primary": "#1F3A5F",
                    "secondary": "#4D648D",
                    "accent": "#FF6B35",
                    "background": "#F5F5F5",
                    "text": "#1A1A1A",
                },
                "slides": [
                    {
                        "slideNumber": slide["slideNumber"],
                        "layoutPattern": MOCK_LAYOUTS[(slide["slideNumber"] - 1) % len(MOCK_LAYOUTS)],
                    }
                    for slide in data.get("slides", [])
                ],
            }
        if stage == "build":
            series = data.get("series") or "default"
            return {
                "slides": [
                    {
                        "slideNumber": slide["slideNumber"],
                        "content": MOCK_SLIDE_HTML.format(
                            heading=slide.get("heading") or "",
                            body=slide.get("bodyText") or "",
                            series=series,
                        ),
                    }
                    for slide in data.get("slides", [])
                ]
            }
        if stage == "review":
            issues: List[Dict] = []
            reviews = self.calls.count("review")
            if self.scenario == "needs_revision" and reviews == 1:
                issues.append(
                    {
                        "slideNumber": 1,
                        "severity": "medium",
                        "category": "design",
                        "description": "Heading competes with body text.",
                        "suggestion": "Reduce body text weight.",
                    }
                )
            return {
                "passedAutoChecks": True,
                "autoCheckResults": [],
                "issues": issues,
                "overallVerdict": "needs_revision" if issues else "pass",
            }
        raise ValueError(f"Mock adapter has no payload for stage: {stage}")
