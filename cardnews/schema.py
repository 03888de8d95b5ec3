from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from jsonschema import Draft202012Validator

from cardnews.errors import SchemaViolationError
from cardnews.utils.io import read_text

SCHEMAS_DIR = Path(__file__).resolve().parent / "schemas"

SEVERITIES = ("high", "medium", "low")
BLOCKING_SEVERITIES = frozenset({"high", "medium"})


class Stage(str, Enum):
    RESEARCH = "research"
    PLAN = "plan"
    COPY = "copy"
    DESIGN = "design"
    BUILD = "build"
    REVIEW = "review"


def is_blocking(severity: str) -> bool:
    return severity in BLOCKING_SEVERITIES


@lru_cache(maxsize=None)
def load_schema(name: str) -> Dict:
    return json.loads(read_text(SCHEMAS_DIR / f"{name}.schema.json"))


def validate_payload(payload: Any, schema_name: str, stage: Optional[str] = None) -> Dict:
    validator = Draft202012Validator(load_schema(schema_name))
    errors = sorted(validator.iter_errors(payload), key=lambda err: list(err.absolute_path))
    if errors:
        first = errors[0]
        path = "/".join(str(part) for part in first.absolute_path)
        message = first.message
        if len(errors) > 1:
            message = f"{message} (+{len(errors) - 1} more)"
        raise SchemaViolationError(message, path=path, stage=stage or schema_name)
    return payload


def _tuple(items: Optional[List]) -> Tuple:
    return tuple(items or [])


# research


@dataclass(frozen=True)
class KeyFact:
    fact: str
    source: Optional[str] = None


@dataclass(frozen=True)
class Statistic:
    value: str
    description: str
    source: Optional[str] = None


@dataclass(frozen=True)
class Quote:
    text: str
    author: Optional[str] = None


@dataclass(frozen=True)
class Research:
    topic: str
    summary: str
    key_facts: Tuple[KeyFact, ...]
    statistics: Tuple[Statistic, ...]
    quotes: Tuple[Quote, ...]
    target_audience: str
    keywords: Tuple[str, ...]

    @classmethod
    def from_payload(cls, payload: Mapping) -> "Research":
        return cls(
            topic=payload["topic"],
            summary=payload["summary"],
            key_facts=tuple(KeyFact(item["fact"], item.get("source")) for item in payload["keyFacts"]),
            statistics=tuple(
                Statistic(item["value"], item["description"], item.get("source"))
                for item in payload["statistics"]
            ),
            quotes=tuple(Quote(item["text"], item.get("author")) for item in payload["quotes"]),
            target_audience=payload["targetAudience"],
            keywords=_tuple(payload["keywords"]),
        )

    def to_payload(self) -> Dict:
        return {
            "topic": self.topic,
            "summary": self.summary,
            "keyFacts": [_compact({"fact": f.fact, "source": f.source}) for f in self.key_facts],
            "statistics": [
                _compact({"value": s.value, "description": s.description, "source": s.source})
                for s in self.statistics
            ],
            "quotes": [_compact({"text": q.text, "author": q.author}) for q in self.quotes],
            "targetAudience": self.target_audience,
            "keywords": list(self.keywords),
        }


# plan


@dataclass(frozen=True)
class SlidePlan:
    slide_number: int
    role: str
    emotion_phase: str
    emotion_temperature: int
    purpose: str
    direction: str


@dataclass(frozen=True)
class Plan:
    title: str
    total_slides: int
    narrative: str
    slides: Tuple[SlidePlan, ...]
    subtitle: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping) -> "Plan":
        return cls(
            title=payload["title"],
            subtitle=payload.get("subtitle"),
            total_slides=payload["totalSlides"],
            narrative=payload["narrative"],
            slides=tuple(
                SlidePlan(
                    slide_number=item["slideNumber"],
                    role=item["role"],
                    emotion_phase=item["emotionPhase"],
                    emotion_temperature=item["emotionTemperature"],
                    purpose=item["purpose"],
                    direction=item["direction"],
                )
                for item in payload["slides"]
            ),
        )

    def to_payload(self) -> Dict:
        return _compact(
            {
                "title": self.title,
                "subtitle": self.subtitle,
                "totalSlides": self.total_slides,
                "narrative": self.narrative,
                "slides": [
                    {
                        "slideNumber": s.slide_number,
                        "role": s.role,
                        "emotionPhase": s.emotion_phase,
                        "emotionTemperature": s.emotion_temperature,
                        "purpose": s.purpose,
                        "direction": s.direction,
                    }
                    for s in self.slides
                ],
            }
        )


# copy


@dataclass(frozen=True)
class SlideCopy:
    slide_number: int
    role: str
    heading: Optional[str] = None
    subheading: Optional[str] = None
    body_text: Optional[str] = None
    bullet_points: Tuple[str, ...] = ()
    accent_text: Optional[str] = None
    footnote: Optional[str] = None
    cta_text: Optional[str] = None


@dataclass(frozen=True)
class Copy:
    title: str
    slides: Tuple[SlideCopy, ...]

    @classmethod
    def from_payload(cls, payload: Mapping) -> "Copy":
        return cls(
            title=payload["title"],
            slides=tuple(
                SlideCopy(
                    slide_number=item["slideNumber"],
                    role=item["role"],
                    heading=item.get("heading"),
                    subheading=item.get("subheading"),
                    body_text=item.get("bodyText"),
                    bullet_points=_tuple(item.get("bulletPoints")),
                    accent_text=item.get("accentText"),
                    footnote=item.get("footnote"),
                    cta_text=item.get("ctaText"),
                )
                for item in payload["slides"]
            ),
        )

    def to_payload(self) -> Dict:
        slides = []
        for s in self.slides:
            slides.append(
                _compact(
                    {
                        "slideNumber": s.slide_number,
                        "role": s.role,
                        "heading": s.heading,
                        "subheading": s.subheading,
                        "bodyText": s.body_text,
                        "bulletPoints": list(s.bullet_points) or None,
                        "accentText": s.accent_text,
                        "footnote": s.footnote,
                        "ctaText": s.cta_text,
                    }
                )
            )
        return {"title": self.title, "slides": slides}


# design brief


@dataclass(frozen=True)
class ColorPalette:
    primary: str
    secondary: str
    accent: str
    background: str
    text: str


@dataclass(frozen=True)
class SlideDesign:
    slide_number: int
    layout_pattern: str
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    background_color: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class DesignBrief:
    series_theme: str
    color_palette: ColorPalette
    slides: Tuple[SlideDesign, ...]

    @classmethod
    def from_payload(cls, payload: Mapping) -> "DesignBrief":
        palette = payload["colorPalette"]
        return cls(
            series_theme=payload["seriesTheme"],
            color_palette=ColorPalette(
                primary=palette["primary"],
                secondary=palette["secondary"],
                accent=palette["accent"],
                background=palette["background"],
                text=palette["text"],
            ),
            slides=tuple(
                SlideDesign(
                    slide_number=item["slideNumber"],
                    layout_pattern=item["layoutPattern"],
                    primary_color=item.get("primaryColor"),
                    secondary_color=item.get("secondaryColor"),
                    background_color=item.get("backgroundColor"),
                    notes=item.get("notes"),
                )
                for item in payload["slides"]
            ),
        )

    def slide(self, slide_number: int) -> Optional[SlideDesign]:
        for item in self.slides:
            if item.slide_number == slide_number:
                return item
        return None

    def to_payload(self) -> Dict:
        palette = self.color_palette
        return {
            "seriesTheme": self.series_theme,
            "colorPalette": {
                "primary": palette.primary,
                "secondary": palette.secondary,
                "accent": palette.accent,
                "background": palette.background,
                "text": palette.text,
            },
            "slides": [
                _compact(
                    {
                        "slideNumber": s.slide_number,
                        "layoutPattern": s.layout_pattern,
                        "primaryColor": s.primary_color,
                        "secondaryColor": s.secondary_color,
                        "backgroundColor": s.background_color,
                        "notes": s.notes,
                    }
                )
                for s in self.slides
            ],
        }


# build


@dataclass(frozen=True)
class BuiltSlide:
    slide_number: int
    content: str


@dataclass(frozen=True)
class BuildOutput:
    slides: Tuple[BuiltSlide, ...]

    @classmethod
    def from_payload(cls, payload: Mapping) -> "BuildOutput":
        return cls(
            slides=tuple(
                BuiltSlide(slide_number=item["slideNumber"], content=item["content"])
                for item in payload["slides"]
            )
        )

    def to_payload(self) -> Dict:
        return {
            "slides": [
                {"slideNumber": s.slide_number, "content": s.content} for s in self.slides
            ]
        }


# review report


@dataclass(frozen=True)
class AutoCheckResult:
    rule: str
    passed: bool
    detail: Optional[str] = None


@dataclass(frozen=True)
class ReviewIssue:
    slide_number: int
    severity: str
    category: str
    description: str
    suggestion: Optional[str] = None

    @property
    def blocking(self) -> bool:
        return is_blocking(self.severity)


@dataclass(frozen=True)
class ReviewReport:
    passed_auto_checks: bool
    auto_check_results: Tuple[AutoCheckResult, ...]
    issues: Tuple[ReviewIssue, ...]
    claimed_verdict: str = field(default="pass", compare=False)

    @classmethod
    def from_payload(cls, payload: Mapping) -> "ReviewReport":
        return cls(
            passed_auto_checks=payload["passedAutoChecks"],
            auto_check_results=tuple(
                AutoCheckResult(item["rule"], item["passed"], item.get("detail"))
                for item in payload["autoCheckResults"]
            ),
            issues=tuple(
                ReviewIssue(
                    slide_number=item["slideNumber"],
                    severity=item["severity"],
                    category=item["category"],
                    description=item["description"],
                    suggestion=item.get("suggestion"),
                )
                for item in payload["issues"]
            ),
            claimed_verdict=payload["overallVerdict"],
        )

    @property
    def blocking_issues(self) -> List[ReviewIssue]:
        return [issue for issue in self.issues if issue.blocking]

    @property
    def verdict(self) -> str:
        return "needs_revision" if self.blocking_issues else "pass"

    def count(self, severity: str) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    def to_payload(self) -> Dict:
        return {
            "passedAutoChecks": self.passed_auto_checks,
            "autoCheckResults": [
                _compact({"rule": r.rule, "passed": r.passed, "detail": r.detail})
                for r in self.auto_check_results
            ],
            "issues": [
                _compact(
                    {
                        "slideNumber": i.slide_number,
                        "severity": i.severity,
                        "category": i.category,
                        "description": i.description,
                        "suggestion": i.suggestion,
                    }
                )
                for i in self.issues
            ],
            "overallVerdict": self.verdict,
            "claimedVerdict": self.claimed_verdict,
        }


ARTIFACT_TYPES = {
    Stage.RESEARCH: Research,
    Stage.PLAN: Plan,
    Stage.COPY: Copy,
    Stage.DESIGN: DesignBrief,
    Stage.BUILD: BuildOutput,
    Stage.REVIEW: ReviewReport,
}

SCHEMA_NAMES = {
    Stage.RESEARCH: "research",
    Stage.PLAN: "plan",
    Stage.COPY: "copy",
    Stage.DESIGN: "design_brief",
    Stage.BUILD: "build",
    Stage.REVIEW: "review_report",
}


def decode_artifact(stage: Stage, payload: Any):
    validate_payload(payload, SCHEMA_NAMES[stage], stage=stage.value)
    return ARTIFACT_TYPES[stage].from_payload(payload)


def _compact(payload: Dict) -> Dict:
    return {key: value for key, value in payload.items() if value is not None}
