from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from cardnews.gates.runner import ValidationFinding
from cardnews.gates.sequence import sequence_advisories
from cardnews.patterns import get_pattern, pattern_list_for_prompt
from cardnews.pipeline.context import PipelineContext
from cardnews.schema import ReviewIssue, Stage
from cardnews.utils.io import read_text

PROMPTS_DIR = Path(__file__).resolve().parents[1] / "prompts"

REVIEW_HTML_CHARS = 2000
REVISION_HTML_CHARS = 4000


@dataclass(frozen=True)
class StageSpec:
    stage: Stage
    prompt_file: str
    artifact_file: str
    instruction: str
    project: Callable[[PipelineContext], Dict]


def _research_input(ctx: PipelineContext) -> Dict:
    payload: Dict = {"topic": ctx.options.topic, "slideCount": ctx.options.slide_count}
    if ctx.raw_notes:
        payload["notes"] = ctx.raw_notes
    return payload


def _plan_input(ctx: PipelineContext) -> Dict:
    research = ctx.require_research(Stage.PLAN)
    return {
        "topic": ctx.options.topic,
        "slideCount": ctx.options.slide_count,
        "research": research.to_payload(),
    }


def _copy_input(ctx: PipelineContext) -> Dict:
    research = ctx.require_research(Stage.COPY)
    plan = ctx.require_plan(Stage.COPY)
    plan_payload = plan.to_payload()
    return {
        "topic": ctx.options.topic,
        "title": plan.title,
        "narrative": plan.narrative,
        "research": research.to_payload(),
        "slides": plan_payload["slides"],
    }


def _design_input(ctx: PipelineContext) -> Dict:
    plan = ctx.require_plan(Stage.DESIGN)
    copy = ctx.require_copy(Stage.DESIGN)
    planned_slides = {slide.slide_number: slide for slide in plan.slides}
    slides = []
    for slide in copy.slides:
        planned = planned_slides.get(slide.slide_number)
        slides.append(
            {
                "slideNumber": slide.slide_number,
                "role": slide.role,
                "heading": slide.heading,
                "emotionTemperature": planned.emotion_temperature if planned else None,
                "direction": planned.direction if planned else None,
            }
        )
    return {
        "series": ctx.options.series,
        "layoutPatterns": pattern_list_for_prompt(),
        "slides": slides,
    }


def _build_input(ctx: PipelineContext) -> Dict:
    copy = ctx.require_copy(Stage.BUILD)
    design = ctx.require_design_brief(Stage.BUILD)
    ctx.require_plan(Stage.BUILD)
    palette = design.color_palette
    slides = []
    for slide in copy.slides:
        slide_design = design.slide(slide.slide_number)
        pattern = get_pattern(slide_design.layout_pattern) if slide_design else None
        entry = {
            "slideNumber": slide.slide_number,
            "role": slide.role,
            "layoutPattern": slide_design.layout_pattern if slide_design else "auto",
            "patternName": pattern.name if pattern else "unknown",
            "structureHint": pattern.structure_hint if pattern else "flexible",
            "backgroundColor": (slide_design.background_color if slide_design else None)
            or palette.background,
            "heading": slide.heading,
            "subheading": slide.subheading,
            "bodyText": slide.body_text,
            "bulletPoints": list(slide.bullet_points),
            "accentText": slide.accent_text,
            "footnote": slide.footnote,
            "ctaText": slide.cta_text,
            "designNotes": slide_design.notes if slide_design else None,
        }
        slides.append({key: value for key, value in entry.items() if value not in (None, [])})
    return {
        "series": ctx.options.series,
        "bottomBarText": f"@{ctx.options.series}",
        "colorPalette": {
            "primary": palette.primary,
            "secondary": palette.secondary,
            "accent": palette.accent,
            "background": palette.background,
            "text": palette.text,
        },
        "slides": slides,
    }


def _review_input(ctx: PipelineContext) -> Dict:
    research = ctx.require_research(Stage.REVIEW)
    plan = ctx.require_plan(Stage.REVIEW)
    copy = ctx.require_copy(Stage.REVIEW)
    ctx.require_build(Stage.REVIEW)
    design = ctx.get(Stage.DESIGN)
    return {
        "research": {
            "topic": research.topic,
            "keyFacts": [fact.fact for fact in research.key_facts],
            "statistics": [f"{stat.value}: {stat.description}" for stat in research.statistics],
        },
        "plan": [
            {
                "slideNumber": slide.slide_number,
                "emotionTemperature": slide.emotion_temperature,
                "direction": slide.direction,
            }
            for slide in plan.slides
        ],
        "copy": [
            {
                "slideNumber": slide.slide_number,
                "role": slide.role,
                "heading": slide.heading or "",
                "bodyText": (slide.body_text or "")[:100],
                "accentText": slide.accent_text or "",
            }
            for slide in copy.slides
        ],
        "sequenceAdvisories": sequence_advisories(plan, design),
        "slidesHtml": [
            {"slideNumber": number, "html": html[:REVIEW_HTML_CHARS]}
            for number, html in ctx.ordered_slides().items()
        ],
    }


STAGES: Dict[Stage, StageSpec] = {
    Stage.RESEARCH: StageSpec(
        Stage.RESEARCH,
        "research.md",
        "research.json",
        "Research this topic for a card news series.",
        _research_input,
    ),
    Stage.PLAN: StageSpec(
        Stage.PLAN,
        "plan.md",
        "plan.json",
        "Plan the slide sequence for this card news series.",
        _plan_input,
    ),
    Stage.COPY: StageSpec(
        Stage.COPY,
        "copy.md",
        "copy.json",
        "Write the copy for every planned slide.",
        _copy_input,
    ),
    Stage.DESIGN: StageSpec(
        Stage.DESIGN,
        "design.md",
        "design-brief.json",
        "Write the design brief for this card news series.",
        _design_input,
    ),
    Stage.BUILD: StageSpec(
        Stage.BUILD,
        "build.md",
        "build.json",
        "Build standalone HTML slides for this card news series.",
        _build_input,
    ),
    Stage.REVIEW: StageSpec(
        Stage.REVIEW,
        "review.md",
        "review-report.json",
        "Review this card news series for issues.",
        _review_input,
    ),
}


def load_prompt(spec: StageSpec) -> str:
    return read_text(PROMPTS_DIR / spec.prompt_file)


def _issue_payload(issue: ReviewIssue) -> Dict:
    return {
        "slideNumber": issue.slide_number,
        "severity": issue.severity,
        "category": issue.category,
        "description": issue.description,
        "suggestion": issue.suggestion,
    }


def revision_feedback(
    ctx: PipelineContext,
    issues: List[ReviewIssue],
    previous: Sequence[ReviewIssue] = (),
) -> Dict:
    """Extra build input for a rebuild pass, with the flagged markup attached."""
    flagged = sorted({issue.slide_number for issue in issues})
    return {
        "revisionIteration": ctx.revision.iteration,
        "issues": [_issue_payload(issue) for issue in issues],
        "previousIssues": [_issue_payload(issue) for issue in previous],
        "currentHtml": [
            {"slideNumber": number, "html": ctx.slides[number][:REVISION_HTML_CHARS]}
            for number in flagged
            if number in ctx.slides
        ],
    }


def build_user_message(spec: StageSpec, ctx: PipelineContext, extra: Optional[Dict] = None) -> str:
    payload = spec.project(ctx)
    if extra:
        payload.update(extra)
    body = json.dumps(payload, ensure_ascii=False, indent=2)
    return f"{spec.instruction}\n\nINPUT:\n{body}\n"


def findings_as_issues(findings: List[ValidationFinding]) -> List[ReviewIssue]:
    return [
        ReviewIssue(
            slide_number=finding.slide_number or 1,
            severity=finding.severity,
            category="auto-check",
            description=f"{finding.rule_id}: {finding.detail or 'failed'}",
        )
        for finding in findings
    ]
