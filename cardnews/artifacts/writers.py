from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

from cardnews.adapters.llm_base import LLMResponse
from cardnews.schema import Research, ReviewIssue
from cardnews.utils.io import read_text, write_json, write_text


def write_stage_artifact(path: Path, artifact) -> None:
    write_json(path, artifact.to_payload())


def research_markdown(research: Research) -> str:
    lines: List[str] = [f"# {research.topic}", "", "## Summary", research.summary, ""]
    lines.extend(["## Target Audience", research.target_audience, "", "## Key Facts"])
    for fact in research.key_facts:
        source = f" *({fact.source})*" if fact.source else ""
        lines.append(f"- {fact.fact}{source}")
    lines.extend(["", "## Statistics"])
    for stat in research.statistics:
        source = f" *({stat.source})*" if stat.source else ""
        lines.append(f"- **{stat.value}**: {stat.description}{source}")
    lines.extend(["", "## Quotes"])
    for quote in research.quotes:
        author = f" ({quote.author})" if quote.author else ""
        lines.extend([f'> "{quote.text}"{author}', ""])
    lines.extend(["## Keywords", ", ".join(research.keywords)])
    return "\n".join(lines) + "\n"


def write_research_markdown(path: Path, research: Research) -> None:
    write_text(path, research_markdown(research))


def write_slide_html(slides_dir: Path, slide_number: int, html: str) -> Path:
    path = Path(slides_dir) / f"slide-{slide_number:02d}.html"
    write_text(path, html)
    return path


def write_raw_response(raw_dir: Path, label: str, response: LLMResponse) -> None:
    write_text(Path(raw_dir) / f"{label}.txt", response.raw_text)
    if response.usage:
        write_json(Path(raw_dir) / f"{label}_usage.json", response.usage)


def collect_usage_totals(raw_dir: Path, responses: List[LLMResponse]) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for path in sorted(Path(raw_dir).glob("*_usage.json")):
        try:
            usage = json.loads(read_text(path))
        except (OSError, json.JSONDecodeError):
            continue
        if isinstance(usage, dict):
            for key, value in usage.items():
                if isinstance(value, int):
                    totals[key] = totals.get(key, 0) + value
    if totals:
        return totals

    for response in responses:
        if not response.usage:
            continue
        for key, value in response.usage.items():
            if isinstance(value, int):
                totals[key] = totals.get(key, 0) + value
    return totals


def write_run_summary(
    path: Path,
    topic: str,
    transitions: List[str],
    slide_count: int,
    image_count: int,
    revision_iterations: int,
    max_iterations: int,
    verdict: Optional[str],
    unresolved: List[ReviewIssue],
    usage_totals: Dict[str, int],
) -> None:
    lines = [
        "# Run Summary",
        "",
        f"- topic: {topic}",
        f"- slides: {slide_count}",
        f"- png_files: {image_count}",
        f"- review_iterations: {revision_iterations}/{max_iterations}",
        f"- verdict: {verdict or 'n/a'}",
        f"- transitions: {' -> '.join(transitions)}",
    ]
    if usage_totals:
        lines.append(
            "- token_usage: " + ", ".join(f"{key}={value}" for key, value in usage_totals.items())
        )
    if unresolved:
        lines.extend(["", "## Unresolved issues", ""])
        for issue in unresolved:
            lines.append(
                f"- slide {issue.slide_number} [{issue.severity}] {issue.category}: {issue.description}"
            )
    write_text(path, "\n".join(lines) + "\n")
