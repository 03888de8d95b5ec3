from __future__ import annotations

import json
from pathlib import Path

import pytest

from cardnews.adapters.llm_base import LLMRequest, LLMResponse
from cardnews.adapters.mock_adapter import MockAdapter
from cardnews.config import load_config
from cardnews.errors import CollaboratorError, DecodeError, SchemaViolationError
from cardnews.main import main
from cardnews.pipeline.context import PipelineOptions
from cardnews.pipeline.orchestrator import Orchestrator

DEFAULT_TRANSITIONS = [
    "research",
    "plan",
    "copy",
    "design",
    "build",
    "auto_validate",
    "review",
    "render",
    "done",
]

BLOCKING_REVIEW = {
    "passedAutoChecks": True,
    "autoCheckResults": [],
    "issues": [
        {
            "slideNumber": 2,
            "severity": "high",
            "category": "layout",
            "description": "Body text is cut off.",
        }
    ],
    "overallVerdict": "pass",
}


class ScriptedAdapter(MockAdapter):
    """Mock adapter with per-stage overrides for the raw response text."""

    def __init__(self, overrides=None, scenario="default"):
        super().__init__(scenario=scenario)
        self.overrides = overrides or {}
        self.requests = []

    def complete(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        override = self.overrides.get(request.stage)
        if override is None:
            return super().complete(request)
        self.calls.append(request.stage)
        if isinstance(override, Exception):
            raise override
        return LLMResponse(raw_text=override)


class FakeRenderer:
    def __init__(self, skip=()):
        self.skip = set(skip)
        self.seen = {}

    def render_all(self, slides, output_dir):
        self.seen = dict(slides)
        return {n: Path(output_dir) / f"slide-{n:02d}.png" for n in slides if n not in self.skip}


def _options(tmp_path, slide_count=3) -> PipelineOptions:
    return PipelineOptions(topic="AI 에이전트", slide_count=slide_count, output_dir=tmp_path)


def test_clean_run_goes_straight_through(tmp_path) -> None:
    adapter = MockAdapter()
    renderer = FakeRenderer()
    result = Orchestrator(load_config({}), adapter=adapter, renderer=renderer).run(_options(tmp_path))

    assert result.transitions == DEFAULT_TRANSITIONS
    assert adapter.calls == ["research", "plan", "copy", "design", "build", "review"]
    assert result.passed
    assert result.revision_iterations == 1
    assert sorted(result.slides) == [1, 2, 3]
    assert sorted(result.images) == [1, 2, 3]
    assert sorted(renderer.seen) == [1, 2, 3]
    assert result.validation.all_passed


def test_run_writes_artifacts(tmp_path) -> None:
    Orchestrator(load_config({}), adapter=MockAdapter(), render=False).run(_options(tmp_path))

    for name in ("research.json", "research.md", "plan.json", "copy.json", "design-brief.json", "build.json"):
        assert (tmp_path / name).exists(), name
    report = json.loads((tmp_path / "review-report.json").read_text(encoding="utf-8"))
    assert report["overallVerdict"] == "pass"
    assert (tmp_path / "slides" / "slide-01.html").read_text(encoding="utf-8").startswith("<!DOCTYPE html>")
    assert (tmp_path / "raw" / "01_research.txt").exists()
    assert (tmp_path / "raw" / "05_build.txt").read_text(encoding="utf-8").startswith("```json")
    summary = (tmp_path / "run_summary.md").read_text(encoding="utf-8")
    assert "- review_iterations: 1/3" in summary
    assert "render -> done" in summary


def test_medium_issue_triggers_one_rebuild(tmp_path) -> None:
    adapter = ScriptedAdapter(scenario="needs_revision")
    result = Orchestrator(load_config({}), adapter=adapter, render=False).run(_options(tmp_path))

    assert result.transitions == [
        "research",
        "plan",
        "copy",
        "design",
        "build",
        "auto_validate",
        "review",
        "build",
        "auto_validate",
        "review",
        "render",
        "done",
    ]
    assert result.revision_iterations == 2
    assert result.passed

    rebuild = [r for r in adapter.requests if r.stage == "build"][1]
    feedback = json.loads(rebuild.user.split("INPUT:\n", 1)[1])
    assert feedback["issues"][0]["severity"] == "medium"
    assert feedback["issues"][0]["slideNumber"] == 1


def test_revision_bound_ends_with_unresolved_issues(tmp_path, capsys) -> None:
    adapter = ScriptedAdapter({"review": json.dumps(BLOCKING_REVIEW)})
    config = load_config({"MAX_QA_LOOPS": "2"})
    result = Orchestrator(config, adapter=adapter, render=False).run(_options(tmp_path))

    assert adapter.calls.count("review") == 2
    assert adapter.calls.count("build") == 2
    assert result.transitions[-2:] == ["render", "done"]
    assert result.revision_iterations == 2
    assert not result.passed
    assert [issue.description for issue in result.unresolved] == ["Body text is cut off."]
    assert result.review.verdict == "needs_revision"
    assert result.review.claimed_verdict == "pass"

    out = capsys.readouterr().out
    assert "[warn] revision bound reached with 1 unresolved issue(s)" in out
    assert "disagrees with its issues" in out
    assert "- slide 2 [high] layout: Body text is cut off." in (tmp_path / "run_summary.md").read_text(
        encoding="utf-8"
    )


def test_low_issues_do_not_block(tmp_path) -> None:
    review = dict(BLOCKING_REVIEW, issues=[dict(BLOCKING_REVIEW["issues"][0], severity="low")])
    adapter = ScriptedAdapter({"review": json.dumps(review)})
    result = Orchestrator(load_config({}), adapter=adapter, render=False).run(_options(tmp_path))
    assert result.revision_iterations == 1
    assert result.passed


def test_failed_auto_checks_reach_the_report(tmp_path) -> None:
    broken = json.dumps({"slides": [{"slideNumber": n, "content": "<p>no bar</p>"} for n in (1, 2, 3)]})
    adapter = ScriptedAdapter({"build": broken})
    config = load_config({"MAX_QA_LOOPS": "1"})
    result = Orchestrator(config, adapter=adapter, render=False).run(_options(tmp_path))

    assert not result.review.passed_auto_checks
    categories = {issue.category for issue in result.unresolved}
    assert categories == {"auto-check"}
    assert any(issue.description.startswith("bottom-bar:") for issue in result.unresolved)
    review_request = [r for r in adapter.requests if r.stage == "review"][0]
    assert "autoCheckFindings" in review_request.user


def test_unparseable_output_is_a_decode_failure(tmp_path) -> None:
    adapter = ScriptedAdapter({"research": "Sorry, I cannot help with that."})
    with pytest.raises(DecodeError) as excinfo:
        Orchestrator(load_config({}), adapter=adapter, render=False).run(_options(tmp_path))
    assert excinfo.value.stage == "research"
    assert adapter.calls == ["research"]


def test_schema_violation_stops_the_run(tmp_path) -> None:
    adapter = ScriptedAdapter({"plan": json.dumps({"title": "only a title"})})
    with pytest.raises(SchemaViolationError) as excinfo:
        Orchestrator(load_config({}), adapter=adapter, render=False).run(_options(tmp_path))
    assert excinfo.value.stage == "plan"
    assert "copy" not in adapter.calls


def test_adapter_exception_is_a_collaborator_failure(tmp_path) -> None:
    adapter = ScriptedAdapter({"copy": ConnectionError("socket closed")})
    with pytest.raises(CollaboratorError) as excinfo:
        Orchestrator(load_config({}), adapter=adapter, render=False).run(_options(tmp_path))
    assert excinfo.value.stage == "copy"
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_missing_image_is_a_render_failure(tmp_path) -> None:
    renderer = FakeRenderer(skip={2})
    with pytest.raises(CollaboratorError) as excinfo:
        Orchestrator(load_config({}), adapter=MockAdapter(), renderer=renderer).run(_options(tmp_path))
    assert excinfo.value.stage == "render"
    assert "2" in str(excinfo.value)


def test_cli_mock_run(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MAX_QA_LOOPS", raising=False)
    notes = tmp_path / "notes.md"
    notes.write_text("---\nslides: 4\n---\n# 생성형 AI 트렌드\n메모\n", encoding="utf-8")

    code = main(
        ["generate", "--input", str(notes), "--mode", "mock", "--no-render", "--output", str(tmp_path / "out")]
    )

    assert code == 0
    run_dirs = list((tmp_path / "out").iterdir())
    assert len(run_dirs) == 1
    assert len(list((run_dirs[0] / "slides").glob("slide-*.html"))) == 4
    assert (run_dirs[0] / "inputs" / "notes.md").exists()
    assert "Output directory:" in capsys.readouterr().out


def test_cli_reports_bad_slide_count(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["generate", "AI", "--slides", "50", "--mode", "mock"]) == 1
    assert "Slide count must be between" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["0", "2", "21"])
def test_cli_rejects_out_of_range_slide_flag(tmp_path, monkeypatch, capsys, value) -> None:
    monkeypatch.chdir(tmp_path)
    code = main(
        ["generate", "AI", "--slides", value, "--mode", "mock", "--no-render", "--output", str(tmp_path / "out")]
    )
    assert code == 1
    assert f"got {value}" in capsys.readouterr().err
    assert not (tmp_path / "out").exists()


def test_review_prompt_matches_how_auto_checks_are_merged(tmp_path) -> None:
    adapter = ScriptedAdapter()
    Orchestrator(load_config({}), adapter=adapter, render=False).run(_options(tmp_path))
    system = [r for r in adapter.requests if r.stage == "review"][0].system
    assert "autoCheckFindings" in system
    assert "added to your report" in system
    assert "dismiss" not in system.lower()
