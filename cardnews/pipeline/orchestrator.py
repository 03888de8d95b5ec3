from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Protocol

from cardnews.adapters.factory import AdapterPool
from cardnews.adapters.llm_base import LLMAdapter, LLMRequest, LLMResponse
from cardnews.artifacts.writers import (
    collect_usage_totals,
    write_raw_response,
    write_research_markdown,
    write_run_summary,
    write_slide_html,
    write_stage_artifact,
)
from cardnews.config import PipelineConfig, validate_max_qa_loops
from cardnews.errors import CollaboratorError, PipelineError
from cardnews.gates.parsers import extract_json
from cardnews.gates.runner import ValidationSummary, summary_lines, validate_all_slides
from cardnews.models import ResolvedModel, resolve_model
from cardnews.pipeline.context import PipelineContext, PipelineOptions, RevisionState
from cardnews.pipeline.stages import (
    STAGES,
    build_user_message,
    findings_as_issues,
    load_prompt,
    revision_feedback,
)
from cardnews.renderer.html_builder import build_slide_html
from cardnews.renderer.png_exporter import ChromeRenderer
from cardnews.schema import (
    AutoCheckResult,
    ReviewIssue,
    ReviewReport,
    Stage,
    decode_artifact,
)


class PipelineState(str, Enum):
    RESEARCH = "research"
    PLAN = "plan"
    COPY = "copy"
    DESIGN = "design"
    BUILD = "build"
    AUTO_VALIDATE = "auto_validate"
    REVIEW = "review"
    RENDER = "render"
    DONE = "done"


class Renderer(Protocol):
    def render_all(self, slides: Mapping[int, str], output_dir: Path) -> Dict[int, Path]:
        raise NotImplementedError


@dataclass
class PipelineResult:
    output_dir: Path
    transitions: List[str]
    slides: Dict[int, str]
    images: Dict[int, Path]
    review: Optional[ReviewReport]
    validation: Optional[ValidationSummary]
    revision_iterations: int
    unresolved: List[ReviewIssue]
    usage_totals: Dict[str, int]

    @property
    def passed(self) -> bool:
        return not self.unresolved


@dataclass
class _Run:
    ctx: PipelineContext
    output_dir: Path
    raw_dir: Path
    transitions: List[str] = field(default_factory=list)
    responses: List[LLMResponse] = field(default_factory=list)
    validation: Optional[ValidationSummary] = None
    feedback: List[ReviewIssue] = field(default_factory=list)
    previous_feedback: List[ReviewIssue] = field(default_factory=list)
    unresolved: List[ReviewIssue] = field(default_factory=list)


class Orchestrator:
    def __init__(
        self,
        config: PipelineConfig,
        adapter: Optional[LLMAdapter] = None,
        renderer: Optional[Renderer] = None,
        render: bool = True,
    ) -> None:
        self.config = config
        self.adapter = adapter
        self.renderer = renderer
        self.render = render
        self._pool = AdapterPool(config)
        self._handlers: Dict[PipelineState, Callable[[_Run], PipelineState]] = {
            PipelineState.RESEARCH: self._research,
            PipelineState.PLAN: self._plan,
            PipelineState.COPY: self._copy,
            PipelineState.DESIGN: self._design,
            PipelineState.BUILD: self._build,
            PipelineState.AUTO_VALIDATE: self._auto_validate,
            PipelineState.REVIEW: self._review,
            PipelineState.RENDER: self._render,
        }

    def run(self, options: PipelineOptions, raw_notes: Optional[str] = None) -> PipelineResult:
        max_iterations = validate_max_qa_loops(self.config.max_qa_loops)
        ctx = PipelineContext(
            options=options,
            revision=RevisionState(max_iterations=max_iterations),
            raw_notes=raw_notes,
        )
        output_dir = Path(options.output_dir)
        run = _Run(ctx=ctx, output_dir=output_dir, raw_dir=output_dir / "raw")
        print(f"[pipeline] topic={options.topic!r} series={options.series} slides={options.slide_count}")
        print(f"[pipeline] output={output_dir}")

        state = PipelineState.RESEARCH
        while state is not PipelineState.DONE:
            run.transitions.append(state.value)
            state = self._handlers[state](run)
        run.transitions.append(PipelineState.DONE.value)

        usage_totals = collect_usage_totals(run.raw_dir, run.responses)
        report = ctx.get(Stage.REVIEW)
        write_run_summary(
            output_dir / "run_summary.md",
            topic=options.topic,
            transitions=run.transitions,
            slide_count=len(ctx.slides),
            image_count=len(ctx.images),
            revision_iterations=ctx.revision.iteration,
            max_iterations=ctx.revision.max_iterations,
            verdict=report.verdict if report else None,
            unresolved=run.unresolved,
            usage_totals=usage_totals,
        )
        if usage_totals:
            print("[pipeline] tokens " + ", ".join(f"{k}={v}" for k, v in usage_totals.items()))
        print(
            f"[pipeline] done slides={len(ctx.slides)} png={len(ctx.images)} "
            f"review_iterations={ctx.revision.iteration}"
        )
        return PipelineResult(
            output_dir=output_dir,
            transitions=run.transitions,
            slides=ctx.ordered_slides(),
            images=dict(ctx.images),
            review=report,
            validation=run.validation,
            revision_iterations=ctx.revision.iteration,
            unresolved=run.unresolved,
            usage_totals=usage_totals,
        )

    # stage calls

    def _adapter_for(self, resolved: ResolvedModel) -> LLMAdapter:
        if self.adapter is not None:
            return self.adapter
        return self._pool.get(resolved)

    def _call_stage(self, run: _Run, stage: Stage, extra: Optional[Dict] = None):
        spec = STAGES[stage]
        ctx = run.ctx
        user = build_user_message(spec, ctx, extra)
        resolved = resolve_model(self.config.model_for(stage, ctx.options.model))
        adapter = self._adapter_for(resolved)
        request = LLMRequest(
            stage=stage.value,
            model=resolved.model_id,
            system=load_prompt(spec),
            user=user,
            max_output_tokens=resolved.max_output_tokens,
        )
        print(f"[{stage.value}] model={resolved.model_id} provider={resolved.provider}")
        if self.config.debug:
            print(f"[debug] {stage.value} user message: {len(user)} chars")
        try:
            response = adapter.complete(request)
        except PipelineError:
            raise
        except Exception as exc:
            raise CollaboratorError(f"{type(exc).__name__}: {exc}", stage=stage.value) from exc

        run.responses.append(response)
        write_raw_response(run.raw_dir, f"{len(run.responses):02d}_{stage.value}", response)
        payload = extract_json(response.raw_text, stage=stage.value)
        return decode_artifact(stage, payload)

    def _commit(self, run: _Run, stage: Stage, artifact) -> None:
        run.ctx.commit(stage, artifact)
        write_stage_artifact(run.output_dir / STAGES[stage].artifact_file, artifact)

    # handlers

    def _research(self, run: _Run) -> PipelineState:
        research = self._call_stage(run, Stage.RESEARCH)
        self._commit(run, Stage.RESEARCH, research)
        write_research_markdown(run.output_dir / "research.md", research)
        print(f"[research] {len(research.key_facts)} facts, {len(research.statistics)} statistics")
        return PipelineState.PLAN

    def _plan(self, run: _Run) -> PipelineState:
        plan = self._call_stage(run, Stage.PLAN)
        self._commit(run, Stage.PLAN, plan)
        expected = run.ctx.options.slide_count
        if len(plan.slides) != expected:
            print(f"[warn] plan has {len(plan.slides)} slides, {expected} requested")
        print(f"[plan] {plan.title!r} with {len(plan.slides)} slides")
        return PipelineState.COPY

    def _copy(self, run: _Run) -> PipelineState:
        copy = self._call_stage(run, Stage.COPY)
        self._commit(run, Stage.COPY, copy)
        print(f"[copy] {len(copy.slides)} slides written")
        return PipelineState.DESIGN

    def _design(self, run: _Run) -> PipelineState:
        design = self._call_stage(run, Stage.DESIGN)
        self._commit(run, Stage.DESIGN, design)
        print(f"[design] theme={design.series_theme}")
        return PipelineState.BUILD

    def _build(self, run: _Run) -> PipelineState:
        ctx = run.ctx
        extra = None
        if run.feedback:
            extra = revision_feedback(ctx, run.feedback, run.previous_feedback)
        build = self._call_stage(run, Stage.BUILD, extra)
        self._commit(run, Stage.BUILD, build)
        for slide in build.slides:
            html = build_slide_html(slide.content, ctx.options.series)
            ctx.slides[slide.slide_number] = html
            write_slide_html(ctx.slides_dir, slide.slide_number, html)
        print(f"[build] {len(build.slides)} HTML slides built")
        return PipelineState.AUTO_VALIDATE

    def _auto_validate(self, run: _Run) -> PipelineState:
        summary = validate_all_slides(run.ctx.slides)
        run.validation = summary
        for line in summary_lines(summary):
            print(f"[validate] {line}")
        return PipelineState.REVIEW

    def _review(self, run: _Run) -> PipelineState:
        ctx = run.ctx
        iteration = ctx.revision.advance()
        print(f"[review] iteration {iteration}/{ctx.revision.max_iterations}")

        failures = run.validation.failures if run.validation else []
        extra = {
            "autoCheckFindings": [
                {
                    "slideNumber": finding.slide_number,
                    "rule": finding.rule_id,
                    "severity": finding.severity,
                    "detail": finding.detail,
                }
                for finding in failures
            ]
        }
        reviewed = self._call_stage(run, Stage.REVIEW, extra)
        report = ReviewReport(
            passed_auto_checks=reviewed.passed_auto_checks and not failures,
            auto_check_results=reviewed.auto_check_results
            + tuple(AutoCheckResult(f.rule_id, False, f.detail) for f in failures),
            issues=reviewed.issues + tuple(findings_as_issues(failures)),
            claimed_verdict=reviewed.claimed_verdict,
        )
        self._commit(run, Stage.REVIEW, report)
        if reviewed.claimed_verdict != reviewed.verdict:
            print(
                f"[warn] reviewer verdict {reviewed.claimed_verdict!r} disagrees with "
                f"its issues; using {reviewed.verdict!r}"
            )

        if not ctx.has_blocking_issues():
            print("[review] passed with no blocking issues")
            run.unresolved = []
            return PipelineState.RENDER

        blocking = report.blocking_issues
        print(f"[review] {report.count('high')} high, {report.count('medium')} medium issues")
        if ctx.revision.exhausted():
            run.unresolved = blocking
            print(
                f"[warn] revision bound reached with {len(blocking)} unresolved issue(s); "
                "see review-report.json"
            )
            for issue in blocking:
                print(f"[warn]   slide {issue.slide_number} [{issue.severity}] {issue.description}")
            return PipelineState.RENDER

        run.previous_feedback.extend(run.feedback)
        run.feedback = blocking
        print("[review] requesting fixes")
        return PipelineState.BUILD

    def _render(self, run: _Run) -> PipelineState:
        ctx = run.ctx
        if not self.render:
            print("[render] skipped")
            return PipelineState.DONE
        renderer = self.renderer or ChromeRenderer(chrome_path=self.config.chrome_path)
        try:
            images = renderer.render_all(ctx.ordered_slides(), ctx.slides_dir)
        except PipelineError:
            raise
        except Exception as exc:
            raise CollaboratorError(f"{type(exc).__name__}: {exc}", stage="render") from exc
        missing = sorted(set(ctx.slides) - set(images))
        if missing:
            raise CollaboratorError(
                f"Renderer returned no image for slide(s) {', '.join(str(n) for n in missing)}",
                stage="render",
            )
        ctx.images = dict(images)
        print(f"[render] {len(images)} PNG files written to {ctx.slides_dir}")
        return PipelineState.DONE
