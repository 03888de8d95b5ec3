from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from cardnews.errors import MissingArtifactError
from cardnews.schema import (
    ARTIFACT_TYPES,
    BuildOutput,
    Copy,
    DesignBrief,
    Plan,
    Research,
    ReviewReport,
    Stage,
)

# Stage tag -> (artifact label, producing stage label) for missing-artifact errors.
_ARTIFACT_LABELS: Dict[Stage, Tuple[str, str]] = {
    Stage.RESEARCH: ("Research", "research"),
    Stage.PLAN: ("Plan", "plan"),
    Stage.COPY: ("Copy", "copy"),
    Stage.DESIGN: ("Design brief", "design"),
    Stage.BUILD: ("Build", "build"),
    Stage.REVIEW: ("Review report", "review"),
}


@dataclass
class PipelineOptions:
    topic: str
    series: str = "default"
    slide_count: int = 10
    output_dir: Path = Path("output")
    model: Optional[str] = None


@dataclass
class RevisionState:
    max_iterations: int
    iteration: int = 0

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")

    def can_continue(self) -> bool:
        return self.iteration < self.max_iterations

    def exhausted(self) -> bool:
        return self.iteration >= self.max_iterations

    def advance(self) -> int:
        if not self.can_continue():
            raise RuntimeError(
                f"Revision bound exceeded: iteration {self.iteration} of {self.max_iterations}"
            )
        self.iteration += 1
        return self.iteration


@dataclass
class PipelineContext:
    options: PipelineOptions
    revision: RevisionState
    raw_notes: Optional[str] = None
    artifacts: Dict[Stage, object] = field(default_factory=dict)
    slides: Dict[int, str] = field(default_factory=dict)
    images: Dict[int, Path] = field(default_factory=dict)

    @property
    def slides_dir(self) -> Path:
        return Path(self.options.output_dir) / "slides"

    def commit(self, stage: Stage, artifact: object) -> None:
        expected = ARTIFACT_TYPES[stage]
        if not isinstance(artifact, expected):
            raise TypeError(
                f"{stage.value} expects {expected.__name__}, got {type(artifact).__name__}"
            )
        self.artifacts[stage] = artifact

    def get(self, stage: Stage) -> Optional[object]:
        return self.artifacts.get(stage)

    def require(self, stage: Stage, consumer: Optional[Stage] = None):
        artifact = self.artifacts.get(stage)
        if artifact is None:
            label, producer = _ARTIFACT_LABELS[stage]
            raise MissingArtifactError(
                label, producer, stage=consumer.value if consumer else None
            )
        return artifact

    def require_research(self, consumer: Optional[Stage] = None) -> Research:
        return self.require(Stage.RESEARCH, consumer)

    def require_plan(self, consumer: Optional[Stage] = None) -> Plan:
        return self.require(Stage.PLAN, consumer)

    def require_copy(self, consumer: Optional[Stage] = None) -> Copy:
        return self.require(Stage.COPY, consumer)

    def require_design_brief(self, consumer: Optional[Stage] = None) -> DesignBrief:
        return self.require(Stage.DESIGN, consumer)

    def require_build(self, consumer: Optional[Stage] = None) -> BuildOutput:
        return self.require(Stage.BUILD, consumer)

    def require_review_report(self, consumer: Optional[Stage] = None) -> ReviewReport:
        return self.require(Stage.REVIEW, consumer)

    def has_blocking_issues(self) -> bool:
        report = self.artifacts.get(Stage.REVIEW)
        if report is None:
            return False
        return bool(report.blocking_issues)

    def ordered_slides(self) -> Dict[int, str]:
        return {number: self.slides[number] for number in sorted(self.slides)}
