from __future__ import annotations

from typing import List, Optional


class PipelineError(Exception):
    kind = "pipeline_error"

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        self.stage = stage
        super().__init__(message)

    def describe(self) -> str:
        stage = self.stage or "pipeline"
        return f"{stage} {self.kind}: {self}"


class MissingArtifactError(PipelineError):
    kind = "missing_artifact"

    def __init__(self, artifact: str, producer: str, stage: Optional[str] = None) -> None:
        self.artifact = artifact
        self.producer = producer
        super().__init__(
            f"{artifact} output not available. Run the {producer} stage first.",
            stage=stage,
        )


class DecodeError(PipelineError, ValueError):
    kind = "decode_failure"

    def __init__(self, message: str, preview: str, stage: Optional[str] = None) -> None:
        self.preview = preview
        super().__init__(f"{message}\nExtracted JSON preview:\n{preview}", stage=stage)


class SchemaViolationError(PipelineError, ValueError):
    kind = "schema_violation"

    def __init__(self, message: str, path: str = "", stage: Optional[str] = None) -> None:
        self.path = path
        location = f" at {path}" if path else ""
        super().__init__(f"Payload failed schema{location}: {message}", stage=stage)


class CollaboratorError(PipelineError, RuntimeError):
    kind = "collaborator_failure"


class ConfigError(ValueError):
    """Raised when environment or CLI configuration is invalid."""

    def __init__(self, issues: List[str]):
        self.issues = [str(i).strip() for i in issues if str(i).strip()]
        if not self.issues:
            self.issues = ["Invalid configuration"]
        super().__init__(self._format())

    def _format(self) -> str:
        lines = ["Configuration error:"]
        for issue in self.issues:
            lines.append(f"  - {issue}")
        return "\n".join(lines)
