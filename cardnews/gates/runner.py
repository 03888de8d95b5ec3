from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from cardnews.gates.rules import RULES
from cardnews.schema import is_blocking


@dataclass(frozen=True)
class ValidationFinding:
    rule_id: str
    severity: str
    passed: bool
    detail: Optional[str] = None
    slide_number: Optional[int] = None


@dataclass
class SlideReport:
    slide_number: int
    findings: List[ValidationFinding] = field(default_factory=list)

    @property
    def failures(self) -> List[ValidationFinding]:
        return [finding for finding in self.findings if not finding.passed]


@dataclass
class ValidationSummary:
    reports: List[SlideReport]
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0

    @property
    def all_passed(self) -> bool:
        return self.high_count == 0 and self.medium_count == 0

    @property
    def verdict(self) -> str:
        return "pass" if self.all_passed else "needs_revision"

    @property
    def failures(self) -> List[ValidationFinding]:
        return [finding for report in self.reports for finding in report.failures]

    @property
    def blocking_failures(self) -> List[ValidationFinding]:
        return [finding for finding in self.failures if is_blocking(finding.severity)]


def validate_slide(html: str, slide_number: int) -> SlideReport:
    report = SlideReport(slide_number=slide_number)
    for rule in RULES:
        result = rule.check(html, slide_number)
        report.findings.append(
            ValidationFinding(
                rule_id=rule.id,
                severity=rule.severity,
                passed=result.passed,
                detail=result.detail,
                slide_number=slide_number,
            )
        )
    return report


def validate_all_slides(slides: Mapping[int, str]) -> ValidationSummary:
    summary = ValidationSummary(reports=[])
    for slide_number in sorted(slides):
        html = slides[slide_number]
        if not html:
            continue
        report = validate_slide(html, slide_number)
        summary.reports.append(report)
        for finding in report.failures:
            if finding.severity == "high":
                summary.high_count += 1
            elif finding.severity == "medium":
                summary.medium_count += 1
            else:
                summary.low_count += 1
    return summary


def summary_lines(summary: ValidationSummary) -> List[str]:
    lines: List[str] = []
    for report in summary.reports:
        failures = report.failures
        if not failures:
            lines.append(f"Slide {report.slide_number}: all checks passed")
            continue
        lines.append(f"Slide {report.slide_number}: {len(failures)} issue(s)")
        for finding in failures:
            lines.append(f"  [{finding.severity}] {finding.rule_id}: {finding.detail or ''}")
    lines.append(
        f"Total: {summary.high_count} high, {summary.medium_count} medium, {summary.low_count} low"
    )
    return lines
