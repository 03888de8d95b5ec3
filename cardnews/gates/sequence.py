from __future__ import annotations

from typing import List, Optional

from cardnews.schema import DesignBrief, Plan

MAX_TEMPERATURE_RUN = 2


def consecutive_pattern_repeats(design: DesignBrief) -> List[str]:
    hints: List[str] = []
    ordered = sorted(design.slides, key=lambda item: item.slide_number)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.layout_pattern == current.layout_pattern:
            hints.append(
                f"Slides {previous.slide_number} and {current.slide_number} both use "
                f"layout pattern {current.layout_pattern}"
            )
    return hints


def temperature_runs(plan: Plan) -> List[str]:
    hints: List[str] = []
    ordered = sorted(plan.slides, key=lambda item: item.slide_number)
    run_start = 0
    for index in range(1, len(ordered) + 1):
        if index < len(ordered) and ordered[index].emotion_temperature == ordered[run_start].emotion_temperature:
            continue
        run = ordered[run_start:index]
        if len(run) > MAX_TEMPERATURE_RUN:
            hints.append(
                f"Slides {run[0].slide_number}-{run[-1].slide_number} share emotion "
                f"temperature {run[0].emotion_temperature}"
            )
        run_start = index
    return hints


def sequence_advisories(plan: Optional[Plan], design: Optional[DesignBrief]) -> List[str]:
    hints: List[str] = []
    if design is not None:
        hints.extend(consecutive_pattern_repeats(design))
    if plan is not None:
        hints.extend(temperature_runs(plan))
    return hints
