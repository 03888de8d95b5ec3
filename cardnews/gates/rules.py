from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

CANVAS_WIDTH = 1080
CANVAS_HEIGHT = 1440
MIN_FONT_PX = 28
TALL_BLOCK_PX = 360
MANY_BULLETS = 6
MAX_ACCENTS = 2
MAX_STRONG = 1


@dataclass(frozen=True)
class RuleResult:
    passed: bool
    detail: Optional[str] = None


@dataclass(frozen=True)
class Rule:
    id: str
    description: str
    severity: str
    check: Callable[[str, int], RuleResult]


def _result(passed: bool, failure_detail: str) -> RuleResult:
    return RuleResult(passed=passed, detail=None if passed else failure_detail)


def check_canvas_size(html: str, slide_number: int) -> RuleResult:
    present = str(CANVAS_WIDTH) in html and str(CANVAS_HEIGHT) in html
    return _result(present, f"Missing {CANVAS_WIDTH}x{CANVAS_HEIGHT} canvas dimensions")


def check_overflow_hidden(html: str, slide_number: int) -> RuleResult:
    present = re.search(r"overflow\s*:\s*hidden", html) is not None
    return _result(present, "Missing overflow:hidden")


def check_vertical_overflow(html: str, slide_number: int) -> RuleResult:
    scrollable = re.search(r"overflow-y\s*:\s*(scroll|auto)", html, flags=re.IGNORECASE) is not None
    heights = [int(value) for value in re.findall(r"min-height\s*:\s*(\d+)px", html, flags=re.IGNORECASE)]
    tall = any(value >= TALL_BLOCK_PX for value in heights)
    bullets = len(re.findall(r'class\s*=\s*"[^"]*bullet[^"]*"', html, flags=re.IGNORECASE))
    risk = scrollable or (tall and bullets >= MANY_BULLETS)
    return _result(
        not risk,
        "Potential vertical overflow: reduce block heights/padding or bullet count",
    )


def check_word_break(html: str, slide_number: int) -> RuleResult:
    present = re.search(r"word-break\s*:\s*keep-all", html) is not None
    return _result(present, "Missing word-break:keep-all")


def check_external_urls(html: str, slide_number: int) -> RuleResult:
    matches = [
        match.group(0)
        for match in re.finditer(r"(?:src|href|url)\s*[=(]\s*['\"]?https?://", html, flags=re.IGNORECASE)
    ]
    return _result(
        not matches,
        f"Found external URL references: {', '.join(matches[:3])}",
    )


def check_min_font_size(html: str, slide_number: int) -> RuleResult:
    small = [
        int(value)
        for value in re.findall(r"font-size\s*:\s*(\d+)px", html, flags=re.IGNORECASE)
        if int(value) < MIN_FONT_PX
    ]
    return _result(
        not small,
        f"Found font sizes below {MIN_FONT_PX}px: {', '.join(str(size) for size in small)}px",
    )


def check_bottom_bar(html: str, slide_number: int) -> RuleResult:
    present = re.search(r"class\s*=\s*[\"'][^\"']*\bbottom-bar\b", html, flags=re.IGNORECASE) is not None
    return _result(present, "Missing .bottom-bar element")


def check_accent_limit(html: str, slide_number: int) -> RuleResult:
    class_accents = len(re.findall(r"class\s*=\s*[\"'][^\"']*accent[^\"']*[\"']", html, flags=re.IGNORECASE))
    inline_accents = len(re.findall(r"<span[^>]*class\s*=\s*[\"']accent[\"'][^>]*>", html, flags=re.IGNORECASE))
    total = max(class_accents, inline_accents)
    return _result(total <= MAX_ACCENTS, f"Found {total} accent elements (max {MAX_ACCENTS})")


def check_strong_limit(html: str, slide_number: int) -> RuleResult:
    total = len(re.findall(r"<strong", html, flags=re.IGNORECASE))
    return _result(total <= MAX_STRONG, f"Found {total} <strong> elements (max {MAX_STRONG})")


def check_doctype(html: str, slide_number: int) -> RuleResult:
    present = re.search(r"<!DOCTYPE\s+html>", html, flags=re.IGNORECASE) is not None
    return _result(present, "Missing <!DOCTYPE html>")


def check_lang(html: str, slide_number: int) -> RuleResult:
    present = re.search(r"lang\s*=\s*[\"']ko[\"']", html, flags=re.IGNORECASE) is not None
    return _result(present, "Missing lang='ko' attribute")


RULES: Tuple[Rule, ...] = (
    Rule("canvas-size", f"Canvas must be {CANVAS_WIDTH}x{CANVAS_HEIGHT}px", "high", check_canvas_size),
    Rule("overflow-hidden", "overflow:hidden must be present", "high", check_overflow_hidden),
    Rule("no-vertical-overflow", "Content must fit within the canvas", "high", check_vertical_overflow),
    Rule("word-break-keep-all", "word-break:keep-all must be present for Korean text", "high", check_word_break),
    Rule("no-external-urls", "No external URLs (CDN, http/https links)", "high", check_external_urls),
    Rule("min-font-size", f"No font size below {MIN_FONT_PX}px", "high", check_min_font_size),
    Rule("bottom-bar", "Slide must have a .bottom-bar element", "medium", check_bottom_bar),
    Rule("accent-limit", f"Max {MAX_ACCENTS} accent elements per slide", "medium", check_accent_limit),
    Rule("strong-limit", f"Max {MAX_STRONG} <strong> per slide", "medium", check_strong_limit),
    Rule("has-doctype", "HTML must have DOCTYPE declaration", "medium", check_doctype),
    Rule("lang-ko", "HTML must have lang='ko' for Korean content", "low", check_lang),
)


def rule_ids() -> List[str]:
    return [rule.id for rule in RULES]


def get_rule(rule_id: str) -> Optional[Rule]:
    for rule in RULES:
        if rule.id == rule_id:
            return rule
    return None
