from __future__ import annotations

from cardnews.gates.rules import RULES, get_rule, rule_ids
from cardnews.gates.runner import summary_lines, validate_all_slides, validate_slide
from cardnews.renderer.html_builder import build_slide_html


def _failed(report):
    return {finding.rule_id: finding for finding in report.failures}


def test_rules_run_in_declared_order() -> None:
    assert rule_ids() == [
        "canvas-size",
        "overflow-hidden",
        "no-vertical-overflow",
        "word-break-keep-all",
        "no-external-urls",
        "min-font-size",
        "bottom-bar",
        "accent-limit",
        "strong-limit",
        "has-doctype",
        "lang-ko",
    ]
    assert get_rule("lang-ko").severity == "low"
    assert get_rule("missing") is None


def test_compliant_slide_passes_every_rule(good_html) -> None:
    report = validate_slide(good_html, 1)
    assert [finding.rule_id for finding in report.findings] == rule_ids()
    assert report.failures == []


def test_small_font_is_reported(good_html) -> None:
    html = good_html.replace(".body { font-size: 36px; }", ".body { font-size: 14px; }")
    failed = _failed(validate_slide(html, 3))
    assert list(failed) == ["min-font-size"]
    finding = failed["min-font-size"]
    assert finding.severity == "high"
    assert finding.slide_number == 3
    assert finding.detail == "Found font sizes below 28px: 14px"


def test_missing_overflow_hidden(good_html) -> None:
    html = good_html.replace(" overflow: hidden;", "")
    failed = _failed(validate_slide(html, 1))
    assert list(failed) == ["overflow-hidden"]
    assert failed["overflow-hidden"].severity == "high"


def test_scrollable_overflow_is_a_risk(good_html) -> None:
    html = good_html.replace(".title {", ".scroll { overflow-y: auto; }\n    .title {")
    assert "no-vertical-overflow" in _failed(validate_slide(html, 1))


def test_tall_block_with_many_bullets_is_a_risk(good_html) -> None:
    bullets = "".join(f'<li class="bullet">항목 {n}</li>' for n in range(6))
    html = good_html.replace(".title {", ".box { min-height: 400px; }\n    .title {").replace(
        '<div class="bottom-bar">', f"<ul>{bullets}</ul>\n    <div class=\"bottom-bar\">"
    )
    assert "no-vertical-overflow" in _failed(validate_slide(html, 1))

    fewer = html.replace('<li class="bullet">항목 5</li>', "")
    assert "no-vertical-overflow" not in _failed(validate_slide(fewer, 1))


def test_external_urls_fail_but_data_uris_pass(good_html) -> None:
    external = good_html.replace("</h1>", '</h1><img src="https://cdn.example.com/a.png">')
    assert "no-external-urls" in _failed(validate_slide(external, 1))

    embedded = good_html.replace("</h1>", '</h1><img src="data:image/png;base64,AAAA">')
    assert "no-external-urls" not in _failed(validate_slide(embedded, 1))


def test_emphasis_ceilings(good_html) -> None:
    accents = good_html.replace(
        "내용</p>", '<span class="accent">둘</span><span class="accent">셋</span></p>'
    )
    failed = _failed(validate_slide(accents, 1))
    assert failed["accent-limit"].severity == "medium"

    strongs = good_html.replace("내용</p>", "<strong>하나</strong><strong>둘</strong></p>")
    assert "strong-limit" in _failed(validate_slide(strongs, 1))


def test_missing_footer_doctype_and_locale(good_html) -> None:
    html = (
        good_html.replace("<!DOCTYPE html>\n", "")
        .replace(' lang="ko"', "")
        .replace('<div class="bottom-bar">@default</div>', "")
    )
    failed = _failed(validate_slide(html, 1))
    assert failed["bottom-bar"].severity == "medium"
    assert failed["has-doctype"].severity == "medium"
    assert failed["lang-ko"].severity == "low"


def test_footer_selector_in_css_is_not_a_footer(good_html) -> None:
    html = good_html.replace('<div class="bottom-bar">@default</div>', "").replace(
        "</style>", ".bottom-bar { height: 96px; }\n  </style>"
    )
    assert list(_failed(validate_slide(html, 1))) == ["bottom-bar"]


def test_wrapped_fragment_without_footer_fails() -> None:
    html = build_slide_html('<div class="card"><p class="body-text">본문</p></div>', "default")
    assert list(_failed(validate_slide(html, 1))) == ["bottom-bar"]
    footed = build_slide_html('<div class="card"><div class="bottom-bar">@default</div></div>', "default")
    assert _failed(validate_slide(footed, 1)) == {}


def test_missing_canvas_dimensions(good_html) -> None:
    html = good_html.replace("width: 1080px; height: 1440px;", "width: 100%;")
    assert "canvas-size" in _failed(validate_slide(html, 1))


def test_one_bad_slide_blocks_the_set(good_html) -> None:
    bad = good_html.replace(".body { font-size: 36px; }", ".body { font-size: 14px; }")
    summary = validate_all_slides({2: bad, 1: good_html})
    assert [report.slide_number for report in summary.reports] == [1, 2]
    assert summary.high_count >= 1
    assert summary.all_passed is False
    assert summary.verdict == "needs_revision"
    assert [finding.slide_number for finding in summary.blocking_failures] == [2]


def test_low_severity_does_not_block(good_html) -> None:
    summary = validate_all_slides({1: good_html.replace(' lang="ko"', "")})
    assert summary.low_count == 1
    assert summary.all_passed is True
    assert summary.verdict == "pass"
    assert summary.blocking_failures == []


def test_empty_slides_are_skipped(good_html) -> None:
    summary = validate_all_slides({1: good_html, 2: ""})
    assert [report.slide_number for report in summary.reports] == [1]


def test_summary_lines_are_formatted_for_the_caller(good_html) -> None:
    bad = good_html.replace(".body { font-size: 36px; }", ".body { font-size: 14px; }")
    lines = summary_lines(validate_all_slides({1: good_html, 2: bad}))
    assert lines[0] == "Slide 1: all checks passed"
    assert lines[1] == "Slide 2: 1 issue(s)"
    assert lines[2].startswith("  [high] min-font-size:")
    assert lines[-1] == "Total: 1 high, 0 medium, 0 low"


def test_every_rule_has_a_known_severity() -> None:
    assert {rule.severity for rule in RULES} <= {"high", "medium", "low"}
