from __future__ import annotations

import subprocess

import pytest

from cardnews.errors import CollaboratorError
from cardnews.gates.runner import validate_slide
from cardnews.renderer.html_builder import (
    BROWSER_PREVIEW_CSS,
    NO_THEME_CSS,
    build_slide_html,
    inject_preview_css,
    theme_css,
)
from cardnews.renderer.png_exporter import ChromeRenderer, find_chrome, slide_file_name
from cardnews.renderer.series import create_series, list_series

FRAGMENT = '<div class="card"><h1 class="heading">제목</h1><div class="bottom-bar">@default</div></div>'


def test_fragment_is_wrapped_into_a_compliant_document() -> None:
    html = build_slide_html(FRAGMENT, "default")
    assert html.startswith("<!DOCTYPE html>")
    assert '<html lang="ko">' in html
    assert FRAGMENT in html
    assert validate_slide(html, 1).failures == []


def test_complete_document_only_gets_preview_css(good_html) -> None:
    html = build_slide_html(good_html, "default")
    assert BROWSER_PREVIEW_CSS in html
    assert html.index(BROWSER_PREVIEW_CSS) < html.index("</style>")
    assert html.replace(BROWSER_PREVIEW_CSS + "\n", "") == good_html


def test_preview_css_falls_back_to_head() -> None:
    html = "<html><head></head><body></body></html>"
    injected = inject_preview_css(html)
    assert injected.index("<style>") < injected.index("</head>")
    assert inject_preview_css("<p>no head</p>") == "<p>no head</p>"


def test_unknown_series_has_no_theme(tmp_path) -> None:
    assert theme_css("missing", series_dir=tmp_path) == NO_THEME_CSS


def test_create_and_list_series(tmp_path) -> None:
    path = create_series("tech-weekly", series_dir=tmp_path)
    assert (path / "theme.css").exists()
    assert (path / "theme.json").exists()
    assert list_series(tmp_path) == ["tech-weekly"]
    assert "tech-weekly series theme overrides" in theme_css("tech-weekly", series_dir=tmp_path)
    with pytest.raises(FileExistsError):
        create_series("tech-weekly", series_dir=tmp_path)


def test_series_name_must_be_a_slug(tmp_path) -> None:
    with pytest.raises(ValueError):
        create_series("Tech Weekly", series_dir=tmp_path)


def test_slide_file_names_are_zero_padded() -> None:
    assert slide_file_name(3, "png") == "slide-03.png"
    assert slide_file_name(12, "html") == "slide-12.html"


def test_configured_chrome_path_wins() -> None:
    assert find_chrome("/opt/chrome") == "/opt/chrome"


def test_render_timeout_is_a_collaborator_failure(tmp_path, monkeypatch) -> None:
    def fake_run(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(subprocess, "run", fake_run)
    renderer = ChromeRenderer(chrome_path="/opt/chrome", timeout=1)
    with pytest.raises(CollaboratorError) as excinfo:
        renderer.render_all({1: "<html></html>"}, tmp_path)
    assert excinfo.value.stage == "render"
    assert (tmp_path / "slide-01.html").exists()


def test_render_all_returns_a_path_per_slide(tmp_path, monkeypatch) -> None:
    def fake_run(command, **kwargs):
        screenshot = next(arg for arg in command if arg.startswith("--screenshot="))
        with open(screenshot.split("=", 1)[1], "wb") as handle:
            handle.write(b"png")
        return subprocess.CompletedProcess(command, 0, stdout="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    images = ChromeRenderer(chrome_path="/opt/chrome").render_all({2: "<p>b</p>", 1: "<p>a</p>"}, tmp_path)
    assert images == {1: tmp_path / "slide-01.png", 2: tmp_path / "slide-02.png"}
