from __future__ import annotations

from pathlib import Path
from typing import Optional

from cardnews.utils.io import read_text

DESIGN_DIR = Path(__file__).resolve().parents[1] / "design"
SHARED_DIR = DESIGN_DIR / "shared"
SERIES_DIR = DESIGN_DIR / "series"

NO_THEME_CSS = "/* no theme overrides */"

# Only active when the viewport is smaller than the canvas, so PNG export is unaffected.
BROWSER_PREVIEW_CSS = """
/* Browser preview: enable scrolling in normal browser windows */
@media (max-width: 1079px), (max-height: 1439px) {
  html, body {
    overflow: auto !important;
    width: 100% !important;
    height: auto !important;
    min-height: 100vh;
  }
  .card {
    margin: 0 auto;
    overflow: visible !important;
  }
}"""

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="ko">
<head>
  <meta charset="UTF-8">
  <style>
{tokens}
{base}
{theme}
  </style>
</head>
<body>
  {content}
</body>
</html>"""


def design_tokens_css() -> str:
    return read_text(SHARED_DIR / "design-tokens.css")


def base_styles_css() -> str:
    return read_text(SHARED_DIR / "base-styles.css")


def theme_css(series: str, series_dir: Optional[Path] = None) -> str:
    path = Path(series_dir or SERIES_DIR) / series / "theme.css"
    if not path.exists():
        return NO_THEME_CSS
    return read_text(path)


def is_complete_document(html: str) -> bool:
    head = html.lstrip()[:15].lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def inject_preview_css(html: str) -> str:
    style_close = html.rfind("</style>")
    if style_close != -1:
        return f"{html[:style_close]}{BROWSER_PREVIEW_CSS}\n{html[style_close:]}"
    head_close = html.find("</head>")
    if head_close != -1:
        return f"{html[:head_close]}<style>{BROWSER_PREVIEW_CSS}\n</style>\n{html[head_close:]}"
    return html


def build_slide_html(content: str, series: str, series_dir: Optional[Path] = None) -> str:
    if is_complete_document(content):
        return inject_preview_css(content)
    return DOCUMENT_TEMPLATE.format(
        tokens=design_tokens_css(),
        base=base_styles_css(),
        theme=theme_css(series, series_dir),
        content=content,
    )
