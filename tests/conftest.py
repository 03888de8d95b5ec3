from __future__ import annotations

import pytest

GOOD_SLIDE_HTML = """<!DOCTYPE html>
<html lang="ko">
<head>
  <meta charset="UTF-8">
  <style>
    html, body { width: 1080px; height: 1440px; overflow: hidden; word-break: keep-all; }
    .title { font-size: 64px; }
    .body { font-size: 36px; }
  </style>
</head>
<body>
  <div class="card">
    <h1 class="title">카드뉴스 제목</h1>
    <p class="body"><span class="accent">핵심</span> 내용</p>
    <div class="bottom-bar">@default</div>
  </div>
</body>
</html>"""


@pytest.fixture
def good_html() -> str:
    return GOOD_SLIDE_HTML
