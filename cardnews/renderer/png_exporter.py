from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from cardnews.errors import CollaboratorError
from cardnews.gates.rules import CANVAS_HEIGHT, CANVAS_WIDTH
from cardnews.utils.io import write_text

RENDER_TIMEOUT_SECONDS = 60

CHROME_COMMANDS = ["google-chrome", "google-chrome-stable", "chromium", "chromium-browser"]


def slide_file_name(slide_number: int, suffix: str) -> str:
    return f"slide-{slide_number:02d}.{suffix}"


def _candidate_paths() -> List[str]:
    if sys.platform == "win32":
        return [
            "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
            "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
            "C:\\Program Files\\Microsoft\\Edge\\Application\\msedge.exe",
        ]
    if sys.platform == "darwin":
        return [
            "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "/Applications/Chromium.app/Contents/MacOS/Chromium",
            "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
        ]
    return [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/snap/bin/chromium",
    ]


def find_chrome(configured: Optional[str] = None) -> str:
    if configured:
        return configured
    for command in CHROME_COMMANDS:
        found = shutil.which(command)
        if found:
            return found
    candidates = _candidate_paths()
    for candidate in candidates:
        if Path(candidate).exists():
            return candidate
    checked = "\n".join(f"  - {path}" for path in candidates)
    raise CollaboratorError(
        "Chrome/Chromium not found. Set CHROME_PATH in .env or install Chrome.\n"
        f"Checked paths:\n{checked}",
        stage="render",
    )


@dataclass
class ChromeRenderer:
    chrome_path: Optional[str] = None
    timeout: int = RENDER_TIMEOUT_SECONDS

    def render_html_to_png(self, html_path: Path, png_path: Path) -> None:
        command = [
            find_chrome(self.chrome_path),
            "--headless",
            "--disable-gpu",
            "--no-sandbox",
            "--hide-scrollbars",
            "--font-render-hinting=none",
            f"--window-size={CANVAS_WIDTH},{CANVAS_HEIGHT}",
            f"--screenshot={png_path}",
            html_path.resolve().as_uri(),
        ]
        try:
            completed = subprocess.run(
                command,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise CollaboratorError(
                f"Rendering {html_path.name} timed out after {self.timeout}s", stage="render"
            ) from exc
        except OSError as exc:
            raise CollaboratorError(f"Could not launch Chrome: {exc}", stage="render") from exc
        if completed.returncode != 0 or not png_path.exists():
            output = (completed.stdout or "").strip()[-500:]
            raise CollaboratorError(
                f"Chrome failed to render {html_path.name} (exit {completed.returncode}): {output}",
                stage="render",
            )

    def render_all(self, slides: Mapping[int, str], output_dir: Path) -> Dict[int, Path]:
        output_dir = Path(output_dir)
        images: Dict[int, Path] = {}
        for slide_number in sorted(slides):
            html_path = output_dir / slide_file_name(slide_number, "html")
            png_path = output_dir / slide_file_name(slide_number, "png")
            write_text(html_path, slides[slide_number])
            print(f"[render] slide {slide_number:02d} -> {png_path.name}")
            self.render_html_to_png(html_path, png_path)
            images[slide_number] = png_path
        return images
