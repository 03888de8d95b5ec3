from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from cardnews.renderer.html_builder import SERIES_DIR
from cardnews.utils.io import write_json, write_text
from cardnews.utils.time import slugify

THEME_CSS_TEMPLATE = """/* {name} series theme overrides */
/* Override any design token from shared/design-tokens.css here */

:root {{
  /* --color-primary: #your-color; */
  /* --color-accent: #your-accent; */
  /* --fs-title: 60px; */
}}
"""


def list_series(series_dir: Optional[Path] = None) -> List[str]:
    root = Path(series_dir or SERIES_DIR)
    if not root.exists():
        return []
    return sorted(path.name for path in root.iterdir() if path.is_dir())


def create_series(name: str, series_dir: Optional[Path] = None) -> Path:
    if not name or slugify(name) != name:
        raise ValueError(f"Invalid series name: {name!r} (use lowercase letters, digits and dashes)")
    target = Path(series_dir or SERIES_DIR) / name
    if target.exists():
        raise FileExistsError(f'Series "{name}" already exists.')
    write_json(target / "theme.json", {"name": name, "description": f"{name} series theme"})
    write_text(target / "theme.css", THEME_CSS_TEMPLATE.format(name=name))
    return target
