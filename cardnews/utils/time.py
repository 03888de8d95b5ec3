from __future__ import annotations

import re
from datetime import datetime, timezone


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")


def slugify(text: str) -> str:
    slug = text.strip().lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    return slug.strip("-")[:80]


def run_dir_name(topic: str) -> str:
    slug = slugify(topic) or "untitled"
    return f"{utc_timestamp()}_{slug}"
