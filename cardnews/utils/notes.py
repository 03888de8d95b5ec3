from __future__ import annotations

import json
import re
from typing import Dict, Optional, Tuple

import yaml


def parse_frontmatter(content: str) -> Tuple[Dict, str]:
    if not content.startswith("---"):
        stripped = content.lstrip()
        if stripped.startswith("{"):
            try:
                parsed, end = json.JSONDecoder().raw_decode(stripped)
            except json.JSONDecodeError:
                return {}, content
            if isinstance(parsed, dict):
                return parsed, stripped[end:].lstrip("\n")
        return {}, content
    parts = content.split("---", 2)
    if len(parts) < 3:
        return {}, content
    body = parts[2].lstrip("\n")
    try:
        meta = yaml.safe_load(parts[1].strip()) or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, body


def topic_from_notes(body: str) -> Optional[str]:
    for line in body.splitlines():
        text = re.sub(r"^#+\s*", "", line).strip()
        if text:
            return text
    return None
