from __future__ import annotations

import json
import re
from typing import Any, Optional

from cardnews.errors import DecodeError

PREVIEW_CHARS = 500

_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n(.*)\n```\s*$", flags=re.DOTALL)
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


def _strip_code_fence(text: str) -> str:
    match = _FENCE.match(text)
    if match:
        return match.group(1).strip()
    return text


def locate_json(raw_text: str) -> str:
    """Return the outermost balanced JSON object/array inside ``raw_text``.

    Falls back to the trimmed (and de-fenced) text when no balanced payload is
    found; decoding that fallback is left to the caller.
    """
    cleaned = _strip_code_fence(raw_text.strip())

    first_brace = cleaned.find("{")
    first_bracket = cleaned.find("[")
    if first_brace < 0 and first_bracket < 0:
        return cleaned
    if first_brace >= 0 and (first_bracket < 0 or first_brace < first_bracket):
        start, opener, closer = first_brace, "{", "}"
    else:
        start, opener, closer = first_bracket, "[", "]"

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(cleaned)):
        char = cleaned[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return cleaned[start : index + 1]
    return cleaned


def repair_json_text(text: str) -> str:
    """Escape literal newlines, carriage returns and tabs inside string literals."""
    repaired = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            elif char in _CONTROL_ESCAPES:
                repaired.append(_CONTROL_ESCAPES[char])
                continue
        elif char == '"':
            in_string = True
        repaired.append(char)
    return "".join(repaired)


def extract_json(raw_text: str, stage: Optional[str] = None) -> Any:
    candidate = locate_json(raw_text)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    repaired = repair_json_text(candidate)
    try:
        return json.loads(repaired)
    except json.JSONDecodeError as exc:
        label = f"{stage} " if stage else ""
        raise DecodeError(
            f"Failed to parse {label}JSON: {exc.msg} (line {exc.lineno} column {exc.colno})",
            preview=candidate[:PREVIEW_CHARS],
            stage=stage,
        ) from exc
