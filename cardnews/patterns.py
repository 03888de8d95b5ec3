from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class PatternDefinition:
    id: str
    category: str
    name: str
    description: str
    suitable_for: Tuple[str, ...]
    structure_hint: str


_CATALOG_ROWS = [
    ("info-stats", "information", "Statistics Highlight", "Large statistic with supporting context", ("body",), "big-number + description + source"),
    ("info-quote", "information", "Quote Block", "Featured quote with attribution", ("body",), "quote-mark + quote-text + author"),
    ("info-definition", "information", "Definition", "Term and definition in a clear layout", ("body",), "term-heading + definition-body + example"),
    ("info-list", "information", "Bullet List", "Heading with 3-5 bullet points", ("body",), "heading + bullet-list(3-5 items)"),
    ("info-highlight", "information", "Key Insight", "Single insight with emphasis styling", ("body",), "label + highlighted-text-block + footnote"),
    ("info-callout", "information", "Callout Box", "Important message in a colored container", ("body",), "callout-container(icon + heading + body)"),
    ("info-icon-grid", "information", "Icon Grid", "2x2 or 3x2 grid of icon and label items", ("body",), "heading + grid(emoji + label + description) x 4-6"),
    ("proc-steps", "procedure", "Step by Step", "Sequential steps with numbers", ("body",), "heading + step(number + title + desc) x 3-5"),
    ("proc-timeline", "procedure", "Timeline", "Milestones along a vertical line", ("body",), "heading + timeline-line + milestone(dot + label + desc) x 3-5"),
    ("proc-numbered", "procedure", "Numbered Cards", "Cards with number badges", ("body",), "heading + card(number-badge + title + desc) x 3-4"),
    ("proc-flowchart", "procedure", "Flow Chart", "Boxes connected by arrows", ("body",), "heading + box(text) -> arrow -> box(text) x 3-4"),
    ("proc-checklist", "procedure", "Checklist", "Checkbox items to act on", ("body", "cta"), "heading + checkbox-item(check + text) x 4-6"),
    ("comp-before-after", "comparison", "Before & After", "Two panels showing a change", ("body",), "heading + before-panel(label + content) + after-panel(label + content)"),
    ("comp-versus", "comparison", "Versus", "Two options side by side", ("body",), "option-a(heading + points) + VS-divider + option-b(heading + points)"),
    ("comp-table", "comparison", "Comparison Table", "Rows compared across columns", ("body",), "heading + table(header-row + data-rows x 3-5)"),
    ("data-bar", "data", "Bar Chart", "Horizontal bars with values", ("body",), "heading + bar(label + bar-fill(width%) + value) x 3-5"),
    ("data-pie", "data", "Donut/Pie Visual", "Conic gradient circle with legend", ("body",), "heading + conic-gradient-circle + legend(color + label + value) x 3-5"),
    ("data-metric", "data", "Metric Dashboard", "Metric cards with change indicators", ("body",), "heading + metric-card(value + label + change) x 3-4"),
    ("emph-big-text", "emphasis", "Big Text", "One oversized statement", ("body", "cover"), "hero-text(large) + subtitle(small) + decoration-line"),
    ("emph-centered", "emphasis", "Centered Statement", "Centered heading and body", ("body",), "centered-container(heading + body-text)"),
    ("emph-split", "emphasis", "Split Screen", "Two colored halves with text", ("body",), "left-panel(bg-color + text) + right-panel(bg-color + text)"),
    ("emph-gradient", "emphasis", "Gradient Background", "Centered text over a gradient", ("body", "cover"), "gradient-bg + centered-text(heading + subtitle)"),
    ("code-snippet", "code", "Code Snippet", "Monospace code block with explanation", ("body",), "heading + code-block(monospace) + explanation-text"),
    ("code-terminal", "code", "Terminal", "Terminal window with commands", ("body",), "terminal-window(title-bar + command-lines) + explanation"),
    ("mixed-text-image", "mixed", "Text + Image", "Text column beside an image area", ("body",), "text-column(heading + body) + image-area(placeholder or base64)"),
    ("mixed-card-grid", "mixed", "Card Grid", "Grid of small cards", ("body",), "heading + grid(card(icon + title + desc)) x 4-6"),
    ("intro-cover", "intro", "Cover Slide", "Series cover with hero title", ("cover",), "series-label + hero-title + subtitle + decoration"),
    ("intro-cta", "intro", "Call to Action", "Closing slide with an action", ("cta",), "cta-heading + cta-body + button-style-element + branding-footer"),
]

PATTERN_CATALOG: List[PatternDefinition] = [PatternDefinition(*row) for row in _CATALOG_ROWS]

_BY_ID: Dict[str, PatternDefinition] = {pattern.id: pattern for pattern in PATTERN_CATALOG}


def pattern_ids() -> List[str]:
    return [pattern.id for pattern in PATTERN_CATALOG]


def get_pattern(pattern_id: str) -> Optional[PatternDefinition]:
    return _BY_ID.get(pattern_id)


def patterns_for_role(role: str) -> List[PatternDefinition]:
    return [pattern for pattern in PATTERN_CATALOG if role in pattern.suitable_for]


def pattern_list_for_prompt() -> str:
    return "\n".join(
        f"- {pattern.id}: {pattern.name} ({pattern.description})" for pattern in PATTERN_CATALOG
    )
