from __future__ import annotations

from collections import Counter

from cardnews.patterns import (
    PATTERN_CATALOG,
    get_pattern,
    pattern_ids,
    pattern_list_for_prompt,
    patterns_for_role,
)


def test_catalog_has_unique_ids() -> None:
    ids = pattern_ids()
    assert len(ids) == 28
    assert len(set(ids)) == len(ids)


def test_category_counts() -> None:
    counts = Counter(pattern.category for pattern in PATTERN_CATALOG)
    assert counts == {
        "information": 7,
        "procedure": 5,
        "comparison": 3,
        "data": 3,
        "emphasis": 4,
        "code": 2,
        "mixed": 2,
        "intro": 2,
    }


def test_lookup_by_id() -> None:
    pattern = get_pattern("proc-steps")
    assert pattern.category == "procedure"
    assert get_pattern("nope") is None


def test_patterns_for_role() -> None:
    cover_ids = {pattern.id for pattern in patterns_for_role("cover")}
    assert "intro-cover" in cover_ids
    assert "info-stats" not in cover_ids
    assert [pattern.id for pattern in patterns_for_role("cta")] == ["proc-checklist", "intro-cta"]


def test_prompt_listing_mentions_every_pattern() -> None:
    listing = pattern_list_for_prompt()
    assert len(listing.splitlines()) == 28
    for pattern_id in pattern_ids():
        assert f"- {pattern_id}:" in listing
