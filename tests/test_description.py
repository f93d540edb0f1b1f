"""Tests for SyncDescription (bullet list above a footer, explicit de-duplication)."""

from stagebot.services.description import SyncDescription, parse_entries

FOOTER = """
## common base root URLs
**Milo:**
- Before: https://main--milo--adobecom.hlx.live/?martech=off
- After: https://stage--milo--adobecom.hlx.live/?martech=off
"""


def test_add_prepends_most_recent_first() -> None:
    d = SyncDescription(FOOTER)
    assert d.add("https://github.com/o/r/pull/1")
    assert d.add("https://github.com/o/r/pull/2")
    assert d.body == f"- https://github.com/o/r/pull/2\n- https://github.com/o/r/pull/1\n{FOOTER}"


def test_add_is_idempotent() -> None:
    d = SyncDescription(FOOTER)
    d.add("https://github.com/o/r/pull/1")
    body = d.body
    assert not d.add("https://github.com/o/r/pull/1")
    assert d.body == body


def test_existing_entries_parsed_from_baseline() -> None:
    body = f"- https://github.com/o/r/pull/5\n- https://github.com/o/r/pull/3\n{FOOTER}"
    d = SyncDescription(body)
    assert d.included == {"https://github.com/o/r/pull/5", "https://github.com/o/r/pull/3"}
    assert not d.add("https://github.com/o/r/pull/3")
    assert d.body == body


def test_footer_lines_are_not_entries() -> None:
    """Labelled bullets in the footer are not counted as listed pull requests."""
    assert parse_entries(FOOTER) == set()


def test_prefix_url_is_not_a_duplicate() -> None:
    """pull/1 is not considered listed just because pull/12 is."""
    d = SyncDescription("- https://github.com/o/r/pull/12\n")
    assert d.add("https://github.com/o/r/pull/1")
    assert "https://github.com/o/r/pull/1" in d


def test_add_all_counts_new_urls() -> None:
    d = SyncDescription()
    added = d.add_all(["https://x/1", "https://x/2", "https://x/1", ""])
    assert added == 2
    assert d.body == "- https://x/2\n- https://x/1\n"


def test_none_body_is_empty() -> None:
    assert SyncDescription(None).body == ""  # type: ignore[arg-type]
