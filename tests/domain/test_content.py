"""Tests for record parsing and serialization in both encodings."""

import datetime as dt
from pathlib import Path

import pytest

from adrctl.domain.content import (
    RecordParseError,
    detect_encoding,
    format_legacy_link,
    order_frontmatter,
    parse_frontmatter,
    parse_record,
    parse_status_block,
    serialize_record,
    split_sections,
)
from adrctl.domain.lifecycle import SourceEncoding
from adrctl.domain.links import AMENDS, RELATES_TO, SUPERSEDED_BY, Link
from adrctl.domain.records import DecisionRecord, RecordMetadata

LEGACY_TEXT = """\
# 2. Use PostgreSQL

Date: 2024-03-01

## Status

Accepted

Amends [1. Record architecture decisions](0001-record-architecture-decisions.md)

## Context

We need a database.

## Decision

Use PostgreSQL.

## Consequences

Operations must learn it.
"""

EXTENDED_TEXT = """\
---
number: 4
title: Adopt event sourcing
status: accepted
date: 2024-05-06
decision-makers:
- alice
- bob
tags: [events]
links:
- target: 2
  kind: relates-to
  description: storage choice
review_board: platform
---
# 4. Adopt event sourcing

## Context

Audit requirements.
"""


class TestDetectEncoding:
    def test_legacy(self) -> None:
        assert detect_encoding(LEGACY_TEXT) is SourceEncoding.LEGACY

    def test_extended(self) -> None:
        assert detect_encoding(EXTENDED_TEXT) is SourceEncoding.EXTENDED

    def test_bom_ignored(self) -> None:
        assert detect_encoding("\ufeff---\ntitle: x\n---\n") is SourceEncoding.EXTENDED

    def test_dashes_not_on_first_line(self) -> None:
        assert detect_encoding("# 1. T\n---\n") is SourceEncoding.LEGACY


class TestFrontmatter:
    def test_no_header(self) -> None:
        fm, body = parse_frontmatter("# Title\n")
        assert fm == {}
        assert body == "# Title\n"

    def test_unterminated(self) -> None:
        with pytest.raises(ValueError, match="unterminated"):
            parse_frontmatter("---\ntitle: x\n")

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ValueError, match="mapping"):
            parse_frontmatter("---\n- a\n- b\n---\n")

    def test_crlf(self) -> None:
        fm, body = parse_frontmatter("---\r\ntitle: x\r\n---\r\nbody\r\n")
        assert fm["title"] == "x"
        assert body == "body\n"

    def test_order(self) -> None:
        ordered = order_frontmatter({"zeta": 1, "title": "T", "number": 3, "status": None})
        assert list(ordered) == ["number", "title", "zeta"]


class TestSplitSections:
    def test_heading_preamble_sections(self) -> None:
        body = split_sections("# 1. T\n\nDate: 2024-01-01\n\n## A\n\none\n\n### Sub\n\ntwo\n## B\nthree\n")
        assert body.heading == "1. T"
        assert "Date: 2024-01-01" in body.preamble
        assert body.sections == [("A", "one\n\n### Sub\n\ntwo"), ("B", "three")]

    def test_fenced_headings_are_text(self) -> None:
        body = split_sections("# T\n\n## Code\n\n```\n## not a heading\n```\n")
        assert [h for h, _ in body.sections] == ["Code"]
        assert "## not a heading" in body.sections[0][1]


class TestStatusBlock:
    def test_status_and_links(self) -> None:
        status, links, notes = parse_status_block(
            "Superseded\n\nSuperseded by [5. Use MySQL](0005-use-mysql.md)"
        )
        assert status == "Superseded"
        assert links == [Link(kind=SUPERSEDED_BY, target=5)]
        assert notes is None

    def test_leading_status_word_splits_notes(self) -> None:
        status, _links, notes = parse_status_block("Accepted on 2020-01-02 by the board")
        assert status == "Accepted"
        assert notes == "on 2020-01-02 by the board"

    def test_custom_status_kept_whole(self) -> None:
        status, _links, notes = parse_status_block("Waiting for review")
        assert status == "Waiting for review"
        assert notes is None

    def test_implied_superseded(self) -> None:
        status, links, _notes = parse_status_block("Superceded by [3. Other](0003-other.md)")
        assert status == "Superseded"
        assert links[0].kind == SUPERSEDED_BY

    def test_link_description(self) -> None:
        _status, links, _notes = parse_status_block("Proposed\n\nAmends [2. X](0002-x.md): narrows scope")
        assert links == [Link(kind=AMENDS, target=2, description="narrows scope")]

    def test_number_from_filename_when_label_unnumbered(self) -> None:
        _status, links, _notes = parse_status_block("Proposed\n\nRelates to [Other](0009-other.md)")
        assert links == [Link(kind=RELATES_TO, target=9)]


class TestParseLegacy:
    def test_fields(self) -> None:
        record = parse_record(LEGACY_TEXT).record
        assert record.number == 2
        assert record.title == "Use PostgreSQL"
        assert record.status == "Accepted"
        assert record.date == dt.date(2024, 3, 1)
        assert record.links == [Link(kind=AMENDS, target=1)]
        assert list(record.sections) == ["Context", "Decision", "Consequences"]
        assert record.section("decision") == "Use PostgreSQL."
        assert record.source_encoding is SourceEncoding.LEGACY

    def test_missing_date(self) -> None:
        record = parse_record("# 1. T\n\n## Status\n\nProposed\n").record
        assert record.date is None

    def test_content_number_wins(self) -> None:
        parsed = parse_record(LEGACY_TEXT, path=Path("0005-use-postgresql.md"))
        assert parsed.record.number == 2
        assert any("differs" in w for w in parsed.warnings)

    def test_number_from_filename(self) -> None:
        parsed = parse_record("# Use PostgreSQL\n\n## Status\n\nProposed\n", path=Path("0005-use-postgresql.md"))
        assert parsed.record.number == 5
        assert parsed.record.title == "Use PostgreSQL"

    def test_missing_heading(self) -> None:
        with pytest.raises(RecordParseError) as exc_info:
            parse_record("Just text\n", path=Path("0001-x.md"))
        assert exc_info.value.path == Path("0001-x.md")
        assert "heading" in exc_info.value.reason

    def test_no_number_anywhere(self) -> None:
        with pytest.raises(RecordParseError):
            parse_record("# Untitled thoughts\n")


class TestParseExtended:
    def test_fields(self) -> None:
        parsed = parse_record(EXTENDED_TEXT)
        record = parsed.record
        assert record.number == 4
        assert record.title == "Adopt event sourcing"
        assert record.status == "accepted"
        assert record.date == dt.date(2024, 5, 6)
        assert record.metadata.deciders == ["alice", "bob"]
        assert record.metadata.tags == ["events"]
        assert record.metadata.extra == {"review_board": "platform"}
        assert record.links == [Link(kind=RELATES_TO, target=2, description="storage choice")]
        assert record.sections == {"Context": "Audit requirements."}
        assert parsed.warnings == []

    def test_title_from_heading(self) -> None:
        record = parse_record("---\nstatus: proposed\n---\n# 3. From heading\n").record
        assert record.number == 3
        assert record.title == "From heading"

    def test_bad_link_entry_warns(self) -> None:
        parsed = parse_record("---\nnumber: 1\ntitle: T\nlinks:\n- target: abc\n  kind: amends\n---\n")
        assert parsed.record.links == []
        assert parsed.warnings

    def test_bad_date(self) -> None:
        with pytest.raises(RecordParseError, match="ISO date"):
            parse_record("---\nnumber: 1\ntitle: T\ndate: yesterday\n---\n")

    def test_body_status_section_folded(self) -> None:
        text = (
            "---\nnumber: 1\ntitle: T\nstatus: superseded\n---\n# 1. T\n\n"
            "## Status\n\nSuperseded by [2. U](0002-u.md)\n\n## Context\n\nc\n"
        )
        record = parse_record(text).record
        assert record.links == [Link(kind=SUPERSEDED_BY, target=2)]
        assert "Status" not in record.sections


class TestSerialize:
    def _record(self) -> DecisionRecord:
        return DecisionRecord(
            number=3,
            title="Use Kafka",
            status="Accepted",
            date=dt.date(2024, 1, 2),
            sections={"Context": "Events everywhere.", "Decision": "Kafka."},
            links=[Link(kind=AMENDS, target=2), Link(kind=RELATES_TO, target=9, description="see also")],
        )

    def test_legacy_layout(self) -> None:
        text = serialize_record(self._record(), SourceEncoding.LEGACY, link_titles={2: "Use Zookeeper"})
        assert text == (
            "# 3. Use Kafka\n"
            "\n"
            "Date: 2024-01-02\n"
            "\n"
            "## Status\n"
            "\n"
            "Accepted\n"
            "\n"
            "Amends [2. Use Zookeeper](0002-use-zookeeper.md)\n"
            "\n"
            "Relates to [9. Record 9](0009.md): see also\n"
            "\n"
            "## Context\n"
            "\n"
            "Events everywhere.\n"
            "\n"
            "## Decision\n"
            "\n"
            "Kafka.\n"
        )

    def test_legacy_round_trip(self) -> None:
        record = self._record()
        text = serialize_record(record, SourceEncoding.LEGACY, link_titles={2: "Use Zookeeper"})
        assert parse_record(text).record.semantic_dump() == record.semantic_dump()

    def test_extended_round_trip(self) -> None:
        record = self._record()
        record.metadata = RecordMetadata(deciders=["alice"], tags=["streaming"], extra={"team": "data"})
        record.status_notes = "Ratified at the\narchitecture review."
        text = serialize_record(record, SourceEncoding.EXTENDED)
        assert text.startswith("---\nnumber: 3\ntitle: Use Kafka\n")
        assert "kind: amends" in text
        assert "# 3. Use Kafka" in text
        assert parse_record(text).record.semantic_dump() == record.semantic_dump()

    def test_cross_encoding_round_trip(self) -> None:
        legacy = parse_record(LEGACY_TEXT).record
        text = serialize_record(legacy, SourceEncoding.EXTENDED)
        assert parse_record(text).record.semantic_dump() == legacy.semantic_dump()

    def test_format_legacy_link(self) -> None:
        link = Link(kind=SUPERSEDED_BY, target=12)
        assert format_legacy_link(link, "New approach") == "Superseded by [12. New approach](0012-new-approach.md)"

    def test_legacy_link_to_bracketed_title(self) -> None:
        record = self._record()
        text = serialize_record(record, SourceEncoding.LEGACY, link_titles={2: "Use [x] library"})
        assert r"Amends [2. Use \[x\] library](0002-use-x-library.md)" in text
        assert parse_record(text).record.links == record.links

    def test_legacy_blank_status_with_notes(self) -> None:
        record = self._record()
        record.status = ""
        record.status_notes = "Awaiting review."
        text = serialize_record(record, SourceEncoding.LEGACY)
        parsed = parse_record(text).record
        assert parsed.status == ""
        assert parsed.status_notes == "Awaiting review."

    def test_legacy_custom_status_kept_verbatim(self) -> None:
        record = self._record()
        record.status = "Rejected due to cost"
        parsed = parse_record(serialize_record(record, SourceEncoding.LEGACY)).record
        assert parsed.status == "Rejected due to cost"
        assert parsed.status_notes is None


class TestBracketedLinkLabels:
    def test_unescaped_balanced_brackets(self) -> None:
        _status, links, notes = parse_status_block("Accepted\n\nAmends [1. Use [x] library](0001-use-x-library.md)")
        assert links == [Link(kind=AMENDS, target=1)]
        assert notes is None

    def test_escaped_brackets(self) -> None:
        _status, links, _notes = parse_status_block("Accepted\n\nAmends [1. Fix \\] parsing](0001-fix-parsing.md)")
        assert links == [Link(kind=AMENDS, target=1)]

    def test_known_word_without_date_is_not_split(self) -> None:
        status, _links, notes = parse_status_block("Rejected due to cost")
        assert status == "Rejected due to cost"
        assert notes is None
