"""Record parsing and serialization for both on-disk encodings.

One parser front door (:func:`parse_record`) dispatches on the encoding
detected from the text itself; configuration is never consulted when
reading. :func:`serialize_record` takes the target encoding explicitly.

Legacy encoding (adr-tools)::

    # 7. Authentication mechanism

    Date: 2024-01-02

    ## Status

    Accepted

    Amends [3. Session storage](0003-session-storage.md)

    ## Context
    ...

Extended encoding: a ``---`` delimited YAML header carrying number, title,
status, date, metadata and links, followed by the same markdown sections.

Pure parsing utilities (``parse_frontmatter``, ``order_frontmatter``,
``render_frontmatter``, ``split_sections``) live here so that the
dependency direction stays clean: infrastructure -> domain, never the
reverse.
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from adrctl.domain.ids import format_number, number_from_filename, record_filename
from adrctl.domain.lifecycle import (
    LEGACY_STATUS_WORDS,
    RecordStatus,
    SourceEncoding,
    status_equals,
)
from adrctl.domain.links import SUPERSEDED_BY, Link, kind_slug, kinds_match
from adrctl.domain.records import DecisionRecord, RecordMetadata


class RecordParseError(ValueError):
    """A file could not be turned into a record."""

    def __init__(self, path: Path | str | None, reason: str) -> None:
        self.path = Path(path) if path is not None else None
        self.reason = reason
        where = str(self.path) if self.path is not None else "<text>"
        super().__init__(f"{where}: {reason}")


@dataclass(frozen=True)
class ParsedRecord:
    """A parsed record plus the non-fatal problems found while parsing."""

    record: DecisionRecord
    warnings: list[str] = field(default_factory=list)


class _FormatError(ValueError):
    """Raised by the helpers below; :func:`parse_record` adds the path."""


# ---------------------------------------------------------------------------
# YAML parser (round-trip preserves comments and quote styles)
# ---------------------------------------------------------------------------


def _new_yaml() -> YAML:
    """Create a fresh round-trip YAML parser.

    ruamel.yaml's YAML object is stateful; a failed dump can leave a shared
    instance broken, so every call gets its own.
    """
    y = YAML()
    y.preserve_quotes = True
    y.default_flow_style = False
    return y


CANONICAL_KEY_ORDER: list[str] = [
    "number",
    "title",
    "status",
    "date",
    "deciders",
    "consulted",
    "informed",
    "tags",
    "links",
    "status_notes",
]

_METADATA_KEYS = ("deciders", "consulted", "informed", "tags")
_DECIDER_ALIASES = ("decision-makers", "decision_makers")

_FRONTMATTER_DELIMITER = "---"


def detect_encoding(text: str) -> SourceEncoding:
    """Extended when the first line is exactly ``---``, legacy otherwise."""
    first_line = text.lstrip("\ufeff").split("\n", 1)[0].rstrip("\r")
    if first_line == _FRONTMATTER_DELIMITER:
        return SourceEncoding.EXTENDED
    return SourceEncoding.LEGACY


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from the markdown body.

    Expects the text to start with ``---``; the next ``---`` line closes
    the header. Handles ``\\n`` and ``\\r\\n`` line endings.

    Raises:
        ValueError: The header is unterminated, is not valid YAML, or is
            not a mapping.
    """
    normalized = content.lstrip("\ufeff").replace("\r\n", "\n")
    lines = normalized.split("\n")
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return {}, normalized

    end_idx: int | None = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == _FRONTMATTER_DELIMITER:
            end_idx = i
            break
    if end_idx is None:
        raise _FormatError("unterminated YAML header (missing closing ---)")

    yaml_block = "\n".join(lines[1:end_idx])
    body = "\n".join(lines[end_idx + 1 :])
    if body.startswith("\n"):
        body = body[1:]

    try:
        fm = _new_yaml().load(yaml_block)
    except YAMLError as exc:
        raise _FormatError(f"invalid YAML header: {exc}") from exc
    if fm is None:
        return {}, body
    if not isinstance(fm, Mapping):
        raise _FormatError(f"YAML header must be a mapping, got {type(fm).__name__}")
    return dict(fm), body


def order_frontmatter(fm: dict[str, Any]) -> dict[str, Any]:
    """Return *fm* with keys in canonical order.

    Keys in :data:`CANONICAL_KEY_ORDER` come first, remaining keys follow
    alphabetically. ``None`` values are omitted.
    """
    ordered: dict[str, Any] = {}
    for key in CANONICAL_KEY_ORDER:
        if key in fm and fm[key] is not None:
            ordered[key] = fm[key]

    for key in sorted(fm.keys()):
        if key not in ordered and fm[key] is not None:
            ordered[key] = fm[key]

    return ordered


def render_frontmatter(frontmatter: dict[str, Any], body: str) -> str:
    """Render a header mapping and body text into markdown."""
    ordered = order_frontmatter(frontmatter)
    buf = StringIO()
    _new_yaml().dump(ordered, buf)
    yaml_text = buf.getvalue()

    parts = [_FRONTMATTER_DELIMITER, "\n", yaml_text, _FRONTMATTER_DELIMITER, "\n"]
    if body:
        parts.append(body)
    return "".join(parts)


# ---------------------------------------------------------------------------
# Markdown sections
# ---------------------------------------------------------------------------

_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_NUMBERED_TITLE_RE = re.compile(r"^(?P<number>\d+)\.\s+(?P<title>.+)$")
_DATE_LINE_RE = re.compile(r"^Date:\s*(?P<date>\S+)\s*$", re.IGNORECASE)


@dataclass
class SectionedBody:
    """A markdown body cut at ``#`` and ``##`` headings."""

    heading: str | None = None
    preamble: list[str] = field(default_factory=list)
    sections: list[tuple[str, str]] = field(default_factory=list)


def _clean(lines: list[str]) -> str:
    return "\n".join(lines).strip("\n").rstrip()


def split_sections(body: str) -> SectionedBody:
    """Cut *body* into the title heading, preamble lines and ``##`` sections.

    Headings inside fenced code blocks are body text. ``###`` and deeper
    headings stay inside their section.
    """
    result = SectionedBody()
    current: str | None = None
    buffer: list[str] = []
    fence: str | None = None

    for line in body.replace("\r\n", "\n").split("\n"):
        fence_match = _FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif fence == marker:
                fence = None
        elif fence is None and line.startswith("## "):
            if current is not None:
                result.sections.append((current, _clean(buffer)))
            current = line[3:].strip()
            buffer = []
            continue
        elif fence is None and current is None and line.startswith("# ") and result.heading is None:
            result.heading = line[2:].strip()
            continue

        if current is None:
            result.preamble.append(line)
        else:
            buffer.append(line)

    if current is not None:
        result.sections.append((current, _clean(buffer)))
    return result


def _render_sections(sections: Mapping[str, str]) -> str:
    chunks = []
    for heading, text in sections.items():
        text = text.strip("\n")
        chunks.append(f"## {heading}\n\n{text}\n" if text else f"## {heading}\n")
    return "\n".join(chunks)


# ---------------------------------------------------------------------------
# Legacy status grammar
# ---------------------------------------------------------------------------

# "<Kind> [<N>. <Title>](<file>)" with an optional ": description" suffix.
# Titles may hold escaped brackets or one level of balanced ones.
LEGACY_LINK_RE: re.Pattern[str] = re.compile(
    r"^(?P<kind>[A-Za-z][\w \-]*?)\s+"
    r"\[(?:(?P<number>\d+)\.\s*)?(?P<title>(?:\\.|\[[^\]]*\]|[^\]\\])*)\]"
    r"\((?P<file>[^)]*)\)"
    r"(?:\s*:\s*(?P<description>.*))?$"
)


# Trailing text adr-tools appends to a status word: "Accepted on 2020-01-02".
_STATUS_SUFFIX_RE = re.compile(r"^(?:on|since|as of|from)?\s*\d{4}-\d{2}-\d{2}\b", re.IGNORECASE)

# Written in place of a status line when a record has notes but no status.
NO_STATUS_MARKER = "<!-- no status -->"


def _parse_legacy_link(line: str) -> Link | None:
    match = LEGACY_LINK_RE.match(line.strip())
    if match is None:
        return None
    number = match.group("number")
    if number is None:
        number_value = number_from_filename(Path(match.group("file")).name)
        if number_value is None:
            return None
    else:
        number_value = int(number)
    return Link(kind=match.group("kind"), target=number_value, description=match.group("description"))


def parse_status_block(text: str) -> tuple[str, list[Link], str | None]:
    """Split a legacy ``## Status`` body into status, links and notes.

    The first non-link line is the status. When its first word is a known
    status word followed by a date (``Accepted on 2020-01-02``), the word
    is the status and the remainder starts the notes; any other line is
    kept whole. A :data:`NO_STATUS_MARKER` line stands for a blank status.
    With no status line, a ``Superseded by`` link implies ``Superseded``.
    """
    status: str | None = None
    links: list[Link] = []
    notes: list[str] = []

    for raw in text.split("\n"):
        line = raw.strip()
        if not line:
            if notes:
                notes.append("")
            continue
        link = _parse_legacy_link(line)
        if link is not None:
            links.append(link)
            continue
        if status is None:
            if line == NO_STATUS_MARKER:
                status = ""
                continue
            first, _, rest = line.partition(" ")
            if rest and first.lower() in LEGACY_STATUS_WORDS and _STATUS_SUFFIX_RE.match(rest):
                status = first
                notes.append(rest.strip())
            else:
                status = line
            continue
        notes.append(raw.rstrip())

    if status is None:
        implied = any(kinds_match(link.kind, SUPERSEDED_BY) for link in links)
        status = RecordStatus.SUPERSEDED.value.capitalize() if implied else ""
    note_text = _clean(notes)
    return status, links, note_text or None


def _parse_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value).strip())


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_record(text: str, *, path: Path | None = None) -> ParsedRecord:
    """Parse a record in whichever encoding *text* is written in.

    Raises:
        RecordParseError: The header is malformed, or title or number
            cannot be determined.
    """
    encoding = detect_encoding(text)
    try:
        if encoding is SourceEncoding.EXTENDED:
            return _parse_extended(text, path)
        return _parse_legacy(text, path)
    except _FormatError as exc:
        raise RecordParseError(path, str(exc)) from exc


def _resolve_number(content_number: int | None, path: Path | None, warnings: list[str]) -> int:
    file_number = number_from_filename(path.name) if path is not None else None
    if content_number is None:
        if file_number is None:
            raise _FormatError("record number not found in content or filename")
        return file_number
    if file_number is not None and file_number != content_number:
        warnings.append(
            f"{path.name}: filename number {file_number} differs from record number {content_number}"
        )
    return content_number


def _parse_legacy(text: str, path: Path | None) -> ParsedRecord:
    warnings: list[str] = []
    body = split_sections(text.lstrip("\ufeff"))
    if not body.heading:
        raise _FormatError("missing '# N. Title' heading")

    content_number: int | None = None
    title = body.heading
    numbered = _NUMBERED_TITLE_RE.match(body.heading)
    if numbered:
        content_number = int(numbered.group("number"))
        title = numbered.group("title").strip()
    if not title:
        raise _FormatError("record title is empty")
    number = _resolve_number(content_number, path, warnings)

    record_date: dt.date | None = None
    for line in body.preamble:
        date_match = _DATE_LINE_RE.match(line.strip())
        if date_match:
            try:
                record_date = _parse_date(date_match.group("date"))
            except ValueError:
                warnings.append(f"unparseable date {date_match.group('date')!r} ignored")
            break

    status = ""
    links: list[Link] = []
    notes: str | None = None
    sections: dict[str, str] = {}
    status_seen = False
    for heading, section_text in body.sections:
        if heading.casefold() == "status" and not status_seen:
            status, links, notes = parse_status_block(section_text)
            status_seen = True
            continue
        sections[heading] = section_text

    record = DecisionRecord(
        number=number,
        title=title,
        status=status,
        date=record_date,
        sections=sections,
        links=links,
        status_notes=notes,
        source_encoding=SourceEncoding.LEGACY,
        path=path,
    )
    return ParsedRecord(record=record, warnings=warnings)


def _plain(value: Any) -> Any:
    """Convert ruamel round-trip containers and scalars to plain Python."""
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_plain(v) for v in value]
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    if isinstance(value, str):
        return str(value)
    return value


def _string_list(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, list | tuple):
        return [str(item) for item in value if item is not None]
    return [str(value)]


def _parse_header_links(raw: Any, warnings: list[str]) -> list[Link]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        warnings.append("'links' header is not a list; ignored")
        return []
    links: list[Link] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            warnings.append(f"link entry {entry!r} is not a mapping; ignored")
            continue
        kind = entry.get("kind", entry.get("type"))
        target = entry.get("target")
        try:
            target_number = int(target)
        except (TypeError, ValueError):
            warnings.append(f"link target {target!r} is not a number; ignored")
            continue
        if not kind:
            warnings.append(f"link to {target_number} has no kind; ignored")
            continue
        description = entry.get("description")
        links.append(
            Link(
                kind=str(kind),
                target=target_number,
                description=str(description) if description is not None else None,
            )
        )
    return links


def _parse_extended(text: str, path: Path | None) -> ParsedRecord:
    warnings: list[str] = []
    fm, body_text = parse_frontmatter(text)
    body = split_sections(body_text)

    content_number: int | None = None
    if fm.get("number") is not None:
        try:
            content_number = int(fm["number"])
        except (TypeError, ValueError) as exc:
            raise _FormatError(f"header number {fm['number']!r} is not an integer") from exc

    title = str(fm["title"]).strip() if fm.get("title") is not None else ""
    if not title and body.heading:
        numbered = _NUMBERED_TITLE_RE.match(body.heading)
        title = numbered.group("title").strip() if numbered else body.heading
        if numbered and content_number is None:
            content_number = int(numbered.group("number"))
    if not title:
        raise _FormatError("record title is empty")
    number = _resolve_number(content_number, path, warnings)

    record_date: dt.date | None = None
    if fm.get("date") is not None:
        try:
            record_date = _parse_date(fm["date"])
        except ValueError as exc:
            raise _FormatError(f"header date {fm['date']!r} is not an ISO date") from exc

    status = str(fm["status"]).strip() if fm.get("status") is not None else ""
    status_notes = str(fm["status_notes"]) if fm.get("status_notes") is not None else None

    deciders = fm.get("deciders")
    if deciders is None:
        for alias in _DECIDER_ALIASES:
            if fm.get(alias) is not None:
                deciders = fm[alias]
                break

    known = {*CANONICAL_KEY_ORDER, *_DECIDER_ALIASES}
    metadata = RecordMetadata(
        deciders=_string_list(deciders),
        consulted=_string_list(fm.get("consulted")),
        informed=_string_list(fm.get("informed")),
        tags=_string_list(fm.get("tags")),
        extra={key: _plain(value) for key, value in fm.items() if key not in known},
    )
    links = _parse_header_links(fm.get("links"), warnings)

    sections: dict[str, str] = {}
    for heading, section_text in body.sections:
        if heading.casefold() == "status":
            # Older tools also wrote the status into the body.
            body_status, body_links, body_notes = parse_status_block(section_text)
            for link in body_links:
                if not any(existing.same_edge(link) for existing in links):
                    links.append(link)
            if status_notes is None:
                extra_lines = [body_notes] if body_notes else []
                if body_status and not status_equals(body_status, status):
                    extra_lines.insert(0, body_status)
                status_notes = "\n\n".join(extra_lines) or None
            continue
        sections[heading] = section_text

    record = DecisionRecord(
        number=number,
        title=title,
        status=status,
        date=record_date,
        sections=sections,
        links=links,
        status_notes=status_notes,
        metadata=metadata,
        source_encoding=SourceEncoding.EXTENDED,
        path=path,
    )
    return ParsedRecord(record=record, warnings=warnings)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def serialize_record(
    record: DecisionRecord,
    encoding: SourceEncoding,
    *,
    link_titles: Mapping[int, str] | None = None,
) -> str:
    """Render *record* as markdown in *encoding*.

    *link_titles* maps record numbers to titles so legacy link sentences can
    name their targets; unknown targets are written as ``Record N``.
    """
    if encoding is SourceEncoding.EXTENDED:
        return _serialize_extended(record)
    return _serialize_legacy(record, link_titles or {})


def _escape_label(text: str) -> str:
    return text.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")


def format_legacy_link(link: Link, title: str | None) -> str:
    if title:
        label = f"{link.target}. {_escape_label(title)}"
        target_file = record_filename(link.target, title)
    else:
        label = f"{link.target}. Record {link.target}"
        target_file = f"{format_number(link.target)}.md"
    sentence = f"{link.kind} [{label}]({target_file})"
    if link.description:
        sentence += f": {link.description}"
    return sentence


def _serialize_legacy(record: DecisionRecord, link_titles: Mapping[int, str]) -> str:
    parts = [f"# {record.full_title}\n"]
    if record.date is not None:
        parts.append(f"Date: {record.date.isoformat()}\n")

    status_lines = []
    if record.status:
        status_lines.append(record.status)
    elif record.status_notes:
        status_lines.append(NO_STATUS_MARKER)
    for link in record.links:
        status_lines.append(format_legacy_link(link, link_titles.get(link.target)))
    if record.status_notes:
        status_lines.append(record.status_notes)
    status_block = "\n\n".join(status_lines)
    parts.append(f"## Status\n\n{status_block}\n" if status_block else "## Status\n")

    if record.sections:
        parts.append(_render_sections(record.sections))
    return "\n".join(parts)


def _serialize_extended(record: DecisionRecord) -> str:
    fm: dict[str, Any] = {
        "number": record.number,
        "title": record.title,
        "status": record.status,
        "date": record.date,
        "status_notes": record.status_notes,
    }
    for key in _METADATA_KEYS:
        value = getattr(record.metadata, key)
        if value is not None:
            fm[key] = list(value)
    if record.links:
        fm["links"] = [_link_entry(link) for link in record.links]
    for key, value in record.metadata.extra.items():
        if key not in fm:
            fm[key] = value

    body = f"# {record.full_title}\n"
    if record.sections:
        body += "\n" + _render_sections(record.sections)
    return render_frontmatter(fm, body)


def _link_entry(link: Link) -> dict[str, Any]:
    entry: dict[str, Any] = {"target": link.target, "kind": kind_slug(link.kind)}
    if link.description:
        entry["description"] = link.description
    return entry
