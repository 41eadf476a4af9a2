"""Record status vocabulary and case-insensitive status matching.

Statuses are stored verbatim as written. The vocabulary below is only used
for matching (case-insensitive) and for the spelling the tool itself writes:
``Accepted`` in legacy documents, ``accepted`` in extended headers.

Custom statuses (``Draft``, ``Rejected``, ...) pass through untouched.
"""

from __future__ import annotations

from enum import StrEnum


class RecordStatus(StrEnum):
    """Built-in status vocabulary."""

    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    DEPRECATED = "deprecated"
    SUPERSEDED = "superseded"


class SourceEncoding(StrEnum):
    """On-disk representation a record was parsed from or is written in."""

    LEGACY = "legacy"
    EXTENDED = "extended"


# adr-tools has shipped the "superceded" spelling for years.
_STATUS_ALIASES: dict[str, RecordStatus] = {
    "superceded": RecordStatus.SUPERSEDED,
}

# Words accepted as the leading word of a legacy status line.
LEGACY_STATUS_WORDS: frozenset[str] = frozenset(
    {*(s.value for s in RecordStatus), *_STATUS_ALIASES, "draft", "rejected"}
)


def match_status(value: str | None) -> RecordStatus | None:
    """Return the vocabulary status *value* names, ignoring case.

    Returns None for custom statuses and for empty input.
    """
    if not value:
        return None
    key = value.strip().lower()
    if key in _STATUS_ALIASES:
        return _STATUS_ALIASES[key]
    try:
        return RecordStatus(key)
    except ValueError:
        return None


def status_equals(left: str | None, right: str | None) -> bool:
    """Case-insensitive status comparison (vocabulary aliases included)."""
    left_status = match_status(left)
    right_status = match_status(right)
    if left_status is not None or right_status is not None:
        return left_status == right_status
    return (left or "").strip().casefold() == (right or "").strip().casefold()


def is_superseded(value: str | None) -> bool:
    return match_status(value) is RecordStatus.SUPERSEDED


def format_status(value: str, encoding: SourceEncoding) -> str:
    """Spelling the tool writes for *value* in *encoding*.

    Vocabulary statuses are normalized (``Accepted`` / ``accepted``);
    custom statuses are returned unchanged.
    """
    status = match_status(value)
    if status is None:
        return value.strip()
    if encoding is SourceEncoding.LEGACY:
        return status.value.capitalize()
    return status.value
