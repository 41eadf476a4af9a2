"""Record numbers, slugs, and filenames.

Filename convention: ``{number:04d}-{slug}.md`` (e.g. ``0007-authentication-mechanism.md``).
Numbers wider than four digits are written unpadded beyond the fourth digit.

INVARIANT: The number in a filename is advisory. The number inside the
document wins when the two disagree; the mismatch is surfaced as a warning.
"""

from __future__ import annotations

import re
import unicodedata

NUMBER_WIDTH = 4

# Any markdown file starting with digits and a hyphen is a record candidate.
FILENAME_PATTERN: re.Pattern[str] = re.compile(r"^(?P<number>\d+)-(?P<slug>.*)\.md$")

# Stricter form used by the naming check: zero-padded number + kebab slug.
CANONICAL_FILENAME_PATTERN: re.Pattern[str] = re.compile(
    rf"^(?P<number>\d{{{NUMBER_WIDTH},}})-(?P<slug>[a-z0-9]+(?:-[a-z0-9]+)*)\.md$"
)


def slugify(title: str) -> str:
    """Kebab-case a title for use in a filename.

    Applies NFKC normalization, lowercases, and collapses every run of
    non-alphanumeric characters into a single hyphen.

    Examples:
        >>> slugify("Use Rust")
        'use-rust'
        >>> slugify("API v2.0 Design")
        'api-v2-0-design'
        >>> slugify("  Multiple   Spaces  ")
        'multiple-spaces'
    """
    text = unicodedata.normalize("NFKC", title).lower()
    text = re.sub(r"[\W_]+", "-", text)
    return text.strip("-")


def format_number(number: int) -> str:
    """Zero-pad *number* to the filename width."""
    return f"{number:0{NUMBER_WIDTH}d}"


def record_filename(number: int, title: str) -> str:
    """Canonical filename for a record."""
    slug = slugify(title) or "untitled"
    return f"{format_number(number)}-{slug}.md"


def number_from_filename(name: str) -> int | None:
    """Extract the leading number from a record filename.

    Returns None when *name* does not look like a record file.
    """
    match = FILENAME_PATTERN.match(name)
    if match is None:
        return None
    return int(match.group("number"))


def is_record_filename(name: str) -> bool:
    """Whether *name* should be picked up by a directory scan."""
    return FILENAME_PATTERN.match(name) is not None
