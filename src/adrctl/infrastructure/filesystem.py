"""Filesystem operations for record files.

INVARIANT: Files are truth. Every index is rebuilt from a directory scan;
nothing is cached across invocations.

Pure parsing/rendering utilities live in :mod:`adrctl.domain.content`
(correct dependency direction: infrastructure -> domain). This module
handles actual file I/O, path resolution, and file discovery.
"""

from __future__ import annotations

from pathlib import Path

from adrctl.domain.content import ParsedRecord, parse_record
from adrctl.domain.ids import is_record_filename

# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------


def read_record_file(path: Path) -> ParsedRecord:
    """Read and parse a record file.

    Raises:
        OSError: The file could not be read.
        RecordParseError: The content is not a valid record.
    """
    text = path.read_text(encoding="utf-8")
    return parse_record(text, path=path)


def write_record_file(path: Path, text: str) -> None:
    """Write rendered record text, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


def resolve_record_path(records_dir: Path, filename: str) -> Path:
    """Join *filename* onto the records directory, refusing escapes."""
    result = records_dir / filename
    if not result.resolve().is_relative_to(records_dir.resolve()):
        msg = f"Path escapes records directory: {result}"
        raise ValueError(msg)
    return result


def find_record_files(records_dir: Path) -> list[Path]:
    """Discover ``NNNN-*.md`` files directly inside *records_dir*.

    Subdirectories are not searched. Returns paths sorted by name so the
    scan order is stable across platforms.
    """
    if not records_dir.is_dir():
        return []
    return sorted(
        (path for path in records_dir.iterdir() if path.is_file() and is_record_filename(path.name)),
        key=lambda p: p.name,
    )
