"""RecordRepository — directory scan, lookup, numbering, and writes.

INVARIANT: Files are truth. :meth:`RecordRepository.load` rebuilds the
index from a directory scan every time; nothing is cached across calls.

Mutations assume a single writer process. Record numbers handed out by
:meth:`RecordRepository.create` are reserved under a process-local lock
and never reused within the process, even when the write fails.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from adrctl.config.models import RepositoryContext
from adrctl.domain.content import ParsedRecord, RecordParseError, serialize_record, split_sections
from adrctl.domain.ids import number_from_filename
from adrctl.domain.lifecycle import RecordStatus, format_status
from adrctl.domain.links import Link
from adrctl.domain.records import DecisionRecord, RecordMetadata
from adrctl.infrastructure.filesystem import (
    find_record_files,
    read_record_file,
    resolve_record_path,
    write_record_file,
)
from adrctl.infrastructure.matching import MatchOutcome, resolve
from adrctl.infrastructure.templates import RecordTemplates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadFailure:
    """A file that could not be read or parsed."""

    path: Path
    reason: str


@dataclass
class RecordIndex:
    """Everything a single directory scan found.

    ``entries`` holds every parsed record in filename order, duplicates
    included. ``records`` maps each number to its first owner.
    """

    entries: list[DecisionRecord] = field(default_factory=list)
    records: dict[int, DecisionRecord] = field(default_factory=dict)
    duplicates: dict[int, list[Path]] = field(default_factory=dict)
    failures: list[LoadFailure] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def build(cls, results: Iterable[tuple[Path, ParsedRecord | LoadFailure]]) -> RecordIndex:
        index = cls()
        owners: dict[int, list[Path]] = {}
        for path, outcome in results:
            if isinstance(outcome, LoadFailure):
                index.failures.append(outcome)
                continue
            record = outcome.record
            index.entries.append(record)
            index.warnings.extend(outcome.warnings)
            owners.setdefault(record.number, []).append(path)
            index.records.setdefault(record.number, record)
        index.duplicates = {n: paths for n, paths in owners.items() if len(paths) > 1}
        return index

    @property
    def next_number(self) -> int:
        """One past the highest number in use; gaps are never reused.

        Filename numbers count as well as heading numbers, so a mislabelled
        or unparseable ``0009-*.md`` still takes 9.
        """
        used = [r.number for r in self.entries]
        paths = [r.path for r in self.entries if r.path is not None] + [f.path for f in self.failures]
        used.extend(n for n in (number_from_filename(p.name) for p in paths) if n is not None)
        return max(used, default=0) + 1

    @property
    def numbers(self) -> list[int]:
        return sorted(self.records)

    def get(self, number: int) -> DecisionRecord | None:
        return self.records.get(number)

    def titles(self) -> dict[int, str]:
        return {number: record.title for number, record in self.records.items()}

    def match_entries(self) -> list[tuple[int, str, str]]:
        """``(number, title, filename stem)`` triples for fuzzy lookup."""
        return [
            (record.number, record.title, record.path.stem if record.path else record.filename[:-3])
            for record in self.records.values()
        ]

    def __iter__(self) -> Iterator[DecisionRecord]:
        return iter(self.records[n] for n in self.numbers)

    def __len__(self) -> int:
        return len(self.records)


def _read_one(path: Path) -> ParsedRecord | LoadFailure:
    try:
        return read_record_file(path)
    except RecordParseError as exc:
        return LoadFailure(path=path, reason=exc.reason)
    except (OSError, UnicodeDecodeError) as exc:
        return LoadFailure(path=path, reason=f"unreadable: {exc}")


class RecordRepository:
    """File-backed access to the records of one repository."""

    def __init__(self, context: RepositoryContext, *, templates: RecordTemplates | None = None) -> None:
        self.context = context
        self._templates = templates
        self._lock = threading.Lock()
        self._reserved: set[int] = set()

    @property
    def records_dir(self) -> Path:
        return self.context.records_dir

    @property
    def templates(self) -> RecordTemplates:
        if self._templates is None:
            self._templates = RecordTemplates(repo_root=self.context.root)
        return self._templates

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def load(self) -> RecordIndex:
        """Scan the records directory and parse every record file.

        Per-file failures are collected, never raised. With parallel reads
        enabled, files are parsed on a thread pool; results keep filename
        order so the index does not depend on completion order.
        """
        files = find_record_files(self.records_dir)
        settings = self.context.index
        if settings.parallel_reads and len(files) > 1:
            with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
                outcomes = list(pool.map(_read_one, files))
        else:
            outcomes = [_read_one(path) for path in files]

        index = RecordIndex.build(zip(files, outcomes, strict=True))
        logger.debug(
            "Loaded %d records from %s (%d failures, %d duplicate numbers)",
            len(index.entries),
            self.records_dir,
            len(index.failures),
            len(index.duplicates),
        )
        return index

    def get(self, number: int, *, index: RecordIndex | None = None) -> DecisionRecord | None:
        return (index or self.load()).get(number)

    def find(self, term: str, *, index: RecordIndex | None = None) -> MatchOutcome:
        """Resolve a number or free-text term to one record."""
        index = index or self.load()
        return resolve(
            term,
            index.match_entries(),
            min_score=self.context.search.min_score,
            margin=self.context.search.ambiguity_margin,
        )

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def path_for(self, record: DecisionRecord) -> Path:
        """Existing file for *record*, else its canonical location."""
        if record.path is not None:
            return record.path
        return resolve_record_path(self.records_dir, record.filename)

    def render(self, record: DecisionRecord, *, titles: Mapping[int, str] | None = None) -> str:
        """Serialize *record* in the configured mode."""
        return serialize_record(record, self.context.mode, link_titles=titles)

    def save(self, record: DecisionRecord, *, titles: Mapping[int, str] | None = None) -> Path:
        """Write *record* in the configured mode and update its path.

        *titles* names link targets in legacy link sentences; when omitted
        they are looked up from a fresh scan.
        """
        if titles is None and record.links:
            titles = self.load().titles()
        path = self.path_for(record)
        write_record_file(path, self.render(record, titles=titles))
        record.path = path
        record.source_encoding = self.context.mode
        logger.debug("Wrote record %d to %s", record.number, path)
        return path

    def save_all(self, records: Iterable[DecisionRecord], *, titles: Mapping[int, str] | None = None) -> list[Path]:
        """Write several records as one unit.

        Every file is rendered before the first write. If a write fails,
        files already written are restored from their previous content
        (or removed when new) and the error is re-raised.
        """
        records = list(records)
        if titles is None:
            titles = self.load().titles()
        staged = [(record, self.path_for(record), self.render(record, titles=titles)) for record in records]
        originals: list[tuple[Path, str | None]] = []
        try:
            for record, path, text in staged:
                previous = path.read_text(encoding="utf-8") if path.exists() else None
                write_record_file(path, text)
                originals.append((path, previous))
                record.path = path
                record.source_encoding = self.context.mode
        except OSError:
            logger.warning("Write failed; restoring %d file(s)", len(originals))
            for path, previous in reversed(originals):
                if previous is None:
                    path.unlink(missing_ok=True)
                else:
                    path.write_text(previous, encoding="utf-8")
            raise
        return [path for _record, path, _text in staged]

    def reserve_number(self) -> int:
        """Hand out the next free number; never the same one twice."""
        with self._lock:
            index = self.load()
            number = max(index.next_number, max(self._reserved, default=0) + 1)
            self._reserved.add(number)
            return number

    def render_sections(self, template: str, **context: Any) -> dict[str, str]:
        """Initial section mapping from a template family."""
        body = self.templates.render_body(template, **context)
        return dict(split_sections(body).sections)

    def create(
        self,
        title: str,
        *,
        status: str | None = None,
        links: Iterable[Link] = (),
        metadata: RecordMetadata | None = None,
        template: str | None = None,
        sections: Mapping[str, str] | None = None,
        record_date: dt.date | None = None,
        **template_context: Any,
    ) -> DecisionRecord:
        """Create, validate and write a new record with the next number.

        Raises:
            RecordValidationError: Title empty or a link targets the record itself.
            OSError: The file could not be written.
        """
        number = self.reserve_number()
        title = title.strip()
        if sections is None:
            sections = self.render_sections(
                template or self.context.templates.format,
                number=number,
                title=title,
                records_dir=self.context.relative_records_dir,
                **template_context,
            )
        record = DecisionRecord(
            number=number,
            title=title,
            status=format_status(status or RecordStatus.PROPOSED.value, self.context.mode),
            date=record_date or dt.date.today(),
            sections=dict(sections),
            links=list(links),
            metadata=metadata or RecordMetadata(),
        )
        record.check()
        self.save(record)
        return record
