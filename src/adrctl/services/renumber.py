"""Renumber a set of records into a destination and remap their links.

One computation, two outcomes: :func:`renumber_with_remap` always builds a
:class:`RenumberPlan` with the pure :func:`plan_renumber`; only when
``write`` is true does it hand the plan to :func:`commit_plan`. A dry run
and a real run therefore see exactly the same mapping, rewrites and
warnings.

Only links between records of the incoming set are rewritten. A link that
leaves the set keeps its number and produces a warning.

Commit is staged: every file is rendered in memory before the first
write. A failed write stops the commit; the :class:`CommitReport` lists
what was written, what failed and what was never attempted. There is no
automatic rollback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from adrctl.domain.ids import number_from_filename
from adrctl.domain.records import DecisionRecord, RecordValidationError
from adrctl.infrastructure.filesystem import find_record_files, write_record_file
from adrctl.infrastructure.repository import RecordRepository
from adrctl.services.base import load_index
from adrctl.services.telemetry import annotate, trace_span

logger = logging.getLogger(__name__)


class RenumberCollisionError(ValueError):
    """Target numbers already exist in the destination and overwrite is off."""

    def __init__(self, collisions: Sequence[int], plan: RenumberPlan) -> None:
        self.collisions = list(collisions)
        self.plan = plan
        numbers = ", ".join(str(n) for n in self.collisions)
        super().__init__(f"Destination already has record(s) {numbers}; use overwrite to replace them")


class RenumberValidationError(RecordValidationError):
    """Some renumbered records would break a record invariant. Nothing is written."""

    def __init__(self, invalid: Mapping[int, list[str]], plan: RenumberPlan) -> None:
        self.invalid = dict(invalid)
        self.plan = plan
        super().__init__(
            [f"record {number}: {error}" for number, errors in self.invalid.items() for error in errors]
        )


@dataclass(frozen=True)
class LinkRewrite:
    """One link target changed by the mapping (``number`` is the new source number)."""

    number: int
    kind: str
    old_target: int
    new_target: int


@dataclass
class RenumberPlan:
    """Everything a commit would do, computed without touching disk."""

    mapping: dict[int, int] = field(default_factory=dict)
    records: list[DecisionRecord] = field(default_factory=list)
    rewrites: list[LinkRewrite] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    collisions: list[int] = field(default_factory=list)
    # Existing destination files that an overwrite removes (name differs).
    replaced: dict[int, list[Path]] = field(default_factory=dict)
    # New number -> validation errors of the renumbered copy.
    invalid: dict[int, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "mapping": {str(old): new for old, new in self.mapping.items()},
            "files": [r.path.name if r.path else r.filename for r in self.records],
            "rewrites": [
                {"number": rw.number, "kind": rw.kind, "from": rw.old_target, "to": rw.new_target}
                for rw in self.rewrites
            ],
            "collisions": list(self.collisions),
            "replaced": {str(n): [p.name for p in paths] for n, paths in self.replaced.items()},
            "invalid": {str(n): errors for n, errors in self.invalid.items()},
        }


@dataclass
class CommitReport:
    written: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)
    not_attempted: list[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed and not self.not_attempted

    def to_dict(self) -> dict[str, object]:
        return {
            "written": list(self.written),
            "failed": {str(n): reason for n, reason in self.failed.items()},
            "not_attempted": list(self.not_attempted),
        }


@dataclass
class RenumberOutcome:
    plan: RenumberPlan
    report: CommitReport | None = None


def plan_renumber(
    records: Iterable[DecisionRecord],
    starting_number: int | None,
    *,
    records_dir: Path,
    occupied: Mapping[int, Sequence[Path]],
) -> RenumberPlan:
    """Compute the renumbering of *records* into *records_dir*.

    Records are numbered consecutively from *starting_number* in incoming
    order; ``None`` keeps each record's own number. *occupied* maps the
    numbers already present in the destination to their files.
    """
    records = list(records)
    plan = RenumberPlan()
    if starting_number is not None and starting_number < 1:
        raise ValueError(f"starting number must be positive, got {starting_number}")

    new_numbers: list[int] = []
    for offset, record in enumerate(records):
        new_number = starting_number + offset if starting_number is not None else record.number
        new_numbers.append(new_number)
        if record.number in plan.mapping:
            plan.warnings.append(
                f"Incoming records share number {record.number}; links to it follow the first one"
            )
            continue
        plan.mapping[record.number] = new_number

    seen: set[int] = set()
    for record, new_number in zip(records, new_numbers, strict=True):
        copy = record.model_copy(deep=True)
        copy.number = new_number
        copy.source_encoding = None

        remapped = []
        for link in copy.links:
            if link.target in plan.mapping:
                new_target = plan.mapping[link.target]
                if new_target != link.target:
                    plan.rewrites.append(LinkRewrite(new_number, link.kind, link.target, new_target))
                remapped.append(link.retarget(new_target))
            else:
                plan.warnings.append(
                    f"Record {record.number} -> {new_number}: {link.kind} {link.target} "
                    "points outside the incoming set; kept unchanged"
                )
                remapped.append(link)
        copy.links = remapped
        copy.path = records_dir / copy.filename
        check = copy.validate_record()
        if not check.valid:
            plan.invalid[new_number] = check.errors

        if new_number in occupied or new_number in seen:
            plan.collisions.append(new_number)
            stale = [p for p in occupied.get(new_number, ()) if p.name != copy.path.name]
            if stale:
                plan.replaced[new_number] = stale
        seen.add(new_number)
        plan.records.append(copy)

    plan.collisions = sorted(set(plan.collisions))
    return plan


def commit_plan(plan: RenumberPlan, *, render: Callable[[DecisionRecord], str], overwrite: bool) -> CommitReport:
    """Write every planned record; stop at the first failed write."""
    staged = [(record, render(record)) for record in plan.records]
    report = CommitReport()
    for position, (record, text) in enumerate(staged):
        if record.path is None:
            raise ValueError(f"Planned record {record.number} has no destination path")
        try:
            write_record_file(record.path, text)
            if overwrite:
                for stale in plan.replaced.get(record.number, ()):
                    stale.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Renumber commit stopped at record %d: %s", record.number, exc)
            report.failed[record.number] = str(exc)
            report.not_attempted = [r.number for r, _ in staged[position + 1 :]]
            return report
        report.written.append(record.number)
    return report


def occupied_numbers(records_dir: Path, entries: Iterable[DecisionRecord]) -> dict[int, list[Path]]:
    """Numbers taken in the destination, from parsed records and filenames.

    Filenames count too, so an unparseable ``0006-*.md`` still blocks 6.
    """
    occupied: dict[int, list[Path]] = {}
    for record in entries:
        if record.path is not None:
            occupied.setdefault(record.number, []).append(record.path)
    for path in find_record_files(records_dir):
        number = number_from_filename(path.name)
        if number is not None and path not in occupied.get(number, []):
            occupied.setdefault(number, []).append(path)
    return occupied


def renumber_with_remap(
    records: Iterable[DecisionRecord],
    starting_number: int | None,
    *,
    destination: RecordRepository,
    write: bool,
    overwrite: bool = False,
) -> RenumberOutcome:
    """Plan the renumbering and, when *write* is true, commit it.

    Raises:
        RenumberValidationError: a renumbered record is invalid (bad number,
            blank title or a link to itself). Raised for dry runs too.
        RenumberCollisionError: *write* is true, *overwrite* is false and
            some target numbers are taken. Nothing has been written.
    """
    index = load_index(destination)
    with trace_span("plan", starting_number=starting_number):
        plan = plan_renumber(
            records,
            starting_number,
            records_dir=destination.records_dir,
            occupied=occupied_numbers(destination.records_dir, index.entries),
        )
        annotate(records=len(plan.records), rewrites=len(plan.rewrites), collisions=len(plan.collisions))
    logger.debug(
        "Renumber plan: %d records, %d rewrites, %d collisions",
        len(plan.records),
        len(plan.rewrites),
        len(plan.collisions),
    )
    if plan.invalid:
        raise RenumberValidationError(plan.invalid, plan)
    if not write:
        return RenumberOutcome(plan=plan)
    if plan.collisions and not overwrite:
        raise RenumberCollisionError(plan.collisions, plan)

    titles = index.titles()
    titles.update({record.number: record.title for record in plan.records})
    with trace_span("commit", overwrite=overwrite):
        report = commit_plan(
            plan,
            render=lambda record: destination.render(record, titles=titles),
            overwrite=overwrite,
        )
        annotate(written=len(report.written), failed=len(report.failed), not_attempted=len(report.not_attempted))
    return RenumberOutcome(plan=plan, report=report)
