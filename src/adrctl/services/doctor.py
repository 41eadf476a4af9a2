"""DoctorService — read-only consistency checks over a repository.

Each check is an independent function over the loaded index and its link
graph. A check that finds nothing contributes one ``OK`` finding so the
report always shows every check that ran. Only ``ERROR`` findings block.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from adrctl.domain.ids import CANONICAL_FILENAME_PATTERN, format_number
from adrctl.domain.links import SUPERSEDED_BY, SUPERSEDES
from adrctl.infrastructure.graph.engine import GraphEngine
from adrctl.infrastructure.repository import RecordIndex
from adrctl.services._helpers import not_initialized
from adrctl.services.base import BaseService
from adrctl.services.result import ServiceResult
from adrctl.services.telemetry import annotate, trace_span, traced


class Severity(StrEnum):
    OK = "ok"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Sort key: errors first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.ERROR: 0, Severity.WARN: 1, Severity.INFO: 2, Severity.OK: 3}


@dataclass(frozen=True)
class Finding:
    severity: Severity
    check: str
    message: str
    number: int | None = None
    path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["path"] = str(self.path) if self.path else None
        return data


@dataclass
class DoctorReport:
    findings: list[Finding] = field(default_factory=list)

    @property
    def has_blocking(self) -> bool:
        return any(f.severity is Severity.ERROR for f in self.findings)

    def sorted(self) -> list[Finding]:
        """Severity, then record number (repository-wide first), then check name."""
        return sorted(
            self.findings,
            key=lambda f: (f.severity.rank, -1 if f.number is None else f.number, f.check),
        )

    def counts(self) -> dict[str, int]:
        totals = {s.value: 0 for s in Severity}
        for finding in self.findings:
            totals[finding.severity.value] += 1
        return totals

    def problems(self) -> list[Finding]:
        return [f for f in self.sorted() if f.severity is not Severity.OK]


type Check = Callable[[RecordIndex, GraphEngine], list[Finding]]


def check_file_naming(index: RecordIndex, graph: GraphEngine) -> list[Finding]:
    findings = []
    for record in index.entries:
        if record.path is None:
            continue
        name = record.path.name
        match = CANONICAL_FILENAME_PATTERN.match(name)
        if match is None or int(match.group("number")) != record.number:
            findings.append(
                Finding(
                    Severity.WARN,
                    "file-naming",
                    f"File '{name}' should be named '{format_number(record.number)}-<slug>.md'",
                    record.number,
                    record.path,
                )
            )
    return findings


def check_duplicate_numbers(index: RecordIndex, graph: GraphEngine) -> list[Finding]:
    return [
        Finding(
            Severity.ERROR,
            "duplicate-numbers",
            f"Number {number} is used by {len(paths)} files: {', '.join(p.name for p in paths)}",
            number,
            paths[0],
        )
        for number, paths in sorted(index.duplicates.items())
    ]


def check_numbering_gaps(index: RecordIndex, graph: GraphEngine) -> list[Finding]:
    numbers = index.numbers
    if not numbers:
        return []
    present = set(numbers)
    missing = [n for n in range(numbers[0], numbers[-1] + 1) if n not in present]
    if not missing:
        return []
    if len(missing) <= 5:
        listed = ", ".join(map(str, missing))
    else:
        listed = f"{', '.join(map(str, missing[:3]))}, ... ({len(missing)} total)"
    return [Finding(Severity.INFO, "numbering-gaps", f"Missing numbers in sequence: {listed}")]


def check_broken_links(index: RecordIndex, graph: GraphEngine) -> list[Finding]:
    findings = []
    for source, kind, target in graph.dangling_links():
        record = index.records[source]
        findings.append(
            Finding(
                Severity.ERROR,
                "broken-links",
                f"Record {source} '{record.title}' links to missing record {target} ({kind})",
                source,
                record.path,
            )
        )
    return findings


def check_superseded_links(index: RecordIndex, graph: GraphEngine) -> list[Finding]:
    findings = []
    for record in index:
        if record.superseded and not record.links_of_kind(SUPERSEDED_BY):
            findings.append(
                Finding(
                    Severity.WARN,
                    "superseded-links",
                    f"Record {record.number} '{record.title}' is superseded but has no 'Superseded by' link",
                    record.number,
                    record.path,
                )
            )
    for source, target in graph.missing_reciprocals(SUPERSEDED_BY):
        findings.append(
            Finding(
                Severity.WARN,
                "superseded-links",
                f"Record {target} supersedes {source} but lacks a '{SUPERSEDES}' link back",
                target,
                index.records[target].path,
            )
        )
    return findings


def check_parse_errors(index: RecordIndex, graph: GraphEngine) -> list[Finding]:
    return [
        Finding(Severity.ERROR, "parse-errors", f"{failure.path.name}: {failure.reason}", None, failure.path)
        for failure in index.failures
    ]


def check_missing_status(index: RecordIndex, graph: GraphEngine) -> list[Finding]:
    return [
        Finding(
            Severity.WARN,
            "missing-status",
            f"Record {record.number} '{record.title}' has no status",
            record.number,
            record.path,
        )
        for record in index.entries
        if not record.status.strip()
    ]


CHECKS: dict[str, Check] = {
    "file-naming": check_file_naming,
    "duplicate-numbers": check_duplicate_numbers,
    "numbering-gaps": check_numbering_gaps,
    "broken-links": check_broken_links,
    "superseded-links": check_superseded_links,
    "parse-errors": check_parse_errors,
    "missing-status": check_missing_status,
}


def run_checks(index: RecordIndex) -> DoctorReport:
    """Run every check over *index*; never mutates anything."""
    graph = GraphEngine(index)
    report = DoctorReport()
    for name, check in CHECKS.items():
        with trace_span(name):
            findings = check(index, graph)
            annotate(findings=len(findings))
        report.findings.extend(findings or [Finding(Severity.OK, name, "No problems found")])
    return report


class DoctorService(BaseService):
    """Reports repository problems without changing any file."""

    @traced
    def check(self) -> ServiceResult:
        op = "doctor"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)

        index = self._load()
        report = run_checks(index)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "records_dir": str(self.context.records_dir),
                "record_count": len(index.entries),
                "has_blocking": report.has_blocking,
                "counts": report.counts(),
                "findings": [f.to_dict() for f in report.sorted()],
            },
            warnings=list(index.warnings),
        )
