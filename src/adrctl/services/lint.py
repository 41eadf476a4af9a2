"""LintService — per-file checks on how each record is written.

Doctor looks at the repository as a whole (numbering, links between
records). Lint looks inside one file at a time: the title heading, the
date, the sections a decision record is expected to carry, and the
status wording. Findings share doctor's :class:`Finding` model.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from adrctl.domain.content import detect_encoding, parse_frontmatter, split_sections
from adrctl.domain.lifecycle import RecordStatus, SourceEncoding, match_status
from adrctl.domain.records import DecisionRecord
from adrctl.infrastructure.matching import MatchStatus
from adrctl.services._helpers import failure, not_initialized
from adrctl.services.base import BaseService
from adrctl.services.doctor import DoctorReport, Finding, Severity
from adrctl.services.result import ErrorCode, ServiceResult
from adrctl.services.telemetry import annotate, trace_span, traced

logger = logging.getLogger(__name__)

type RuleCheck = Callable[[DecisionRecord, str], list[Finding]]

# Section heading prefixes that satisfy each required part (nygard and MADR).
REQUIRED_SECTIONS: dict[str, tuple[str, ...]] = {
    "context": ("context",),
    "decision": ("decision", "decision outcome"),
}


def _headings(record: DecisionRecord) -> list[str]:
    return [heading.strip().casefold() for heading in record.sections]


def check_title_format(record: DecisionRecord, text: str) -> list[Finding]:
    """Legacy files need ``# N. Title``; extended headings must agree with the header."""
    legacy = detect_encoding(text) is SourceEncoding.LEGACY
    heading = split_sections(text if legacy else parse_frontmatter(text)[1]).heading
    expected = record.full_title
    if legacy:
        if heading != expected:
            return [
                Finding(
                    Severity.ERROR,
                    "title-format",
                    f"Heading should read '# {expected}', found '# {heading or ''}'",
                    record.number,
                    record.path,
                )
            ]
    elif heading is not None and heading not in (expected, record.title):
        return [
            Finding(
                Severity.WARN,
                "title-format",
                f"Heading '# {heading}' does not match the header title '{record.title}'",
                record.number,
                record.path,
            )
        ]
    return []


def check_date(record: DecisionRecord, text: str) -> list[Finding]:
    if record.date is None:
        message = "No date recorded (expected YYYY-MM-DD)"
        return [Finding(Severity.WARN, "date-format", message, record.number, record.path)]
    return []


def check_required_sections(record: DecisionRecord, text: str) -> list[Finding]:
    headings = _headings(record)
    findings = []
    for part, prefixes in REQUIRED_SECTIONS.items():
        if not any(h == p or h.startswith(f"{p} ") for h in headings for p in prefixes):
            findings.append(
                Finding(Severity.WARN, "required-sections", f"Missing a {part} section", record.number, record.path)
            )
    if not any("consequences" in h for h in headings) and "### consequences" not in text.casefold():
        findings.append(
            Finding(Severity.INFO, "required-sections", "No consequences recorded", record.number, record.path)
        )
    return findings


def check_empty_sections(record: DecisionRecord, text: str) -> list[Finding]:
    return [
        Finding(Severity.INFO, "empty-sections", f"Section '{heading}' is empty", record.number, record.path)
        for heading, body in record.sections.items()
        if not body.strip()
    ]


def check_status_value(record: DecisionRecord, text: str) -> list[Finding]:
    if not record.status.strip() or match_status(record.status) is not None:
        return []
    known = ", ".join(s.value for s in RecordStatus)
    return [
        Finding(
            Severity.INFO,
            "status-value",
            f"Custom status '{record.status}' (known: {known})",
            record.number,
            record.path,
        )
    ]


RULES: dict[str, RuleCheck] = {
    "title-format": check_title_format,
    "date-format": check_date,
    "required-sections": check_required_sections,
    "empty-sections": check_empty_sections,
    "status-value": check_status_value,
}


def lint_record(record: DecisionRecord, text: str) -> list[Finding]:
    """Every rule over one record and the text it was parsed from."""
    findings: list[Finding] = []
    for rule in RULES.values():
        findings.extend(rule(record, text))
    return findings


def lint_records(records: Iterable[DecisionRecord]) -> DoctorReport:
    """Lint each record's file; a rule with no findings adds one ``OK``."""
    report = DoctorReport()
    for record in records:
        if record.path is None:
            continue
        try:
            text = record.path.read_text(encoding="utf-8")
        except OSError as exc:
            report.findings.append(Finding(Severity.ERROR, "unreadable", str(exc), record.number, record.path))
            continue
        with trace_span(f"lint {record.path.name}"):
            findings = lint_record(record, text)
            annotate(findings=len(findings))
        report.findings.extend(findings)
    fired = {f.check for f in report.findings}
    report.findings.extend(Finding(Severity.OK, name, "No problems found") for name in RULES if name not in fired)
    return report


class LintService(BaseService):
    """Checks record files one by one without changing them."""

    @traced
    def lint(self, term: str | None = None) -> ServiceResult:
        """Lint every record, or only the one *term* resolves to."""
        op = "lint"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)

        index = self._load()
        if term is None:
            records = list(index.entries)
        else:
            outcome = self._repo.find(term, index=index)
            if outcome.status is MatchStatus.AMBIGUOUS:
                return failure(
                    op,
                    ErrorCode.AMBIGUOUS,
                    f"{term!r} matches several records; be more specific or use a number",
                    detail={
                        "term": term,
                        "candidates": [{"number": c.number, "title": c.title} for c in outcome.candidates],
                    },
                )
            if outcome.match is None:
                return failure(op, ErrorCode.NOT_FOUND, f"No record matches {term!r}", detail={"term": term})
            records = [index.records[outcome.match.number]]

        report = lint_records(records)
        if term is None:
            report.findings.extend(
                Finding(Severity.ERROR, "parse-errors", f"Could not parse: {f.reason}", None, f.path)
                for f in index.failures
            )
        logger.debug("Linted %d records", len(records))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "records_dir": str(self.context.records_dir),
                "record_count": len(records),
                "has_blocking": report.has_blocking,
                "counts": report.counts(),
                "findings": [f.to_dict() for f in report.sorted()],
            },
        )
