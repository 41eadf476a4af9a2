"""Tests for LintService per-file checks."""

from __future__ import annotations

from adrctl.infrastructure.repository import RecordRepository
from adrctl.services.lint import RULES, LintService
from adrctl.services.result import ErrorCode
from factories import make_record, write_records

FULL_SECTIONS = {
    "Context": "Orders arrive faster than we can process them.",
    "Decision": "We will use Kafka.",
    "Consequences": "We run a Kafka cluster.",
}

LEGACY_BODY = (
    "## Status\n\nAccepted\n\n"
    "## Context\n\nSome context.\n\n"
    "## Decision\n\nWe will.\n\n"
    "## Consequences\n\nSome.\n"
)


def _problems(result) -> list[tuple[str, str, int | None]]:
    return [(f["severity"], f["check"], f["number"]) for f in result.data["findings"] if f["severity"] != "ok"]


class TestLint:
    def test_clean_records(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use Kafka", sections=FULL_SECTIONS))
        result = LintService(repo).lint()
        assert result.ok
        assert _problems(result) == []
        assert result.data["has_blocking"] is False
        assert result.data["counts"]["ok"] == len(RULES)

    def test_legacy_heading_without_number(self, repo: RecordRepository) -> None:
        (repo.records_dir / "0002-use-kafka.md").write_text(
            f"# Use Kafka\n\nDate: 2024-01-02\n\n{LEGACY_BODY}", encoding="utf-8"
        )
        result = LintService(repo).lint()
        assert _problems(result) == [("error", "title-format", 2)]
        assert result.data["has_blocking"] is True

    def test_missing_date(self, repo: RecordRepository) -> None:
        (repo.records_dir / "0001-use-kafka.md").write_text(f"# 1. Use Kafka\n\n{LEGACY_BODY}", encoding="utf-8")
        assert _problems(LintService(repo).lint()) == [("warn", "date-format", 1)]

    def test_missing_sections(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use Kafka", sections={"Context": "Why."}))
        findings = LintService(repo).lint().data["findings"]
        messages = [f["message"] for f in findings if f["check"] == "required-sections"]
        assert messages == ["Missing a decision section", "No consequences recorded"]

    def test_madr_headings_count(self, extended_repo: RecordRepository) -> None:
        sections = {
            "Context and Problem Statement": "Why.",
            "Decision Outcome": "Chosen option: Kafka.\n\n### Consequences\n\n* Good, because it scales.",
        }
        write_records(extended_repo, make_record(1, "Use Kafka", sections=sections))
        assert _problems(LintService(extended_repo).lint()) == []

    def test_empty_section(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use Kafka", sections={**FULL_SECTIONS, "Notes": ""}))
        findings = LintService(repo).lint().data["findings"]
        empty = [f for f in findings if f["check"] == "empty-sections" and f["severity"] == "info"]
        assert [f["message"] for f in empty] == ["Section 'Notes' is empty"]

    def test_custom_status_is_info(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use Kafka", status="Draft", sections=FULL_SECTIONS))
        result = LintService(repo).lint()
        assert _problems(result) == [("info", "status-value", 1)]
        assert result.data["has_blocking"] is False

    def test_extended_heading_mismatch(self, extended_repo: RecordRepository) -> None:
        (extended_repo.records_dir / "0001-use-kafka.md").write_text(
            "---\nnumber: 1\ntitle: Use Kafka\nstatus: accepted\ndate: 2024-01-02\n---\n"
            "# 1. Use RabbitMQ\n\n## Context\n\nWhy.\n\n## Decision\n\nDo.\n\n## Consequences\n\nSome.\n",
            encoding="utf-8",
        )
        assert _problems(LintService(extended_repo).lint()) == [("warn", "title-format", 1)]

    def test_parse_failure_is_error(self, repo: RecordRepository) -> None:
        (repo.records_dir / "0003-broken.md").write_text("no heading\n", encoding="utf-8")
        result = LintService(repo).lint()
        assert [f["check"] for f in result.data["findings"] if f["severity"] == "error"] == ["parse-errors"]


class TestLintOneRecord:
    def test_by_term(self, repo: RecordRepository) -> None:
        write_records(
            repo,
            make_record(1, "Use Kafka", sections=FULL_SECTIONS),
            make_record(2, "Use Avro", sections={"Context": "Why."}),
        )
        result = LintService(repo).lint("1")
        assert result.data["record_count"] == 1
        assert _problems(result) == []

    def test_unknown_term(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use Kafka"))
        result = LintService(repo).lint("99")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_FOUND

    def test_not_initialized(self, repo: RecordRepository) -> None:
        repo.records_dir.rmdir()
        result = LintService(repo).lint()
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_INITIALIZED
