"""Tests for telemetry spans over service calls."""

from __future__ import annotations

import pytest

from adrctl.domain.interchange import build_bulk_export, dump_document
from adrctl.infrastructure.repository import RecordRepository
from adrctl.services.doctor import CHECKS, DoctorService
from adrctl.services.query import QueryService
from adrctl.services.result import ServiceResult
from adrctl.services.telemetry import annotate, enable_telemetry, trace_span, traced
from adrctl.services.transfer import ImportService
from factories import make_record, write_records


class _Failing:
    @traced
    def run(self) -> ServiceResult:
        raise ValueError("boom")


class TestTraceSpan:
    def test_disabled_yields_none(self) -> None:
        with trace_span("load") as span:
            assert span is None

    def test_without_root_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("load") as span:
            assert span is None
        annotate(files=1)

    def test_exception_propagates(self) -> None:
        enable_telemetry()
        with pytest.raises(ValueError, match="boom"):
            _Failing().run()


class TestServiceSpans:
    def test_off_by_default(self, repo: RecordRepository) -> None:
        assert QueryService(repo).list_records().meta is None

    def test_load_annotated(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use Kafka"), make_record(2, "Use Avro"))
        (repo.records_dir / "0003-broken.md").write_text("no heading\n", encoding="utf-8")
        enable_telemetry()
        tree = QueryService(repo).list_records().meta["telemetry"]
        assert tree["name"] == "QueryService.list_records"
        assert tree["annotations"]["op"] == "list_records"
        assert tree["annotations"]["ok"] is True
        [load] = tree["children"]
        assert load["name"] == "load"
        assert load["annotations"] == {"mode": "legacy", "files": 3, "records": 2, "failures": 1, "duplicates": 0}

    def test_import_plan_and_commit(self, repo: RecordRepository) -> None:
        records = [make_record(1, "Use Kafka"), make_record(2, "Use Avro"), make_record(3, "Tune retention")]
        text = dump_document(build_bulk_export(records, records_dir="doc/adr", repository_name="upstream"))
        enable_telemetry()
        children = ImportService(repo).import_records(text, renumber=True).meta["telemetry"]["children"]
        assert [c["name"] for c in children] == ["load", "load", "plan", "commit"]
        assert children[2]["annotations"]["records"] == 3
        assert children[3]["annotations"] == {"overwrite": False, "written": 3, "failed": 0, "not_attempted": 0}

    def test_doctor_checks_count_findings(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use Kafka"), make_record(3, "Use Avro"))
        enable_telemetry()
        children = DoctorService(repo).check().meta["telemetry"]["children"]
        assert [c["name"] for c in children] == ["load", *CHECKS]
        gaps = next(c for c in children if c["name"] == "numbering-gaps")
        assert gaps["annotations"] == {"findings": 1}
