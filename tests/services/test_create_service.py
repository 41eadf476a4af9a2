"""Tests for CreateService: new records, supersede-on-create, init."""

from __future__ import annotations

from pathlib import Path

from adrctl.config.models import RepositoryContext
from adrctl.domain.lifecycle import SourceEncoding
from adrctl.domain.links import AMENDED_BY, AMENDS, SUPERSEDED_BY, SUPERSEDES, Link
from adrctl.domain.records import RecordMetadata
from adrctl.infrastructure.repository import RecordRepository
from adrctl.services.create import INIT_TITLE, CreateService
from adrctl.services.result import ErrorCode
from factories import make_record, write_records


class TestCreateRecord:
    def test_first_record(self, repo: RecordRepository) -> None:
        result = CreateService(repo).create_record("Use Kafka")
        assert result.ok
        assert result.data["number"] == 1
        assert result.data["status"] == "Proposed"
        assert Path(result.data["path"]).name == "0001-use-kafka.md"

    def test_next_number_after_gap(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "A"), make_record(4, "D"))
        assert CreateService(repo).create_record("E").data["number"] == 5

    def test_supersedes(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use MySQL"))
        result = CreateService(repo).create_record("Use PostgreSQL", supersedes=[1])
        assert result.ok
        assert result.data["updated"] == [1]
        index = repo.load()
        assert index.records[2].links == [Link(kind=SUPERSEDES, target=1)]
        assert index.records[1].status == "Superseded"
        assert index.records[1].links == [Link(kind=SUPERSEDED_BY, target=2)]

    def test_typed_links(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use Kafka"))
        CreateService(repo).create_record("Tune Kafka", links=[("Amends", 1)])
        index = repo.load()
        assert index.records[2].links == [Link(kind=AMENDS, target=1)]
        assert index.records[1].links == [Link(kind=AMENDED_BY, target=2)]

    def test_missing_target_writes_nothing(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use Kafka"))
        result = CreateService(repo).create_record("Tune Kafka", links=[("Amends", 7)])
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_FOUND
        assert [p.name for p in repo.records_dir.iterdir()] == ["0001-use-kafka.md"]

    def test_blank_title(self, repo: RecordRepository) -> None:
        result = CreateService(repo).create_record("  ")
        assert result.error is not None
        assert result.error.code == ErrorCode.VALIDATION_FAILED

    def test_extended_metadata(self, extended_repo: RecordRepository) -> None:
        result = CreateService(extended_repo).create_record(
            "Use Kafka",
            status="accepted",
            metadata=RecordMetadata(deciders=["alice"], tags=["streaming"]),
        )
        record = extended_repo.load().records[1]
        assert result.data["status"] == "accepted"
        assert record.metadata.deciders == ["alice"]
        assert record.metadata.tags == ["streaming"]

    def test_not_initialized(self, tmp_path: Path) -> None:
        repo = RecordRepository(RepositoryContext.for_directory(tmp_path))
        result = CreateService(repo).create_record("Use Kafka")
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_INITIALIZED


class TestInit:
    def test_legacy(self, tmp_path: Path) -> None:
        repo = RecordRepository(RepositoryContext.for_directory(tmp_path, mode=SourceEncoding.LEGACY))
        result = CreateService(repo).init_repository()
        assert result.ok
        assert (tmp_path / ".adr-dir").read_text(encoding="utf-8") == "doc/adr\n"
        record = repo.load().records[1]
        assert record.title == INIT_TITLE
        assert record.status == "Accepted"
        assert "doc/adr" in record.sections["Consequences"]

    def test_extended(self, tmp_path: Path) -> None:
        ctx = RepositoryContext.for_directory(tmp_path, records_dir="docs/decisions", mode="extended")
        repo = RecordRepository(ctx)
        result = CreateService(repo).init_repository()
        assert result.ok
        config = (tmp_path / "adrs.toml").read_text(encoding="utf-8")
        assert 'records_dir = "docs/decisions"' in config
        assert 'mode = "extended"' in config
        path = tmp_path / "docs" / "decisions" / "0001-record-architecture-decisions.md"
        assert path.read_text(encoding="utf-8").startswith("---\n")
        assert repo.load().records[1].status == "accepted"

    def test_already_initialized(self, tmp_path: Path) -> None:
        repo = RecordRepository(RepositoryContext.for_directory(tmp_path))
        svc = CreateService(repo)
        svc.init_repository()
        result = svc.init_repository()
        assert result.error is not None
        assert result.error.code == ErrorCode.ALREADY_INITIALIZED
