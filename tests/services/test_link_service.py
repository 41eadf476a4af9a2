"""Tests for LinkService: bidirectional links and status changes."""

from __future__ import annotations

from adrctl.domain.links import AMENDED_BY, AMENDS, SUPERSEDED_BY, SUPERSEDES, Link
from adrctl.infrastructure.repository import RecordRepository
from adrctl.services.links import LinkService
from adrctl.services.result import ErrorCode
from factories import make_record, write_records


def _seed(repo: RecordRepository) -> None:
    write_records(repo, make_record(1, "Use Kafka"), make_record(2, "Use Avro"), make_record(3, "Tune Kafka"))


class TestLink:
    def test_symmetry(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = LinkService(repo).link(3, "Amends", 1)
        assert result.ok
        assert result.data["kind"] == AMENDS
        assert result.data["reverse_kind"] == AMENDED_BY
        assert sorted(result.data["changed"]) == [1, 3]

        index = repo.load()
        assert Link(kind=AMENDS, target=1) in index.records[3].links
        assert Link(kind=AMENDED_BY, target=3) in index.records[1].links

    def test_legacy_sentence_written(self, repo: RecordRepository) -> None:
        _seed(repo)
        LinkService(repo).link(3, "amends", 1)
        text = (repo.records_dir / "0001-use-kafka.md").read_text(encoding="utf-8")
        assert "Amended by [3. Tune Kafka](0003-tune-kafka.md)" in text

    def test_bracketed_title_survives_reload(self, repo: RecordRepository) -> None:
        write_records(repo, make_record(1, "Use [x] library"), make_record(2, "Adopt Kafka"))
        assert LinkService(repo).link(2, "Amends", 1).ok

        index = repo.load()
        assert index.records[2].links == [Link(kind=AMENDS, target=1)]
        assert index.records[2].status_notes is None
        assert index.records[1].links == [Link(kind=AMENDED_BY, target=2)]

    def test_no_duplicates(self, repo: RecordRepository) -> None:
        _seed(repo)
        svc = LinkService(repo)
        svc.link(3, "Amends", 1)
        result = svc.link(3, "Amends", 1)
        assert result.ok
        assert result.data["changed"] == []
        assert result.warnings
        assert repo.load().records[3].links == [Link(kind=AMENDS, target=1)]

    def test_custom_kind_explicit_reverse(self, extended_repo: RecordRepository) -> None:
        _seed(extended_repo)
        result = LinkService(extended_repo).link(2, "Clarifies", 1, reverse_kind="Clarified by")
        assert result.ok
        index = extended_repo.load()
        assert Link(kind="Clarifies", target=1) in index.records[2].links
        assert Link(kind="Clarified by", target=2) in index.records[1].links

    def test_missing_target(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = LinkService(repo).link(3, "Amends", 42)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_FOUND
        assert result.error.detail["missing"] == [42]

    def test_self_link(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = LinkService(repo).link(2, "Amends", 2)
        assert result.error is not None
        assert result.error.code == ErrorCode.VALIDATION_FAILED

    def test_not_initialized(self, tmp_path) -> None:
        from adrctl.config.models import RepositoryContext

        repo = RecordRepository(RepositoryContext.for_directory(tmp_path))
        result = LinkService(repo).link(1, "Amends", 2)
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_INITIALIZED


class TestSetStatus:
    def test_simple_change(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = LinkService(repo).set_status(2, "deprecated")
        assert result.ok
        assert result.data["previous_status"] == "Accepted"
        assert result.data["status"] == "Deprecated"
        assert repo.load().records[2].status == "Deprecated"

    def test_custom_status_verbatim(self, repo: RecordRepository) -> None:
        _seed(repo)
        LinkService(repo).set_status(2, "On hold")
        assert repo.load().records[2].status == "On hold"

    def test_superseded_requires_successor(self, repo: RecordRepository) -> None:
        _seed(repo)
        before = (repo.records_dir / "0001-use-kafka.md").read_text(encoding="utf-8")
        result = LinkService(repo).set_status(1, "superseded")
        assert result.error is not None
        assert result.error.code == ErrorCode.MISSING_SUPERSEDED_BY
        assert (repo.records_dir / "0001-use-kafka.md").read_text(encoding="utf-8") == before

    def test_supersede(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = LinkService(repo).set_status(1, "Superseded", superseded_by=3)
        assert result.ok
        assert sorted(result.data["changed"]) == [1, 3]
        index = repo.load()
        assert index.records[1].status == "Superseded"
        assert index.records[1].links == [Link(kind=SUPERSEDED_BY, target=3)]
        assert index.records[3].links == [Link(kind=SUPERSEDES, target=1)]

    def test_successor_only_with_superseded(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = LinkService(repo).set_status(1, "accepted", superseded_by=3)
        assert result.error is not None
        assert result.error.code == ErrorCode.VALIDATION_FAILED

    def test_unknown_successor(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = LinkService(repo).set_status(1, "superseded", superseded_by=9)
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_FOUND

    def test_unknown_record(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = LinkService(repo).set_status(9, "accepted")
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_FOUND
