"""Tests for QueryService list, show and search."""

from __future__ import annotations

from adrctl.domain.links import SUPERSEDED_BY, SUPERSEDES, Link
from adrctl.infrastructure.repository import RecordRepository
from adrctl.services.query import QueryService
from adrctl.services.result import ErrorCode
from factories import make_record, write_records


def _seed(repo: RecordRepository) -> None:
    write_records(
        repo,
        make_record(1, "Use MySQL", status="Superseded", links=[Link(kind=SUPERSEDED_BY, target=2)]),
        make_record(2, "Use PostgreSQL", links=[Link(kind=SUPERSEDES, target=1)]),
        make_record(3, "Use PostgreSQL read replicas", status="Draft"),
        make_record(4, "Adopt event sourcing", status="draft"),
    )


class TestListRecords:
    def test_all(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = QueryService(repo).list_records()
        assert result.ok
        assert result.data["count"] == 4
        assert [i["number"] for i in result.data["items"]] == [1, 2, 3, 4]
        assert result.data["items"][0]["date"] == "2024-01-02"

    def test_status_filter_ignores_case(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = QueryService(repo).list_records(status="superseded")
        assert [i["number"] for i in result.data["items"]] == [1]

    def test_custom_statuses_kept_verbatim(self, repo: RecordRepository) -> None:
        _seed(repo)
        items = QueryService(repo).list_records(status="DRAFT").data["items"]
        assert [(i["number"], i["status"]) for i in items] == [(3, "Draft"), (4, "draft")]

    def test_parse_failure_warns(self, repo: RecordRepository) -> None:
        _seed(repo)
        (repo.records_dir / "0005-broken.md").write_text("no heading\n", encoding="utf-8")
        result = QueryService(repo).list_records()
        assert result.ok
        assert any("0005-broken.md" in w for w in result.warnings)


class TestShow:
    def test_by_number(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = QueryService(repo).show("1")
        assert result.ok
        assert result.data["title"] == "Use MySQL"
        assert result.data["links"] == [
            {"kind": SUPERSEDED_BY, "target": 2, "title": "Use PostgreSQL", "description": None}
        ]
        assert result.data["superseded_chain"] == [2]
        assert result.data["sections"]["Decision"] == "We will do it."

    def test_by_title(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = QueryService(repo).show("event sourcing")
        assert result.data["number"] == 4

    def test_ambiguous(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = QueryService(repo).show("postgresql")
        assert result.error is not None
        assert result.error.code == ErrorCode.AMBIGUOUS
        assert {c["number"] for c in result.error.detail["candidates"]} >= {2, 3}

    def test_not_found(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = QueryService(repo).show("kubernetes")
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_FOUND


class TestSearch:
    def test_title_and_sections(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = QueryService(repo).search("postgresql")
        assert result.ok
        assert result.data["count"] == 2
        first = result.data["items"][0]
        assert first["number"] == 2
        assert [m["section"] for m in first["matches"]] == ["Title", "Context"]
        assert first["matches"][1]["snippet"] == "Context of Use PostgreSQL."

    def test_title_only(self, repo: RecordRepository) -> None:
        _seed(repo)
        items = QueryService(repo).search("postgresql", title_only=True).data["items"]
        assert [i["number"] for i in items] == [2, 3]
        assert all([m["section"] for m in i["matches"]] == ["Title"] for i in items)

    def test_body_only_hit(self, repo: RecordRepository) -> None:
        _seed(repo)
        items = QueryService(repo).search("we will").data["items"]
        assert [i["number"] for i in items] == [1, 2, 3, 4]
        assert items[0]["matches"] == [{"section": "Decision", "snippet": "We will do it."}]

    def test_status_filter(self, repo: RecordRepository) -> None:
        _seed(repo)
        items = QueryService(repo).search("postgresql", status="DRAFT").data["items"]
        assert [i["number"] for i in items] == [3]

    def test_case_sensitive(self, repo: RecordRepository) -> None:
        _seed(repo)
        service = QueryService(repo)
        assert service.search("postgresql", case_sensitive=True).data["count"] == 0
        assert service.search("PostgreSQL", case_sensitive=True).data["count"] == 2

    def test_no_matches(self, repo: RecordRepository) -> None:
        _seed(repo)
        result = QueryService(repo).search("cassandra")
        assert result.ok
        assert result.data["items"] == []

    def test_blank_query_rejected(self, repo: RecordRepository) -> None:
        result = QueryService(repo).search("   ")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.VALIDATION_FAILED
