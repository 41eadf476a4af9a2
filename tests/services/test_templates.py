"""Tests for TemplateService and ConfigService."""

from __future__ import annotations

from pathlib import Path

from adrctl.config.models import RepositoryContext, TemplatesConfig
from adrctl.infrastructure.repository import RecordRepository
from adrctl.services.configuration import ConfigService
from adrctl.services.result import ErrorCode
from adrctl.services.templates import TemplateService


def _override(root: Path, name: str, text: str) -> Path:
    path = root / ".adrctl" / "templates" / "records" / f"{name}.md.j2"
    path.parent.mkdir(parents=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestListTemplates:
    def test_packaged(self, repo: RecordRepository) -> None:
        result = TemplateService(repo).list_templates()
        assert result.ok
        by_name = {item["name"]: item for item in result.data["items"]}
        assert {"nygard", "madr", "init"} <= set(by_name)
        assert by_name["nygard"] == {"name": "nygard", "source": "builtin", "default": True}
        assert by_name["madr"]["default"] is False

    def test_override_marked(self, repo: RecordRepository) -> None:
        _override(repo.context.root, "nygard", "## Context\n\nOurs.\n")
        shared = repo.context.root / ".adrctl" / "templates" / "lightweight.md.j2"
        shared.write_text("## Decision\n", encoding="utf-8")
        items = {i["name"]: i["source"] for i in TemplateService(repo).list_templates().data["items"]}
        assert items["nygard"] == "override"
        assert items["lightweight"] == "override"
        assert items["madr"] == "builtin"

    def test_default_follows_config(self, legacy_context: RepositoryContext) -> None:
        context = legacy_context.model_copy(update={"templates": TemplatesConfig(format="madr")})
        items = TemplateService(RecordRepository(context)).list_templates().data["items"]
        assert [i["name"] for i in items if i["default"]] == ["madr"]


class TestShowTemplate:
    def test_packaged_text(self, repo: RecordRepository) -> None:
        result = TemplateService(repo).show_template("madr")
        assert result.ok
        assert result.data["source"] == "builtin"
        assert "## Decision Outcome" in result.data["text"]

    def test_override_wins(self, repo: RecordRepository) -> None:
        path = _override(repo.context.root, "nygard", "## Context\n\nOurs.\n")
        result = TemplateService(repo).show_template("nygard")
        assert result.data["text"] == "## Context\n\nOurs.\n"
        assert result.data["source"] == "override"
        assert result.data["path"] == str(path)

    def test_unknown(self, repo: RecordRepository) -> None:
        result = TemplateService(repo).show_template("y-statement")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == ErrorCode.NOT_FOUND
        assert "nygard" in result.error.detail["available"]


class TestConfigService:
    def test_defaults(self, repo: RecordRepository, tmp_path: Path) -> None:
        result = ConfigService(repo).show()
        assert result.ok
        data = result.data
        assert data["root"] == str(tmp_path)
        assert data["records_dir"] == str(tmp_path / "doc" / "adr")
        assert data["mode"] == "legacy"
        assert data["config_file"] is None
        assert data["initialized"] is True
        assert data["sections"]["templates"] == {"format": "nygard"}
        assert data["sections"]["index"]["parallel_reads"] is True
        assert data["sections"]["search"]["min_score"] == 0.6

    def test_config_file_reported(self, extended_repo: RecordRepository, tmp_path: Path) -> None:
        config = tmp_path / "adrs.toml"
        result = ConfigService(extended_repo).show(config_path=config)
        assert result.data["config_file"] == str(config)
        assert result.data["mode"] == "extended"
