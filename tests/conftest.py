"""Shared pytest fixtures and test helpers for adrctl tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner

from adrctl.config.models import RepositoryContext
from adrctl.domain.lifecycle import SourceEncoding
from adrctl.infrastructure.repository import RecordRepository
from adrctl.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _telemetry_off() -> Iterator[None]:
    """``-v`` in one CLI test must not leak span trees into the next."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("ADRCTL_CONFIG", "ADRCTL_MODE", "ADRCTL_RECORDS_DIR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def legacy_context(tmp_path: Path) -> RepositoryContext:
    """Legacy-mode context with an existing (empty) records directory."""
    ctx = RepositoryContext.for_directory(tmp_path, mode=SourceEncoding.LEGACY)
    ctx.records_dir.mkdir(parents=True)
    return ctx


@pytest.fixture
def extended_context(tmp_path: Path) -> RepositoryContext:
    ctx = RepositoryContext.for_directory(tmp_path, mode=SourceEncoding.EXTENDED)
    ctx.records_dir.mkdir(parents=True)
    return ctx


@pytest.fixture
def repo(legacy_context: RepositoryContext) -> RecordRepository:
    """Legacy-mode repository on an empty records directory."""
    return RecordRepository(legacy_context)


@pytest.fixture
def extended_repo(extended_context: RepositoryContext) -> RecordRepository:
    return RecordRepository(extended_context)


@pytest.fixture
def _isolated_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to an empty temp directory so the CLI starts from scratch.

    Use via ``@pytest.mark.usefixtures("_isolated_repo")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)


