"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``ADRCTL_*`` prefix
  3. TOML file    — ``adrs.toml`` discovered via walk-up (or ``.adr-dir``)
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the walk-up discovery from :mod:`adrctl.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from adrctl.config.discovery import find_config, find_legacy_dir_file, read_legacy_dir_file
from adrctl.config.models import (
    DEFAULT_RECORDS_DIR,
    IndexConfig,
    RepositoryContext,
    SearchConfig,
    TemplatesConfig,
    parse_mode,
)
from adrctl.domain.lifecycle import SourceEncoding

# Keys other tools write for the records directory.
_RECORDS_DIR_ALIASES = ("adr_dir", "adr-dir")


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from ``adrs.toml``, or from a legacy ``.adr-dir`` file."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        toml_path: Path | None,
        legacy_dir_file: Path | None = None,
    ) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                import click

                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc
            for alias in _RECORDS_DIR_ALIASES:
                if alias in self._data and "records_dir" not in self._data:
                    self._data["records_dir"] = self._data.pop(alias)
        elif legacy_dir_file is not None:
            records_dir = read_legacy_dir_file(legacy_dir_file)
            self._data = {"mode": SourceEncoding.LEGACY.value}
            if records_dir:
                self._data["records_dir"] = records_dir

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for discovered file paths during construction.
_tls = threading.local()


class AdrSettings(BaseSettings):
    """Unified settings for the adrctl CLI.

    Merges CLI flags, environment variables, ``adrs.toml`` and code-baked
    defaults into a single frozen object, stored on the click context.

    Attributes:
        repo_root: Directory holding ``adrs.toml`` (or ``.adr-dir``), or
            CWD when neither is found.
        config_path: The configuration file in effect, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "ADRCTL_",
        "env_nested_delimiter": "__",
    }

    # --- Resolved path, derived from the config location ---
    repo_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- adrs.toml ---
    records_dir: str = DEFAULT_RECORDS_DIR
    mode: SourceEncoding = SourceEncoding.LEGACY
    templates: TemplatesConfig = Field(default_factory=TemplatesConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_alias(cls, value: Any) -> Any:
        return parse_mode(value)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(
                settings_cls,
                getattr(_tls, "toml_path", None),
                getattr(_tls, "legacy_dir_file", None),
            ),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        repo_root: Path | None = None,
        **cli_flags: Any,
    ) -> AdrSettings:
        """Construct settings from a CLI invocation.

        Discovers ``adrs.toml`` via walk-up (or explicit *config_path*),
        falling back to ``.adr-dir``. *repo_root* defaults to the directory
        of whichever file was found.
        """
        toml_path: Path | None = None
        legacy_dir_file: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(repo_root)
            if toml_path is None:
                legacy_dir_file = find_legacy_dir_file(repo_root)

        found = toml_path or legacy_dir_file
        resolved_root = repo_root
        if resolved_root is None:
            resolved_root = found.parent if found else Path.cwd()

        _tls.toml_path = toml_path
        _tls.legacy_dir_file = legacy_dir_file
        try:
            return cls(
                repo_root=resolved_root,
                config_path=found,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None
            _tls.legacy_dir_file = None

    def repository_context(self) -> RepositoryContext:
        """The explicit context value every service receives."""
        return RepositoryContext.for_directory(
            self.repo_root,
            records_dir=self.records_dir,
            mode=self.mode,
            templates=self.templates,
            index=self.index,
            search=self.search,
        )
