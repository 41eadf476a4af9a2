"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``adrs.toml`` only contains
overrides. A fresh repository needs only ``records_dir`` and ``mode``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from adrctl.domain.lifecycle import SourceEncoding

DEFAULT_RECORDS_DIR = "doc/adr"

# Spellings accepted for ``mode`` in adrs.toml and ADRCTL_MODE.
MODE_ALIASES: dict[str, SourceEncoding] = {
    "legacy": SourceEncoding.LEGACY,
    "compatible": SourceEncoding.LEGACY,
    "extended": SourceEncoding.EXTENDED,
    "ng": SourceEncoding.EXTENDED,
    "nextgen": SourceEncoding.EXTENDED,
}


def parse_mode(value: Any) -> Any:
    """Map a configured mode spelling onto :class:`SourceEncoding`."""
    if isinstance(value, str):
        key = value.strip().lower()
        if key in MODE_ALIASES:
            return MODE_ALIASES[key]
    return value


# --- adrs.toml sections ---


class TemplatesConfig(BaseModel):
    """[templates] section."""

    model_config = {"frozen": True}

    format: Literal["nygard", "madr"] = "nygard"


class IndexConfig(BaseModel):
    """[index] section."""

    model_config = {"frozen": True}

    parallel_reads: bool = True
    max_workers: int = Field(default=4, ge=1)


class SearchConfig(BaseModel):
    """[search] section."""

    model_config = {"frozen": True}

    min_score: float = Field(default=0.6, ge=0.0, le=1.0)
    ambiguity_margin: float = Field(default=0.1, ge=0.0, le=1.0)


# --- Explicit repository context passed to every entry point ---


class RepositoryContext(BaseModel):
    """Where the records live and how new content is written.

    Built once per invocation from :class:`~adrctl.config.settings.AdrSettings`
    and handed to services explicitly; there is no global configuration.
    """

    model_config = {"frozen": True}

    root: Path
    records_dir: Path
    mode: SourceEncoding = SourceEncoding.LEGACY
    templates: TemplatesConfig = Field(default_factory=TemplatesConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @field_validator("mode", mode="before")
    @classmethod
    def _mode_alias(cls, value: Any) -> Any:
        return parse_mode(value)

    @classmethod
    def for_directory(
        cls,
        root: Path,
        *,
        records_dir: str | Path = DEFAULT_RECORDS_DIR,
        mode: SourceEncoding | str = SourceEncoding.LEGACY,
        **sections: Any,
    ) -> RepositoryContext:
        """Convenience constructor resolving *records_dir* against *root*."""
        directory = Path(records_dir)
        if not directory.is_absolute():
            directory = root / directory
        return cls(root=root, records_dir=directory, mode=mode, **sections)

    @property
    def relative_records_dir(self) -> str:
        """Records directory as written in configuration (POSIX form)."""
        try:
            return self.records_dir.relative_to(self.root).as_posix()
        except ValueError:
            return self.records_dir.as_posix()

    @property
    def initialized(self) -> bool:
        return self.records_dir.is_dir()
