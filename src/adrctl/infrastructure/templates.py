"""Jinja2 loading for record body templates, with per-repository overrides."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

from jinja2 import BaseLoader, ChoiceLoader, Environment, FileSystemLoader, PackageLoader

TEMPLATE_SUFFIX = ".md.j2"


class TemplateFormat(StrEnum):
    """Built-in template families."""

    NYGARD = "nygard"
    MADR = "madr"


def override_loader(group: str, repo_root: Path) -> FileSystemLoader:
    """Loader for ``.adrctl/templates/<group>/`` and the shared ``.adrctl/templates/``."""
    template_root = repo_root / ".adrctl" / "templates"
    return FileSystemLoader([str(template_root / group), str(template_root)])


def template_loader(group: str, *, repo_root: Path | None = None) -> ChoiceLoader:
    """User overrides first, then the packaged defaults.

    User overrides are loaded from ``.adrctl/templates/`` inside the
    repository. Both the namespaced directory (``.adrctl/templates/records/``)
    and the shared root are searched.
    """

    loaders: list[BaseLoader] = []
    if repo_root is not None:
        loaders.append(override_loader(group, repo_root))

    loaders.append(PackageLoader("adrctl", f"templates/{group}"))
    return ChoiceLoader(loaders)


def build_template_environment(group: str, *, repo_root: Path | None = None) -> Environment:
    return Environment(loader=template_loader(group, repo_root=repo_root), keep_trailing_newline=True)


def _names(loader: BaseLoader) -> set[str]:
    return {
        name.removesuffix(TEMPLATE_SUFFIX)
        for name in loader.list_templates()
        if name.endswith(TEMPLATE_SUFFIX) and "/" not in name
    }


class RecordTemplates:
    """Renders the initial markdown body of a new record."""

    def __init__(self, *, repo_root: Path | None = None) -> None:
        self._loader = template_loader("records", repo_root=repo_root)
        self._env = Environment(loader=self._loader, keep_trailing_newline=True)
        self._overrides = override_loader("records", repo_root) if repo_root is not None else None

    def render_body(self, template: TemplateFormat | str, **context: Any) -> str:
        """Render ``<template>.md.j2`` with *context*.

        The result holds only ``##`` sections; the caller parses them into
        the record's section mapping.
        """
        name = template.value if isinstance(template, TemplateFormat) else str(template)
        return self._env.get_template(f"{name}{TEMPLATE_SUFFIX}").render(**context)

    def names(self) -> list[str]:
        """Every template name, packaged and overridden."""
        return sorted(_names(self._loader))

    def overridden(self) -> set[str]:
        """Names a repository file supplies instead of the packaged default."""
        return _names(self._overrides) if self._overrides is not None else set()

    def source(self, name: str) -> tuple[str, Path | None]:
        """Template text and the file it came from.

        Raises:
            jinja2.TemplateNotFound: No template is called *name*.
        """
        text, filename, _ = self._loader.get_source(self._env, f"{name}{TEMPLATE_SUFFIX}")
        return text, Path(filename) if filename else None
