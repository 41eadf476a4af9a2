"""Command: repository initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from adrctl.commands._base import AdrCommand

if TYPE_CHECKING:
    from adrctl.commands._context import AppContext

_INIT_EXAMPLES = """\
  adrctl init
  adrctl init --mode extended
  adrctl init ../service --records-dir docs/decisions
  adrctl init --mode extended --format madr"""


@click.command("init", cls=AdrCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=None)
@click.option(
    "--mode",
    type=click.Choice(["legacy", "extended", "compatible", "ng"], case_sensitive=False),
    default=None,
    help="Record encoding (default from configuration, else legacy).",
)
@click.option("--records-dir", default=None, help="Records directory relative to the repository root.")
@click.option(
    "--format",
    "template_format",
    type=click.Choice(["nygard", "madr"], case_sensitive=False),
    default=None,
    help="Default body template for new records.",
)
@click.pass_obj
def init_cmd(
    app: AppContext,
    path: str | None,
    mode: str | None,
    records_dir: str | None,
    template_format: str | None,
) -> None:
    """Create the records directory, configuration and the first record."""
    from adrctl.config.models import RepositoryContext
    from adrctl.services.create import CreateService

    settings = app.settings
    root = Path(path).resolve() if path else settings.repo_root
    templates = settings.templates
    if template_format:
        templates = templates.model_copy(update={"format": template_format.lower()})
    context = RepositoryContext.for_directory(
        root,
        records_dir=records_dir or settings.records_dir,
        mode=mode.lower() if mode else settings.mode,
        templates=templates,
        index=settings.index,
        search=settings.search,
    )
    app.emit(CreateService(app.repository_for(context)).init_repository())
