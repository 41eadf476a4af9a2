"""Commands: list and print record body templates."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from adrctl.commands._base import AdrGroup
from adrctl.services.templates import TemplateService

if TYPE_CHECKING:
    from adrctl.commands._context import AppContext


@click.group(
    cls=AdrGroup,
    examples="""\
  adrctl template list
  adrctl template show madr
  adrctl template show nygard > .adrctl/templates/records/nygard.md.j2""",
)
def template() -> None:
    """Inspect the templates new records are rendered from.

    Put a file named <name>.md.j2 under .adrctl/templates/records/ to
    replace a packaged template.
    """


@template.command(
    "list",
    examples="""\
  adrctl template list
  adrctl --json template list""",
)
@click.pass_obj
def list_templates(app: AppContext) -> None:
    """List template names and whether each is packaged or overridden."""
    app.emit(TemplateService(app.repository).list_templates())


@template.command(
    "show",
    examples="""\
  adrctl template show nygard
  adrctl template show madr""",
)
@click.argument("name")
@click.pass_obj
def show_template(app: AppContext, name: str) -> None:
    """Print the text of the template called NAME."""
    app.emit(TemplateService(app.repository).show_template(name))
