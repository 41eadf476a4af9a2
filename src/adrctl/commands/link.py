"""Commands: link records and change their status."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from adrctl.commands._base import AdrCommand
from adrctl.services.links import LinkService

if TYPE_CHECKING:
    from adrctl.commands._context import AppContext


@click.command(
    cls=AdrCommand,
    examples="""\
  adrctl link 3 Amends 1
  adrctl link 5 "Relates to" 2
  adrctl link 4 Clarifies 2 --reverse "Clarified by\"""",
)
@click.argument("source", type=int)
@click.argument("kind")
@click.argument("target", type=int)
@click.option("--reverse", "reverse_kind", default=None, help="Kind of the link added to TARGET.")
@click.pass_obj
def link(app: AppContext, source: int, kind: str, target: int, reverse_kind: str | None) -> None:
    """Link SOURCE to TARGET with KIND, adding the reverse link on TARGET."""
    app.emit(LinkService(app.repository).link(source, kind, target, reverse_kind=reverse_kind))


@click.command(
    cls=AdrCommand,
    examples="""\
  adrctl status 2 accepted
  adrctl status 2 deprecated
  adrctl status 2 superseded --by 5""",
)
@click.argument("number", type=int)
@click.argument("new_status")
@click.option("--by", "superseded_by", type=int, default=None, help="Successor record, required for superseded.")
@click.pass_obj
def status(app: AppContext, number: int, new_status: str, superseded_by: int | None) -> None:
    """Set the status of record NUMBER."""
    app.emit(LinkService(app.repository).set_status(number, new_status, superseded_by=superseded_by))
