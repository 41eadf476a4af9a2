"""Commands: list, show and search records."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from adrctl.commands._base import AdrCommand
from adrctl.services.query import QueryService

if TYPE_CHECKING:
    from adrctl.commands._context import AppContext


@click.command(
    "list",
    cls=AdrCommand,
    examples="""\
  adrctl list
  adrctl list --status accepted
  adrctl -q list --status superseded
  adrctl --json list""",
)
@click.option("--status", default=None, help="Only records with this status (case-insensitive).")
@click.pass_obj
def list_cmd(app: AppContext, status: str | None) -> None:
    """List records in number order."""
    app.emit(QueryService(app.repository).list_records(status=status))


@click.command(
    cls=AdrCommand,
    examples="""\
  adrctl show 3
  adrctl show postgres
  adrctl show 0003-use-postgresql
  adrctl --json show "event sourcing\"""",
)
@click.argument("term", nargs=-1, required=True)
@click.pass_obj
def show(app: AppContext, term: tuple[str, ...]) -> None:
    """Show the record matching TERM (a number, filename or title words)."""
    app.emit(QueryService(app.repository).show(" ".join(term)))


@click.command(
    cls=AdrCommand,
    examples="""\
  adrctl search postgres
  adrctl search event sourcing --status accepted
  adrctl search --title-only auth
  adrctl --json search --case-sensitive API""",
)
@click.argument("query", nargs=-1, required=True)
@click.option("--title-only", "-t", is_flag=True, help="Match titles only, not section text.")
@click.option("--status", default=None, help="Only records with this status (case-insensitive).")
@click.option("--case-sensitive", "-c", is_flag=True, help="Match case exactly.")
@click.pass_obj
def search(
    app: AppContext,
    query: tuple[str, ...],
    title_only: bool,
    status: str | None,
    case_sensitive: bool,
) -> None:
    """Find records whose title or text contains QUERY."""
    app.emit(
        QueryService(app.repository).search(
            " ".join(query), title_only=title_only, status=status, case_sensitive=case_sensitive
        )
    )
