"""Commands: repository health checks and per-file lint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from adrctl.commands._base import AdrCommand

if TYPE_CHECKING:
    from adrctl.commands._context import AppContext


@click.command(
    cls=AdrCommand,
    examples="""\
  adrctl doctor
  adrctl -v doctor
  adrctl --json doctor""",
)
@click.pass_obj
def doctor(app: AppContext) -> None:
    """Check the repository for naming, numbering and link problems.

    Exits 1 when any error-level finding is reported.
    """
    from adrctl.services.doctor import DoctorService

    result = DoctorService(app.repository).check()
    app.emit(result, exit_code=1 if result.data.get("has_blocking") else None)


@click.command(
    cls=AdrCommand,
    examples="""\
  adrctl lint
  adrctl lint 4
  adrctl -v lint postgres
  adrctl --json lint""",
)
@click.argument("term", nargs=-1)
@click.pass_obj
def lint(app: AppContext, term: tuple[str, ...]) -> None:
    """Check each record file for title, date and section problems.

    With TERM, only the matching record is checked. Exits 1 when any
    error-level finding is reported.
    """
    from adrctl.services.lint import LintService

    result = LintService(app.repository).lint(" ".join(term) or None)
    app.emit(result, exit_code=1 if result.data.get("has_blocking") else None)
