"""Commands: JSON interchange export and import."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import click

from adrctl.commands._base import AdrCommand

if TYPE_CHECKING:
    from adrctl.commands._context import AppContext


@click.command(
    "export",
    cls=AdrCommand,
    examples="""\
  adrctl export
  adrctl export 2 3 --output decisions.json""",
)
@click.argument("numbers", nargs=-1, type=int)
@click.option("-o", "--output", "output_path", type=click.Path(dir_okay=False), default=None, help="Write the document to a file.")
@click.pass_obj
def export_cmd(app: AppContext, numbers: tuple[int, ...], output_path: str | None) -> None:
    """Export records (all, or NUMBERS) as an interchange JSON document."""
    from adrctl.services.transfer import ExportService

    result = ExportService(app.repository).export(list(numbers) or None)
    if output_path and result.ok:
        Path(output_path).write_text(json.dumps(result.data["document"], indent=2) + "\n", encoding="utf-8")
        if not app.settings.json_output:
            click.echo(f"Exported {result.data['count']} records to {output_path}")
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
            return
    app.emit(result)


@click.command(
    "import",
    cls=AdrCommand,
    examples="""\
  adrctl import decisions.json --dry-run
  adrctl import decisions.json --renumber
  adrctl import decisions.json --overwrite""",
)
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--renumber", is_flag=True, help="Number incoming records from the next free number.")
@click.option("--dry-run", is_flag=True, help="Show the plan without writing.")
@click.option("--overwrite", is_flag=True, help="Replace existing records with the same number.")
@click.pass_obj
def import_cmd(app: AppContext, source: TextIO, renumber: bool, dry_run: bool, overwrite: bool) -> None:
    """Import records from an interchange JSON document (``-`` for stdin)."""
    from adrctl.services.transfer import ImportService

    result = ImportService(app.repository).import_records(
        source.read(),
        renumber=renumber,
        dry_run=dry_run,
        overwrite=overwrite,
    )
    app.emit(result)
