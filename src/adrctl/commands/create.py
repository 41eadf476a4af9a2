"""Command: create a new decision record."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from adrctl.commands._base import AdrCommand

if TYPE_CHECKING:
    from adrctl.commands._context import AppContext

_NEW_EXAMPLES = """\
  adrctl new Use PostgreSQL for persistence
  adrctl new "Adopt event sourcing" --status Accepted
  adrctl new Use MySQL --supersedes 3
  adrctl new "Cache reads" --link "Amends:2" --link "Relates to:4"
  adrctl new "Choose a queue" --template madr --option Kafka --option RabbitMQ
  adrctl --json new "Split the billing service" --decider alice --tag billing"""


def parse_link_spec(value: str) -> tuple[str, int]:
    """Split ``KIND:NUMBER`` (the last colon separates the target)."""
    kind, sep, target = value.rpartition(":")
    if not sep or not kind.strip():
        raise click.BadParameter(f"expected KIND:NUMBER, got {value!r}", param_hint="--link")
    try:
        return kind.strip(), int(target)
    except ValueError:
        raise click.BadParameter(f"{target!r} is not a record number", param_hint="--link") from None


@click.command("new", cls=AdrCommand, examples=_NEW_EXAMPLES)
@click.argument("title", nargs=-1, required=True)
@click.option("--status", default=None, help="Initial status (default: Proposed).")
@click.option("-s", "--supersedes", multiple=True, type=int, help="Record number this one supersedes (repeatable).")
@click.option("-l", "--link", "link_specs", multiple=True, help="Link as KIND:NUMBER, e.g. 'Amends:2' (repeatable).")
@click.option(
    "--template",
    type=click.Choice(["nygard", "madr"], case_sensitive=False),
    default=None,
    help="Body template (default from configuration).",
)
@click.option("--decider", "deciders", multiple=True, help="Decision maker (extended mode, repeatable).")
@click.option("--tag", "tags", multiple=True, help="Tag (extended mode, repeatable).")
@click.option("--option", "options", multiple=True, help="Considered option for the MADR template (repeatable).")
@click.pass_obj
def new(
    app: AppContext,
    title: tuple[str, ...],
    status: str | None,
    supersedes: tuple[int, ...],
    link_specs: tuple[str, ...],
    template: str | None,
    deciders: tuple[str, ...],
    tags: tuple[str, ...],
    options: tuple[str, ...],
) -> None:
    """Create a record titled TITLE with the next free number."""
    from adrctl.domain.records import RecordMetadata
    from adrctl.services.create import CreateService

    links = [parse_link_spec(spec) for spec in link_specs]
    metadata = None
    if deciders or tags:
        metadata = RecordMetadata(deciders=list(deciders) or None, tags=list(tags) or None)

    result = CreateService(app.repository).create_record(
        " ".join(title),
        status=status,
        supersedes=supersedes,
        links=links,
        template=template.lower() if template else None,
        metadata=metadata,
        template_vars={"options": list(options)} if options else None,
    )
    app.emit(result)
