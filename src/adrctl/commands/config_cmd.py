"""Command: show resolved configuration (named config_cmd to avoid clashing with the config package)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from adrctl.commands._base import AdrCommand

if TYPE_CHECKING:
    from adrctl.commands._context import AppContext


@click.command(
    "config",
    cls=AdrCommand,
    examples="""\
  adrctl config
  adrctl --json config
  ADRCTL_MODE=extended adrctl config""",
)
@click.pass_obj
def config_cmd(app: AppContext) -> None:
    """Show the settings in effect and the file they were read from."""
    from adrctl.services.configuration import ConfigService

    app.emit(ConfigService(app.repository).show(config_path=app.settings.config_path))
