"""Subcommand modules for adrctl.

register_commands() imports command modules lazily so ``adrctl --help``
stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Attach every subcommand to the root group."""
    from adrctl.commands.config_cmd import config_cmd
    from adrctl.commands.create import new
    from adrctl.commands.doctor import doctor, lint
    from adrctl.commands.init_cmd import init_cmd
    from adrctl.commands.link import link, status
    from adrctl.commands.query import list_cmd, search, show
    from adrctl.commands.template import template
    from adrctl.commands.transfer import export_cmd, import_cmd

    cli.add_command(init_cmd)
    cli.add_command(new)
    cli.add_command(list_cmd)
    cli.add_command(show)
    cli.add_command(search)
    cli.add_command(link)
    cli.add_command(status)
    cli.add_command(doctor)
    cli.add_command(lint)
    cli.add_command(export_cmd)
    cli.add_command(import_cmd)
    cli.add_command(template)
    cli.add_command(config_cmd)
