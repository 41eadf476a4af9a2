"""Click base classes for adrctl commands.

``--help`` stays short. Commands declared with ``examples=`` gain an
eager ``--examples`` flag that prints ready-to-paste invocations and
exits, and their help ends with a pointer to it.
"""

from __future__ import annotations

import textwrap
from typing import Any

import click

EXAMPLES_HINT = "Run with --examples for sample invocations."


class ExamplesMixin:
    """Adds the ``--examples`` option and help hint to a click command."""

    examples: str | None

    def _init_examples(self, examples: str | None) -> None:
        self.examples = textwrap.dedent(examples).strip("\n") if examples else None
        if self.examples is None:
            return
        command: click.Command = self  # type: ignore[assignment]
        command.epilog = f"{command.epilog}\n\n{EXAMPLES_HINT}" if command.epilog else EXAMPLES_HINT
        command.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=self._print_examples,
                help="Show usage examples.",
            )
        )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(textwrap.indent(self.examples or "", "  "))
        ctx.exit(0)


class AdrCommand(ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class AdrGroup(ExamplesMixin, click.Group):
    """Group whose subcommands are :class:`AdrCommand` unless told otherwise."""

    command_class = AdrCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)
