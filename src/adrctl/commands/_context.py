"""AppContext — state shared by every subcommand.

Built once by the root group and handed to subcommands via
``@click.pass_obj``. The repository is created lazily so ``--help`` and
``--version`` never touch the filesystem.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from adrctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from adrctl.config.models import RepositoryContext
    from adrctl.config.settings import AdrSettings
    from adrctl.infrastructure.repository import RecordRepository
    from adrctl.services.result import ServiceResult


class AppContext:
    def __init__(self, settings: AdrSettings) -> None:
        self.settings = settings
        self._repository: RecordRepository | None = None

        from adrctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from adrctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def repository(self) -> RecordRepository:
        """Repository for the configured records directory (created on first use)."""
        if self._repository is None:
            self._repository = self.repository_for(self.settings.repository_context())
        return self._repository

    def repository_for(self, context: RepositoryContext) -> RecordRepository:
        from adrctl.config.logging import bind_repository
        from adrctl.infrastructure.repository import RecordRepository

        bind_repository(context)
        return RecordRepository(context)

    def emit(self, result: ServiceResult, *, exit_code: int | None = None) -> None:
        """Print *result* and apply exit semantics.

        Success goes to stdout with warnings on stderr (JSON output carries
        them inline). Failure goes to stderr and exits 1. A non-zero
        *exit_code* exits after a successful print.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
            if exit_code:
                raise SystemExit(exit_code)
        else:
            click.echo(output, err=True)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
            raise SystemExit(1)
