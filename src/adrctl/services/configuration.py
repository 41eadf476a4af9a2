"""ConfigService — the settings a command would run with."""

from __future__ import annotations

from pathlib import Path

from adrctl.services.base import BaseService
from adrctl.services.result import ServiceResult
from adrctl.services.telemetry import traced


class ConfigService(BaseService):
    @traced
    def show(self, *, config_path: Path | None = None) -> ServiceResult:
        """Resolved repository settings and where they came from.

        *config_path* is the ``adrs.toml`` (or ``.adr-dir``) that was
        found, or None when only defaults and environment apply.
        """
        ctx = self.context
        return ServiceResult(
            ok=True,
            op="config",
            data={
                "root": str(ctx.root),
                "records_dir": str(ctx.records_dir),
                "mode": ctx.mode.value,
                "config_file": str(config_path) if config_path else None,
                "initialized": ctx.initialized,
                "sections": {
                    "templates": ctx.templates.model_dump(),
                    "index": ctx.index.model_dump(),
                    "search": ctx.search.model_dump(),
                },
            },
        )
