"""CreateService — new records, supersede-on-create, and repository init.

Pipeline: VALIDATE → RESERVE → RENDER → WRITE → PROPAGATE → RESPOND.
The new record is written first; reverse links and status changes on the
records it points at follow as one unit.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from adrctl.config.discovery import CONFIG_FILENAME, LEGACY_DIR_FILENAME
from adrctl.domain.lifecycle import RecordStatus, SourceEncoding, format_status
from adrctl.domain.links import SUPERSEDED_BY, SUPERSEDES, Link, reverse_kind
from adrctl.domain.records import RecordMetadata, RecordValidationError, validate_record
from adrctl.infrastructure.filesystem import find_record_files
from adrctl.infrastructure.templates import build_template_environment
from adrctl.services._helpers import failure, not_initialized, record_summary
from adrctl.services.base import BaseService
from adrctl.services.result import ErrorCode, ServiceResult
from adrctl.services.telemetry import annotate, trace_span, traced

logger = logging.getLogger(__name__)

INIT_TITLE = "Record architecture decisions"


class CreateService(BaseService):
    """Creates records and initializes repositories."""

    @traced
    def create_record(
        self,
        title: str,
        *,
        status: str | None = None,
        supersedes: Sequence[int] = (),
        links: Sequence[tuple[str, int]] = (),
        template: str | None = None,
        metadata: RecordMetadata | None = None,
        template_vars: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Create a record with the next free number.

        Each number in *supersedes* becomes ``Superseded`` with a
        ``Superseded by`` link to the new record. Each ``(kind, target)``
        in *links* gets its reverse link on the target.
        """
        op = "create_record"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)

        # ── VALIDATE ─────────────────────────────────────────
        check = validate_record(1, title)
        if not check.valid:
            return failure(op, ErrorCode.VALIDATION_FAILED, "; ".join(check.errors))

        index = self._load()
        targets = [*supersedes, *(target for _kind, target in links)]
        missing = sorted({n for n in targets if index.get(n) is None})
        if missing:
            return failure(
                op,
                ErrorCode.NOT_FOUND,
                f"No record numbered {', '.join(map(str, missing))}",
                detail={"missing": missing},
            )

        forward = [Link(kind=SUPERSEDES, target=n) for n in supersedes]
        forward += [Link(kind=kind, target=target) for kind, target in links]

        # ── RESERVE / RENDER / WRITE ─────────────────────────
        try:
            body_template = template or self.context.templates.format
            with trace_span("write_record", mode=self.context.mode.value, template=body_template):
                record = self._repo.create(
                    title,
                    status=status,
                    links=forward,
                    metadata=metadata,
                    template=template,
                    **(template_vars or {}),
                )
                annotate(number=record.number, file=record.filename)
        except RecordValidationError as exc:
            return failure(op, ErrorCode.VALIDATION_FAILED, str(exc), detail={"errors": exc.errors})
        except OSError as exc:
            return failure(op, ErrorCode.IO_ERROR, f"Could not write record: {exc}")

        # ── PROPAGATE ────────────────────────────────────────
        changed = []
        for link in record.links:
            target = index.records[link.target]
            if link.kind == SUPERSEDES:
                target.status = format_status(RecordStatus.SUPERSEDED.value, self.context.mode)
                target.add_link(Link(kind=SUPERSEDED_BY, target=record.number))
            else:
                target.add_link(Link(kind=reverse_kind(link.kind), target=record.number))
            if all(r.number != target.number for r in changed):
                changed.append(target)

        warnings: list[str] = []
        if changed:
            titles = index.titles()
            titles[record.number] = record.title
            try:
                with trace_span("propagate", files=len(changed)):
                    self._repo.save_all(changed, titles=titles)
            except OSError as exc:
                warnings.append(f"Record {record.number} written, but linked records were not updated: {exc}")

        logger.debug("Created record %d at %s", record.number, record.path)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                **record_summary(record),
                "links": [{"kind": link.kind, "target": link.target} for link in record.links],
                "updated": [r.number for r in changed],
            },
            warnings=warnings,
        )

    @traced
    def init_repository(self) -> ServiceResult:
        """Write configuration, create the records directory and record 1.

        Extended mode writes ``adrs.toml``; legacy mode writes an adr-tools
        compatible ``.adr-dir``.
        """
        op = "init"
        ctx = self.context
        config_file = ctx.root / (CONFIG_FILENAME if ctx.mode is SourceEncoding.EXTENDED else LEGACY_DIR_FILENAME)
        existing = find_record_files(ctx.records_dir)
        if existing or (ctx.root / CONFIG_FILENAME).exists() or (ctx.root / LEGACY_DIR_FILENAME).exists():
            return failure(
                op,
                ErrorCode.ALREADY_INITIALIZED,
                f"Repository at {ctx.root} is already initialized",
                detail={"records_dir": str(ctx.records_dir), "records": len(existing)},
            )

        try:
            ctx.records_dir.mkdir(parents=True, exist_ok=True)
            if ctx.mode is SourceEncoding.EXTENDED:
                env = build_template_environment("config", repo_root=ctx.root)
                text = env.get_template("adrs.toml.j2").render(
                    records_dir=ctx.relative_records_dir,
                    mode=ctx.mode.value,
                    template_format=ctx.templates.format,
                )
            else:
                text = f"{ctx.relative_records_dir}\n"
            config_file.write_text(text, encoding="utf-8")
            record = self._repo.create(
                INIT_TITLE,
                status=RecordStatus.ACCEPTED.value,
                template="init",
            )
        except OSError as exc:
            return failure(op, ErrorCode.IO_ERROR, f"Could not initialize repository: {exc}")

        logger.debug("Initialized %s (%s mode)", ctx.records_dir, ctx.mode.value)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "root": str(ctx.root),
                "records_dir": str(ctx.records_dir),
                "mode": ctx.mode.value,
                "config_file": str(config_file),
                "record": record_summary(record),
            },
        )
