"""ExportService / ImportService — JSON interchange in and out.

Import is a thin wrapper around :func:`renumber_with_remap`: decode the
document, pick a starting number, and either preview (dry run) or commit.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from adrctl.domain.interchange import InterchangeError, build_bulk_export, decode_interchange
from adrctl.services._helpers import failure, not_initialized
from adrctl.services.base import BaseService
from adrctl.services.renumber import RenumberCollisionError, RenumberValidationError, renumber_with_remap
from adrctl.services.result import ErrorCode, ServiceResult
from adrctl.services.telemetry import traced

logger = logging.getLogger(__name__)


class ExportService(BaseService):
    @traced
    def export(self, numbers: Sequence[int] | None = None) -> ServiceResult:
        """Bulk interchange document for all records, or just *numbers*."""
        op = "export"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)

        index = self._load()
        if numbers:
            missing = [n for n in numbers if index.get(n) is None]
            if missing:
                return failure(
                    op,
                    ErrorCode.NOT_FOUND,
                    f"No record numbered {', '.join(map(str, missing))}",
                    detail={"missing": missing},
                )
            records = [index.records[n] for n in numbers]
        else:
            records = list(index)

        document = build_bulk_export(
            records,
            records_dir=self.context.relative_records_dir,
            repository_name=self.context.root.name or None,
        )
        warnings = [f"Skipped {f.path.name}: {f.reason}" for f in index.failures]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "count": len(records),
                "document": document.model_dump(mode="json", by_alias=True, exclude_none=True),
            },
            warnings=warnings,
        )


class ImportService(BaseService):
    @traced
    def import_records(
        self,
        text: str,
        *,
        renumber: bool = False,
        dry_run: bool = False,
        overwrite: bool = False,
    ) -> ServiceResult:
        """Import an interchange document into this repository.

        With *renumber*, incoming records are numbered from the next free
        number and links among them follow. Without it they keep their
        numbers and any clash is a collision.
        """
        op = "import"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)

        try:
            incoming = [item.to_record() for item in decode_interchange(text)]
        except InterchangeError as exc:
            return failure(op, ErrorCode.INVALID_FORMAT, str(exc))
        if not incoming:
            return ServiceResult(ok=True, op=op, data={"dry_run": dry_run, "count": 0}, warnings=["Nothing to import"])

        starting = self._load().next_number if renumber else None
        try:
            outcome = renumber_with_remap(
                incoming,
                starting,
                destination=self._repo,
                write=not dry_run,
                overwrite=overwrite,
            )
        except RenumberCollisionError as exc:
            return failure(
                op,
                ErrorCode.COLLISION,
                str(exc),
                detail={"collisions": exc.collisions},
                warnings=exc.plan.warnings,
                data={"plan": exc.plan.to_dict()},
            )
        except RenumberValidationError as exc:
            return failure(
                op,
                ErrorCode.VALIDATION_FAILED,
                str(exc),
                detail={"invalid": {str(n): errors for n, errors in exc.invalid.items()}},
                warnings=exc.plan.warnings,
                data={"plan": exc.plan.to_dict()},
            )

        plan = outcome.plan
        data: dict[str, object] = {"dry_run": dry_run, "count": len(plan.records), "plan": plan.to_dict()}
        warnings = list(plan.warnings)
        if dry_run and plan.collisions:
            warnings.append(
                f"Would collide with existing record(s) {', '.join(map(str, plan.collisions))}"
                + ("; they would be overwritten" if overwrite else "")
            )

        report = outcome.report
        if report is not None:
            data["commit"] = report.to_dict()
            if not report.complete:
                return failure(
                    op,
                    ErrorCode.PARTIAL_WRITE,
                    f"Import stopped after writing {len(report.written)} of {len(plan.records)} records",
                    detail=report.to_dict(),
                    warnings=warnings,
                    data=data,
                )

        logger.debug("Imported %d records (dry_run=%s)", len(plan.records), dry_run)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)
