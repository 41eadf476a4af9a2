"""LinkService — bidirectional links and status transitions.

INVARIANT: Links created here always come in complementary pairs
(``Amends`` on the source, ``Amended by`` on the target). Parsing may
still load one-sided links from hand-edited files; the doctor reports
those rather than this service repairing them.

Pipeline: VALIDATE → APPLY → PERSIST → RESPOND. Nothing is written until
validation has passed, and both ends of a pair are written as one unit.
"""

from __future__ import annotations

import logging

from adrctl.domain.lifecycle import format_status, is_superseded
from adrctl.domain.links import SUPERSEDED_BY, SUPERSEDES, Link, link_pair
from adrctl.services._helpers import failure, link_payload, not_initialized
from adrctl.services.base import BaseService
from adrctl.services.result import ErrorCode, ServiceResult
from adrctl.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class LinkService(BaseService):
    """Creates links between records and moves records between statuses."""

    @traced
    def link(
        self,
        source: int,
        kind: str,
        target: int,
        *,
        reverse_kind: str | None = None,
    ) -> ServiceResult:
        """Link *source* to *target* and add the reverse link on *target*.

        The reverse kind defaults to the complement of *kind* (unknown kinds
        reverse to themselves). A link identical to an existing one is not
        duplicated.
        """
        op = "link"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)
        if source == target:
            return failure(
                op,
                ErrorCode.VALIDATION_FAILED,
                f"Record {source} cannot link to itself",
                detail={"source": source, "target": target},
            )
        if not kind.strip():
            return failure(op, ErrorCode.VALIDATION_FAILED, "Link kind must not be empty")

        # ── VALIDATE ─────────────────────────────────────────
        index = self._load()
        missing = [n for n in (source, target) if index.get(n) is None]
        if missing:
            return failure(
                op,
                ErrorCode.NOT_FOUND,
                f"No record numbered {', '.join(map(str, missing))}",
                detail={"missing": missing},
            )
        warnings = [
            f"Number {n} is used by several files; linking the first"
            for n in (source, target)
            if n in index.duplicates
        ]
        source_record = index.records[source]
        target_record = index.records[target]

        # ── APPLY ────────────────────────────────────────────
        forward, backward = link_pair(source, kind, target, reverse_kind)
        changed = []
        if source_record.add_link(forward):
            changed.append(source_record)
        if target_record.add_link(backward):
            changed.append(target_record)

        # ── PERSIST ──────────────────────────────────────────
        if changed:
            with trace_span("persist", files=len(changed)):
                try:
                    self._repo.save_all(changed, titles=index.titles())
                except OSError as exc:
                    return failure(op, ErrorCode.IO_ERROR, f"Could not write link: {exc}", warnings=warnings)
        else:
            warnings.append(f"{forward.kind} link from {source} to {target} already exists")

        logger.debug("Linked %d -[%s]-> %d (reverse %s)", source, forward.kind, target, backward.kind)
        titles = index.titles()
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "source": source,
                "target": target,
                "kind": forward.kind,
                "reverse_kind": backward.kind,
                "changed": [r.number for r in changed],
                "source_links": link_payload(source_record, titles),
                "target_links": link_payload(target_record, titles),
            },
            warnings=warnings,
        )

    @traced
    def set_status(
        self,
        number: int,
        status: str,
        *,
        superseded_by: int | None = None,
    ) -> ServiceResult:
        """Change the status of a record.

        Moving to ``superseded`` requires *superseded_by*; the record gets a
        ``Superseded by`` link and the successor a ``Supersedes`` link, and
        both files are written together or not at all.
        """
        op = "set_status"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)
        if not status.strip():
            return failure(op, ErrorCode.VALIDATION_FAILED, "Status must not be empty")

        superseding = is_superseded(status)
        if superseding and superseded_by is None:
            return failure(
                op,
                ErrorCode.MISSING_SUPERSEDED_BY,
                f"Superseding record {number} requires the number of the record that supersedes it",
                detail={"number": number},
            )
        if superseded_by is not None and not superseding:
            return failure(
                op,
                ErrorCode.VALIDATION_FAILED,
                f"A superseding record only applies to status 'superseded', not {status!r}",
                detail={"number": number, "status": status, "superseded_by": superseded_by},
            )
        if superseded_by == number:
            return failure(op, ErrorCode.VALIDATION_FAILED, f"Record {number} cannot supersede itself")

        index = self._load()
        record = index.get(number)
        if record is None:
            return failure(op, ErrorCode.NOT_FOUND, f"No record numbered {number}", detail={"missing": [number]})
        successor = None
        if superseded_by is not None:
            successor = index.get(superseded_by)
            if successor is None:
                return failure(
                    op,
                    ErrorCode.NOT_FOUND,
                    f"No record numbered {superseded_by}",
                    detail={"missing": [superseded_by]},
                )

        previous = record.status
        record.status = format_status(status, self.context.mode)
        changed = [record]
        if successor is not None:
            record.add_link(Link(kind=SUPERSEDED_BY, target=successor.number))
            if successor.add_link(Link(kind=SUPERSEDES, target=record.number)):
                changed.append(successor)

        try:
            self._repo.save_all(changed, titles=index.titles())
        except OSError as exc:
            return failure(op, ErrorCode.IO_ERROR, f"Could not update status: {exc}")

        logger.debug("Record %d status %r -> %r", number, previous, record.status)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "number": number,
                "previous_status": previous,
                "status": record.status,
                "superseded_by": superseded_by,
                "changed": [r.number for r in changed],
            },
        )
