"""QueryService — read-only listing and lookup."""

from __future__ import annotations

from adrctl.domain.lifecycle import status_equals
from adrctl.infrastructure.graph.engine import GraphEngine
from adrctl.infrastructure.matching import MatchStatus, contains, text_snippet
from adrctl.services._helpers import failure, link_payload, not_initialized, record_summary
from adrctl.services.base import BaseService
from adrctl.services.result import ErrorCode, ServiceResult
from adrctl.services.telemetry import traced


class QueryService(BaseService):
    @traced
    def list_records(self, *, status: str | None = None) -> ServiceResult:
        """All records by number, optionally only those with *status*.

        Status filtering ignores case, so ``Draft`` and ``draft`` both match.
        """
        op = "list_records"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)

        index = self._load()
        records = [r for r in index if status is None or status_equals(r.status, status)]
        warnings = list(index.warnings)
        warnings += [f"Skipped {f.path.name}: {f.reason}" for f in index.failures]
        warnings += [
            f"Number {n} is used by {len(paths)} files; showing {paths[0].name}"
            for n, paths in sorted(index.duplicates.items())
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={"count": len(records), "items": [record_summary(r) for r in records]},
            warnings=warnings,
        )

    @traced
    def show(self, term: str) -> ServiceResult:
        """Resolve *term* (number or text) and return the full record."""
        op = "show"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)

        index = self._load()
        outcome = self._repo.find(term, index=index)
        if outcome.status is MatchStatus.AMBIGUOUS:
            return failure(
                op,
                ErrorCode.AMBIGUOUS,
                f"{term!r} matches several records; be more specific or use a number",
                detail={
                    "term": term,
                    "candidates": [
                        {"number": c.number, "title": c.title, "score": round(c.score, 3)}
                        for c in outcome.candidates
                    ],
                },
            )
        if outcome.match is None:
            return failure(op, ErrorCode.NOT_FOUND, f"No record matches {term!r}", detail={"term": term})

        record = index.records[outcome.match.number]
        graph = GraphEngine(index)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                **record_summary(record),
                "matched_by": outcome.match.reason,
                "status_notes": record.status_notes,
                "sections": dict(record.sections),
                "links": link_payload(record, index.titles()),
                "superseded_chain": graph.supersession_chain(record.number),
                "metadata": record.metadata.model_dump(exclude_none=True),
            },
        )

    @traced
    def search(
        self,
        query: str,
        *,
        title_only: bool = False,
        status: str | None = None,
        case_sensitive: bool = False,
    ) -> ServiceResult:
        """Records whose title or section text contains *query*.

        Every hit is reported in number order with the sections it was
        found in and a snippet per section. Nothing is ranked.
        """
        op = "search"
        if not self.context.initialized:
            return not_initialized(op, self.context.records_dir)
        if not query.strip():
            return failure(op, ErrorCode.VALIDATION_FAILED, "Search query must not be empty")

        index = self._load()
        items = []
        for record in index:
            if status is not None and not status_equals(record.status, status):
                continue
            matches = []
            if contains(record.title, query, case_sensitive=case_sensitive):
                matches.append({"section": "Title", "snippet": record.title})
            if not title_only:
                matches += [
                    {"section": heading, "snippet": text_snippet(body, query, case_sensitive=case_sensitive)}
                    for heading, body in record.sections.items()
                    if contains(body, query, case_sensitive=case_sensitive)
                ]
            if matches:
                items.append({**record_summary(record), "matches": matches})

        return ServiceResult(
            ok=True,
            op=op,
            data={"query": query, "count": len(items), "items": items},
            warnings=[f"Skipped {f.path.name}: {f.reason}" for f in index.failures],
        )
