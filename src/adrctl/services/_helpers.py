"""Shared service-layer helper functions."""

from __future__ import annotations

from typing import Any

from adrctl.domain.records import DecisionRecord
from adrctl.services.result import ErrorCode, ServiceError, ServiceResult


def failure(
    op: str,
    code: ErrorCode,
    message: str,
    *,
    detail: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
    data: dict[str, Any] | None = None,
) -> ServiceResult:
    """Build an ``ok=False`` result."""
    return ServiceResult(
        ok=False,
        op=op,
        data=data or {},
        warnings=warnings or [],
        error=ServiceError(code=code.value, message=message, detail=detail or {}),
    )


def not_initialized(op: str, records_dir: object) -> ServiceResult:
    return failure(
        op,
        ErrorCode.NOT_INITIALIZED,
        f"No records directory at {records_dir}; run 'adrctl init' first",
        detail={"records_dir": str(records_dir)},
    )


def record_summary(record: DecisionRecord) -> dict[str, Any]:
    """Compact, JSON-safe view of a record for list-style payloads."""
    return {
        "number": record.number,
        "title": record.title,
        "status": record.status,
        "date": record.date.isoformat() if record.date else None,
        "path": str(record.path) if record.path else None,
    }


def link_payload(record: DecisionRecord, titles: dict[int, str]) -> list[dict[str, Any]]:
    return [
        {
            "kind": link.kind,
            "target": link.target,
            "title": titles.get(link.target),
            "description": link.description,
        }
        for link in record.links
    ]
