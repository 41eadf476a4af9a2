"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All public service methods return ServiceResult. Domain and
infrastructure exceptions stop at the service boundary and become a
structured :class:`ServiceError` with one of the :class:`ErrorCode` values.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(StrEnum):
    NOT_FOUND = "NOT_FOUND"
    AMBIGUOUS = "AMBIGUOUS"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    MISSING_SUPERSEDED_BY = "MISSING_SUPERSEDED_BY"
    COLLISION = "COLLISION"
    INVALID_FORMAT = "INVALID_FORMAT"
    IO_ERROR = "IO_ERROR"
    PARTIAL_WRITE = "PARTIAL_WRITE"
    NOT_INITIALIZED = "NOT_INITIALIZED"
    ALREADY_INITIALIZED = "ALREADY_INITIALIZED"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"create_record"``).
        data: Operation-specific payload on success (and partial results
            on some failures, e.g. a renumber commit that stopped midway).
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
