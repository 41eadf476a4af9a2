"""Telemetry — timed spans over service calls and the file work under them.

Off unless ``--verbose`` is given; when off every entry point costs one
ContextVar lookup. When on, a ``@traced`` service method opens the root
span, directory scans and plan commits open child spans, and each span
carries what it touched (files scanned, records parsed, files written).
The finished tree is attached to ``ServiceResult.meta["telemetry"]`` and
logged through structlog.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from adrctl.services.result import ServiceResult

_enabled: ContextVar[bool] = ContextVar("_telemetry_enabled", default=False)
_active: ContextVar[Span | None] = ContextVar("_active_span", default=None)

log = structlog.get_logger("adrctl.telemetry")


@dataclass
class Span:
    """One timed step; children are the steps it ran."""

    name: str
    annotations: dict[str, Any] = field(default_factory=dict)
    children: list[Span] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None

    @property
    def duration_ms(self) -> float:
        return 0.0 if self.finished is None else (self.finished - self.started) * 1000

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


def annotate(**values: Any) -> None:
    """Record facts (counts, mode, paths) on the span that is running, if any."""
    span = _active.get()
    if span is not None:
        span.annotations.update(values)


@contextmanager
def trace_span(name: str, **annotations: Any) -> Generator[Span | None]:
    """Time a step as a child of the running span.

    Yields None when telemetry is off or nothing traced is running, so a
    repository used outside a service call records nothing.
    """
    parent = _active.get() if _enabled.get() else None
    if parent is None:
        yield None
        return

    span = Span(name=name, annotations=annotations)
    parent.children.append(span)
    token = _active.set(span)
    try:
        yield span
    finally:
        span.finished = time.perf_counter()
        _active.reset(token)


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Run a service method as a root span and attach the tree to its result."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        token = _active.set(span)
        try:
            result = func(*args, **kwargs)
        except Exception:
            log.debug("service.failed", span=span.name, children=len(span.children))
            raise
        finally:
            span.finished = time.perf_counter()
            _active.reset(token)

        if not isinstance(result, ServiceResult):
            return result
        span.annotations.update(op=result.op, ok=result.ok, warnings=len(result.warnings))
        log.debug(
            "service.complete",
            span=span.name,
            duration_ms=round(span.duration_ms, 2),
            **span.annotations,
        )
        meta = {**(result.meta or {}), "telemetry": span.to_dict()}
        return result.model_copy(update={"meta": meta})  # type: ignore[return-value]

    return wrapper


def enable_telemetry() -> None:
    """Turn span collection on (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)
