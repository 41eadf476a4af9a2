"""BaseService — abstract foundation for all adrctl services.

Every service receives a :class:`RecordRepository` at construction time.
The repository carries the explicit :class:`RepositoryContext` and owns
all file access.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from adrctl.services.telemetry import annotate, trace_span

if TYPE_CHECKING:
    from adrctl.config.models import RepositoryContext
    from adrctl.infrastructure.repository import RecordIndex, RecordRepository


def load_index(repository: RecordRepository) -> RecordIndex:
    """Scan *repository* as a ``load`` span annotated with what the scan found."""
    with trace_span("load", mode=repository.context.mode.value):
        index = repository.load()
        annotate(
            files=len(index.entries) + len(index.failures),
            records=len(index.entries),
            failures=len(index.failures),
            duplicates=len(index.duplicates),
        )
    return index


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class LinkService(BaseService):
            def link(self, source: int, kind: str, target: int) -> ServiceResult:
                index = self._load()
                ...
    """

    def __init__(self, repository: RecordRepository) -> None:
        self._repo = repository

    @property
    def context(self) -> RepositoryContext:
        return self._repo.context

    def _load(self) -> RecordIndex:
        return load_index(self._repo)
