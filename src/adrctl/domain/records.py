"""Decision record model and validation.

A :class:`DecisionRecord` is the single in-memory shape for both on-disk
encodings. Encoding-specific details never leak into the model beyond
``source_encoding`` (provenance) and ``path``; both are excluded from
:meth:`DecisionRecord.semantic_dump`, which is what round-trip and
renumbering comparisons use.

Validation follows the content-model pattern: :func:`validate_record`
returns a :class:`ValidationResult`, and :meth:`DecisionRecord.check`
raises :class:`RecordValidationError` carrying every error at once.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from adrctl.domain.ids import record_filename
from adrctl.domain.lifecycle import RecordStatus, SourceEncoding, is_superseded
from adrctl.domain.links import Link, kinds_match


@dataclass(frozen=True)
class ValidationResult:
    """Result of a record validation check."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class RecordValidationError(ValueError):
    """A proposed record or mutation breaks a model invariant."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors))


def validate_record(number: int, title: str, links: Iterable[Link] = ()) -> ValidationResult:
    """Check number positivity, a non-empty title, and no self-links."""
    errors: list[str] = []
    if number < 1:
        errors.append(f"Record number must be positive, got {number}")
    if not title or not title.strip():
        errors.append("Record title must not be empty")
    for link in links:
        if link.target == number:
            errors.append(f"Record {number} cannot link to itself ({link.kind} {link.target})")
        if link.target < 1:
            errors.append(f"Link target must be positive, got {link.target}")
    return ValidationResult(valid=not errors, errors=errors)


class RecordMetadata(BaseModel):
    """Optional extension fields carried only by the extended encoding.

    ``None`` means "not set"; an empty list is a deliberate empty value.
    Unknown header keys land in ``extra`` so they survive a rewrite.
    """

    deciders: list[str] | None = None
    consulted: list[str] | None = None
    informed: list[str] | None = None
    tags: list[str] | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return (
            self.deciders is None
            and self.consulted is None
            and self.informed is None
            and self.tags is None
            and not self.extra
        )


class DecisionRecord(BaseModel):
    """One decision, its status, its prose sections, and its outgoing links."""

    number: int
    title: str
    status: str = RecordStatus.PROPOSED.value.capitalize()
    date: dt.date | None = None
    sections: dict[str, str] = Field(default_factory=dict)
    links: list[Link] = Field(default_factory=list)
    status_notes: str | None = None
    metadata: RecordMetadata = Field(default_factory=RecordMetadata)

    # Provenance, not user data.
    source_encoding: SourceEncoding | None = None
    path: Path | None = None

    @property
    def filename(self) -> str:
        """Canonical filename derived from number and title."""
        return record_filename(self.number, self.title)

    @property
    def full_title(self) -> str:
        """Numbered heading text, e.g. ``7. Authentication mechanism``."""
        return f"{self.number}. {self.title}"

    @property
    def superseded(self) -> bool:
        return is_superseded(self.status)

    def section(self, name: str) -> str | None:
        """Body of the section called *name* (case-insensitive)."""
        wanted = name.strip().casefold()
        for heading, body in self.sections.items():
            if heading.strip().casefold() == wanted:
                return body
        return None

    def links_of_kind(self, kind: str) -> list[Link]:
        return [link for link in self.links if kinds_match(link.kind, kind)]

    def has_link(self, kind: str, target: int) -> bool:
        return any(link.target == target for link in self.links_of_kind(kind))

    def add_link(self, link: Link) -> bool:
        """Append *link* unless an identical kind/target edge exists.

        Returns True when the link was appended.
        """
        if any(existing.same_edge(link) for existing in self.links):
            return False
        self.links.append(link)
        return True

    def validate_record(self) -> ValidationResult:
        return validate_record(self.number, self.title, self.links)

    def check(self) -> None:
        """Raise :class:`RecordValidationError` if this record is invalid."""
        result = self.validate_record()
        if not result.valid:
            raise RecordValidationError(result.errors)

    def semantic_dump(self) -> dict[str, Any]:
        """Everything that carries meaning (drops path and provenance)."""
        data = self.model_dump(exclude={"path", "source_encoding"})
        data["links"] = [(link.kind, link.target, link.description) for link in self.links]
        return data
