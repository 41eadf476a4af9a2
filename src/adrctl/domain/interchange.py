"""JSON interchange documents for moving records between repositories.

Three document shapes are accepted on read and detected automatically:

* bulk:   ``{"$schema", "version", "generated_at", "tool", "repository", "adrs": [...]}``
* single: ``{"$schema", "version", "adr": {...}}``
* bare:   a record object on its own

Export always writes the bulk shape. Records carry their ordered
``sections`` plus the conventional ``context`` / ``decision`` /
``consequences`` fields for consumers that only know those; on read,
``sections`` wins when present.
"""

from __future__ import annotations

import datetime as dt
import json
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from adrctl import __version__
from adrctl.domain.links import Link, kind_slug
from adrctl.domain.records import DecisionRecord, RecordMetadata

INTERCHANGE_VERSION = "1.0.0"
INTERCHANGE_SCHEMA = "https://adrctl.dev/schema/json-adr/v1.json"
TOOL_NAME = "adrctl"


class InterchangeError(ValueError):
    """The document is not valid JSON or matches no known shape."""


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class InterchangeLink(_Model):
    type: str
    target: int
    description: str | None = None


class ConsideredOption(_Model):
    name: str
    description: str | None = None
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)


class SourceInfo(_Model):
    repository: str | None = None
    path: str | None = None


class InterchangeRecord(_Model):
    """One record in interchange form."""

    number: int
    title: str
    status: str = "Proposed"
    date: str | None = None
    deciders: list[str] | None = None
    consulted: list[str] | None = None
    informed: list[str] | None = None
    tags: list[str] | None = None
    context: str | None = None
    decision_drivers: list[str] = Field(default_factory=list)
    considered_options: list[ConsideredOption] = Field(default_factory=list)
    decision: str | None = None
    consequences: str | None = None
    confirmation: str | None = None
    sections: dict[str, str] | None = None
    custom_sections: dict[str, str] = Field(default_factory=dict)
    status_notes: str | None = None
    links: list[InterchangeLink] = Field(default_factory=list)
    source: SourceInfo | None = None

    def to_record(self) -> DecisionRecord:
        """Convert to a :class:`DecisionRecord` (no path, no encoding)."""
        record_date: dt.date | None = None
        if self.date:
            try:
                record_date = dt.date.fromisoformat(self.date[:10])
            except ValueError as exc:
                raise InterchangeError(f"record {self.number}: invalid date {self.date!r}") from exc
        return DecisionRecord(
            number=self.number,
            title=self.title,
            status=self.status,
            date=record_date,
            sections=self._sections(),
            links=[
                Link(kind=link.type, target=link.target, description=link.description)
                for link in self.links
            ],
            status_notes=self.status_notes,
            metadata=RecordMetadata(
                deciders=self.deciders,
                consulted=self.consulted,
                informed=self.informed,
                tags=self.tags,
            ),
        )

    def _sections(self) -> dict[str, str]:
        if self.sections is not None:
            return dict(self.sections)
        sections: dict[str, str] = {}
        if self.context:
            sections["Context"] = self.context
        if self.decision_drivers:
            sections["Decision Drivers"] = "\n".join(f"* {d}" for d in self.decision_drivers)
        if self.considered_options:
            sections["Considered Options"] = "\n".join(
                f"* {o.name}: {o.description}" if o.description else f"* {o.name}"
                for o in self.considered_options
            )
        if self.decision:
            sections["Decision"] = self.decision
        if self.consequences:
            sections["Consequences"] = self.consequences
        if self.confirmation:
            sections["Confirmation"] = self.confirmation
        sections.update(self.custom_sections)
        return sections


class ToolInfo(_Model):
    name: str = TOOL_NAME
    version: str = __version__


class RepositoryInfo(_Model):
    name: str | None = None
    adr_directory: str


class BulkExport(_Model):
    schema_url: str | None = Field(default=INTERCHANGE_SCHEMA, alias="$schema")
    version: str = INTERCHANGE_VERSION
    generated_at: str | None = None
    tool: ToolInfo | None = None
    repository: RepositoryInfo | None = None
    adrs: list[InterchangeRecord]


class SingleExport(_Model):
    schema_url: str | None = Field(default=INTERCHANGE_SCHEMA, alias="$schema")
    version: str = INTERCHANGE_VERSION
    adr: InterchangeRecord


def record_to_interchange(record: DecisionRecord, *, repository: str | None = None) -> InterchangeRecord:
    """Convert a record for export."""
    decision = record.section("decision")
    if decision is None:
        decision = record.section("decision outcome")
    source = None
    if record.path is not None or repository is not None:
        source = SourceInfo(
            repository=repository,
            path=record.path.name if record.path is not None else None,
        )
    return InterchangeRecord(
        number=record.number,
        title=record.title,
        status=record.status,
        date=record.date.isoformat() if record.date else None,
        deciders=record.metadata.deciders,
        consulted=record.metadata.consulted,
        informed=record.metadata.informed,
        tags=record.metadata.tags,
        context=record.section("context"),
        decision=decision,
        consequences=record.section("consequences"),
        sections=dict(record.sections),
        status_notes=record.status_notes,
        links=[
            InterchangeLink(type=kind_slug(link.kind), target=link.target, description=link.description)
            for link in record.links
        ],
        source=source,
    )


def build_bulk_export(
    records: Iterable[DecisionRecord],
    *,
    records_dir: str,
    repository_name: str | None = None,
) -> BulkExport:
    return BulkExport(
        generated_at=dt.datetime.now(dt.UTC).isoformat(timespec="seconds"),
        tool=ToolInfo(),
        repository=RepositoryInfo(name=repository_name, adr_directory=records_dir),
        adrs=[record_to_interchange(r, repository=repository_name) for r in records],
    )


def dump_document(document: BulkExport | SingleExport) -> str:
    """Serialize an interchange document as indented JSON."""
    return document.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def decode_interchange(text: str) -> list[InterchangeRecord]:
    """Parse any accepted document shape into its records.

    Raises:
        InterchangeError: Invalid JSON, or a document matching no shape.
    """
    try:
        payload: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InterchangeError(f"invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise InterchangeError("interchange document must be a JSON object")

    try:
        if "adrs" in payload:
            return BulkExport.model_validate(payload).adrs
        if "adr" in payload:
            return [SingleExport.model_validate(payload).adr]
        if "number" in payload and "title" in payload:
            return [InterchangeRecord.model_validate(payload)]
    except ValidationError as exc:
        raise InterchangeError(f"invalid interchange document: {exc}") from exc
    raise InterchangeError("unrecognized interchange document (expected 'adrs', 'adr', or a record)")
