"""Typed links between records and the reverse-kind table.

Pure functions, no infrastructure dependencies. Known kinds are stored
under their display label so that a link parsed from either encoding
compares equal:

    Supersedes / Superseded by / Amends / Amended by / Relates to

Any other kind is a custom label and is kept exactly as written.
"""

from __future__ import annotations

from dataclasses import dataclass

SUPERSEDES = "Supersedes"
SUPERSEDED_BY = "Superseded by"
AMENDS = "Amends"
AMENDED_BY = "Amended by"
RELATES_TO = "Relates to"

KNOWN_KINDS: tuple[str, ...] = (SUPERSEDES, SUPERSEDED_BY, AMENDS, AMENDED_BY, RELATES_TO)

REVERSE_KINDS: dict[str, str] = {
    SUPERSEDES: SUPERSEDED_BY,
    SUPERSEDED_BY: SUPERSEDES,
    AMENDS: AMENDED_BY,
    AMENDED_BY: AMENDS,
    RELATES_TO: RELATES_TO,
}


def _kind_key(kind: str) -> str:
    return " ".join(kind.replace("-", " ").replace("_", " ").split()).lower()


_KIND_LOOKUP: dict[str, str] = {_kind_key(k): k for k in KNOWN_KINDS}
# Older adr-tools releases write the "superceded" spelling.
_KIND_LOOKUP.update({"supercedes": SUPERSEDES, "superceded by": SUPERSEDED_BY})


def canonical_kind(kind: str) -> str:
    """Return the display label for a known kind, else *kind* stripped.

    Accepts any case and spaces, hyphens, or underscores as separators:
    ``superseded-by``, ``SUPERSEDED_BY`` and ``Superseded by`` are the same.
    """
    return _KIND_LOOKUP.get(_kind_key(kind), kind.strip())


def is_known_kind(kind: str) -> bool:
    return _kind_key(kind) in _KIND_LOOKUP


def kind_slug(kind: str) -> str:
    """Machine form of a kind (``superseded-by``); custom kinds pass through."""
    label = canonical_kind(kind)
    if label in REVERSE_KINDS:
        return label.lower().replace(" ", "-")
    return label


def reverse_kind(kind: str) -> str:
    """Complementary kind for the other end of a link.

    Unknown kinds default to themselves.
    """
    label = canonical_kind(kind)
    return REVERSE_KINDS.get(label, label)


def kinds_match(left: str, right: str) -> bool:
    return canonical_kind(left).casefold() == canonical_kind(right).casefold()


@dataclass(frozen=True)
class Link:
    """A directed, typed reference from one record to another."""

    kind: str
    target: int
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", canonical_kind(self.kind))
        if self.description is not None and not self.description.strip():
            object.__setattr__(self, "description", None)

    def retarget(self, target: int) -> Link:
        """Copy of this link pointing at *target*."""
        return Link(kind=self.kind, target=target, description=self.description)

    def same_edge(self, other: Link) -> bool:
        """Same kind and target, ignoring the description."""
        return self.target == other.target and kinds_match(self.kind, other.kind)


def link_pair(source: int, kind: str, target: int, reverse: str | None = None) -> tuple[Link, Link]:
    """Build the forward link (on *source*) and its reverse (on *target*)."""
    forward = Link(kind=kind, target=target)
    backward = Link(kind=reverse if reverse else reverse_kind(kind), target=source)
    return forward, backward
