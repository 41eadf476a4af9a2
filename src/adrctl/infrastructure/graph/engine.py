"""GraphEngine — lazy-built NetworkX graph over a record index.

Rebuilt per invocation, no cross-invocation cache. Commands that do not
need graph operations never build it.

Nodes are record numbers. A link to a number no record owns still adds a
node, flagged ``exists=False``, so dangling links are plain graph queries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import networkx as nx

from adrctl.domain.links import SUPERSEDED_BY, canonical_kind, reverse_kind

if TYPE_CHECKING:
    from adrctl.infrastructure.repository import RecordIndex

type _Graph = nx.DiGraph


class GraphEngine:
    """Lazy-loading directed link graph."""

    def __init__(self, index: RecordIndex) -> None:
        self._index = index
        self._graph: _Graph | None = None

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def invalidate(self) -> None:
        self._graph = None

    def _build(self) -> _Graph:
        """Add every owned record first, then one edge per source/target pair.

        Parallel links of different kinds share an edge; its ``kinds``
        attribute lists them in file order. Edges come from every entry,
        so links held by a duplicate-numbered file are checked too.
        """
        g: _Graph = nx.DiGraph()
        for record in self._index.records.values():
            g.add_node(record.number, title=record.title, status=record.status, exists=True)

        for record in self._index.entries:
            for link in record.links:
                if link.target not in g:
                    g.add_node(link.target, exists=False)
                if g.has_edge(record.number, link.target):
                    kinds = g.edges[record.number, link.target]["kinds"]
                    if link.kind not in kinds:
                        kinds.append(link.kind)
                else:
                    g.add_edge(record.number, link.target, kinds=[link.kind])
        return g

    def has_link(self, source: int, target: int, kind: str) -> bool:
        if not self.graph.has_edge(source, target):
            return False
        wanted = canonical_kind(kind).casefold()
        return any(k.casefold() == wanted for k in self.graph.edges[source, target]["kinds"])

    def dangling_links(self) -> list[tuple[int, str, int]]:
        """``(source, kind, target)`` for every link to a missing record."""
        found: list[tuple[int, str, int]] = []
        for source, target, data in sorted(self.graph.edges(data=True)):
            if not self.graph.nodes[target].get("exists"):
                found.extend((source, kind, target) for kind in data["kinds"])
        return found

    def missing_reciprocals(self, kind: str) -> list[tuple[int, int]]:
        """``(source, target)`` pairs where *kind* has no reverse link back.

        Only existing targets are considered; dangling links are reported
        separately.
        """
        expected = reverse_kind(kind)
        missing: list[tuple[int, int]] = []
        for source, target in sorted(self.graph.edges()):
            if not self.graph.nodes[target].get("exists"):
                continue
            if self.has_link(source, target, kind) and not self.has_link(target, source, expected):
                missing.append((source, target))
        return missing

    def successors_of_kind(self, number: int, kind: str) -> list[int]:
        if number not in self.graph:
            return []
        return sorted(t for t in self.graph.successors(number) if self.has_link(number, t, kind))

    def supersession_chain(self, number: int) -> list[int]:
        """Follow ``Superseded by`` links from *number* to the current record.

        Stops at the first record with no successor, or on a cycle.
        """
        chain: list[int] = []
        seen = {number}
        current = number
        while True:
            successors = self.successors_of_kind(current, SUPERSEDED_BY)
            if not successors or successors[0] in seen:
                return chain
            current = successors[0]
            seen.add(current)
            chain.append(current)
