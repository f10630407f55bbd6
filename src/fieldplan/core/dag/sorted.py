# src/fieldplan/core/dag/sorted.py
"""SortedGraph - validated, topologically ordered view of a FieldGraph.

Wraps a NetworkX DiGraph whose edges point from a dependent field to the
field it depends on. The load order is the DFS post-order over every
node (primary first, then declaration order), so each dependency precedes
its dependents and the primary field is always first.

Immutable once built; safe to share across concurrent requests.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from types import MappingProxyType

import networkx as nx
from networkx import DiGraph

from fieldplan.contracts.enums import NodeKind
from fieldplan.contracts.errors import (
    CyclicDependency,
    DanglingReference,
    MissingPrimary,
    MultiplePrimary,
)
from fieldplan.contracts.types import FieldName
from fieldplan.core.dag.models import FieldNode, _suggest_similar


class SortedGraph:
    """Validated dependency graph in load order.

    Build with SortedGraph.from_nodes() or FieldGraph.seal().
    """

    __slots__ = ("_graph", "_nodes", "_order", "_positions", "_primary")

    def __init__(self, graph: DiGraph[str], nodes: dict[FieldName, FieldNode], order: tuple[FieldName, ...]) -> None:
        self._graph = graph
        self._nodes = MappingProxyType(nodes)
        self._order = order
        self._positions = MappingProxyType({name: index for index, name in enumerate(order)})
        self._primary = order[0]

    @classmethod
    def from_nodes(cls, nodes: Sequence[FieldNode]) -> SortedGraph:
        """Validate the nodes and compute the load order.

        Validates:
        1. Exactly one primary node exists
        2. Every edge targets a declared field
        3. The graph is acyclic (self-dependency included)

        Raises:
            MissingPrimary: If no primary node is declared
            MultiplePrimary: If more than one primary node is declared
            DanglingReference: If an edge targets an undeclared field
            CyclicDependency: If the dependency graph contains a cycle
        """
        primaries = [node.name for node in nodes if node.kind is NodeKind.PRIMARY]
        if not primaries:
            raise MissingPrimary()
        if len(primaries) > 1:
            raise MultiplePrimary(primaries)

        by_name = {node.name: node for node in nodes}
        for node in nodes:
            for target in node.edges:
                if target not in by_name:
                    raise DanglingReference(target, node.name, suggestions=_suggest_similar(target, list(by_name)))

        graph: DiGraph[str] = nx.DiGraph()
        # Insertion order drives traversal order: primary first
        graph.add_node(primaries[0])
        graph.add_nodes_from(by_name)
        for node in nodes:
            graph.add_edges_from((node.name, target) for target in node.edges)

        try:
            cycle = nx.find_cycle(graph)
        except nx.NetworkXNoCycle:
            pass
        else:
            path = [edge[0] for edge in cycle]
            path.append(cycle[-1][1])
            raise CyclicDependency(path[0], path)

        order = tuple(FieldName(name) for name in nx.dfs_postorder_nodes(graph))
        return cls(nx.freeze(graph), by_name, order)

    @property
    def primary(self) -> FieldName:
        """Name of the primary field (always first in load order)."""
        return self._primary

    @property
    def order(self) -> tuple[FieldName, ...]:
        """All field names, dependencies before dependents."""
        return self._order

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __getitem__(self, name: str) -> FieldNode:
        return self._nodes[FieldName(name)]

    def __iter__(self) -> Iterator[FieldNode]:
        return (self._nodes[name] for name in self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        return f"SortedGraph({list(self._order)!r})"

    def node(self, name: str) -> FieldNode:
        """Get a node by name.

        Raises:
            DanglingReference: If the field is not declared
        """
        try:
            return self._nodes[FieldName(name)]
        except KeyError:
            raise DanglingReference(name, suggestions=_suggest_similar(name, list(self._order))) from None

    def position(self, name: FieldName) -> int:
        """Index of the field in load order."""
        return self._positions[name]

    def get_nx_graph(self) -> DiGraph[str]:
        """Return the underlying frozen NetworkX graph (dependent -> dependency)."""
        return self._graph
