# src/fieldplan/core/dag/graph.py
"""FieldGraph - mutable registry of field nodes for one declaring unit.

A graph is built once at definition time. Each declaring unit (a model
class, a mixin) produces its own partial graph; partial graphs are
combined with FieldGraph.merge(), and the combined graph is sealed into
an immutable SortedGraph before any request is planned.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from fieldplan.contracts.errors import FieldKindConflict, InvalidDeclaration
from fieldplan.contracts.types import FieldName
from fieldplan.core.dag.models import FieldNode
from fieldplan.core.logging import get_logger

if TYPE_CHECKING:
    from fieldplan.core.dag.sorted import SortedGraph

slog = get_logger(__name__)


class FieldGraph:
    """Registry of field nodes in declaration order.

    Example:
        graph = FieldGraph()
        graph.add(FieldNode.declare("computed", "foo", {"bar": []}))
        graph.add(FieldNode.declare("loaded", "bar"))
        graph.add(FieldNode.declare("primary", "id"))
        sorted_graph = graph.seal()
    """

    def __init__(self) -> None:
        self._nodes: dict[FieldName, FieldNode] = {}
        self._sorted: SortedGraph | None = None

    def __getitem__(self, name: str) -> FieldNode | None:
        """Return the node with the given name, or None if undeclared."""
        return self._nodes.get(FieldName(name))

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __iter__(self) -> Iterator[FieldNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"FieldGraph({list(self._nodes)!r})"

    @property
    def is_sealed(self) -> bool:
        return self._sorted is not None

    def add(self, node: FieldNode) -> None:
        """Register a node.

        Raises:
            InvalidDeclaration: If the field is already declared in this
                graph, or the graph has been sealed.
        """
        if self._sorted is not None:
            raise InvalidDeclaration(f"Cannot declare {node.name}: graph is sealed")
        if node.name in self._nodes:
            raise InvalidDeclaration(f"Field already declared: {node.name}")
        self._nodes[node.name] = node

    @classmethod
    def merge(cls, *graphs: FieldGraph) -> FieldGraph:
        """Combine partial graphs, least specific first.

        A field declared again with the same kind is replaced by the later
        declaration and keeps its original position. A field declared with
        different kinds is a definition bug.

        Raises:
            FieldKindConflict: If two graphs declare one field with different kinds.
        """
        nodes: dict[FieldName, FieldNode] = {}
        for graph in graphs:
            for node in graph:
                existing = nodes.get(node.name)
                if existing is not None and existing.kind != node.kind:
                    raise FieldKindConflict(node.name)
                nodes[node.name] = node

        merged = cls()
        merged._nodes = nodes
        return merged

    def seal(self) -> SortedGraph:
        """Validate and topologically order the graph (cached).

        Raises:
            MissingPrimary, MultiplePrimary, DanglingReference, CyclicDependency
        """
        if self._sorted is None:
            from fieldplan.core.dag.sorted import SortedGraph

            self._sorted = SortedGraph.from_nodes(list(self._nodes.values()))
            slog.debug("graph_sealed", field_count=len(self._nodes), order=list(self._sorted.order))
        return self._sorted
