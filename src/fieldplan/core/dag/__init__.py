"""Field dependency graph: node model, registry and sorted view."""

from fieldplan.core.dag.graph import FieldGraph
from fieldplan.core.dag.models import Edge, FieldNode
from fieldplan.core.dag.sorted import SortedGraph

__all__ = [
    "Edge",
    "FieldGraph",
    "FieldNode",
    "SortedGraph",
]
