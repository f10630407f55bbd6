"""Core: selectors, dependency graph, settings and logging."""

from fieldplan.core.config import (
    ExecutionSettings,
    FieldplanSettings,
    LoggingSettings,
    load_settings,
)
from fieldplan.core.dag import Edge, FieldGraph, FieldNode, SortedGraph
from fieldplan.core.selectors import normalize

__all__ = [
    "Edge",
    "ExecutionSettings",
    "FieldGraph",
    "FieldNode",
    "FieldplanSettings",
    "LoggingSettings",
    "SortedGraph",
    "load_settings",
    "normalize",
]
