# src/fieldplan/core/dag/models.py
"""Node and edge types of the field dependency graph.

Leaf module - only imports from fieldplan.contracts and the selector
normalizer (prevents import cycles).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from fieldplan.contracts.enums import NodeKind
from fieldplan.contracts.errors import InvalidDeclaration
from fieldplan.contracts.types import FieldName, SelectorDeclaration, Token
from fieldplan.core.selectors import normalize


@dataclass(frozen=True, slots=True)
class Edge:
    """A declared dependency: the dependent needs `target`.

    `spec` is the ordered token list attached to the dependency. It gates
    the edge (True/False/None, dynamic selectors) and carries payloads
    delivered to the target's collaborator.
    """

    target: FieldName
    spec: tuple[Token, ...]


@dataclass(frozen=True, slots=True)
class FieldNode:
    """A field in the dependency graph.

    Frozen after construction. `edges` is keyed by target field name and
    wrapped in a read-only mapping proxy.
    """

    name: FieldName
    kind: NodeKind
    edges: Mapping[FieldName, Edge] = field(default_factory=dict)

    def __post_init__(self) -> None:
        try:
            kind = NodeKind(self.kind)
        except ValueError:
            raise InvalidDeclaration(f"invalid type: {self.kind!r}") from None
        if kind is NodeKind.PRIMARY and self.edges:
            raise InvalidDeclaration(f"primary field cannot have dependency: {self.name}")
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "edges", MappingProxyType(dict(self.edges)))

    @classmethod
    def declare(cls, kind: NodeKind | str, name: str, deps: SelectorDeclaration = None) -> FieldNode:
        """Build a node from a dependency declaration.

        Example:
            FieldNode.declare("computed", "fancy_name", ["name", {"books": {"limit": 3}}])

        Raises:
            InvalidDeclaration: On a malformed declaration, an unknown kind,
                or a primary node with dependencies.
        """
        if not isinstance(name, str) or not name:
            raise InvalidDeclaration(f"Invalid field name: {name!r}")
        edges = {target: Edge(target, tuple(spec)) for target, spec in normalize(deps).items()}
        return cls(name=FieldName(name), kind=kind, edges=edges)  # type: ignore[arg-type]

    @property
    def dependencies(self) -> tuple[FieldName, ...]:
        """Declared dependency names in declaration order."""
        return tuple(self.edges)

    def describe(self) -> dict[str, Any]:
        """Plain-data view printed by `fieldplan verify`."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "dependencies": list(self.edges),
        }


def _suggest_similar(name: str, candidates: list[str]) -> list[str]:
    """Suggest similar field names for unknown-field errors."""
    import difflib

    return difflib.get_close_matches(name, candidates, n=3, cutoff=0.6)
