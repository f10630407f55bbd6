# src/fieldplan/engine/planner.py
"""Per-request planning.

The planner compiles a requested-field declaration into the minimal,
dependency-ordered list of fields needed to satisfy it:

1. Seed the required set with the primary field and the requested
   fields; the requested fields' own tokens become their first incoming
   selectors.
2. Walk the sorted graph from dependents to dependencies. Every required
   field evaluates its edges against its accumulated incoming selectors;
   each active edge pulls its target into the required set and forwards
   the substituted tokens to it. All dependents of a field are visited
   before the field itself, so its incoming selectors are complete by the
   time its own edges are evaluated.
3. Emit the required fields in load order (primary first).

Incoming selectors are merged in first-discovered order: the caller's
tokens first, then each dependent's tokens in load order. Nothing is
de-duplicated.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from fieldplan.contracts.enums import NodeKind
from fieldplan.contracts.errors import DanglingReference
from fieldplan.contracts.types import FieldName, SelectorDeclaration, Token
from fieldplan.core.dag.models import _suggest_similar
from fieldplan.core.dag.sorted import SortedGraph
from fieldplan.core.logging import get_logger
from fieldplan.core.selectors import evaluate_spec, is_active, normalize, strip_flags

slog = get_logger(__name__)

# Caller-supplied selectors sort before any dependent's contribution
_REQUEST_POSITION = -1


@dataclass(frozen=True, slots=True)
class PlanNode:
    """What the executor needs to run one field for one request.

    Attributes:
        name: Field name
        kind: Field kind
        deps: Targets of the edges that evaluated active for this request;
            the only fields the field's collaborator may read
        selectors: Merged incoming tokens, flags included
    """

    name: FieldName
    kind: NodeKind
    deps: frozenset[FieldName]
    selectors: tuple[Token, ...]

    @property
    def filtered_selectors(self) -> list[Token]:
        """Selectors as delivered to collaborators (True/False/None removed)."""
        return strip_flags(self.selectors)


@dataclass(frozen=True, slots=True)
class Plan:
    """Ordered fields to resolve for one request.

    Built and discarded per batch call; never mutated.

    Attributes:
        load_order: Plan nodes, dependencies before dependents, primary first
        toplevel: The fields the caller explicitly asked for
    """

    load_order: tuple[PlanNode, ...]
    toplevel: frozenset[FieldName]
    _by_name: dict[FieldName, PlanNode] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_name", {node.name: node for node in self.load_order})

    def __getitem__(self, name: str) -> PlanNode:
        return self._by_name[FieldName(name)]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[PlanNode]:
        return iter(self.load_order)

    def __len__(self) -> int:
        return len(self.load_order)

    def get(self, name: str) -> PlanNode | None:
        return self._by_name.get(FieldName(name))

    @property
    def names(self) -> list[FieldName]:
        """Field names in load order."""
        return [node.name for node in self.load_order]

    def describe(self) -> list[dict[str, Any]]:
        """Plain-data view of the plan (CLI output, log events)."""
        return [
            {
                "name": node.name,
                "kind": node.kind.value,
                "deps": sorted(node.deps),
                "selectors": [repr(token) for token in node.filtered_selectors],
                "requested": node.name in self.toplevel,
            }
            for node in self.load_order
        ]


def build_plan(graph: SortedGraph, requested: SelectorDeclaration, *, log_plan: bool = False) -> Plan:
    """Compute the plan for a request.

    Args:
        graph: Validated, sorted field graph
        requested: Requested fields, in any declaration shape accepted by normalize()
        log_plan: Log the plan at INFO instead of DEBUG

    Returns:
        The plan; identical inputs always produce identical plans.

    Raises:
        InvalidDeclaration: If the request is malformed
        DanglingReference: If a requested field is not declared
    """
    normalized = normalize(requested)
    for name in normalized:
        if name not in graph:
            raise DanglingReference(name, suggestions=_suggest_similar(name, list(graph.order)))

    # field -> [(position of the contributor, tokens)]
    incoming: dict[FieldName, list[tuple[int, list[Token]]]] = {graph.primary: []}
    for name, tokens in normalized.items():
        incoming.setdefault(name, []).append((_REQUEST_POSITION, tokens))

    active_deps: dict[FieldName, frozenset[FieldName]] = {}
    merged: dict[FieldName, tuple[Token, ...]] = {}

    for node in reversed(list(graph)):
        contributions = incoming.get(node.name)
        if contributions is None:
            continue
        contributions.sort(key=lambda item: item[0])
        selectors = tuple(token for _, tokens in contributions for token in tokens)
        merged[node.name] = selectors

        position = graph.position(node.name)
        deps: set[FieldName] = set()
        for edge in node.edges.values():
            tokens = evaluate_spec(edge.spec, selectors)
            if not is_active(tokens):
                continue
            deps.add(edge.target)
            incoming.setdefault(edge.target, []).append((position, tokens))
        active_deps[node.name] = frozenset(deps)

    load_order = tuple(
        PlanNode(name=node.name, kind=node.kind, deps=active_deps[node.name], selectors=merged[node.name])
        for node in graph
        if node.name in merged
    )
    plan = Plan(load_order=load_order, toplevel=frozenset(normalized))

    log = slog.info if log_plan else slog.debug
    log("plan_built", load_order=plan.names, toplevel=sorted(plan.toplevel))
    return plan
