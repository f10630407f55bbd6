# tests/property/engine/test_plan_properties.py
"""Property tests for planning over random acyclic field graphs.

Graphs are generated as f0 (primary) plus fields f1..fn where fi may only
depend on fields with a lower index, declared in a random order. Every
edge carries a constant token so the active dependency closure can be
computed independently of the planner.
"""

from dataclasses import dataclass
from typing import Any

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from fieldplan.contracts.errors import CyclicDependency
from fieldplan.core.dag import SortedGraph
from fieldplan.engine.planner import build_plan
from tests.fixtures.factories import make_graph
from tests.property.settings import DETERMINISM_SETTINGS, STANDARD_SETTINGS


@dataclass(frozen=True)
class RandomGraph:
    declarations: tuple[tuple[str, str, Any], ...]
    # field -> {target: token}
    edges: dict[str, dict[str, Any]]
    requested: tuple[str, ...]


edge_tokens = st.sampled_from([True, False, None, "payload", {"limit": 1}])


@st.composite
def random_graphs(draw: st.DrawFn) -> RandomGraph:
    size = draw(st.integers(min_value=1, max_value=8))
    names = [f"f{i}" for i in range(size)]
    edges: dict[str, dict[str, Any]] = {"f0": {}}
    for index in range(1, size):
        targets = draw(st.lists(st.sampled_from(names[:index]), unique=True, max_size=3))
        edges[names[index]] = {target: draw(edge_tokens) for target in targets}

    order = draw(st.permutations(names))
    declarations = tuple(
        ("primary" if name == "f0" else draw(st.sampled_from(["loaded", "computed"])), name, edges[name] or None)
        for name in order
    )
    requested = tuple(draw(st.lists(st.sampled_from(names), unique=True, max_size=size)))
    return RandomGraph(declarations=declarations, edges=edges, requested=requested)


def _sealed(graph: RandomGraph) -> SortedGraph:
    return make_graph(*graph.declarations).seal()


def _closure(graph: RandomGraph) -> set[str]:
    required = {"f0", *graph.requested}
    pending = list(graph.requested)
    while pending:
        name = pending.pop()
        for target, token in graph.edges[name].items():
            if token is None or token is False or target in required:
                continue
            required.add(target)
            pending.append(target)
    return required


class TestPlanProperties:
    @given(graph=random_graphs())
    @DETERMINISM_SETTINGS
    def test_deterministic(self, graph: RandomGraph) -> None:
        sorted_graph = _sealed(graph)

        first = build_plan(sorted_graph, list(graph.requested))
        second = build_plan(sorted_graph, list(graph.requested))

        assert first == second
        assert [node.selectors for node in first] == [node.selectors for node in second]

    @given(graph=random_graphs())
    @STANDARD_SETTINGS
    def test_minimal(self, graph: RandomGraph) -> None:
        plan = build_plan(_sealed(graph), list(graph.requested))

        assert set(plan.names) == _closure(graph)

    @given(graph=random_graphs())
    @STANDARD_SETTINGS
    def test_dependencies_precede_dependents(self, graph: RandomGraph) -> None:
        plan = build_plan(_sealed(graph), list(graph.requested))
        position = {name: index for index, name in enumerate(plan.names)}

        assert plan.names[0] == "f0"
        for node in plan:
            for dep in node.deps:
                assert position[dep] < position[node.name]

    @given(graph=random_graphs())
    @STANDARD_SETTINGS
    def test_plan_follows_sorted_order(self, graph: RandomGraph) -> None:
        sorted_graph = _sealed(graph)
        plan = build_plan(sorted_graph, list(graph.requested))

        assert plan.names == [name for name in sorted_graph.order if name in plan]

    @given(graph=random_graphs())
    @STANDARD_SETTINGS
    def test_active_deps_match_enabled_edges(self, graph: RandomGraph) -> None:
        plan = build_plan(_sealed(graph), list(graph.requested))

        for node in plan:
            enabled = {t for t, token in graph.edges[node.name].items() if token is not None and token is not False}
            assert node.deps == enabled

    @given(graph=random_graphs(), data=st.data())
    @STANDARD_SETTINGS
    def test_back_edge_rejected(self, graph: RandomGraph, data: st.DataObject) -> None:
        candidates = sorted(name for name in graph.edges if name != "f0")
        assume(candidates)
        source = data.draw(st.sampled_from(candidates))
        # Point a dependency of source back at source (or source at itself)
        targets = [target for target in graph.edges[source] if target != "f0"]
        back = targets[0] if targets else source

        declarations = [
            (kind, name, {**(deps or {}), source: True} if name == back else deps)
            for kind, name, deps in graph.declarations
        ]

        with pytest.raises(CyclicDependency):
            make_graph(*declarations).seal()
