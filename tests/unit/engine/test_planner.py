# tests/unit/engine/test_planner.py
"""Tests for per-request planning."""

from collections.abc import Mapping
from typing import Any

import pytest

from fieldplan.contracts.enums import NodeKind
from fieldplan.contracts.errors import DanglingReference, InvalidDeclaration
from fieldplan.core.dag import SortedGraph
from fieldplan.engine.planner import build_plan
from tests.fixtures.factories import sealed


def _flagged(selectors: list[Any]) -> bool:
    return any(isinstance(s, Mapping) and s.get("flag") for s in selectors)


@pytest.fixture
def collecting_graph() -> SortedGraph:
    """Three dependents sending different payloads to one loader."""
    return sealed(
        ("computed", "field1", {"field2": {"a": 42}}),
        ("loaded", "field2", None),
        ("computed", "field3", {"field2": {"b": 84}}),
        ("primary", "field4", None),
        ("computed", "field5", {"field2": {"c": 420}}),
    )


class TestMinimality:
    def test_only_required_fields_planned(self, collecting_graph: SortedGraph) -> None:
        plan = build_plan(collecting_graph, ["field1"])

        assert plan.names == ["field4", "field2", "field1"]

    def test_primary_always_planned(self, collecting_graph: SortedGraph) -> None:
        plan = build_plan(collecting_graph, [])

        assert plan.names == ["field4"]
        assert plan["field4"].kind is NodeKind.PRIMARY
        assert plan["field4"].selectors == ()

    def test_transitive_dependencies_planned(self) -> None:
        graph = sealed(("primary", "id", None), ("computed", "c", "b"), ("computed", "b", "a"), ("loaded", "a", None))

        assert build_plan(graph, ["c"]).names == ["id", "a", "b", "c"]

    def test_toplevel_is_the_requested_set(self, collecting_graph: SortedGraph) -> None:
        plan = build_plan(collecting_graph, ["field1", "field5"])

        assert plan.toplevel == {"field1", "field5"}

    def test_unknown_request_rejected(self, collecting_graph: SortedGraph) -> None:
        with pytest.raises(DanglingReference, match="No dependency info for #field9"):
            build_plan(collecting_graph, ["field9"])

    def test_malformed_request_rejected(self, collecting_graph: SortedGraph) -> None:
        with pytest.raises(InvalidDeclaration):
            build_plan(collecting_graph, [["field1"]])

    def test_deterministic(self, collecting_graph: SortedGraph) -> None:
        assert build_plan(collecting_graph, ["field1", "field5"]) == build_plan(collecting_graph, ["field1", "field5"])


class TestSelectorAccumulation:
    def test_dependents_contribute_in_load_order(self, collecting_graph: SortedGraph) -> None:
        plan = build_plan(collecting_graph, ["field5", "field1"])

        assert plan.names == ["field4", "field2", "field1", "field5"]
        assert plan["field2"].selectors == ({"a": 42}, {"c": 420})
        assert plan["field1"].selectors == (True,)

    def test_caller_tokens_come_first(self, collecting_graph: SortedGraph) -> None:
        plan = build_plan(collecting_graph, ["field3", {"field2": {"z": 0}}])

        assert plan["field2"].selectors == ({"z": 0}, {"b": 84})

    def test_duplicates_kept(self) -> None:
        graph = sealed(
            ("primary", "id", None),
            ("loaded", "books", None),
            ("computed", "a", {"books": "title"}),
            ("computed", "b", {"books": "title"}),
        )

        plan = build_plan(graph, ["a", "b"])

        assert plan["books"].selectors == ("title", "title")

    def test_filtered_selectors_drop_flags(self) -> None:
        graph = sealed(("primary", "id", None), ("loaded", "books", None), ("computed", "a", ["books", {"books": 3}]))

        plan = build_plan(graph, ["a"])

        assert plan["books"].selectors == (True, 3)
        assert plan["books"].filtered_selectors == [3]

    def test_requested_primary_receives_caller_tokens(self) -> None:
        graph = sealed(("primary", "id", None), ("computed", "a", None))

        plan = build_plan(graph, {"id": "columns"})

        assert plan["id"].selectors == ("columns",)

    def test_dynamic_selectors_forward_transformed_tokens(self) -> None:
        graph = sealed(
            ("primary", "id", None),
            ("computed", "c", {"b": "pb"}),
            ("computed", "b", {"a": lambda selectors: [f"{s}!" for s in selectors]}),
            ("loaded", "a", None),
        )

        plan = build_plan(graph, ["c"])

        assert plan["b"].selectors == ("pb",)
        assert plan["a"].selectors == ("pb!",)


class TestConditionalEdges:
    @pytest.fixture
    def graph(self) -> SortedGraph:
        return sealed(
            ("primary", "id", None),
            ("loaded", "foo", None),
            ("computed", "bar", {"foo": _flagged}),
        )

    def test_inactive_edge_prunes_dependency(self, graph: SortedGraph) -> None:
        plan = build_plan(graph, ["bar"])

        assert "foo" not in plan
        assert plan["bar"].deps == frozenset()

    def test_active_edge_pulls_dependency(self, graph: SortedGraph) -> None:
        plan = build_plan(graph, {"bar": {"flag": True}})

        assert "foo" in plan
        assert plan["bar"].deps == {"foo"}
        assert plan["foo"].selectors == (True,)
        assert plan["foo"].filtered_selectors == []

    @pytest.mark.parametrize("disable", [False, None, [None, False]])
    def test_constant_disable(self, disable: Any) -> None:
        graph = sealed(("primary", "id", None), ("loaded", "foo", None), ("computed", "bar", {"foo": disable}))

        plan = build_plan(graph, ["bar"])

        assert plan.names == ["id", "bar"]

    def test_any_enabling_token_wins(self) -> None:
        graph = sealed(("primary", "id", None), ("loaded", "foo", None), ("computed", "bar", {"foo": [None, "x"]}))

        plan = build_plan(graph, ["bar"])

        assert plan["foo"].selectors == (None, "x")

    def test_pruned_branch_contributes_nothing(self) -> None:
        graph = sealed(
            ("primary", "id", None),
            ("loaded", "books", None),
            ("computed", "gate", {"books": _flagged}),
            ("computed", "top", ["gate", {"books": "title"}]),
        )

        plan = build_plan(graph, ["top"])

        assert plan["books"].selectors == ("title",)
        assert plan["gate"].deps == frozenset()


class TestPlanAccess:
    def test_mapping_protocol(self, collecting_graph: SortedGraph) -> None:
        plan = build_plan(collecting_graph, ["field1"])

        assert len(plan) == 3
        assert [node.name for node in plan] == plan.names
        assert plan.get("field3") is None
        with pytest.raises(KeyError):
            plan["field3"]

    def test_describe(self, collecting_graph: SortedGraph) -> None:
        plan = build_plan(collecting_graph, ["field1"])

        assert plan.describe() == [
            {"name": "field4", "kind": "primary", "deps": [], "selectors": [], "requested": False},
            {"name": "field2", "kind": "loaded", "deps": [], "selectors": ["{'a': 42}"], "requested": False},
            {"name": "field1", "kind": "computed", "deps": ["field2"], "selectors": [], "requested": True},
        ]
