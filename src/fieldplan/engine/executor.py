# src/fieldplan/engine/executor.py
"""BatchExecutor - runs a plan over one batch of records.

Fields run strictly in plan order; each field is one logical step for
the whole batch (one loader call per field per request, never one per
record). A field starts only after every preceding field has completed
for the entire batch, because its collaborator may read them.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fieldplan.contracts.enums import FailurePolicy, NodeKind
from fieldplan.contracts.errors import UnboundField
from fieldplan.contracts.sentinels import FAILED
from fieldplan.contracts.types import FieldName
from fieldplan.core.config import ExecutionSettings
from fieldplan.core.dag.sorted import SortedGraph
from fieldplan.core.logging import get_logger
from fieldplan.engine.guard import FrameScope
from fieldplan.engine.handlers import ComputeHandler, FieldHandler, LoaderHandler, PrimaryHandler
from fieldplan.engine.planner import Plan, PlanNode
from fieldplan.engine.records import ExecutionFrame, Record

slog = get_logger(__name__)


class BatchExecutor:
    """Executes plans against bound collaborators.

    Collaborator exceptions propagate immediately and abort the whole
    call; frames pushed for the failing field are popped first. A
    collaborator wanting partial failure returns FAILED for the affected
    record instead, and settings.failure_policy decides its fate.

    Example:
        executor = BatchExecutor(
            {
                "raw_user": PrimaryHandler(list_users),
                "profile": LoaderHandler(load_profiles, key=lambda user: user.id),
                "display_name": ComputeHandler(lambda user: user.read_field("profile").name),
            }
        )
        users = executor.execute(build_plan(graph, ["display_name"]), ids=[1, 2])
    """

    def __init__(
        self,
        handlers: Mapping[str, FieldHandler],
        settings: ExecutionSettings | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            handlers: Collaborator binding per field name
            settings: Execution settings (defaults apply when omitted)
        """
        self._handlers = dict(handlers)
        self._settings = settings or ExecutionSettings()

    @property
    def settings(self) -> ExecutionSettings:
        return self._settings

    def verify_bindings(self, graph: SortedGraph) -> None:
        """Check that every field of the graph has a handler of its kind.

        Raises:
            UnboundField: On the first missing or mismatched binding
        """
        for node in graph:
            self._handler_for(node.name, node.kind)

    def execute(self, plan: Plan, **options: Any) -> list[Record]:
        """Resolve every planned field for the batch.

        Args:
            plan: Plan for this request (primary first)
            **options: Passed verbatim to every enumerator and loader call

        Returns:
            The live records, in the order the enumerator produced them.
        """
        records: list[Record] = []
        for node in plan:
            handler = self._handler_for(node.name, node.kind)
            if isinstance(handler, PrimaryHandler):
                records = self._enumerate(handler, node, plan, options)
            elif isinstance(handler, LoaderHandler):
                records = self._load(handler, node, records, options)
            else:
                records = self._compute(handler, node, records)
            slog.debug("node_executed", field=node.name, kind=node.kind.value, batch_size=len(records))
        return records

    def _handler_for(self, name: FieldName, kind: NodeKind) -> FieldHandler:
        handler = self._handlers.get(name)
        if handler is None:
            raise UnboundField(f"No {kind.value} handler bound to field {name}")
        if handler.kind is not kind:
            raise UnboundField(f"Field {name} is {kind.value} but is bound to a {handler.kind.value} handler")
        return handler

    def _enumerate(self, handler: PrimaryHandler, node: PlanNode, plan: Plan, options: dict[str, Any]) -> list[Record]:
        records = list(handler.enumerator(node.filtered_selectors, **options))
        toplevel = ExecutionFrame(field=None, deps=plan.toplevel)
        for record in records:
            if not isinstance(record, Record):
                raise TypeError(f"Primary enumerator for {node.name} returned {type(record).__name__}, expected a Record")
            if not record.field_store.is_loaded(node.name):
                raise TypeError(f"Primary enumerator for {node.name} returned a record without its {node.name} field assigned")
            record.field_store.reset_frames(toplevel)
        return records

    def _load(self, handler: LoaderHandler, node: PlanNode, records: list[Record], options: dict[str, Any]) -> list[Record]:
        frame = _frame_for(node)
        with FrameScope([record.field_store for record in records], frame):
            keys = [handler.key(record) for record in records]
            # One entry per distinct key, first-seen order
            values = handler.loader(list(dict.fromkeys(keys)), list(frame.selectors), **options)
        if not isinstance(values, Mapping):
            raise TypeError(f"Loader for {node.name} returned {type(values).__name__}, expected a mapping")

        failed: list[Record] = []
        for record, key in zip(records, keys, strict=True):
            if key not in values:
                # Absent keys leave the field unassigned, never defaulted
                continue
            value = values[key]
            if value is FAILED:
                failed.append(record)
                continue
            record.field_store.assign(node.name, value)
        return self._apply_failures(node, records, failed)

    def _compute(self, handler: ComputeHandler, node: PlanNode, records: list[Record]) -> list[Record]:
        frame = _frame_for(node)
        failed: list[Record] = []
        for record in records:
            store = record.field_store
            with FrameScope([store], frame):
                value = handler.body(record)
            if value is FAILED:
                failed.append(record)
                continue
            store.assign(node.name, value)
        return self._apply_failures(node, records, failed)

    def _apply_failures(self, node: PlanNode, records: list[Record], failed: list[Record]) -> list[Record]:
        if not failed:
            return records
        if self._settings.failure_policy is FailurePolicy.KEEP:
            slog.debug("records_failed", field=node.name, count=len(failed))
            return records
        dropped = {id(record) for record in failed}
        slog.info("records_dropped", field=node.name, count=len(dropped))
        return [record for record in records if id(record) not in dropped]


def _frame_for(node: PlanNode) -> ExecutionFrame:
    return ExecutionFrame(field=node.name, deps=node.deps, selectors=tuple(node.filtered_selectors))
