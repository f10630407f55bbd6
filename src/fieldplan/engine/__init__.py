"""Engine: per-request planning, batch execution and the access guard.

Example:
    from fieldplan.core.dag import FieldGraph, FieldNode
    from fieldplan.engine import BatchExecutor, build_plan

    sorted_graph = graph.seal()
    plan = build_plan(sorted_graph, ["display_name"])
    records = BatchExecutor(handlers).execute(plan, ids=[1, 2, 3])
"""

from fieldplan.engine.executor import BatchExecutor
from fieldplan.engine.guard import FrameScope, check_read
from fieldplan.engine.handlers import ComputeHandler, FieldHandler, LoaderHandler, PrimaryHandler
from fieldplan.engine.planner import Plan, PlanNode, build_plan
from fieldplan.engine.records import ExecutionFrame, FieldStore, Record

__all__ = [
    "BatchExecutor",
    "ComputeHandler",
    "ExecutionFrame",
    "FieldHandler",
    "FieldStore",
    "FrameScope",
    "LoaderHandler",
    "Plan",
    "PlanNode",
    "PrimaryHandler",
    "Record",
    "build_plan",
    "check_read",
]
