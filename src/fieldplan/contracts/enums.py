"""Kinds and policies used across subsystem boundaries."""

from enum import StrEnum


class NodeKind(StrEnum):
    """Kind of a field node in the dependency graph.

    Exactly one PRIMARY node exists per sealed graph. It enumerates the
    batch and cannot declare dependencies.
    """

    PRIMARY = "primary"
    LOADED = "loaded"
    COMPUTED = "computed"


class FailurePolicy(StrEnum):
    """What the executor does with a record whose collaborator returned FAILED.

    KEEP leaves the field unassigned (reads raise NotLoaded).
    DROP removes the record from the batch before later nodes run.
    """

    KEEP = "keep"
    DROP = "drop"
