"""Shared contracts: kinds, type aliases, errors and sentinels.

Leaf package - no imports from fieldplan.core or fieldplan.engine.
"""

from fieldplan.contracts.enums import FailurePolicy, NodeKind
from fieldplan.contracts.errors import (
    CyclicDependency,
    DanglingReference,
    FieldAccessError,
    FieldKindConflict,
    FieldplanError,
    ForbiddenDependency,
    GraphValidationError,
    InvalidDeclaration,
    MissingPrimary,
    MultiplePrimary,
    NotLoaded,
    UnboundField,
)
from fieldplan.contracts.sentinels import FAILED, FailedSentinel
from fieldplan.contracts.types import FieldName

__all__ = [
    "FAILED",
    "CyclicDependency",
    "DanglingReference",
    "FailedSentinel",
    "FailurePolicy",
    "FieldAccessError",
    "FieldKindConflict",
    "FieldName",
    "FieldplanError",
    "ForbiddenDependency",
    "GraphValidationError",
    "InvalidDeclaration",
    "MissingPrimary",
    "MultiplePrimary",
    "NodeKind",
    "NotLoaded",
    "UnboundField",
]
