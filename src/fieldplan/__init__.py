"""
fieldplan: batch resolution of dependent fields without N+1 fetches.

A model declares its fields and their dependencies once. Each request
names the fields it needs; fieldplan compiles that into the minimal,
dependency-ordered plan, runs each batch loader once for the whole
batch, and guarantees that code computing a field only observes the
fields it declared.
"""

from fieldplan.contracts import (
    FAILED,
    CyclicDependency,
    DanglingReference,
    FieldKindConflict,
    ForbiddenDependency,
    GraphValidationError,
    InvalidDeclaration,
    MissingPrimary,
    MultiplePrimary,
    NotLoaded,
)
from fieldplan.model import ComputedModel, computed, delegated, loader, primary_loader

__version__ = "0.1.0"

__all__ = [
    "FAILED",
    "ComputedModel",
    "CyclicDependency",
    "DanglingReference",
    "FieldKindConflict",
    "ForbiddenDependency",
    "GraphValidationError",
    "InvalidDeclaration",
    "MissingPrimary",
    "MultiplePrimary",
    "NotLoaded",
    "computed",
    "delegated",
    "loader",
    "primary_loader",
]
