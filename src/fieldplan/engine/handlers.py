"""Collaborator bindings - how each kind of field is resolved.

The dependency graph only knows names, kinds and edges. The executor
looks up one handler per planned field to know which external code to
call for it.
"""

from dataclasses import dataclass

from fieldplan.contracts.enums import NodeKind
from fieldplan.contracts.types import BatchLoader, ComputeBody, Enumerator, KeyFunction


@dataclass(frozen=True, slots=True)
class PrimaryHandler:
    """Enumerates the batch: (selectors, **options) -> records."""

    enumerator: Enumerator

    kind = NodeKind.PRIMARY


@dataclass(frozen=True, slots=True)
class LoaderHandler:
    """One batch call for all live records.

    key(record) derives each record's batch key; loader(keys, selectors,
    **options) returns a mapping from key to value.
    """

    loader: BatchLoader
    key: KeyFunction

    kind = NodeKind.LOADED


@dataclass(frozen=True, slots=True)
class ComputeHandler:
    """Per-record derivation: body(record) -> value."""

    body: ComputeBody

    kind = NodeKind.COMPUTED


type FieldHandler = PrimaryHandler | LoaderHandler | ComputeHandler
