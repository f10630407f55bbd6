# src/fieldplan/engine/guard.py
"""Access guard - a field may only be observed by code that declared it.

Two checks run on every guarded read:

1. The field's storage cell was assigned (else NotLoaded).
2. The field is among the readable fields of the frame on top of the
   record's stack (else ForbiddenDependency).

The toplevel frame allows exactly the fields the caller requested, so a
field pulled in only transitively is invisible to the caller. Inside a
field's collaborator the frame allows exactly that field's active
dependencies for the current plan. Records that never went through a
batch call have no frame and only the first check applies.

FrameScope pushes one frame onto every record of the batch for the
duration of a collaborator call and pops it on the way out, whether the
call returned or raised.
"""

from __future__ import annotations

from collections.abc import Sequence
from types import TracebackType
from typing import TYPE_CHECKING

from fieldplan.contracts.errors import ForbiddenDependency, NotLoaded

if TYPE_CHECKING:
    from fieldplan.engine.records import ExecutionFrame, FieldStore


def check_read(store: FieldStore, name: str) -> None:
    """Verify that `name` may be read from the record owning `store`.

    Raises:
        NotLoaded: If the field was never assigned
        ForbiddenDependency: If the running code did not declare the field
    """
    if not store.is_loaded(name):
        raise NotLoaded(name)
    frame = store.frame
    if frame is not None and name not in frame.deps:
        raise ForbiddenDependency(name, frame.field)


class FrameScope:
    """Context manager holding one execution frame on a batch of records.

    Usage::

        with FrameScope(stores, frame):
            keys = [key(record) for record in records]
            values = loader(keys, selectors, **options)
    """

    __slots__ = ("_frame", "_pushed", "_stores")

    def __init__(self, stores: Sequence[FieldStore], frame: ExecutionFrame) -> None:
        self._stores = stores
        self._frame = frame
        self._pushed: list[FieldStore] = []

    def __enter__(self) -> FrameScope:
        for store in self._stores:
            store.push(self._frame)
            self._pushed.append(store)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        # Pop even when the collaborator raised; the exception still propagates
        while self._pushed:
            store = self._pushed.pop()
            popped = store.pop()
            if popped is not self._frame:
                raise RuntimeError(f"Frame stack corrupted: expected frame for {self._frame.field}, found {popped.field}")
