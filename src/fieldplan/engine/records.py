# src/fieldplan/engine/records.py
"""Per-record field storage and execution frames.

Every record owns a FieldStore: one storage cell per field (absent = not
loaded) and a stack of execution frames. A frame lists the fields the
currently executing code may read and the selectors it was asked for.

The executor seeds the stack with a toplevel frame (the fields the caller
requested) once the primary field is enumerated, and pushes/pops one frame
per loaded or computed field around that field's collaborator call. Only
the toplevel frame remains after the batch call returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fieldplan.contracts.types import FieldName, Token
from fieldplan.engine.guard import check_read


@dataclass(frozen=True, slots=True)
class ExecutionFrame:
    """Read permissions of the code currently running against a record.

    Attributes:
        field: Field whose collaborator is running (None for the toplevel frame)
        deps: Fields that may be read
        selectors: Filtered selectors delivered to the running field
    """

    field: FieldName | None
    deps: frozenset[FieldName]
    selectors: tuple[Token, ...] = ()


class FieldStore:
    """Storage cells and frame stack for one record."""

    __slots__ = ("_frames", "_values")

    def __init__(self) -> None:
        self._values: dict[FieldName, Any] = {}
        self._frames: list[ExecutionFrame] = []

    def __repr__(self) -> str:
        return f"FieldStore(loaded={sorted(self._values)!r}, depth={len(self._frames)})"

    # -- storage -------------------------------------------------------------

    def assign(self, name: str, value: Any) -> None:
        self._values[FieldName(name)] = value

    def is_loaded(self, name: str) -> bool:
        return name in self._values

    def value(self, name: str) -> Any:
        """Raw cell value, bypassing the access guard.

        Raises:
            KeyError: If the cell was never assigned
        """
        return self._values[FieldName(name)]

    # -- frames --------------------------------------------------------------

    @property
    def frame(self) -> ExecutionFrame | None:
        """The frame on top of the stack, or None outside any batch call."""
        return self._frames[-1] if self._frames else None

    @property
    def depth(self) -> int:
        return len(self._frames)

    def reset_frames(self, toplevel: ExecutionFrame) -> None:
        self._frames[:] = [toplevel]

    def push(self, frame: ExecutionFrame) -> None:
        self._frames.append(frame)

    def pop(self) -> ExecutionFrame:
        return self._frames.pop()


class Record:
    """Base class for objects resolved by the batch executor.

    Subclasses need not call Record.__init__(); the store is created on
    first use.
    """

    @property
    def field_store(self) -> FieldStore:
        try:
            return self.__dict__["_field_store"]  # type: ignore[no-any-return]
        except KeyError:
            store = self.__dict__["_field_store"] = FieldStore()
            return store

    def read_field(self, name: str) -> Any:
        """Read a field through the access guard."""
        check_read(self.field_store, name)
        return self.field_store.value(name)

    def is_loaded(self, name: str) -> bool:
        return self.field_store.is_loaded(name)

    def current_selectors(self) -> list[Token]:
        """Selectors delivered to the field currently being resolved.

        Empty outside any execution frame.
        """
        frame = self.field_store.frame
        return list(frame.selectors) if frame is not None else []

