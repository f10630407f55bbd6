"""Semantic type aliases for compile-time type safety.

NewType creates distinct types that mypy treats as incompatible,
preventing accidental misuse of field names as arbitrary strings.
"""

from collections.abc import Callable, Hashable, Mapping, Sequence
from typing import Any, NewType

FieldName = NewType("FieldName", str)
"""Name of a field, unique within one sealed graph (e.g., 'fancy_name')"""

type Token = Any
"""A selector token: True/False/None, an opaque payload, or a dynamic selector."""

type DynamicSelector = Callable[[list[Any]], Any]
"""Pure function of the node's filtered incoming selectors.

Returns a single token or a list of tokens (spliced one level).
"""

type SelectorDeclaration = str | Mapping[str, Any] | Sequence[str | Mapping[str, Any]] | None
"""What callers write to request fields or declare dependencies."""

type NormalizedSelectors = dict[FieldName, list[Token]]
"""Canonical form: field name -> ordered token list."""

type Key = Hashable
"""Batch key derived from a record by a loaded field's key function."""

type KeyFunction = Callable[[Any], Key]
type Enumerator = Callable[..., Any]
"""Primary enumerator: (selectors, **options) -> iterable of records."""

type BatchLoader = Callable[..., Mapping[Key, Any]]
"""Batch loader: (keys, selectors, **options) -> {key: value}."""

type ComputeBody = Callable[[Any], Any]
"""Compute body: (record) -> value."""
