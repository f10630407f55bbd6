# src/fieldplan/core/selectors.py
"""Selector normalization and edge evaluation.

A selector declaration names fields and, optionally, attaches tokens to
them. Declarations come in several shapes that all normalize to the same
canonical mapping ``field name -> ordered token list``:

    "name"                        -> {"name": [True]}
    ["name", "email"]             -> {"name": [True], "email": [True]}
    {"books": {"limit": 3}}       -> {"books": [{"limit": 3}]}
    {"books": [], "name": {}}     -> {"books": [True], "name": [True]}
    ["books", {"books": "title"}] -> {"books": [True, "title"]}

Tokens:
    - True / False / None: constant enable / disable of an edge
    - Dynamic selector: a pure callable receiving the node's incoming
      selectors (flags stripped) and returning a token or a list of tokens
    - Anything else: an opaque payload forwarded to the dependency

Flags are only stripped at the boundary into a collaborator call or when
a node asks for its own view of its incoming selectors; tokens passed
downstream keep them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from fieldplan.contracts.errors import InvalidDeclaration
from fieldplan.contracts.types import FieldName, NormalizedSelectors, SelectorDeclaration, Token


def normalize(decl: SelectorDeclaration) -> NormalizedSelectors:
    """Canonicalize a selector declaration.

    Repeated field names concatenate their token lists in declaration
    order; nothing is de-duplicated. The result is a fresh dict, and
    normalizing an already normalized mapping returns an equal mapping.

    Args:
        decl: A field name, a mapping of field names to tokens, a sequence
            of those, or None (nothing requested).

    Returns:
        Mapping of field name to its ordered token list.

    Raises:
        InvalidDeclaration: If an element is neither a field name nor a mapping.
    """
    normalized: NormalizedSelectors = {}
    if decl is None:
        return normalized

    if isinstance(decl, (str, Mapping)):
        elements: Sequence[Any] = [decl]
    elif isinstance(decl, (list, tuple)):
        elements = decl
    else:
        raise InvalidDeclaration(f"Invalid dependency: {decl!r}")

    for elem in elements:
        if isinstance(elem, str):
            normalized.setdefault(_field_name(elem), []).append(True)
        elif isinstance(elem, Mapping):
            for name, value in elem.items():
                normalized.setdefault(_field_name(name), []).extend(_tokens(value))
        else:
            raise InvalidDeclaration(f"Invalid dependency: {elem!r}")
    return normalized


def _field_name(name: object) -> FieldName:
    if not isinstance(name, str) or not name:
        raise InvalidDeclaration(f"Invalid field name: {name!r}")
    return FieldName(name)


def _tokens(value: object) -> list[Token]:
    # Empty containers mean "just depend on it"
    if isinstance(value, (list, tuple)):
        return list(value) if value else [True]
    if isinstance(value, Mapping) and not value:
        return [True]
    return [value]


def is_flag(token: Token) -> bool:
    """True for the constant tokens True, False and None."""
    return token is None or token is True or token is False


def is_dynamic(token: Token) -> bool:
    """True if the token is a dynamic selector.

    Classes are callable but are treated as opaque payloads.
    """
    return callable(token) and not isinstance(token, type)


def strip_flags(tokens: Iterable[Token]) -> list[Token]:
    """Return the payload tokens only (True/False/None removed)."""
    return [token for token in tokens if not is_flag(token)]


def evaluate_spec(spec: Sequence[Token], incoming: Sequence[Token]) -> list[Token]:
    """Substitute dynamic selectors in an edge spec.

    Each dynamic selector is called with the incoming selectors of the
    dependent node, flags stripped. A list result is spliced in one level
    deep; any other result is appended as a single token.

    Args:
        spec: The edge's declared token list
        incoming: The dependent node's accumulated incoming selectors

    Returns:
        The substituted token list (flags preserved).
    """
    filtered: list[Token] | None = None
    result: list[Token] = []
    for token in spec:
        if not is_dynamic(token):
            result.append(token)
            continue
        if filtered is None:
            filtered = strip_flags(incoming)
        value = token(list(filtered))
        if isinstance(value, list):
            result.extend(value)
        else:
            result.append(value)
    return result


def is_active(tokens: Iterable[Token]) -> bool:
    """An edge is active iff some token is neither None nor False."""
    return any(token is not None and token is not False for token in tokens)
