# src/fieldplan/model.py
"""Declarative surface: batch-loadable models built from field descriptors.

Example:
    class User(ComputedModel):
        def __init__(self, raw_user):
            self.id = raw_user.id
            self.raw_user = raw_user

        @primary_loader
        def raw_user(cls, selectors, *, ids, **options):
            return [cls(raw) for raw in RawUser.where(id=ids)]

        @loader(key="id")
        def books(cls, user_ids, selectors, **options):
            return Book.grouped_by_author(user_ids, columns=selectors)

        name = delegated("name", to="raw_user")

        @computed("name", books={"columns": ["title"]})
        def summary(self):
            return f"{self.name}: {len(self.books)} books"

    users = User.bulk_load_and_compute(["summary"], ids=[1, 2, 3])

Each field is exposed as a plain attribute: reads go through the access
guard, writes assign the record's storage cell (the primary loader
assigns the primary field in the constructor). Each class contributes
the fields declared in its own body; the fields of all classes in the
MRO are merged least-specific first, so a subclass may redeclare a field
with the same kind but never with a different one.
"""

from __future__ import annotations

import functools
import operator
from collections.abc import Callable
from typing import Any, ClassVar, Self

from fieldplan.contracts.enums import NodeKind
from fieldplan.contracts.errors import InvalidDeclaration
from fieldplan.contracts.types import FieldName, KeyFunction, SelectorDeclaration
from fieldplan.core.config import ExecutionSettings
from fieldplan.core.dag.graph import FieldGraph
from fieldplan.core.dag.models import FieldNode
from fieldplan.core.dag.sorted import SortedGraph
from fieldplan.core.selectors import normalize
from fieldplan.engine.executor import BatchExecutor
from fieldplan.engine.handlers import ComputeHandler, FieldHandler, LoaderHandler, PrimaryHandler
from fieldplan.engine.planner import Plan, build_plan
from fieldplan.engine.records import Record


class FieldDescriptor:
    """Base descriptor for a declared field."""

    kind: ClassVar[NodeKind]

    def __init__(self, func: Callable[..., Any], deps: SelectorDeclaration = None) -> None:
        self.func = func
        # Normalize eagerly so malformed declarations fail at class definition
        self.deps = normalize(deps)
        self.name: FieldName | None = None
        functools.update_wrapper(self, func)  # type: ignore[arg-type]

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = FieldName(name)

    def __get__(self, instance: Record | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance.read_field(self._field_name)

    def __set__(self, instance: Record, value: Any) -> None:
        instance.field_store.assign(self._field_name, value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    @property
    def _field_name(self) -> FieldName:
        if self.name is None:
            raise InvalidDeclaration(f"{type(self).__name__} was not assigned to a class attribute")
        return self.name

    def node(self) -> FieldNode:
        return FieldNode.declare(self.kind, self._field_name, self.deps)

    def handler(self, model: type) -> FieldHandler:
        raise NotImplementedError


class PrimaryField(FieldDescriptor):
    kind = NodeKind.PRIMARY

    def handler(self, model: type) -> FieldHandler:
        return PrimaryHandler(functools.partial(self.func, model))


class LoadedField(FieldDescriptor):
    kind = NodeKind.LOADED

    def __init__(self, func: Callable[..., Any], key: KeyFunction | str, deps: SelectorDeclaration = None) -> None:
        super().__init__(func, deps)
        self.key: KeyFunction = operator.attrgetter(key) if isinstance(key, str) else key

    def handler(self, model: type) -> FieldHandler:
        return LoaderHandler(functools.partial(self.func, model), key=self.key)


class ComputedField(FieldDescriptor):
    kind = NodeKind.COMPUTED

    def handler(self, model: type) -> FieldHandler:
        return ComputeHandler(self.func)


def _declaration(deps: tuple[Any, ...], kwdeps: dict[str, Any]) -> list[Any]:
    declaration = list(deps)
    if kwdeps:
        declaration.append(kwdeps)
    return declaration


def primary_loader(func: Callable[..., Any]) -> PrimaryField:
    """Declare the primary field.

    The function is called as func(model_class, selectors, **options) and
    returns every record of the batch with the primary field assigned.
    """
    return PrimaryField(func)


def loader(*deps: Any, key: KeyFunction | str, **kwdeps: Any) -> Callable[[Callable[..., Any]], LoadedField]:
    """Declare a batch-loaded field.

    The function is called once per request as
    func(model_class, keys, selectors, **options) and returns a mapping
    from key to value. `key` is a callable on the record or the name of
    one of its attributes; it runs with the loader's dependencies readable.
    """

    def decorator(func: Callable[..., Any]) -> LoadedField:
        return LoadedField(func, key=key, deps=_declaration(deps, kwdeps))

    return decorator


def computed(*deps: Any, **kwdeps: Any) -> Any:
    """Declare a field computed per record from its dependencies.

    Usable bare (@computed) for fields without dependencies.
    """
    if len(deps) == 1 and not kwdeps and callable(deps[0]) and not isinstance(deps[0], type):
        return ComputedField(deps[0])

    def decorator(func: Callable[..., Any]) -> ComputedField:
        return ComputedField(func, deps=_declaration(deps, kwdeps))

    return decorator


def delegated(
    attribute: str,
    *,
    to: str,
    allow_nil: bool = False,
    include_selectors: bool = False,
) -> ComputedField:
    """Declare a computed field returning an attribute of another field.

    Args:
        attribute: Attribute read from the target field's value
        to: Field the value is read from (also the only dependency)
        allow_nil: Return None instead of failing when the target is None
        include_selectors: Send `attribute` to the target as a selector
    """

    def body(record: Any) -> Any:
        target = getattr(record, to)
        if target is None and allow_nil:
            return None
        return getattr(target, attribute)

    body.__name__ = attribute
    body.__qualname__ = f"delegated.{to}.{attribute}"
    return ComputedField(body, deps={to: attribute} if include_selectors else to)


class ComputedModel(Record):
    """Base class for batch-loadable models.

    Class attributes:
        execution_settings: Executor behaviour for this model (override per subclass)
    """

    execution_settings: ClassVar[ExecutionSettings] = ExecutionSettings()

    _fieldplan_graph: ClassVar[FieldGraph] = FieldGraph()
    _fieldplan_executor: ClassVar[BatchExecutor | None] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        partial_graphs = []
        for klass in reversed(cls.__mro__):
            partial = FieldGraph()
            for value in vars(klass).values():
                if isinstance(value, FieldDescriptor):
                    partial.add(value.node())
            partial_graphs.append(partial)
        cls._fieldplan_graph = FieldGraph.merge(*partial_graphs)
        cls._fieldplan_executor = None

    @classmethod
    def field_graph(cls) -> FieldGraph:
        """The merged, unsealed field graph of this class."""
        return cls._fieldplan_graph

    @classmethod
    def sorted_graph(cls) -> SortedGraph:
        """The validated, ordered field graph (built once, then cached)."""
        return cls._fieldplan_graph.seal()

    @classmethod
    def verify_dependencies(cls) -> None:
        """Surface every graph-validity error now instead of at the first request.

        Raises:
            GraphValidationError: If the graph is invalid or a field has no
                matching collaborator
        """
        cls._executor().verify_bindings(cls.sorted_graph())

    @classmethod
    def plan(cls, requested: SelectorDeclaration) -> Plan:
        return build_plan(cls.sorted_graph(), requested, log_plan=cls.execution_settings.log_plans)

    @classmethod
    def bulk_load_and_compute(cls, requested: SelectorDeclaration, **options: Any) -> list[Self]:
        """Load and compute the requested fields for a whole batch.

        Args:
            requested: Fields to resolve, optionally with selectors
            **options: Passed verbatim to the primary loader and every loader

        Returns:
            The records produced by the primary loader (minus any dropped by
            the failure policy), every requested field resolved.
        """
        plan = cls.plan(requested)
        return cls._executor().execute(plan, **options)  # type: ignore[return-value]

    @classmethod
    def _executor(cls) -> BatchExecutor:
        if cls._fieldplan_executor is None:
            handlers: dict[str, FieldHandler] = {}
            for node in cls._fieldplan_graph:
                descriptor = getattr(cls, node.name, None)
                if isinstance(descriptor, FieldDescriptor):
                    handlers[node.name] = descriptor.handler(cls)
            cls._fieldplan_executor = BatchExecutor(handlers, cls.execution_settings)
        return cls._fieldplan_executor
