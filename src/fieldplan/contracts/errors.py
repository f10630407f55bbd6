"""Error taxonomy for declaration, graph validation and field access.

Declaration and graph-validity errors indicate a model-definition bug and
should be forced at definition time via an explicit verification call.
Access errors are request-dependent and surface at the offending read.
Exceptions raised by collaborators (enumerators, loaders, compute bodies)
are never wrapped: they reach the caller unchanged.
"""


class FieldplanError(Exception):
    """Base class for all errors raised by fieldplan itself."""

    pass


# =============================================================================
# Registration-time errors
# =============================================================================


class InvalidDeclaration(FieldplanError, ValueError):
    """Raised when a selector or dependency declaration is malformed."""

    pass


class FieldKindConflict(FieldplanError, RuntimeError):
    """Raised when merged graphs declare one field with different kinds."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Field {field} has multiple different types")


# =============================================================================
# Graph-validity errors (seal / plan time)
# =============================================================================


class GraphValidationError(FieldplanError, ValueError):
    """Raised when the dependency graph is structurally invalid."""

    pass


class MissingPrimary(GraphValidationError):
    """Raised when a graph has no primary field."""

    def __init__(self) -> None:
        super().__init__("No primary loader defined")


class MultiplePrimary(GraphValidationError):
    """Raised when a graph has more than one primary field."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Multiple primary fields: {fields}")


class DanglingReference(GraphValidationError):
    """Raised when an edge or a request names an undeclared field.

    Attributes:
        field: The unknown field name
        referrer: The field whose edge references it (None for a request)
    """

    def __init__(self, field: str, referrer: str | None = None, *, suggestions: list[str] | None = None) -> None:
        self.field = field
        self.referrer = referrer
        self.suggestions = suggestions or []
        if referrer is None:
            msg = f"No dependency info for #{field}"
        else:
            msg = f"No dependency info for #{field} (required by #{referrer})"
        if self.suggestions:
            msg += f". Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(msg)


class CyclicDependency(GraphValidationError):
    """Raised when the dependency graph contains a cycle.

    Attributes:
        field: The first field found on the cycle
        cycle: Field names along the cycle, starting and ending at `field`
    """

    def __init__(self, field: str, cycle: list[str] | None = None) -> None:
        self.field = field
        self.cycle = cycle or [field, field]
        super().__init__(f"Cyclic dependency for #{field}: {' -> '.join(self.cycle)}")


class UnboundField(GraphValidationError):
    """Raised when a planned field has no matching collaborator bound to it."""

    pass


# =============================================================================
# Read-time access errors
# =============================================================================


class FieldAccessError(FieldplanError):
    """Base class for errors raised when reading a field from a record."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class NotLoaded(FieldAccessError):
    """Raised when a field is read before it was loaded for this record."""

    def __init__(self, field: str) -> None:
        super().__init__(field, f"the field {field} is not loaded")


class ForbiddenDependency(FieldAccessError):
    """Raised when a field is read without being a direct dependency.

    Attributes:
        field: The field being read
        reader: The field whose body is executing (None at toplevel)
    """

    def __init__(self, field: str, reader: str | None = None) -> None:
        self.reader = reader
        if reader is None:
            msg = f"Not a direct dependency: {field} was not requested"
        else:
            msg = f"Not a direct dependency: {reader} does not depend on {field}"
        super().__init__(field, msg)
