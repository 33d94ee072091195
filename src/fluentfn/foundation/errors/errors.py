"""Error taxonomy for pipeline construction, validation and dispatch.

Build-time mistakes raise ConfigurationError synchronously. Validation
failures raise ValidationError carrying structured per-field issues.
Errors raised inside middleware or handlers are never wrapped: they
propagate to the caller exactly as raised.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field

if TYPE_CHECKING:
    from pydantic import ValidationError as PydanticValidationError


class ErrorCode(StrEnum):
    """Machine-readable error classification."""
    CONFIGURATION = "CONFIGURATION"
    INVALID_ARGS = "INVALID_ARGS"
    INVALID_RETURNS = "INVALID_RETURNS"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    REGISTRY = "REGISTRY"


class Boundary(StrEnum):
    """Which side of the handler a validation ran on."""
    ARGS = "args"
    RETURNS = "returns"


class FieldIssue(BaseModel):
    """One validation problem at a location inside the validated value.

    Attributes:
        loc: Path to the offending value (field names and list indexes)
        message: Human-readable description
        kind: Machine-readable issue type (pydantic error type where available)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    loc: tuple[str | int, ...] = ()
    message: Annotated[str, Field(min_length=1)]
    kind: str = "value_error"

    @computed_field
    @property
    def path(self) -> str:
        """Dotted path, empty string for the root value."""
        return ".".join(str(part) for part in self.loc)

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.loc else self.message


class FluentError(Exception):
    """Base class for every error raised by fluentfn itself."""

    code: ClassVar[ErrorCode]


class ConfigurationError(FluentError):
    """Chain methods called out of order, twice, or after registration."""

    code = ErrorCode.CONFIGURATION


class ValidationError(FluentError):
    """Arguments or result rejected by a validator.

    Example:
        >>> err = ValidationError.single("count", "must be positive")
        >>> err.issues[0].path
        'count'
    """

    __slots__ = ("boundary", "issues")

    def __init__(self, issues: Iterable[FieldIssue], boundary: Boundary = Boundary.ARGS) -> None:
        self.issues: tuple[FieldIssue, ...] = tuple(issues)
        self.boundary = boundary
        super().__init__(self.render())

    @property
    def code(self) -> ErrorCode:  # type: ignore[override]
        return ErrorCode.INVALID_RETURNS if self.boundary is Boundary.RETURNS else ErrorCode.INVALID_ARGS

    @classmethod
    def single(
        cls,
        field: str | None,
        message: str,
        kind: str = "value_error",
        boundary: Boundary = Boundary.ARGS,
    ) -> Self:
        """Create from one issue; ``field=None`` targets the whole value."""
        loc: tuple[str | int, ...] = (field,) if field else ()
        return cls([FieldIssue(loc=loc, message=message, kind=kind)], boundary)

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError, boundary: Boundary = Boundary.ARGS) -> Self:
        """Convert pydantic's error list into field issues."""
        return cls(
            (FieldIssue(loc=tuple(e["loc"]), message=e["msg"], kind=e["type"]) for e in exc.errors()),
            boundary,
        )

    def with_boundary(self, boundary: Boundary) -> Self:
        """Same issues reported against another boundary."""
        return type(self)(self.issues, boundary)

    @property
    def fields(self) -> dict[str, list[str]]:
        """Messages grouped by dotted path."""
        grouped: dict[str, list[str]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.path, []).append(issue.message)
        return grouped

    def render(self) -> str:
        head = f"Invalid {self.boundary.value}"
        if not self.issues:
            return head
        return f"{head}: " + "; ".join(str(issue) for issue in self.issues)


class RegistryError(FluentError):
    """Host function table misuse (duplicate names and similar)."""

    code = ErrorCode.REGISTRY


class FunctionNotFoundError(RegistryError, LookupError):
    """No function registered under the requested name."""

    code = ErrorCode.NOT_FOUND


class VisibilityError(RegistryError, PermissionError):
    """Internal function addressed from the public boundary."""

    code = ErrorCode.FORBIDDEN
