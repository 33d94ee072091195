"""Registered functions: the frozen descriptors handed to host platforms.

A RegisteredFunction wraps a terminal Definition. Hosts read ``kind``,
``visibility`` and the two shapes, and dispatch through ``invoke``.
In-process callers can use the same two-stage form as a builder:
``await fn(ctx)(args)``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from functools import partial
from typing import Any

from pydantic import BaseModel, ConfigDict

from ..foundation.errors import ConfigurationError
from ..foundation.validators import Shape
from ..runtime.middleware import Context
from .definition import Definition, FunctionKind, Visibility

# Builder methods that must fail loudly once a function is registered
CHAIN_METHODS = frozenset({
    "query", "mutation", "action", "use", "input", "returns",
    "handler", "public", "internal", "extend", "from_model",
})


class FunctionDescriptor(BaseModel):
    """Serializable description of a registered function."""

    model_config = ConfigDict(frozen=True)

    kind: FunctionKind
    visibility: Visibility
    args_shape: Shape | None = None
    returns_shape: Shape | None = None


@dataclass(frozen=True, slots=True, eq=False)
class RegisteredFunction:
    """Terminal pipeline, addressable by a host.

    Example:
        >>> fn = convex.query().input({"count": int}).handler(list_numbers).public()
        >>> fn.kind, fn.visibility
        (<FunctionKind.QUERY: 'query'>, <Visibility.PUBLIC: 'public'>)
        >>> await fn.invoke({"db": store}, {"count": 2})
    """

    definition: Definition

    def __post_init__(self) -> None:
        d = self.definition
        if d.visibility is Visibility.UNSET or d.handler is None or d.function_kind is None:
            raise ConfigurationError("RegisteredFunction requires a handled, kinded definition with visibility set")

    @property
    def kind(self) -> FunctionKind:
        return self.definition.function_kind  # type: ignore[return-value]

    @property
    def visibility(self) -> Visibility:
        return self.definition.visibility

    @property
    def args_shape(self) -> Shape | None:
        v = self.definition.args_validator
        return v.shape() if v is not None else None

    @property
    def returns_shape(self) -> Shape | None:
        v = self.definition.returns_validator
        return v.shape() if v is not None else None

    async def invoke(self, context: Mapping[str, Any] | None, raw_args: object = None) -> Any:
        """Host entry point; identical to calling the same Definition in-process."""
        return await self.definition.run(context, raw_args)

    def __call__(self, context: Mapping[str, Any] | None) -> Callable[..., Awaitable[Any]]:
        return partial(self.definition.run, Context.of(context))

    def describe(self) -> FunctionDescriptor:
        return FunctionDescriptor(
            kind=self.kind,
            visibility=self.visibility,
            args_shape=self.args_shape,
            returns_shape=self.returns_shape,
        )

    def __getattr__(self, name: str) -> Any:
        if name in CHAIN_METHODS:
            raise ConfigurationError(f"Cannot call .{name}() on a registered function; registration is terminal")
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __repr__(self) -> str:
        return f"RegisteredFunction({self.kind.value}, {self.visibility.value})"
