"""In-memory host function table.

Stands in for the host platform: stores registered functions by name,
enforces visibility at the boundary, applies the coarse structural gate
from each function's args shape, builds per-request contexts and
dispatches. Refinement checks are not done here; they happen inside the
function itself.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping
from typing import Any

from ...core import FunctionDescriptor, FunctionKind, RegisteredFunction, Visibility
from ...foundation.config import get_settings
from ...foundation.errors import (
    FunctionNotFoundError,
    RegistryError,
    ValidationError,
    VisibilityError,
)
from ..middleware import resolve

log = logging.getLogger("fluentfn.registry")

ContextFactory = Callable[[FunctionKind], Mapping[str, Any] | Awaitable[Mapping[str, Any]]]


class FunctionRegistry:
    """Named table of registered functions.

    Example:
        >>> registry = FunctionRegistry(context_factory=lambda kind: {"db": store})
        >>> registry.register("numbers:list", list_numbers)
        >>> await registry.execute("numbers:list", {"count": 2})
    """

    __slots__ = ("_functions", "_context_factory", "_allow_replace")

    def __init__(self, context_factory: ContextFactory | None = None, *, allow_replace: bool | None = None) -> None:
        self._functions: dict[str, RegisteredFunction] = {}
        self._context_factory = context_factory
        self._allow_replace = get_settings().registry.allow_replace if allow_replace is None else allow_replace

    def register(self, name: str, fn: RegisteredFunction) -> RegisteredFunction:
        """Store ``fn`` under ``name``. Returns it for assignment chaining."""
        if not name:
            raise RegistryError("Function name must be non-empty")
        if not isinstance(fn, RegisteredFunction):
            raise RegistryError(f"'{name}' is not a registered function; call .public() or .internal() first")
        if name in self._functions and not self._allow_replace:
            raise RegistryError(f"Function '{name}' already registered. Use unregister() first.")
        self._functions[name] = fn
        log.info("registered %s %s '%s'", fn.visibility.value, fn.kind.value, name)
        return fn

    def unregister(self, name: str) -> bool:
        """Remove a function by name. Returns True if found."""
        return self._functions.pop(name, None) is not None

    def get(self, name: str) -> RegisteredFunction | None:
        return self._functions.get(name)

    def __getitem__(self, name: str) -> RegisteredFunction:
        return self._functions[name]

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def describe(self, *, visibility: Visibility | None = None) -> dict[str, FunctionDescriptor]:
        """Descriptors of every function, optionally filtered by visibility."""
        return {
            name: fn.describe()
            for name, fn in self._functions.items()
            if visibility is None or fn.visibility is visibility
        }

    async def _context_for(self, kind: FunctionKind) -> Mapping[str, Any]:
        if self._context_factory is None:
            return {}
        return await resolve(self._context_factory(kind))

    async def execute(
        self,
        name: str,
        raw_args: object = None,
        *,
        context: Mapping[str, Any] | None = None,
        internal: bool = False,
    ) -> Any:
        """Dispatch a call the way a host transport would.

        Args:
            name: Registered function name
            raw_args: Arguments as received from the caller
            context: Per-request context; built by the context factory when omitted
            internal: Whether the call originates inside the host

        Raises:
            FunctionNotFoundError: Unknown name
            VisibilityError: Internal function called from the public boundary
            ValidationError: Args fail the structural gate or the function's validator
        """
        fn = self._functions.get(name)
        if fn is None:
            raise FunctionNotFoundError(f"Function '{name}' not found in registry")
        if fn.visibility is Visibility.INTERNAL and not internal:
            raise VisibilityError(f"Function '{name}' is internal and cannot be called publicly")

        args = {} if raw_args is None else raw_args
        shape = fn.args_shape
        if shape is not None and not shape.admits(args):
            raise ValidationError.single(None, f"Arguments do not match the declared shape of '{name}'", "shape_mismatch")

        ctx = context if context is not None else await self._context_for(fn.kind)
        return await fn.invoke(ctx, args)
