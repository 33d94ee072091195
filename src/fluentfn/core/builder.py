"""Fluent, immutable pipeline builder.

Every chain method returns a new builder wrapping a new Definition; the
receiver is never modified, so partially built chains can be shared and
branched freely:

    >>> convex = create_builder()
    >>> authed = convex.query().use(auth)
    >>> list_numbers = (
    ...     authed
    ...     .input({"count": int})
    ...     .handler(lambda ctx, args: ctx.db.latest(args["count"]))
    ...     .public()
    ... )

New builders are produced through the Definition's clone factory, never a
hardcoded constructor, so extension classes installed with ``.extend()``
survive every later call:

    >>> class Timed(Builder):
    ...     def with_timing(self, name):
    ...         return self.use(TimingMiddleware(name))
    ...
    >>> convex.query().extend(Timed).input({"n": int}).with_timing("q")
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from functools import partial
from typing import TYPE_CHECKING, Any, Self, TypeVar

from ..foundation.errors import Boundary, ConfigurationError
from ..foundation.validators import normalize
from ..runtime.middleware import Context, Handler, Middleware
from .definition import Definition, FunctionKind, Stage, Visibility
from .model import model_handler
from .registered import RegisteredFunction

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from .model import Model

log = logging.getLogger("fluentfn.builder")

M = TypeVar("M", bound=Callable[..., Any])
R = TypeVar("R")


class Builder:
    """Chain-construction state machine: INIT → CONFIGURING → HANDLED → REGISTERED.

    Accepts a Definition (as clone factories pass it) or another builder
    (as ``.extend()`` callers sometimes do).
    """

    __slots__ = ("_definition",)

    def __init__(self, source: Definition | Builder | None = None) -> None:
        if isinstance(source, Builder):
            source = source.definition
        source = source or Definition()
        if source.clone_factory is None:
            source = source.evolve(clone_factory=type(self))
        self._definition = source

    @property
    def definition(self) -> Definition:
        return self._definition

    @property
    def stage(self) -> Stage:
        return self._definition.stage

    def _clone(self, **changes: Any) -> Any:
        definition = self._definition.evolve(**changes)
        return definition.clone_factory(definition)  # type: ignore[misc]

    def _check_open(self, method: str) -> None:
        if self.stage is Stage.REGISTERED:
            raise ConfigurationError(f"Cannot call .{method}() on a registered function; registration is terminal")

    def _check_unhandled(self, method: str, hint: str) -> None:
        self._check_open(method)
        if self.stage is Stage.HANDLED:
            raise ConfigurationError(f"Cannot call .{method}() after .handler(); {hint}")

    # ─────────────────────────────────────────────────────────────────
    # Function kind
    # ─────────────────────────────────────────────────────────────────

    def _with_kind(self, kind: FunctionKind) -> Self:
        self._check_unhandled(kind.value, "choose the function kind first")
        current = self._definition.function_kind
        if current is not None:
            raise ConfigurationError(f"Function kind already set to {current.value!r}")
        return self._clone(function_kind=kind)

    def query(self) -> Self:
        """Read-only function."""
        return self._with_kind(FunctionKind.QUERY)

    def mutation(self) -> Self:
        """Read-write function."""
        return self._with_kind(FunctionKind.MUTATION)

    def action(self) -> Self:
        """Function allowed arbitrary side effects."""
        return self._with_kind(FunctionKind.ACTION)

    # ─────────────────────────────────────────────────────────────────
    # Chain methods
    # ─────────────────────────────────────────────────────────────────

    def use(self, middleware: Middleware) -> Self:
        """Append middleware. First added = outermost, whether added before or after .handler()."""
        self._check_open("use")
        if not callable(middleware):
            raise ConfigurationError(f"Middleware must be callable, got {middleware!r}")
        return self._clone(middleware=(*self._definition.middleware, middleware))

    def input(self, validator: object) -> Self:
        """Validate arguments with a field map, TypedDict, pydantic model or Validator."""
        self._check_unhandled("input", "declare validators before the handler")
        return self._clone(args_validator=normalize(validator, role=Boundary.ARGS))

    def returns(self, validator: object) -> Self:
        """Validate the handler's result before it reaches the caller."""
        self._check_unhandled("returns", "declare validators before the handler")
        return self._clone(returns_validator=normalize(validator, role=Boundary.RETURNS))

    def handler(self, fn: Handler) -> Self:
        """Set the innermost ``(ctx, args) -> result`` function. Usable as a decorator."""
        self._check_open("handler")
        if self._definition.handler is not None:
            raise ConfigurationError("Handler already defined. Only one handler can be set per function chain.")
        if not callable(fn):
            raise ConfigurationError(f"Handler must be callable, got {fn!r}")
        return self._clone(handler=fn)

    def from_model(self, model_cls: type[Model], method_name: str) -> Self:
        """Handled builder whose validators and handler come from a decorated model method."""
        self._check_unhandled("from_model", "a model method is the handler")
        spec, handler = model_handler(model_cls, method_name)
        changes: dict[str, Any] = {"handler": handler}
        if self._definition.function_kind is None:
            changes["function_kind"] = FunctionKind.QUERY
        if spec.args_validator is not None:
            changes["args_validator"] = spec.args_validator
        if spec.returns_validator is not None:
            changes["returns_validator"] = spec.returns_validator
        return self._clone(**changes)

    # ─────────────────────────────────────────────────────────────────
    # Extension
    # ─────────────────────────────────────────────────────────────────

    def extend(self, extension: type[R] | Callable[[Self], R]) -> R:
        """Install an extension class as clone factory, or apply a factory function once.

        A class is instantiated with the current Definition and becomes the
        factory for every later chain call. A plain function receives this
        builder and its return value is passed through untouched.
        """
        self._check_open("extend")
        if inspect.isclass(extension):
            definition = self._definition.evolve(clone_factory=extension)
            return extension(definition)  # type: ignore[call-arg]
        return extension(self)

    def middleware(self, fn: M) -> M:
        """Identity helper for declaring middleware next to a builder; usable as a decorator."""
        return fn

    create_middleware = middleware

    # ─────────────────────────────────────────────────────────────────
    # Registration
    # ─────────────────────────────────────────────────────────────────

    def _register(self, visibility: Visibility) -> RegisteredFunction:
        method = visibility.value
        self._check_open(method)
        if self._definition.handler is None:
            raise ConfigurationError("Handler not set. Call .handler() before .public() or .internal().")
        if self._definition.function_kind is None:
            raise ConfigurationError("Function type not set. Call .query(), .mutation(), or .action() first.")
        registered = RegisteredFunction(self._definition.evolve(visibility=visibility))
        log.debug("registered %s %s with %d middleware", visibility.value, registered.kind.value,
                  len(self._definition.middleware))
        return registered

    def public(self) -> RegisteredFunction:
        """Freeze as a function callable from outside the host."""
        return self._register(Visibility.PUBLIC)

    def internal(self) -> RegisteredFunction:
        """Freeze as a function callable only from inside the host."""
        return self._register(Visibility.INTERNAL)

    # ─────────────────────────────────────────────────────────────────
    # Callable form
    # ─────────────────────────────────────────────────────────────────

    def __call__(self, context: Mapping[str, Any] | None) -> Callable[..., Awaitable[Any]]:
        """Bind a context; the returned coroutine function takes raw args.

        Example:
            >>> result = await list_numbers({"db": store})({"count": 2})
        """
        if self._definition.handler is None:
            raise ConfigurationError("Handler not set. Call .handler() before invoking.")
        return partial(self._definition.run, Context.of(context))

    def __repr__(self) -> str:
        d = self._definition
        kind = d.function_kind.value if d.function_kind else "unkinded"
        return f"{type(self).__name__}({kind}, {d.stage.value}, middleware={len(d.middleware)})"


def create_builder(data_model: object = None) -> Builder:
    """Root builder for an application, bound to an (opaque) data model."""
    return Builder(Definition(data_model=data_model))
