"""Model classes whose decorated methods become validated pipelines.

Example:
    >>> class Numbers(Model):
    ...     @input({"count": int})
    ...     @returns(list[int])
    ...     async def latest(self, args):
    ...         return self.context.db.latest(args["count"])
    ...
    >>> await make_callable(Numbers(ctx), "latest")({"count": 2})
    >>> latest = Numbers.to_fluent("latest", convex).use(auth).public()
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, TypeVar

from ..foundation.errors import Boundary, ConfigurationError
from ..foundation.validators import Validator, normalize
from ..runtime.middleware import Context, Handler, resolve
from .definition import validate_args, validate_returns

if TYPE_CHECKING:
    from .builder import Builder

F = TypeVar("F", bound=Callable[..., Any])
B = TypeVar("B", bound="Builder")

_SPEC_ATTR = "__fluentfn_spec__"


@dataclass(frozen=True, slots=True)
class MethodSpec:
    """Validators attached to a model method by @input / @returns."""

    args_validator: Validator | None = None
    returns_validator: Validator | None = None

    @property
    def empty(self) -> bool:
        return self.args_validator is None and self.returns_validator is None


_EMPTY = MethodSpec()


def spec_of(method: object) -> MethodSpec:
    """Validators declared on a function or bound method."""
    return getattr(method, _SPEC_ATTR, _EMPTY)


def input(descriptor: object) -> Callable[[F], F]:
    """Declare the args validator for a model method."""
    validator = normalize(descriptor, role=Boundary.ARGS)

    def decorate(fn: F) -> F:
        setattr(fn, _SPEC_ATTR, replace(spec_of(fn), args_validator=validator))
        return fn
    return decorate


def returns(descriptor: object) -> Callable[[F], F]:
    """Declare the result validator for a model method."""
    validator = normalize(descriptor, role=Boundary.RETURNS)

    def decorate(fn: F) -> F:
        setattr(fn, _SPEC_ATTR, replace(spec_of(fn), returns_validator=validator))
        return fn
    return decorate


class Model:
    """Base class for models constructed per request with the request context."""

    def __init__(self, context: Mapping[str, Any] | None) -> None:
        self.context = Context.of(context)

    @classmethod
    def to_fluent(cls, method_name: str, builder: B) -> B:
        """Handled builder running ``method_name``; chain ``.use()`` then ``.public()``."""
        return builder.from_model(cls, method_name)


def _method(owner: object, method_name: str) -> Callable[..., Any]:
    method = getattr(owner, method_name, None)
    if not callable(method):
        name = owner.__name__ if isinstance(owner, type) else type(owner).__name__
        raise ConfigurationError(f"Method '{method_name}' is not a function on {name}")
    return method


def model_handler(model_cls: type[Model], method_name: str) -> tuple[MethodSpec, Handler]:
    """Spec and handler instantiating ``model_cls`` with the final context per call."""
    spec = spec_of(_method(model_cls, method_name))

    async def handler(ctx: Context, args: Any) -> Any:
        return await resolve(getattr(model_cls(ctx), method_name)(args))

    handler.__name__ = f"{model_cls.__name__}.{method_name}"
    return spec, handler


def make_callable(instance: object, method_name: str) -> Callable[..., Awaitable[Any]]:
    """Wrap one method so calls validate args and result like a pipeline would."""
    method = _method(instance, method_name)
    spec = spec_of(method)

    async def call(args: object = None) -> Any:
        validated = validate_args(spec.args_validator, args)
        return validate_returns(spec.returns_validator, await resolve(method(validated)))

    call.__name__ = method_name
    return call


class CallableMethods:
    """Proxy exposing validated versions of every decorated method of an instance."""

    __slots__ = ("_instance", "_callables")

    def __init__(self, instance: object) -> None:
        self._instance = instance
        self._callables = {
            name: make_callable(instance, name)
            for name, member in inspect.getmembers(type(instance), callable)
            if not spec_of(member).empty
        }

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._callables:
            return self._callables[name]
        return getattr(self._instance, name)


def make_callable_methods(instance: object) -> CallableMethods:
    return CallableMethods(instance)
