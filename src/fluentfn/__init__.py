"""fluentfn - Fluent, immutable builder for validated request-handling pipelines.

Chain middleware, validators and a handler onto a root builder; every call
returns a new builder, so partially built chains can be shared and branched.
The result is either called in-process or registered for a host.

Quick Start:
    >>> from fluentfn import create_builder
    >>>
    >>> convex = create_builder()
    >>>
    >>> async def with_user(ctx, next):
    ...     user = await ctx.auth.get_user()
    ...     if user is None:
    ...         raise PermissionError("unauthorized")
    ...     return await next({"user": user})
    >>>
    >>> authed = convex.query().use(with_user)
    >>>
    >>> @authed.input({"count": int}).handler
    ... async def list_numbers(ctx, args):
    ...     return {"numbers": ctx.db.latest(args["count"])}

Callable form (in-process, no host involved):
    >>> await list_numbers({"auth": auth, "db": db})({"count": 2})

Registered form:
    >>> from fluentfn import FunctionRegistry
    >>>
    >>> registry = FunctionRegistry(context_factory=lambda kind: {"auth": auth, "db": db})
    >>> registry.register("numbers:list", list_numbers.public())
    >>> await registry.execute("numbers:list", {"count": 2})

Validators:
    >>> from pydantic import BaseModel, Field
    >>>
    >>> class CountArgs(BaseModel):
    ...     count: int = Field(gt=0)
    >>>
    >>> convex.query().input(CountArgs).returns(list[int])

Extensions:
    >>> from fluentfn import Builder, LoggingMiddleware
    >>>
    >>> class Logged(Builder):
    ...     def logged(self, name):
    ...         return self.use(LoggingMiddleware(name))
    >>>
    >>> convex.query().extend(Logged).input({"n": int}).logged("square")
"""

__version__ = "0.1.0"

from .foundation.config import FluentSettings, clear_settings_cache, get_settings
from .foundation.errors import (
    Boundary,
    ConfigurationError,
    ErrorCode,
    FieldIssue,
    FluentError,
    FunctionNotFoundError,
    RegistryError,
    ValidationError,
    VisibilityError,
)
from .foundation.validators import Dialect, SchemaValidator, Shape, Validator, normalize
from .runtime.middleware import (
    Context,
    Handler,
    LoggingMiddleware,
    Middleware,
    Next,
    compose,
    merge_context,
)
from .runtime.observability import JsonFormatter, configure_logging
from .core import (
    Builder,
    CallableMethods,
    Definition,
    FunctionDescriptor,
    FunctionKind,
    MethodSpec,
    Model,
    RegisteredFunction,
    Stage,
    Visibility,
    create_builder,
    make_callable,
    make_callable_methods,
)
from .runtime.registry import FunctionRegistry

__all__ = [
    "__version__",
    # Builder
    "Builder",
    "Definition",
    "FunctionKind",
    "Stage",
    "Visibility",
    "create_builder",
    # Registration
    "FunctionDescriptor",
    "FunctionRegistry",
    "RegisteredFunction",
    # Middleware
    "Context",
    "Handler",
    "LoggingMiddleware",
    "Middleware",
    "Next",
    "compose",
    "merge_context",
    # Validators
    "Dialect",
    "SchemaValidator",
    "Shape",
    "Validator",
    "normalize",
    # Models
    "CallableMethods",
    "MethodSpec",
    "Model",
    "make_callable",
    "make_callable_methods",
    # Errors
    "Boundary",
    "ConfigurationError",
    "ErrorCode",
    "FieldIssue",
    "FluentError",
    "FunctionNotFoundError",
    "RegistryError",
    "ValidationError",
    "VisibilityError",
    # Config & logging
    "FluentSettings",
    "JsonFormatter",
    "clear_settings_cache",
    "configure_logging",
    "get_settings",
]
