"""Core middleware types and onion chain composition.

Middleware follows continuation-passing style: each middleware receives
the current context and a ``next`` function running the rest of the chain
(remaining middleware, then the handler). Code before ``await next(...)``
runs on the way in, code after it on the way out.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Coroutine, Mapping, Sequence
from typing import Any, Protocol, TypeAlias, runtime_checkable

from .context import Context, merge_context


@runtime_checkable
class Next(Protocol):
    """Continuation handed to middleware.

    Fields passed in are merged over the context the middleware received;
    the returned awaitable resolves to the result of the inner chain.
    """

    def __call__(self, fields: Mapping[str, Any] | None = None, /, **extra: Any) -> Awaitable[Any]: ...


@runtime_checkable
class Middleware(Protocol):
    """Protocol for pipeline middleware.

    Example:
        >>> async def with_user(ctx, next):
        ...     user = await ctx.auth.get_user()
        ...     if user is None:
        ...         raise PermissionError("unauthorized")
        ...     return await next({"user": user})
    """

    def __call__(self, ctx: Context, next: Next) -> Any:
        """Run around the inner chain. May be sync or async.

        Args:
            ctx: Context as produced by the enclosing layer
            next: Continuation; call it (usually once) to run the inner chain

        Returns:
            The inner chain's result, possibly transformed
        """
        ...


Handler: TypeAlias = Callable[[Context, Any], Any]
Chain: TypeAlias = Callable[[Context, Any], Coroutine[Any, Any, Any]]


async def resolve(value: Any) -> Any:
    """Await ``value`` if it is awaitable, so sync and async callables compose alike."""
    return await value if inspect.isawaitable(value) else value


def compose(middleware: Sequence[Middleware], handler: Handler) -> Chain:
    """Compose middleware around a handler into a single async function.

    Args:
        middleware: Ordered middleware (first = outermost)
        handler: Innermost function ``(ctx, args) -> result``

    Returns:
        Composed async function: (ctx, args) -> result
    """
    async def base(ctx: Context, args: Any) -> Any:
        return await resolve(handler(ctx, args))

    # Build chain by wrapping from innermost to outermost
    chain: Chain = base
    for mw in reversed(middleware):
        def make_wrapper(m: Middleware, nxt: Chain) -> Chain:
            async def wrapped(ctx: Context, args: Any) -> Any:
                async def next_(fields: Mapping[str, Any] | None = None, /, **extra: Any) -> Any:
                    return await nxt(merge_context(ctx, fields, **extra), args)
                return await resolve(m(ctx, next_))
            return wrapped
        chain = make_wrapper(mw, chain)

    return chain
