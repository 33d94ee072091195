"""Middleware system: immutable context, onion composition and plugins.

Example:
    >>> async def add_user(ctx, next):
    ...     return await next({"user": "alice"})
    >>> chain = compose([add_user], lambda ctx, args: ctx.user)
    >>> await chain(Context(), {})
    'alice'
"""

from .context import Context, merge_context
from .middleware import Chain, Handler, Middleware, Next, compose, resolve
from .plugins import LoggingMiddleware

__all__ = [
    # Core
    "Chain",
    "Context",
    "Handler",
    "Middleware",
    "Next",
    "compose",
    "merge_context",
    "resolve",
    # Plugins
    "LoggingMiddleware",
]
