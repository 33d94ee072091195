"""Built-in middleware plugins for common cross-cutting concerns."""

from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
