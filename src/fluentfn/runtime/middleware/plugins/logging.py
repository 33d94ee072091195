"""Logging middleware for pipeline execution."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from ..context import Context
from ..middleware import Next

logger = logging.getLogger("fluentfn.middleware")


@dataclass(slots=True)
class LoggingMiddleware:
    """Log pipeline execution with timing and outcome.

    Logs at INFO for successful calls and with traceback for exceptions,
    which are re-raised unchanged. Place it first to time the whole chain.

    Args:
        name: Label used in log lines
        log: Logger instance to use (defaults to fluentfn.middleware)
        log_context: Whether to include context field names (values are never logged)

    Example:
        >>> fn = convex.query().use(LoggingMiddleware("list_numbers")).handler(list_numbers)
    """

    name: str = "pipeline"
    log: logging.Logger = field(default_factory=lambda: logger)
    log_context: bool = False

    async def __call__(self, ctx: Context, next: Next) -> Any:
        start = time.perf_counter()
        fields = f" ctx={sorted(ctx)}" if self.log_context else ""
        self.log.info(f"[{self.name}] Starting{fields}")

        try:
            result = await next()
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            self.log.exception(f"[{self.name}] EXCEPTION ({duration_ms:.1f}ms): {e}")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        self.log.info(f"[{self.name}] OK ({duration_ms:.1f}ms)")
        return result
