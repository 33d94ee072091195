"""Host function table: registration, visibility and dispatch."""

from .registry import ContextFactory, FunctionRegistry

__all__ = ["ContextFactory", "FunctionRegistry"]
