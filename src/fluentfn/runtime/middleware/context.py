"""Immutable request context threaded through the middleware chain.

Each layer receives a Context and hands a new one to ``next``; nothing is
ever mutated in place, so concurrent invocations sharing one definition
can never observe each other's fields.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any


class Context(Mapping[str, Any]):
    """Read-only mapping with attribute access.

    Example:
        >>> ctx = Context({"db": "store"})
        >>> ctx.db
        'store'
        >>> ctx.merge(user="alice")["user"]
        'alice'
        >>> "user" in ctx
        False
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None, /, **fields: Any) -> None:
        object.__setattr__(self, "_data", MappingProxyType({**(data or {}), **fields}))

    @classmethod
    def of(cls, value: Mapping[str, Any] | None) -> Context:
        """Coerce a host-supplied value into a Context without copying existing ones."""
        if isinstance(value, Context):
            return value
        if value is None or isinstance(value, Mapping):
            return cls(value)
        raise TypeError(f"Context must be a mapping, got {type(value).__name__}")

    def merge(self, fields: Mapping[str, Any] | None = None, /, **extra: Any) -> Context:
        """New context with ``fields`` layered over this one."""
        return merge_context(self, fields, **extra)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"Context has no field {name!r}") from None

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Context is immutable; use merge()")

    def __repr__(self) -> str:
        return f"Context({dict(self._data)!r})"


def merge_context(base: Mapping[str, Any], fields: Mapping[str, Any] | None = None, /, **extra: Any) -> Context:
    """Shallow union of ``base`` and contributed fields; contributed fields win.

    Returns ``base`` itself (as a Context) when nothing is contributed.
    """
    if not fields and not extra:
        return Context.of(base)
    return Context({**base, **(fields or {}), **extra})
