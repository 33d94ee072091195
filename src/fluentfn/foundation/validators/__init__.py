"""Validator normalization layer.

- normalize(): field maps, TypedDicts, pydantic models and annotations → Validator
- Validator: the ``validate(raw)`` / ``shape()`` runtime contract
- Shape: structural descriptor used by hosts for their own type gate
"""

from .normalize import Dialect, SchemaValidator, Validator, normalize
from .shape import Shape, kind_matches, kind_of

__all__ = [
    "Dialect",
    "SchemaValidator",
    "Shape",
    "Validator",
    "kind_matches",
    "kind_of",
    "normalize",
]
