"""Structural descriptors handed to hosts for their own coarse type gate.

A Shape records, per field, the JSON primitive kind(s) a value may take.
It is derived from the pydantic JSON schema of a normalized validator and
deliberately ignores refinements (ranges, formats, predicates): those are
checked only by the validator itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ANY = "any"
OBJECT = "object"

# Order matters: bool is a subclass of int
_VALUE_KINDS: tuple[tuple[type | tuple[type, ...], str], ...] = (
    (bool, "boolean"),
    (int, "integer"),
    (float, "number"),
    ((str, bytes), "string"),
    (type(None), "null"),
    ((list, tuple), "array"),
    ((Mapping, BaseModel), OBJECT),
)


def kind_of(value: object) -> str | None:
    """JSON primitive kind of a Python value, None when it has no JSON analogue."""
    for types, kind in _VALUE_KINDS:
        if isinstance(value, types):
            return kind
    return None


def kind_matches(kind: str, value: object) -> bool:
    """Whether ``value`` fits a (possibly ``|``-joined) kind."""
    allowed = kind.split("|")
    if ANY in allowed:
        return True
    actual = kind_of(value)
    if actual is None:
        return True
    return actual in allowed or (actual == "integer" and "number" in allowed)


def _resolve(schema: Mapping[str, Any], defs: Mapping[str, Any]) -> Mapping[str, Any]:
    while "$ref" in schema:
        schema = defs.get(schema["$ref"].rsplit("/", 1)[-1], {})
    return schema


def _kinds(schema: Mapping[str, Any], defs: Mapping[str, Any]) -> set[str]:
    schema = _resolve(schema, defs)
    if "type" in schema:
        declared = schema["type"]
        return {declared} if isinstance(declared, str) else set(declared)
    for key in ("anyOf", "oneOf"):
        if key in schema:
            return set().union(*(_kinds(member, defs) for member in schema[key]))
    if len(schema.get("allOf", ())) == 1:
        return _kinds(schema["allOf"][0], defs)
    if "const" in schema:
        return {kind_of(schema["const"]) or ANY}
    if "enum" in schema:
        return {kind_of(v) or ANY for v in schema["enum"]}
    return {ANY}


def _join(kinds: set[str]) -> str:
    return ANY if ANY in kinds or not kinds else "|".join(sorted(kinds))


class Shape(BaseModel):
    """Field name → primitive kind descriptor.

    Attributes:
        kind: Kind of the whole value ("object" for records)
        fields: Per-field kinds for records
        required: Field names that must be present
        closed: Whether fields outside ``fields`` are rejected

    Example:
        >>> shape = Shape(kind="object", fields={"count": "integer"}, required=frozenset({"count"}), closed=True)
        >>> shape.admits({"count": -1})
        True
        >>> shape.admits({"count": "two"})
        False
    """

    model_config = ConfigDict(frozen=True)

    kind: str = ANY
    fields: dict[str, str] = Field(default_factory=dict)
    required: frozenset[str] = frozenset()
    closed: bool = False

    @classmethod
    def from_json_schema(cls, schema: Mapping[str, Any]) -> Shape:
        """Build from a JSON schema as produced by ``TypeAdapter.json_schema()``."""
        defs = schema.get("$defs", {})
        root = _resolve(schema, defs)
        kind = _join(_kinds(root, defs))
        if kind != OBJECT or "properties" not in root:
            return cls(kind=kind)
        return cls(
            kind=OBJECT,
            fields={name: _join(_kinds(prop, defs)) for name, prop in root["properties"].items()},
            required=frozenset(root.get("required", ())),
            closed=root.get("additionalProperties") is False,
        )

    def admits(self, value: object) -> bool:
        """Coarse structural check: presence, extras and primitive kinds only."""
        if not kind_matches(self.kind, value):
            return False
        if self.kind != OBJECT or not isinstance(value, Mapping):
            return True
        keys = set(value)
        if not self.required <= keys:
            return False
        if self.closed and not keys <= self.fields.keys():
            return False
        return all(kind_matches(self.fields[k], value[k]) for k in keys & self.fields.keys())
