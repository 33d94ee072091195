"""Validator normalization: several schema dialects behind one runtime contract.

Accepted descriptors:

- Structural map: ``{"count": int, "tag": (str, "none"), "point": {"x": float}}``
- Structural schema: a ``TypedDict`` class
- Refinement schema: a pydantic ``BaseModel`` subclass (ranges, formats,
  enums, defaults, custom validators)
- Value annotation (results only): ``str``, ``list[int]``,
  ``Annotated[int, Field(gt=0)]``
- Anything already implementing the Validator protocol

Every dialect rejects undeclared fields. Structural dialects check types
strictly (no ``"1"`` → ``1`` coercion) unless FLUENTFN_VALIDATION_STRICT is
false. Validated values are returned as plain Python data.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any, Protocol, get_origin, get_type_hints, is_typeddict, runtime_checkable

from pydantic import BaseModel, ConfigDict, PydanticUserError, TypeAdapter, create_model
from pydantic import ValidationError as PydanticValidationError
from pydantic.errors import PydanticInvalidForJsonSchema

from ..config import get_settings
from ..errors import Boundary, ConfigurationError, ValidationError
from .shape import Shape


class Dialect(StrEnum):
    """Which kind of descriptor a validator was normalized from."""
    STRUCTURAL_MAP = "structural_map"
    STRUCTURAL_SCHEMA = "structural_schema"
    REFINEMENT_SCHEMA = "refinement_schema"
    VALUE = "value"


@runtime_checkable
class Validator(Protocol):
    """Runtime contract every validator backend satisfies (directly or via adapter)."""

    def validate(self, raw: object) -> Any:
        """Return the validated value or raise ValidationError."""
        ...

    def shape(self) -> Shape:
        """Structural descriptor for the host's own gate."""
        ...


def _is_model(source: object) -> bool:
    return isinstance(source, type) and issubclass(source, BaseModel)


@dataclass(frozen=True, slots=True, eq=False)
class SchemaValidator:
    """Validator backed by a pydantic TypeAdapter."""

    dialect: Dialect
    adapter: TypeAdapter[Any]
    structure: Shape
    source: object
    omit_unset: bool = False

    def validate(self, raw: object) -> Any:
        # Instances of the declared model are checked as data against the closed schema
        if _is_model(self.source) and isinstance(raw, self.source):
            raw = raw.model_dump()
        try:
            value = self.adapter.validate_python(raw)
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc) from None
        return self.adapter.dump_python(value, exclude_unset=self.omit_unset)

    def shape(self) -> Shape:
        return self.structure

    def __repr__(self) -> str:
        return f"SchemaValidator({self.dialect.value}, {self.structure.kind})"


# ─────────────────────────────────────────────────────────────────────────────
# Model construction
# ─────────────────────────────────────────────────────────────────────────────

def _model_from_fields(name: str, spec: Mapping[str, object], config: ConfigDict) -> type[BaseModel]:
    """Build a closed pydantic model from a field map. Nested maps become nested models."""
    fields: dict[str, tuple[object, object]] = {}
    for key, entry in spec.items():
        if not isinstance(key, str):
            raise ConfigurationError(f"Field names must be strings, got {key!r}")
        annotation, default = entry if isinstance(entry, tuple) and len(entry) == 2 else (entry, ...)
        if isinstance(annotation, Mapping):
            annotation = _model_from_fields(f"{name}_{key}", annotation, config)
        fields[key] = (annotation, default)
    return create_model(name, __config__=config, **fields)  # type: ignore[call-overload]


def _fields_from_typeddict(schema: type) -> dict[str, object]:
    """Optional keys keep their declared type; absent ones are dropped on dump via ``exclude_unset``."""
    hints = get_type_hints(schema)
    required: frozenset[str] = getattr(schema, "__required_keys__", frozenset(hints))
    return {key: hint if key in required else (hint, None) for key, hint in hints.items()}


def _closed(model: type[BaseModel]) -> type[BaseModel]:
    """Subclass of ``model`` that rejects undeclared fields."""
    if model.model_config.get("extra") == "forbid":
        return model
    return type(model.__name__, (model,), {"model_config": ConfigDict(extra="forbid"), "__module__": model.__module__})


def _shape_of(adapter: TypeAdapter[Any]) -> Shape:
    try:
        return Shape.from_json_schema(adapter.json_schema())
    except PydanticInvalidForJsonSchema:
        return Shape()


def _build(
    dialect: Dialect,
    target: object,
    source: object,
    config: ConfigDict | None = None,
    *,
    omit_unset: bool = False,
) -> SchemaValidator:
    adapter: TypeAdapter[Any] = TypeAdapter(target, config=config) if config else TypeAdapter(target)
    return SchemaValidator(
        dialect=dialect, adapter=adapter, structure=_shape_of(adapter), source=source, omit_unset=omit_unset
    )


# ─────────────────────────────────────────────────────────────────────────────
# Public entry point
# ─────────────────────────────────────────────────────────────────────────────

def normalize(descriptor: object, *, role: Boundary = Boundary.ARGS, strict: bool | None = None) -> Validator:
    """Turn any supported validator descriptor into a Validator.

    Args:
        descriptor: Field map, TypedDict, BaseModel subclass, annotation or Validator
        role: ARGS requires an object-shaped descriptor; RETURNS accepts any annotation
        strict: Override FLUENTFN_VALIDATION_STRICT for structural dialects

    Raises:
        ConfigurationError: Descriptor is unsupported for the given role

    Example:
        >>> v = normalize({"count": int})
        >>> v.validate({"count": 2})
        {'count': 2}
        >>> v.shape().fields
        {'count': 'integer'}
    """
    if descriptor is None:
        raise ConfigurationError(f"{role.value} validator must not be None")
    if strict is None:
        strict = get_settings().validation.strict
    structural = ConfigDict(extra="forbid", strict=strict)

    try:
        if isinstance(descriptor, Mapping):
            model = _model_from_fields(f"{role.value.capitalize()}Map", descriptor, structural)
            return _build(Dialect.STRUCTURAL_MAP, model, descriptor)
        if is_typeddict(descriptor):
            model = _model_from_fields(descriptor.__name__, _fields_from_typeddict(descriptor), structural)  # type: ignore[attr-defined]
            return _build(Dialect.STRUCTURAL_SCHEMA, model, descriptor, omit_unset=True)
        if isinstance(descriptor, type) and issubclass(descriptor, BaseModel):
            return _build(Dialect.REFINEMENT_SCHEMA, _closed(descriptor), descriptor)
        if not isinstance(descriptor, type) and isinstance(descriptor, Validator):
            return descriptor
        if role is Boundary.ARGS:
            raise ConfigurationError(
                f"Args validator must describe an object (field map, TypedDict or BaseModel), got {descriptor!r}"
            )
        dialect = Dialect.REFINEMENT_SCHEMA if get_origin(descriptor) is Annotated else Dialect.VALUE
        return _build(dialect, descriptor, descriptor, ConfigDict(strict=strict))
    except (PydanticUserError, TypeError) as exc:
        raise ConfigurationError(f"Unsupported {role.value} validator {descriptor!r}: {exc}") from exc

