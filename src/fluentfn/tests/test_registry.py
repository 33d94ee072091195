"""Tests for registered functions and the in-memory host table.

Validates:
- Registration, lookup and duplicate handling
- Visibility enforced at the public boundary
- Structural gate from the args shape
- Context construction through the context factory
- Exactly-once validation per invocation
"""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import BaseModel, Field

from fluentfn import (
    Builder,
    FunctionDescriptor,
    FunctionKind,
    FunctionNotFoundError,
    FunctionRegistry,
    RegistryError,
    Shape,
    ValidationError,
    Visibility,
    VisibilityError,
)


class CountingValidator:
    """Validator backend recording every validate() call."""

    def __init__(self) -> None:
        self.calls = 0

    def validate(self, raw: Any) -> Any:
        self.calls += 1
        return raw

    def shape(self) -> Shape:
        return Shape()


class PositiveCount(BaseModel):
    count: int = Field(gt=0)


@pytest.fixture
def received() -> list[Any]:
    """Arguments as seen by the list_numbers handler."""
    return []


@pytest.fixture
def list_numbers(convex: Builder, received: list[Any]):
    """Handler returns the first ``count`` numbers of the store as inserted."""
    def handler(ctx, args):
        received.append(args)
        return {"numbers": ctx.db[: args["count"]]}

    return convex.query().input({"count": int}).handler(handler).public()


@pytest.fixture
def registry(store: list[int]) -> FunctionRegistry:
    return FunctionRegistry(context_factory=lambda kind: {"db": store, "kind": kind})


# ═════════════════════════════════════════════════════════════════════════════
# Registration
# ═════════════════════════════════════════════════════════════════════════════


def test_register_and_lookup(registry: FunctionRegistry, convex: Builder) -> None:
    fn = convex.query().handler(lambda ctx, args: None).public()

    assert registry.register("numbers:list", fn) is fn
    assert "numbers:list" in registry
    assert registry.get("numbers:list") is fn
    assert registry["numbers:list"] is fn
    assert len(registry) == 1
    assert list(registry) == ["numbers:list"]


def test_duplicate_name_rejected(registry: FunctionRegistry, convex: Builder) -> None:
    fn = convex.query().handler(lambda ctx, args: None).public()
    registry.register("dup", fn)
    with pytest.raises(RegistryError, match="already registered"):
        registry.register("dup", fn)


def test_duplicate_allowed_when_configured(convex: Builder) -> None:
    registry = FunctionRegistry(allow_replace=True)
    first = convex.query().handler(lambda ctx, args: 1).public()
    second = convex.query().handler(lambda ctx, args: 2).public()

    registry.register("fn", first)
    registry.register("fn", second)

    assert registry.get("fn") is second


def test_duplicate_allowed_from_environment(monkeypatch: pytest.MonkeyPatch, convex: Builder) -> None:
    monkeypatch.setenv("FLUENTFN_REGISTRY_ALLOW_REPLACE", "true")
    registry = FunctionRegistry()
    fn = convex.query().handler(lambda ctx, args: 1).public()
    registry.register("fn", fn)
    registry.register("fn", fn)
    assert len(registry) == 1


def test_unregistered_builder_rejected(registry: FunctionRegistry, convex: Builder) -> None:
    with pytest.raises(RegistryError, match="not a registered function"):
        registry.register("fn", convex.query().handler(lambda ctx, args: None))  # type: ignore[arg-type]


def test_empty_name_rejected(registry: FunctionRegistry, convex: Builder) -> None:
    with pytest.raises(RegistryError, match="non-empty"):
        registry.register("", convex.query().handler(lambda ctx, args: None).public())


def test_unregister(registry: FunctionRegistry, list_numbers) -> None:
    registry.register("numbers:list", list_numbers)
    assert registry.unregister("numbers:list") is True
    assert registry.unregister("numbers:list") is False
    assert "numbers:list" not in registry


def test_describe(registry: FunctionRegistry, list_numbers, convex: Builder) -> None:
    registry.register("numbers:list", list_numbers)
    registry.register("numbers:purge", convex.mutation().handler(lambda ctx, args: None).internal())

    described = registry.describe()
    assert set(described) == {"numbers:list", "numbers:purge"}

    listing = described["numbers:list"]
    assert isinstance(listing, FunctionDescriptor)
    assert listing.kind is FunctionKind.QUERY
    assert listing.args_shape is not None
    assert listing.args_shape.fields == {"count": "integer"}
    assert listing.returns_shape is None

    assert set(registry.describe(visibility=Visibility.INTERNAL)) == {"numbers:purge"}


def test_descriptor_serializes(list_numbers) -> None:
    data = list_numbers.describe().model_dump(mode="json")
    assert data["kind"] == "query"
    assert data["visibility"] == "public"
    assert data["args_shape"]["fields"] == {"count": "integer"}


# ═════════════════════════════════════════════════════════════════════════════
# Dispatch
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_latest_numbers_through_the_host(registry: FunctionRegistry, list_numbers, received: list[Any]) -> None:
    registry.register("numbers:list", list_numbers)

    result = await registry.execute("numbers:list", {"count": 2})

    assert result == {"numbers": [23, 42]}
    assert received == [{"count": 2}]


@pytest.mark.asyncio
async def test_host_and_callable_agree(registry: FunctionRegistry, list_numbers, store: list[int]) -> None:
    registry.register("numbers:list", list_numbers)
    via_host = await registry.execute("numbers:list", {"count": 3})
    in_process = await list_numbers({"db": store})({"count": 3})
    assert via_host == in_process == {"numbers": [23, 42, 7]}


@pytest.mark.asyncio
async def test_unknown_function(registry: FunctionRegistry) -> None:
    with pytest.raises(FunctionNotFoundError, match="not found"):
        await registry.execute("missing")


@pytest.mark.asyncio
async def test_not_found_is_lookup_error(registry: FunctionRegistry) -> None:
    with pytest.raises(LookupError):
        await registry.execute("missing")


@pytest.mark.asyncio
async def test_internal_function_hidden_from_public(registry: FunctionRegistry, convex: Builder) -> None:
    registry.register("purge", convex.mutation().handler(lambda ctx, args: "purged").internal())

    with pytest.raises(VisibilityError):
        await registry.execute("purge")
    assert await registry.execute("purge", internal=True) == "purged"


@pytest.mark.asyncio
async def test_public_function_callable_internally(registry: FunctionRegistry, list_numbers) -> None:
    registry.register("numbers:list", list_numbers)
    assert await registry.execute("numbers:list", {"count": 1}, internal=True) == {"numbers": [23]}


@pytest.mark.asyncio
async def test_structural_gate_rejects_wrong_kind(
    registry: FunctionRegistry, list_numbers, received: list[Any]
) -> None:
    registry.register("numbers:list", list_numbers)

    with pytest.raises(ValidationError) as exc_info:
        await registry.execute("numbers:list", {"count": "2"})

    assert exc_info.value.issues[0].kind == "shape_mismatch"
    assert received == []


@pytest.mark.asyncio
async def test_refinement_checked_by_function_not_gate(registry: FunctionRegistry, convex: Builder) -> None:
    fn = convex.query().input(PositiveCount).handler(lambda ctx, args: args["count"]).public()
    registry.register("positive", fn)

    with pytest.raises(ValidationError) as exc_info:
        await registry.execute("positive", {"count": -1})

    assert exc_info.value.issues[0].kind == "greater_than"


@pytest.mark.asyncio
async def test_context_factory_receives_kind(registry: FunctionRegistry, convex: Builder) -> None:
    registry.register("kind", convex.action().handler(lambda ctx, args: ctx.kind).public())
    assert await registry.execute("kind") is FunctionKind.ACTION


@pytest.mark.asyncio
async def test_async_context_factory(convex: Builder) -> None:
    async def make_context(kind: FunctionKind) -> dict[str, Any]:
        return {"user": "alice"}

    registry = FunctionRegistry(context_factory=make_context)
    registry.register("whoami", convex.query().handler(lambda ctx, args: ctx.user).public())
    assert await registry.execute("whoami") == "alice"


@pytest.mark.asyncio
async def test_explicit_context_skips_factory(registry: FunctionRegistry, list_numbers) -> None:
    registry.register("numbers:list", list_numbers)
    result = await registry.execute("numbers:list", {"count": 1}, context={"db": [99]})
    assert result == {"numbers": [99]}


@pytest.mark.asyncio
async def test_no_factory_means_empty_context(convex: Builder) -> None:
    registry = FunctionRegistry()
    registry.register("size", convex.query().handler(lambda ctx, args: len(ctx)).public())
    assert await registry.execute("size") == 0


@pytest.mark.asyncio
async def test_middleware_errors_reach_the_host_unchanged(registry: FunctionRegistry, convex: Builder) -> None:
    async def deny(ctx, next):
        raise PermissionError("unauthorized")

    registry.register("secret", convex.query().use(deny).handler(lambda ctx, args: "secret").public())

    with pytest.raises(PermissionError, match="unauthorized"):
        await registry.execute("secret")


# ═════════════════════════════════════════════════════════════════════════════
# Exactly-once validation
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_each_invocation_validates_once(registry: FunctionRegistry, convex: Builder) -> None:
    args_validator, returns_validator = CountingValidator(), CountingValidator()

    async def passthrough(ctx, next):
        return await next()

    fn = (
        convex.query()
        .input(args_validator)
        .returns(returns_validator)
        .use(passthrough)
        .handler(lambda ctx, args: args)
        .use(passthrough)
        .public()
    )
    registry.register("counted", fn)

    for n in range(5):
        await registry.execute("counted", {"n": n})
    await fn({})({"n": 5})

    assert args_validator.calls == 6
    assert returns_validator.calls == 6
