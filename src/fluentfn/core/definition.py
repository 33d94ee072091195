"""Immutable pipeline definitions and their execution.

A Definition is a frozen snapshot of everything one pipeline needs:
function kind, middleware, validators, handler, visibility and the clone
factory that turns a derived Definition back into a builder. Chain methods
never touch an existing Definition; they derive a new one with
``evolve()``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from ..foundation.config import get_settings
from ..foundation.errors import Boundary, ConfigurationError, ValidationError
from ..foundation.validators import Validator
from ..runtime.middleware import Context, Handler, Middleware, compose

log = logging.getLogger("fluentfn.pipeline")


class FunctionKind(StrEnum):
    """How the host schedules the function (read-only, read-write, side effects)."""
    QUERY = "query"
    MUTATION = "mutation"
    ACTION = "action"


class Visibility(StrEnum):
    UNSET = "unset"
    PUBLIC = "public"
    INTERNAL = "internal"


class Stage(StrEnum):
    """Builder state derived from a Definition."""
    INIT = "init"
    CONFIGURING = "configuring"
    HANDLED = "handled"
    REGISTERED = "registered"


CloneFactory = Callable[["Definition"], Any]


def validate_args(validator: Validator | None, raw: object) -> Any:
    """Args boundary: ``None`` means no arguments."""
    args = {} if raw is None else raw
    return args if validator is None else validator.validate(args)


def validate_returns(validator: Validator | None, result: object) -> Any:
    """Returns boundary: the unvalidated result never escapes on failure."""
    if validator is None:
        return result
    try:
        return validator.validate(result)
    except ValidationError as exc:
        if exc.boundary is Boundary.RETURNS:
            raise
        raise exc.with_boundary(Boundary.RETURNS) from None


@dataclass(frozen=True, slots=True, eq=False)
class Definition:
    """Single source of truth for one pipeline.

    Attributes:
        function_kind: Query, mutation or action; None until chosen
        middleware: Ordered middleware, first = outermost
        args_validator: Normalized arguments validator
        returns_validator: Normalized result validator
        handler: Innermost ``(ctx, args) -> result``; set at most once
        visibility: UNSET until registered
        clone_factory: Builds the next builder instance from a derived Definition
        data_model: Opaque value bound by create_builder()
    """

    function_kind: FunctionKind | None = None
    middleware: tuple[Middleware, ...] = ()
    args_validator: Validator | None = None
    returns_validator: Validator | None = None
    handler: Handler | None = None
    visibility: Visibility = Visibility.UNSET
    clone_factory: CloneFactory | None = None
    data_model: object = None

    @property
    def stage(self) -> Stage:
        if self.visibility is not Visibility.UNSET:
            return Stage.REGISTERED
        if self.handler is not None:
            return Stage.HANDLED
        configured = (self.function_kind, self.args_validator, self.returns_validator)
        if self.middleware or any(part is not None for part in configured):
            return Stage.CONFIGURING
        return Stage.INIT

    def evolve(self, **changes: Any) -> Definition:
        """Functional update: a new Definition with ``changes`` applied."""
        return replace(self, **changes)

    async def run(self, context: Mapping[str, Any] | None, raw_args: object = None) -> Any:
        """Validate args, run middleware and handler, validate the result.

        Raises:
            ConfigurationError: No handler set
            ValidationError: Args or result rejected
            Exception: Anything raised by middleware or the handler, unchanged
        """
        if self.handler is None:
            raise ConfigurationError("Handler not set. Call .handler() first.")
        ctx = Context.of(context)
        debug = get_settings().debug

        try:
            args = validate_args(self.args_validator, raw_args)
        except ValidationError as exc:
            log.debug("args rejected: %s", exc)
            raise

        if debug:
            log.debug("invoking %s handler with %d middleware", self.function_kind or "unkinded", len(self.middleware))
        result = await compose(self.middleware, self.handler)(ctx, args)

        try:
            return validate_returns(self.returns_validator, result)
        except ValidationError as exc:
            log.debug("result rejected: %s", exc)
            raise
