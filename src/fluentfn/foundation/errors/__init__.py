"""Error taxonomy for fluentfn.

- ErrorCode: machine-readable classification
- ConfigurationError: build-time chain misuse
- ValidationError/FieldIssue: structured validation failures
- RegistryError and subclasses: host function table failures
"""

from .errors import (
    Boundary,
    ConfigurationError,
    ErrorCode,
    FieldIssue,
    FluentError,
    FunctionNotFoundError,
    RegistryError,
    ValidationError,
    VisibilityError,
)

__all__ = [
    "Boundary",
    "ConfigurationError",
    "ErrorCode",
    "FieldIssue",
    "FluentError",
    "FunctionNotFoundError",
    "RegistryError",
    "ValidationError",
    "VisibilityError",
]
