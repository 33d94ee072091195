"""Builder state machine, definitions, registered functions and models."""

from .builder import Builder, create_builder
from .definition import CloneFactory, Definition, FunctionKind, Stage, Visibility
from .model import CallableMethods, MethodSpec, Model, input, make_callable, make_callable_methods, returns
from .registered import FunctionDescriptor, RegisteredFunction

__all__ = [
    "Builder",
    "CallableMethods",
    "CloneFactory",
    "Definition",
    "FunctionDescriptor",
    "FunctionKind",
    "MethodSpec",
    "Model",
    "RegisteredFunction",
    "Stage",
    "Visibility",
    "create_builder",
    "input",
    "make_callable",
    "make_callable_methods",
    "returns",
]
