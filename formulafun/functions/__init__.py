"""
Function synthesis for formulafun.

Builds callables from formulas, plus the wrapper type, scope resolvers and
response transformations shared with model-backed functions.
"""

from .synthesized import FunctionParameter, ParameterSource, SynthesizedFunction
from .scope import (
    NOT_FOUND,
    ScopeResolver,
    NullScope,
    MappingScope,
    CallerScope,
    as_scope_resolver,
)
from .transformations import (
    INVERSE_TRANSFORMATIONS,
    PowerOf,
    identity,
    infer_transformation,
    power_of_two,
)
from .synthesizer import make_function

__all__ = [
    # Wrapper type
    "FunctionParameter",
    "ParameterSource",
    "SynthesizedFunction",

    # Scope resolution
    "NOT_FOUND",
    "ScopeResolver",
    "NullScope",
    "MappingScope",
    "CallerScope",
    "as_scope_resolver",

    # Transformations
    "INVERSE_TRANSFORMATIONS",
    "PowerOf",
    "identity",
    "infer_transformation",
    "power_of_two",

    # Synthesis
    "make_function",
]
