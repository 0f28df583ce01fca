"""
Synthesized function wrapper for formulafun.

A SynthesizedFunction pairs a body with an explicit parameter list and the
metadata R attaches to functions as attributes (model coefficients).
"""

import inspect
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..formulas.evaluation import MISSING


class ParameterSource(str, Enum):
    """Where a parameter of a synthesized function came from."""

    REQUIRED = "required"
    DECLARED_DEFAULT = "default"
    ENVIRONMENT = "environment"
    DANGEROUS = "dangerous"


@dataclass(frozen=True)
class FunctionParameter:
    """A single parameter of a synthesized function."""

    name: str
    default: Any = field(default=inspect.Parameter.empty, compare=False)
    source: ParameterSource = ParameterSource.REQUIRED
    kind: Any = inspect.Parameter.POSITIONAL_OR_KEYWORD

    def __eq__(self, other):
        if not isinstance(other, FunctionParameter):
            return NotImplemented
        return (
            (self.name, self.source, self.kind) == (other.name, other.source, other.kind)
            and _same_default(self.default, other.default)
        )

    @property
    def has_default(self) -> bool:
        """Whether the parameter has a usable default value."""
        return self.default is not inspect.Parameter.empty and self.default is not MISSING

    def to_inspect(self) -> inspect.Parameter:
        return inspect.Parameter(self.name, kind=self.kind, default=self.default)

    def to_string(self) -> str:
        if self.kind is inspect.Parameter.VAR_KEYWORD:
            return "..."
        if not self.has_default:
            return self.name
        return f"{self.name} = {_format_default(self.default)}"


def _same_default(left: Any, right: Any) -> bool:
    """Compare defaults; array defaults compare by shape and contents."""
    if left is right:
        return True
    if hasattr(left, "shape") or hasattr(right, "shape"):
        return bool(np.array_equal(left, right))
    return bool(left == right)


def _format_default(value: Any) -> str:
    if callable(value) and hasattr(value, '__name__'):
        return value.__name__
    return repr(value)


class SynthesizedFunction:
    """
    Callable built from a formula or a fitted model.

    Calling binds the arguments against the signature (so the usual
    ``TypeError`` is raised for missing or unexpected arguments), applies
    defaults and passes the complete argument mapping to the body.

    Attributes:
        source: The formula or fitted model the function was built from
    """

    def __init__(
        self,
        body: Callable[[Dict[str, Any]], Any],
        parameters: Sequence[FunctionParameter],
        coefficients: Optional[Mapping[str, float]] = None,
        source: Any = None,
        name: str = "synthesized",
        body_text: Optional[str] = None,
    ):
        self._body = body
        self._parameters: Tuple[FunctionParameter, ...] = tuple(parameters)
        self._signature = inspect.Signature([p.to_inspect() for p in self._parameters])
        self._coefficients = (
            MappingProxyType(dict(coefficients)) if coefficients is not None else None
        )
        self.source = source
        self.__name__ = name
        self.__qualname__ = name
        self._body_text = body_text

    @property
    def __signature__(self) -> inspect.Signature:
        return self._signature

    @property
    def signature(self) -> inspect.Signature:
        return self._signature

    @property
    def parameters(self) -> Tuple[FunctionParameter, ...]:
        """All parameters in signature order."""
        return self._parameters

    @property
    def parameter_names(self) -> List[str]:
        """Names of the named parameters, excluding the ``**`` catch-all."""
        return [
            p.name for p in self._parameters
            if p.kind is not inspect.Parameter.VAR_KEYWORD
        ]

    @property
    def defaults(self) -> Dict[str, Any]:
        """Default values of the parameters that have one."""
        return {p.name: p.default for p in self._parameters if p.has_default}

    @property
    def dangerous(self) -> List[str]:
        """Parameters with no default and no declared origin."""
        return [
            p.name for p in self._parameters if p.source is ParameterSource.DANGEROUS
        ]

    @property
    def coefficients(self) -> Optional[Mapping[str, float]]:
        """Read-only model coefficients, or None for formula functions."""
        return self._coefficients

    def parameter(self, name: str) -> FunctionParameter:
        for p in self._parameters:
            if p.name == name:
                return p
        raise KeyError(name)

    def bind(self, *args, **kwargs) -> Dict[str, Any]:
        """Map call arguments to parameter names, defaults applied."""
        bound = self._signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return dict(bound.arguments)

    def __call__(self, *args, **kwargs):
        return self._body(self.bind(*args, **kwargs))

    def __repr__(self) -> str:
        params = ", ".join(p.to_string() for p in self._parameters)
        text = f"function({params})"
        if self._body_text:
            text += f" {self._body_text}"
        return text
