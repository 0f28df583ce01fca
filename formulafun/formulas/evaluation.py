"""
Expression evaluation for formulafun.

Walks expression trees against a binding table. Arithmetic, comparisons and
the builtin function table come from a numeric backend: numpy by default, or
jax.numpy so that synthesized functions can be traced and differentiated.
"""

import functools
import math
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Set

import numpy as np
import scipy.stats

from .nodes import Node
from ..core.exceptions import EvaluationError
from ..config.settings import get_default_config
from ..utils.logging import get_logger


logger = get_logger(__name__)


class _MissingArgument:
    """Default of parameters that have no value from any source."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<missing>"

    def __reduce__(self):
        return (_MissingArgument, ())


MISSING = _MissingArgument()


@dataclass(frozen=True)
class DefaultExpression:
    """
    A default value given as expression text.

    Evaluated when the function runs, against the same bindings as the body,
    so ``a="2"`` behaves like ``a=2`` and ``a="x + 1"`` follows ``x``.
    """

    node: Node
    text: str

    def __repr__(self) -> str:
        return self.text


class Backend:
    """
    Numeric namespace used to evaluate expressions.

    Attributes:
        name: Backend name ('numpy' or 'jax')
        xp: Array module (numpy or jax.numpy)
        functions: Builtin functions available to formulas by name
        constants: Builtin constants (``pi``)
    """

    # Module prefixes that refer to the active array module.
    MODULE_ALIASES = ('np', 'numpy', 'jnp')

    def __init__(self, name: str, xp, norm):
        self.name = name
        self.xp = xp
        self._norm = norm
        self.constants = {'pi': xp.pi}
        self.functions = self._build_function_table()
        self.unary_operators = {
            '-': xp.negative,
            '+': operator.pos,
            '!': xp.logical_not,
        }
        self.binary_operators = {
            '+': xp.add,
            '-': xp.subtract,
            '*': xp.multiply,
            '/': xp.true_divide,
            '^': xp.power,
            '**': xp.power,
            '%%': xp.mod,
            '%/%': xp.floor_divide,
            ':': self._sequence,
            '==': xp.equal,
            '!=': xp.not_equal,
            '<': xp.less,
            '<=': xp.less_equal,
            '>': xp.greater,
            '>=': xp.greater_equal,
            '&': xp.logical_and,
            '&&': xp.logical_and,
            '|': xp.logical_or,
            '||': xp.logical_or,
        }

    def _build_function_table(self) -> Dict[str, Callable]:
        xp = self.xp
        norm = self._norm
        return {
            'sin': xp.sin, 'cos': xp.cos, 'tan': xp.tan,
            'asin': xp.arcsin, 'acos': xp.arccos, 'atan': xp.arctan,
            'atan2': xp.arctan2,
            'sinh': xp.sinh, 'cosh': xp.cosh, 'tanh': xp.tanh,
            'asinh': xp.arcsinh, 'acosh': xp.arccosh, 'atanh': xp.arctanh,
            'exp': xp.exp, 'expm1': xp.expm1,
            'log': self._log, 'log2': xp.log2, 'log10': xp.log10, 'log1p': xp.log1p,
            'sqrt': xp.sqrt, 'abs': xp.abs, 'sign': xp.sign,
            'floor': xp.floor, 'ceiling': xp.ceil, 'trunc': xp.trunc,
            'round': self._round,
            'max': self._reduce(xp.max, xp.maximum),
            'min': self._reduce(xp.min, xp.minimum),
            'pmax': self._elementwise(xp.maximum),
            'pmin': self._elementwise(xp.minimum),
            'sum': xp.sum, 'prod': xp.prod, 'mean': xp.mean,
            'ifelse': xp.where,
            'I': lambda value: value,
            'dnorm': lambda x, mean=0.0, sd=1.0: norm.pdf(x, loc=mean, scale=sd),
            'pnorm': lambda q, mean=0.0, sd=1.0: norm.cdf(q, loc=mean, scale=sd),
            'qnorm': lambda p, mean=0.0, sd=1.0: norm.ppf(p, loc=mean, scale=sd),
        }

    def _log(self, x, base=None):
        """Natural logarithm, or logarithm to ``base`` as in ``log(x, 10)``."""
        if base is None:
            return self.xp.log(x)
        return self.xp.log(x) / self.xp.log(base)

    def _round(self, x, digits=0):
        return self.xp.round(x, int(digits))

    def _reduce(self, reducer, combine):
        """``max(x)`` reduces an array; ``max(x, y, ...)`` also spans arguments."""
        def apply(*values):
            return reducer(functools.reduce(combine, values))
        return apply

    def _elementwise(self, combine):
        def apply(*values):
            return functools.reduce(combine, values)
        return apply

    def _sequence(self, start, stop):
        """``start:stop`` stepping by one towards ``stop``, both ends included."""
        start, stop = float(start), float(stop)
        count = int(math.floor(abs(stop - start) + 1e-10))
        step = 1.0 if stop >= start else -1.0
        return start + step * self.xp.arange(count + 1)

    def resolve_function(self, name: str) -> Optional[Callable]:
        """Builtin function for ``name``, including ``np.``-prefixed names."""
        if name in self.functions:
            return self.functions[name]

        prefix, _, attribute = name.partition('.')
        if prefix in self.MODULE_ALIASES and attribute:
            target = self.xp
            for part in attribute.split('.'):
                target = getattr(target, part, None)
                if target is None:
                    return None
            return target if callable(target) else None

        return None

    def __repr__(self) -> str:
        return f"Backend({self.name!r})"


def get_backend(name: Optional[str] = None) -> Backend:
    """
    Get an evaluation backend by name.

    Args:
        name: 'numpy' or 'jax'; defaults to the configured
            ``evaluation.backend``

    Returns:
        Backend instance (cached per name)
    """
    if name is None:
        name = get_default_config().evaluation.backend
    return _build_backend(str(getattr(name, "value", name)).lower())


@functools.lru_cache(maxsize=None)
def _build_backend(name: str) -> Backend:
    if name == 'numpy':
        return Backend('numpy', np, scipy.stats.norm)

    if name == 'jax':
        import jax.numpy as jnp
        import jax.scipy.stats.norm as jnorm
        logger.debug("Initialized jax evaluation backend")
        return Backend('jax', jnp, jnorm)

    raise EvaluationError(
        reason=f"unknown backend '{name}'",
        suggestions=["Use backend='numpy' or backend='jax'"],
    )


class EvaluationContext:
    """
    Bindings and operator semantics for one evaluation of an expression.

    Names resolve in order: bindings (function arguments), the formula
    namespace (its home scope), then backend constants such as ``pi``.
    Defaults given as expression text are evaluated on first use and cached
    for the remainder of the evaluation.
    """

    def __init__(
        self,
        bindings: Mapping[str, Any],
        namespace: Optional[Mapping[str, Any]] = None,
        backend: Optional[Backend] = None,
        expression: Optional[str] = None,
    ):
        self.bindings = bindings
        self.namespace = namespace or {}
        self.backend = backend or get_backend()
        self.expression = expression
        self._resolved: Dict[str, Any] = {}
        self._resolving: Set[str] = set()

    def lookup(self, name: str) -> Any:
        if name in self.bindings:
            return self._bound_value(name)

        if name in self.namespace:
            return self.namespace[name]

        if name in self.backend.constants:
            return self.backend.constants[name]

        raise EvaluationError(name, "object not found", expression=self.expression)

    def _bound_value(self, name: str) -> Any:
        value = self.bindings[name]

        if value is MISSING:
            raise EvaluationError(
                name,
                "argument is missing, with no default",
                expression=self.expression,
                suggestions=[
                    f"Pass a value for '{name}' when calling the function",
                    f"Give '{name}' a default when building the function",
                ],
            )

        if not isinstance(value, DefaultExpression):
            return value

        if name in self._resolved:
            return self._resolved[name]

        if name in self._resolving:
            raise EvaluationError(
                name,
                "default value refers to itself",
                expression=self.expression,
            )

        self._resolving.add(name)
        try:
            resolved = value.node.evaluate(self)
        finally:
            self._resolving.discard(name)

        self._resolved[name] = resolved
        return resolved

    def lookup_function(self, name: str) -> Callable:
        candidate = self.namespace.get(name)
        if callable(candidate):
            return candidate

        function = self.backend.resolve_function(name)
        if function is not None:
            return function

        # Dotted names may reach into objects held by the namespace.
        root, _, rest = name.partition('.')
        if rest and root in self.namespace:
            target = self.namespace[root]
            for part in rest.split('.'):
                target = getattr(target, part, None)
            if callable(target):
                return target

        raise EvaluationError(name, "could not find function", expression=self.expression)

    def apply_unary(self, op: str, operand: Any) -> Any:
        return self.backend.unary_operators[op](operand)

    def apply_binary(self, op: str, left: Any, right: Any) -> Any:
        return self.backend.binary_operators[op](left, right)


def evaluate(
    node: Node,
    bindings: Optional[Mapping[str, Any]] = None,
    namespace: Optional[Mapping[str, Any]] = None,
    backend: Optional[str] = None,
) -> Any:
    """
    Evaluate an expression tree.

    Args:
        node: Root of the expression tree
        bindings: Variable values
        namespace: Additional names (functions, constants) visible to the
            expression
        backend: Backend name; defaults to the configured backend

    Returns:
        Value of the expression

    Example:
        evaluate(parse_expression("x^2 + 1"), {"x": 3.0})  # 10.0
    """
    context = EvaluationContext(
        bindings or {},
        namespace=namespace,
        backend=get_backend(backend),
        expression=node.to_string(),
    )
    return node.evaluate(context)

