"""
Response transformations for model-backed functions.

A model fitted to ``log(wage)`` predicts on the log scale; the function built
from it applies the inverse (``exp``) so that it reports wages.
"""

import warnings
from typing import Callable, Optional

import numpy as np

from ..core.exceptions import TransformationWarning
from ..formulas.nodes import Node, Call, Group, Number
from ..utils.logging import get_logger


logger = get_logger(__name__)


def identity(x):
    """Return the prediction unchanged."""
    return x


def power_of_two(x):
    """Inverse of ``log2``."""
    return np.power(2.0, x)


class PowerOf:
    """Inverse of a logarithm to a fixed base: ``x -> base ** x``."""

    def __init__(self, base: float):
        self.base = float(base)
        self.__name__ = f"power_of_{self.base:g}"

    def __call__(self, x):
        return np.power(self.base, x)

    def __eq__(self, other) -> bool:
        return isinstance(other, PowerOf) and other.base == self.base

    def __hash__(self) -> int:
        return hash((PowerOf, self.base))

    def __repr__(self) -> str:
        return f"PowerOf({self.base:g})"


# Response wrapper -> inverse transformation.
INVERSE_TRANSFORMATIONS = {
    'log': np.exp,
    'log2': power_of_two,
    'sqrt': np.square,
    'I': identity,
}


def infer_transformation(response: Optional[Node], warn: bool = True) -> Callable:
    """
    Infer the transformation that undoes a model's response expression.

    Recognised responses are ``log(y)`` (-> exp), ``log2(y)`` (-> 2^x),
    ``sqrt(y)`` (-> square) and ``log(y, base)`` with a literal base
    (-> base^x). Module prefixes are ignored, so ``np.log(y)`` counts as
    ``log(y)``. Plain responses map to the identity silently.

    Args:
        response: Left-hand side of the model formula
        warn: Emit a TransformationWarning when the response is a function
            call that is not recognised

    Returns:
        Transformation callable
    """
    while isinstance(response, Group):
        response = response.body

    if not isinstance(response, Call):
        return identity

    name = response.base_name
    keywords = dict(response.keywords)

    if name == 'log' and (len(response.args) == 2 or 'base' in keywords):
        base = response.args[1] if len(response.args) == 2 else keywords['base']
        if isinstance(base, Number) and not (len(response.args) == 2 and keywords):
            logger.debug(f"Inferred transformation base^x for response {response}")
            return PowerOf(base.value)

    elif name in INVERSE_TRANSFORMATIONS and len(response.args) == 1 and not keywords:
        logger.debug(f"Inferred inverse of {name} for response {response}")
        return INVERSE_TRANSFORMATIONS[name]

    if warn:
        warnings.warn(
            f"Cannot infer a transformation for response '{response}'; using identity",
            TransformationWarning,
            stacklevel=3,
        )
    return identity
