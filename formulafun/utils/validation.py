"""
Validation utilities for formulafun.

Provides common checks for values and names flowing into synthesized functions.
"""

import keyword
import numbers
from typing import Any, Iterable, List

import numpy as np

from ..core.exceptions import FormulaFunError


def is_numeric(value: Any) -> bool:
    """
    Check whether a value counts as numeric data.

    Real numbers (Python or numpy scalars) and arrays with an integer or
    floating dtype are numeric. That includes numpy arrays, pandas Series and
    jax arrays. Booleans, complex numbers, strings and everything else are
    not.

    Args:
        value: Value to check

    Returns:
        True if the value is numeric
    """
    if isinstance(value, (bool, np.bool_)):
        return False

    if isinstance(value, numbers.Real):
        return True

    if getattr(value, 'dtype', None) is not None:
        return np.asarray(value).dtype.kind in 'iuf'

    return False


def validate_identifier(name: Any, what: str = "variable") -> str:
    """
    Validate that a name can be used as a Python argument name.

    Args:
        name: Candidate name
        what: Description used in error messages

    Returns:
        The validated name

    Raises:
        FormulaFunError: If the name cannot be an argument name
    """
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise FormulaFunError(
            f"'{name}' cannot be used as a {what} name",
            suggestions=[
                "Use letters, digits and underscores only",
                "Do not start names with a digit",
                "Avoid Python keywords such as 'lambda' or 'in'",
            ],
            error_code="INVALID_NAME",
            context={"name": name},
        )
    return name


def ordered_intersection(items: Iterable[str], keep: Iterable[str]) -> List[str]:
    """Items that also appear in ``keep``, in the order of ``items``."""
    keep = set(keep)
    return [item for item in items if item in keep]


def ordered_difference(items: Iterable[str], drop: Iterable[str]) -> List[str]:
    """Items that do not appear in ``drop``, in the order of ``items``."""
    drop = set(drop)
    return [item for item in items if item not in drop]
