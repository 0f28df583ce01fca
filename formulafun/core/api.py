"""
Main API functions for formulafun.

High-level user interface for turning formulas and fitted models into
functions.
"""

from typing import Any, Mapping, Optional

from ..config.settings import get_default_config
from ..core.exceptions import MalformedExpressionError
from ..formulas.formula import Formula
from ..functions.scope import CallerScope
from ..functions.synthesized import SynthesizedFunction
from ..functions.synthesizer import make_function
from ..models.adapter import make_function_from_model
from ..models.base import as_fitted_model, is_fitted_model
from ..utils.logging import get_logger

logger = get_logger(__name__)


def make_fun(obj: Any, defaults: Optional[Mapping[str, Any]] = None, **kwargs) -> Any:
    """
    Create a function from a formula or a fitted model.

    Args:
        obj: Formula text or Formula (see ``make_function``), a fitted model
            (see ``make_function_from_model``), or a function, which is
            returned unchanged
        defaults: Default values for formula variables
        **kwargs: Options of the underlying builder; for formulas, any other
            keyword is a default value

    Returns:
        SynthesizedFunction, or ``obj`` itself when it is already callable

    Raises:
        MalformedExpressionError: If ``obj`` is none of the above

    Examples:
        >>> f = make_fun("sin(x^2 * b) ~ x & y & a", a=2)
        >>> f.parameter_names
        ['x', 'y', 'b', 'a']

        >>> model = lm("wage ~ exper", data)
        >>> g = make_fun(model)
        >>> g(exper=10)
    """
    if isinstance(obj, (Formula, str)):
        if kwargs.get('scope') is None and get_default_config().synthesis.capture_caller_scope:
            kwargs['scope'] = CallerScope.capture(depth=2)
        return make_function(obj, defaults, **kwargs)

    if is_fitted_model(obj):
        return make_function_from_model(obj, defaults, **kwargs)

    if callable(obj):
        logger.debug(f"make_fun returning callable {getattr(obj, '__name__', obj)!r} unchanged")
        return obj

    raise MalformedExpressionError(
        reason=f"cannot make a function from {type(obj).__name__}",
        suggestions=[
            "Pass a formula such as 'sin(x^2 * b) ~ x & b'",
            "Pass a model fitted with lm, glm or nls",
        ],
    )


def coef(obj: Any) -> Optional[Mapping[str, float]]:
    """
    Extract coefficients.

    Args:
        obj: A function built from a model, or a fitted model

    Returns:
        Coefficients by name; None for functions built from formulas
    """
    if isinstance(obj, SynthesizedFunction):
        return obj.coefficients

    if is_fitted_model(obj):
        return as_fitted_model(obj).coefficients

    return getattr(obj, 'coefficients', None)
