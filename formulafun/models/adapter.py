"""
Model-to-function adapter for formulafun.

Builds a SynthesizedFunction whose arguments are a fitted model's predictor
variables and whose value is the model's (transformed) prediction.
"""

import inspect
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .base import FittedModel, ModelKind, as_fitted_model
from ..config.settings import ResponseScale, get_default_config
from ..core.exceptions import (
    ConfigurationError,
    FormulaFunError,
    ModelIntrospectionError,
    PredictionError,
)
from ..functions.synthesized import FunctionParameter, ParameterSource, SynthesizedFunction
from ..functions.transformations import infer_transformation
from ..utils.logging import get_logger


logger = get_logger(__name__)

# Argument names used by the model function itself.
RESERVED_ARGUMENTS = ('transformation', 'predict_args')


def make_function_from_model(
    model: Any,
    defaults: Optional[Mapping[str, Any]] = None,
    *,
    kind: Optional[Union[ModelKind, str]] = None,
    transformation: Optional[Callable] = None,
    type: Optional[str] = None,
    suppress_warnings: Optional[bool] = None,
) -> SynthesizedFunction:
    """
    Build a prediction function from a fitted model.

    With predictors ``v1..vn`` the function is
    ``f(v1, ..., vn, *, transformation=<inferred>, **predict_args)``; with no
    predictors it is ``f(x=1, **predict_args)``. Extra keyword arguments go to
    the model's ``predict``. The model's coefficients are attached to the
    function.

    Args:
        model: FittedModel or a statsmodels formula-API results object
        defaults: Accepted for symmetry with formulas; predictors never take
            defaults, so these are ignored
        kind: Expected model kind ('lm', 'glm' or 'nls')
        transformation: Applied to predictions; inferred from the response
            (``log(y)`` -> ``exp``) when omitted
        type: 'response' or 'link' scale for generalized linear models
        suppress_warnings: Do not warn when no transformation can be inferred

    Returns:
        SynthesizedFunction wrapping the model's predict

    Raises:
        ModelIntrospectionError: If the model cannot be read

    Example:
        model = lm("np.log(wage) ~ exper", data)
        f = make_function_from_model(model)
        f(exper=10)  # exp of the predicted log wage
    """
    config = get_default_config().models
    scale = type if type is not None else config.response_scale
    if not _is_scale(scale):
        raise ConfigurationError(
            config_key="type", reason=f"must be 'response' or 'link', not {scale!r}"
        )
    scale = ResponseScale(scale).value
    if suppress_warnings is None:
        suppress_warnings = config.suppress_transformation_warnings

    fitted = as_fitted_model(model, kind=kind)
    model_type = fitted.__class__.__name__

    if defaults:
        logger.info(
            "Model predictors take no defaults; ignoring them",
            ignored=",".join(defaults),
        )

    if transformation is None:
        # GLMs fall back to the identity silently.
        warn = not suppress_warnings and fitted.kind is not ModelKind.GENERALIZED_LINEAR
        transformation = infer_transformation(fitted.response, warn=warn)
    elif not callable(transformation):
        raise TypeError(
            f"transformation must be callable, not {transformation.__class__.__name__}"
        )

    predictors = _read_predictors(fitted)
    coefficients = fitted.coefficients

    predict_kwargs: Dict[str, Any] = {}
    if fitted.kind is ModelKind.GENERALIZED_LINEAR:
        predict_kwargs['type'] = scale

    if not predictors:
        parameters, body, body_text = _zero_predictor_function(
            fitted, transformation, predict_kwargs, config.zero_predictor_name
        )
    else:
        parameters, body, body_text = _predictor_function(
            fitted, predictors, transformation, predict_kwargs
        )

    logger.debug(
        f"Built function from {model_type}",
        predictors=predictors,
        transformation=getattr(transformation, '__name__', repr(transformation)),
    )
    return SynthesizedFunction(
        body,
        parameters,
        coefficients=coefficients,
        source=fitted,
        name="model_function",
        body_text=body_text,
    )


def _is_scale(value: Any) -> bool:
    try:
        ResponseScale(value)
    except ValueError:
        return False
    return True


def _read_predictors(fitted: FittedModel) -> List[str]:
    predictors = fitted.predictor_variables()

    collisions = [name for name in predictors if name in RESERVED_ARGUMENTS]
    if collisions:
        raise ModelIntrospectionError(
            model_type=fitted.__class__.__name__,
            reason=f"predictor names collide with function arguments: {', '.join(collisions)}",
        )

    invalid = [name for name in predictors if not name.isidentifier()]
    if invalid:
        raise ModelIntrospectionError(
            model_type=fitted.__class__.__name__,
            reason=f"predictor names are not valid argument names: {', '.join(invalid)}",
        )
    return predictors


def _predictor_function(
    fitted: FittedModel,
    predictors: List[str],
    transformation: Callable,
    predict_kwargs: Dict[str, Any],
) -> Tuple[List[FunctionParameter], Callable, str]:
    parameters = [FunctionParameter(name) for name in predictors]
    parameters.append(FunctionParameter(
        'transformation', transformation, ParameterSource.DECLARED_DEFAULT,
        kind=inspect.Parameter.KEYWORD_ONLY,
    ))
    parameters.append(FunctionParameter(
        'predict_args', kind=inspect.Parameter.VAR_KEYWORD,
    ))

    def body(arguments: Dict[str, Any]) -> Any:
        values = {name: arguments[name] for name in predictors}
        prediction = _predict(fitted, values, {**predict_kwargs, **arguments['predict_args']})
        return arguments['transformation'](prediction)

    columns = ", ".join(f"{name} = {name}" for name in predictors)
    body_text = f"transformation(predict(model, newdata = data.frame({columns}), ...))"
    return parameters, body, body_text


def _zero_predictor_function(
    fitted: FittedModel,
    transformation: Callable,
    predict_kwargs: Dict[str, Any],
    name: str,
) -> Tuple[List[FunctionParameter], Callable, str]:
    parameters = [
        FunctionParameter(name, 1, ParameterSource.DECLARED_DEFAULT),
        FunctionParameter('predict_args', kind=inspect.Parameter.VAR_KEYWORD),
    ]

    def body(arguments: Dict[str, Any]) -> Any:
        values = {name: arguments[name]}
        prediction = _predict(fitted, values, {**predict_kwargs, **arguments['predict_args']})
        return transformation(prediction)

    body_text = f"transformation(predict(model, newdata = data.frame({name} = {name}), ...))"
    return parameters, body, body_text


def covariate_frame(values: Mapping[str, Any]) -> pd.DataFrame:
    """
    Build a covariate frame from argument values.

    Scalars are broadcast against arrays, so ``f(exper=[1, 2, 3], sex="M")``
    gives three rows.
    """
    names = list(values)
    arrays = np.broadcast_arrays(*[np.atleast_1d(np.asarray(values[n])) for n in names])
    return pd.DataFrame({name: array for name, array in zip(names, arrays)})


def _predict(fitted: FittedModel, values: Mapping[str, Any], kwargs: Dict[str, Any]) -> Any:
    try:
        newdata = covariate_frame(values)
        return fitted.predict(newdata, **kwargs)
    except FormulaFunError:
        raise
    except Exception as e:
        raise PredictionError(
            model_type=fitted.__class__.__name__,
            reason=str(e) or e.__class__.__name__,
            variables=list(values),
        ) from e
