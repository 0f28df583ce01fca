"""
Linear and generalized linear models backed by statsmodels.

Wraps results of the statsmodels formula API (``smf.ols``, ``smf.wls``,
``smf.glm``, ...) as FittedModel instances, and provides ``lm``/``glm``
convenience fitters.
"""

from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from statsmodels.genmod.generalized_linear_model import GLMResults
from statsmodels.regression.linear_model import RegressionResults

from .base import FittedModel, ModelKind, default_registry
from ..core.exceptions import ConfigurationError, MalformedExpressionError, ModelIntrospectionError
from ..formulas.formula import Formula
from ..formulas.parser import parse_formula
from ..utils.logging import get_logger


logger = get_logger(__name__)


class StatsmodelsModel(FittedModel):
    """Common plumbing for statsmodels formula-API results."""

    results_type: type = object

    def __init__(self, results: Any):
        self.results = results
        self._formula = self._read_formula()
        self._coefficients = self._read_coefficients()

    @classmethod
    def accepts(cls, obj: Any) -> bool:
        # Results are usually wrapped; the wrapper keeps the raw results in _results.
        return isinstance(getattr(obj, '_results', obj), cls.results_type)

    @classmethod
    def from_object(cls, obj: Any) -> "StatsmodelsModel":
        return cls(obj)

    def _read_formula(self) -> Formula:
        text = getattr(getattr(self.results, 'model', None), 'formula', None)
        if not text:
            raise ModelIntrospectionError(model_type=type(self).__name__, missing="formula")

        try:
            formula = parse_formula(str(text))
        except MalformedExpressionError as e:
            raise ModelIntrospectionError(
                model_type=type(self).__name__,
                reason=f"cannot read formula '{text}'",
            ) from e

        if not formula.is_two_sided:
            raise ModelIntrospectionError(model_type=type(self).__name__, missing="response")
        return formula

    def _read_coefficients(self) -> Dict[str, float]:
        params = getattr(self.results, 'params', None)
        if params is None:
            raise ModelIntrospectionError(model_type=type(self).__name__, missing="coefficients")

        if isinstance(params, pd.Series):
            return {str(name): float(value) for name, value in params.items()}

        names = self.results.model.exog_names
        return {str(name): float(value) for name, value in zip(names, np.asarray(params))}

    @property
    def formula(self) -> Formula:
        return self._formula

    @property
    def coefficients(self) -> Dict[str, float]:
        return dict(self._coefficients)

    @property
    def data(self) -> Optional[pd.DataFrame]:
        frame = getattr(self.results.model.data, 'frame', None)
        return frame if isinstance(frame, pd.DataFrame) else None

    def predict(self, newdata: pd.DataFrame, type: str = "response", **kwargs) -> np.ndarray:
        return np.asarray(self.results.predict(exog=newdata, **kwargs))


class LinearModel(StatsmodelsModel):
    """Ordinary, weighted or generalized least squares fit."""

    kind = ModelKind.LINEAR
    results_type = RegressionResults


class GeneralizedLinearModel(StatsmodelsModel):
    """Generalized linear model fit."""

    kind = ModelKind.GENERALIZED_LINEAR
    results_type = GLMResults

    @property
    def family(self):
        return self.results.model.family

    def predict(self, newdata: pd.DataFrame, type: str = "response", **kwargs) -> np.ndarray:
        """Predict on the response (mean) scale or the link (linear predictor) scale."""
        if type not in ("response", "link"):
            raise ValueError(f"type must be 'response' or 'link', not {type!r}")
        kwargs.setdefault('which', "linear" if type == "link" else "mean")
        return np.asarray(self.results.predict(exog=newdata, **kwargs))


FAMILIES = {
    'gaussian': sm.families.Gaussian,
    'binomial': sm.families.Binomial,
    'poisson': sm.families.Poisson,
    'gamma': sm.families.Gamma,
    'inverse_gaussian': sm.families.InverseGaussian,
    'negative_binomial': sm.families.NegativeBinomial,
    'tweedie': sm.families.Tweedie,
}


def _formula_text(formula: Union[Formula, str]) -> str:
    if isinstance(formula, Formula):
        return formula.text or formula.to_string()
    return formula


def lm(formula: Union[Formula, str], data: pd.DataFrame, **kwargs) -> LinearModel:
    """
    Fit a linear model by ordinary least squares.

    Args:
        formula: Model formula in statsmodels/patsy syntax,
            e.g. ``"np.log(wage) ~ exper + I(exper**2)"``
        data: Training data
        **kwargs: Passed to ``statsmodels.formula.api.ols``

    Returns:
        LinearModel
    """
    text = _formula_text(formula)
    results = smf.ols(text, data=data, **kwargs).fit()
    logger.info(f"Fitted linear model: {text}", n_obs=int(results.nobs))
    return LinearModel(results)


def glm(
    formula: Union[Formula, str],
    data: pd.DataFrame,
    family: Any = "gaussian",
    **kwargs,
) -> GeneralizedLinearModel:
    """
    Fit a generalized linear model.

    Args:
        formula: Model formula in statsmodels/patsy syntax
        data: Training data
        family: Family name (``'gaussian'``, ``'binomial'``, ``'poisson'``,
            ``'gamma'``, ...) or a ``statsmodels`` family instance
        **kwargs: Passed to ``statsmodels.formula.api.glm``

    Returns:
        GeneralizedLinearModel
    """
    if isinstance(family, str):
        key = family.lower()
        if key not in FAMILIES:
            raise ConfigurationError(
                config_key="family",
                reason=f"unknown family '{family}', choose from {sorted(FAMILIES)}",
            )
        family = FAMILIES[key]()

    text = _formula_text(formula)
    results = smf.glm(text, data=data, family=family, **kwargs).fit()
    logger.info(
        f"Fitted generalized linear model: {text}",
        family=type(family).__name__,
        n_obs=int(results.nobs),
    )
    return GeneralizedLinearModel(results)


default_registry.register(ModelKind.LINEAR, LinearModel)
default_registry.register(ModelKind.GENERALIZED_LINEAR, GeneralizedLinearModel)
