"""
Nonlinear least squares for formulafun.

Fits mean functions written in the package's own expression language, e.g.
``wage ~ A + B * exper + C * exper^2`` with starting values for A, B and C,
using ``scipy.optimize.least_squares``.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
import scipy.optimize

from .base import FittedModel, ModelKind, default_registry
from ..core.exceptions import FittingError, MalformedExpressionError
from ..formulas.evaluation import evaluate
from ..formulas.formula import Formula
from ..formulas.parser import parse_formula
from ..utils.logging import get_logger, log_performance
from ..utils.validation import ordered_difference


logger = get_logger(__name__)


class NonlinearLeastSquaresModel(FittedModel):
    """
    Result of a nonlinear least squares fit.

    The right side of ``formula`` is the mean function; names in it that are
    coefficients are parameters of the fit, the others are covariates.
    """

    kind = ModelKind.NONLINEAR_LEAST_SQUARES

    def __init__(
        self,
        formula: Formula,
        coefficients: Mapping[str, float],
        data: Optional[pd.DataFrame] = None,
        fitted_values: Optional[np.ndarray] = None,
        residuals: Optional[np.ndarray] = None,
        n_evaluations: Optional[int] = None,
    ):
        self._formula = formula
        self._coefficients = {str(k): float(v) for k, v in coefficients.items()}
        self._data = data
        self.fitted_values = fitted_values
        self.residuals = residuals
        self.n_evaluations = n_evaluations

    @property
    def formula(self) -> Formula:
        return self._formula

    @property
    def coefficients(self) -> Dict[str, float]:
        return dict(self._coefficients)

    @property
    def data(self) -> Optional[pd.DataFrame]:
        return self._data

    @property
    def sigma(self) -> Optional[float]:
        """Residual standard error."""
        if self.residuals is None:
            return None
        dof = len(self.residuals) - len(self._coefficients)
        if dof <= 0:
            return None
        return float(np.sqrt(np.sum(self.residuals ** 2) / dof))

    def model_variables(self) -> List[str]:
        return ordered_difference(self.formula.rhs_variables, self._coefficients)

    def predict(self, newdata: Optional[pd.DataFrame] = None, type: str = "response", **kwargs) -> np.ndarray:
        if newdata is None:
            if self.fitted_values is None:
                raise ValueError("newdata is required when fitted values are not stored")
            return np.asarray(self.fitted_values)

        bindings: Dict[str, Any] = {
            str(column): np.asarray(newdata[column]) for column in newdata.columns
        }
        bindings.update(self._coefficients)

        value = evaluate(
            self.formula.rhs, bindings, namespace=self.formula.namespace, backend="numpy"
        )
        return np.broadcast_to(np.asarray(value, dtype=float), (len(newdata),)).copy()


@log_performance
def nls(
    formula: Union[Formula, str],
    data: pd.DataFrame,
    start: Mapping[str, float],
    namespace: Optional[Mapping[str, Any]] = None,
    **least_squares_kwargs,
) -> NonlinearLeastSquaresModel:
    """
    Fit a nonlinear model by least squares.

    Args:
        formula: ``response ~ mean function``; the response side may be a
            transformation of a data column, e.g. ``log(y) ~ a + b * x``
        data: Training data holding the covariates and the response
        start: Starting values; its keys name the coefficients
        namespace: Extra functions or constants for the mean function
        **least_squares_kwargs: Passed to ``scipy.optimize.least_squares``

    Returns:
        NonlinearLeastSquaresModel

    Raises:
        FittingError: If the optimizer fails or does not converge
    """
    formula = parse_formula(formula, namespace=namespace)
    if not formula.is_two_sided:
        raise MalformedExpressionError(
            expression=str(formula), reason="nonlinear models need a response"
        )

    names = list(start)
    unknown = ordered_difference(names, formula.rhs_variables)
    if unknown:
        raise FittingError(
            optimizer="least_squares",
            reason=f"start values given for names not in the model: {', '.join(unknown)}",
        )

    columns = {
        name: np.asarray(data[name])
        for name in formula.variables
        if name in data.columns and name not in start
    }
    y = np.asarray(
        evaluate(formula.lhs, columns, namespace=formula.namespace, backend="numpy"),
        dtype=float,
    )

    def residuals(theta: np.ndarray) -> np.ndarray:
        bindings = dict(columns)
        bindings.update(zip(names, theta))
        fitted = evaluate(formula.rhs, bindings, namespace=formula.namespace, backend="numpy")
        return np.broadcast_to(np.asarray(fitted, dtype=float), y.shape) - y

    x0 = np.array([float(start[name]) for name in names])

    try:
        result = scipy.optimize.least_squares(residuals, x0, **least_squares_kwargs)
    except ValueError as e:
        raise FittingError(optimizer="least_squares", reason=str(e)) from e

    if not result.success:
        raise FittingError(
            optimizer="least_squares", reason=result.message, n_evaluations=result.nfev
        )

    fitted_values = y + result.fun
    logger.debug(
        f"Nonlinear fit converged: {formula}",
        n_evaluations=result.nfev,
        cost=f"{result.cost:.6g}",
    )

    return NonlinearLeastSquaresModel(
        formula=formula,
        coefficients=dict(zip(names, result.x)),
        data=data,
        fitted_values=fitted_values,
        residuals=y - fitted_values,
        n_evaluations=int(result.nfev),
    )


default_registry.register(ModelKind.NONLINEAR_LEAST_SQUARES, NonlinearLeastSquaresModel)
