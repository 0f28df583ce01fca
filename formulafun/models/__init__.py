"""
Fitted models for formulafun.

Wraps linear, generalized linear and nonlinear least squares fits behind a
common interface and turns them into prediction functions.
"""

from .base import (
    ModelKind,
    FittedModel,
    ModelRegistry,
    default_registry,
    as_fitted_model,
    is_fitted_model,
    model_vars,
)
from .linear import (
    StatsmodelsModel,
    LinearModel,
    GeneralizedLinearModel,
    FAMILIES,
    lm,
    glm,
)
from .nls import NonlinearLeastSquaresModel, nls
from .adapter import RESERVED_ARGUMENTS, covariate_frame, make_function_from_model

__all__ = [
    # Model interface
    "ModelKind",
    "FittedModel",
    "ModelRegistry",
    "default_registry",
    "as_fitted_model",
    "is_fitted_model",
    "model_vars",

    # Implementations
    "StatsmodelsModel",
    "LinearModel",
    "GeneralizedLinearModel",
    "FAMILIES",
    "lm",
    "glm",
    "NonlinearLeastSquaresModel",
    "nls",

    # Adapter
    "RESERVED_ARGUMENTS",
    "covariate_frame",
    "make_function_from_model",
]
