"""Core functionality for formulafun."""

from .exceptions import (
    FormulaFunError,
    MalformedExpressionError,
    ExpressionSyntaxError,
    UndeclaredDefaultError,
    EvaluationError,
    ModelIntrospectionError,
    PredictionError,
    FittingError,
    ConfigurationError,
    FormulaFunWarning,
    EnvironmentDefaultWarning,
    DanglingParameterWarning,
    TransformationWarning,
)

__all__ = [
    "FormulaFunError",
    "MalformedExpressionError",
    "ExpressionSyntaxError",
    "UndeclaredDefaultError",
    "EvaluationError",
    "ModelIntrospectionError",
    "PredictionError",
    "FittingError",
    "ConfigurationError",
    "FormulaFunWarning",
    "EnvironmentDefaultWarning",
    "DanglingParameterWarning",
    "TransformationWarning",
]
