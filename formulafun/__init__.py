"""
formulafun: turn formulas and fitted models into functions

Builds ordinary Python callables from R-style formulas such as
``sin(x^2 * b) ~ x & y & a`` and from fitted linear, generalized linear and
nonlinear least squares models.
"""

__version__ = "0.1.0"

# Formula system
from .formulas import Formula, parse_formula, parse_expression, evaluate

# Function synthesis
from .functions import (
    SynthesizedFunction,
    FunctionParameter,
    ParameterSource,
    ScopeResolver,
    NullScope,
    MappingScope,
    CallerScope,
    make_function,
    infer_transformation,
)

# Models
from .models import (
    ModelKind,
    FittedModel,
    LinearModel,
    GeneralizedLinearModel,
    NonlinearLeastSquaresModel,
    lm,
    glm,
    nls,
    model_vars,
    make_function_from_model,
)

# Main API
from .core.api import make_fun, coef

# Configuration
from .config.settings import FormulaFunConfig, get_default_config, reset_default_config

# Import key exception classes
from .core.exceptions import (
    FormulaFunError,
    MalformedExpressionError,
    ExpressionSyntaxError,
    UndeclaredDefaultError,
    UndeclaredDeclarationError,
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
    # Version info
    "__version__",

    # Main API
    "make_fun",
    "coef",

    # Formula system
    "Formula",
    "parse_formula",
    "parse_expression",
    "evaluate",

    # Function synthesis
    "SynthesizedFunction",
    "FunctionParameter",
    "ParameterSource",
    "ScopeResolver",
    "NullScope",
    "MappingScope",
    "CallerScope",
    "make_function",
    "infer_transformation",

    # Models
    "ModelKind",
    "FittedModel",
    "LinearModel",
    "GeneralizedLinearModel",
    "NonlinearLeastSquaresModel",
    "lm",
    "glm",
    "nls",
    "model_vars",
    "make_function_from_model",

    # Configuration
    "FormulaFunConfig",
    "get_config",
    "configure",
    "reset_config",

    # Exceptions and warnings
    "FormulaFunError",
    "MalformedExpressionError",
    "ExpressionSyntaxError",
    "UndeclaredDefaultError",
    "UndeclaredDeclarationError",
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


def get_config() -> FormulaFunConfig:
    """Get the global configuration instance."""
    return get_default_config()


def configure(**kwargs) -> None:
    """
    Update global configuration.

    Keys are section names or dotted paths:
        configure(**{"evaluation.backend": "jax"})
        configure(synthesis={"suppress_warnings": False})
    """
    get_default_config().update(**kwargs)


def reset_config() -> None:
    """Restore the configuration built from files and environment variables."""
    reset_default_config()
