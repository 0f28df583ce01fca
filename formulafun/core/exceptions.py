"""
Exception and warning classes for formulafun.

Provides rich error information with actionable suggestions.
"""

from typing import List, Optional, Dict, Any, Sequence


class FormulaFunError(Exception):
    """
    Base exception class for formulafun with rich error information.

    Provides structured error information including suggestions for resolution
    and the context the error was raised in.
    """

    def __init__(
        self,
        message: str,
        suggestions: Optional[List[str]] = None,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.suggestions = suggestions or []
        self.error_code = error_code
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return formatted error message with suggestions."""
        message = super().__str__()

        if self.error_code:
            message = f"[{self.error_code}] {message}"

        if self.suggestions:
            message += "\n\nSuggestions:"
            for i, suggestion in enumerate(self.suggestions, 1):
                message += f"\n  {i}. {suggestion}"

        return message


class MalformedExpressionError(FormulaFunError):
    """Exception raised when an input is not a usable two-sided formula."""

    def __init__(
        self,
        expression: Optional[str] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        if expression is not None and reason:
            message = f"Malformed expression '{expression}': {reason}"
        elif reason:
            message = f"Malformed expression: {reason}"
        elif expression is not None:
            message = (
                f"'{expression}' must be a formula with both left and right sides"
            )
        else:
            message = "First argument must be a formula with both left and right sides"

        suggestions = kwargs.pop('suggestions', None) or [
            "Write the function body on the left of '~'",
            "List at least one input on the right of '~'",
            "Example: 'sin(x^2 * b) ~ x & b'",
        ]

        super().__init__(
            message=message,
            suggestions=suggestions,
            error_code=kwargs.pop('error_code', "MALFORMED_EXPRESSION"),
            context={"expression": expression, "reason": reason},
            **kwargs
        )


class ExpressionSyntaxError(MalformedExpressionError):
    """Exception raised when expression text cannot be tokenized or parsed."""

    def __init__(
        self,
        expression: str,
        position: Optional[int] = None,
        found: Optional[str] = None,
        expected: Optional[str] = None,
        **kwargs
    ):
        if found is None:
            reason = "unexpected end of input"
        else:
            reason = f"unexpected {found!r}"
        if position is not None:
            reason += f" at column {position + 1}"
        if expected:
            reason += f" (expected {expected})"

        self.position = position

        kwargs.pop('suggestions', None)

        super().__init__(
            expression=expression,
            reason=reason,
            suggestions=[
                "Check for unbalanced parentheses",
                "Use '^' or '**' for powers and '*' for products",
                "Separate function inputs on the right side with '&' or '+'",
            ],
            error_code="SYNTAX",
            **kwargs
        )


class UndeclaredDefaultError(FormulaFunError):
    """Exception raised when defaults name variables absent from the formula."""

    def __init__(
        self,
        undeclared: Sequence[str],
        formula: Optional[str] = None,
        **kwargs
    ):
        undeclared = list(undeclared)
        message = (
            "Default values provided for variables not in formula: "
            + ",".join(undeclared)
        )

        kwargs.pop('suggestions', None)

        super().__init__(
            message=message,
            suggestions=[
                "Check the spelling of the default value names",
                "Add the variables to the right side of the formula",
                "Pass strict_declaration=False to drop unknown defaults",
            ],
            error_code="UNDECLARED_DEFAULT",
            context={"undeclared": undeclared, "formula": formula},
            **kwargs
        )
        self.undeclared = undeclared


# Alias matching the "declaration" wording of the option name.
UndeclaredDeclarationError = UndeclaredDefaultError


class EvaluationError(FormulaFunError):
    """Exception raised when a synthesized function cannot evaluate its body."""

    def __init__(
        self,
        name: Optional[str] = None,
        reason: Optional[str] = None,
        expression: Optional[str] = None,
        **kwargs
    ):
        if name and reason:
            message = f"Cannot evaluate '{name}': {reason}"
        elif name:
            message = f"Object '{name}' not found"
        else:
            message = f"Evaluation failed: {reason or 'unknown error'}"

        suggestions = kwargs.pop('suggestions', None) or [
            "Supply every argument the function body uses",
            "Pass functions and constants through the formula namespace",
        ]

        super().__init__(
            message=message,
            suggestions=suggestions,
            error_code="EVALUATION",
            context={"name": name, "reason": reason, "expression": expression},
            **kwargs
        )


class ModelIntrospectionError(FormulaFunError):
    """Exception raised when a fitted model cannot be inspected."""

    def __init__(
        self,
        model_type: Optional[str] = None,
        missing: Optional[str] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        if model_type and missing:
            message = f"Cannot introspect {model_type}: no {missing} available"
        elif model_type and reason:
            message = f"Cannot introspect {model_type}: {reason}"
        elif reason:
            message = f"Cannot introspect model: {reason}"
        else:
            message = "Model introspection failed"

        kwargs.pop('suggestions', None)

        super().__init__(
            message=message,
            suggestions=[
                "Fit linear and generalized linear models with a formula "
                "(statsmodels.formula.api or formulafun.lm / formulafun.glm)",
                "Fit nonlinear models with formulafun.nls",
                "Avoid predictor names 'transformation' and 'predict_args'",
            ],
            error_code="MODEL_INTROSPECTION",
            context={"model_type": model_type, "missing": missing, "reason": reason},
            **kwargs
        )


class PredictionError(FormulaFunError):
    """Exception raised when a model's prediction routine fails."""

    def __init__(
        self,
        model_type: Optional[str] = None,
        reason: Optional[str] = None,
        variables: Optional[List[str]] = None,
        **kwargs
    ):
        if model_type and reason:
            message = f"Prediction failed for {model_type}: {reason}"
        elif model_type:
            message = f"Prediction failed for {model_type}"
        else:
            message = "Prediction failed"

        kwargs.pop('suggestions', None)

        super().__init__(
            message=message,
            suggestions=[
                f"Supply values for every predictor: {', '.join(variables or [])}",
                "Check that covariate values have compatible lengths and types",
                "Check extra keyword arguments accepted by the model's predict",
            ],
            error_code="PREDICTION",
            context={"model_type": model_type, "reason": reason, "variables": variables},
            **kwargs
        )


class FittingError(FormulaFunError):
    """Exception raised when a model fit fails."""

    def __init__(
        self,
        optimizer: Optional[str] = None,
        reason: Optional[str] = None,
        n_evaluations: Optional[int] = None,
        **kwargs
    ):
        if optimizer and reason:
            message = f"Fitting failed with {optimizer}: {reason}"
        elif optimizer:
            message = f"Fitting failed with {optimizer}"
        else:
            message = "Fitting failed to converge"

        suggestions = [
            "Try different starting values",
            "Increase the maximum number of function evaluations",
            "Check the data for missing or extreme values",
            "Simplify the mean function",
        ]

        if n_evaluations and n_evaluations > 1000:
            suggestions.insert(0, "Model may be overparameterized")

        kwargs.pop('suggestions', None)

        super().__init__(
            message=message,
            suggestions=suggestions,
            error_code="FITTING",
            context={
                "optimizer": optimizer,
                "reason": reason,
                "n_evaluations": n_evaluations,
            },
            **kwargs
        )


class ConfigurationError(FormulaFunError):
    """Exception raised for configuration issues."""

    def __init__(self, config_key: Optional[str] = None, reason: Optional[str] = None, **kwargs):
        if config_key:
            message = f"Invalid configuration for '{config_key}'"
            if reason:
                message += f": {reason}"
            suggestions = [
                f"Check the value for configuration key '{config_key}'",
                "Review configuration file syntax",
                "Check environment variable formatting",
                "Use formulafun.get_config() to inspect current settings",
            ]
        else:
            message = f"Configuration error: {reason}" if reason else "Configuration error"
            suggestions = [
                "Check configuration file syntax",
                "Verify all required settings are provided",
            ]

        kwargs.pop('suggestions', None)

        super().__init__(
            message=message,
            suggestions=suggestions,
            error_code="CONFIG",
            context={"config_key": config_key, "reason": reason},
            **kwargs
        )


class FormulaFunWarning(UserWarning):
    """Base class for formulafun warnings."""


class EnvironmentDefaultWarning(FormulaFunWarning):
    """Default values were taken from the surrounding scope."""


class DanglingParameterWarning(FormulaFunWarning):
    """Implicit variables were left without default values."""


class TransformationWarning(FormulaFunWarning):
    """The response transformation of a model could not be inferred."""
