"""
Formula-to-function synthesis for formulafun.

Turns a two-sided formula into a SynthesizedFunction: the right side and the
left-side-only names become parameters, the left side becomes the body.
"""

import warnings
from typing import Any, Dict, List, Mapping, Optional, Union

from .scope import NOT_FOUND, CallerScope, ScopeResolver, as_scope_resolver
from .synthesized import FunctionParameter, ParameterSource, SynthesizedFunction
from ..config.settings import get_default_config
from ..core.exceptions import (
    DanglingParameterWarning,
    EnvironmentDefaultWarning,
    FormulaFunError,
    MalformedExpressionError,
    UndeclaredDefaultError,
)
from ..formulas.evaluation import MISSING, DefaultExpression, EvaluationContext, get_backend
from ..formulas.formula import Formula
from ..formulas.parser import parse_expression, parse_formula
from ..utils.logging import get_logger
from ..utils.validation import ordered_difference, ordered_intersection, validate_identifier


logger = get_logger(__name__)


def make_function(
    formula: Union[Formula, str],
    defaults: Optional[Mapping[str, Any]] = None,
    *,
    strict_declaration: Optional[bool] = None,
    use_environment: Optional[bool] = None,
    suppress_warnings: Optional[bool] = None,
    scope: Optional[Union[ScopeResolver, Mapping[str, Any]]] = None,
    namespace: Optional[Mapping[str, Any]] = None,
    backend: Optional[str] = None,
    **default_kwargs,
) -> SynthesizedFunction:
    """
    Build a function from a two-sided formula.

    The right side lists the inputs; the left side is the body. Parameters
    are ordered as: inputs without defaults, left-side-only names with no
    default at all ("dangerous" parameters, which fail when the function
    runs unless a value is passed), inputs with supplied defaults, then
    left-side-only names whose default came from ``scope``. Positional calls
    therefore fill every parameter without a usable default first.

    Args:
        formula: Formula or formula text, e.g. ``"sin(x^2 * b) ~ x & y & a"``
        defaults: Default values by variable name. Strings are parsed as
            expressions and evaluated when the function runs.
        strict_declaration: Raise if a default names a variable that is not
            in the formula; when False such defaults are dropped
        use_environment: Look up left-side-only names in ``scope``
        suppress_warnings: Do not warn about scope defaults or dangerous
            parameters
        scope: ScopeResolver or mapping consulted once, during synthesis
        namespace: Functions and constants the body may use besides its
            parameters. When omitted and ``scope`` is a CallerScope, the
            captured callables and modules are used
        backend: Evaluation backend ('numpy' or 'jax')
        **default_kwargs: Further defaults, merged over ``defaults``

    Returns:
        SynthesizedFunction evaluating the left side

    Raises:
        MalformedExpressionError: If the formula is not two-sided
        UndeclaredDefaultError: For undeclared defaults in strict mode

    Example:
        f = make_function("sin(x^2 * b) ~ x & y & a", a=2)
        f  # function(x, y, b, a = 2) sin(x^2 * b)
        f(1, 2, b=3)
    """
    config = get_default_config().synthesis
    if strict_declaration is None:
        strict_declaration = config.strict_declaration
    if use_environment is None:
        use_environment = config.use_environment
    if suppress_warnings is None:
        suppress_warnings = config.suppress_warnings
    if scope is None and config.capture_caller_scope:
        scope = CallerScope.capture(depth=2)

    resolver = as_scope_resolver(scope)
    evaluation_backend = get_backend(backend)
    if namespace is None and isinstance(resolver, CallerScope):
        if not (isinstance(formula, Formula) and formula.namespace):
            namespace = _caller_namespace(resolver, evaluation_backend)
    formula = _as_two_sided(formula, namespace)

    all_defaults: Dict[str, Any] = dict(defaults or {})
    all_defaults.update(default_kwargs)

    rhs_vars = formula.rhs_variables
    lhs_only_vars = formula.lhs_only_variables
    vars_in_formula = rhs_vars + lhs_only_vars
    _validate_variable_names(vars_in_formula, formula)

    vars_with_defaults = ordered_intersection(vars_in_formula, all_defaults)
    vars_without_defaults = ordered_difference(vars_in_formula, vars_with_defaults)

    undeclared = ordered_difference(all_defaults, vars_in_formula)
    if undeclared:
        if strict_declaration:
            raise UndeclaredDefaultError(undeclared, formula=formula.text or str(formula))
        logger.debug(f"Dropping defaults for undeclared variables: {','.join(undeclared)}")

    env_defaults: Dict[str, Any] = {}
    if use_environment:
        for name in vars_without_defaults:
            if name in rhs_vars:
                continue
            value = resolver.lookup_numeric(name)
            if value is not NOT_FOUND:
                env_defaults[name] = _snapshot(value)

        vars_without_defaults = ordered_difference(vars_without_defaults, env_defaults)
        if env_defaults and not suppress_warnings:
            warnings.warn(
                "Some default values taken from current environment: "
                + ", ".join(env_defaults),
                EnvironmentDefaultWarning,
                stacklevel=2,
            )

    vars_dangerous = ordered_intersection(lhs_only_vars, vars_without_defaults)
    vars_without_defaults = ordered_difference(vars_without_defaults, vars_dangerous)
    if vars_dangerous and not suppress_warnings:
        warnings.warn(
            "Implicit variables without default values (dangerous!): "
            + ", ".join(vars_dangerous),
            DanglingParameterWarning,
            stacklevel=2,
        )

    parameters: List[FunctionParameter] = (
        [FunctionParameter(name) for name in vars_without_defaults]
        + [
            FunctionParameter(name, MISSING, ParameterSource.DANGEROUS)
            for name in vars_dangerous
        ]
        + [
            FunctionParameter(name, _declared_default(all_defaults[name]),
                              ParameterSource.DECLARED_DEFAULT)
            for name in vars_with_defaults
        ]
        + [
            FunctionParameter(name, value, ParameterSource.ENVIRONMENT)
            for name, value in env_defaults.items()
        ]
    )

    logger.debug(
        f"Synthesized function from '{formula}'",
        parameters=[p.name for p in parameters],
        from_environment=list(env_defaults),
        dangerous=vars_dangerous,
    )

    return SynthesizedFunction(
        _make_body(formula, evaluation_backend),
        parameters,
        source=formula,
        name="formula_function",
        body_text=formula.lhs.to_string(),
    )


def _as_two_sided(formula: Any, namespace: Optional[Mapping[str, Any]]) -> Formula:
    if not isinstance(formula, (Formula, str)):
        raise MalformedExpressionError(
            reason=f"expected a formula, got {type(formula).__name__}"
        )

    formula = parse_formula(formula, namespace=namespace)
    if not formula.is_two_sided:
        raise MalformedExpressionError(expression=formula.text or str(formula))
    return formula


def _validate_variable_names(names: List[str], formula: Formula) -> None:
    for name in names:
        try:
            validate_identifier(name, what="parameter")
        except FormulaFunError as e:
            raise MalformedExpressionError(
                expression=str(formula),
                reason=f"'{name}' cannot be a function parameter",
                suggestions=[
                    "Rename the variable using letters, digits and underscores",
                    "Pass values with dotted names through the namespace instead",
                ],
            ) from e


def _caller_namespace(resolver: CallerScope, backend) -> Dict[str, Any]:
    """Captured functions the formula body may call; builtins keep precedence."""
    return {
        name: value for name, value in resolver.functions().items()
        if backend.resolve_function(name) is None
    }


def _declared_default(value: Any) -> Any:
    """String defaults are expressions, evaluated when the function runs."""
    if isinstance(value, str):
        return DefaultExpression(parse_expression(value), value.strip())
    return value


def _snapshot(value: Any) -> Any:
    """Detach scope values so later mutation of the source has no effect."""
    if getattr(value, 'dtype', None) is not None and hasattr(value, 'copy'):
        return value.copy()
    return value


def _make_body(formula: Formula, backend):
    lhs = formula.lhs
    namespace = formula.namespace
    expression = lhs.to_string()

    def body(arguments: Dict[str, Any]) -> Any:
        context = EvaluationContext(
            arguments, namespace=namespace, backend=backend, expression=expression
        )
        return lhs.evaluate(context)

    return body
