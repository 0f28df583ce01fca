"""
Formula system for formulafun.

Parses R-style formulas such as ``sin(x^2 * b) ~ x & y & a`` into immutable
expression trees and evaluates them with a numpy or jax backend.
"""

from .nodes import Node, Number, String, Name, Group, UnaryOp, BinaryOp, Call, ListLiteral
from .formula import Formula, RESERVED_CONSTANTS
from .parser import ExpressionParser, parse_expression, parse_formula
from .evaluation import (
    MISSING,
    Backend,
    DefaultExpression,
    EvaluationContext,
    evaluate,
    get_backend,
)

__all__ = [
    # Expression trees
    "Node",
    "Number",
    "String",
    "Name",
    "Group",
    "UnaryOp",
    "BinaryOp",
    "Call",
    "ListLiteral",

    # Formulas
    "Formula",
    "RESERVED_CONSTANTS",
    "ExpressionParser",
    "parse_expression",
    "parse_formula",

    # Evaluation
    "MISSING",
    "Backend",
    "DefaultExpression",
    "EvaluationContext",
    "evaluate",
    "get_backend",
]
