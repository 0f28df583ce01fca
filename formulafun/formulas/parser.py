"""
Formula parser for formulafun.

Provides a recursive-descent parser for R-style formulas whose sides are
arithmetic expressions, e.g. ``sin(x^2 * b) ~ x & y & a`` or
``np.log(wage) ~ exper + I(exper**2)``.
"""

from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Tuple

from . import lexer
from .lexer import Token, tokenize
from .nodes import Node, Number, String, Name, Group, UnaryOp, BinaryOp, Call, ListLiteral
from .formula import Formula
from ..core.exceptions import ExpressionSyntaxError, MalformedExpressionError
from ..utils.logging import get_logger


logger = get_logger(__name__)


class ExpressionParser:
    """
    Parser for formula text.

    Operator precedence follows R, from loosest to tightest binding::

        ~                      formula separator
        | ||                   or
        & &&                   and
        !                      not
        == != < <= > >=        comparison
        + -                    additive
        * /                    multiplicative
        %% %/%                 modulus, integer division
        :                      interaction / sequence
        - +                    unary sign
        ^ **                   power (right associative)

    so ``-2^2`` is ``-(2^2)`` and ``x^-1`` is accepted.
    """

    OR_OPERATORS = ('|', '||')
    AND_OPERATORS = ('&', '&&')
    COMPARISON_OPERATORS = ('==', '!=', '<', '<=', '>', '>=')
    ADDITIVE_OPERATORS = ('+', '-')
    MULTIPLICATIVE_OPERATORS = ('*', '/')
    SPECIAL_OPERATORS = ('%%', '%/%')
    POWER_OPERATORS = ('^', '**')

    def __init__(self, text: str):
        self.text = text
        self.tokens: List[Token] = tokenize(text)
        self.pos = 0

    # token handling

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, k: int = 1) -> Token:
        return self.tokens[min(self.pos + k, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.current
        if token.type != lexer.EOF:
            self.pos += 1
        return token

    def error(self, expected: Optional[str] = None):
        token = self.current
        raise ExpressionSyntaxError(
            self.text, position=token.position, found=token.value, expected=expected
        )

    def eat(self, token_type: str, expected: Optional[str] = None) -> Token:
        """Consume a token of the given type or fail."""
        if self.current.type != token_type:
            self.error(expected or token_type.lower())
        return self.advance()

    def at_operator(self, operators: Tuple[str, ...]) -> bool:
        return self.current.type == lexer.OP and self.current.value in operators

    # entry points

    def parse_expression(self) -> Node:
        """Parse text holding a single expression."""
        node = self.expr()
        self.eat(lexer.EOF, expected="end of expression")
        return node

    def parse_formula(self) -> Tuple[Optional[Node], Optional[Node]]:
        """
        formula : expr? '~' expr EOF
                | expr EOF

        Returns:
            (lhs, rhs); lhs is None for one-sided formulas and rhs is None
            when the text holds no '~' at all
        """
        lhs = None
        if self.current.type != lexer.TILDE:
            lhs = self.expr()

        rhs = None
        if self.current.type == lexer.TILDE:
            self.advance()
            rhs = self.expr()

        if self.current.type == lexer.TILDE:
            self.error(expected="a single '~'")
        self.eat(lexer.EOF, expected="end of formula")
        return lhs, rhs

    # grammar

    def expr(self) -> Node:
        """expr : or_expr"""
        return self.or_expr()

    def or_expr(self) -> Node:
        """or_expr : and_expr (('|' | '||') and_expr)*"""
        node = self.and_expr()
        while self.at_operator(self.OR_OPERATORS):
            op = self.advance().value
            node = BinaryOp(op, node, self.and_expr())
        return node

    def and_expr(self) -> Node:
        """and_expr : not_expr (('&' | '&&') not_expr)*"""
        node = self.not_expr()
        while self.at_operator(self.AND_OPERATORS):
            op = self.advance().value
            node = BinaryOp(op, node, self.not_expr())
        return node

    def not_expr(self) -> Node:
        """not_expr : '!' not_expr | comparison"""
        if self.at_operator(('!',)):
            self.advance()
            return UnaryOp('!', self.not_expr())
        return self.comparison()

    def comparison(self) -> Node:
        """comparison : additive (CMP additive)?"""
        node = self.additive()
        if self.at_operator(self.COMPARISON_OPERATORS):
            op = self.advance().value
            node = BinaryOp(op, node, self.additive())
            if self.at_operator(self.COMPARISON_OPERATORS):
                self.error(expected="parentheses around chained comparisons")
        return node

    def additive(self) -> Node:
        """additive : multiplicative (('+' | '-') multiplicative)*"""
        node = self.multiplicative()
        while self.at_operator(self.ADDITIVE_OPERATORS):
            op = self.advance().value
            node = BinaryOp(op, node, self.multiplicative())
        return node

    def multiplicative(self) -> Node:
        """multiplicative : special (('*' | '/') special)*"""
        node = self.special()
        while self.at_operator(self.MULTIPLICATIVE_OPERATORS):
            op = self.advance().value
            node = BinaryOp(op, node, self.special())
        return node

    def special(self) -> Node:
        """special : sequence (('%%' | '%/%') sequence)*"""
        node = self.sequence()
        while self.at_operator(self.SPECIAL_OPERATORS):
            op = self.advance().value
            node = BinaryOp(op, node, self.sequence())
        return node

    def sequence(self) -> Node:
        """sequence : unary (':' unary)*"""
        node = self.unary()
        while self.at_operator((':',)):
            self.advance()
            node = BinaryOp(':', node, self.unary())
        return node

    def unary(self) -> Node:
        """unary : ('-' | '+') unary | power"""
        if self.at_operator(self.ADDITIVE_OPERATORS):
            op = self.advance().value
            return UnaryOp(op, self.unary())
        return self.power()

    def power(self) -> Node:
        """power : atom (('^' | '**') unary)?"""
        node = self.atom()
        if self.at_operator(self.POWER_OPERATORS):
            op = self.advance().value
            node = BinaryOp(op, node, self.unary())
        return node

    def atom(self) -> Node:
        """
        atom : NUMBER
             | STRING
             | NAME
             | NAME '(' arguments? ')'
             | '(' expr ')'
             | '[' (expr (',' expr)*)? ']'
        """
        token = self.current

        if token.type == lexer.NUMBER:
            self.advance()
            return Number(float(token.value), token.value)

        if token.type == lexer.STRING:
            self.advance()
            return String(token.value[1:-1])

        if token.type == lexer.NAME:
            self.advance()
            if self.current.type == lexer.LPAREN:
                return self.call(token.value)
            return Name(token.value)

        if token.type == lexer.LPAREN:
            self.advance()
            node = self.expr()
            self.eat(lexer.RPAREN, expected="')'")
            return Group(node)

        if token.type == lexer.LBRACKET:
            self.advance()
            items: List[Node] = []
            if self.current.type != lexer.RBRACKET:
                items.append(self.expr())
                while self.current.type == lexer.COMMA:
                    self.advance()
                    items.append(self.expr())
            self.eat(lexer.RBRACKET, expected="',' or ']'")
            return ListLiteral(tuple(items))

        self.error(expected="a number, name, '(' or '['")

    def call(self, function: str) -> Call:
        """
        call      : '(' (argument (',' argument)*)? ')'
        argument  : NAME '=' expr
                  | expr
        """
        self.eat(lexer.LPAREN)
        args: List[Node] = []
        keywords: List[Tuple[str, Node]] = []

        if self.current.type != lexer.RPAREN:
            while True:
                if self.current.type == lexer.NAME and self.peek().type == lexer.EQUALS:
                    key = self.advance().value
                    self.advance()
                    keywords.append((key, self.expr()))
                else:
                    args.append(self.expr())

                if self.current.type != lexer.COMMA:
                    break
                self.advance()

        self.eat(lexer.RPAREN, expected="',' or ')'")
        return Call(function, tuple(args), tuple(keywords))


def parse_expression(text: str) -> Node:
    """
    Parse a single expression.

    Args:
        text: Expression text such as ``"x^2 + 1"``

    Returns:
        Root node of the expression tree
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedExpressionError(expression=text, reason="expression is empty")
    return ExpressionParser(text).parse_expression()


def parse_formula(text: str, namespace: Optional[Mapping[str, Any]] = None) -> Formula:
    """
    Parse formula text into a Formula.

    Args:
        text: Formula text, e.g. ``"sin(x^2 * b) ~ x & y & a"``
        namespace: Names the formula body may refer to besides its inputs
            (functions, constants). This is the formula's home scope.

    Returns:
        Formula object; one-sided formulas (``"~ x"``) are allowed here

    Raises:
        MalformedExpressionError: If the text holds no '~'
        ExpressionSyntaxError: If the text cannot be parsed

    Examples:
        "sin(x^2 * b) ~ x & y & a" -> lhs sin(x^2 * b), rhs x & y & a
        "~ x" -> one-sided, lhs None
    """
    if isinstance(text, Formula):
        return text if namespace is None else text.with_namespace(namespace)

    if not isinstance(text, str) or not text.strip():
        raise MalformedExpressionError(expression=text, reason="formula is empty")

    logger.debug(f"Parsing formula: {text.strip()}")

    lhs, rhs = ExpressionParser(text).parse_formula()
    if rhs is None:
        raise MalformedExpressionError(expression=text.strip(), reason="formula has no '~'")

    return Formula(
        lhs=lhs,
        rhs=rhs,
        text=text.strip(),
        namespace=MappingProxyType(dict(namespace or {})),
    )
