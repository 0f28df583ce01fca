"""
Tests for the formula lexer and parser.

Covers tokenization, R operator precedence, variable extraction and the
errors raised for text that is not a usable formula.
"""

import pytest

from formulafun.core.exceptions import ExpressionSyntaxError, MalformedExpressionError
from formulafun.formulas import (
    BinaryOp,
    Call,
    Formula,
    ListLiteral,
    Name,
    Number,
    String,
    UnaryOp,
    parse_expression,
    parse_formula,
)
from formulafun.formulas import lexer


pytestmark = pytest.mark.unit


class TestTokenizer:
    """Test tokenization of formula text."""

    def test_token_types(self):
        """Test a formula splits into the expected token stream."""
        tokens = lexer.tokenize("sin(x^2 * b) ~ x & y")
        types = [t.type for t in tokens]

        assert types == [
            lexer.NAME, lexer.LPAREN, lexer.NAME, lexer.OP, lexer.NUMBER, lexer.OP,
            lexer.NAME, lexer.RPAREN, lexer.TILDE, lexer.NAME, lexer.OP, lexer.NAME,
            lexer.EOF,
        ]

    def test_multi_character_operators(self):
        """Test that compound operators are single tokens."""
        values = [t.value for t in lexer.tokenize("a ** b %/% c %% d <= e")]
        assert values == ["a", "**", "b", "%/%", "c", "%%", "d", "<=", "e", None]

    def test_dotted_names_are_single_tokens(self):
        """Test that module-qualified names stay together."""
        tokens = lexer.tokenize("np.log(wage)")
        assert tokens[0].type == lexer.NAME
        assert tokens[0].value == "np.log"

    def test_numbers(self):
        """Test integer, decimal and scientific literals."""
        values = [t.value for t in lexer.tokenize("1 2.5 .5 1e-3") if t.type == lexer.NUMBER]
        assert values == ["1", "2.5", ".5", "1e-3"]

    def test_unknown_character(self):
        """Test that stray characters report their position."""
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            lexer.tokenize("x $ y")

        assert exc_info.value.position == 2
        assert "column 3" in str(exc_info.value)


class TestExpressionParsing:
    """Test parsing of single expressions."""

    def test_precedence_of_products(self):
        """Test that products bind tighter than sums."""
        node = parse_expression("1 + 2 * 3")

        assert isinstance(node, BinaryOp)
        assert node.op == "+"
        assert isinstance(node.right, BinaryOp)
        assert node.right.op == "*"

    def test_unary_minus_binds_looser_than_power(self):
        """Test that -2^2 parses as -(2^2)."""
        node = parse_expression("-2^2")

        assert isinstance(node, UnaryOp)
        assert isinstance(node.operand, BinaryOp)
        assert node.operand.op == "^"

    def test_power_is_right_associative(self):
        """Test that 2^3^2 parses as 2^(3^2)."""
        node = parse_expression("2^3^2")

        assert isinstance(node.left, Number)
        assert isinstance(node.right, BinaryOp)

    def test_negative_exponent(self):
        """Test that x^-1 is accepted."""
        node = parse_expression("x^-1")
        assert isinstance(node.right, UnaryOp)

    def test_call_with_keywords(self):
        """Test positional and keyword arguments of calls."""
        node = parse_expression("dnorm(x, mean = m, sd = 2)")

        assert isinstance(node, Call)
        assert node.function == "dnorm"
        assert node.args == (Name("x"),)
        assert [key for key, _ in node.keywords] == ["mean", "sd"]

    def test_string_literal(self):
        """Test quoted strings."""
        assert parse_expression("'a'") == String("a")
        assert parse_expression('"b"') == String("b")

    def test_round_trip_text(self):
        """Test that parsed expressions print back in canonical form."""
        assert str(parse_expression("sin(x^2*b)")) == "sin(x^2 * b)"
        assert str(parse_expression("(1+2)*3")) == "(1 + 2) * 3"
        assert str(parse_expression("log(y, base=2)")) == "log(y, base = 2)"

    def test_list_literal(self):
        """Test bracketed lists inside calls."""
        node = parse_expression("C(sex, levels=['M', 'F'])")
        levels = node.keywords[0][1]

        assert levels == ListLiteral((String("M"), String("F")))
        assert node.get_variable_names() == ["sex"]
        assert str(node) == 'C(sex, levels = ["M", "F"])'
        assert parse_expression("[]") == ListLiteral(())

    def test_unclosed_list(self):
        with pytest.raises(ExpressionSyntaxError, match=r"expected ',' or '\]'"):
            parse_expression("c(x, [1, 2)")

    def test_chained_comparison_rejected(self):
        """Test that a < b < c needs parentheses."""
        with pytest.raises(ExpressionSyntaxError):
            parse_expression("a < b < c")

    def test_unbalanced_parentheses(self):
        """Test that a missing ')' is a syntax error."""
        with pytest.raises(ExpressionSyntaxError) as exc_info:
            parse_expression("sin(x")

        assert exc_info.value.error_code == "SYNTAX"

    def test_empty_expression(self):
        """Test that empty text is malformed."""
        with pytest.raises(MalformedExpressionError):
            parse_expression("   ")


class TestFormulaParsing:
    """Test parsing of formulas and variable extraction."""

    def test_two_sided_formula(self):
        """Test left and right sides of a formula."""
        formula = parse_formula("sin(x^2 * b) ~ x & y & a")

        assert formula.is_two_sided
        assert formula.rhs_variables == ["x", "y", "a"]
        assert formula.lhs_variables == ["x", "b"]
        assert formula.lhs_only_variables == ["b"]
        assert formula.variables == ["x", "y", "a", "b"]

    def test_formula_text_round_trip(self):
        """Test that formulas print as written."""
        text = "sin(x^2 * b) ~ x & y & a"
        assert str(parse_formula(text)) == text

    def test_variables_in_first_occurrence_order(self):
        """Test that repeated names are reported once, in reading order."""
        formula = parse_formula("z * y + y * x ~ b + a + b")

        assert formula.rhs_variables == ["b", "a"]
        assert formula.lhs_only_variables == ["z", "y", "x"]

    def test_function_names_are_not_variables(self):
        """Test that called names and keyword names are excluded."""
        formula = parse_formula("log(y, base = b) ~ f(x)")

        assert formula.lhs_variables == ["y", "b"]
        assert formula.rhs_variables == ["x"]

    def test_pi_is_not_an_input(self):
        """Test that the constant pi is never a left-side-only variable."""
        formula = parse_formula("pi * r^2 * h ~ r")
        assert formula.lhs_only_variables == ["h"]

    def test_one_sided_formula(self):
        """Test that one-sided formulas parse but are not two-sided."""
        formula = parse_formula("~ x + z")

        assert not formula.is_two_sided
        assert formula.lhs is None
        assert str(formula) == "~x + z"

    def test_module_prefixed_response(self):
        """Test that module-qualified calls keep their base name."""
        formula = parse_formula("np.log(wage) ~ exper + I(exper**2)")

        assert isinstance(formula.lhs, Call)
        assert formula.lhs.base_name == "log"
        assert formula.rhs_variables == ["exper"]

    def test_missing_tilde(self):
        """Test that text without '~' is not a formula."""
        with pytest.raises(MalformedExpressionError) as exc_info:
            parse_formula("x + 1")

        assert not isinstance(exc_info.value, ExpressionSyntaxError)
        assert "no '~'" in str(exc_info.value)

    def test_second_tilde_rejected(self):
        """Test that a formula holds a single '~'."""
        with pytest.raises(ExpressionSyntaxError):
            parse_formula("a ~ b ~ c")

    def test_namespace_attached(self):
        """Test that a namespace becomes the formula's read-only home scope."""
        formula = parse_formula("g(x) ~ x", namespace={"g": abs})

        assert formula.namespace["g"] is abs
        with pytest.raises(TypeError):
            formula.namespace["h"] = abs

    def test_existing_formula_reused(self):
        """Test that parsing a Formula returns it, or a copy with a new namespace."""
        formula = parse_formula("y ~ x")

        assert parse_formula(formula) is formula
        rebound = parse_formula(formula, namespace={"k": 1})
        assert rebound == formula
        assert rebound.namespace["k"] == 1

    def test_from_string(self):
        """Test the Formula.from_string constructor."""
        assert Formula.from_string("y ~ x").rhs_variables == ["x"]
